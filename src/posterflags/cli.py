"""Command-line interface for PosterFlags."""

import sys
from pathlib import Path

import click

from posterflags import __version__
from posterflags.config import load_config
from posterflags.core.backup import BackupManager
from posterflags.core.coordinator import UpdateCoordinator
from posterflags.core.extractor import FFmpegProbe, LanguageExtractor
from posterflags.core.flags import FlagResolver
from posterflags.models.item import ItemKind, MediaItem
from posterflags.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (defaults to built-in defaults)",
)
@click.pass_context
def cli(ctx, config):
    """PosterFlags - audio language flags on media posters."""
    try:
        cfg = load_config(config)
        ctx.ensure_object(dict)
        ctx.obj["config"] = cfg

        setup_logging(cfg.logging)

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("media", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def languages(ctx, media):
    """Show the audio languages found in MEDIA."""
    config = ctx.obj["config"]
    extractor = LanguageExtractor(
        FFmpegProbe(config.probe.command, config.probe.timeout_seconds)
    )

    found = extractor.extract(media)
    if not found:
        click.secho("⊘ No audio languages found", fg="yellow")
        return

    for code in found:
        click.echo(code)


@cli.command()
@click.argument("poster", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--media",
    "-m",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Media file to probe for audio languages",
)
@click.option(
    "--kind",
    "-k",
    type=click.Choice([kind.value for kind in ItemKind]),
    default=ItemKind.MOVIE.value,
    show_default=True,
    help="Library item kind",
)
@click.pass_context
def apply(ctx, poster, media, kind):
    """Overlay language flags on POSTER."""
    config = ctx.obj["config"]
    coordinator = UpdateCoordinator.from_config(config)

    item = MediaItem(
        item_id=str(poster),
        kind=ItemKind(kind),
        media_path=media,
        poster_path=poster,
        name=poster.name,
    )
    result = coordinator.process(item)

    if result.status == "success":
        click.secho(str(result), fg="green")
    elif result.status == "skipped":
        click.secho(str(result), fg="yellow")
    else:
        click.secho(str(result), fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def restore(ctx):
    """Restore every backed-up poster to its original bytes."""
    config = ctx.obj["config"]
    backups = BackupManager(Path(config.backup.directory))

    report = backups.restore_all()

    click.echo("Restore summary:")
    click.secho(f"  ✓ Restored: {len(report.restored)}", fg="green")
    click.secho(f"  ⊘ Missing:  {len(report.missing)}", fg="yellow")
    click.secho(f"  ✗ Failed:   {len(report.failed)}", fg="red")

    if not report.ok:
        sys.exit(1)


@cli.command()
@click.pass_context
def flags(ctx):
    """List language codes that have a flag."""
    config = ctx.obj["config"]
    extra_dir = Path(config.flags.extra_dir) if config.flags.extra_dir else None

    for code in FlagResolver(extra_dir).supported_codes():
        click.echo(code)


@cli.command()
def version():
    """Show version information."""
    click.echo(f"PosterFlags v{__version__}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
