"""Flag overlay compositing onto poster images."""

import os
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from posterflags.core.flags import FlagResolver
from posterflags.errors import PosterDecodeError
from posterflags.models.result import CompositeResult, FlagPlacement
from posterflags.utils.files import copy_atomic
from posterflags.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SLOT_WIDTH = 50
DEFAULT_BOTTOM_OFFSET = 50


def layout_slots(
    width: int, height: int, count: int, slot_width: int, bottom_offset: int
) -> list[tuple[int, int]]:
    """Compute the top-left corner of each flag slot.

    The row is right-aligned: the last slot ends at the poster's right edge.

    Args:
        width: Poster width
        height: Poster height
        count: Number of slots
        slot_width: Horizontal step between slots
        bottom_offset: Distance of the row's top from the bottom edge

    Returns:
        (x, y) per slot, left to right
    """
    x0 = width - count * slot_width
    y = height - bottom_offset
    return [(x0 + i * slot_width, y) for i in range(count)]


class PosterCompositor:
    """Draw language flags along the bottom edge of a poster."""

    def __init__(
        self,
        resolver: Optional[FlagResolver] = None,
        slot_width: int = DEFAULT_SLOT_WIDTH,
        bottom_offset: int = DEFAULT_BOTTOM_OFFSET,
    ):
        """Initialize compositor.

        Args:
            resolver: Flag lookup (defaults to bundled flags only)
            slot_width: Horizontal step per flag
            bottom_offset: Distance of the flag row from the bottom edge
        """
        self.resolver = resolver or FlagResolver()
        self.slot_width = slot_width
        self.bottom_offset = bottom_offset

    def _fit_flag(self, flag: Image.Image) -> Image.Image:
        """Shrink a flag that would overflow its slot."""
        max_height = self.bottom_offset or flag.height
        if flag.width <= self.slot_width and flag.height <= max_height:
            return flag
        fitted = flag.copy()
        fitted.thumbnail((self.slot_width, max_height))
        return fitted

    def compose(
        self, source: Path, destination: Path, languages: list[str]
    ) -> CompositeResult:
        """Overlay flags for the given languages and write the poster.

        Pixels are read from ``source`` and the result is written to
        ``destination``; passing the pristine backup as source keeps
        repeated runs from stacking flags. A code without a flag is
        skipped but keeps its slot.

        Args:
            source: Image to draw onto
            destination: Poster path to write
            languages: Ordered language codes

        Returns:
            CompositeResult with the placed and skipped codes

        Raises:
            PosterDecodeError: If the source image can't be decoded
        """
        try:
            with Image.open(source) as img:
                img.load()
                image_format = img.format
                metadata = {
                    key: img.info[key] for key in ("icc_profile", "exif") if img.info.get(key)
                }
                base = img.copy()
        except (FileNotFoundError, UnidentifiedImageError, OSError) as e:
            logger.error("Failed to decode poster", poster=str(source), error=str(e))
            raise PosterDecodeError(f"Cannot decode poster {source}: {e}") from e

        capacity = base.width // self.slot_width
        if len(languages) > capacity:
            logger.warning(
                "Too many flags for poster width, truncating",
                poster=str(destination),
                languages=languages,
                capacity=capacity,
            )
            languages = languages[:capacity]

        slots = layout_slots(
            base.width, base.height, len(languages), self.slot_width, self.bottom_offset
        )

        result = CompositeResult()
        canvas = base.convert("RGBA")

        for code, (x, y) in zip(languages, slots):
            flag = self.resolver.resolve(code)
            if flag is None:
                result.skipped.append(code)
                continue
            flag = self._fit_flag(flag)
            canvas.paste(flag, (x, y), flag)
            result.placements.append(FlagPlacement(code=code, x=x, y=y))

        if not result.placements:
            # Nothing drawn: keep the source bytes as they are
            if Path(source).resolve() != Path(destination).resolve():
                copy_atomic(source, destination)
            logger.info("No flags drawn", poster=str(destination), skipped=result.skipped)
            return result

        self._write(canvas, destination, image_format, base.mode, metadata)

        logger.info(
            "Flags drawn on poster",
            poster=str(destination),
            placed=result.placed_codes,
            skipped=result.skipped,
        )
        return result

    def _write(
        self,
        canvas: Image.Image,
        destination: Path,
        image_format: Optional[str],
        original_mode: str,
        metadata: Optional[dict] = None,
    ) -> None:
        """Save atomically via a temp file in the destination directory.

        The source's colour profile and EXIF block are written back.
        """
        destination = Path(destination)
        temp_file = destination.parent / f".{destination.name}.tmp"

        image_format = image_format or Image.registered_extensions().get(
            destination.suffix.lower(), "PNG"
        )
        save_kwargs = dict(metadata or {})
        if original_mode == "CMYK":
            # Output is RGB, a CMYK profile no longer applies
            save_kwargs.pop("icc_profile", None)
        if image_format == "JPEG":
            output = canvas.convert("RGB")
            save_kwargs["quality"] = 95
        elif original_mode in ("RGBA", "LA", "P", "PA"):
            output = canvas
        else:
            output = canvas.convert("RGB")

        try:
            output.save(temp_file, format=image_format, **save_kwargs)
            os.replace(temp_file, destination)
        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise
