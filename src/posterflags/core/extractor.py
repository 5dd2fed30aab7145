"""Audio language extraction from the probe tool's stream report."""

import re
import subprocess
from pathlib import Path
from typing import Callable, Optional

from posterflags.utils.language import normalize_language_code
from posterflags.utils.logger import get_logger

logger = get_logger(__name__)

LANGUAGE_PATTERN = re.compile(r"\(([a-z]{2,3})\)")

ProbeRunner = Callable[[Path], str]


def parse_languages(output: str) -> list[str]:
    """Parse audio stream languages from a probe report.

    Only lines mentioning both "Stream" and "Audio" are considered, e.g.
    ``Stream #0:1(eng): Audio: aac (LC), 48000 Hz, stereo``.

    Args:
        output: Combined stdout/stderr of the probe tool

    Returns:
        Unique language codes in first-seen order
    """
    languages: list[str] = []
    for line in output.splitlines():
        if "Stream" not in line or "Audio" not in line:
            continue
        match = LANGUAGE_PATTERN.search(line)
        if not match:
            continue
        code = normalize_language_code(match.group(1))
        if code not in languages:
            languages.append(code)
    return languages


class FFmpegProbe:
    """Run ``ffmpeg -i`` and return its stream report.

    ffmpeg exits non-zero when given an input without an output, but still
    prints the stream report on stderr, so the exit code is ignored.
    """

    def __init__(self, command: str = "ffmpeg", timeout_seconds: float = 30):
        """Initialize probe.

        Args:
            command: Probe executable name or path
            timeout_seconds: Maximum runtime before the process is killed
        """
        self.command = command
        self.timeout_seconds = timeout_seconds

    def __call__(self, media_path: Path) -> str:
        """Probe a media file.

        Raises:
            FileNotFoundError: If the probe executable doesn't exist
            subprocess.TimeoutExpired: If the probe exceeds the timeout
        """
        cmd = [self.command, "-hide_banner", "-i", str(media_path)]

        logger.debug("Running probe", media=str(media_path), command=cmd)

        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=self.timeout_seconds,
        )
        return result.stdout or ""


class LanguageExtractor:
    """Determine the spoken languages of a media file's audio tracks."""

    def __init__(self, probe: Optional[ProbeRunner] = None):
        """Initialize extractor.

        Args:
            probe: Callable returning the probe report for a media path.
                Defaults to FFmpegProbe().
        """
        self.probe = probe or FFmpegProbe()

    def extract(self, media_path: Optional[Path]) -> list[str]:
        """Extract audio languages from a media file.

        Never raises: any probe failure is logged and yields no languages.

        Args:
            media_path: Path to media file

        Returns:
            Unique language codes in first-seen order
        """
        if media_path is None:
            return []

        if not media_path.exists():
            logger.warning("Media file not found", media=str(media_path))
            return []

        try:
            output = self.probe(media_path)
        except FileNotFoundError as e:
            logger.warning("Probe executable not found", media=str(media_path), error=str(e))
            return []
        except subprocess.TimeoutExpired as e:
            logger.warning("Probe timeout", media=str(media_path), timeout=e.timeout)
            return []
        except Exception as e:
            logger.warning("Probe failed", media=str(media_path), error=str(e))
            return []

        languages = parse_languages(output)

        if not languages:
            logger.warning("No audio languages found", media=str(media_path))
        else:
            logger.info("Audio languages extracted", media=str(media_path), languages=languages)

        return languages
