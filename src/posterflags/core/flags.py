"""Flag image lookup by language code."""

from importlib import resources
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from posterflags.utils.logger import get_logger

logger = get_logger(__name__)

RESOURCE_PACKAGE = "posterflags.resources"

# Language code -> bundled resource name (under the resources package)
SUPPORTED_FLAGS = {
    "eng": "flags/eng.png",
    "fra": "flags/fra.png",
    "ger": "flags/ger.png",
    "jpn": "flags/jpn.png",
    "spa": "flags/spa.png",
    "ita": "flags/ita.png",
    "zho": "flags/zho.png",
    "kor": "flags/kor.png",
}


class FlagResolver:
    """Resolve language codes to decoded flag images.

    Bundled flags cover SUPPORTED_FLAGS. An optional directory of
    ``<code>.png`` files adds codes or replaces bundled flags.
    """

    def __init__(self, extra_dir: Optional[Path] = None):
        self.extra_dir = Path(extra_dir) if extra_dir else None
        self._cache: dict[str, Image.Image] = {}

    def _extra_flag(self, code: str) -> Optional[Path]:
        if self.extra_dir is None:
            return None
        candidate = self.extra_dir / f"{code}.png"
        return candidate if candidate.is_file() else None

    def supported_codes(self) -> list[str]:
        """List every code that maps to a flag."""
        codes = set(SUPPORTED_FLAGS)
        if self.extra_dir is not None and self.extra_dir.is_dir():
            codes.update(p.stem for p in self.extra_dir.glob("*.png"))
        return sorted(codes)

    def resolve(self, code: str) -> Optional[Image.Image]:
        """Load the flag for a language code.

        Args:
            code: Language code (e.g., "eng")

        Returns:
            RGBA flag image, or None if the code has no usable flag
        """
        if code in self._cache:
            return self._cache[code]

        extra = self._extra_flag(code)
        resource_name = SUPPORTED_FLAGS.get(code)

        if extra is None and resource_name is None:
            logger.warning("No flag available for language", language=code)
            return None

        try:
            if extra is not None:
                with Image.open(extra) as img:
                    flag = img.convert("RGBA")
            else:
                resource = resources.files(RESOURCE_PACKAGE).joinpath(resource_name)
                with resource.open("rb") as stream, Image.open(stream) as img:
                    flag = img.convert("RGBA")
        except FileNotFoundError:
            logger.warning("Flag resource not found", language=code, resource=resource_name)
            return None
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning("Failed to load flag", language=code, error=str(e))
            return None

        self._cache[code] = flag
        return flag
