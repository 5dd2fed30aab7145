"""Language code normalization.

Probe output uses ISO 639-2 codes, which come in bibliographic ("fre", "ger")
and terminological ("fra", "deu") spellings, and occasionally ISO 639-1
two-letter codes. Flags are keyed by one spelling per language; these tables
fold the others onto it.
"""

# ISO 639-1 (2-letter) to the 3-letter spelling used for flag lookup
ISO_639_1_TO_FLAG_CODE = {
    "en": "eng",  # English
    "fr": "fra",  # French
    "de": "ger",  # German
    "ja": "jpn",  # Japanese
    "es": "spa",  # Spanish
    "it": "ita",  # Italian
    "zh": "zho",  # Chinese
    "ko": "kor",  # Korean
    "pt": "por",  # Portuguese
    "ru": "rus",  # Russian
    "nl": "dut",  # Dutch
    "sv": "swe",  # Swedish
    "pl": "pol",  # Polish
}

# Alternative ISO 639-2 spellings
ISO_639_2_ALIASES = {
    "fre": "fra",
    "deu": "ger",
    "chi": "zho",
    "nld": "dut",
}


def normalize_language_code(code: str) -> str:
    """Normalize a language code to the spelling used for flag lookup.

    Unknown codes are returned lowercased but otherwise unchanged.

    Args:
        code: Language code (2 or 3 letters)

    Returns:
        Normalized code
    """
    if not code:
        return code

    code_lower = code.strip().lower()
    if len(code_lower) == 2:
        return ISO_639_1_TO_FLAG_CODE.get(code_lower, code_lower)
    return ISO_639_2_ALIASES.get(code_lower, code_lower)
