"""Title buckets that song folders are sorted into by first character."""

import string
from pathlib import Path

BUCKET_PREFIX = "[Title] "
NUMBERS_BUCKET = f"{BUCKET_PREFIX}0-9"
HIRAGANA_BUCKET = f"{BUCKET_PREFIX}ひらがな"
KATAKANA_BUCKET = f"{BUCKET_PREFIX}カタカナ"
KANJI_BUCKET = f"{BUCKET_PREFIX}漢字"
OTHERS_BUCKET = f"{BUCKET_PREFIX}_Others"

LETTER_BUCKETS = {letter: f"{BUCKET_PREFIX}{letter}" for letter in string.ascii_uppercase}

ALL_BUCKETS = (
    list(LETTER_BUCKETS.values())
    + [NUMBERS_BUCKET, OTHERS_BUCKET, KATAKANA_BUCKET, HIRAGANA_BUCKET, KANJI_BUCKET]
)

# (first code point, last code point, bucket)
_RANGES = [
    (0x4E00, 0x9FFF, KANJI_BUCKET),    # CJK Unified Ideographs
    (0x3400, 0x4DBF, KANJI_BUCKET),    # Extension A
    (0x20000, 0x2FA1F, KANJI_BUCKET),  # Extensions B+ and compatibility supplement
    (0x3040, 0x309F, HIRAGANA_BUCKET),
    (0x30A0, 0x30FF, KATAKANA_BUCKET),
    (0xFF66, 0xFF9F, KATAKANA_BUCKET),  # Half-width katakana
    (0x30, 0x39, NUMBERS_BUCKET),
    (0xFF10, 0xFF19, NUMBERS_BUCKET),   # Full-width digits
]


def _letter_for(code: int) -> str | None:
    """Fold ASCII and full-width Latin letters to an upper-case ASCII letter."""
    if 0xFF21 <= code <= 0xFF3A:
        code = code - 0xFF21 + ord("A")
    elif 0xFF41 <= code <= 0xFF5A:
        code = code - 0xFF41 + ord("a")
    char = chr(code)
    if char in string.ascii_letters:
        return char.upper()
    return None


def bucket_name_for(name: str) -> str:
    """Return the bucket directory name for a song folder's display name."""
    if not name:
        return OTHERS_BUCKET

    code = ord(name[0])
    for start, end, bucket in _RANGES:
        if start <= code <= end:
            return bucket

    letter = _letter_for(code)
    if letter is not None:
        return LETTER_BUCKETS[letter]
    return OTHERS_BUCKET


def make_bucket_folders(dest_root: Path) -> dict[str, Path]:
    """Create every bucket directory under dest_root and return them by name."""
    buckets = {}
    for bucket in ALL_BUCKETS:
        path = dest_root / bucket
        path.mkdir(parents=True, exist_ok=True)
        buckets[bucket] = path
    return buckets
