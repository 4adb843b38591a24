"""
Answer normalization - the single comparison form used by grading and
analytics.

Every submitted answer, correct answer and option text is passed through
normalize() before it is compared, so case and surrounding whitespace never
decide whether an answer is correct.
"""

from typing import Optional

# Sentinel returned for answers that carry no content
EMPTY = None


def normalize(raw) -> Optional[str]:
    """
    Canonicalize a raw answer value.

    None, empty strings and whitespace-only strings normalize to EMPTY.
    Numbers are stringified first, integral floats without their ".0" so
    that 1.0 and "1" compare equal. Everything else is trimmed and
    lower-cased.
    """
    if raw is None:
        return EMPTY
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    text = str(raw).strip().lower()
    return text if text else EMPTY


def is_empty(normalized: Optional[str]) -> bool:
    return normalized is EMPTY
