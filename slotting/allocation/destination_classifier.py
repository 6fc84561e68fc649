"""Destination classification.

Maps a free-text destination (an Amazon fulfillment-center code, a carrier,
a platform or a customer address type) to the zone category that may store
it. Rules are applied in a fixed priority order; the first match wins and
anything unmatched falls back to the private category.
"""

import re
from enum import Enum

from .. import constants


class ZoneCategory(str, Enum):
    """Storage category a destination belongs to."""
    AMAZON_MAIN = "amz-main"
    AMAZON_BUFFER = "amz-buffer"
    EXPRESS = "express"
    SHEIN = "shein"
    PRIVATE = "private"
    PLATFORM = "platform"
    HIGH_VALUE = "highvalue"
    SUSPENSE = "suspense"


#: Category used when no rule matches
DEFAULT_CATEGORY = ZoneCategory.PRIVATE

_PREFIX_RE = re.compile(constants.DESTINATION_PREFIX_PATTERN, re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"[\s\-]")
_GENERIC_CODE_RE = re.compile(constants.GENERIC_CODE_PATTERN, re.IGNORECASE)


def normalize_destination_code(destination: str) -> str:
    """
    Normalize a destination for equality matching.

    Cosmetic variants of the same destination compare equal after
    normalization, e.g. "Amazon-MDW2", "amz MDW2" and "mdw2".

    Args:
        destination: Raw destination text

    Returns:
        Lower-case code without prefix, spaces or hyphens ("" for empty input)
    """
    if not destination:
        return ""
    code = str(destination).strip().lower()
    code = _PREFIX_RE.sub("", code)
    return _SEPARATOR_RE.sub("", code)


def _starts_with_any(text: str, codes) -> bool:
    return any(text.startswith(code) for code in codes)


def _contains_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def classify(destination: str) -> ZoneCategory:
    """
    Classify a destination into its zone category.

    Priority order:
        1. Amazon main list (prefix match)
        2. Amazon buffer list (prefix match)
        3. Express carrier keywords
        4. Retail partner keywords
        5. Private/residential keywords
        6. Platform keywords, then generic Amazon code patterns
        7. Currency marker (high-value goods)
        8. Transit/staging keywords
        9. Default: private

    Args:
        destination: Raw destination text

    Returns:
        ZoneCategory for the destination
    """
    raw = (destination or "").strip()
    lowered = raw.lower()
    if not lowered:
        return DEFAULT_CATEGORY

    upper_forms = (raw.upper(), normalize_destination_code(raw).upper())

    if any(_starts_with_any(form, constants.AMAZON_MAIN_DESTINATIONS) for form in upper_forms):
        return ZoneCategory.AMAZON_MAIN
    if any(_starts_with_any(form, constants.AMAZON_BUFFER_DESTINATIONS) for form in upper_forms):
        return ZoneCategory.AMAZON_BUFFER

    if _contains_any(lowered, constants.EXPRESS_KEYWORDS):
        return ZoneCategory.EXPRESS
    if _contains_any(lowered, constants.RETAIL_PARTNER_KEYWORDS):
        return ZoneCategory.SHEIN
    if _contains_any(lowered, constants.PRIVATE_KEYWORDS):
        return ZoneCategory.PRIVATE

    if _contains_any(lowered, constants.PLATFORM_KEYWORDS):
        return ZoneCategory.PLATFORM
    if constants.AMAZON_MARKER in lowered or _GENERIC_CODE_RE.match(raw):
        return ZoneCategory.AMAZON_MAIN

    if _contains_any(raw, constants.CURRENCY_MARKERS):
        return ZoneCategory.HIGH_VALUE

    if _contains_any(lowered, constants.SUSPENSE_KEYWORDS):
        return ZoneCategory.SUSPENSE

    return DEFAULT_CATEGORY
