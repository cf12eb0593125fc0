"""
Text normalization for address and name matching.

The Index Builder and the Matcher both key their lookups on the output of
these functions, so they must stay pure and deterministic: byte-identical
input always yields byte-identical output.

normalize_address operations (in order):
1. Lower-case
2. Drop characters that are neither word characters nor whitespace
3. Collapse whitespace runs to a single space
4. Remove standalone street-suffix tokens (street/st, avenue/ave, road/rd,
   drive/dr, lane/ln, boulevard/blvd)
5. Trim, collapsing the gaps left by removed tokens

Word characters are ASCII-only ([A-Za-z0-9_]) to match the keys produced by
the web application for the same documents. Whitespace is Unicode-aware and
includes U+FEFF, so non-breaking and thin spaces from spreadsheet imports
separate tokens instead of being dropped.
"""

import re
from typing import Any

_NON_WORD = re.compile(r"[^A-Za-z0-9_\s\ufeff]")
_WHITESPACE = re.compile(r"[\s\ufeff]+")
_STREET_SUFFIXES = re.compile(
    r"\b(?:street|st|avenue|ave|road|rd|drive|dr|lane|ln|boulevard|blvd)\b",
    re.ASCII,
)


def normalize_address(address: Any) -> str:
    """
    Normalize a free-text street address into a lookup key.

    Args:
        address: Raw address. Non-string input normalizes to "".

    Returns:
        Normalized address, possibly empty.

    Examples:
        >>> normalize_address("123 Main Street")
        '123 main'
        >>> normalize_address("123 MAIN ST.")
        '123 main'
        >>> normalize_address("55 Oak Dr, Suite 4")
        '55 oak suite 4'
    """
    if not address or not isinstance(address, str):
        return ""

    text = address.lower()
    text = _NON_WORD.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    text = _STREET_SUFFIXES.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def is_matchable_address(normalized: str, min_length: int = 5) -> bool:
    """Addresses of min_length characters or fewer are too ambiguous to match."""
    return len(normalized) > min_length


def normalize_name(name: Any) -> str:
    """
    Normalize a company display name for fuzzy comparison.

    Examples:
        >>> normalize_name("  Acme Supply, Inc. ")
        'acme supply inc'
    """
    if not name or not isinstance(name, str):
        return ""

    text = name.lower().strip()
    text = _NON_WORD.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def name_block_key(normalized_name: str) -> str:
    """Blocking key for the name strategy: the first token of the name."""
    if not normalized_name:
        return ""
    return normalized_name.split(" ", 1)[0]
