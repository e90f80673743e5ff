# src/pinwatch/services/address.py
"""Address canonicalization and free-text sanitization."""

from __future__ import annotations

import re

from pinwatch.models.report import ADDRESS_KEY_MAX_LENGTH

MAX_SANITIZED_LENGTH = 500

# ASCII word characters only; accented letters are dropped from keys.
_NON_KEY_CHARS = re.compile(r"[^A-Za-z0-9_\s-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_HYPHEN_RUN = re.compile(r"-+")
_UNDERSCORE_RUN = re.compile(r"_+")

_HTML_TAG = re.compile(r"<[^>]*>")
_UNSAFE_CHARS = re.compile(r"[<>\"']")


def make_address_key(address: object) -> str:
    """Return the storage key for ``address``.

    The key is lower-cased, stripped of punctuation, with whitespace and
    hyphen runs collapsed to a single underscore. ``"123 Main St."`` and
    ``"123  main-st"`` both map to ``"123_main_st"``. Non-string or empty
    input yields ``""``, which callers must treat as unusable.
    """
    if not isinstance(address, str) or not address:
        return ""

    key = address.lower()
    key = _NON_KEY_CHARS.sub("", key)
    key = _WHITESPACE_RUN.sub("_", key)
    key = _HYPHEN_RUN.sub("_", key)
    key = _UNDERSCORE_RUN.sub("_", key)
    key = key.strip("_")
    return key[:ADDRESS_KEY_MAX_LENGTH]


def sanitize_input(text: object, max_length: int = MAX_SANITIZED_LENGTH) -> str:
    """Strip markup and quote characters from user text.

    Tag content is kept (``"<b>hi</b>"`` becomes ``"hi"``); ampersands are
    left alone.
    """
    if not isinstance(text, str):
        return ""

    cleaned = _HTML_TAG.sub("", text)
    cleaned = _UNSAFE_CHARS.sub("", cleaned)
    return cleaned.strip()[:max_length]
