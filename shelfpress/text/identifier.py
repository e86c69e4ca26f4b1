"""Deterministic base-name synthesis for catalog artifacts.

Responsibilities:
- Normalize author and title text into filesystem-safe segments.
- Compose the base identifier shared by every artifact of one catalog entry.
"""

from __future__ import annotations

import re
import unicodedata

_DISALLOWED_CHARACTERS = re.compile(r"[^a-zA-Z0-9 ]")


def clean_segment(value: str) -> str:
    """Return `value` without diacritics or punctuation, spaces as underscores.

    Combining marks are dropped after canonical decomposition, so `Gómez`
    becomes `Gomez`. Characters without a Latin alphanumeric base are removed
    entirely, which can leave an empty segment.
    """

    decomposed = unicodedata.normalize("NFD", value)
    without_marks = "".join(
        character for character in decomposed if unicodedata.category(character) != "Mn"
    )
    recomposed = unicodedata.normalize("NFC", without_marks)
    stripped = _DISALLOWED_CHARACTERS.sub("", recomposed).strip()
    return stripped.replace(" ", "_")


def synthesize_identifier(last_name: str, first_name: str, short_title: str) -> str:
    """Build the `<last>_<first>-<title>` base identifier for one catalog entry."""

    return (
        f"{clean_segment(last_name)}_{clean_segment(first_name)}"
        f"-{clean_segment(short_title)}"
    )
