"""Shared parsing helpers for configuration and catalog value normalization."""

from __future__ import annotations


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_positive_float(value: object, field_name: str) -> float:
    """Parse a strictly positive number from a textual or numeric value.

    Raises:
        ValueError: If the value is not a number greater than zero.
    """

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a positive number.")
    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(f"`{field_name}` must be a positive number.")
        try:
            parsed = float(normalized)
        except ValueError as exc:
            raise ValueError(f"`{field_name}` must be a positive number.") from exc

    if parsed <= 0:
        raise ValueError(f"`{field_name}` must be a positive number.")
    return parsed


def parse_catalog_id(value: object) -> int | None:
    """Parse a catalog identifier, returning `None` for non-integer tokens."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    normalized = normalize_optional_string(value)
    if normalized is None:
        return None
    try:
        return int(normalized)
    except ValueError:
        return None
