import html
from typing import Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def sanitize_list(values: Optional[list[str]]) -> Optional[list[str]]:
    """Escape every string in a list, keeping order"""
    if values is None:
        return None
    return [sanitize_string(item) for item in values]


def validate_and_sanitize_input(value: Optional[str], max_length: int = 500) -> Optional[str]:
    """
    Escape a string and check it still fits max_length once escaped.

    Raises:
        ValueError: If the escaped value is longer than max_length
    """
    value = sanitize_string(value)
    if value is not None and len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")
    return value
