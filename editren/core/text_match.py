"""
text_match.py - Filename Text Rules

Checks whether an edited line can stand as a single filename
"""

from typing import Optional
import os
import platform


# Characters a name can never contain on the current platform
_FORBIDDEN_POSIX = "/\0"
_FORBIDDEN_WINDOWS = '<>:"/\\|?*\0'

# Windows reserved device names
RESERVED_WINDOWS_NAMES = {
    'CON', 'PRN', 'AUX', 'NUL',
    'COM1', 'COM2', 'COM3', 'COM4', 'COM5', 'COM6', 'COM7', 'COM8', 'COM9',
    'LPT1', 'LPT2', 'LPT3', 'LPT4', 'LPT5', 'LPT6', 'LPT7', 'LPT8', 'LPT9'
}

MAX_NAME_BYTES = 255


def has_line_break(name: str) -> bool:
    """Whether a name cannot be represented on one line of the listing"""
    return "\n" in name or "\r" in name


def is_blank(text: Optional[str]) -> bool:
    """An omitted or whitespace-only line"""
    return text is None or not text.strip()


def is_valid_filename(name: str, windows: Optional[bool] = None) -> tuple[bool, Optional[str]]:
    """
    Check if an edited name is a valid single path segment

    Args:
        name: Filename
        windows: Apply Windows rules (defaults to the running platform)

    Returns:
        (is_valid, error_reason)
    """
    if windows is None:
        windows = platform.system() == "Windows"

    if not name:
        return False, "Filename cannot be empty"

    if name in (".", ".."):
        return False, f"'{name}' is not a filename"

    forbidden = _FORBIDDEN_WINDOWS if windows else _FORBIDDEN_POSIX
    for char in forbidden:
        if char in name:
            shown = "NUL" if char == "\0" else char
            return False, f"Filename contains invalid character: {shown}"

    if windows:
        # Trailing space or dot are silently dropped by Windows
        if name.endswith(' ') or name.endswith('.'):
            return False, "Filename cannot end with space or dot"

        name_upper = name.upper().split('.')[0]
        if name_upper in RESERVED_WINDOWS_NAMES:
            return False, f"Filename is a Windows reserved name: {name_upper}"

    if len(os.fsencode(name)) > MAX_NAME_BYTES:
        return False, f"Filename exceeds {MAX_NAME_BYTES} bytes"

    return True, None
