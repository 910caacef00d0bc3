"""
editor.py - Edit Session

Writes the listing to a temporary file, runs the user's editor on it and
reads the edited lines back.
"""

from pathlib import Path
from typing import List, Optional, Sequence
import logging
import os
import shlex
import subprocess
import tempfile

from .errors import EditorFailed, IoError

log = logging.getLogger(__name__)

DEFAULT_EDITOR = "vi"
LISTING_ENCODING = "utf-8"
# Names that are not valid UTF-8 on disk still round-trip through the listing
LISTING_ERRORS = "surrogateescape"


def resolve_editor(environ: Optional[dict] = None) -> List[str]:
    """
    Editor command from $VISUAL, then $EDITOR, then vi

    The value is split with shell rules so "code --wait" works.
    """
    if environ is None:
        environ = os.environ
    editor = environ.get("VISUAL") or environ.get("EDITOR") or DEFAULT_EDITOR
    return shlex.split(editor)


def serialize_listing(lines: Sequence[str]) -> str:
    """One name per line, newline terminated"""
    return "".join(f"{line}\n" for line in lines)


def parse_listing(text: str) -> List[str]:
    """Split edited text back into lines; CRLF endings are accepted"""
    # str.splitlines() would also split on form feeds and other separators
    # that are legal inside a filename
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def edit_lines(lines: Sequence[str], editor: Optional[Sequence[str]] = None) -> List[str]:
    """
    Let the user edit lines in their editor

    Args:
        lines: Initial content, one name per line
        editor: Editor command (defaults to resolve_editor())

    Returns:
        Edited lines

    Raises:
        EditorFailed: the editor could not start or exited non-zero
        IoError: the listing file could not be written or read back
    """
    command = list(editor) if editor else resolve_editor()
    if not command:
        raise EditorFailed([DEFAULT_EDITOR], reason="empty editor command")

    with tempfile.TemporaryDirectory(prefix="editren-") as tmpdir:
        listing = Path(tmpdir) / "listing.txt"

        try:
            listing.write_text(serialize_listing(lines), encoding=LISTING_ENCODING, errors=LISTING_ERRORS)
        except OSError as e:
            raise IoError(f"Cannot write listing file: {e}", listing) from e

        log.debug("Running editor: %s %s", " ".join(command), listing)
        try:
            res = subprocess.run(command + [str(listing)])
        except OSError as e:
            raise EditorFailed(command, reason=e.strerror or str(e)) from e

        if res.returncode != 0:
            raise EditorFailed(command, returncode=res.returncode)

        try:
            text = listing.read_text(encoding=LISTING_ENCODING, errors=LISTING_ERRORS)
        except OSError as e:
            raise IoError(f"Cannot read listing file: {e}", listing) from e

    return parse_listing(text)
