"""
scan_files.py - Directory Snapshot Module

Lists the immediate children of one directory (files, directories and
symlinks, never followed) in a stable code-point order.
"""

from pathlib import Path
from typing import List, Set
import errno
import logging
import os
import stat

from .errors import AccessDenied, IoError, NotADirectory
from .models_fs import Entry, Snapshot, normalize_for_comparison
from .plan_rename import is_temp_name
from .text_match import has_line_break

log = logging.getLogger(__name__)


def _list_names(directory: Path) -> List[str]:
    """Raw child names, translating OSError into the listing errors"""
    try:
        return os.listdir(directory)
    except FileNotFoundError as e:
        raise NotADirectory(f"Directory does not exist: {directory}", directory) from e
    except NotADirectoryError as e:
        raise NotADirectory(f"Not a directory: {directory}", directory) from e
    except PermissionError as e:
        raise AccessDenied(f"Cannot list directory: {directory}: {e.strerror}", directory) from e
    except OSError as e:
        if e.errno == errno.ENOTDIR:
            raise NotADirectory(f"Not a directory: {directory}", directory) from e
        raise IoError(f"Cannot list directory: {directory}: {e}", directory) from e


def take_snapshot(directory: Path, include_hidden: bool = False) -> Snapshot:
    """
    Capture the ordered listing the user will edit

    Args:
        directory: Target directory
        include_hidden: Whether to include names starting with a dot

    Returns:
        Snapshot of the directory

    Raises:
        NotADirectory: path is missing or not a directory
        AccessDenied: the directory or one of its entries cannot be read
    """
    directory = Path(directory).resolve()
    names = sorted(_list_names(directory))

    entries: List[Entry] = []
    for name in names:
        if is_temp_name(name):
            log.warning("%s was left behind by an interrupted run", name)

        # Skip hidden files
        if not include_hidden and name.startswith('.'):
            continue

        if has_line_break(name):
            log.warning("Skipping %r: names with line breaks cannot be edited as a listing", name)
            continue

        try:
            st = os.lstat(directory / name)
        except FileNotFoundError:
            # Removed between listing and stat
            log.debug("Entry vanished while listing: %s", name)
            continue
        except PermissionError as e:
            raise AccessDenied(f"Cannot read entry: {directory / name}: {e.strerror}", directory / name) from e
        except OSError as e:
            raise IoError(f"Cannot read entry: {directory / name}: {e}", directory / name) from e

        entries.append(Entry(
            index=len(entries),
            name=name,
            is_dir=stat.S_ISDIR(st.st_mode),
            inode=(st.st_dev, st.st_ino),
        ))

    log.debug("Snapshot of %s: %d entries", directory, len(entries))
    return Snapshot(directory=directory, entries=tuple(entries))


def get_existing_names(directory: Path, case_insensitive: bool = True) -> Set[str]:
    """
    Get set of every name in directory (for conflict detection)

    Hidden entries and entries left out of the snapshot are included: they
    still occupy their names.

    Args:
        directory: Target directory
        case_insensitive: Whether case-insensitive

    Returns:
        Filename set (normalized)
    """
    directory = Path(directory).resolve()
    return {normalize_for_comparison(n, case_insensitive) for n in _list_names(directory)}
