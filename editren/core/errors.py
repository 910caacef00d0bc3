"""
errors.py - Exception Hierarchy

Every failure the tool can report derives from EditrenError. Errors raised
while listing, editing, interpreting or resolving happen before any
filesystem change; only the executor can leave a directory half-renamed, and
it records its failures in the result instead of raising.
"""

from pathlib import Path
from typing import List, Optional, Sequence


class EditrenError(Exception):
    """Base exception for editren"""
    pass


class IoError(EditrenError):
    """Listing, reading or writing failed"""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class NotADirectory(IoError):
    pass


class AccessDenied(IoError):
    pass


class EditorFailed(EditrenError):
    """The editor could not be launched or exited with a non-zero status"""

    def __init__(self, command: Sequence[str], returncode: Optional[int] = None, reason: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.reason = reason
        if returncode is not None:
            message = f"editor '{self.command[0]}' exited with status {returncode}"
        else:
            message = f"could not launch editor '{self.command[0] if self.command else ''}': {reason}"
        super().__init__(message)


class MalformedEdit(EditrenError):
    """The edited listing does not correspond to the original entries"""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class InvalidName(MalformedEdit):
    """An edited line is not usable as a single filename"""

    def __init__(self, original: str, new_name: str, reason: str, line: Optional[int] = None):
        self.original = original
        self.new_name = new_name
        self.reason = reason
        super().__init__(f"cannot rename '{original}' to '{new_name}': {reason}", line=line)


class UnsupportedDeletion(EditrenError):
    """Lines were removed or blanked without deletion enabled"""

    def __init__(self, names: List[str]):
        self.names = list(names)
        shown = ", ".join(f"'{n}'" for n in self.names[:5])
        if len(self.names) > 5:
            shown += f" and {len(self.names) - 5} more"
        super().__init__(
            f"lines were removed for {shown}; pass --delete to delete these entries"
        )


class NameCollision(EditrenError):
    """A rename target is already claimed by another entry"""

    def __init__(self, source: str, target: str, holder: str, holder_renaming: bool = False):
        self.source = source
        self.target = target
        self.holder = holder
        self.holder_renaming = holder_renaming
        if holder_renaming:
            message = f"'{source}' and '{holder}' are both renamed to '{target}'"
        else:
            message = f"'{source}' cannot be renamed to '{target}': the name is held by '{holder}'"
        super().__init__(message)


class CollisionReport(NameCollision):
    """Several collisions found in one plan; the first one is the headline"""

    def __init__(self, collisions: List[NameCollision]):
        first = collisions[0]
        super().__init__(first.source, first.target, first.holder, first.holder_renaming)
        self.collisions = list(collisions)

    def __str__(self) -> str:
        if len(self.collisions) == 1:
            return super().__str__()
        return "; ".join(str(c) for c in self.collisions)


class RaceCondition(EditrenError):
    """The filesystem no longer matches what the plan was built against"""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class TempNameError(EditrenError):
    """No free temporary name could be generated"""
    pass


class Aborted(EditrenError):
    """The user gave up at a prompt; nothing more will be applied"""

    def __init__(self, message: str = "Aborted"):
        super().__init__(message)
