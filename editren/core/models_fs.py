"""
models_fs.py - Core Data Structure Definitions

Contains:
- Entry / Snapshot: the directory listing the user edits
- EditedLine / PlannedOp: what the user asked for, per entry
- Step / ExecutionPlan: collision-safe filesystem actions
- StepFailure / ExecutionResult: what actually happened
- RenameOptions: options configuration
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, List, Tuple
from enum import Enum
import platform


class OpKind(Enum):
    """Classified intent for one entry"""
    NOOP = "noop"
    RENAME = "rename"
    DELETE = "delete"


class StepAction(Enum):
    """Concrete filesystem action"""
    RENAME = "rename"
    DELETE = "delete"


class CollisionPolicy(Enum):
    """What a name collision rejects"""
    ABORT = "abort"                    # Reject the whole batch
    SKIP_COMPONENT = "skip_component"  # Reject only the renames sharing names with the collision


@dataclass(frozen=True)
class Entry:
    """One original name, identified by its position in the snapshot"""
    index: int
    name: str
    is_dir: bool = False
    inode: Optional[Tuple[int, int]] = None   # (st_dev, st_ino) at capture time


@dataclass(frozen=True)
class Snapshot:
    """Ordered directory listing captured once per pass"""
    directory: Path
    entries: Tuple[Entry, ...] = ()

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class EditedLine:
    """One line of the edited listing; text is None when the line was omitted"""
    index: int
    text: Optional[str]


@dataclass(frozen=True)
class PlannedOp:
    """Classified action for a single entry"""
    entry: Entry
    kind: OpKind
    target: Optional[str] = None

    @property
    def is_noop(self) -> bool:
        return self.kind is OpKind.NOOP


@dataclass(frozen=True)
class Step:
    """Single filesystem action; names are relative to the plan directory"""
    action: StepAction
    source: str
    entry_index: int
    target: Optional[str] = None
    note: str = ""                  # e.g. "cycle break"

    def describe(self) -> str:
        if self.action is StepAction.DELETE:
            return f"delete {self.source}"
        return f"rename {self.source} -> {self.target}"


@dataclass
class ExecutionPlan:
    """Ordered, collision-safe sequence of steps"""
    directory: Path
    steps: List[Step] = field(default_factory=list)
    # Ops dropped under CollisionPolicy.SKIP_COMPONENT, with the reason
    rejected: List[Tuple[PlannedOp, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    # Intended outcome per entry index: final name, or None for a deletion
    intents: Dict[int, Optional[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.steps


@dataclass(frozen=True)
class StepFailure:
    """Why execution stopped"""
    step_index: int
    step: Step
    cause: str
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class Unresolved:
    """An entry whose intent was not reached when execution stopped"""
    entry: Entry
    current_name: str               # May be a temporary name mid-cycle
    target: Optional[str]           # None: still to be deleted


@dataclass
class ExecutionResult:
    """Plan execution result"""
    completed: List[Step] = field(default_factory=list)
    failure: Optional[StepFailure] = None
    unresolved: List[Unresolved] = field(default_factory=list)
    interrupted: bool = False       # Stopped by Ctrl-C rather than an error

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def partial(self) -> bool:
        """Whether some filesystem change was made before a failure"""
        return self.failure is not None and bool(self.completed)

    def summary(self) -> str:
        """Generate summary"""
        lines = [
            f"Execution Result:",
            f"  - Completed steps: {len(self.completed)}",
        ]
        if self.failure:
            f = self.failure
            stopped = "Interrupted" if self.interrupted else "Failed"
            lines.append(f"  - {stopped} at step {f.step_index + 1}: {f.step.describe()}: {f.cause}")
            lines.append(f"  - Unresolved entries: {len(self.unresolved)}")
            for u in self.unresolved[:10]:  # Show at most 10
                wanted = u.target if u.target is not None else "(delete)"
                lines.append(f"      {u.entry.name} (now {u.current_name}) -> {wanted}")
            if len(self.unresolved) > 10:
                lines.append(f"      ... and {len(self.unresolved) - 10} more")
        return "\n".join(lines)


@dataclass
class RenameOptions:
    """Options configuration"""
    # Edit interpretation
    delete_enabled: bool = False    # Omitted or blank lines delete their entry
    keep_undeletable: bool = False  # Without delete_enabled, leave such entries alone instead of aborting

    # Listing
    include_hidden: bool = False

    # Conflict handling
    collision_policy: CollisionPolicy = CollisionPolicy.ABORT

    # Case-sensitive detection (Windows/macOS default to insensitive)
    case_insensitive_detect: bool = field(default_factory=lambda: is_case_insensitive_fs())

    # Execution options
    trash: bool = False             # Send deletions to the trash
    dry_run: bool = False           # Show the plan and ask before executing
    retry: bool = False             # Re-open the editor after an error
    log_dir: Optional[Path] = None  # Where to write JSON run reports


def is_case_insensitive_fs() -> bool:
    """Detect if current filesystem is case-insensitive"""
    return platform.system() in ("Windows", "Darwin")


def normalize_for_comparison(name: str, case_insensitive: bool) -> str:
    """Normalize filename for comparison"""
    if case_insensitive:
        return name.casefold()
    return name
