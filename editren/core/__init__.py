"""
core - editren Core Module

Snapshot, edit interpretation, rename plan resolution and execution
"""

from .models_fs import (
    Entry,
    Snapshot,
    EditedLine,
    OpKind,
    PlannedOp,
    Step,
    StepAction,
    ExecutionPlan,
    StepFailure,
    Unresolved,
    ExecutionResult,
    RenameOptions,
    CollisionPolicy,
)

from .errors import (
    EditrenError,
    IoError,
    NotADirectory,
    AccessDenied,
    EditorFailed,
    MalformedEdit,
    InvalidName,
    UnsupportedDeletion,
    NameCollision,
    CollisionReport,
    RaceCondition,
    TempNameError,
    Aborted,
)

from .scan_files import (
    take_snapshot,
    get_existing_names,
)

from .text_match import (
    is_valid_filename,
)

from .editor import (
    resolve_editor,
    serialize_listing,
    parse_listing,
    edit_lines,
)

from .diff_edits import (
    EditDiff,
    interpret_edits,
)

from .plan_rename import (
    resolve_plan,
    validate_plan,
    generate_temp_name,
    is_temp_name,
    ConflictResolver,
)

from .exec_rename import (
    execute_plan,
    save_plan_log,
    save_result_log,
)

from .session import (
    Session,
    SessionOutcome,
    State,
)

__all__ = [
    # Data models
    "Entry",
    "Snapshot",
    "EditedLine",
    "OpKind",
    "PlannedOp",
    "Step",
    "StepAction",
    "ExecutionPlan",
    "StepFailure",
    "Unresolved",
    "ExecutionResult",
    "RenameOptions",
    "CollisionPolicy",

    # Errors
    "EditrenError",
    "IoError",
    "NotADirectory",
    "AccessDenied",
    "EditorFailed",
    "MalformedEdit",
    "InvalidName",
    "UnsupportedDeletion",
    "NameCollision",
    "CollisionReport",
    "RaceCondition",
    "TempNameError",
    "Aborted",

    # Snapshot
    "take_snapshot",
    "get_existing_names",

    # Text rules
    "is_valid_filename",

    # Edit session
    "resolve_editor",
    "serialize_listing",
    "parse_listing",
    "edit_lines",

    # Interpretation
    "EditDiff",
    "interpret_edits",

    # Planning
    "resolve_plan",
    "validate_plan",
    "generate_temp_name",
    "is_temp_name",
    "ConflictResolver",

    # Execution
    "execute_plan",
    "save_plan_log",
    "save_result_log",

    # Session
    "Session",
    "SessionOutcome",
    "State",
]
