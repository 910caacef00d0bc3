"""
exec_rename.py - Plan Execution Module

Responsibilities:
- Apply plan steps strictly in order
- Detect a filesystem that changed under the plan and stop there
- Map the remaining work back to the original entries
- Optional JSON logs of the plan and its result
"""

from pathlib import Path
from typing import Callable, Dict, List, Optional
from datetime import datetime
import json
import logging
import os
import stat

from send2trash import send2trash

from .errors import IoError, RaceCondition
from .models_fs import (
    Entry, ExecutionPlan, ExecutionResult, RenameOptions, Snapshot, Step,
    StepAction, StepFailure, Unresolved, normalize_for_comparison
)

log = logging.getLogger(__name__)


def _check_step(
    directory: Path,
    step: Step,
    entry: Optional[Entry],
    case_insensitive: bool,
) -> None:
    """Verify the filesystem still matches what the step expects"""
    src = directory / step.source
    try:
        st = os.lstat(src)
    except FileNotFoundError:
        raise RaceCondition(f"{step.source} unexpectedly missing", src) from None

    if entry is not None and entry.inode is not None and (st.st_dev, st.st_ino) != entry.inode:
        raise RaceCondition(f"{step.source} was replaced since it was listed", src)

    if step.action is StepAction.RENAME:
        dst = directory / step.target
        same = (normalize_for_comparison(step.source, case_insensitive)
                == normalize_for_comparison(step.target, case_insensitive))
        if os.path.lexists(dst) and not same:
            raise RaceCondition(f"{step.target} unexpectedly exists", dst)


def _apply_step(directory: Path, step: Step, trash: bool) -> None:
    """Perform one step; OSError propagates"""
    src = directory / step.source
    if step.action is StepAction.RENAME:
        os.rename(src, directory / step.target)
    elif trash:
        send2trash(str(src))
    elif stat.S_ISDIR(os.lstat(src).st_mode):
        # Only empty directories
        os.rmdir(src)
    else:
        os.unlink(src)


def _collect_unresolved(
    plan: ExecutionPlan,
    entries: Dict[int, Entry],
    current: Dict[int, str],
) -> List[Unresolved]:
    """Entries whose intended outcome was not reached"""
    unresolved = []
    for index in sorted(plan.intents):
        intent = plan.intents[index]
        if index not in current:
            # Already deleted
            continue
        if intent is not None and current[index] == intent:
            continue
        unresolved.append(Unresolved(entry=entries[index], current_name=current[index], target=intent))
    return unresolved


def _write_report(save: Callable[..., Path], data, log_dir: Path) -> None:
    """Write a JSON report; one that cannot be written is only a warning"""
    try:
        save(data, log_dir)
    except OSError as e:
        log.warning("Could not write report to %s: %s", log_dir, e.strerror or e)


def execute_plan(
    plan: ExecutionPlan,
    snapshot: Snapshot,
    options: Optional[RenameOptions] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
) -> ExecutionResult:
    """
    Execute plan steps in order, stopping at the first failure

    Args:
        plan: Execution plan built from snapshot
        snapshot: Snapshot the plan was built from
        options: Rename options (trash, case sensitivity, log_dir)
        progress_callback: Progress callback (current, total, message)

    Returns:
        Execution result; failures are recorded, never raised. Ctrl-C
        stops before the next step and sets result.interrupted
    """
    if options is None:
        options = RenameOptions()

    result = ExecutionResult()
    total = len(plan.steps)

    if total == 0:
        return result

    entries = {e.index: e for e in snapshot.entries}
    current = {e.index: e.name for e in snapshot.entries}

    # Save execution plan log
    if options.log_dir:
        _write_report(save_plan_log, plan, options.log_dir)

    for i, step in enumerate(plan.steps):
        if progress_callback:
            progress_callback(i + 1, total, step.describe())

        try:
            _check_step(plan.directory, step, entries.get(step.entry_index), options.case_insensitive_detect)
            _apply_step(plan.directory, step, options.trash)
        except RaceCondition as e:
            result.failure = StepFailure(step_index=i, step=step, cause=str(e), error=e)
        except OSError as e:
            error = IoError(f"{step.describe()}: {e.strerror or e}", plan.directory / step.source)
            error.__cause__ = e
            result.failure = StepFailure(step_index=i, step=step, cause=e.strerror or str(e), error=error)
        except KeyboardInterrupt as e:
            # Steps already done stay done; report them like a failure
            result.interrupted = True
            result.failure = StepFailure(step_index=i, step=step, cause="interrupted", error=e)

        if result.failure:
            log.error("Step %d/%d failed: %s: %s", i + 1, total, step.describe(), result.failure.cause)
            break

        log.debug("Step %d/%d done: %s", i + 1, total, step.describe())
        result.completed.append(step)
        if step.action is StepAction.RENAME:
            current[step.entry_index] = step.target
        else:
            current.pop(step.entry_index, None)

    if result.failure:
        result.unresolved = _collect_unresolved(plan, entries, current)

    # Save execution result log
    if options.log_dir:
        _write_report(save_result_log, result, options.log_dir)

    return result


def save_plan_log(plan: ExecutionPlan, log_dir: Path) -> Path:
    """Save execution plan log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    log_file = log_dir / f"editren_plan_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "directory": str(plan.directory),
        "total_steps": len(plan.steps),
        "steps": [
            {
                "action": step.action.value,
                "source": step.source,
                "target": step.target,
                "note": step.note,
            }
            for step in plan.steps
        ],
        "rejected": [
            {"name": op.entry.name, "target": op.target, "reason": reason}
            for op, reason in plan.rejected
        ],
        "warnings": plan.warnings,
    }

    with open(log_file, 'w', encoding='utf-8', errors='surrogateescape') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file


def save_result_log(result: ExecutionResult, log_dir: Path) -> Path:
    """Save execution result log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    log_file = log_dir / f"editren_result_{timestamp}.json"

    failure = None
    if result.failure:
        failure = {
            "step_index": result.failure.step_index,
            "step": result.failure.step.describe(),
            "cause": result.failure.cause,
        }

    data = {
        "timestamp": timestamp,
        "completed_count": len(result.completed),
        "completed": [step.describe() for step in result.completed],
        "failure": failure,
        "unresolved": [
            {"name": u.entry.name, "current": u.current_name, "target": u.target}
            for u in result.unresolved
        ],
    }

    with open(log_file, 'w', encoding='utf-8', errors='surrogateescape') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file
