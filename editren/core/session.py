"""
session.py - Edit / Resolve / Execute State Machine

Nothing touches the filesystem before the edit is fully interpreted and
resolved. With retry enabled a failed pass goes back to editing: after an
execution failure the next listing holds only the unresolved entries,
pre-filled with the names they were meant to get.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union
import logging
import os

from .diff_edits import interpret_edits
from .editor import edit_lines
from .errors import Aborted, EditrenError
from .exec_rename import execute_plan
from .models_fs import (
    Entry, ExecutionPlan, ExecutionResult, RenameOptions, Snapshot, Step, Unresolved
)
from .plan_rename import resolve_plan
from .scan_files import get_existing_names, take_snapshot

log = logging.getLogger(__name__)


class State(Enum):
    EDITING = "editing"
    RESOLVING = "resolving"
    EXECUTING = "executing"
    DONE = "done"
    FAILED = "failed"


Failure = Union[EditrenError, ExecutionResult]


@dataclass
class SessionOutcome:
    """How a session ended"""
    state: State
    error: Optional[EditrenError] = None        # Set when a pass failed before executing
    result: Optional[ExecutionResult] = None    # Last execution result
    plan: Optional[ExecutionPlan] = None        # Last plan built
    applied: List[Step] = field(default_factory=list)   # Steps completed over all passes
    snapshot: Optional[Snapshot] = None
    retry_declined: bool = False    # The failure was shown at the retry prompt and the user gave up

    @property
    def ok(self) -> bool:
        return self.state is State.DONE

    @property
    def changed(self) -> bool:
        return bool(self.applied)


class Session:
    """Runs one invocation: snapshot, then edit/resolve/execute passes"""

    def __init__(
        self,
        directory: Path,
        options: Optional[RenameOptions] = None,
        edit: Optional[Callable[[List[str]], List[str]]] = None,
        confirm: Optional[Callable[[ExecutionPlan], bool]] = None,
        wait_for_retry: Optional[Callable[[Failure], bool]] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ):
        """
        Args:
            directory: Directory whose entries are edited
            options: Rename options
            edit: Takes the listing lines and returns the edited lines
                (defaults to running the user's editor)
            confirm: Asked with the plan when options.dry_run is set;
                False re-opens the editor, raising Aborted ends the session
            wait_for_retry: Called on a failure when options.retry is set;
                False ends the session
            progress_callback: Forwarded to the executor
        """
        self.directory = Path(directory)
        self.options = options or RenameOptions()
        self.edit = edit or edit_lines
        self.confirm = confirm or (lambda plan: True)
        self.wait_for_retry = wait_for_retry or (lambda failure: True)
        self.progress_callback = progress_callback

        self.state = State.EDITING
        self.transitions: List[State] = []
        self.outcome = SessionOutcome(state=State.EDITING)

        self._snapshot: Optional[Snapshot] = None
        self._buffer: List[str] = []
        self._edited: List[str] = []
        self._plan: Optional[ExecutionPlan] = None
        self._failure: Optional[Failure] = None

    def _enter(self, state: State) -> None:
        log.debug("Session: %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    def _fail(self, failure: Failure) -> None:
        self._failure = failure
        if isinstance(failure, EditrenError):
            log.debug("Pass failed before execution: %s", failure)
            self.outcome.error = failure
        else:
            self.outcome.error = None
        self._enter(State.FAILED)

    def run(self) -> SessionOutcome:
        """
        Drive the session to DONE or FAILED

        Raises:
            IoError: the directory cannot be listed (no retry is possible
                without a snapshot)
            KeyboardInterrupt: Ctrl-C during execution, after the steps
                done so far were recorded in outcome.applied and outcome.result
        """
        self._snapshot = take_snapshot(self.directory, include_hidden=self.options.include_hidden)
        self.outcome.snapshot = self._snapshot
        self._buffer = self._snapshot.names

        if not self._snapshot.entries:
            log.info("Nothing to edit in %s", self._snapshot.directory)
            self._enter(State.DONE)

        while True:
            if self.state is State.EDITING:
                self._step_editing()
            elif self.state is State.RESOLVING:
                self._step_resolving()
            elif self.state is State.EXECUTING:
                self._step_executing()
            elif self.state is State.FAILED:
                if (not self.options.retry or isinstance(self._failure, Aborted)
                        or not self._snapshot.entries):
                    self.outcome.state = State.FAILED
                    return self.outcome
                if not self.wait_for_retry(self._failure):
                    self.outcome.retry_declined = True
                    self.outcome.state = State.FAILED
                    return self.outcome
                self._enter(State.EDITING)
            else:
                self.outcome.state = State.DONE
                return self.outcome

    def _step_editing(self) -> None:
        try:
            self._edited = list(self.edit(list(self._buffer)))
        except EditrenError as e:
            self._fail(e)
            return
        self._enter(State.RESOLVING)

    def _step_resolving(self) -> None:
        snapshot = self._snapshot
        # A rejected edit is offered again as the user left it
        self._buffer = self._edited
        try:
            existing = get_existing_names(snapshot.directory, self.options.case_insensitive_detect)
            diff = interpret_edits(snapshot, self._edited, self.options)
            plan = resolve_plan(snapshot, diff.ops, existing, self.options)
        except EditrenError as e:
            self._fail(e)
            return

        plan.warnings.extend(diff.warnings)
        for warning in plan.warnings:
            log.warning(warning)
        self._plan = plan
        self.outcome.plan = plan

        if plan.is_empty:
            self.outcome.result = ExecutionResult()
            self._enter(State.DONE)
            return

        if self.options.dry_run:
            try:
                confirmed = self.confirm(plan)
            except Aborted as e:
                self._fail(e)
                return
            if not confirmed:
                self._enter(State.EDITING)
                return

        self._enter(State.EXECUTING)

    def _step_executing(self) -> None:
        result = execute_plan(self._plan, self._snapshot, self.options, self.progress_callback)
        self.outcome.result = result
        self.outcome.applied.extend(result.completed)

        if result.ok:
            self._enter(State.DONE)
            return

        if result.interrupted:
            self.outcome.error = None
            self._enter(State.FAILED)
            self.outcome.state = State.FAILED
            raise KeyboardInterrupt

        # Scope the next pass to what is left
        entries = []
        buffer = []
        for u in result.unresolved:
            if not self._still_listed(u):
                continue
            entries.append(Entry(index=len(entries), name=u.current_name,
                                 is_dir=u.entry.is_dir, inode=u.entry.inode))
            buffer.append(u.target if u.target is not None else "")
        self._snapshot = Snapshot(directory=self._snapshot.directory, entries=tuple(entries))
        self._buffer = buffer
        self._fail(result)

    def _still_listed(self, unresolved: Unresolved) -> bool:
        """Whether an unresolved entry is still the file that was listed"""
        path = self._snapshot.directory / unresolved.current_name
        try:
            st = os.lstat(path)
        except FileNotFoundError:
            log.warning("%s is gone; leaving it out of the retry", unresolved.current_name)
            return False
        inode = unresolved.entry.inode
        if inode is not None and (st.st_dev, st.st_ino) != inode:
            log.warning("%s was replaced since it was listed; leaving it out of the retry",
                        unresolved.current_name)
            return False
        return True
