"""
plan_rename.py - Rename Plan Resolution Module

Responsibilities:
- Reject renames that would overwrite a name nobody is vacating
- Order chains of renames so each target is free when it is used
- Break cycles (swaps, rotations, case-only renames) with a temporary name
- Output an ExecutionPlan whose every prefix is safe to apply
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging
import os
import uuid

from .errors import CollisionReport, NameCollision, TempNameError
from .models_fs import (
    CollisionPolicy, ExecutionPlan, OpKind, PlannedOp, RenameOptions,
    Snapshot, Step, StepAction, normalize_for_comparison
)
from .text_match import MAX_NAME_BYTES

log = logging.getLogger(__name__)

TEMP_PREFIX = ".__editren_tmp__"
TEMPFILE_MAX_RETRIES = 20


class ConflictResolver:
    """Tracks which names are occupied while a plan is being built"""

    def __init__(self, case_insensitive: bool = True):
        """
        Initialize conflict resolver

        Args:
            case_insensitive: Whether case-insensitive
        """
        self.case_insensitive = case_insensitive
        self.occupied: Set[str] = set()

    def _normalize(self, name: str) -> str:
        """Normalize filename for comparison"""
        return normalize_for_comparison(name, self.case_insensitive)

    def add_existing(self, names: Iterable[str]) -> None:
        """Add names present on disk"""
        self.occupied.update(self._normalize(n) for n in names)

    def release(self, names: Iterable[str]) -> None:
        """Names that will be vacated by a rename or a deletion"""
        self.occupied.difference_update(self._normalize(n) for n in names)

    def is_occupied(self, name: str) -> bool:
        """Check if name is already occupied"""
        return self._normalize(name) in self.occupied

    def mark_occupied(self, name: str) -> None:
        """Mark name as occupied"""
        self.occupied.add(self._normalize(name))


def generate_temp_name(original: str, taken: ConflictResolver) -> str:
    """
    Pick a temporary name that is neither on disk nor planned

    The original name is kept in the temporary one so a file stranded by
    an interrupted run can still be recognised.
    """
    for _ in range(TEMPFILE_MAX_RETRIES):
        unique_id = uuid.uuid4().hex[:8]
        candidate = f"{TEMP_PREFIX}{unique_id}__{original}"
        if len(os.fsencode(candidate)) > MAX_NAME_BYTES:
            candidate = f"{TEMP_PREFIX}{unique_id}"
        if not taken.is_occupied(candidate):
            taken.mark_occupied(candidate)
            return candidate
    raise TempNameError(
        f"Cannot find a free temporary name for {original} (tried {TEMPFILE_MAX_RETRIES} times)"
    )


def is_temp_name(name: str) -> bool:
    """Check if it's a temporary filename"""
    return name.startswith(TEMP_PREFIX)


class _Components:
    """Union-find over names shared by renames"""

    def __init__(self):
        self.parent: Dict[str, str] = {}

    def find(self, key: str) -> str:
        self.parent.setdefault(key, key)
        root = key
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[key] != root:
            self.parent[key], key = root, self.parent[key]
        return root

    def union(self, a: str, b: str) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            self.parent[rb] = ra


def _find_collisions(
    renames: List[PlannedOp],
    reserved: ConflictResolver,
    holders: Dict[str, str],
    normalize,
) -> List[Tuple[PlannedOp, NameCollision]]:
    """Renames whose target is reserved or claimed twice"""
    collisions = []
    claimed: Dict[str, PlannedOp] = {}

    for op in renames:
        key = normalize(op.target)
        if reserved.is_occupied(op.target):
            holder = holders.get(key, op.target)
            collisions.append((op, NameCollision(op.entry.name, op.target, holder)))
            continue
        if key in claimed:
            other = claimed[key]
            collisions.append(
                (op, NameCollision(op.entry.name, op.target, other.entry.name, holder_renaming=True))
            )
            continue
        claimed[key] = op

    return collisions


def _order_component(
    ops: List[PlannedOp],
    taken: ConflictResolver,
    normalize,
) -> List[Step]:
    """
    Steps for one component, which is either a chain or a cycle

    Every source and every target in a component is unique, so each name
    has at most one rename leaving it and one arriving.
    """
    by_source = {normalize(op.entry.name): op for op in ops}
    targets = {normalize(op.target) for op in ops}

    starts = [op for op in ops if normalize(op.entry.name) not in targets]

    if starts:
        # Chain: the last link moves onto a free name, so apply it first
        chain = []
        op = starts[0]
        while op is not None:
            chain.append(op)
            op = by_source.get(normalize(op.target))
        return [
            Step(StepAction.RENAME, op.entry.name, op.entry.index, target=op.target)
            for op in reversed(chain)
        ]

    # Cycle: park the lowest-index entry, walk backwards, then unpark it
    first = min(ops, key=lambda o: o.entry.index)
    cycle = [first]
    op = by_source[normalize(first.target)]
    while op is not first:
        cycle.append(op)
        op = by_source[normalize(op.target)]

    temp = generate_temp_name(first.entry.name, taken)
    steps = [Step(StepAction.RENAME, first.entry.name, first.entry.index, target=temp, note="cycle break")]
    for op in reversed(cycle[1:]):
        steps.append(Step(StepAction.RENAME, op.entry.name, op.entry.index, target=op.target))
    steps.append(Step(StepAction.RENAME, temp, first.entry.index, target=first.target, note="cycle break"))
    return steps


def resolve_plan(
    snapshot: Snapshot,
    ops: List[PlannedOp],
    existing_names: Optional[Iterable[str]] = None,
    options: Optional[RenameOptions] = None,
) -> ExecutionPlan:
    """
    Turn planned ops into an ordered, collision-safe execution plan

    Args:
        snapshot: Listing the ops were derived from
        ops: One PlannedOp per snapshot entry
        existing_names: Every name currently in the directory, including
            ones left out of the snapshot (defaults to the snapshot names)
        options: Rename options (case sensitivity, collision policy)

    Returns:
        Execution plan: deletions first, then each component of renames

    Raises:
        NameCollision: a target is held by an entry that stays put, or two
            entries want the same name (CollisionPolicy.ABORT only)
    """
    if options is None:
        options = RenameOptions()

    ci = options.case_insensitive_detect

    def normalize(name: str) -> str:
        return normalize_for_comparison(name, ci)

    seen_indices = set()
    for op in ops:
        if op.entry.index in seen_indices:
            raise ValueError(f"More than one op for entry {op.entry.name}")
        seen_indices.add(op.entry.index)

    ops = sorted(ops, key=lambda o: o.entry.index)
    renames = [op for op in ops if op.kind is OpKind.RENAME]
    deletes = [op for op in ops if op.kind is OpKind.DELETE]

    # Reserved: whatever is on disk and is not being vacated
    reserved = ConflictResolver(case_insensitive=ci)
    reserved.add_existing(snapshot.names)
    if existing_names is not None:
        reserved.add_existing(existing_names)
    reserved.release(op.entry.name for op in renames)
    reserved.release(op.entry.name for op in deletes)

    holders = {normalize(e.name): e.name for e in snapshot.entries}
    collisions = _find_collisions(renames, reserved, holders, normalize)

    if collisions and options.collision_policy is CollisionPolicy.ABORT:
        raise CollisionReport([c for _, c in collisions])

    plan = ExecutionPlan(directory=snapshot.directory)

    # Group renames into components of shared names
    components = _Components()
    for op in renames:
        components.union(normalize(op.entry.name), normalize(op.target))

    grouped: Dict[str, List[PlannedOp]] = defaultdict(list)
    for op in renames:
        grouped[components.find(normalize(op.entry.name))].append(op)

    reasons = {id(op): str(c) for op, c in collisions}
    tainted = {components.find(normalize(op.entry.name)) for op, _ in collisions}
    for root in tainted:
        for op in grouped.pop(root):
            reason = reasons.get(id(op), "depends on a rejected rename")
            plan.rejected.append((op, reason))
            log.debug("Rejected %s -> %s: %s", op.entry.name, op.target, reason)

    # Temporary names must avoid every name on disk and every planned target
    taken = ConflictResolver(case_insensitive=ci)
    taken.add_existing(snapshot.names)
    if existing_names is not None:
        taken.add_existing(existing_names)
    taken.add_existing(op.target for op in renames)

    for op in deletes:
        plan.steps.append(Step(StepAction.DELETE, op.entry.name, op.entry.index))
        plan.intents[op.entry.index] = None

    for group in sorted(grouped.values(), key=lambda g: min(o.entry.index for o in g)):
        plan.steps.extend(_order_component(group, taken, normalize))
        for op in group:
            plan.intents[op.entry.index] = op.target

    for step in plan.steps:
        log.debug("Planned: %s", step.describe())

    return plan


def validate_plan(
    plan: ExecutionPlan,
    existing_names: Iterable[str],
    case_insensitive: bool = False,
) -> List[str]:
    """
    Replay a plan over a set of names and report every unsafe step

    Args:
        plan: Execution plan
        existing_names: Names present before the plan runs
        case_insensitive: Whether case-insensitive

    Returns:
        Error list (empty when every prefix of the plan is safe)
    """
    errors = []
    state = ConflictResolver(case_insensitive=case_insensitive)
    state.add_existing(existing_names)

    for i, step in enumerate(plan.steps):
        if not state.is_occupied(step.source):
            errors.append(f"Step {i + 1} ({step.describe()}): source does not exist")
            continue
        if step.action is StepAction.DELETE:
            state.release([step.source])
            continue
        same = (normalize_for_comparison(step.source, case_insensitive)
                == normalize_for_comparison(step.target, case_insensitive))
        if state.is_occupied(step.target) and not same:
            errors.append(f"Step {i + 1} ({step.describe()}): target already exists")
            continue
        state.release([step.source])
        state.mark_occupied(step.target)

    return errors
