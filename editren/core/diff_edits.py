"""
diff_edits.py - Edited Listing Interpretation

Aligns the edited lines with the snapshot by position and classifies each
entry as unchanged, renamed or deleted. No filesystem access happens here;
collisions between names are left to plan_rename.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .errors import InvalidName, MalformedEdit, UnsupportedDeletion
from .models_fs import EditedLine, OpKind, PlannedOp, RenameOptions, Snapshot
from .text_match import is_blank, is_valid_filename


@dataclass
class EditDiff:
    """Interpreted edit: one op per snapshot entry"""
    ops: List[PlannedOp] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def changes(self) -> List[PlannedOp]:
        return [op for op in self.ops if not op.is_noop]


def align_lines(snapshot: Snapshot, lines: Sequence[Union[str, EditedLine]]) -> List[EditedLine]:
    """
    Pair each snapshot entry with its edited line

    Missing trailing lines become EditedLine(text=None). Blank lines past
    the last entry are dropped (editors like to leave one behind); any other
    extra line is an error since entries cannot be created.
    """
    texts = [l.text if isinstance(l, EditedLine) else l for l in lines]

    count = len(snapshot)
    if len(texts) > count:
        extra = texts[count:]
        for offset, text in enumerate(extra):
            if not is_blank(text):
                raise MalformedEdit(
                    f"the listing has {count} entries but line {count + offset + 1} adds "
                    f"'{text}'; new entries cannot be created",
                    line=count + offset + 1,
                )
        texts = texts[:count]

    texts += [None] * (count - len(texts))
    return [EditedLine(index=i, text=t) for i, t in enumerate(texts)]


def interpret_edits(
    snapshot: Snapshot,
    lines: Sequence[Union[str, EditedLine]],
    options: Optional[RenameOptions] = None,
) -> EditDiff:
    """
    Classify every entry against its edited line

    Args:
        snapshot: Listing the user edited
        lines: Edited lines, positionally matching snapshot entries
        options: Rename options (delete_enabled, keep_undeletable)

    Returns:
        EditDiff with exactly one PlannedOp per entry

    Raises:
        MalformedEdit: more lines than entries, or an unusable name
        UnsupportedDeletion: lines removed without deletion enabled
    """
    if options is None:
        options = RenameOptions()

    diff = EditDiff()
    undeletable: List[str] = []

    for entry, line in zip(snapshot.entries, align_lines(snapshot, lines)):
        text = line.text

        if is_blank(text):
            if options.delete_enabled:
                diff.ops.append(PlannedOp(entry, OpKind.DELETE))
            elif options.keep_undeletable:
                diff.ops.append(PlannedOp(entry, OpKind.NOOP))
                diff.warnings.append(f"Kept {entry.name}: deletion is not enabled")
            else:
                undeletable.append(entry.name)
            continue

        if text == entry.name:
            diff.ops.append(PlannedOp(entry, OpKind.NOOP))
            continue

        valid, error = is_valid_filename(text)
        if not valid:
            raise InvalidName(entry.name, text, error, line=entry.index + 1)

        diff.ops.append(PlannedOp(entry, OpKind.RENAME, target=text))

    if undeletable:
        raise UnsupportedDeletion(undeletable)

    return diff
