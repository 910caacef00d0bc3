from pathlib import Path

import pytest

from editren.core import Entry, RenameOptions, Snapshot


def make_snapshot(names, directory=Path("/nonexistent")):
    return Snapshot(
        directory=directory,
        entries=tuple(Entry(index=i, name=n) for i, n in enumerate(names)),
    )


def write_files(directory: Path, names):
    """Each file holds its own original name as content"""
    for name in names:
        (directory / name).write_text(f"content of {name}")


def read_dir(directory: Path):
    return {p.name: p.read_text() for p in directory.iterdir() if p.is_file()}


@pytest.fixture
def options():
    return RenameOptions(case_insensitive_detect=False)
