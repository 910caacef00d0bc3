import shlex
import sys
import textwrap

import pytest

from editren.core.editor import edit_lines, parse_listing, resolve_editor, serialize_listing
from editren.core.errors import EditorFailed


def make_editor(tmp_path, body):
    """A Python script standing in for the user's editor"""
    script = tmp_path / "fake_editor.py"
    script.write_text(textwrap.dedent(body))
    return [sys.executable, str(script)]


def test_resolve_editor_precedence():
    assert resolve_editor({"VISUAL": "nano", "EDITOR": "vim"}) == ["nano"]
    assert resolve_editor({"EDITOR": "vim"}) == ["vim"]
    assert resolve_editor({}) == ["vi"]


def test_resolve_editor_splits_arguments():
    assert resolve_editor({"EDITOR": "code --wait"}) == ["code", "--wait"]
    assert resolve_editor({"EDITOR": "'/opt/my editor/bin/ed' -q"}) == ["/opt/my editor/bin/ed", "-q"]


def test_serialize_listing_one_name_per_line():
    assert serialize_listing(["a.txt", "b c.txt"]) == "a.txt\nb c.txt\n"
    assert serialize_listing([]) == ""


def test_parse_listing_handles_line_endings():
    assert parse_listing("a\nb\n") == ["a", "b"]
    assert parse_listing("a\r\nb\r\n") == ["a", "b"]
    assert parse_listing("a\n\nc") == ["a", "", "c"]
    assert parse_listing("") == []


def test_parse_listing_keeps_form_feeds_in_names():
    assert parse_listing("odd\x0cname\n") == ["odd\x0cname"]


def test_edit_lines_runs_editor_on_listing(tmp_path):
    editor = make_editor(tmp_path, """
        import sys
        path = sys.argv[1]
        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
        with open(path, "w", encoding="utf-8") as f:
            f.write("\\n".join(reversed(lines)) + "\\n")
    """)

    assert edit_lines(["a.txt", "b.txt"], editor) == ["b.txt", "a.txt"]


def test_edit_lines_uses_environment(monkeypatch, tmp_path):
    editor = make_editor(tmp_path, """
        import sys
        with open(sys.argv[1], "w", encoding="utf-8") as f:
            f.write("renamed\\n")
    """)
    monkeypatch.delenv("VISUAL", raising=False)
    monkeypatch.setenv("EDITOR", " ".join(shlex.quote(part) for part in editor))

    assert edit_lines(["original"]) == ["renamed"]


def test_non_utf8_names_round_trip(tmp_path):
    editor = make_editor(tmp_path, """
        import sys
    """)
    name = b"caf\xe9".decode("utf-8", "surrogateescape")

    assert edit_lines([name], editor) == [name]


def test_editor_non_zero_exit(tmp_path):
    editor = make_editor(tmp_path, """
        import sys
        sys.exit(3)
    """)

    with pytest.raises(EditorFailed) as excinfo:
        edit_lines(["a"], editor)
    assert excinfo.value.returncode == 3
    assert "status 3" in str(excinfo.value)


def test_editor_missing(tmp_path):
    with pytest.raises(EditorFailed) as excinfo:
        edit_lines(["a"], [str(tmp_path / "no-such-editor")])
    assert excinfo.value.returncode is None
