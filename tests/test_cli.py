import errno
import os
import shlex
import sys
import textwrap

import pytest

from conftest import read_dir, write_files
from editren.cli import cli_entry
from editren.cli.cli_entry import EXIT_NO_CHANGES, EXIT_OK, EXIT_PARTIAL, create_parser, main
from editren.core import exec_rename
from editren.core import session as session_module


@pytest.fixture
def fake_editor(monkeypatch):
    """Replace the editor with a list of canned edits"""
    edits = []

    def edit(lines):
        edit = edits.pop(0)
        return edit(lines) if callable(edit) else edit

    monkeypatch.setattr(session_module, "edit_lines", edit)
    return edits


def test_help_exits_zero(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--help"])

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "usage: editren" in out
    assert "--retry" in out and "--delete" in out


def test_parser_defaults():
    args = create_parser().parse_args([])

    assert args.directory is None
    assert not (args.delete or args.retry or args.dry_run or args.trash)


def test_options_from_args(tmp_path):
    args = create_parser().parse_args(["-d", "-r", "-n", "-t", "-a", "--log-dir", str(tmp_path), "x"])

    options = cli_entry.options_from_args(args)

    assert options.delete_enabled and options.retry and options.dry_run
    assert options.trash and options.include_hidden
    assert options.log_dir == tmp_path


def test_real_editor_from_environment(monkeypatch, tmp_path, capsys):
    target = tmp_path / "target"
    target.mkdir()
    write_files(target, ["a.txt", "b.txt"])
    script = tmp_path / "editor.py"
    script.write_text(textwrap.dedent("""
        import sys
        path = sys.argv[1]
        with open(path, encoding="utf-8") as f:
            text = f.read()
        with open(path, "w", encoding="utf-8") as f:
            f.write(text.replace("a.txt", "c.txt"))
    """))
    monkeypatch.delenv("VISUAL", raising=False)
    monkeypatch.setenv("EDITOR", f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}")

    assert main([str(target)]) == EXIT_OK
    assert read_dir(target) == {"c.txt": "content of a.txt", "b.txt": "content of b.txt"}
    assert "Done: 1 operations applied." in capsys.readouterr().out


def test_defaults_to_current_directory(monkeypatch, tmp_path, fake_editor):
    write_files(tmp_path, ["a"])
    monkeypatch.chdir(tmp_path)
    fake_editor.append(["b"])

    assert main([]) == EXIT_OK
    assert list(read_dir(tmp_path)) == ["b"]


def test_no_changes(tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["a"])
    fake_editor.append(lambda lines: lines)

    assert main([str(tmp_path)]) == EXIT_OK
    assert "No changes." in capsys.readouterr().out


def test_missing_directory_exit_code(tmp_path, capsys):
    assert main([str(tmp_path / "missing")]) == EXIT_NO_CHANGES
    assert "Error:" in capsys.readouterr().err


def test_deletion_requires_flag(tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["draft.txt", "note.txt"])
    fake_editor.append(["", "note.txt"])

    assert main([str(tmp_path)]) == EXIT_NO_CHANGES
    err = capsys.readouterr().err
    assert "--delete" in err
    assert "Nothing was changed." in err
    assert sorted(read_dir(tmp_path)) == ["draft.txt", "note.txt"]


def test_deletion_with_flag(tmp_path, fake_editor):
    write_files(tmp_path, ["draft.txt", "note.txt"])
    fake_editor.append(["", "note.txt"])

    assert main(["--delete", str(tmp_path)]) == EXIT_OK
    assert list(read_dir(tmp_path)) == ["note.txt"]


def test_collision_exit_code(tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["a", "b"])
    fake_editor.append(["b", "b"])

    assert main([str(tmp_path)]) == EXIT_NO_CHANGES
    assert "held by 'b'" in capsys.readouterr().err


def test_partial_changes_exit_code(monkeypatch, tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["a", "b"])
    fake_editor.append(["b", "a"])
    real_rename = os.rename
    calls = []

    def flaky_rename(src, dst):
        calls.append(dst)
        if len(calls) == 2:
            raise PermissionError(errno.EACCES, "Permission denied")
        return real_rename(src, dst)

    monkeypatch.setattr(exec_rename.os, "rename", flaky_rename)

    assert main([str(tmp_path)]) == EXIT_PARTIAL
    err = capsys.readouterr().err
    assert "Failed at step 2" in err
    assert "Some changes were applied" in err


def test_dry_run_asks_before_applying(monkeypatch, tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["a", "b"])
    fake_editor.extend([["b", "a"], lambda lines: lines])
    answers = iter(["n", "y"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    assert main(["-n", str(tmp_path)]) == EXIT_OK
    out = capsys.readouterr().out
    assert out.count("Will perform 3 operations:") == 2
    assert "(cycle break)" in out
    assert read_dir(tmp_path) == {"a": "content of b", "b": "content of a"}


def test_retry_prompts_and_reopens(monkeypatch, tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["a", "b"])
    fake_editor.extend([["b", "b"], ["c", "b"]])
    prompts = []
    monkeypatch.setattr("builtins.input", lambda prompt="": prompts.append(prompt) or "")

    assert main(["--retry", str(tmp_path)]) == EXIT_OK
    assert len(prompts) == 1
    assert "held by 'b'" in capsys.readouterr().err
    assert sorted(read_dir(tmp_path)) == ["b", "c"]


def test_retry_given_up_with_eof(monkeypatch, tmp_path, fake_editor):
    write_files(tmp_path, ["a", "b"])
    fake_editor.append(["b", "b"])

    def eof(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)

    assert main(["-r", str(tmp_path)]) == EXIT_NO_CHANGES


def test_interrupt_in_editor(tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["a"])

    def interrupted(lines):
        raise KeyboardInterrupt

    fake_editor.append(interrupted)

    assert main([str(tmp_path)]) == cli_entry.EXIT_INTERRUPTED
    assert list(read_dir(tmp_path)) == ["a"]


def test_log_dir_that_is_a_file(tmp_path, fake_editor):
    target = tmp_path / "dir"
    target.mkdir()
    write_files(target, ["a"])
    not_a_dir = tmp_path / "logs"
    not_a_dir.write_text("")
    fake_editor.append(["b"])

    assert main([str(target), "--log-dir", str(not_a_dir)]) == EXIT_OK
    assert list(read_dir(target)) == ["b"]


def test_interrupt_during_execution_is_partial(monkeypatch, tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["a", "b"])
    fake_editor.append(["a2", "b2"])
    real_rename = os.rename
    calls = []

    def interrupted_rename(src, dst):
        calls.append(dst)
        if len(calls) == 2:
            raise KeyboardInterrupt
        return real_rename(src, dst)

    monkeypatch.setattr(exec_rename.os, "rename", interrupted_rename)

    assert main([str(tmp_path)]) == EXIT_PARTIAL
    err = capsys.readouterr().err
    assert "Interrupted at step 2: rename b -> b2" in err
    assert "b (now b) -> b2" in err


def test_dry_run_without_stdin_aborts(monkeypatch, tmp_path, fake_editor, capsys):
    write_files(tmp_path, ["a", "b"])
    fake_editor.append(["b", "a"])

    def eof(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", eof)

    assert main(["-n", "-r", str(tmp_path)]) == EXIT_NO_CHANGES
    assert "No answer to the confirmation prompt" in capsys.readouterr().err
    assert read_dir(tmp_path) == {"a": "content of a", "b": "content of b"}
