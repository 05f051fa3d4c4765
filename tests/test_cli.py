from __future__ import annotations

import io
from pathlib import Path

import pytest

from task_manager import cli
from task_manager.cli import Session, run_command, run_shell, stream_reader
from task_manager.config import Settings
from task_manager.models import Priority, Status
from task_manager.store import TaskStore


def make_session(*lines: str, settings: Settings | None = None) -> tuple[Session, io.StringIO]:
    settings = settings or Settings()
    out = io.StringIO()
    session = Session(
        store=TaskStore(reject_duplicate_titles=settings.reject_duplicate_titles),
        settings=settings,
        read=stream_reader(io.StringIO("".join(f"{line}\n" for line in lines))),
        out=out,
    )
    return session, out


def test_add_with_arguments() -> None:
    session, out = make_session()

    assert run_command(session, 'add "Write report" -d "for Q3" -p high --tag work --tag q3') == 0

    task = session.store.get(1)
    assert task.title == "Write report"
    assert task.description == "for Q3"
    assert task.priority is Priority.HIGH
    assert task.tags == frozenset({"work", "q3"})
    assert "Task added successfully with ID: 1" in out.getvalue()


def test_add_prompts_when_title_missing() -> None:
    session, out = make_session("Buy groceries", "Milk and bread", "urgent")

    assert run_command(session, "add") == 0

    task = session.store.get(1)
    assert task.title == "Buy groceries"
    assert task.description == "Milk and bread"
    assert task.priority is Priority.MEDIUM
    assert "Invalid priority. Using 'Medium' as default." in out.getvalue()


def test_add_rejects_duplicates_and_bad_priority() -> None:
    session, out = make_session()
    run_command(session, "add Test")

    assert run_command(session, "add Test") == 1
    assert run_command(session, "add Other -p urgent") == 1
    assert len(session.store) == 1
    assert "already exists" in out.getvalue()
    assert "invalid priority" in out.getvalue()


def test_status_update_and_listing() -> None:
    session, out = make_session()
    run_command(session, "add Walk dog")
    run_command(session, "add Fix bug -p critical")

    assert run_command(session, "update 1 progress") == 0
    assert session.store.get(1).status is Status.IN_PROGRESS

    run_command(session, "status progress")
    assert "=== IN PROGRESS Tasks ===" in out.getvalue()
    assert "ID: 1 | Walk dog | Priority: Medium | Status: In Progress" in out.getvalue()

    out.truncate(0)
    out.seek(0)
    run_command(session, "list --sort priority")
    listing = out.getvalue()
    assert listing.index("ID: 2") < listing.index("ID: 1")


def test_filter_includes_tags() -> None:
    session, out = make_session()
    run_command(session, "add Walk dog")
    run_command(session, "add Groceries")
    run_command(session, "tag 2 weekly shopping")

    run_command(session, "filter shopping")

    assert "=== Filtered Tasks ===" in out.getvalue()
    assert "Tags: [weekly shopping]" in out.getvalue()
    assert "Walk dog" not in out.getvalue().split("=== Filtered Tasks ===")[1]


def test_errors_are_reported_not_raised() -> None:
    session, out = make_session()

    assert run_command(session, "show 7") == 1
    assert run_command(session, "delete abc") == 1
    assert run_command(session, "update 1") == 1
    assert run_command(session, "frobnicate") == 1
    assert run_command(session, 'add "unterminated') == 1
    assert run_command(session, "edit 1") == 1

    text = out.getvalue()
    assert "Error: task 7 not found" in text
    assert "invalid task id 'abc'" in text
    assert "Unknown command" in text


def test_stats_output() -> None:
    session, out = make_session()
    run_command(session, "add A --tag home")
    run_command(session, "add B")
    run_command(session, "update 1 completed")

    run_command(session, "stats")

    text = out.getvalue()
    assert "Total tasks: 2" in text
    assert "Completed: 1" in text
    assert "Pending: 1" in text
    assert "Completion rate: 50.0%" in text
    assert "Top tags: home (1)" in text


def test_shell_runs_until_quit() -> None:
    session, out = make_session("add First", "", "edit 1 --title Renamed", "quit", "add Never")

    assert run_shell(session, interactive=False) == 0

    assert [task.title for task in session.store.list()] == ["Renamed"]
    assert out.getvalue().rstrip().endswith("Goodbye!")


def test_main_runs_script(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    script = tmp_path / "commands.txt"
    script.write_text("add Write report\nupdate 1 progress\ndelete 1\nupdate 1 completed\nlist\n", encoding="utf-8")
    monkeypatch.setattr(cli, "get_settings", lambda: Settings())
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)

    assert cli.main(["--script", str(script)]) == 0

    captured = capsys.readouterr().out
    assert "Task added successfully with ID: 1" in captured
    assert "Task deleted successfully." in captured
    assert "Error: task 1 not found" in captured
    assert "No tasks found." in captured


def test_help_columns_are_aligned() -> None:
    session, out = make_session()

    assert run_command(session, "help") == 0

    rows = [line for line in out.getvalue().splitlines() if line.startswith("  ")]
    assert len(rows) == len(cli.HELP_LINES)
    assert len({row.index(" - ", len(usage) + 2) for row, (usage, _text) in zip(rows, cli.HELP_LINES)}) == 1
