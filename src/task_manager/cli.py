from __future__ import annotations

import argparse
import logging
import shlex
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, NoReturn, Sequence, TextIO

from task_manager.config import Settings, get_settings
from task_manager.errors import CommandError, TaskError, ValidationError
from task_manager.logging_setup import setup_logging
from task_manager.models import Priority, Status, Task, normalize_tag
from task_manager.query import apply_filters, filter_by_keyword, sort_by_priority
from task_manager.stats import summary, tag_counts
from task_manager.store import TaskStore

logger = logging.getLogger(__name__)

Reader = Callable[[str], str]

QUIT_COMMANDS = {"quit", "exit"}

HELP_LINES = (
    ("add [title] [-d DESC] [-p LEVEL] [--tag TAG]", "Add a new task (prompts when no title)"),
    ("list [--keyword K] [--priority P] [--status S] [--tag T] [--sort priority]", "List tasks"),
    ("show <id>", "Show details of a specific task"),
    ("edit <id> [--title T] [--description D] [--priority P]", "Change task fields"),
    ("update <id> <status>", "Update task status (pending/progress/completed)"),
    ("tag <id> <tag>", "Add a tag to a task"),
    ("untag <id> <tag>", "Remove a tag from a task"),
    ("delete <id>", "Delete a task"),
    ("filter <keyword>", "Filter tasks by keyword (title, description, tags)"),
    ("priority <level>", "Filter tasks by priority (low/medium/high/critical)"),
    ("status <status>", "Filter tasks by status (pending/progress/completed)"),
    ("stats", "Show task statistics"),
    ("help", "Show this help message"),
    ("quit/exit", "Exit the application"),
)


class CommandParser(argparse.ArgumentParser):
    """Argument parser that raises instead of exiting the process."""

    commands: frozenset[str] = frozenset()

    def error(self, message: str) -> NoReturn:
        raise CommandError(message)


def stream_reader(stream: TextIO) -> Reader:
    """Line reader for piped input and scripts: no prompts, EOFError at the end."""

    def read(_prompt: str) -> str:
        line = stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\r\n")

    return read


def format_task(task: Task) -> str:
    tags = ", ".join(task.sorted_tags())
    return (
        f"ID: {task.id} | {task.title} | Priority: {task.priority.label} | Status: {task.status.label}\n"
        f"Description: {task.description}\n"
        f"Tags: [{tags}]"
    )


def print_tasks(session: Session, tasks: Sequence[Task], header: str, empty: str) -> None:
    if not tasks:
        session.say(empty)
        return
    session.say(f"=== {header} ===")
    for task in tasks:
        session.say(format_task(task))
        session.say("---")


def _task_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid task id {raw!r}, expected a number") from None


def _optional(parse: Callable[[str], object], raw: str | None):
    return None if raw is None else parse(raw)


def cmd_help(session: Session, _args: argparse.Namespace) -> int:
    session.say("Available commands:")
    width = max(len(usage) for usage, _text in HELP_LINES)
    for usage, text in HELP_LINES:
        session.say(f"  {usage:<{width}} - {text}")
    return 0


def cmd_add(session: Session, args: argparse.Namespace) -> int:
    default = session.settings.default_priority
    if args.title:
        title = " ".join(args.title)
        description = args.description
        priority = Priority.parse(args.priority) if args.priority else default
    else:
        session.say("=== Add New Task ===")
        title = session.ask("Enter task title: ")
        description = args.description or session.ask("Enter task description: ")
        raw = args.priority or session.ask("Priority (low/medium/high/critical): ")
        try:
            priority = Priority.parse(raw)
        except ValidationError:
            session.say(f"Invalid priority. Using '{default.label}' as default.")
            priority = default

    tags = [normalize_tag(tag) for tag in args.tag]
    task_id = session.store.add(title, description, priority)
    for tag in tags:
        session.store.add_tag(task_id, tag)
    logger.debug("added task %s priority=%s tags=%s", task_id, priority.name, tags)
    session.say(f"Task added successfully with ID: {task_id}")
    return 0


def cmd_list(session: Session, args: argparse.Namespace) -> int:
    tasks = apply_filters(
        session.store.list(),
        keyword=args.keyword,
        priority=_optional(Priority.parse, args.priority),
        status=_optional(Status.parse, args.status),
        tag=args.tag,
    )
    if args.sort == "priority":
        tasks = sort_by_priority(tasks)
    print_tasks(session, tasks, "All Tasks", "No tasks found.")
    return 0


def cmd_show(session: Session, args: argparse.Namespace) -> int:
    task = session.store.get(args.task_id)
    session.say("=== Task Details ===")
    session.say(format_task(task))
    return 0


def cmd_edit(session: Session, args: argparse.Namespace) -> int:
    if args.title is None and args.description is None and args.priority is None:
        raise CommandError("nothing to change, use --title, --description or --priority")
    session.store.update(
        args.task_id,
        title=args.title,
        description=args.description,
        priority=_optional(Priority.parse, args.priority),
    )
    session.say("Task updated successfully.")
    return 0


def cmd_update(session: Session, args: argparse.Namespace) -> int:
    status = Status.parse(args.status)
    session.store.set_status(args.task_id, status)
    logger.debug("task %s -> %s", args.task_id, status.value)
    session.say("Task status updated successfully.")
    return 0


def cmd_tag(session: Session, args: argparse.Namespace) -> int:
    session.store.add_tag(args.task_id, " ".join(args.tag))
    session.say("Tag added successfully.")
    return 0


def cmd_untag(session: Session, args: argparse.Namespace) -> int:
    session.store.remove_tag(args.task_id, " ".join(args.tag))
    session.say("Tag removed successfully.")
    return 0


def cmd_delete(session: Session, args: argparse.Namespace) -> int:
    session.store.delete(args.task_id)
    session.say("Task deleted successfully.")
    return 0


def cmd_filter(session: Session, args: argparse.Namespace) -> int:
    keyword = " ".join(args.keyword)
    tasks = filter_by_keyword(session.store.list(), keyword, include_tags=True)
    print_tasks(session, tasks, "Filtered Tasks", f"No tasks found matching '{keyword}'.")
    return 0


def cmd_priority(session: Session, args: argparse.Namespace) -> int:
    priority = Priority.parse(args.level)
    tasks = apply_filters(session.store.list(), priority=priority)
    print_tasks(
        session,
        tasks,
        f"{priority.label.upper()} Priority Tasks",
        f"No tasks found with {priority.label} priority.",
    )
    return 0


def cmd_status(session: Session, args: argparse.Namespace) -> int:
    status = Status.parse(args.status)
    tasks = apply_filters(session.store.list(), status=status)
    print_tasks(
        session,
        tasks,
        f"{status.label.upper()} Tasks",
        f"No tasks found with {status.label} status.",
    )
    return 0


def cmd_stats(session: Session, _args: argparse.Namespace) -> int:
    tasks = session.store.list()
    report = summary(tasks)
    session.say("=== Task Statistics ===")
    session.say(f"Total tasks: {report['total']}")
    for status, n in report["by_status"].items():
        session.say(f"{status.label}: {n}")
    by_priority = ", ".join(f"{level.label}={n}" for level, n in report["by_priority"].items())
    session.say(f"By priority: {by_priority}")
    if report["total"]:
        session.say(f"Completion rate: {report['completion_rate']:.1f}%")
    top = tag_counts(tasks, limit=5)
    if top:
        session.say("Top tags: " + ", ".join(f"{tag} ({n})" for tag, n in top))
    return 0


def build_command_parser() -> CommandParser:
    parser = CommandParser(prog="", add_help=False)
    sub = parser.add_subparsers(dest="command", required=True)

    def command(name: str, handler: Callable[[Session, argparse.Namespace], int]) -> CommandParser:
        cmd = sub.add_parser(name, prog=name, add_help=False)
        cmd.set_defaults(handler=handler)
        return cmd

    command("help", cmd_help)

    add = command("add", cmd_add)
    add.add_argument("title", nargs="*")
    add.add_argument("-d", "--description", default="")
    add.add_argument("-p", "--priority")
    add.add_argument("--tag", action="append", default=[])

    show = command("list", cmd_list)
    show.add_argument("--keyword")
    show.add_argument("--priority")
    show.add_argument("--status")
    show.add_argument("--tag")
    show.add_argument("--sort", choices=["id", "priority"], default="id")

    detail = command("show", cmd_show)
    detail.add_argument("task_id", type=_task_id)

    edit = command("edit", cmd_edit)
    edit.add_argument("task_id", type=_task_id)
    edit.add_argument("--title")
    edit.add_argument("--description")
    edit.add_argument("--priority")

    update = command("update", cmd_update)
    update.add_argument("task_id", type=_task_id)
    update.add_argument("status")

    tag = command("tag", cmd_tag)
    tag.add_argument("task_id", type=_task_id)
    tag.add_argument("tag", nargs="+")

    untag = command("untag", cmd_untag)
    untag.add_argument("task_id", type=_task_id)
    untag.add_argument("tag", nargs="+")

    delete = command("delete", cmd_delete)
    delete.add_argument("task_id", type=_task_id)

    search = command("filter", cmd_filter)
    search.add_argument("keyword", nargs="+")

    by_priority = command("priority", cmd_priority)
    by_priority.add_argument("level")

    by_status = command("status", cmd_status)
    by_status.add_argument("status")

    command("stats", cmd_stats)

    parser.commands = frozenset(sub.choices)
    return parser


@dataclass
class Session:
    """Everything a command handler needs: the store, settings and console I/O."""

    store: TaskStore
    settings: Settings
    read: Reader
    out: TextIO = field(default_factory=lambda: sys.stdout)
    parser: CommandParser = field(default_factory=build_command_parser)

    def say(self, text: str = "") -> None:
        print(text, file=self.out)

    def ask(self, prompt: str) -> str:
        return self.read(prompt).strip()


def run_command(session: Session, line: str) -> int:
    """Execute one shell line. Task errors are printed, never raised."""
    try:
        argv = shlex.split(line)
    except ValueError as exc:
        session.say(f"Error: {exc}")
        return 1
    if not argv:
        return 0
    if argv[0] not in session.parser.commands:
        session.say("Unknown command. Type 'help' for available commands.")
        return 1

    logger.debug("dispatch %s", argv)
    try:
        args = session.parser.parse_args(argv)
        return int(args.handler(session, args))
    except TaskError as exc:
        logger.info("command %r failed: %s", argv[0], exc)
        session.say(f"Error: {exc}")
        return 1


def run_shell(session: Session, interactive: bool = True) -> int:
    if interactive:
        session.say("=== Personal Task Manager ===")
        session.say("Welcome! Type 'help' for available commands.")
        session.say()

    logger.info("session started interactive=%s", interactive)
    while True:
        try:
            line = session.read("> " if interactive else "").strip()
            if not line:
                continue
            if line in QUIT_COMMANDS:
                session.say("Goodbye!")
                break
            run_command(session, line)
        except (EOFError, KeyboardInterrupt):
            if interactive:
                session.say()
            break
    logger.info("session finished tasks=%d", len(session.store))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="task-manager", description="Personal Task Manager")
    parser.add_argument("--log-level", help="console log level (default: TASKS_LOG_LEVEL or WARNING)")
    parser.add_argument("--log-file", type=Path, help="also write DEBUG logs to this file")
    parser.add_argument("--script", type=Path, help="read commands from a file instead of stdin")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level, args.log_file or settings.log_file)

    store = TaskStore(reject_duplicate_titles=settings.reject_duplicate_titles)

    if args.script is not None:
        try:
            fh = args.script.open(encoding="utf-8")
        except OSError as exc:
            parser.error(f"cannot read script {args.script}: {exc.strerror}")
        with fh:
            session = Session(store=store, settings=settings, read=stream_reader(fh))
            return run_shell(session, interactive=False)

    interactive = sys.stdin.isatty()
    reader = input if interactive else stream_reader(sys.stdin)
    session = Session(store=store, settings=settings, read=reader)
    return run_shell(session, interactive=interactive)


if __name__ == "__main__":
    raise SystemExit(main())
