#!/usr/bin/env python3
"""
KROCS CLI - Direct control over the planner data and notifications.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from krocs import config as config_module
from krocs.context import AppContext, open_context
from krocs.daemon import NotificationDaemon
from krocs.helpers import format_duration, hours_to_minutes, minutes_to_hours
from krocs.models import TaskStatus, TimeUnit
from krocs.notifier import sync_notifications
from krocs.observability import configure_logging
from krocs.queries import allocations, buffer_usage, unscheduled_tasks

logger = logging.getLogger(__name__)


class CLIError(Exception):
    """Bad user input; printed without a traceback."""


def print_header(text: str):
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def _parse_value(raw: str):
    """JSON if it parses (numbers, booleans, objects), else the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _nested(path: str, value) -> dict:
    """``"a.b.c", 1`` -> ``{"a": {"b": {"c": 1}}}``"""
    result = value
    for part in reversed(path.split(".")):
        result = {part: result}
    return result


# ==================== Notifications ====================


def cmd_sync(ctx: AppContext, args):
    """Evaluate the notification rules once."""
    emitted = sync_notifications(ctx)
    if not emitted:
        print("No new notifications.")
        return
    for n in emitted:
        print(f"+ [{n.type}] {n.message}")


def cmd_notifications(ctx: AppContext, args):
    """Show the notification log."""
    items = ctx.notifications.unread() if args.unread else ctx.notifications.all()
    if not items:
        print("No notifications.")
        return
    for n in items[: args.limit]:
        marker = " " if n.read else "●"
        print(f"{marker} {n.id}  {n.created_at[:16]}  [{n.type}] {n.message}")
    print(f"\n{ctx.notifications.unread_count()} unread")


def cmd_read(ctx: AppContext, args):
    if not ctx.notifications.mark_as_read(args.id):
        raise CLIError(f"No notification with id {args.id}")
    print("Marked as read.")


def cmd_read_all(ctx: AppContext, args):
    print(f"Marked {ctx.notifications.mark_all_as_read()} as read.")


def cmd_clear(ctx: AppContext, args):
    ctx.notifications.clear()
    print("Notification log cleared.")


# ==================== Settings ====================


def cmd_settings(ctx: AppContext, args):
    if args.action == "show":
        print(json.dumps(ctx.settings.get().to_dict(), indent=2))
    elif args.action == "set":
        if not args.path or args.value is None:
            raise CLIError("Usage: settings set <path> <value>")
        try:
            ctx.settings.update(_nested(args.path, _parse_value(args.value)))
        except (TypeError, ValueError) as e:
            raise CLIError(f"Invalid value for {args.path}: {e}") from e
        print(f"Set {args.path} = {args.value}")
    elif args.action == "reset":
        ctx.settings.reset()
        print("Settings reset to defaults.")


# ==================== Projects / Tasks / Events ====================


def cmd_project(ctx: AppContext, args):
    if args.action == "add":
        if not args.name:
            raise CLIError("Usage: project add <name>")
        project_id = ctx.projects.add(name=args.name, description=args.description)
        print(project_id)
    elif args.action == "list":
        for p in ctx.projects.live():
            print(f"{p.id}  {p.name}")


def _estimate_minutes(ctx: AppContext, estimate: float | None) -> int | None:
    if estimate is None:
        return None
    if ctx.settings.get().time_unit == TimeUnit.HOUR:
        return int(hours_to_minutes(estimate))
    return int(estimate)


def cmd_task(ctx: AppContext, args):
    if args.action == "add":
        if not args.project or not args.title:
            raise CLIError("Usage: task add --project ID --title TITLE [--deadline YYYY-MM-DD]")
        if ctx.projects.get(args.project) is None:
            raise CLIError(f"No project with id {args.project}")
        task_id = ctx.tasks.add(
            project_id=args.project,
            title=args.title,
            deadline=args.deadline,
            estimated_time=_estimate_minutes(ctx, args.estimate),
        )
        print(task_id)
    elif args.action == "list":
        tasks = unscheduled_tasks(ctx) if args.unscheduled else ctx.tasks.live()
        for t in tasks:
            estimate = format_duration(t.estimated_time) if t.estimated_time else "-"
            print(f"{t.id}  {t.status:<11}  {t.deadline or '-':<10}  {estimate:>7}  {t.title}")
    elif args.action == "status":
        if not args.id or not args.status:
            raise CLIError("Usage: task status <id> --status pending|in_progress|completed")
        if not ctx.tasks.update(args.id, status=TaskStatus(args.status)):
            raise CLIError(f"No task with id {args.id}")
        print(f"{args.id} -> {args.status}")
    elif args.action == "remove":
        if not args.id or not ctx.tasks.remove(args.id):
            raise CLIError(f"No task with id {args.id}")
        print(f"Removed {args.id}")


def cmd_event(ctx: AppContext, args):
    if args.action == "add":
        if not (args.task and args.start and args.end):
            raise CLIError("Usage: event add --task ID --start ISO --end ISO")
        task = ctx.tasks.get(args.task)
        if task is None:
            raise CLIError(f"No task with id {args.task}")
        event_id = ctx.events.add(
            task_id=task.id,
            project_id=task.project_id,
            start_time=args.start,
            end_time=args.end,
        )
        print(event_id)
    elif args.action == "remove":
        if not args.id or not ctx.events.remove(args.id):
            raise CLIError(f"No event with id {args.id}")
        print(f"Removed {args.id}")


def cmd_allocation(ctx: AppContext, args):
    """Show where scheduled time goes this week/month."""
    print_header(f"ALLOCATION ({args.period})")
    names = {p.id: p.name for p in ctx.projects.all()}
    rows = allocations(ctx, args.period)
    if not rows:
        print("Nothing scheduled.")
    for a in rows:
        print(f"{names.get(a.project_id, a.project_id):<30} {minutes_to_hours(a.total_time):>6}h  {a.percentage:>3}%")
    print(f"\nBuffer usage: {buffer_usage(ctx)}%")


# ==================== Data ====================


def cmd_init(ctx: AppContext, args):
    print(f"Database ready at {ctx.storage.db_path}")


def cmd_export(ctx: AppContext, args):
    data = ctx.storage.export_data()
    if args.file:
        Path(args.file).write_text(data)
        print(f"Exported to {args.file}")
    else:
        print(data)


def cmd_import(ctx: AppContext, args):
    try:
        data = Path(args.file).read_text()
    except OSError as e:
        raise CLIError(f"Could not read {args.file}: {e}") from e
    if not ctx.storage.import_data(data):
        raise CLIError(f"{args.file} is not a valid export")
    print(f"Imported {args.file}")


# ==================== Long-running ====================


def cmd_daemon(ctx: AppContext, args, app_config: dict):
    interval = args.interval or config_module.get(app_config, "daemon.sync_interval_seconds", 300)
    daemon = NotificationDaemon(
        ctx,
        interval_seconds=interval,
        max_backoff_seconds=config_module.get(app_config, "daemon.max_backoff_seconds", 3600),
    )
    if args.once:
        if not daemon.run_once():
            raise CLIError(f"Sync failed: {daemon.state.last_error}")
        return
    daemon.install_signal_handlers()
    daemon.run()


def cmd_serve(ctx: AppContext, args, app_config: dict):
    from api.server import serve

    serve(ctx, app_config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="krocs", description="KROCS personal planner")
    parser.add_argument("--db", help="Database path (default: $KROCS_DB or ~/.krocs/data/krocs.db)")
    parser.add_argument("--log-level", help="Override the configured log level")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("init", help="Create the database")
    subparsers.add_parser("sync", help="Evaluate notification rules once")

    p = subparsers.add_parser("notifications", help="Show notifications")
    p.add_argument("--unread", "-u", action="store_true")
    p.add_argument("--limit", "-l", type=int, default=50)

    p = subparsers.add_parser("read", help="Mark a notification as read")
    p.add_argument("id")
    subparsers.add_parser("read-all", help="Mark every notification as read")
    subparsers.add_parser("clear", help="Wipe the notification log")

    p = subparsers.add_parser("settings", help="Show or change settings")
    p.add_argument("action", choices=["show", "set", "reset"])
    p.add_argument("path", nargs="?", help="Dot path, e.g. notifications.buffer_warning.threshold_percent")
    p.add_argument("value", nargs="?")

    p = subparsers.add_parser("project", help="Manage projects")
    p.add_argument("action", choices=["add", "list"])
    p.add_argument("name", nargs="?")
    p.add_argument("--description", "-d")

    p = subparsers.add_parser("task", help="Manage tasks")
    p.add_argument("action", choices=["add", "list", "status", "remove"])
    p.add_argument("id", nargs="?")
    p.add_argument("--project", "-p")
    p.add_argument("--title", "-t")
    p.add_argument("--deadline", "-d", help="YYYY-MM-DD")
    p.add_argument("--estimate", "-e", type=float, help="Estimate in the configured time unit")
    p.add_argument("--status", "-s", choices=[s.value for s in TaskStatus])
    p.add_argument("--unscheduled", action="store_true", help="Only pending tasks without events")

    p = subparsers.add_parser("event", help="Manage calendar events")
    p.add_argument("action", choices=["add", "remove"])
    p.add_argument("id", nargs="?")
    p.add_argument("--task")
    p.add_argument("--start", help="ISO date-time")
    p.add_argument("--end", help="ISO date-time")

    p = subparsers.add_parser("allocation", help="Scheduled time per project")
    p.add_argument("--period", choices=["week", "month"], default="week")

    p = subparsers.add_parser("export", help="Export all data as JSON")
    p.add_argument("file", nargs="?")
    p = subparsers.add_parser("import", help="Import a JSON export")
    p.add_argument("file")

    p = subparsers.add_parser("daemon", help="Run notification sync on a timer")
    p.add_argument("--interval", type=float, help="Seconds between syncs")
    p.add_argument("--once", action="store_true", help="Run one sync and exit")

    subparsers.add_parser("serve", help="Run the HTTP API")

    return parser


COMMANDS = {
    "init": cmd_init,
    "sync": cmd_sync,
    "notifications": cmd_notifications,
    "read": cmd_read,
    "read-all": cmd_read_all,
    "clear": cmd_clear,
    "settings": cmd_settings,
    "project": cmd_project,
    "task": cmd_task,
    "event": cmd_event,
    "allocation": cmd_allocation,
    "export": cmd_export,
    "import": cmd_import,
}

LONG_RUNNING = {
    "daemon": cmd_daemon,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    app_config = config_module.load_config()
    try:
        configure_logging(
            level=args.log_level or config_module.get(app_config, "logging.level", "INFO"),
            json_format=config_module.get(app_config, "logging.json"),
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    ctx = open_context(args.db)
    try:
        if args.command in LONG_RUNNING:
            LONG_RUNNING[args.command](ctx, args, app_config)
        else:
            COMMANDS[args.command](ctx, args)
    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
