# src/flowx/cli/commands.py

from __future__ import annotations

import asyncio
import inspect
import logging
import shlex
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import cast

from ..core.errors import FlowxError, TaskNotFoundError, ValidationError
from ..core.planner import Planner
from ..core.state import AppState
from ..profile.profile_models import (
    ExtraWorkHour,
    OnboardingAnswers,
    Profession,
    Weekday,
    WorkingHours,
)
from ..tasks.countdown import Countdown, CountdownBoard
from ..tasks.task_api import validate_task_fields
from ..tasks.task_models import Task, TaskStatus, format_hhmm, parse_iso_date

CommandEmitter = Callable[[str], None]
CommandConfirm = Callable[[str], bool]


@dataclass(slots=True)
class CommandContext:
    """Connector-side callbacks: print immediately, ask a yes/no question."""

    emit: CommandEmitter | None = None
    confirm: CommandConfirm | None = None


CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandContext], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, ctx: CommandContext | None = None) -> str | None:
        """
        Handle a string like '/command args "quoted arg"'.
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Could not parse command: {e}."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, ctx or CommandContext())
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except ValidationError as e:
            return f"Invalid {e.field}: {e.message}"
        except FlowxError as e:
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _kv_args(args: list[str]) -> tuple[list[str], dict[str, str]]:
    positional: list[str] = []
    options: dict[str, str] = {}
    for a in args:
        key, sep, value = a.partition("=")
        if sep and key:
            options[key.lower()] = value
        else:
            positional.append(a)
    return positional, options


def _planner_or_error(state: AppState) -> Planner | str:
    if state.profile is None:
        return "Not logged in. Use /login <username>."
    if state.planner is None:
        return "Finish onboarding first: /onboard (see /help)."
    return state.planner


def _resolve_task(state: AppState, planner: Planner, ref: str) -> Task:
    """Accept a 1-based index into the active day's list, or a task id (prefix)."""
    if ref.isdigit():
        day_tasks = planner.tasks_for_active_date()
        idx = int(ref)
        if 1 <= idx <= len(day_tasks):
            return day_tasks[idx - 1]
    matches = [t for t in state.task_store.list_tasks() if t.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    raise TaskNotFoundError(ref)


def _format_task_line(i: int, task: Task, countdown: Countdown | None) -> str:
    end = format_hhmm(task.end_at.time())
    line = f"{i}. {format_hhmm(task.start_time)}-{end} [{task.priority.value}] {task.name} - {task.status.value}"
    if countdown is not None and task.status is TaskStatus.PENDING:
        line += f" ({countdown.label})"
    if task.notes:
        line += f"\n     notes: {task.notes}"
    return line


def _parse_day_arg(raw: str, current: date, today: date) -> date:
    s = raw.strip().lower()
    if s == "today":
        return today
    if s == "tomorrow":
        return today + timedelta(days=1)
    if s == "yesterday":
        return today - timedelta(days=1)
    if s[:1] in "+-" and s[1:].isdigit():
        try:
            return current + timedelta(days=int(s))
        except OverflowError:
            raise ValidationError("date", f"offset {raw!r} is out of range") from None
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError("date", f"expected YYYY-MM-DD, today, tomorrow or +N/-N, got {raw!r}") from None


def _parse_window(raw: str) -> WorkingHours:
    start, sep, end = raw.partition("-")
    if not sep:
        raise ValidationError("hours", f"expected HH:MM-HH:MM, got {raw!r}")
    return WorkingHours.parse(start, end)


def _parse_weekday(raw: str) -> Weekday:
    try:
        return Weekday.parse(raw)
    except ValueError:
        raise ValidationError("days", f"unknown weekday {raw!r}") from None


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    user = state.profile.username if state.profile else "(not logged in)"
    onboarded = "yes" if state.profile and state.profile.onboarding_complete else "no"
    active = state.planner.active_date.isoformat() if state.planner else "-"
    models = ", ".join(list(getattr(s, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  User: {user} (onboarded: {onboarded})\n"
        f"  Active date: {active}\n"
        f"  Storage: {getattr(s, 'storage_db_path', '?')}\n"
        f"  Late completion credit: {state.policy.late_credit:g}\n"
        f"  Models (priority -> fallback): {models}"
    )


def cmd_login(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /login <username>"
    profile = state.login(" ".join(args))
    if not profile.onboarding_complete:
        return (
            f"Welcome, {profile.username}! Let's set up your profile:\n"
            "  /onboard profession=<Student|Employee|Doctor|Worker|Freelancer|'Business Owner'|Other> "
            "[custom=<text>] [days=Mon,Tue,...] [hours=09:00-17:00] [extra=Sat@10:00-12:00,...]"
        )
    return f"Welcome back, {profile.username}!"


def cmd_logout(state: AppState, args: list[str]) -> str:
    state.logout()
    return "Logged out."


def cmd_onboard(state: AppState, args: list[str]) -> str:
    if state.profile is None:
        return "Not logged in. Use /login <username>."
    if state.profile.onboarding_complete:
        return "Onboarding is already complete."

    _, opts = _kv_args(args)
    profession = None
    if "profession" in opts:
        raw = opts["profession"].replace("_", " ").strip().lower()
        matches = [p for p in Profession if p.value.lower() == raw]
        if not matches:
            allowed = ", ".join(p.value for p in Profession)
            raise ValidationError("profession", f"must be one of {allowed}")
        profession = matches[0]

    working_days = None
    if "days" in opts:
        working_days = frozenset(_parse_weekday(d) for d in opts["days"].split(",") if d.strip())

    regular_hours = _parse_window(opts["hours"]) if "hours" in opts else None

    extra_hours = None
    if "extra" in opts:
        extra: list[ExtraWorkHour] = []
        for item in opts["extra"].split(","):
            if not item.strip():
                continue
            day_raw, sep, window = item.partition("@")
            if not sep:
                raise ValidationError("extra", f"expected Day@HH:MM-HH:MM, got {item!r}")
            extra.append(ExtraWorkHour(day=_parse_weekday(day_raw), hours=_parse_window(window)))
        extra_hours = tuple(extra)

    profile = state.complete_onboarding(
        OnboardingAnswers(
            profession=profession,
            custom_profession=opts.get("custom"),
            working_days=working_days,
            regular_hours=regular_hours,
            extra_hours=extra_hours,
        )
    )
    return f"Profile ready for {profile.username} ({profile.display_profession}). Use /add to schedule tasks."


def cmd_profile(state: AppState, args: list[str]) -> str:
    p = state.profile
    if p is None:
        return "Not logged in. Use /login <username>."
    days = ", ".join(d.value for d in Weekday if d in p.working_days) or "none"
    extra = ", ".join(
        f"{e.day.value} {format_hhmm(e.hours.start)}-{format_hhmm(e.hours.end)}" for e in p.extra_hours
    )
    return (
        f"Profile: {p.username}\n"
        f"  Profession: {p.display_profession}\n"
        f"  Working days: {days}\n"
        f"  Regular hours: {format_hhmm(p.regular_hours.start)}-{format_hhmm(p.regular_hours.end)}\n"
        f"  Extra hours: {extra or 'none'}\n"
        f"  Onboarding complete: {'yes' if p.onboarding_complete else 'no'}"
    )


def cmd_date(state: AppState, args: list[str]) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    if args:
        planner.select_date(_parse_day_arg(args[0], planner.active_date, planner.today()))
    windows = ", ".join(planner.work_windows()) or "none"
    return (
        f"Active date: {planner.active_date.isoformat()} ({planner.active_date.strftime('%A')}, "
        f"{planner.day_kind()}; work windows: {windows})"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <name> <HH:MM> <minutes> [priority] [date=YYYY-MM-DD] [notes=...] [alert=at-start|before-completion]
    """
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    positional, opts = _kv_args(args)
    if len(positional) < 3:
        return (
            "Usage: /add <name> <HH:MM> <minutes> [Low|Medium|High] "
            "[date=YYYY-MM-DD] [notes=...] [alert=at-start|before-completion]"
        )
    fields = validate_task_fields(
        name=positional[0],
        date_str=opts.get("date") or planner.active_date,
        start_time=positional[1],
        duration=positional[2],
        priority=positional[3] if len(positional) > 3 else opts.get("priority", "Medium"),
        notes=opts.get("notes"),
        alert_time=opts.get("alert", "at-start"),
    )
    result = planner.schedule_task(fields)
    reply = f"Scheduled {result.task.name!r} on {result.task.date} at {format_hhmm(result.task.start_time)} (id {result.task.id[:8]})."
    if result.conflict_warning:
        reply += f"\nWarning: {result.conflict_warning}"
    return reply


def cmd_tasks(state: AppState, args: list[str]) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    rows = planner.countdowns()
    if not rows:
        return f"No tasks on {planner.active_date.isoformat()}. Use /add to schedule one."
    lines = [f"Tasks on {planner.active_date.isoformat()}:"]
    for i, (task, cd) in enumerate(rows, start=1):
        lines.append(_format_task_line(i, task, cd))
    return "\n".join(lines)


def _transition_reply(task: Task, before: TaskStatus) -> str:
    if task.status is before:
        return f"{task.name!r} is already {task.status.value}; nothing changed."
    return f"{task.name!r} -> {task.status.value}."


def cmd_done(state: AppState, args: list[str]) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    if not args:
        return "Usage: /done <#|id>"
    task = _resolve_task(state, planner, args[0])
    return _transition_reply(planner.mark_done(task.id), task.status)


def cmd_fail(state: AppState, args: list[str]) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    if not args:
        return "Usage: /fail <#|id>"
    task = _resolve_task(state, planner, args[0])
    return _transition_reply(planner.mark_failed(task.id), task.status)


def cmd_remind(state: AppState, args: list[str], ctx: CommandContext) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    if not args:
        return "Usage: /remind <#|id>"
    if ctx.confirm is None:
        return "Voice reminders need an interactive connector."
    task = _resolve_task(state, planner, args[0])
    return _transition_reply(planner.run_voice_reminder(task.id, ctx.confirm), task.status)


def cmd_countdown(state: AppState, args: list[str]) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    rows = planner.countdowns()
    if not rows:
        return "Nothing scheduled for this day."
    return "\n".join(
        f"{i}. {t.name}: {cd.label}{' (due)' if cd.due else ''}" for i, (t, cd) in enumerate(rows, start=1)
    )


def cmd_watch(state: AppState, args: list[str], ctx: CommandContext) -> str:
    """Live countdowns for the active day's pending tasks for N seconds (default 5)."""
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    try:
        seconds = float(args[0]) if args else 5.0
    except ValueError:
        return "Usage: /watch [seconds]"
    seconds = max(0.0, min(seconds, 600.0))
    pending = [t for t in planner.tasks_for_active_date() if t.status is TaskStatus.PENDING]
    if not pending:
        return "No pending tasks to watch."

    emit = ctx.emit or (lambda _text: None)
    interval = float(getattr(state.settings, "countdown_interval_seconds", 1.0))

    async def _run() -> None:
        board = CountdownBoard(
            lambda task, cd: emit(f"  {task.name}: {cd.label}{' (due)' if cd.due else ''}"),
            interval_seconds=interval,
        )
        board.show_only(pending)
        try:
            await asyncio.sleep(seconds)
        finally:
            await board.close()

    asyncio.run(_run())
    return f"Stopped watching {len(pending)} task(s)."


def cmd_score(state: AppState, args: list[str]) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    b = planner.day_breakdown()
    return (
        f"Efficiency score for {planner.active_date.isoformat()}: {planner.score()}\n"
        f"  Done: {b.done}  Late: {b.late}  Missed: {b.missed}  Pending: {b.pending}"
    )


def cmd_trends(state: AppState, args: list[str]) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    stats = planner.ledger_stats()
    if stats.total_days == 0:
        return "No history yet."
    lines = [
        "Performance history:",
        f"  Peak: {stats.peak_score}%  Average: {stats.average_score}%  "
        f"Days: {stats.total_days}  Tasks logged: {stats.total_tasks}",
    ]
    for r in state.task_store.list_performance_records()[-14:]:
        bar = "#" * (r.score // 5)
        lines.append(f"  {r.date.isoformat()} {r.score:>3} {bar} ({r.completed_tasks}/{r.total_tasks})")
    return "\n".join(lines)


def cmd_suggest(state: AppState, args: list[str]) -> str:
    if state.profile is None:
        return "Not logged in. Use /login <username>."
    state.suggestions = state.coach.suggest_tasks(state.profile)
    if not state.suggestions:
        return "No suggestions right now."
    return "Suggestions:\n" + "\n".join(f"  - {s}" for s in state.suggestions)


def cmd_insights(state: AppState, args: list[str]) -> str:
    planner = _planner_or_error(state)
    if isinstance(planner, str):
        return planner
    timeout = float(getattr(state.settings, "ai_timeout_seconds", 20.0))
    feedback, suggestions = asyncio.run(
        state.coach.fetch_day_insights(
            planner.score(),
            planner.tasks_for_active_date(),
            planner.profile,
            timeout_seconds=timeout,
        )
    )
    state.suggestions = suggestions
    lines = [f"Coach: {feedback}"]
    if suggestions:
        lines.append("Suggestions:")
        lines.extend(f"  - {s}" for s in suggestions)
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current user, date and settings.")
registry.register("login", cmd_login, help_text="Log in with a local username: /login <name>.")
registry.register("logout", cmd_logout, help_text="Log out.")
registry.register(
    "onboard",
    cmd_onboard,
    help_text="Finish onboarding: /onboard profession=... [custom=...] [days=Mon,Tue] [hours=09:00-17:00] [extra=Sat@10:00-12:00].",
)
registry.register("profile", cmd_profile, help_text="Show your profile.")
registry.register("date", cmd_date, help_text="Show or change the active date: /date [YYYY-MM-DD|today|+1|-1].")
registry.register(
    "add",
    cmd_add,
    help_text="Schedule a task: /add <name> <HH:MM> <minutes> [Low|Medium|High] [date=...] [notes=...].",
)
registry.register("tasks", cmd_tasks, help_text="List tasks for the active date.", aliases=["ls"])
registry.register("done", cmd_done, help_text="Mark a task done: /done <#|id>.")
registry.register("fail", cmd_fail, help_text="Mark a task not completed: /fail <#|id>.")
registry.register("remind", cmd_remind, help_text="Voice reminder + completion check: /remind <#|id>.")
registry.register("countdown", cmd_countdown, help_text="Show remaining time for the active date's tasks.")
registry.register("watch", cmd_watch, help_text="Live countdowns for N seconds: /watch [seconds].")
registry.register("score", cmd_score, help_text="Efficiency score for the active date.")
registry.register("trends", cmd_trends, help_text="Long-term performance history.")
registry.register("suggest", cmd_suggest, help_text="AI task suggestions for your profession.")
registry.register("insights", cmd_insights, help_text="AI feedback on today's score plus suggestions.")
