"""
Message renderers. Every function takes already-derived data (or derives it
with the pure view functions) and returns Telegram HTML.
"""
from __future__ import annotations

from datetime import date, datetime, tzinfo
from html import escape
from typing import List, Optional, Sequence

from taskdeck.domain.calendar.models import CalendarEventRef
from taskdeck.domain.focus.machine import format_remaining
from taskdeck.domain.focus.models import FocusSession, FocusState, TimerMode
from taskdeck.domain.gamification.models import ProgressReport
from taskdeck.domain.tasks.models import FilterCriteria, Priority, Quadrant, Task, TaskDraft, ViewType
from taskdeck.domain.tasks.views import (
    calendar_month,
    category_aggregates,
    completion_rate,
    kanban_buckets,
    most_productive_day,
    overdue_count,
    quadrant_buckets,
    week_over_week,
    weekly_completion_series,
)
from taskdeck.domain.templates.models import TaskTemplate
from taskdeck.ui.telegram.keyboards.tasks import QUADRANT_LABELS

PRIORITY_ICONS = {Priority.HIGH: "🔴", Priority.MEDIUM: "🟡", Priority.LOW: "🟢"}
CALENDAR_HEADER = ("Su", "Mo", "Tu", "We", "Th", "Fr", "Sa")
MAX_LINES = 40


def fmt_due(dt: Optional[datetime], tz: Optional[tzinfo] = None) -> str:
    if dt is None:
        return ""
    if tz is not None:
        dt = dt.astimezone(tz)
    return dt.strftime("%d.%m.%Y %H:%M")


def task_line(task: Task, tz: Optional[tzinfo] = None) -> str:
    mark = "✅" if task.is_completed else "⬜"
    title = escape(task.title)
    if task.is_completed:
        title = f"<s>{title}</s>"
    due = f" · due {fmt_due(task.due_date, tz)}" if task.due_date else ""
    return f"{mark} {PRIORITY_ICONS[task.priority]} {title} <i>[{task.category.value}]</i>{due}"


def task_card(task: Task, tz: Optional[tzinfo] = None) -> str:
    lines = [f"<b>{escape(task.title)}</b>"]
    if task.description:
        lines.append(escape(task.description))
    lines.append("")
    lines.append(f"Status: {task.status.value}")
    lines.append(f"Priority: {PRIORITY_ICONS[task.priority]} {task.priority.value}")
    lines.append(f"Category: {task.category.value}")
    if task.due_date:
        lines.append(f"Due: {fmt_due(task.due_date, tz)}")
    if not task.is_completed:
        lines.append(f"Quadrant: {QUADRANT_LABELS[task.quadrant]}")
    if task.is_recurring and task.recurrence_pattern:
        lines.append(f"Repeats: {task.recurrence_pattern.value}")
    if task.shared_with:
        shared = ", ".join(f"{escape(ref)} ({perm.value})" for ref, perm in sorted(task.shared_with.items()))
        lines.append(f"Shared with: {shared}")
    if task.calendar_event_id:
        lines.append("In Google Calendar ✔")
    return "\n".join(lines)


def criteria_line(criteria: FilterCriteria) -> str:
    if criteria.is_default:
        return ""
    parts = [f"status={criteria.status}", f"priority={criteria.priority}", f"category={criteria.category}"]
    if criteria.search.strip():
        parts.append(f'search="{escape(criteria.search.strip())}"')
    return "Filter: " + ", ".join(parts)


def _with_header(title: str, criteria: FilterCriteria, body: List[str]) -> str:
    head = [f"<b>{title}</b>"]
    flt = criteria_line(criteria)
    if flt:
        head.append(f"<i>{flt}</i>")
    if len(body) > MAX_LINES:
        body = body[:MAX_LINES] + [f"… and {len(body) - MAX_LINES} more"]
    return "\n".join(head + [""] + body)


def list_view(tasks: Sequence[Task], criteria: FilterCriteria, tz: Optional[tzinfo] = None) -> str:
    if not tasks:
        return _with_header("Tasks", criteria, ["No tasks found."])
    return _with_header("Tasks", criteria, [f"{i + 1}. {task_line(t, tz)}" for i, t in enumerate(tasks)])


def grid_view(tasks: Sequence[Task], criteria: FilterCriteria, tz: Optional[tzinfo] = None) -> str:
    columns = kanban_buckets(tasks)
    body = [f"<b>Pending ({len(columns.pending)})</b>"]
    body += [task_line(t, tz) for t in columns.pending] or ["—"]
    body += ["", f"<b>Completed ({len(columns.completed)})</b>"]
    body += [task_line(t, tz) for t in columns.completed] or ["—"]
    return _with_header("Board", criteria, body)


def matrix_view(tasks: Sequence[Task], criteria: FilterCriteria, tz: Optional[tzinfo] = None) -> str:
    buckets = quadrant_buckets(tasks)
    body: List[str] = []
    for q in Quadrant:
        body.append(f"<b>{QUADRANT_LABELS[q]}</b> <i>({q.value})</i>")
        body += [task_line(t, tz) for t in buckets[q]] or ["—"]
        body.append("")
    return _with_header("Eisenhower matrix", criteria, body[:-1])


def calendar_view(tasks: Sequence[Task], month: date, criteria: FilterCriteria, tz: Optional[tzinfo] = None) -> str:
    weeks = calendar_month(tasks, month.year, month.month, tz)
    grid = [" ".join(f"{h:>3}" for h in CALENDAR_HEADER)]
    details: List[str] = []
    for week in weeks:
        cells = []
        for cell in week:
            if cell is None:
                cells.append("   ")
            elif cell.total:
                cells.append(f"{cell.day.day:>2}*")
            else:
                cells.append(f"{cell.day.day:>3}")
            if cell is not None and cell.total:
                titles = ", ".join(escape(t.title) for t in cell.tasks)
                more = f" +{cell.more} more" if cell.more else ""
                details.append(f"<b>{cell.day.strftime('%d.%m')}</b>: {titles}{more}")
        grid.append(" ".join(cells))
    body = [f"<pre>{chr(10).join(grid)}</pre>"] + (details or ["No tasks due this month."])
    return _with_header(month.strftime("%B %Y"), criteria, body)


def analytics_view(tasks: Sequence[Task], now: datetime, criteria: FilterCriteria, tz: Optional[tzinfo] = None) -> str:
    today = now.astimezone(tz).date() if tz is not None else now.date()
    series = weekly_completion_series(tasks, today, tz)
    best = most_productive_day(series)
    wow = week_over_week(tasks, today, tz)
    shares = category_aggregates(tasks)

    body = [
        f"Total: {len(tasks)} · completion rate {completion_rate(tasks)}%",
        f"Overdue: {overdue_count(tasks, now)}",
        "",
        "<b>Completed this week</b>",
    ]
    top = max((d.count for d in series), default=0) or 1
    for d in series:
        bar = "█" * round(d.count * 10 / top) if d.count else ""
        body.append(f"<code>{d.label} {bar:<10} {d.count}</code>")
    body.append(f"Most productive day: {best.label if best else '—'}")
    sign = "+" if wow.delta >= 0 else ""
    body.append(f"This week {wow.this_week} vs last week {wow.last_week} ({sign}{wow.percent}%)")
    body += ["", "<b>Completed by category</b>"]
    body += [f"{s.category.value}: {s.count} ({s.percent}%)" for s in shares] or ["No completed tasks yet."]
    return _with_header("Analytics", criteria, body)


def render_view(
    view: ViewType,
    tasks: Sequence[Task],
    criteria: FilterCriteria,
    now: datetime,
    month: Optional[date] = None,
    tz: Optional[tzinfo] = None,
) -> str:
    if view == ViewType.GRID:
        return grid_view(tasks, criteria, tz)
    if view == ViewType.MATRIX:
        return matrix_view(tasks, criteria, tz)
    if view == ViewType.CALENDAR:
        return calendar_view(tasks, month or now.date().replace(day=1), criteria, tz)
    if view == ViewType.ANALYTICS:
        return analytics_view(tasks, now, criteria, tz)
    return list_view(tasks, criteria, tz)


def focus_status(session: FocusSession, upcoming: TimerMode, completed_focus: int, task: Optional[Task] = None) -> str:
    if session.state == FocusState.IDLE:
        return f"No timer running. Next up: <b>{upcoming.label}</b> ({completed_focus} focus sessions done)."
    lines = [
        f"<b>{session.mode.label}</b> · {session.state.value}",
        f"<code>{format_remaining(session.remaining_seconds)}</code> / {session.duration_minutes} min "
        f"({session.progress_percent}%)",
    ]
    if task is not None:
        lines.append(f"Task: {escape(task.title)}")
    if session.state == FocusState.COMPLETED:
        lines.append(f"Next up: <b>{upcoming.label}</b>")
    return "\n".join(lines)


def progress_report(report: ProgressReport) -> str:
    lvl = report.level
    lines = [
        f"<b>Level {lvl.level}</b> · {lvl.xp}/100 XP ({lvl.points} points)",
        f"🔥 Streak: {report.streak} day(s) · Efficiency: {report.efficiency}%",
        "",
        "<b>Achievements</b>",
    ]
    for a in report.achievements:
        icon = "🏆" if a.unlocked else "🔒"
        lines.append(f"{icon} {a.title} <i>({a.rarity.value}, {a.points} pts)</i> {a.progress}/{a.max_progress}")
    lines += ["", "<b>Daily challenges</b>"]
    for c in report.challenges:
        icon = "✅" if c.completed else "▫️"
        lines.append(f"{icon} {c.title}: {c.progress}/{c.max_progress} · {c.reward_xp} XP")
    return "\n".join(lines)


def unlocked_banner(report: ProgressReport) -> Optional[str]:
    if not report.newly_unlocked:
        return None
    names = ", ".join(f"<b>{a.title}</b> (+{a.points})" for a in report.newly_unlocked)
    return f"🏆 Achievement unlocked: {names}"


def suggestions_text(drafts: Sequence[TaskDraft], explanation: Optional[str], tz: Optional[tzinfo] = None) -> str:
    lines = ["<b>Suggestions</b>"]
    for i, d in enumerate(drafts, start=1):
        due = f" · due {fmt_due(d.due_date, tz)}" if d.due_date else ""
        lines.append(f"{i}. {PRIORITY_ICONS[d.priority]} {escape(d.title)} <i>[{d.category.value}]</i>{due}")
        if d.description:
            lines.append(f"   {escape(d.description)}")
    if explanation:
        lines += ["", f"<i>{escape(explanation)}</i>"]
    return "\n".join(lines)


def templates_text(templates: Sequence[TaskTemplate]) -> str:
    if not templates:
        return "No templates yet."
    lines = ["<b>Templates</b>"]
    for t in templates:
        est = f" · ~{t.estimated_minutes} min" if t.estimated_minutes else ""
        steps = f" · {len(t.steps)} steps" if t.steps else ""
        lines.append(f"• {escape(t.name)} <i>[{t.category.value}]</i>{est}{steps}")
    return "\n".join(lines)


def upcoming_events_text(events: Sequence[CalendarEventRef], tz: Optional[tzinfo] = None) -> str:
    if not events:
        return "No upcoming calendar events."
    lines = ["<b>Upcoming events</b>"]
    for e in events:
        lines.append(f"• {fmt_due(e.start, tz)} {escape(e.summary)}")
    return "\n".join(lines)
