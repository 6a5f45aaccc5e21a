"""
Derived views over the in-memory application list.

Pure functions: each call recomputes from the list it is given plus the
filter parameters and the reference date. Nothing is cached between calls.
"""
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from .config import settings
from .schemas import (
    ApplicationStatus, BoardCard, BoardColumn, DashboardStats, JobApplication,
    CLOSED_STATUSES, IN_PROGRESS_STATUSES, KANBAN_COLUMNS, PLATFORM_LABELS, STATUS_CONFIG,
)

ALL = "all"


def _matches(app: JobApplication, needle: str, status: str, platform: str) -> bool:
    if needle and needle not in app.job_title.lower() and needle not in app.company.lower():
        return False
    if status != ALL and app.status.value != status:
        return False
    if platform != ALL and app.platform.value != platform:
        return False
    return True


def filter_applications(
    applications: Iterable[JobApplication],
    search: str = "",
    status: str = ALL,
    platform: str = ALL,
) -> List[JobApplication]:
    """
    Keep records matching every active filter.

    `search` is a case-insensitive substring of job title or company;
    `status` and `platform` are exact values or "all".
    """
    needle = (search or "").lower()
    status = getattr(status, "value", status) or ALL
    platform = getattr(platform, "value", platform) or ALL
    return [app for app in applications if _matches(app, needle, status, platform)]


def sort_by_updated(applications: Iterable[JobApplication]) -> List[JobApplication]:
    """Most recently updated first; ties keep their incoming order."""
    return sorted(applications, key=lambda app: app.updated_at, reverse=True)


def visible_applications(
    applications: Iterable[JobApplication],
    search: str = "",
    status: str = ALL,
    platform: str = ALL,
) -> List[JobApplication]:
    """What the table shows: filtered, then sorted by last update."""
    return sort_by_updated(filter_applications(applications, search, status, platform))


def has_active_filters(search: str = "", status: str = ALL, platform: str = ALL) -> bool:
    return bool(search) or status != ALL or platform != ALL


def week_bounds(today: date) -> Tuple[date, date]:
    """Sunday through Saturday of the week containing `today`."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def is_overdue(app: JobApplication, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return app.follow_up_due_date is not None and app.follow_up_due_date < today


def is_due_soon(app: JobApplication, today: Optional[date] = None, days: Optional[int] = None) -> bool:
    """Follow-up falls strictly after today and strictly before today + `days`."""
    if app.follow_up_due_date is None:
        return False
    today = today or date.today()
    horizon = today + timedelta(days=settings.due_soon_days if days is None else days)
    return today < app.follow_up_due_date < horizon


def compute_stats(applications: Iterable[JobApplication], today: Optional[date] = None) -> DashboardStats:
    """Dashboard counters over the full, unfiltered list."""
    today = today or date.today()
    week_start, week_end = week_bounds(today)

    by_status = {status.value: 0 for status in ApplicationStatus}
    applied_this_week = 0
    overdue = 0
    total = 0

    for app in applications:
        total += 1
        by_status[app.status.value] += 1
        if week_start <= app.date_applied <= week_end:
            applied_this_week += 1
        if is_overdue(app, today) and app.status not in CLOSED_STATUSES:
            overdue += 1

    return DashboardStats(
        applied_this_week=applied_this_week,
        in_progress=sum(by_status[s.value] for s in IN_PROGRESS_STATUSES),
        offers=by_status[ApplicationStatus.OFFER.value],
        rejected=by_status[ApplicationStatus.REJECTED.value],
        overdue_follow_ups=overdue,
        total=total,
        by_status=by_status,
    )


def kanban_columns(applications: Iterable[JobApplication], today: Optional[date] = None) -> List[BoardColumn]:
    """One column per status in pipeline order, cards in incoming order."""
    today = today or date.today()
    columns = {
        status: BoardColumn(
            status=status,
            label=STATUS_CONFIG[status]["label"],
            color=STATUS_CONFIG[status]["color"],
            count=0,
            cards=[],
        )
        for status in KANBAN_COLUMNS
    }
    for app in applications:
        column = columns[app.status]
        column.cards.append(BoardCard(
            application=app,
            platform_label=PLATFORM_LABELS[app.platform],
            overdue=is_overdue(app, today),
            due_soon=is_due_soon(app, today),
        ))
        column.count += 1
    return list(columns.values())
