"""
Read-side figures derived from the event ledger.

Nothing here is stored: balances and streaks are recomputed from events on
every call, so they always agree with the ledger.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Set

from sqlmodel import Session, col, or_, select

from app.models.event import Event, EventResponse, EventType
from app.models.user import naive_utc

DEFAULT_APPRECIATION_POINTS = 1


@dataclass
class PointBalance:
    earned: int = 0
    spent: int = 0

    @property
    def balance(self) -> int:
        return self.earned - self.spent


@dataclass
class ActivitySummary:
    appreciations_sent: int
    appreciations_received: int
    current_streak: int
    longest_streak: int
    last_activity_date: Optional[date]


def _points(event: Event, default: int = 0) -> int:
    value = event.content.get("points", default)
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value


def _day(moment: datetime) -> date:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).date()


def _events_for(session: Session, user_id: int, since: Optional[datetime]) -> Iterable[Event]:
    query = select(Event).where(
        or_(Event.sender_id == user_id, Event.receiver_id == user_id)
    )
    if since is not None:
        query = query.where(Event.created_at >= naive_utc(since))
    return session.exec(query.order_by(col(Event.created_at))).all()


def point_balance(session: Session, user_id: int, since: Optional[datetime] = None) -> PointBalance:
    """
    Appreciations received earn their points (1 when unspecified). A favor
    request costs its sender the points unless it was declined, and pays the
    receiver once accepted.
    """
    totals = PointBalance()
    for event in _events_for(session, user_id, since):
        if event.type == EventType.APPRECIATION and event.receiver_id == user_id:
            totals.earned += _points(event, DEFAULT_APPRECIATION_POINTS)
        elif event.type == EventType.FAVOR_REQUEST:
            if event.sender_id == user_id and event.response != EventResponse.DECLINE:
                totals.spent += _points(event)
            elif event.receiver_id == user_id and event.response == EventResponse.ACCEPT:
                totals.earned += _points(event)
    return totals


def _streaks(days: Set[date], today: date) -> tuple[int, int]:
    current = 0
    cursor = today
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)

    longest = run = 0
    previous = None
    for day in sorted(days):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        longest = max(longest, run)
        previous = day
    return current, longest


def activity_summary(session: Session, user_id: int, today: Optional[date] = None) -> ActivitySummary:
    today = today or datetime.now(timezone.utc).date()
    sent = received = 0
    active_days: Set[date] = set()
    for event in _events_for(session, user_id, None):
        if event.sender_id == user_id:
            active_days.add(_day(event.created_at))
            if event.type == EventType.APPRECIATION:
                sent += 1
        elif event.type == EventType.APPRECIATION:
            received += 1

    current, longest = _streaks(active_days, today)
    return ActivitySummary(
        appreciations_sent=sent,
        appreciations_received=received,
        current_streak=current,
        longest_streak=longest,
        last_activity_date=max(active_days) if active_days else None,
    )
