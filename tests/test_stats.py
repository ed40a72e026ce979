from datetime import date, datetime, timedelta, timezone

import pytest

from app.models.event import Event, EventResponse, EventType
from app.services import stats


@pytest.fixture
def couple(make_user, pair):
    alex = make_user("alex@example.com")
    sam = make_user("sam@example.com")
    pair(alex, sam)
    return alex, sam


def record(session, sender, receiver, event_type, content=None, when=None, response=None):
    event = Event(
        type=event_type,
        sender_id=sender.id,
        receiver_id=receiver.id,
        content=content or {},
        response=response,
    )
    if when:
        event.created_at = when
    session.add(event)
    session.commit()
    return event


def test_point_balance_is_derived_from_events(session, couple):
    alex, sam = couple
    record(session, sam, alex, EventType.APPRECIATION, {"title": "Kind", "points": 4})
    record(session, sam, alex, EventType.APPRECIATION, {"title": "Funny"})
    record(session, alex, sam, EventType.FAVOR_REQUEST, {"title": "Dishes", "points": 5})
    record(session, alex, sam, EventType.FAVOR_REQUEST, {"title": "Laundry", "points": 7},
           response=EventResponse.DECLINE)
    record(session, sam, alex, EventType.FAVOR_REQUEST, {"title": "Coffee", "points": 3},
           response=EventResponse.ACCEPT)
    record(session, sam, alex, EventType.FAVOR_REQUEST, {"title": "Walk", "points": 9})

    totals = stats.point_balance(session, alex.id)
    # 4 + 1 default + 3 for the accepted favor
    assert totals.earned == 8
    # the declined favor costs nothing
    assert totals.spent == 5
    assert totals.balance == 3


def test_streaks(session, couple):
    alex, sam = couple
    for day in (1, 2, 3, 7, 8):
        record(session, alex, sam, EventType.PING,
               when=datetime(2026, 3, day, 12, tzinfo=timezone.utc))
    # received events do not count towards alex's streak
    record(session, sam, alex, EventType.APPRECIATION, {"title": "Kind"},
           when=datetime(2026, 3, 6, 12, tzinfo=timezone.utc))

    summary = stats.activity_summary(session, alex.id, today=date(2026, 3, 8))
    assert summary.current_streak == 2
    assert summary.longest_streak == 3
    assert summary.last_activity_date == date(2026, 3, 8)
    assert summary.appreciations_received == 1
    assert summary.appreciations_sent == 0

    later = stats.activity_summary(session, alex.id, today=date(2026, 3, 10))
    assert later.current_streak == 0


def test_stats_endpoint(client, session, couple, auth_headers):
    alex, sam = couple
    record(session, sam, alex, EventType.APPRECIATION, {"title": "Kind", "points": 2})

    resp = client.get("/api/v1/users/me/stats", headers=auth_headers(alex))
    assert resp.status_code == 200
    body = resp.json()
    assert body["points_earned"] == 2
    assert body["points_balance"] == 2
    assert body["appreciations_received"] == 1
    assert body["current_streak"] == 0


def test_point_balance_since_with_utc_offset(session, couple):
    alex, sam = couple
    record(session, sam, alex, EventType.APPRECIATION, {"title": "Old", "points": 5},
           when=datetime(2026, 3, 1, 10, tzinfo=timezone.utc))
    record(session, sam, alex, EventType.APPRECIATION, {"title": "New", "points": 2},
           when=datetime(2026, 3, 1, 12, tzinfo=timezone.utc))

    # 13:00 at +02:00 is 11:00 UTC
    since = datetime(2026, 3, 1, 13, tzinfo=timezone(timedelta(hours=2)))
    assert stats.point_balance(session, alex.id, since=since).earned == 2


def test_favor_points_are_held_while_pending(session, couple):
    alex, sam = couple
    favor = record(session, alex, sam, EventType.FAVOR_REQUEST, {"title": "Dishes", "points": 5})
    assert stats.point_balance(session, alex.id).spent == 5
    assert stats.point_balance(session, sam.id).earned == 0

    favor.response = EventResponse.DECLINE
    session.add(favor)
    session.commit()
    assert stats.point_balance(session, alex.id).spent == 0
