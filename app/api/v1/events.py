from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Query, status

from app.api import deps
from app.core.errors import InvalidContent
from app.models.event import EventType
from app.schemas.event import EventAcknowledge, EventCreate, EventRead, EventReply, EventRespond
from app.services import ledger

router = APIRouter()


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
def create_event(
    body: EventCreate,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    dispatcher: deps.DispatcherDep,
    background_tasks: BackgroundTasks,
) -> Any:
    """
    Send an appreciation, favor request, ping, reassurance or wisdom to your partner.
    """
    if body.type not in ledger.SENDABLE_TYPES:
        raise InvalidContent(f"{body.type.value} events are created by replying to an event")
    event = ledger.create_event(session, current_user, body.receiver_id, body.type, body.content)
    background_tasks.add_task(dispatcher.dispatch, event.id)
    return event


@router.get("", response_model=List[EventRead])
def list_events(
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    types: Optional[List[EventType]] = Query(None),
    since: Optional[datetime] = Query(None, description="created_at >= since"),
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> Any:
    return ledger.list_events(
        session, current_user.id, types=types, since=since, limit=limit, offset=offset
    )


@router.get("/{event_id}", response_model=EventRead)
def read_event(event_id: int, session: deps.SessionDep, current_user: deps.CurrentUser) -> Any:
    return ledger.get_event(session, event_id, current_user)


@router.post("/{event_id}/respond", response_model=EventReply)
def respond_to_event(
    event_id: int,
    body: EventRespond,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    dispatcher: deps.DispatcherDep,
    background_tasks: BackgroundTasks,
) -> Any:
    """
    Accept or decline a favor, or thank your partner for a reassurance or wisdom.
    """
    event, reply = ledger.respond_to_event(session, event_id, current_user, body.response)
    background_tasks.add_task(dispatcher.dispatch, reply.id)
    return {"event": event, "reply": reply}


@router.post("/{event_id}/acknowledge", response_model=EventReply)
def acknowledge_event(
    event_id: int,
    body: EventAcknowledge,
    session: deps.SessionDep,
    current_user: deps.CurrentUser,
    dispatcher: deps.DispatcherDep,
    background_tasks: BackgroundTasks,
) -> Any:
    event, reply = ledger.acknowledge_event(
        session, event_id, current_user, body.kind, body.reaction
    )
    background_tasks.add_task(dispatcher.dispatch, reply.id)
    return {"event": event, "reply": reply}
