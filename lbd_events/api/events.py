from fastapi import APIRouter, Depends, HTTPException, Query, status

from lbd_events.api.deps import get_current_admin, get_event_repository
from lbd_events.models.admin import AdminProfile
from lbd_events.models.common import utcnow
from lbd_events.models.event import Event, EventCategory, EventValidationError
from lbd_events.schemas.events import (
    EventCreateRequest,
    EventCreateResponse,
    EventOut,
    EventsSummaryOut,
    EventStatsUpdateRequest,
    EventUpdateRequest,
    OkResponse,
)
from lbd_events.services.events import (
    EventNotFoundError,
    EventOperationError,
    EventRepository,
    TimeFilter,
    filter_events,
    is_finished,
    summarize_events,
)

router = APIRouter(prefix="/events", tags=["events"])


def _get_event_or_404(repo: EventRepository, event_id: str) -> Event:
    try:
        event = repo.get_by_id(event_id)
    except EventOperationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("", response_model=list[EventOut])
def list_events(
    category: EventCategory | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    when: TimeFilter = Query(default="all"),
    repo: EventRepository = Depends(get_event_repository),
):
    try:
        events = repo.get_by_category(category) if category else repo.get_all()
    except EventOperationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    now = utcnow()
    return [EventOut.from_event(event, now) for event in filter_events(events, search=search, when=when, now=now)]


@router.get("/summary", response_model=EventsSummaryOut)
def events_summary(repo: EventRepository = Depends(get_event_repository)):
    try:
        events = repo.get_all()
    except EventOperationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    now = utcnow()
    return EventsSummaryOut.from_summary(summarize_events(events, now), now)


@router.post("", response_model=EventCreateResponse)
def create_event(
    payload: EventCreateRequest,
    repo: EventRepository = Depends(get_event_repository),
    _: AdminProfile = Depends(get_current_admin),
):
    try:
        event_id = repo.create(payload)
    except EventOperationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return EventCreateResponse(id=event_id)


@router.get("/{event_id}", response_model=EventOut)
def event_details(event_id: str, repo: EventRepository = Depends(get_event_repository)):
    return EventOut.from_event(_get_event_or_404(repo, event_id))


@router.patch("/{event_id}", response_model=EventOut)
def update_event(
    event_id: str,
    payload: EventUpdateRequest,
    repo: EventRepository = Depends(get_event_repository),
    _: AdminProfile = Depends(get_current_admin),
):
    event = _get_event_or_404(repo, event_id)
    try:
        payload.check_against(event)
    except EventValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors) from exc

    try:
        repo.update(event_id, payload)
    except EventNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Event not found") from exc
    except EventOperationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return EventOut.from_event(_get_event_or_404(repo, event_id))


@router.put("/{event_id}/stats", response_model=EventOut)
def update_event_stats(
    event_id: str,
    payload: EventStatsUpdateRequest,
    repo: EventRepository = Depends(get_event_repository),
    _: AdminProfile = Depends(get_current_admin),
):
    event = _get_event_or_404(repo, event_id)
    if not is_finished(event):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "event_not_finished", "endDate": event.end_date.isoformat()},
        )

    try:
        repo.update_stats_and_gallery(event_id, payload.stats, payload.gallery, payload.album_url)
    except EventNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Event not found") from exc
    except EventOperationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return EventOut.from_event(_get_event_or_404(repo, event_id))


@router.delete("/{event_id}", response_model=OkResponse)
def delete_event(
    event_id: str,
    repo: EventRepository = Depends(get_event_repository),
    _: AdminProfile = Depends(get_current_admin),
):
    _get_event_or_404(repo, event_id)
    try:
        repo.delete(event_id)
    except EventOperationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return OkResponse(ok=True)
