from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status

from ticket_intake.api.deps import get_field_service_client, get_registry
from ticket_intake.schemas.intake import (
    AssetCreateRequest,
    AvailabilityRead,
    ContactCreateRequest,
    DialogRead,
    DialogToggle,
    NotificationRead,
    OptionSelect,
    SelectionRead,
    SessionCreate,
    SessionRead,
    SubmitRead,
    TicketFieldsRead,
    TicketFieldsUpdate,
    ZoneSelect,
)
from ticket_intake.services.field_service_client import FieldServiceClient
from ticket_intake.services.intake.errors import IntakeError
from ticket_intake.services.intake.registry import SessionRegistry
from ticket_intake.services.intake.scope import IntakeMode, IntakeScope
from ticket_intake.services.intake.session import IntakeSession

router = APIRouter(prefix="/intake", tags=["intake"])


def _notifications(session: IntakeSession) -> list[NotificationRead]:
    return [NotificationRead(level=item.level.value, message=item.message) for item in session.notifier.drain()]


def _snapshot(session: IntakeSession) -> SessionRead:
    state = session.state
    availability = session.availability
    return SessionRead(
        id=session.id,
        mode=session.scope.mode,
        zones=list(state.zones),
        customers=list(state.customers),
        contacts=list(state.contacts),
        assets=list(state.assets),
        selection=SelectionRead(
            zone_id=state.selection.zone_id,
            customer_id=state.selection.customer_id,
            contact_id=state.selection.contact_id,
            asset_id=state.selection.asset_id,
        ),
        fields=TicketFieldsRead(
            title=state.fields.title,
            description=state.fields.description,
            priority=state.fields.priority,
            call_type=state.fields.call_type,
            error_details=state.fields.error_details,
            related_machine_ids=state.fields.related_machine_ids,
        ),
        availability=AvailabilityRead(
            customer=availability.customer,
            contact=availability.contact,
            asset=availability.asset,
        ),
        is_loading_zones=state.is_loading_zones,
        is_loading_customers=state.is_loading_customers,
        is_submitting=session.is_submitting,
        can_submit=session.can_submit,
        contact_dialog=DialogRead(**vars(session.contact_dialog)),
        asset_dialog=DialogRead(**vars(session.asset_dialog)),
        notifications=_notifications(session),
    )


def _get_session(session_id: str, sessions: SessionRegistry) -> IntakeSession:
    try:
        return sessions.get(session_id)
    except IntakeError as exc:
        raise exc.to_http_exception() from exc


@router.post("/sessions", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreate,
    client: FieldServiceClient = Depends(get_field_service_client),
    sessions: SessionRegistry = Depends(get_registry),
):
    if payload.mode == IntakeMode.zone:
        scope = IntakeScope.zone_user(payload.assigned_zone_ids)
    else:
        scope = IntakeScope.admin()
    session = sessions.add(IntakeSession(client=client, scope=scope))
    await session.load_zones()
    return _snapshot(session)


@router.get("/sessions/{session_id}", response_model=SessionRead)
def get_session(session_id: str, sessions: SessionRegistry = Depends(get_registry)):
    return _snapshot(_get_session(session_id, sessions))


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(session_id: str, sessions: SessionRegistry = Depends(get_registry)):
    try:
        sessions.discard(session_id)
    except IntakeError as exc:
        raise exc.to_http_exception() from exc


@router.put("/sessions/{session_id}/zone", response_model=SessionRead)
async def select_zone(session_id: str, payload: ZoneSelect, sessions: SessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, sessions)
    try:
        await session.select_zone(payload.zone_id)
    except IntakeError as exc:
        raise exc.to_http_exception() from exc
    return _snapshot(session)


@router.put("/sessions/{session_id}/customer", response_model=SessionRead)
def select_customer(session_id: str, payload: OptionSelect, sessions: SessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, sessions)
    session.select_customer(payload.id)
    return _snapshot(session)


@router.put("/sessions/{session_id}/contact", response_model=SessionRead)
def select_contact(session_id: str, payload: OptionSelect, sessions: SessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, sessions)
    try:
        session.select_contact(payload.id)
    except IntakeError as exc:
        raise exc.to_http_exception() from exc
    return _snapshot(session)


@router.put("/sessions/{session_id}/asset", response_model=SessionRead)
def select_asset(session_id: str, payload: OptionSelect, sessions: SessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, sessions)
    try:
        session.select_asset(payload.id)
    except IntakeError as exc:
        raise exc.to_http_exception() from exc
    return _snapshot(session)


@router.patch("/sessions/{session_id}/fields", response_model=SessionRead)
def update_fields(session_id: str, payload: TicketFieldsUpdate, sessions: SessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, sessions)
    changes = payload.model_dump(exclude_unset=True)
    if "priority" in changes and changes["priority"] is None:
        raise HTTPException(status_code=400, detail="priority cannot be cleared")
    for key in ("title", "description"):
        if key in changes and changes[key] is None:
            changes[key] = ""
    try:
        session.update_fields(**changes)
    except IntakeError as exc:
        raise exc.to_http_exception() from exc
    return _snapshot(session)


@router.put("/sessions/{session_id}/dialogs/{entity}", response_model=SessionRead)
def toggle_dialog(
    session_id: str,
    entity: Literal["contact", "asset"],
    payload: DialogToggle,
    sessions: SessionRegistry = Depends(get_registry),
):
    session = _get_session(session_id, sessions)
    if entity == "contact" and payload.is_open:
        session.open_contact_dialog()
    elif entity == "contact":
        session.close_contact_dialog()
    elif payload.is_open:
        session.open_asset_dialog()
    else:
        session.close_asset_dialog()
    return _snapshot(session)


@router.post("/sessions/{session_id}/contacts", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def create_contact(
    session_id: str,
    payload: ContactCreateRequest,
    sessions: SessionRegistry = Depends(get_registry),
):
    session = _get_session(session_id, sessions)
    try:
        await session.create_contact(name=payload.name, phone=payload.phone)
    except IntakeError as exc:
        raise exc.to_http_exception() from exc
    return _snapshot(session)


@router.post("/sessions/{session_id}/assets", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def create_asset(
    session_id: str,
    payload: AssetCreateRequest,
    sessions: SessionRegistry = Depends(get_registry),
):
    session = _get_session(session_id, sessions)
    try:
        await session.create_asset(model=payload.model, serial_no=payload.serial_no)
    except IntakeError as exc:
        raise exc.to_http_exception() from exc
    return _snapshot(session)


@router.post("/sessions/{session_id}/submit", response_model=SubmitRead, status_code=status.HTTP_201_CREATED)
async def submit(session_id: str, sessions: SessionRegistry = Depends(get_registry)):
    session = _get_session(session_id, sessions)
    try:
        result = await session.submit()
    except IntakeError as exc:
        raise exc.to_http_exception() from exc
    return SubmitRead(
        ticket_id=result.ticket.id,
        ticket_number=result.ticket.display_number,
        zone_id=result.zone_id,
        message=result.message,
        redirect_to=result.redirect_to,
        redirect_delay_seconds=result.redirect_delay_seconds,
        refresh=result.refresh,
        notifications=_notifications(session),
    )
