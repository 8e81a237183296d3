"""Ticket intake session: drives the dependent selections against the API.

The session owns one form's worth of state. Network results are folded
into that state through the pure transitions in ``state``; everything the
user should see is pushed to the session's ``Notifier``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from time import monotonic

from ticket_intake.config import settings
from ticket_intake.logging import get_logger
from ticket_intake.schemas.catalog import Asset, Contact, Zone
from ticket_intake.schemas.tickets import ALL_ZONES, TicketCreated
from ticket_intake.services.field_service_client import FieldServiceClient, FieldServiceError
from ticket_intake.services.intake import state as intake_state
from ticket_intake.services.intake.errors import (
    CustomerNotFoundError,
    IntakeCreationError,
    IntakePreconditionError,
    IntakeValidationError,
)
from ticket_intake.services.intake.filters import FieldAvailability, can_submit, field_availability
from ticket_intake.services.intake.notifications import Notifier
from ticket_intake.services.intake.observability import (
    API_LATENCY,
    CATALOG_LOADS,
    INLINE_CREATIONS,
    TICKET_SUBMISSIONS,
)
from ticket_intake.services.intake.resolution import (
    build_ticket_payload,
    extract_error_message,
    resolve_zone_name,
    ticket_created_message,
    validate_asset_form,
    validate_contact_form,
)
from ticket_intake.services.intake.scope import IntakeMode, IntakeScope
from ticket_intake.services.intake.state import IntakeState
from ticket_intake.telemetry import get_tracer

logger = get_logger(__name__)
tracer = get_tracer(__name__)

ZONES_LOAD_FAILED = "Failed to load service zones. Please try again."
NO_ASSIGNED_ZONES = "You are not assigned to any service zone. Please contact your administrator."
ALL_CUSTOMERS_LOAD_FAILED = "Failed to load customers. Please try again."
ZONE_CUSTOMERS_LOAD_FAILED = "Failed to load customers for selected zone. Please try again."
CUSTOMER_REQUIRED = "Please select a customer first"
CONTACT_CREATE_FAILED = "Failed to create contact. Please try again."
ASSET_CREATE_FAILED = "Failed to create asset. Please try again."
TICKET_CREATE_FAILED = "Failed to create ticket. Please try again."
SUBMIT_IN_PROGRESS = "The ticket is already being created."
CONTACT_SAVE_IN_PROGRESS = "The contact is already being saved."
ASSET_SAVE_IN_PROGRESS = "The asset is already being saved."


@dataclass
class DialogState:
    is_open: bool = False
    is_saving: bool = False
    values: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SubmitResult:
    ticket: TicketCreated
    zone_id: int
    message: str
    redirect_to: str
    redirect_delay_seconds: float
    refresh: bool = True


def _creation_status(exc: FieldServiceError | ValueError) -> int:
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int) and 400 <= status_code < 500:
        return status_code
    return 502


class IntakeSession:
    def __init__(
        self,
        client: FieldServiceClient,
        scope: IntakeScope | None = None,
        notifier: Notifier | None = None,
        redirect_delay_seconds: float | None = None,
        zone_catalog_limit: int | None = None,
        session_id: str | None = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.client = client
        self.scope = scope or IntakeScope.admin()
        self.notifier = notifier or Notifier()
        self.redirect_delay_seconds = (
            settings.redirect_delay_seconds if redirect_delay_seconds is None else redirect_delay_seconds
        )
        self.zone_catalog_limit = zone_catalog_limit or settings.zone_catalog_limit
        self.state = IntakeState()
        self.is_submitting = False
        self.contact_dialog = DialogState()
        self.asset_dialog = DialogState()
        self.last_activity = monotonic()

    def _touch(self) -> None:
        self.last_activity = monotonic()

    @property
    def availability(self) -> FieldAvailability:
        return field_availability(self.state, self.is_submitting)

    @property
    def can_submit(self) -> bool:
        return can_submit(self.state, self.scope) and not self.is_submitting

    # -- zone catalog ------------------------------------------------------

    async def load_zones(self) -> list[Zone]:
        """Fetch the zone catalog once; failures leave an empty catalog."""
        self._touch()
        self.state = intake_state.zones_loading(self.state)
        with tracer.start_as_current_span("intake.load_zones"):
            try:
                with API_LATENCY.labels(operation="list_zones").time():
                    zones = await self.client.list_zones(limit=self.zone_catalog_limit)
            except (FieldServiceError, ValueError) as exc:
                logger.warning("intake_zones_load_failed session=%s error=%s", self.id, exc)
                CATALOG_LOADS.labels(resource="zones", status="error").inc()
                self.state = intake_state.zones_failed(self.state)
                self.notifier.error(ZONES_LOAD_FAILED)
                return []

        CATALOG_LOADS.labels(resource="zones", status="success").inc()
        visible = self.scope.visible_zones(zones)
        self.state = intake_state.zones_loaded(self.state, visible)
        logger.info("intake_zones_loaded session=%s count=%s", self.id, len(visible))

        if self.scope.mode == IntakeMode.zone:
            if not visible:
                self.notifier.error(NO_ASSIGNED_ZONES)
                return []
            await self.select_zone(visible[0].id)
        return visible

    # -- selections --------------------------------------------------------

    def _check_zone_allowed(self, zone_id: object) -> None:
        choice = intake_state.normalize_zone_choice(zone_id)
        if choice is None or self.scope.mode == IntakeMode.admin:
            return
        if choice == ALL_ZONES or choice not in self.scope.assigned_zone_ids:
            raise IntakeValidationError(
                "Zone is not assigned to you",
                {"zone_id": "Please select one of your assigned zones"},
            )

    async def select_zone(self, zone_id: object) -> IntakeState:
        """Select a zone and load its customers.

        Responses for a zone that has since been replaced are ignored, so
        the last selection made wins regardless of response order.
        """
        self._touch()
        self._check_zone_allowed(zone_id)
        previous = self.state
        self.state = intake_state.zone_changed(self.state, zone_id)
        if self.state is previous:
            return self.state

        choice = self.state.selection.zone_id
        if choice is None:
            return self.state

        generation = self.state.zone_generation
        service_zone_id = None if choice == ALL_ZONES else choice
        with tracer.start_as_current_span("intake.load_customers"):
            try:
                with API_LATENCY.labels(operation="list_customers").time():
                    customers = await self.client.list_customers(service_zone_id=service_zone_id)
            except (FieldServiceError, ValueError) as exc:
                if not intake_state.is_current_generation(self.state, generation):
                    CATALOG_LOADS.labels(resource="customers", status="stale").inc()
                    logger.info("intake_customers_stale_error session=%s zone=%s", self.id, choice)
                    return self.state
                logger.warning("intake_customers_load_failed session=%s zone=%s error=%s", self.id, choice, exc)
                CATALOG_LOADS.labels(resource="customers", status="error").inc()
                self.state = intake_state.customers_failed(self.state, generation)
                self.notifier.error(ALL_CUSTOMERS_LOAD_FAILED if choice == ALL_ZONES else ZONE_CUSTOMERS_LOAD_FAILED)
                return self.state

        if not intake_state.is_current_generation(self.state, generation):
            CATALOG_LOADS.labels(resource="customers", status="stale").inc()
            logger.info("intake_customers_stale_response session=%s zone=%s", self.id, choice)
            return self.state

        CATALOG_LOADS.labels(resource="customers", status="success").inc()
        self.state = intake_state.customers_loaded(self.state, generation, customers)
        logger.info("intake_customers_loaded session=%s zone=%s count=%s", self.id, choice, len(customers))
        return self.state

    def select_customer(self, customer_id: object) -> IntakeState:
        self._touch()
        self.state = intake_state.customer_changed(self.state, customer_id)
        return self.state

    def select_contact(self, contact_id: object) -> IntakeState:
        self._touch()
        self.state = intake_state.contact_selected(self.state, contact_id)
        return self.state

    def select_asset(self, asset_id: object) -> IntakeState:
        self._touch()
        self.state = intake_state.asset_selected(self.state, asset_id)
        return self.state

    def update_fields(self, **changes) -> IntakeState:
        self._touch()
        self.state = intake_state.fields_updated(self.state, **changes)
        return self.state

    # -- inline creation ---------------------------------------------------

    def open_contact_dialog(self) -> None:
        self.contact_dialog.is_open = True

    def close_contact_dialog(self) -> None:
        self.contact_dialog = DialogState()

    def open_asset_dialog(self) -> None:
        self.asset_dialog.is_open = True

    def close_asset_dialog(self) -> None:
        self.asset_dialog = DialogState()

    def _require_customer(self, entity: str) -> str:
        customer_id = self.state.selection.customer_id
        if not customer_id:
            INLINE_CREATIONS.labels(entity=entity, status="rejected").inc()
            self.notifier.error(CUSTOMER_REQUIRED)
            raise IntakePreconditionError("customer_required", CUSTOMER_REQUIRED)
        return customer_id

    async def create_contact(self, name: str, phone: str) -> Contact:
        """Create a contact for the selected customer and select it."""
        if self.contact_dialog.is_saving:
            raise IntakePreconditionError("contact_save_in_progress", CONTACT_SAVE_IN_PROGRESS, status_code=409)
        self._touch()
        self.contact_dialog.is_open = True
        self.contact_dialog.values = {"name": name, "phone": phone}
        customer_id = self._require_customer("contact")
        payload = validate_contact_form(name, phone, customer_id)

        self.contact_dialog.is_saving = True
        try:
            with API_LATENCY.labels(operation="create_contact").time():
                contact = await self.client.create_contact(payload)
        except (FieldServiceError, ValueError) as exc:
            message = extract_error_message(exc, CONTACT_CREATE_FAILED, keys=("message",), use_exception_text=False)
            logger.warning("intake_contact_create_failed session=%s customer=%s error=%s", self.id, customer_id, exc)
            INLINE_CREATIONS.labels(entity="contact", status="error").inc()
            self.notifier.error(message)
            raise IntakeCreationError("contact_create_failed", message, _creation_status(exc)) from exc
        finally:
            self.contact_dialog.is_saving = False

        still_selected = self.state.selection.customer_id == customer_id
        self.state = intake_state.contact_created(self.state, customer_id, contact)
        self.contact_dialog = DialogState()
        INLINE_CREATIONS.labels(entity="contact", status="success").inc()
        logger.info("intake_contact_created session=%s customer=%s contact=%s", self.id, customer_id, contact.id)
        if still_selected:
            self.notifier.success(f'Contact "{contact.name}" has been created and selected.')
        else:
            self.notifier.success(f'Contact "{contact.name}" has been created.')
        return contact

    async def create_asset(self, model: str, serial_no: str) -> Asset:
        """Create an asset for the selected customer and select it."""
        if self.asset_dialog.is_saving:
            raise IntakePreconditionError("asset_save_in_progress", ASSET_SAVE_IN_PROGRESS, status_code=409)
        self._touch()
        self.asset_dialog.is_open = True
        self.asset_dialog.values = {"model": model, "serial_no": serial_no}
        customer_id = self._require_customer("asset")
        payload = validate_asset_form(model, serial_no, customer_id)

        self.asset_dialog.is_saving = True
        try:
            with API_LATENCY.labels(operation="create_asset").time():
                asset = await self.client.create_asset(payload)
        except (FieldServiceError, ValueError) as exc:
            message = extract_error_message(exc, ASSET_CREATE_FAILED, keys=("message",), use_exception_text=False)
            logger.warning("intake_asset_create_failed session=%s customer=%s error=%s", self.id, customer_id, exc)
            INLINE_CREATIONS.labels(entity="asset", status="error").inc()
            self.notifier.error(message)
            raise IntakeCreationError("asset_create_failed", message, _creation_status(exc)) from exc
        finally:
            self.asset_dialog.is_saving = False

        still_selected = self.state.selection.customer_id == customer_id
        self.state = intake_state.asset_created(self.state, customer_id, asset)
        self.asset_dialog = DialogState()
        INLINE_CREATIONS.labels(entity="asset", status="success").inc()
        logger.info("intake_asset_created session=%s customer=%s asset=%s", self.id, customer_id, asset.id)
        if still_selected:
            self.notifier.success(f'Asset "{asset.model}" has been created and selected.')
        else:
            self.notifier.success(f'Asset "{asset.model}" has been created.')
        return asset

    # -- submit ------------------------------------------------------------

    async def submit(self) -> SubmitResult:
        """Validate, resolve the effective zone and create the ticket.

        On success the form is reset and the result says where to go next.
        On failure the form keeps its values.
        """
        if self.is_submitting:
            raise IntakePreconditionError("submit_in_progress", SUBMIT_IN_PROGRESS, status_code=409)
        self._touch()
        with tracer.start_as_current_span("intake.submit"):
            try:
                payload = build_ticket_payload(self.state, self.scope)
            except IntakeValidationError:
                TICKET_SUBMISSIONS.labels(status="invalid").inc()
                raise
            except CustomerNotFoundError as exc:
                TICKET_SUBMISSIONS.labels(status="unresolved").inc()
                logger.warning(
                    "intake_zone_unresolved session=%s customer=%s", self.id, self.state.selection.customer_id
                )
                self.notifier.error(f"Error creating ticket: {exc.detail}")
                raise

            customer = self.state.find_customer(payload.customer_id)
            zone_name = resolve_zone_name(self.state, payload.zone_id)
            self.is_submitting = True
            try:
                with API_LATENCY.labels(operation="create_ticket").time():
                    ticket = await self.client.create_ticket(payload)
            except (FieldServiceError, ValueError) as exc:
                message = extract_error_message(exc, TICKET_CREATE_FAILED)
                logger.warning("intake_ticket_create_failed session=%s error=%s", self.id, exc)
                TICKET_SUBMISSIONS.labels(status="error").inc()
                self.notifier.error(f"Error creating ticket: {message}")
                raise IntakeCreationError("ticket_create_failed", message, _creation_status(exc)) from exc
            finally:
                self.is_submitting = False

        message = ticket_created_message(ticket, customer, zone_name)
        self.notifier.success(message)
        TICKET_SUBMISSIONS.labels(status="success").inc()
        logger.info("intake_ticket_created session=%s ticket=%s zone=%s", self.id, ticket.id, payload.zone_id)

        self.reset()
        return SubmitResult(
            ticket=ticket,
            zone_id=payload.zone_id,
            message=message,
            redirect_to=self.scope.tickets_path,
            redirect_delay_seconds=self.redirect_delay_seconds,
        )

    def reset(self) -> None:
        self.state = intake_state.form_reset(self.state)
        self.contact_dialog = DialogState()
        self.asset_dialog = DialogState()
