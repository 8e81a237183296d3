from dataclasses import replace

import pytest

from ticket_intake.schemas.catalog import Asset, Contact, Customer
from ticket_intake.services.intake import state as intake_state
from ticket_intake.services.intake.errors import IntakeValidationError
from ticket_intake.services.intake.state import IntakeState, Selection


def _loaded(customers, zone_id=1) -> IntakeState:
    state = intake_state.zone_changed(IntakeState(), zone_id)
    return intake_state.customers_loaded(state, state.zone_generation, customers)


def test_zone_change_resets_dependent_selections(acme):
    state = _loaded([acme])
    state = intake_state.customer_changed(state, "10")
    assert state.selection.contact_id == "100"

    state = intake_state.zone_changed(state, 7)

    assert state.selection == Selection(zone_id=7)
    assert state.customers == ()
    assert state.contacts == ()
    assert state.assets == ()
    assert state.is_loading_customers is True


def test_reselecting_same_zone_is_a_no_op(acme):
    state = intake_state.customer_changed(_loaded([acme]), "10")

    assert intake_state.zone_changed(state, 1) is state
    assert intake_state.zone_changed(state, "1") is state


def test_clearing_zone_does_not_start_a_load(acme):
    state = intake_state.zone_changed(_loaded([acme]), None)

    assert state.selection.zone_id is None
    assert state.customers == ()
    assert state.is_loading_customers is False


def test_customers_loaded_for_superseded_zone_is_dropped(acme, globex):
    state = intake_state.zone_changed(IntakeState(), 1)
    first_generation = state.zone_generation
    state = intake_state.zone_changed(state, 7)

    stale = intake_state.customers_loaded(state, first_generation, [acme])
    assert stale is state

    fresh = intake_state.customers_loaded(state, state.zone_generation, [globex])
    assert [c.id for c in fresh.customers] == [20]
    assert fresh.is_loading_customers is False


def test_customers_failed_clears_list_and_selections():
    state = intake_state.zone_changed(IntakeState(), 1)
    state = intake_state.customers_failed(state, state.zone_generation)

    assert state.customers == ()
    assert state.selection == Selection(zone_id=1)
    assert state.is_loading_customers is False


def test_customer_with_single_contact_and_asset_gets_both_selected():
    customer = Customer(
        id=5,
        company_name="Solo",
        service_zone_id=1,
        contacts=[Contact(id=50, name="Ann")],
        assets=[Asset(id=55, model="X200", serial_no="SN-1")],
    )
    state = intake_state.customer_changed(_loaded([customer]), "5")

    assert state.selection.contact_id == "50"
    assert state.selection.asset_id == "55"


def test_customer_with_several_contacts_leaves_contact_unselected(globex):
    state = intake_state.customer_changed(_loaded([globex], zone_id=7), "20")

    assert [c.id for c in state.contacts] == [200, 201]
    assert state.selection.contact_id == ""
    assert state.selection.asset_id == "300"


def test_switching_customer_replaces_lists(acme, globex):
    state = _loaded([acme, globex], zone_id="all")
    state = intake_state.customer_changed(state, "20")
    state = intake_state.contact_selected(state, "201")

    state = intake_state.customer_changed(state, "10")

    assert [c.id for c in state.contacts] == [100]
    assert state.assets == ()
    assert state.selection.contact_id == "100"
    assert state.selection.asset_id == ""


def test_clearing_customer_clears_lists(acme):
    state = intake_state.customer_changed(_loaded([acme]), "10")
    state = intake_state.customer_changed(state, "")

    assert state.contacts == ()
    assert state.selection.contact_id == ""


def test_unknown_customer_shows_empty_lists(acme):
    state = intake_state.customer_changed(_loaded([acme]), "99")

    assert state.selection.customer_id == "99"
    assert state.contacts == ()
    assert state.assets == ()


def test_selecting_contact_outside_displayed_list_is_rejected(acme):
    state = intake_state.customer_changed(_loaded([acme]), "10")

    with pytest.raises(IntakeValidationError) as exc_info:
        intake_state.contact_selected(state, "200")

    assert "contact_id" in exc_info.value.field_errors


def test_selecting_asset_outside_displayed_list_is_rejected(acme):
    state = intake_state.customer_changed(_loaded([acme]), "10")

    with pytest.raises(IntakeValidationError):
        intake_state.asset_selected(state, "55")


def test_contact_created_updates_live_list_cache_and_selection(acme):
    state = intake_state.customer_changed(_loaded([acme]), "10")
    contact = Contact(id=101, name="Carol", phone="5551234567")

    state = intake_state.contact_created(state, "10", contact)

    assert [c.id for c in state.contacts] == [100, 101]
    assert [c.id for c in state.find_customer("10").contacts] == [100, 101]
    assert state.selection.contact_id == "101"


def test_asset_created_after_customer_switch_only_updates_cache(acme, globex):
    state = _loaded([acme, globex], zone_id="all")
    state = intake_state.customer_changed(state, "20")
    asset = Asset(id=55, model="X200", serial_no="SN-1")

    state = intake_state.asset_created(state, "10", asset)

    assert [a.id for a in state.find_customer("10").assets] == [55]
    assert [a.id for a in state.assets] == [300]
    assert state.selection.asset_id == "300"


def test_created_contact_survives_switching_away_and_back(acme, globex):
    state = _loaded([acme, globex], zone_id="all")
    state = intake_state.customer_changed(state, "10")
    state = intake_state.contact_created(state, "10", Contact(id=101, name="Carol"))
    state = intake_state.customer_changed(state, "20")

    state = intake_state.customer_changed(state, "10")

    assert [c.id for c in state.contacts] == [100, 101]


def test_form_reset_keeps_zone_catalog_and_bumps_generation(north_zone, acme):
    state = replace(_loaded([acme]), zones=(north_zone,))
    state = intake_state.fields_updated(state, title="Printer jam")

    reset = intake_state.form_reset(state)

    assert reset.zones == (north_zone,)
    assert reset.selection == Selection()
    assert reset.fields.title == ""
    assert reset.zone_generation == state.zone_generation + 1


def test_fields_updated_rejects_unknown_fields():
    with pytest.raises(IntakeValidationError):
        intake_state.fields_updated(IntakeState(), colour="red")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, None), ("", None), ("all", "all"), (3, 3), (" 12 ", 12)],
)
def test_normalize_zone_choice(raw, expected):
    assert intake_state.normalize_zone_choice(raw) == expected


def test_normalize_zone_choice_rejects_garbage():
    with pytest.raises(IntakeValidationError):
        intake_state.normalize_zone_choice("north")
