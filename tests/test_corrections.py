import pytest

from homescore.core.errors import ConflictError, NotFoundError, ValidationError
from homescore.corrections.schemas import CorrectionStatus
from homescore.corrections.service import CorrectionLedger
from homescore.home_score.context import load_context
from homescore.home_score.schemas import VerificationStatus
from homescore.home_score.verification import field_status
from homescore.properties.fields import FIELDS_BY_KEY


@pytest.fixture
def ledger(db, clock):
    return CorrectionLedger(db, clock=clock)


def test_submit_captures_current_value(ledger, make_property, clock):
    prop = make_property(roof_type="SHINGLE")

    record = ledger.submit_correction(
        prop.id, 1, "roof_type", "  Roof was replaced with standing seam metal in 2023. ", proposed_value="METAL"
    )

    assert record.status == CorrectionStatus.SUBMITTED
    assert record.current_value == "SHINGLE"
    assert record.proposed_value == "METAL"
    assert record.title == "Correction requested: Roof type"
    assert record.detail == "Roof was replaced with standing seam metal in 2023."
    assert record.submitted_at == clock.now

    events = ledger.list_events(prop.id)
    assert [(e.status, e.field_key) for e in events] == [(CorrectionStatus.SUBMITTED, "roof_type")]


def test_general_correction_has_no_current_value(ledger, make_property):
    prop = make_property()
    record = ledger.submit_correction(prop.id, 1, "general", "Address is listed on the wrong street", title="Wrong street")
    assert record.current_value is None
    assert record.title == "Wrong street"


def test_submit_requires_ownership(ledger, make_property):
    prop = make_property(owner_user_id=1)
    with pytest.raises(NotFoundError):
        ledger.submit_correction(prop.id, 2, "roof_type", "Roof is actually tile")


def test_submit_rejects_unknown_field(ledger, make_property):
    prop = make_property()
    with pytest.raises(ValidationError):
        ledger.submit_correction(prop.id, 1, "pool_depth", "We have no pool at all")


def test_submit_rejects_short_detail(ledger, make_property):
    prop = make_property()
    with pytest.raises(ValidationError):
        ledger.submit_correction(prop.id, 1, "roof_type", "  no ")


def test_transition_is_one_way(ledger, make_property, clock):
    prop = make_property()
    record = ledger.submit_correction(prop.id, 1, "year_built", "Home was built in 1987, not 1995")

    clock.advance(days=1)
    applied = ledger.transition(record.id, CorrectionStatus.APPLIED, resolved_by=500, note="Verified deed")

    assert applied.status == CorrectionStatus.APPLIED
    assert applied.resolved_at == clock.now
    assert applied.resolution_note == "Verified deed"
    assert [e.status for e in ledger.list_events(prop.id)] == [CorrectionStatus.APPLIED, CorrectionStatus.SUBMITTED]

    with pytest.raises(ConflictError):
        ledger.transition(record.id, CorrectionStatus.REJECTED)


def test_transition_unknown_correction(ledger):
    with pytest.raises(NotFoundError):
        ledger.transition(999, CorrectionStatus.APPLIED)


def test_open_corrections_mark_fields_for_review(ledger, make_property, db):
    prop = make_property()
    record = ledger.submit_correction(prop.id, 1, "roof_type", "Roof type should be metal")

    ctx = load_context(db, prop.id, 1)
    assert ledger.open_field_keys(prop.id) == {"roof_type"}
    assert field_status(ctx, FIELDS_BY_KEY["roof_type"]) == VerificationStatus.REVIEW_NEEDED
    assert not ctx.is_trusted(FIELDS_BY_KEY["roof_type"])

    ledger.transition(record.id, CorrectionStatus.REJECTED)
    assert ledger.open_field_keys(prop.id) == set()
    assert field_status(load_context(db, prop.id, 1), FIELDS_BY_KEY["roof_type"]) == VerificationStatus.UNVERIFIED


def test_list_corrections_newest_first(ledger, make_property, clock):
    prop = make_property()
    first = ledger.submit_correction(prop.id, 1, "roof_type", "Roof type should be metal")
    clock.advance(hours=1)
    second = ledger.submit_correction(prop.id, 1, "heating_type", "Heating is a heat pump now")

    assert [c.id for c in ledger.list_corrections(prop.id)] == [second.id, first.id]
