"""
Tests for the SQLAlchemy-backed pill regimen store (in-memory SQLite).
"""
from datetime import time

import pytest
from sqlalchemy import func, select

from pillreminder.core.exceptions import DuplicateExternalIdError, NotFoundError
from pillreminder.crud.pill_regimen import AllPillRegimens
from pillreminder.models.pill_regimen import Dosage, Medicine, PillRegimen


@pytest.fixture
def all_pill_regimens(db_session):
    return AllPillRegimens(db_session)


def test_add_then_get_returns_the_aggregate(all_pill_regimens, db_session, today):
    regimen = PillRegimen("patient-9", 10, 3, [
        Dosage(time(9, 0), [Medicine("b", today, today), Medicine("a", today, today)]),
    ])
    regimen.assign_identifiers()

    all_pill_regimens.add(regimen)
    db_session.expunge_all()
    loaded = all_pill_regimens.get(regimen.id)

    assert loaded is not regimen
    assert loaded.external_id == "patient-9"
    assert loaded.reminder_repeat_window_in_minutes == 10
    assert loaded.reminder_repeat_count == 3
    assert [d.id for d in loaded.dosages] == [regimen.dosages[0].id]
    assert loaded.dosages[0].job_id == regimen.dosages[0].job_id
    assert loaded.dosages[0].get_dosage_time() == time(9, 0)
    assert loaded.dosages[0].medicine_names() == ["a", "b"]


def test_get_unknown_id_is_not_found(all_pill_regimens):
    with pytest.raises(NotFoundError):
        all_pill_regimens.get("missing")


def test_find_by_external_id(all_pill_regimens, stored_regimen):
    assert all_pill_regimens.find_by_external_id("patient-1").id == stored_regimen.id
    with pytest.raises(NotFoundError):
        all_pill_regimens.find_by_external_id("nobody")


def test_medicines_for_lists_names_in_order(all_pill_regimens, stored_regimen):
    evening = next(d for d in stored_regimen.dosages if d.dosage_hour == 20)

    assert all_pill_regimens.medicines_for(stored_regimen.id, evening.id) == ["aspirin", "ibuprofen"]


def test_medicines_for_unknown_dosage_is_not_found(all_pill_regimens, stored_regimen):
    with pytest.raises(NotFoundError):
        all_pill_regimens.medicines_for(stored_regimen.id, "missing")


def test_stop_todays_reminders_marks_only_that_dosage(all_pill_regimens, stored_regimen, db_session, today):
    morning = next(d for d in stored_regimen.dosages if d.dosage_hour == 10)
    evening = next(d for d in stored_regimen.dosages if d.dosage_hour == 20)

    all_pill_regimens.stop_todays_reminders(stored_regimen.id, morning.id)
    db_session.expunge_all()
    loaded = all_pill_regimens.get(stored_regimen.id)

    assert loaded.get_dosage(morning.id).current_dosage_date == today
    assert loaded.get_dosage(morning.id).is_taken_on(today)
    assert not loaded.get_dosage(evening.id).is_taken_on(today)


def test_stop_todays_reminders_for_unknown_regimen_is_not_found(all_pill_regimens):
    with pytest.raises(NotFoundError):
        all_pill_regimens.stop_todays_reminders("missing", "dosage")


def test_remove_deletes_dosages_and_medicines(all_pill_regimens, stored_regimen, db_session):
    all_pill_regimens.remove(stored_regimen)

    for model in (PillRegimen, Dosage, Medicine):
        assert db_session.execute(select(func.count()).select_from(model)).scalar() == 0


def test_external_id_can_be_reused_after_remove(all_pill_regimens, stored_regimen, today):
    all_pill_regimens.remove(stored_regimen)
    replacement = PillRegimen("patient-1", 5, 1, [Dosage(time(6, 0), [Medicine("x", today, today)])])
    replacement.assign_identifiers()

    all_pill_regimens.add(replacement)

    assert all_pill_regimens.find_by_external_id("patient-1").id == replacement.id


def test_add_with_taken_external_id_rolls_back(all_pill_regimens, stored_regimen, db_session, today):
    duplicate = PillRegimen("patient-1", 5, 1, [Dosage(time(6, 0), [Medicine("x", today, today)])])
    duplicate.assign_identifiers()

    with pytest.raises(DuplicateExternalIdError):
        all_pill_regimens.add(duplicate)

    # Session is usable again and still holds only the original regimen
    assert all_pill_regimens.find_by_external_id("patient-1").id == stored_regimen.id
    assert db_session.execute(select(func.count()).select_from(PillRegimen)).scalar() == 1
    assert db_session.execute(select(func.count()).select_from(Dosage)).scalar() == 2
