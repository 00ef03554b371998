"""
DocVault - Reminder Scheduler Tests
All dates are computed against a fixed `now`.
"""

import pytest
from datetime import datetime, timedelta

from docvault.modules.reminders import (
    REMINDER_LEAD_TIMES,
    build_expiry_reminders,
    format_reminder_message,
    schedule_expiry_reminders,
)
from docvault.schemas.document import DocumentCreate

NOW = datetime(2025, 1, 1, 9, 30)


def make_document(store, user_id, expiry_date, original_name="passport_john.jpg"):
    return store.create_document(DocumentCreate(
        user_id=user_id,
        filename="stored.jpg",
        original_name=original_name,
        mime_type="image/jpeg",
        size=1024,
        category="Identity Documents",
        expiry_date=expiry_date,
    ))


def test_lead_times():
    assert [days for days, _ in REMINDER_LEAD_TIMES] == [90, 30, 7]


def test_message_format():
    assert format_reminder_message("passport_john.jpg", "1 month") == "passport_john.jpg expires in 1 month"


def test_far_expiry_gets_three_reminders(memory_store, user_id):
    expiry = datetime(2026, 3, 1)
    document = make_document(memory_store, user_id, expiry)

    reminders = build_expiry_reminders(document, now=NOW)

    assert [r.reminder_date for r in reminders] == [
        expiry - timedelta(days=90),
        expiry - timedelta(days=30),
        expiry - timedelta(days=7),
    ]
    assert [r.message for r in reminders] == [
        "passport_john.jpg expires in 3 months",
        "passport_john.jpg expires in 1 month",
        "passport_john.jpg expires in 1 week",
    ]
    assert all(r.is_active for r in reminders)
    assert all(r.user_id == user_id and r.document_id == document.id for r in reminders)


@pytest.mark.parametrize("days_until_expiry, expected_count", [
    (365, 3),
    (91, 3),
    (60, 2),
    (31, 2),
    (10, 1),
    (8, 1),
    (7, 0),
    (3, 0),
    (-5, 0),
])
def test_only_future_triggers_are_kept(memory_store, user_id, days_until_expiry, expected_count):
    document = make_document(memory_store, user_id, NOW + timedelta(days=days_until_expiry))

    reminders = build_expiry_reminders(document, now=NOW)

    assert len(reminders) == expected_count
    assert all(r.reminder_date > NOW for r in reminders)


def test_trigger_exactly_now_is_skipped(memory_store, user_id):
    midnight = datetime(2025, 1, 1)
    document = make_document(memory_store, user_id, midnight + timedelta(days=30))

    reminders = build_expiry_reminders(document, now=midnight)

    assert [r.message.rsplit("in ", 1)[1] for r in reminders] == ["1 week"]


def test_document_without_expiry_gets_nothing(memory_store, user_id):
    document = make_document(memory_store, user_id, None)

    assert build_expiry_reminders(document, now=NOW) == []
    assert schedule_expiry_reminders(memory_store, document, now=NOW) == []
    assert memory_store.get_reminders(user_id) == []


def test_schedule_persists_reminders(store, user_id):
    document = make_document(store, user_id, NOW + timedelta(days=60))

    created = schedule_expiry_reminders(store, document, now=NOW)

    assert len(created) == 2
    stored = store.get_reminders_for_document(document.id, user_id)
    assert {r.id for r in stored} == {r.id for r in created}


def test_scheduling_twice_duplicates(memory_store, user_id):
    document = make_document(memory_store, user_id, NOW + timedelta(days=365))

    schedule_expiry_reminders(memory_store, document, now=NOW)
    schedule_expiry_reminders(memory_store, document, now=NOW)

    assert len(memory_store.get_reminders(user_id)) == 6
