"""
DocVault - Document Store Tests
Every test runs against both MemoryStorage and SQLStorage.
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from docvault.schemas.category import CategoryCreate
from docvault.schemas.document import DocumentCreate
from docvault.schemas.reminder import ReminderCreate
from docvault.storage import DocumentStore, MemoryStorage, PersistenceError, SQLStorage

NOW = datetime(2025, 6, 1, 12, 0)


def new_document(user_id, **overrides) -> DocumentCreate:
    fields = dict(
        user_id=user_id,
        filename="0b6c1e2a.jpg",
        original_name="passport_john.jpg",
        mime_type="image/jpeg",
        size=2048,
        category="Identity Documents",
        tags=["travel", "uk"],
        metadata={"fileExtension": ".jpg"},
    )
    fields.update(overrides)
    return DocumentCreate(**fields)


def new_reminder(user_id, document_id, reminder_date, is_active=True) -> ReminderCreate:
    return ReminderCreate(
        user_id=user_id,
        document_id=document_id,
        reminder_date=reminder_date,
        message="passport_john.jpg expires in 1 month",
        is_active=is_active,
    )


def test_stores_satisfy_the_protocol(memory_store, sql_store):
    assert isinstance(memory_store, DocumentStore)
    assert isinstance(sql_store, DocumentStore)


# =============================================================================
# Documents
# =============================================================================

def test_create_and_get_document(store, user_id):
    created = store.create_document(new_document(user_id, expiry_date="2026-03-01"))

    fetched = store.get_document(created.id, user_id)

    assert fetched == created
    assert fetched.original_name == "passport_john.jpg"
    assert fetched.tags == ["travel", "uk"]
    assert fetched.metadata == {"fileExtension": ".jpg"}
    assert fetched.expiry_date == datetime(2026, 3, 1)
    assert fetched.is_encrypted is True
    assert fetched.uploaded_at is not None


def test_documents_are_scoped_to_their_owner(store, user_id, other_user_id):
    created = store.create_document(new_document(user_id))

    assert store.get_document(created.id, other_user_id) is None
    assert store.get_documents(other_user_id) == []
    assert store.update_document(created.id, other_user_id, {"tags": []}) is None
    assert store.delete_document(created.id, other_user_id) is False
    assert store.get_document(created.id, user_id) is not None


def test_missing_document(store, user_id):
    assert store.get_document("does-not-exist", user_id) is None
    assert store.delete_document("does-not-exist", user_id) is False


def test_get_documents_by_category(store, user_id):
    store.create_document(new_document(user_id))
    store.create_document(new_document(user_id, original_name="bill.pdf", category="Bills & Utilities"))

    bills = store.get_documents_by_category(user_id, "Bills & Utilities")

    assert [doc.original_name for doc in bills] == ["bill.pdf"]


@pytest.mark.parametrize("query, expected", [
    ("PASSPORT", ["passport_john.jpg"]),
    ("0b6c1e2a", ["passport_john.jpg"]),
    ("bills", ["water_bill.pdf"]),
    ("Travel", ["passport_john.jpg"]),
    ("nothing-matches", []),
])
def test_search_documents(store, user_id, query, expected):
    store.create_document(new_document(user_id))
    store.create_document(new_document(
        user_id,
        filename="77aa.pdf",
        original_name="water_bill.pdf",
        mime_type="application/pdf",
        category="Bills & Utilities",
        tags=["home"],
    ))

    results = store.search_documents(user_id, query)

    assert sorted(doc.original_name for doc in results) == expected


@pytest.mark.parametrize("query, expected", [
    ("café", ["menu.jpg"]),
    ("CAFÉ", ["menu.jpg"]),
    ('", "', []),
    ("alpha", ["pair.jpg"]),
    ("a_b", ["a_b.pdf"]),
    ("100%", ["report 100%.pdf"]),
    ("\\", []),
])
def test_search_matches_text_literally(store, user_id, query, expected):
    for index, (original_name, tags) in enumerate([
        ("menu.jpg", ["café"]),
        ("pair.jpg", ["alpha", "beta"]),
        ("a_b.pdf", []),
        ("axb.pdf", []),
        ("report 100%.pdf", []),
        ("report 1000.pdf", []),
    ]):
        store.create_document(new_document(
            user_id, filename=f"f{index}.pdf", original_name=original_name, category="Receipts", tags=tags,
        ))

    results = store.search_documents(user_id, query)

    assert sorted(doc.original_name for doc in results) == expected


def test_update_document(store, user_id):
    created = store.create_document(new_document(user_id))

    updated = store.update_document(created.id, user_id, {
        "category": "Travel Documents",
        "tags": ["renewed"],
        "expiry_date": datetime(2030, 1, 1),
    })

    assert updated.category == "Travel Documents"
    assert updated.tags == ["renewed"]
    assert updated.expiry_date == datetime(2030, 1, 1)
    assert updated.id == created.id
    assert updated.uploaded_at == created.uploaded_at
    assert store.get_document(created.id, user_id) == updated


def test_update_rejects_immutable_fields(store, user_id):
    created = store.create_document(new_document(user_id))

    with pytest.raises(ValueError):
        store.update_document(created.id, user_id, {"user_id": "someone-else"})
    with pytest.raises(ValueError):
        store.update_document(created.id, user_id, {"uploaded_at": NOW})


def test_returned_documents_are_copies(memory_store, user_id):
    created = memory_store.create_document(new_document(user_id))

    created.tags.append("mutated")

    assert memory_store.get_document(created.id, user_id).tags == ["travel", "uk"]


def test_get_expiring_documents(store, user_id):
    soon = store.create_document(new_document(user_id, expiry_date=NOW + timedelta(days=20)))
    store.create_document(new_document(user_id, expiry_date=NOW + timedelta(days=200)))
    store.create_document(new_document(user_id, expiry_date=NOW - timedelta(days=2)))
    store.create_document(new_document(user_id))

    expiring = store.get_expiring_documents(user_id, 30, now=NOW)

    assert [doc.id for doc in expiring] == [soon.id]


# =============================================================================
# Reminders
# =============================================================================

def test_reminder_queries(store, user_id, other_user_id):
    document = store.create_document(new_document(user_id))
    near = store.create_reminder(new_reminder(user_id, document.id, NOW + timedelta(days=5)))
    far = store.create_reminder(new_reminder(user_id, document.id, NOW + timedelta(days=60)))
    dismissed = store.create_reminder(new_reminder(user_id, document.id, NOW + timedelta(days=3), is_active=False))
    past = store.create_reminder(new_reminder(user_id, document.id, NOW - timedelta(days=1)))

    # Latest reminder date first
    assert [r.id for r in store.get_reminders(user_id)] == [far.id, near.id, dismissed.id, past.id]
    assert [r.id for r in store.get_active_reminders(user_id)] == [far.id, near.id, past.id]
    assert [r.id for r in store.get_upcoming_reminders(user_id, 30, now=NOW)] == [near.id]
    assert len(store.get_reminders_for_document(document.id, user_id)) == 4
    assert store.get_reminders(other_user_id) == []
    assert store.get_reminders_for_document(document.id, other_user_id) == []


def test_update_reminder(store, user_id, other_user_id):
    document = store.create_document(new_document(user_id))
    reminder = store.create_reminder(new_reminder(user_id, document.id, NOW))

    assert store.update_reminder(reminder.id, other_user_id, {"is_active": False}) is None

    updated = store.update_reminder(reminder.id, user_id, {"is_active": False})

    assert updated.is_active is False
    assert updated.message == reminder.message
    assert store.get_active_reminders(user_id) == []
    with pytest.raises(ValueError):
        store.update_reminder(reminder.id, user_id, {"message": "changed"})


def test_delete_document_cascades_to_reminders(store, user_id):
    document = store.create_document(new_document(user_id))
    keep = store.create_document(new_document(user_id, original_name="other.jpg"))
    store.create_reminder(new_reminder(user_id, document.id, NOW))
    store.create_reminder(new_reminder(user_id, document.id, NOW + timedelta(days=1)))
    kept = store.create_reminder(new_reminder(user_id, keep.id, NOW))

    assert store.delete_document(document.id, user_id) is True

    assert store.get_document(document.id, user_id) is None
    assert store.get_reminders_for_document(document.id, user_id) == []
    assert [r.id for r in store.get_reminders(user_id)] == [kept.id]


# =============================================================================
# Categories and statistics
# =============================================================================

def test_default_categories_are_seeded(store):
    names = {category.name for category in store.get_categories()}

    assert {"Identity Documents", "Bills & Utilities", "Medical Records",
            "Receipts", "Travel Documents", "Insurance"} <= names


def test_create_category_rejects_duplicates(store):
    created = store.create_category(CategoryCreate(name="Legal Documents", icon="fas fa-gavel", color="#64748b"))

    assert created.id
    assert "Legal Documents" in {category.name for category in store.get_categories()}
    with pytest.raises(ValueError):
        store.create_category(CategoryCreate(name="Legal Documents", icon="fas fa-gavel", color="#000000"))


def test_categories_with_counts(store, user_id, other_user_id):
    store.create_document(new_document(user_id))
    store.create_document(new_document(user_id))
    store.create_document(new_document(other_user_id, category="Insurance"))

    counts = {c.name: c.document_count for c in store.get_categories_with_counts(user_id)}

    assert counts["Identity Documents"] == 2
    assert counts["Insurance"] == 0


def test_document_stats(store, user_id, other_user_id):
    store.create_document(new_document(user_id, size=100, expiry_date=NOW + timedelta(days=30)))
    store.create_document(new_document(
        user_id, size=300, mime_type="application/pdf", category="Bills & Utilities",
    ))
    store.create_document(new_document(
        user_id,
        size=50,
        mime_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        category="Bills & Utilities",
        expiry_date=NOW + timedelta(days=120),
    ))
    store.create_document(new_document(other_user_id, size=9999))

    stats = store.get_document_stats(user_id, now=NOW)

    assert stats.total_documents == 3
    assert stats.expiring_soon == 1
    assert stats.storage_used == 450
    assert stats.by_category == {"Identity Documents": 1, "Bills & Utilities": 2}
    assert stats.storage_by_type.images == 100
    assert stats.storage_by_type.pdfs == 300
    assert stats.storage_by_type.documents == 50


def test_empty_stats(store, user_id):
    stats = store.get_document_stats(user_id)

    assert stats.total_documents == 0
    assert stats.storage_used == 0
    assert stats.by_category == {}


# =============================================================================
# SQL failure handling
# =============================================================================

def test_sql_errors_become_persistence_errors(user_id):
    session = MagicMock()
    session.commit.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))
    store = SQLStorage(lambda: session)

    with pytest.raises(PersistenceError):
        store.create_document(new_document(user_id))

    session.rollback.assert_called_once()
    session.close.assert_called_once()


def test_memory_store_can_start_empty():
    assert MemoryStorage(seed_categories=False).get_categories() == []
