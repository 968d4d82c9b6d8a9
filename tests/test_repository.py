"""Contract store tests: round trips, compare-and-swap writes and listings"""

import pytest
from sqlalchemy.exc import IntegrityError

from contractflow.domain.contracts.actors import Party
from contractflow.domain.contracts.entities import ContractStatus, SignaturePayload
from contractflow.domain.contracts.errors import ConcurrencyConflictError
from contractflow.domain.contracts.repository import ContractRepository

from .conftest import CLIENT_ID, OWNER_ID

repo = ContractRepository()


@pytest.fixture
def stored_draft(db, lifecycle, owner, draft_payload):
    contract = lifecycle.create(owner, draft_payload)
    repo.put(db, contract, expected_version=None)
    return contract


def test_put_then_get_returns_same_record(db, stored_draft):
    assert repo.get_by_id(db, stored_draft.id) == stored_draft


def test_get_unknown_id_returns_none(db):
    assert repo.get_by_id(db, "does-not-exist") is None


def test_signature_survives_round_trip(db, lifecycle, owner, client_actor, stored_draft):
    sent = lifecycle.send(stored_draft, owner)
    repo.put(db, sent, expected_version=stored_draft.version)
    signed = lifecycle.sign(
        sent, client_actor, SignaturePayload(signer_name="Cora Client", ip_address="10.0.0.1")
    )
    repo.put(db, signed, expected_version=sent.version)

    loaded = repo.get_by_id(db, stored_draft.id)
    assert loaded.status == ContractStatus.SIGNED
    assert loaded.signature == signed.signature
    assert loaded.version == 3


def test_insert_with_existing_id_conflicts(db, stored_draft):
    with pytest.raises(ConcurrencyConflictError):
        repo.put(db, stored_draft, expected_version=None)


def test_other_integrity_errors_are_not_conflicts(db, lifecycle, owner, draft_payload):
    # SQLite stores NaN as NULL, which the amount column refuses
    broken = lifecycle.create(owner, draft_payload).model_copy(update={"amount": float("nan")})
    with pytest.raises(IntegrityError):
        repo.put(db, broken, expected_version=None)

    assert repo.get_by_id(db, broken.id) is None


def test_stale_write_is_rejected(db, lifecycle, owner, stored_draft):
    first = lifecycle.send(stored_draft, owner)
    repo.put(db, first, expected_version=stored_draft.version)

    with pytest.raises(ConcurrencyConflictError):
        repo.put(db, lifecycle.cancel(stored_draft, owner), expected_version=stored_draft.version)

    assert repo.get_by_id(db, stored_draft.id).status == ContractStatus.SENT


def test_racing_send_and_cancel_leave_one_winner(db, lifecycle, owner, stored_draft):
    # Both requests read the same draft before either writes
    read_a = repo.get_by_id(db, stored_draft.id)
    read_b = repo.get_by_id(db, stored_draft.id)

    sent = lifecycle.send(read_a, owner)
    cancelled = lifecycle.cancel(read_b, owner)

    repo.put(db, cancelled, expected_version=read_b.version)
    with pytest.raises(ConcurrencyConflictError):
        repo.put(db, sent, expected_version=read_a.version)

    final = repo.get_by_id(db, stored_draft.id)
    assert final == cancelled
    assert final.sent_at is None


def _store(db, lifecycle, owner, draft_payload, **overrides):
    contract = lifecycle.create(owner, draft_payload.model_copy(update=overrides))
    repo.put(db, contract, expected_version=None)
    return contract


def test_list_by_party_orders_newest_update_first(db, lifecycle, owner, draft_payload):
    older = _store(db, lifecycle, owner, draft_payload, title="Older")
    newer = _store(db, lifecycle, owner, draft_payload, title="Newer")
    # Touch the older one so it becomes the most recently updated
    touched = lifecycle.send(older, owner)
    repo.put(db, touched, expected_version=older.version)

    contracts, total = repo.list_by_party(db, OWNER_ID, Party.OWNER)
    assert total == 2
    assert [c.id for c in contracts] == [touched.id, newer.id]


def test_list_by_party_filters_and_paginates(db, lifecycle, owner, draft_payload):
    created = [_store(db, lifecycle, owner, draft_payload, title=f"C{i}") for i in range(5)]
    cancelled = lifecycle.cancel(created[0], owner)
    repo.put(db, cancelled, expected_version=created[0].version)

    page, total = repo.list_by_party(db, OWNER_ID, Party.OWNER, limit=2, offset=1)
    assert total == 5
    assert len(page) == 2

    only_cancelled, total = repo.list_by_party(
        db, OWNER_ID, Party.OWNER, status=ContractStatus.CANCELLED
    )
    assert total == 1
    assert only_cancelled[0].id == cancelled.id


def test_client_listing_can_hide_drafts(db, lifecycle, owner, draft_payload):
    draft = _store(db, lifecycle, owner, draft_payload, title="Still drafting")
    other = _store(db, lifecycle, owner, draft_payload, title="Ready")
    sent = lifecycle.send(other, owner)
    repo.put(db, sent, expected_version=other.version)

    contracts, total = repo.list_by_party(db, CLIENT_ID, Party.CLIENT, include_drafts=False)
    assert total == 1
    assert contracts[0].id == sent.id

    contracts, total = repo.list_by_party(db, CLIENT_ID, Party.CLIENT)
    assert {c.id for c in contracts} == {draft.id, sent.id}


def test_list_all_spans_owners(db, lifecycle, owner, admin, draft_payload):
    _store(db, lifecycle, owner, draft_payload)
    _store(db, lifecycle, admin, draft_payload)
    contracts, total = repo.list_all(db)
    assert total == 2
    assert {c.owner_id for c in contracts} == {OWNER_ID, admin.user_id}
