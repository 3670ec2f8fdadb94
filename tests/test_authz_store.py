"""Tests for the persisted authorization store."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from veridis.authz.store import AuthzStore
from veridis.errors import PersistenceFailure
from veridis.models.authz import AuthzDocument, InviteCodeRecord, Role, UserRecord

T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def test_load_missing_file_bootstraps_empty_store(store_path):
    store = AuthzStore(store_path)
    assert not store_path.exists()

    store.load()

    assert store.loaded
    assert store_path.exists()
    assert json.loads(store_path.read_text()) == {"users": {}, "inviteCodes": {}}


def test_load_corrupt_file_self_heals(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text("{not json", encoding="utf-8")

    store = AuthzStore(store_path)
    store.load()

    assert store.document.users == {}
    assert json.loads(store_path.read_text()) == {"users": {}, "inviteCodes": {}}


def test_load_non_utf8_file_self_heals(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_bytes(b"\xff\xfe{not utf8")

    store = AuthzStore(store_path)
    store.load()

    assert store.loaded
    assert store.document == AuthzDocument()
    assert json.loads(store_path.read_text()) == {"users": {}, "inviteCodes": {}}


def test_load_wrong_shape_self_heals(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text(json.dumps(["not", "a", "store"]), encoding="utf-8")

    store = AuthzStore(store_path)
    store.load()

    assert store.document == AuthzDocument()


def test_load_partial_document_fills_defaults(store_path):
    store_path.parent.mkdir(parents=True)
    store_path.write_text(json.dumps({"users": {}}), encoding="utf-8")

    store = AuthzStore(store_path)
    store.load()

    assert store.document.invite_codes == {}


def test_load_is_idempotent(store_path):
    store = AuthzStore(store_path)
    store.load()

    # Changes on disk after the first load are not picked up.
    store_path.write_text("{broken", encoding="utf-8")
    store.load()

    assert store_path.read_text() == "{broken"
    assert store.document == AuthzDocument()


def test_persist_round_trip(store_path):
    store = AuthzStore(store_path)
    store.load()
    with store.transaction() as doc:
        doc.users["u1"] = UserRecord(
            external_id="u1", name="Ana", role=Role.DEV, created_at=T0, updated_at=T0
        )
        doc.invite_codes["DEV-AB23CD45"] = InviteCodeRecord(
            code="DEV-AB23CD45",
            created_at=T0,
            expires_at=T0 + timedelta(hours=1),
            created_by_external_id="g1",
            used_at=T0 + timedelta(minutes=5),
            used_by_external_id="u1",
        )

    reloaded = AuthzStore(store_path)
    reloaded.load()

    assert reloaded.document == store.document
    code = reloaded.document.invite_codes["DEV-AB23CD45"]
    assert code.used_by_external_id == "u1"
    assert code.used_at == T0 + timedelta(minutes=5)


def test_persisted_layout_uses_camel_case_keys(store_path):
    store = AuthzStore(store_path)
    with store.transaction() as doc:
        doc.invite_codes["DEV-AB23CD45"] = InviteCodeRecord(
            code="DEV-AB23CD45",
            created_at=T0,
            expires_at=T0 + timedelta(hours=12),
            created_by_external_id="g1",
        )

    data = json.loads(store_path.read_text())
    record = data["inviteCodes"]["DEV-AB23CD45"]

    assert record["roleGrant"] == "dev"
    assert record["createdByExternalId"] == "g1"
    assert record["expiresAt"] == "2026-01-16T00:00:00Z"
    assert "usedAt" not in record
    assert "usedByExternalId" not in record


def test_persist_leaves_no_temp_file(store_path):
    store = AuthzStore(store_path)
    store.load()
    store.persist()

    assert not store.temp_path.exists()
    assert store.temp_path.name == "authz.json.tmp"


def test_transaction_rolls_back_on_error(store_path):
    store = AuthzStore(store_path)
    store.load()

    with pytest.raises(RuntimeError):
        with store.transaction() as doc:
            doc.users["u1"] = UserRecord(external_id="u1", created_at=T0, updated_at=T0)
            raise RuntimeError("boom")

    assert "u1" not in store.document.users
    assert json.loads(store_path.read_text())["users"] == {}


def test_failed_write_raises_and_keeps_live_document(store_path, monkeypatch):
    store = AuthzStore(store_path)
    store.load()

    def _fail_replace(self, target):
        raise OSError("disk full")

    monkeypatch.setattr("pathlib.Path.replace", _fail_replace)

    with pytest.raises(PersistenceFailure):
        with store.transaction() as doc:
            doc.users["u1"] = UserRecord(external_id="u1", created_at=T0, updated_at=T0)

    assert "u1" not in store.document.users
    assert not store.temp_path.exists()


def test_unreadable_store_raises_persistence_failure(store_path, monkeypatch):
    store_path.parent.mkdir(parents=True)
    store_path.write_text("{}", encoding="utf-8")

    def _fail_read(self, *args, **kwargs):
        raise PermissionError("denied")

    monkeypatch.setattr("pathlib.Path.read_text", _fail_read)

    store = AuthzStore(store_path)
    with pytest.raises(PersistenceFailure):
        store.load()
    assert not store.loaded
