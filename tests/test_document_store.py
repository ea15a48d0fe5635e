"""Unit Tests for the document store backends.

The Firestore backend runs against a MagicMock client, so only the calls
it makes are checked, not Firestore itself.
"""
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from firebase_admin import firestore

from services.document_store import (
    SERVER_TIMESTAMP,
    FirestoreDocumentStore,
    InMemoryDocumentStore,
)

COL = "users/u1/goals"


class TestInMemoryDocumentStore:
    """Test the dict-backed store."""

    def test_add_and_get(self, store):
        """Added documents come back with their id."""
        doc_id = store.add(COL, {"title": "Walk 10 minutes"})
        assert store.get(COL, doc_id) == {"title": "Walk 10 minutes", "id": doc_id}
        assert store.get(COL, "missing") is None

    def test_get_returns_copy(self, store):
        """Mutating a fetched document does not change the store."""
        doc_id = store.add(COL, {"title": "a b"})
        store.get(COL, doc_id)["title"] = "changed"
        assert store.get(COL, doc_id)["title"] == "a b"

    def test_set_merge_and_overwrite(self, store):
        """merge=True keeps other fields; merge=False replaces the document."""
        store.set(COL, "g1", {"title": "x", "done": False})
        store.set(COL, "g1", {"done": True}, merge=True)
        assert store.get(COL, "g1") == {"title": "x", "done": True, "id": "g1"}

        store.set(COL, "g1", {"done": False})
        assert store.get(COL, "g1") == {"done": False, "id": "g1"}

    def test_update_missing_raises(self, store):
        """Updating a missing document raises KeyError."""
        with pytest.raises(KeyError):
            store.update(COL, "missing", {"done": True})

    def test_delete(self, store):
        """Deleted documents are gone; deleting twice is harmless."""
        doc_id = store.add(COL, {"title": "x"})
        store.delete(COL, doc_id)
        store.delete(COL, doc_id)
        assert store.get(COL, doc_id) is None

    def test_server_timestamps_are_increasing(self, store):
        """SERVER_TIMESTAMP resolves to strictly increasing datetimes."""
        ids = [store.add(COL, {"n": i, "created_at": SERVER_TIMESTAMP}) for i in range(5)]
        stamps = [store.get(COL, i)["created_at"] for i in ids]
        assert all(isinstance(s, datetime) for s in stamps)
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == 5

    def test_query_filter_order_limit(self, store):
        """Equality filters, ordering and limits combine."""
        for n, date in [(1, "2024-05-01"), (2, "2024-05-02"), (3, "2024-05-01"), (4, "2024-05-01")]:
            store.add(COL, {"n": n, "date": date, "created_at": SERVER_TIMESTAMP})

        rows = store.query(COL, filters={"date": "2024-05-01"}, order_by="created_at")
        assert [r["n"] for r in rows] == [1, 3, 4]

        rows = store.query(COL, filters={"date": "2024-05-01"}, order_by="created_at",
                           descending=True, limit=2)
        assert [r["n"] for r in rows] == [4, 3]

        assert store.query("users/u1/empty") == []

    def test_query_order_puts_missing_field_first(self, store):
        """Documents without the order field sort before the others."""
        store.add(COL, {"n": 1, "date": "2024-05-02"})
        store.add(COL, {"n": 2})
        assert [r["n"] for r in store.query(COL, order_by="date")] == [2, 1]

    def test_subscribe_initial_and_updates(self, store):
        """Subscribers get the current rows now and after each change."""
        snapshots = []
        unsubscribe = store.subscribe(COL, snapshots.append, filters={"date": "d1"})
        assert snapshots == [[]]

        doc_id = store.add(COL, {"date": "d1", "title": "a b"})
        store.add(COL, {"date": "d2", "title": "other"})
        assert [r["id"] for r in snapshots[1]] == [doc_id]
        assert snapshots[2] == snapshots[1]

        unsubscribe()
        store.delete(COL, doc_id)
        assert len(snapshots) == 3

    def test_subscriber_error_does_not_break_writes(self, store):
        """A failing callback is logged and the write still happens."""
        calls = []

        def callback(rows):
            calls.append(rows)
            if len(calls) > 1:
                raise RuntimeError("listener broke")

        store.subscribe(COL, callback)
        doc_id = store.add(COL, {"title": "x"})
        assert store.get(COL, doc_id) is not None

    def test_batch_add(self, store):
        """batch_add stores every item and returns their ids."""
        ids = store.batch_add(COL, [{"title": "a"}, {"title": "b"}])
        assert [store.get(COL, i)["title"] for i in ids] == ["a", "b"]

    def test_json_persistence(self, tmp_path):
        """Data, including timestamps, survives a reload from disk."""
        path = tmp_path / "store.json"
        first = InMemoryDocumentStore(persist_path=path)
        doc_id = first.add(COL, {"title": "x", "created_at": SERVER_TIMESTAMP})
        stamp = first.get(COL, doc_id)["created_at"]

        second = InMemoryDocumentStore(persist_path=path)
        assert second.get(COL, doc_id) == {"title": "x", "created_at": stamp, "id": doc_id}

        later = second.add(COL, {"created_at": SERVER_TIMESTAMP})
        assert second.get(COL, later)["created_at"] > stamp


def make_snapshot(doc_id, data):
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = True
    snap.to_dict.return_value = data
    return snap


class TestFirestoreDocumentStore:
    """Test the Firestore backend against a mocked client."""

    def test_get(self):
        """get reads the document at collection/doc_id."""
        client = MagicMock()
        doc = client.collection.return_value.document.return_value
        doc.get.return_value = make_snapshot("g1", {"title": "x"})

        store = FirestoreDocumentStore(client=client)
        assert store.get(COL, "g1") == {"title": "x", "id": "g1"}
        client.collection.assert_called_with(COL)
        client.collection.return_value.document.assert_called_with("g1")

    def test_get_missing(self):
        """A snapshot that does not exist maps to None."""
        client = MagicMock()
        client.collection.return_value.document.return_value.get.return_value.exists = False
        assert FirestoreDocumentStore(client=client).get(COL, "g1") is None

    def test_add_resolves_server_timestamp(self):
        """The local sentinel is swapped for Firestore's SERVER_TIMESTAMP."""
        client = MagicMock()
        ref = MagicMock()
        ref.id = "new-id"
        client.collection.return_value.add.return_value = (None, ref)

        store = FirestoreDocumentStore(client=client)
        assert store.add(COL, {"title": "x", "created_at": SERVER_TIMESTAMP, "id": "ignored"}) == "new-id"

        written = client.collection.return_value.add.call_args.args[0]
        assert written == {"title": "x", "created_at": firestore.SERVER_TIMESTAMP}

    def test_set_with_merge(self):
        """set passes the merge flag through."""
        client = MagicMock()
        FirestoreDocumentStore(client=client).set(COL, "g1", {"done": True}, merge=True)
        client.collection.return_value.document.return_value.set.assert_called_once_with(
            {"done": True}, merge=True)

    def test_query_builds_filters_order_and_limit(self):
        """Equality filters become FieldFilters, then order_by and limit."""
        client = MagicMock()
        col = client.collection.return_value
        ordered = col.where.return_value.order_by.return_value
        ordered.limit.return_value.stream.return_value = [make_snapshot("a", {"date": "d1"})]

        rows = FirestoreDocumentStore(client=client).query(
            COL, filters={"date": "d1"}, order_by="created_at", descending=True, limit=3)

        assert rows == [{"date": "d1", "id": "a"}]
        field_filter = col.where.call_args.kwargs["filter"]
        assert (field_filter.field_path, field_filter.op_string, field_filter.value) == ("date", "==", "d1")
        col.where.return_value.order_by.assert_called_once_with(
            "created_at", direction=firestore.Query.DESCENDING)
        ordered.limit.assert_called_once_with(3)

    def test_subscribe_wraps_snapshots(self):
        """on_snapshot results are passed on as plain documents."""
        client = MagicMock()
        col = client.collection.return_value
        received = []

        unsubscribe = FirestoreDocumentStore(client=client).subscribe(COL, received.append)

        on_snapshot = col.on_snapshot.call_args.args[0]
        on_snapshot([make_snapshot("a", {"title": "x"})], [], None)
        assert received == [[{"title": "x", "id": "a"}]]
        assert unsubscribe is col.on_snapshot.return_value.unsubscribe

    def test_batch_add_commits_once(self):
        """batch_add writes every item in a single batch."""
        client = MagicMock()
        refs = [MagicMock(), MagicMock()]
        refs[0].id, refs[1].id = "a", "b"
        client.collection.return_value.document.side_effect = refs
        batch = client.batch.return_value

        ids = FirestoreDocumentStore(client=client).batch_add(COL, [{"title": "1"}, {"title": "2"}])

        assert ids == ["a", "b"]
        assert batch.set.call_count == 2
        batch.commit.assert_called_once_with()
