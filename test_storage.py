"""
Tests for the message stores.

Tests cover:
- Startup backend selection and fallback
- Insert and newest-first listing on both backends
- Recent-window limits and trimming
- Durable-store validation errors
- Client hash never exposed
"""

import threading

import pytest

from ventspace.errors import InvalidData
from ventspace.models import DEFAULT_EMOJI
from ventspace.schemas import MessageResponse
from ventspace.storage import (
    MemoryMessageStore,
    SQLMessageStore,
    create_message_store,
)


@pytest.fixture
def sql_store(tmp_path):
    store = create_message_store(f"sqlite:///{tmp_path / 'store.db'}")
    yield store
    store.close()


@pytest.fixture(params=["sql", "memory"])
def store(request, tmp_path):
    if request.param == "sql":
        store = create_message_store(f"sqlite:///{tmp_path / 'store.db'}")
    else:
        store = MemoryMessageStore()
    yield store
    store.close()


class TestBackendSelection:

    def test_reachable_database_uses_sql_store(self, sql_store):
        assert isinstance(sql_store, SQLMessageStore)
        assert sql_store.backend == "sql"

    def test_unreachable_database_falls_back_to_memory(self, tmp_path):
        store = create_message_store(f"sqlite:///{tmp_path / 'missing' / 'store.db'}")
        assert isinstance(store, MemoryMessageStore)
        assert store.backend == "memory"

    def test_unknown_driver_falls_back_to_memory(self):
        store = create_message_store("nosuchdb://localhost/ventspace")
        assert isinstance(store, MemoryMessageStore)


class TestInsertAndList:

    def test_insert_assigns_id_and_timestamp(self, store):
        message = store.insert("hello world", "😊", "abc123")
        assert message.id
        assert message.timestamp is not None
        assert message.client_hash == "abc123"

    def test_ids_are_unique(self, store):
        ids = {store.insert(f"message {i}", DEFAULT_EMOJI, "h").id for i in range(5)}
        assert len(ids) == 5

    def test_list_recent_newest_first(self, store):
        for i in range(3):
            store.insert(f"message {i}", DEFAULT_EMOJI, "h")

        texts = [m.text for m in store.list_recent()]
        assert texts == ["message 2", "message 1", "message 0"]

    def test_list_recent_respects_limit(self, store):
        for i in range(5):
            store.insert(f"message {i}", DEFAULT_EMOJI, "h")

        assert [m.text for m in store.list_recent(2)] == ["message 4", "message 3"]

    def test_list_recent_caps_at_100(self, store):
        for i in range(105):
            store.insert(f"message {i}", DEFAULT_EMOJI, "h")

        messages = store.list_recent(500)
        assert len(messages) == 100
        assert messages[0].text == "message 104"
        assert messages[-1].text == "message 5"

    def test_list_recent_never_exposes_client_hash(self, store):
        store.insert("hello world", "😊", "secret-hash")
        [message] = store.list_recent()
        assert isinstance(message, MessageResponse)
        dumped = message.model_dump()
        assert set(dumped) == {"id", "text", "emoji", "timestamp"}
        assert "secret-hash" not in dumped.values()

    def test_timestamp_is_iso8601_utc(self, store):
        store.insert("hello world", "😊", "h")
        [message] = store.list_recent()
        assert message.timestamp.endswith("Z")

    def test_empty_store(self, store):
        assert store.list_recent() == []


class TestMemoryStore:

    def test_trims_to_capacity_on_insert(self):
        store = MemoryMessageStore()
        for i in range(150):
            store.insert(f"message {i}", DEFAULT_EMOJI, "h")
        assert len(store) == 100
        assert store.list_recent(1)[0].text == "message 149"

    def test_does_not_validate(self):
        store = MemoryMessageStore(capacity=5)
        message = store.insert("x", "not-an-emoji", "h")
        assert message.text == "x"

    def test_concurrent_inserts_keep_every_message(self):
        store = MemoryMessageStore(capacity=10_000)
        threads = [
            threading.Thread(
                target=lambda n=n: [store.insert(f"thread {n} message {i}", DEFAULT_EMOJI, "h") for i in range(250)]
            )
            for n in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 2000
        assert len({m.id for m in store._messages}) == 2000
        # each thread's messages stay in insertion order
        for n in range(8):
            own = [m.text for m in store._messages if m.text.startswith(f"thread {n} ")]
            assert own == [f"thread {n} message {i}" for i in range(250)]

    def test_concurrent_inserts_trim_to_capacity(self):
        store = MemoryMessageStore(capacity=100)
        barrier = threading.Barrier(8)

        def insert_many():
            barrier.wait()
            for i in range(200):
                store.insert(f"message {i}", DEFAULT_EMOJI, "h")

        threads = [threading.Thread(target=insert_many) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 100
        recent = store.list_recent()
        assert len(recent) == 100
        assert [m.timestamp for m in recent] == sorted((m.timestamp for m in recent), reverse=True)


class TestSQLStoreValidation:

    @pytest.mark.parametrize("text", ["ab", "x" * 1001])
    def test_text_out_of_bounds(self, sql_store, text):
        with pytest.raises(InvalidData):
            sql_store.insert(text, DEFAULT_EMOJI, "h")
        assert sql_store.list_recent() == []

    def test_unknown_emoji(self, sql_store):
        with pytest.raises(InvalidData):
            sql_store.insert("hello world", "🍕", "h")

    def test_keeps_more_than_window_but_returns_100(self, sql_store):
        for i in range(110):
            sql_store.insert(f"message {i}", DEFAULT_EMOJI, "h")
        assert len(sql_store.list_recent()) == 100
