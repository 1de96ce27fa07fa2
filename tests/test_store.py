"""
Unit tests for the variable store and outbound queue.
"""

from scratchcloud.session.models import HandshakePacket, SetPacket
from scratchcloud.session.outbound import OutboundQueue
from scratchcloud.session.store import VariableStore


class TestVariableStore:
    def test_first_apply_is_new(self):
        store = VariableStore()
        assert store.apply("☁ x", "1") is True
        assert store.get("☁ x") == "1"

    def test_second_apply_is_update(self):
        store = VariableStore()
        store.apply("☁ x", "1")
        assert store.apply("☁ x", "2") is False
        assert store.get("☁ x") == "2"
        assert len(store) == 1

    def test_missing_variable(self):
        store = VariableStore()
        assert store.get("☁ nope") is None
        assert not store.has("☁ nope")
        assert "☁ nope" not in store

    def test_to_dict_is_copy(self):
        store = VariableStore()
        store.apply("☁ a", "1")
        snapshot = store.to_dict()
        snapshot["☁ a"] = "changed"
        assert store.get("☁ a") == "1"


class TestOutboundQueue:
    def test_drain_is_fifo_and_clears(self):
        queue = OutboundQueue()
        first = SetPacket(name="☁ a", value="1")
        second = SetPacket(name="☁ b", value="2")
        queue.enqueue(first)
        queue.enqueue(second)

        assert len(queue) == 2
        assert queue.drain() == [first, second]
        assert len(queue) == 0
        assert not queue

    def test_drain_empty(self):
        assert OutboundQueue().drain() == []

    def test_accepts_any_packet(self):
        queue = OutboundQueue()
        queue.enqueue(HandshakePacket(user="u", project_id=1))
        assert bool(queue)
