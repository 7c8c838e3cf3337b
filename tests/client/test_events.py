"""Tests for EventHub."""

import threading

from storysync.client.events import EventHub, SyncEventType


class TestEventHub:
    """Tests for publish/subscribe."""

    def test_publish_calls_handlers_with_arguments(self) -> None:
        hub: EventHub[SyncEventType] = EventHub()
        received: list[tuple] = []
        hub.subscribe(SyncEventType.SYNC_ERROR, lambda *args: received.append(args))

        hub.publish(SyncEventType.SYNC_ERROR, "boom", 1)

        assert received == [("boom", 1)]

    def test_handlers_only_receive_their_event(self) -> None:
        hub: EventHub[SyncEventType] = EventHub()
        received: list[str] = []
        hub.subscribe(SyncEventType.SYNC_STARTED, lambda: received.append("started"))

        hub.publish(SyncEventType.SYNC_ENDED)

        assert received == []

    def test_unsubscribe_stops_delivery(self) -> None:
        hub: EventHub[SyncEventType] = EventHub()
        received: list[str] = []
        subscription = hub.subscribe(
            SyncEventType.SYNC_ENDED, lambda: received.append("ended")
        )

        subscription.unsubscribe()
        subscription.unsubscribe()
        hub.publish(SyncEventType.SYNC_ENDED)

        assert received == []
        assert not subscription.active
        assert hub.handler_count(SyncEventType.SYNC_ENDED) == 0

    def test_subscription_as_context_manager(self) -> None:
        hub: EventHub[SyncEventType] = EventHub()

        with hub.subscribe(SyncEventType.SYNC_ENDED, lambda: None):
            assert hub.handler_count(SyncEventType.SYNC_ENDED) == 1

        assert hub.handler_count(SyncEventType.SYNC_ENDED) == 0

    def test_failing_handler_does_not_stop_others(self) -> None:
        """Should log the failure and keep delivering."""
        hub: EventHub[SyncEventType] = EventHub()
        received: list[str] = []

        def broken() -> None:
            raise RuntimeError("handler bug")

        hub.subscribe(SyncEventType.SYNC_ENDED, broken)
        hub.subscribe(SyncEventType.SYNC_ENDED, lambda: received.append("second"))

        hub.publish(SyncEventType.SYNC_ENDED)

        assert received == ["second"]

    def test_publish_from_other_thread(self) -> None:
        hub: EventHub[SyncEventType] = EventHub()
        seen = threading.Event()
        hub.subscribe(SyncEventType.SYNC_STARTED, seen.set)

        thread = threading.Thread(target=hub.publish, args=(SyncEventType.SYNC_STARTED,))
        thread.start()
        thread.join(timeout=5)

        assert seen.is_set()

    def test_clear_removes_all_handlers(self) -> None:
        hub: EventHub[SyncEventType] = EventHub()
        hub.subscribe(SyncEventType.SYNC_STARTED, lambda: None)
        hub.subscribe(SyncEventType.SYNC_ENDED, lambda: None)

        hub.clear()

        assert hub.handler_count(SyncEventType.SYNC_STARTED) == 0
        assert hub.handler_count(SyncEventType.SYNC_ENDED) == 0
