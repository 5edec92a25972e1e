"""Unit tests for the topic-based event bus."""
import logging

import pytest

from catalog_dashboard.constants import Topic


class TestPublishSubscribe:

    def test_delivery_in_registration_order(self, bus):
        received = []
        bus.subscribe(Topic.METRICS_UPDATED, lambda p: received.append(("first", p)))
        bus.subscribe(Topic.METRICS_UPDATED, lambda p: received.append(("second", p)))

        delivered = bus.publish(Topic.METRICS_UPDATED, 42)

        assert delivered == 2
        assert received == [("first", 42), ("second", 42)]

    def test_topics_are_isolated(self, bus):
        received = []
        bus.subscribe(Topic.STOCK_CHANGED, received.append)

        bus.publish(Topic.METRICS_UPDATED, "ignored")

        assert received == []

    def test_enum_and_string_topics_are_the_same_channel(self, bus):
        received = []
        bus.subscribe("metrics-updated", received.append)

        bus.publish(Topic.METRICS_UPDATED, 1)

        assert received == [1]

    def test_failing_handler_does_not_block_others(self, bus, caplog):
        received = []

        def broken(_payload):
            raise RuntimeError("render failed")

        bus.subscribe(Topic.RECORDS_CHANGED, broken)
        bus.subscribe(Topic.RECORDS_CHANGED, received.append)

        with caplog.at_level(logging.ERROR):
            delivered = bus.publish(Topic.RECORDS_CHANGED, "payload")

        assert received == ["payload"]
        assert delivered == 1
        assert "records-changed" in caplog.text

    def test_publish_without_subscribers(self, bus):
        assert bus.publish(Topic.FILTERS_APPLIED, []) == 0

    def test_non_callable_handler_rejected(self, bus):
        with pytest.raises(ValueError):
            bus.subscribe(Topic.METRICS_UPDATED, "not callable")


class TestUnsubscribe:

    def test_unsubscribe_stops_delivery(self, bus):
        received = []
        subscription = bus.subscribe(Topic.METRICS_UPDATED, received.append)

        assert bus.unsubscribe(subscription) is True
        bus.publish(Topic.METRICS_UPDATED, 1)

        assert received == []
        assert bus.subscriber_count(Topic.METRICS_UPDATED) == 0

    def test_unsubscribe_twice_returns_false(self, bus):
        subscription = bus.subscribe(Topic.METRICS_UPDATED, lambda p: None)
        bus.unsubscribe(subscription)

        assert bus.unsubscribe(subscription) is False

    def test_same_handler_subscribed_twice_gets_distinct_handles(self, bus):
        received = []
        first = bus.subscribe(Topic.METRICS_UPDATED, received.append)
        bus.subscribe(Topic.METRICS_UPDATED, received.append)

        bus.unsubscribe(first)
        bus.publish(Topic.METRICS_UPDATED, "x")

        assert received == ["x"]

    def test_subscribers_are_snapshotted_at_publish_time(self, bus):
        received = []

        def late(payload):
            received.append(("late", payload))

        def first(payload):
            received.append(("first", payload))
            bus.subscribe(Topic.METRICS_UPDATED, late)

        bus.subscribe(Topic.METRICS_UPDATED, first)

        bus.publish(Topic.METRICS_UPDATED, 1)
        assert received == [("first", 1)]

        bus.publish(Topic.METRICS_UPDATED, 2)
        assert ("late", 2) in received
