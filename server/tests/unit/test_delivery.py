# server/tests/unit/test_delivery.py
import asyncio

import pytest

from reminder_engine.infrastructure.realtime.delivery import DeliveryChannel, DeliveryOutcome
from reminder_engine.infrastructure.realtime.registry import CLOSE_EVICTED, ConnectionRegistry

pytestmark = pytest.mark.unit

PAYLOAD = {"id": "n-1", "title": "📅 Appointment Reminder", "message": "🔔 Reminder: Dentist"}


def test_not_connected_is_unreachable(user_id):
    async def scenario():
        channel = DeliveryChannel(ConnectionRegistry())
        outcome = await channel.deliver(user_id, PAYLOAD)
        return channel, outcome

    channel, outcome = asyncio.run(scenario())
    assert outcome is DeliveryOutcome.UNREACHABLE
    assert channel.pending_retries == 0


def test_successful_push_is_delivered(fake_transport_factory, user_id):
    transport = fake_transport_factory()

    async def scenario():
        registry = ConnectionRegistry()
        await registry.register(user_id, transport)
        return await DeliveryChannel(registry).deliver(user_id, PAYLOAD)

    assert asyncio.run(scenario()) is DeliveryOutcome.DELIVERED
    [envelope] = transport.of_type("notification")
    assert envelope["data"] == PAYLOAD
    assert envelope["retry_count"] == 0
    assert "timestamp" in envelope


def test_retry_succeeds_in_background(fake_transport_factory, user_id):
    transport = fake_transport_factory(fail_times=1)
    confirmed = []

    async def on_delivered():
        confirmed.append(True)

    async def scenario():
        registry = ConnectionRegistry()
        await registry.register(user_id, transport)
        channel = DeliveryChannel(registry, max_attempts=3, backoff_base=0)
        outcome = await channel.deliver(user_id, PAYLOAD, on_delivered=on_delivered)
        pending = channel.pending_retries
        await channel.drain()
        return outcome, pending

    outcome, pending = asyncio.run(scenario())
    assert outcome is DeliveryOutcome.UNREACHABLE
    assert pending == 1
    assert transport.attempts == 2
    assert transport.of_type("notification")[0]["retry_count"] == 1
    assert confirmed == [True]


def test_exhausted_retries_evict_connection(fake_transport_factory, user_id):
    transport = fake_transport_factory(fail_times=10)

    async def scenario():
        registry = ConnectionRegistry()
        await registry.register(user_id, transport)
        channel = DeliveryChannel(registry, max_attempts=3, backoff_base=0)
        await channel.deliver(user_id, PAYLOAD)
        await channel.drain()
        return registry

    registry = asyncio.run(scenario())
    assert transport.attempts == 3
    assert transport.closed == (CLOSE_EVICTED, "delivery_failed")
    assert user_id not in registry


def test_single_attempt_evicts_right_away(fake_transport_factory, user_id):
    transport = fake_transport_factory(fail_times=1)

    async def scenario():
        registry = ConnectionRegistry()
        await registry.register(user_id, transport)
        channel = DeliveryChannel(registry, max_attempts=1)
        outcome = await channel.deliver(user_id, PAYLOAD)
        return registry, channel, outcome

    registry, channel, outcome = asyncio.run(scenario())
    assert outcome is DeliveryOutcome.UNREACHABLE
    assert channel.pending_retries == 0
    assert user_id not in registry


def test_retry_abandoned_when_connection_replaced(fake_transport_factory, user_id):
    broken = fake_transport_factory(fail_times=1)
    fresh = fake_transport_factory()

    async def scenario():
        registry = ConnectionRegistry()
        await registry.register(user_id, broken)
        channel = DeliveryChannel(registry, max_attempts=3, backoff_base=0.05)
        await channel.deliver(user_id, PAYLOAD)
        await registry.register(user_id, fresh)
        await channel.drain()
        return registry

    registry = asyncio.run(scenario())
    assert broken.attempts == 1
    assert fresh.of_type("notification") == []
    assert registry.get(user_id).transport is fresh


def test_backoff_doubles_from_base():
    channel = DeliveryChannel(ConnectionRegistry(), backoff_base=1.5)
    assert [channel.backoff(a) for a in (2, 3, 4)] == [1.5, 3.0, 6.0]
