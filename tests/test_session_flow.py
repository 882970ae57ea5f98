"""Tests for following session changes."""

import asyncio
from uuid import UUID, uuid4

from macromate.domain.entries import FoodEntryDraft
from macromate.domain.sessions import SessionMode
from macromate.services.local_store import GuestStorage
from macromate.services.migration import MigrationOutcome, MigrationService
from macromate.services.sessions import InMemorySessionProvider, SessionFlow
from macromate.services.tracker import FoodTracker
from tests.conftest import InMemoryRemoteGateway


def make_flow(
    tracker: FoodTracker, guest_storage: GuestStorage, gateway: InMemoryRemoteGateway
) -> tuple[InMemorySessionProvider, SessionFlow]:
    provider = InMemorySessionProvider()
    flow = SessionFlow(
        provider=provider,
        tracker=tracker,
        migration=MigrationService(storage=guest_storage, gateway=gateway),
    )
    return provider, flow


def test_guest_sign_up_migrates_then_switches(
    tracker: FoodTracker,
    guest_storage: GuestStorage,
    gateway: InMemoryRemoteGateway,
    user_id: UUID,
) -> None:
    provider, flow = make_flow(tracker, guest_storage, gateway)

    async def scenario() -> None:
        await flow.start()
        assert tracker.session.mode is SessionMode.SIGNED_OUT

        provider.continue_as_guest()
        await flow.drain()
        await tracker.add_entry(FoodEntryDraft(name="Elma", calories=95))

        provider.sign_in(user_id)
        await flow.drain()

        assert tracker.session.mode is SessionMode.AUTHENTICATED
        assert [entry.name for entry in tracker.entries] == ["Elma"]
        await flow.close()

    asyncio.run(scenario())

    assert flow.last_migration is not None
    assert flow.last_migration.outcome is MigrationOutcome.MIGRATED
    assert guest_storage.is_empty()
    assert gateway.listener_count(user_id) == 0


def test_every_guest_sign_in_migrates_new_guest_data(
    tracker: FoodTracker,
    guest_storage: GuestStorage,
    gateway: InMemoryRemoteGateway,
    user_id: UUID,
) -> None:
    provider, flow = make_flow(tracker, guest_storage, gateway)

    async def scenario() -> None:
        await flow.start()
        provider.continue_as_guest()
        await flow.drain()
        await tracker.add_entry(FoodEntryDraft(name="Elma", calories=95))
        provider.sign_in(user_id)
        await flow.drain()

        provider.continue_as_guest()
        await flow.drain()
        assert tracker.entries == []
        await tracker.add_entry(FoodEntryDraft(name="Armut", calories=100))
        provider.sign_in(user_id)
        await flow.drain()

        assert sorted(entry.name for entry in tracker.entries) == ["Armut", "Elma"]
        await flow.close()

    asyncio.run(scenario())

    assert sorted(entry.name for entry in gateway.entries[user_id].values()) == [
        "Armut",
        "Elma",
    ]
    assert flow.last_migration is not None
    assert flow.last_migration.outcome is MigrationOutcome.MIGRATED
    assert flow.last_migration.entries == 1
    assert guest_storage.is_empty()


def test_failed_migration_is_retried_on_next_sign_in(
    tracker: FoodTracker,
    guest_storage: GuestStorage,
    gateway: InMemoryRemoteGateway,
    user_id: UUID,
) -> None:
    provider, flow = make_flow(tracker, guest_storage, gateway)
    gateway.failing.add("put_entry")

    async def scenario() -> None:
        await flow.start()
        provider.continue_as_guest()
        await flow.drain()
        await tracker.add_entry(FoodEntryDraft(name="Elma", calories=95))

        provider.sign_in(user_id)
        await flow.drain()
        assert flow.last_migration is not None
        assert flow.last_migration.outcome is MigrationOutcome.FAILED
        assert [entry.name for entry in guest_storage.load_entries()] == ["Elma"]

        provider.continue_as_guest()
        await flow.drain()
        gateway.failing.clear()
        provider.sign_in(user_id)
        await flow.drain()
        await flow.close()

    asyncio.run(scenario())

    assert gateway.calls.count("put_entry") == 2
    assert flow.last_migration is not None
    assert flow.last_migration.outcome is MigrationOutcome.MIGRATED
    assert [entry.name for entry in gateway.entries[user_id].values()] == ["Elma"]
    assert guest_storage.is_empty()


def test_sign_in_without_guest_data_skips_migration(
    tracker: FoodTracker,
    guest_storage: GuestStorage,
    gateway: InMemoryRemoteGateway,
) -> None:
    provider, flow = make_flow(tracker, guest_storage, gateway)

    async def scenario() -> None:
        await flow.start()
        provider.sign_in(uuid4())
        await flow.drain()
        provider.sign_out()
        await flow.drain()
        assert tracker.session.mode is SessionMode.SIGNED_OUT

    asyncio.run(scenario())

    assert flow.last_migration is None
    assert gateway.calls == []


def test_provider_ignores_unchanged_session() -> None:
    provider = InMemorySessionProvider()
    seen = []
    unsubscribe = provider.on_change(seen.append)

    provider.continue_as_guest()
    provider.continue_as_guest()
    unsubscribe()
    provider.sign_out()

    assert [session.mode for session in seen] == [SessionMode.GUEST]
