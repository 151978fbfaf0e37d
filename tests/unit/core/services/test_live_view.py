import asyncio

import pytest

from notevault.core.errors import StoreUnavailable
from notevault.core.services import LiveNoteView, NoteService
from notevault.core.store import NOTES, SERVER_TIMESTAMP, StoreError


def note_doc(content, category=None):
    return {
        "content": content,
        "creator_email": "alice@example.com",
        "timestamp": SERVER_TIMESTAMP,
        "category": category,
        "history": [],
    }


@pytest.fixture
def service(store, identity):
    return NoteService(store, identity)


class TestLiveNoteView:
    async def test_initial_snapshot_then_updates(self, store, service):
        await service.create_note("first")

        async with LiveNoteView(store) as view:
            assert [n.content for n in view.notes.values()] == ["first"]

            second = await service.create_note("second")
            notes = await view.wait_until(lambda items: second in items, timeout=2)
            assert notes[second].content == "second"

            await service.delete_note(second)
            await view.wait_until(lambda items: second not in items, timeout=2)

    async def test_snapshot_replaces_whole_mapping(self, store, service):
        note_id = await service.create_note("v1")
        async with LiveNoteView(store) as view:
            await service.update_note(note_id, "v2", view.notes[note_id])
            notes = await view.wait_until(lambda items: items[note_id].content == "v2", timeout=2)
            assert len(notes[note_id].history) == 1

    async def test_category_filter_round_trip(self, store, service, notifier):
        await service.create_note("w1", "Work")
        await service.create_note("h1", "Home")
        await service.create_note("loose")

        async with LiveNoteView(store, "Work") as view:
            assert {n.content for n in view.notes.values()} == {"w1"}
            assert view.category == "Work"

            await view.set_category("")
            assert view.category is None
            assert {n.content for n in view.notes.values()} == {"w1", "h1", "loose"}

            await view.set_category("Work")
            assert {n.content for n in view.notes.values()} == {"w1"}

            # the old subscription is released on every switch
            assert notifier.listener_count(NOTES) == 1

        assert notifier.listener_count(NOTES) == 0

    async def test_filtered_view_ignores_other_categories(self, store, service):
        async with LiveNoteView(store, "Work") as view:
            await service.create_note("h1", "Home")
            work = await service.create_note("w1", "Work")
            notes = await view.wait_until(lambda items: work in items, timeout=2)
            assert [n.content for n in notes.values()] == ["w1"]

    async def test_close_releases_subscription_on_error(self, store, notifier):
        with pytest.raises(RuntimeError):
            async with LiveNoteView(store) as view:
                assert notifier.listener_count(NOTES) == 1
                raise RuntimeError("boom")

        assert view.closed
        assert view.subscription is None
        assert notifier.listener_count(NOTES) == 0

    async def test_updates_stream_ends_on_close(self, store, service):
        view = LiveNoteView(store)
        await view.open()
        seen = []

        async def consume():
            async for items in view.updates():
                seen.append(len(items))

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0)
        await service.create_note("one")
        await view.wait_until(lambda items: len(items) == 1, timeout=2)
        await asyncio.sleep(0.01)
        await view.close()
        await asyncio.wait_for(consumer, 2)

        assert seen[0] == 0
        assert seen[-1] == 1

    async def test_reopen_after_close_rejected(self, store):
        view = LiveNoteView(store)
        await view.open()
        await view.close()
        with pytest.raises(RuntimeError):
            await view.open()


class TestLiveViewFailures:
    async def test_resubscribes_after_store_error(self, memory_store):
        memory_store.fail_with = StoreError("connection lost")

        async with LiveNoteView(memory_store, retry_seconds=0.01) as view:
            assert isinstance(view.last_error, StoreUnavailable)
            assert view.notes == {}

            memory_store.seed(NOTES, note_doc("back"))
            memory_store.fail_with = None

            notes = await view.wait_until(lambda items: len(items) == 1, timeout=2)
            assert [n.content for n in notes.values()] == ["back"]
            assert view.last_error is None

    async def test_gives_up_after_max_retries(self, memory_store):
        memory_store.fail_with = StoreError("down")

        async with LiveNoteView(memory_store, retry_seconds=0.01, max_retries=0) as view:
            await asyncio.sleep(0.05)
            assert view.subscription is None
            assert isinstance(view.last_error, StoreUnavailable)
            assert memory_store.calls.count(("subscribe", NOTES)) == 1
