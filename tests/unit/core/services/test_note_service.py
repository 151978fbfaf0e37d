"""NoteService against the SQLite-backed document store."""

import uuid
from datetime import timedelta

import pytest

from notevault.core.errors import InvalidInput, NotFound
from notevault.core.identity import IdentityProvider
from notevault.core.schemas.notes import HistoryEntry
from notevault.core.services import KEEP, NoteService
from notevault.core.store import NOTES


@pytest.fixture
def service(store, identity):
    return NoteService(store, identity)


class TestCreateNote:
    async def test_create_sets_creator_and_empty_history(self, service, alice):
        note_id = await service.create_note("  hello  ", "Work")

        note = await service.get_note(note_id)
        assert note.id == note_id
        assert note.content == "hello"
        assert note.creator_email == alice.email
        assert note.category == "Work"
        assert note.history == []
        assert note.timestamp.tzinfo is not None

    async def test_blank_category_is_uncategorized(self, service):
        note_id = await service.create_note("hello", "   ")
        assert (await service.get_note(note_id)).category is None

    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_empty_content_rejected(self, service, content):
        with pytest.raises(InvalidInput):
            await service.create_note(content)
        assert await service.list_notes() == []


class TestUpdateNote:
    async def test_update_appends_exactly_one_entry(self, store, service, alice, bob):
        note_id = await service.create_note("v1", "Work")
        before = await service.get_note(note_id)

        editor = NoteService(store, IdentityProvider(bob))
        await editor.update_note(note_id, "v2", before)

        after = await service.get_note(note_id)
        assert after.content == "v2"
        assert after.creator_email == alice.email
        assert after.history == [
            HistoryEntry(content="v1", timestamp=before.timestamp, modifier_email=bob.email)
        ]
        assert after.timestamp > before.timestamp

    async def test_update_keeps_category_unless_given(self, service):
        note_id = await service.create_note("v1", "Work")

        await service.update_note(note_id, "v2", await service.get_note(note_id))
        assert (await service.get_note(note_id)).category == "Work"

        await service.update_note(note_id, "v3", await service.get_note(note_id), category="Home")
        assert (await service.get_note(note_id)).category == "Home"

        await service.update_note(note_id, "v4", await service.get_note(note_id), category=None)
        assert (await service.get_note(note_id)).category is None

    async def test_keep_sentinel_is_default(self, service):
        note_id = await service.create_note("v1", "Work")
        note = await service.get_note(note_id)
        await service.update_note(note_id, "v2", note, category=KEEP)
        assert (await service.get_note(note_id)).category == "Work"

    async def test_history_timestamps_strictly_increase(self, service):
        note_id = await service.create_note("v0")
        for version in range(1, 6):
            await service.update_note(note_id, f"v{version}", await service.get_note(note_id))

        note = await service.get_note(note_id)
        stamps = [entry.timestamp for entry in note.history] + [note.timestamp]
        assert [entry.content for entry in note.history] == ["v0", "v1", "v2", "v3", "v4"]
        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    async def test_forged_creator_in_known_state_is_ignored(self, service, alice):
        note_id = await service.create_note("v1")
        known = await service.get_note(note_id)
        forged = known.model_copy(update={"creator_email": "mallory@example.com"})

        await service.update_note(note_id, "v2", forged)

        note = await service.get_note(note_id)
        assert note.content == "v2"
        assert note.creator_email == alice.email

    async def test_future_known_timestamp_still_precedes_new_version(self, service):
        note_id = await service.create_note("v1")
        known = await service.get_note(note_id)
        skewed = known.model_copy(update={"timestamp": known.timestamp + timedelta(hours=1)})

        await service.update_note(note_id, "v2", skewed)

        note = await service.get_note(note_id)
        assert note.history[-1].timestamp == skewed.timestamp
        assert note.history[-1].timestamp < note.timestamp

    async def test_update_missing_note_raises_not_found(self, service):
        note_id = await service.create_note("v1")
        state = await service.get_note(note_id)
        await service.delete_note(note_id)

        with pytest.raises(NotFound) as exc:
            await service.update_note(note_id, "v2", state)
        assert exc.value.details == {"note_id": str(note_id)}

    async def test_last_write_wins_discards_concurrent_edit(self, store, alice, bob):
        a = NoteService(store, IdentityProvider(alice))
        b = NoteService(store, IdentityProvider(bob))
        note_id = await a.create_note("x")
        seen_by_a = await a.get_note(note_id)
        seen_by_b = await b.get_note(note_id)

        await b.update_note(note_id, "y", seen_by_b)
        await a.update_note(note_id, "z", seen_by_a)

        final = await a.get_note(note_id)
        assert final.content == "z"
        assert len(final.history) == 1
        assert final.history[0].content == "x"
        assert final.history[0].modifier_email == alice.email
        assert all(entry.content != "y" for entry in final.history)


class TestRevertNote:
    async def test_revert_appends_and_never_truncates(self, service, alice):
        note_id = await service.create_note("A")
        await service.update_note(note_id, "B", await service.get_note(note_id))
        await service.update_note(note_id, "C", await service.get_note(note_id))
        before = await service.get_note(note_id)
        target = before.history[0]

        await service.revert_note(note_id, target)

        after = await service.get_note(note_id)
        assert after.content == "A"
        assert [e.content for e in after.history] == ["A", "B", "C"]
        assert after.history[:2] == before.history
        assert after.history[-1].modifier_email == alice.email
        assert after.history[-1].timestamp == before.timestamp
        assert after.timestamp > before.timestamp

    async def test_revert_keeps_creator_and_category(self, store, service, bob):
        note_id = await service.create_note("A", "Work")
        await service.update_note(note_id, "B", await service.get_note(note_id))
        target = (await service.get_note(note_id)).history[0]

        await NoteService(store, IdentityProvider(bob)).revert_note(note_id, target)

        note = await service.get_note(note_id)
        assert note.creator_email == "alice@example.com"
        assert note.category == "Work"
        assert note.history[-1].modifier_email == bob.email

    async def test_revert_to_current_content_still_records_entry(self, service):
        note_id = await service.create_note("A")
        await service.update_note(note_id, "A", await service.get_note(note_id))
        target = (await service.get_note(note_id)).history[0]

        await service.revert_note(note_id, target)

        note = await service.get_note(note_id)
        assert note.content == "A"
        assert len(note.history) == 2

    async def test_revert_to_foreign_entry_rejected(self, service):
        first = await service.create_note("one")
        second = await service.create_note("two")
        await service.update_note(first, "one-b", await service.get_note(first))
        foreign = (await service.get_note(first)).history[0]

        with pytest.raises(InvalidInput):
            await service.revert_note(second, foreign)
        assert (await service.get_note(second)).history == []

    async def test_revert_missing_note(self, service):
        entry = HistoryEntry(
            content="gone",
            timestamp=await service.store.now(),
            modifier_email="alice@example.com",
        )
        with pytest.raises(NotFound):
            await service.revert_note(uuid.uuid4(), entry)


class TestDeleteAndList:
    async def test_delete_removes_note(self, service, store):
        note_id = await service.create_note("bye")
        await service.delete_note(note_id)

        assert await store.query(NOTES) == []
        with pytest.raises(NotFound):
            await service.get_note(note_id)

    async def test_delete_missing_note(self, service):
        with pytest.raises(NotFound):
            await service.delete_note(uuid.uuid4())

    async def test_list_filters_by_category(self, service):
        await service.create_note("w1", "Work")
        await service.create_note("h1", "Home")
        await service.create_note("w2", "Work")
        await service.create_note("loose")

        assert sorted(n.content for n in await service.list_notes("Work")) == ["w1", "w2"]
        assert len(await service.list_notes()) == 4
        assert len(await service.list_notes("  ")) == 4
        assert await service.list_notes("Nope") == []
