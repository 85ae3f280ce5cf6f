"""Draft and commit protocol shared by every entity-operation page.

Exercised mostly through the recharge-item page, which has the simplest form.
"""

import asyncio
import logging

import pytest

from core.errors import IllegalTransitionError
from core.lifecycle import EditSessionState
from core.listing import open_draft, toggle_change_pin
from core.navigation import HOME, STORED_CHANGES, NavigationState
from core.prompts import PromptKind
from core.session import DRAFT_SAVED, CommitOutcome, NoticeLevel

from conftest import FailingWrites, HeldConfirmer, RecordingConfirmer, replace_service


@pytest.fixture
def recharge(make_session):
    return make_session("item", "recharge")


async def _loaded(session, code="1001"):
    assert await session.search(code)
    return session


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_loads_entity(self, recharge):
        assert await recharge.search("1001")
        assert recharge.state is EditSessionState.LOADED
        assert recharge.entity.name == "Plasma Rifle"
        assert recharge.form == {"expiry_date": "31/12/2025"}
        assert not recharge.is_dirty()

    @pytest.mark.asyncio
    async def test_search_accepts_typed_prefix(self, recharge):
        assert await recharge.search(" itin 1002 ")
        assert recharge.entity.itin == "1002"

    @pytest.mark.asyncio
    async def test_malformed_code(self, recharge):
        assert not await recharge.search("10a1")
        assert recharge.search_error == "Invalid ITIN."
        assert recharge.state is EditSessionState.SEARCHING

    @pytest.mark.asyncio
    async def test_miss_stays_searching(self, recharge, caplog):
        with caplog.at_level(logging.INFO, logger="core.session"):
            assert not await recharge.search("4321")
        assert recharge.search_error == "Not found"
        assert recharge.entity is None
        assert recharge.state is EditSessionState.SEARCHING
        assert "item 4321 not found" in caplog.text

    @pytest.mark.asyncio
    async def test_service_error(self, recharge, backend, monkeypatch):
        async def boom(code):
            raise ConnectionError("offline")

        monkeypatch.setattr(backend.items, "search_by_code", boom)
        assert not await recharge.search("1001")
        assert recharge.search_error == "Error"

    @pytest.mark.asyncio
    async def test_new_search_clears_previous_entity(self, recharge):
        await _loaded(recharge)
        assert not await recharge.search("4321")
        assert recharge.entity is None
        assert recharge.form == {"expiry_date": ""}

    def test_editing_before_load_is_refused(self, recharge):
        with pytest.raises(IllegalTransitionError, match="Nothing loaded"):
            recharge.update(expiry_date="01/01/2030")


class TestDirtiness:
    @pytest.mark.asyncio
    async def test_edit_then_revert_is_clean(self, recharge):
        await _loaded(recharge)
        recharge.update(expiry_date="01012030")
        assert recharge.form["expiry_date"] == "01/01/2030"
        assert recharge.is_dirty()
        recharge.update(expiry_date="31/12/2025")
        assert not recharge.is_dirty()

    @pytest.mark.asyncio
    async def test_deleting_characters_keeps_raw_text(self, recharge):
        await _loaded(recharge)
        recharge.update(expiry_date="31/12/")
        assert recharge.form["expiry_date"] == "31/12/"

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, recharge):
        await _loaded(recharge)
        with pytest.raises(KeyError):
            recharge.update(owner="1001#01")

    @pytest.mark.asyncio
    async def test_guard_asks_before_reset_when_dirty(self, make_session):
        confirmer = RecordingConfirmer(False)
        session = make_session("item", "recharge", confirmer=confirmer)
        await _loaded(session)
        session.update(expiry_date="01/01/2030")

        assert not await session.request_reset()
        assert confirmer.kinds == [PromptKind.DISCARD_CHANGES]
        assert session.state is EditSessionState.LOADED
        assert session.form["expiry_date"] == "01/01/2030"
        assert session.guard.should_warn_before_unload()

    @pytest.mark.asyncio
    async def test_clean_reset_needs_no_prompt(self, recharge, confirmer):
        await _loaded(recharge)
        assert await recharge.request_reset()
        assert confirmer.prompts == []
        assert recharge.state is EditSessionState.SEARCHING


class TestDrafts:
    @pytest.mark.asyncio
    async def test_save_draft(self, recharge, storage):
        await _loaded(recharge)
        recharge.update(expiry_date="01/01/2030")
        change = recharge.save_draft()

        assert storage.list_changes() == [change]
        assert change.id.startswith("draft-")
        assert change.title == "Plasma Rifle"
        assert change.subtitle == "Recharge ITIN: 1001"
        assert change.payload["expiry_date"] == "01/01/2030"
        assert change.payload["item"]["itin"] == "1001"
        assert recharge.state is EditSessionState.DRAFTED
        assert recharge.draft_id == change.id
        assert recharge.notice.message == DRAFT_SAVED
        assert not recharge.is_dirty()

    @pytest.mark.asyncio
    async def test_resaving_upserts_and_keeps_pin(self, recharge, storage):
        await _loaded(recharge)
        first = recharge.save_draft()
        toggle_change_pin(storage, first)
        recharge.update(expiry_date="01/01/2031")
        second = recharge.save_draft()

        assert second.id == first.id
        assert second.is_pinned
        assert len(storage.list_changes()) == 1
        assert storage.list_changes()[0].payload["expiry_date"] == "01/01/2031"

    def test_nothing_to_draft_while_searching(self, recharge):
        with pytest.raises(IllegalTransitionError):
            recharge.save_draft()

    @pytest.mark.asyncio
    async def test_reset_keeps_saved_drafts(self, recharge, storage):
        await _loaded(recharge)
        change = recharge.save_draft()
        recharge.reset()
        assert recharge.draft_id is None
        assert recharge.entity is None
        assert storage.list_changes() == [change]

    @pytest.mark.asyncio
    async def test_resume_matches_draft_load(self, recharge, make_session, host):
        await _loaded(recharge)
        recharge.update(expiry_date="01/01/2030")
        change = recharge.save_draft()

        path = open_draft(change, host)
        assert path == "/recharge-item"
        nav = host.last[1]
        resumed = make_session("item", "recharge", nav=nav)

        assert resumed.entity == recharge.entity
        assert resumed.form == recharge.form
        assert resumed.draft_id == change.id
        assert resumed.draft_timestamp == change.created_at
        assert resumed.state is EditSessionState.DRAFTED
        assert resumed.return_to == STORED_CHANGES
        assert not resumed.is_dirty()

    @pytest.mark.asyncio
    async def test_resume_from_serialized_bag(self, recharge, make_session, host):
        await _loaded(recharge)
        change = recharge.save_draft()
        open_draft(change, host)
        resumed = make_session("item", "recharge", nav=host.last[1].to_dict())
        assert resumed.draft_id == change.id


class TestCommit:
    @pytest.mark.asyncio
    async def test_commit_without_draft(self, recharge, confirmer, backend):
        await _loaded(recharge)
        recharge.update(expiry_date="01/01/2030")
        result = await recharge.commit()

        assert result.outcome is CommitOutcome.COMMITTED
        assert result.notice.message == "Success! Expiry updated from 31/12/2025 to 01/01/2030"
        assert confirmer.prompts == []
        assert recharge.state is EditSessionState.COMMITTED
        assert (await backend.items.search_by_code("1001")).data.expiry_date == "01/01/2030"
        assert not recharge.is_dirty()

    @pytest.mark.asyncio
    async def test_committing_a_draft_removes_it(self, recharge, confirmer, storage):
        await _loaded(recharge)
        recharge.update(expiry_date="01/01/2030")
        recharge.save_draft()

        result = await recharge.commit()

        assert result.committed
        assert confirmer.kinds == [PromptKind.STALE_DRAFT]
        assert storage.list_changes() == []
        assert recharge.draft_id is None
        assert recharge.entity.expiry_date == "01/01/2030"
        assert recharge.form == {"expiry_date": "01/01/2030"}

    @pytest.mark.asyncio
    async def test_declined_stale_draft_changes_nothing(self, make_session, storage, backend):
        confirmer = RecordingConfirmer(False)
        session = make_session("item", "recharge", confirmer=confirmer)
        await _loaded(session)
        session.update(expiry_date="01/01/2030")
        change = session.save_draft()

        result = await session.commit()

        assert result.outcome is CommitOutcome.CANCELLED
        assert storage.list_changes() == [change]
        assert session.state is EditSessionState.DRAFTED
        assert (await backend.items.search_by_code("1001")).data.expiry_date == "31/12/2025"

    @pytest.mark.asyncio
    async def test_rejected_commit_keeps_draft_and_edits(self, make_session, services, storage):
        failing = FailingWrites(services.items)
        session = make_session("item", "recharge", services=replace_service(services, items=failing))
        await _loaded(session)
        session.update(expiry_date="01/01/2030")
        change = session.save_draft()

        result = await session.commit()

        assert result.outcome is CommitOutcome.FAILED
        assert result.notice.level is NoticeLevel.ERROR
        assert result.notice.message == "Failed: Service unavailable"
        assert session.state is EditSessionState.FAILED
        assert session.last_failure.message == "Failed: Service unavailable"
        assert session.draft_id == change.id
        assert storage.list_changes() == [change]
        assert session.form == {"expiry_date": "01/01/2030"}
        assert session.entity.expiry_date == "31/12/2025"

    @pytest.mark.asyncio
    async def test_raised_commit_is_recorded(self, make_session, services, caplog):
        failing = FailingWrites(services.items, raises=True, error="socket closed")
        session = make_session("item", "recharge", services=replace_service(services, items=failing))
        await _loaded(session)
        session.update(expiry_date="01/01/2030")

        with caplog.at_level(logging.ERROR, logger="core.session"):
            result = await session.commit()

        assert result.notice.message == "An unexpected error occurred."
        assert isinstance(session.last_failure.cause, ConnectionError)
        assert "commit raised" in caplog.text

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, make_session, services, storage):
        failing = FailingWrites(services.items, failures=1)
        session = make_session("item", "recharge", services=replace_service(services, items=failing))
        await _loaded(session)
        session.update(expiry_date="01/01/2030")
        session.save_draft()

        assert (await session.commit()).outcome is CommitOutcome.FAILED
        retry = await session.commit()

        assert retry.committed
        assert session.last_failure is None
        assert storage.list_changes() == []

    @pytest.mark.asyncio
    async def test_invalid_form_blocks_commit(self, recharge, confirmer, backend):
        await _loaded(recharge)
        recharge.update(expiry_date="")
        result = await recharge.commit()

        assert result.outcome is CommitOutcome.INVALID
        assert recharge.field_errors == {"expiry_date": "Expiry Date is required and must be DD/MM/YYYY."}
        assert recharge.state is EditSessionState.LOADED
        assert confirmer.prompts == []

    @pytest.mark.asyncio
    async def test_edit_clears_field_error(self, recharge):
        await _loaded(recharge)
        recharge.update(expiry_date="")
        await recharge.commit()
        recharge.update(expiry_date="01/01/2030")
        assert recharge.field_errors == {}

    @pytest.mark.asyncio
    async def test_clean_until_next_edit_after_commit(self, recharge):
        await _loaded(recharge)
        recharge.update(expiry_date="01/01/2030")
        await recharge.commit()
        assert not recharge.is_dirty()
        assert not recharge.guard.should_warn_before_unload()

        recharge.update(expiry_date="01/01/2031")
        assert recharge.is_dirty()
        change = recharge.save_draft()
        assert recharge.state is EditSessionState.DRAFTED
        assert change.payload["item"]["expiry_date"] == "01/01/2030"

    @pytest.mark.asyncio
    async def test_resubmit_while_committing_is_ignored(self, make_session, services):
        class SlowWrites(FailingWrites):
            def __init__(self, inner):
                super().__init__(inner, failures=0)
                self.release = asyncio.Event()

            async def update(self, code, partial_fields):
                await self.release.wait()
                return await super().update(code, partial_fields)

        slow = SlowWrites(services.items)
        session = make_session("item", "recharge", services=replace_service(services, items=slow))
        await _loaded(session)
        session.update(expiry_date="01/01/2030")

        first = asyncio.create_task(session.commit())
        while not session.is_committing:
            await asyncio.sleep(0)
        second = await session.commit()
        slow.release.set()

        assert second.outcome is CommitOutcome.CANCELLED
        assert (await first).committed
        assert slow.attempts == 1

    @pytest.mark.asyncio
    async def test_async_confirmer(self, make_session, storage):
        asked = []

        async def confirmer(prompt):
            asked.append(prompt.kind)
            return True

        session = make_session("item", "recharge", confirmer=confirmer)
        await _loaded(session)
        session.save_draft()
        assert (await session.commit()).committed
        assert asked == [PromptKind.STALE_DRAFT]

    @pytest.mark.asyncio
    async def test_resubmit_while_confirmation_pending_is_ignored(self, make_session, services):
        writes = FailingWrites(services.items, failures=0)
        confirmer = HeldConfirmer()
        session = make_session("item", "recharge", services=replace_service(services, items=writes), confirmer=confirmer)
        await _loaded(session)
        session.update(expiry_date="01/01/2030")
        session.save_draft()

        first = asyncio.create_task(session.commit())
        await confirmer.asked.wait()
        assert session.is_committing
        second = await session.commit()
        confirmer.release.set()

        assert second.outcome is CommitOutcome.CANCELLED
        assert (await first).committed
        assert writes.attempts == 1
        assert confirmer.kinds == [PromptKind.STALE_DRAFT]
        assert not session.is_committing

    @pytest.mark.asyncio
    async def test_declined_gate_allows_a_later_commit(self, make_session):
        session = make_session("item", "recharge", confirmer=RecordingConfirmer(False))
        await _loaded(session)
        session.update(expiry_date="01/01/2030")
        session.save_draft()

        assert (await session.commit()).outcome is CommitOutcome.CANCELLED
        assert not session.is_committing
        assert (await session.commit()).committed


class TestAddYear:
    @pytest.mark.asyncio
    async def test_add_year_rounds_up(self, recharge):
        await _loaded(recharge)
        assert recharge.add_year()
        assert recharge.form["expiry_date"] == "01/01/2027"
        assert recharge.is_dirty()

    @pytest.mark.asyncio
    async def test_add_year_on_partial_date(self, recharge):
        await _loaded(recharge)
        recharge.update(expiry_date="31/12")
        assert not recharge.add_year()
        assert recharge.notice.level is NoticeLevel.ERROR
        assert recharge.field_errors["expiry_date"].startswith("Please enter a valid DD/MM/YYYY date")

    @pytest.mark.asyncio
    async def test_add_year_past_max(self, recharge):
        await _loaded(recharge)
        recharge.update(expiry_date="15/06/2100")
        assert not recharge.add_year()
        assert recharge.notice.message == "Cannot set expiry past year 2100."
        assert recharge.form["expiry_date"] == "15/06/2100"

    @pytest.mark.asyncio
    async def test_add_year_blank_is_noop(self, recharge):
        await _loaded(recharge)
        recharge.update(expiry_date="")
        assert not recharge.add_year()
        assert recharge.notice is None


class TestNavigation:
    @pytest.mark.asyncio
    async def test_go_back_to_return_path(self, make_session, recharge, host):
        await _loaded(recharge)
        change = recharge.save_draft()
        open_draft(change, host)
        resumed = make_session("item", "recharge", nav=host.last[1])

        assert await resumed.go_back(host)
        assert host.last[0] == STORED_CHANGES

    @pytest.mark.asyncio
    async def test_go_back_defaults_home(self, recharge, host):
        assert await recharge.go_back(host)
        assert host.last[0] == HOME

    @pytest.mark.asyncio
    async def test_dirty_go_home_declined(self, make_session, host):
        confirmer = RecordingConfirmer(False)
        session = make_session("item", "recharge", confirmer=confirmer)
        await _loaded(session)
        session.update(expiry_date="01/01/2030")

        assert not await session.go_home(host)
        assert host.visits == []

    @pytest.mark.asyncio
    async def test_open_sibling_page_carries_entity(self, recharge, make_session, host):
        await _loaded(recharge)
        assert await recharge.open_page(host, "/assign-item")
        path, state = host.last
        assert path == "/assign-item"
        assign = make_session("item", "assign", nav=state)
        assert assign.entity == recharge.entity
        assert assign.state is EditSessionState.LOADED
        assert assign.form == {"owner": "1001#01"}

    @pytest.mark.asyncio
    async def test_return_state_round_trips(self, make_session, host):
        nav = NavigationState(item=None, return_to="/create-note", return_state={"note": {"id": "n1"}})
        session = make_session("item", "recharge", nav=nav)
        assert await session.go_back(host)
        path, state = host.last
        assert path == "/create-note"
        assert state.return_state == {"note": {"id": "n1"}}
