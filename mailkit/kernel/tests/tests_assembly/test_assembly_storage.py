"""
Mailkit Assembly -- Storage and Saving Tests

MemoryStorage CRUD, save coalescing (at most one write in flight), and
the autosave checkpoint.
"""

import asyncio
import logging

import pytest

from mailkit.kernel.assembly import Autosaver, EditorSession, MemoryStorage, TemplateNotFound
from mailkit.kernel.model import TemplateModel


class SlowStorage(MemoryStorage):
    """Storage whose writes block until released, recording concurrency."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()
        self.in_flight = 0
        self.max_in_flight = 0
        self.saved_headings: list[list[str]] = []

    async def save(self, model: TemplateModel) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await self.release.wait()
            self.saved_headings.append([s.settings.get("heading", "") for s in model.sections])
            return await super().save(model)
        finally:
            self.in_flight -= 1


class FailingStorage(MemoryStorage):
    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures

    async def save(self, model: TemplateModel) -> str:
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("storage offline")
        return await super().save(model)


class TestMemoryStorage:
    @pytest.mark.asyncio
    async def test_save_assigns_id_and_loads(self):
        storage = MemoryStorage()
        model = TemplateModel(name="Launch")
        model.add_section("hero")
        template_id = await storage.save(model)

        loaded = await storage.load(template_id)
        assert loaded.id == template_id
        assert loaded.name == "Launch"
        assert loaded.section_ids == model.section_ids

    @pytest.mark.asyncio
    async def test_last_write_wins(self):
        storage = MemoryStorage()
        model = TemplateModel(name="v1")
        model.id = await storage.save(model)
        model.name = "v2"
        await storage.save(model)
        assert (await storage.load(model.id)).name == "v2"
        assert len(await storage.list()) == 1

    @pytest.mark.asyncio
    async def test_loaded_copy_is_independent(self):
        storage = MemoryStorage()
        model = TemplateModel()
        model.add_section("list")
        template_id = await storage.save(model)
        loaded = await storage.load(template_id)
        loaded.sections[0].settings["items"].clear()
        assert (await storage.load(template_id)).sections[0].settings["items"]

    @pytest.mark.asyncio
    async def test_delete(self):
        storage = MemoryStorage()
        template_id = await storage.save(TemplateModel())
        await storage.delete(template_id)
        with pytest.raises(TemplateNotFound):
            await storage.load(template_id)
        with pytest.raises(TemplateNotFound):
            await storage.delete(template_id)


class TestSaveCoalescing:
    @pytest.mark.asyncio
    async def test_concurrent_saves_share_one_follow_up(self):
        storage = SlowStorage()
        session = EditorSession(storage=storage)
        section = session.add_section("banner")

        first = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        session.edit_field(section.id, "heading", "Second")
        second = asyncio.create_task(session.save())
        third = asyncio.create_task(session.save())
        await asyncio.sleep(0)

        storage.release.set()
        ids = await asyncio.gather(first, second, third)

        assert storage.max_in_flight == 1
        assert storage.writes == 2
        assert len(set(ids)) == 1
        assert storage.saved_headings[-1] == ["Second"]
        assert session.dirty is False

    @pytest.mark.asyncio
    async def test_edit_during_save_stays_dirty(self):
        storage = SlowStorage()
        session = EditorSession(storage=storage)
        section = session.add_section("banner")

        pending = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        session.edit_field(section.id, "heading", "Late edit")
        storage.release.set()
        await pending

        assert session.dirty is True
        assert storage.saved_headings == [["Special Offer!"]]

    @pytest.mark.asyncio
    async def test_save_failure_propagates(self):
        session = EditorSession(storage=FailingStorage(failures=1))
        session.add_section("text")
        with pytest.raises(ConnectionError):
            await session.save()
        assert session.dirty is True

    @pytest.mark.asyncio
    async def test_discard_during_save(self):
        storage = SlowStorage()
        session = EditorSession(storage=storage)
        session.add_section("text")
        pending = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        session.discard()
        storage.release.set()
        await pending
        assert session.closed
        assert storage.writes == 1


class TestAutosave:
    @pytest.mark.asyncio
    async def test_tick_saves_only_when_dirty(self):
        storage = MemoryStorage()
        session = EditorSession(storage=storage)
        autosaver = Autosaver(session, interval=60)

        assert await autosaver.tick() is False
        session.add_section("text")
        assert await autosaver.tick() is True
        assert await autosaver.tick() is False
        assert storage.writes == 1

    @pytest.mark.asyncio
    async def test_failed_tick_is_silent_and_retried(self, caplog):
        session = EditorSession(storage=FailingStorage(failures=1))
        session.add_section("text")
        autosaver = Autosaver(session, interval=60)

        with caplog.at_level(logging.WARNING, logger="mailkit.kernel.assembly"):
            assert await autosaver.tick() is False
        assert autosaver.failures == 1
        assert "autosave" in caplog.text
        assert session.dirty is True

        assert await autosaver.tick() is True
        assert session.dirty is False

    @pytest.mark.asyncio
    async def test_background_loop(self):
        storage = MemoryStorage()
        session = EditorSession(storage=storage)
        session.add_section("text")
        autosaver = Autosaver(session, interval=0.01)

        autosaver.start()
        assert autosaver.running
        for _ in range(100):
            if storage.writes:
                break
            await asyncio.sleep(0.01)
        await autosaver.stop()

        assert storage.writes >= 1
        assert not autosaver.running

    @pytest.mark.asyncio
    async def test_loop_ends_when_session_discarded(self):
        session = EditorSession(storage=MemoryStorage())
        autosaver = Autosaver(session, interval=0.01)
        autosaver.start()
        session.discard()
        await asyncio.sleep(0.05)
        assert not autosaver.running
        await autosaver.stop()
