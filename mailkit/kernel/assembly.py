"""
Mailkit Kernel: Assembly Layer

Sits between the pure functions (model, merge, renderer) and the outside
world (template storage, generators). Coordinates the lifecycle of one
editing session.

    EditorSession   model + selection + dirty state + generation epoch
    TemplateStorage save / load / list / delete (MemoryStorage for tests)
    TemplateSaver   at most one write in flight, extra requests coalesce
    Autosaver       periodic checkpoint, only when dirty, silent on failure

This is where IO happens. The model, merge engine and renderer are pure.
"""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
from dataclasses import dataclass
from typing import Any

from mailkit.kernel.model import TemplateModel, new_template
from mailkit.kernel.types import SectionInstance, TemplateSummary, new_id, now_iso

logger = logging.getLogger(__name__)

AUTOSAVE_INTERVAL_SECONDS = 60.0


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TemplateNotFound(Exception):
    """Template does not exist in storage."""

    def __init__(self, template_id: str):
        super().__init__(f"Template not found: {template_id}")
        self.template_id = template_id


class SessionDiscarded(Exception):
    """The editing session was discarded; its model is gone."""


# ---------------------------------------------------------------------------
# Storage protocol
# ---------------------------------------------------------------------------


class TemplateStorage:
    """
    Abstract storage interface: a dumb key-value store with listing.
    Implement with Postgres for production, or in-memory for tests.
    Last write wins per id.
    """

    async def save(self, model: TemplateModel) -> str:
        """Persist a model. Assigns an id when model.id is None. Returns the id."""
        raise NotImplementedError

    async def load(self, template_id: str) -> TemplateModel:
        """Fetch a model. Raises TemplateNotFound."""
        raise NotImplementedError

    async def list(self) -> list[TemplateSummary]:
        """All templates, most recently updated first."""
        raise NotImplementedError

    async def delete(self, template_id: str) -> None:
        """Remove a template. Raises TemplateNotFound."""
        raise NotImplementedError


class MemoryStorage(TemplateStorage):
    """In-memory storage for testing."""

    def __init__(self) -> None:
        self.templates: dict[str, dict[str, Any]] = {}
        self.writes = 0

    async def save(self, model: TemplateModel) -> str:
        template_id = model.id or new_id()
        now = now_iso()
        record = model.to_dict()
        record["id"] = template_id
        existing = self.templates.get(template_id)
        record["created_at"] = (existing or {}).get("created_at") or model.created_at or now
        record["updated_at"] = now
        self.templates[template_id] = copy.deepcopy(record)
        self.writes += 1
        return template_id

    async def load(self, template_id: str) -> TemplateModel:
        record = self.templates.get(template_id)
        if record is None:
            raise TemplateNotFound(template_id)
        return TemplateModel.from_dict(copy.deepcopy(record))

    async def list(self) -> list[TemplateSummary]:
        rows = sorted(self.templates.values(), key=lambda r: r["updated_at"], reverse=True)
        return [TemplateSummary(id=r["id"], name=r["name"], updated_at=r["updated_at"]) for r in rows]

    async def delete(self, template_id: str) -> None:
        if self.templates.pop(template_id, None) is None:
            raise TemplateNotFound(template_id)


# ---------------------------------------------------------------------------
# Editor session
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationTicket:
    """Taken before an async generation call, checked again before applying."""

    epoch: int


class EditorSession:
    """
    Explicit editing state, passed to every operation instead of living in
    globals: the template model, the selected section, and whether there
    are unsaved mutations.

    `epoch` moves forward whenever the model is replaced or discarded, so a
    response that was requested against an older model can be recognised
    and dropped.
    """

    def __init__(self, model: TemplateModel | None = None, storage: TemplateStorage | None = None):
        self._model: TemplateModel | None = model if model is not None else new_template()
        self.selected_section_id: str | None = None
        self.epoch = 0
        self.storage = storage
        self.saver = TemplateSaver(self, storage) if storage is not None else None
        self._saved_revision = self._model.revision

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def model(self) -> TemplateModel:
        if self._model is None:
            raise SessionDiscarded("session was discarded")
        return self._model

    @property
    def closed(self) -> bool:
        return self._model is None

    @property
    def dirty(self) -> bool:
        return self._model is not None and self._model.revision != self._saved_revision

    def mark_saved(self, revision: int) -> None:
        self._saved_revision = revision

    def ticket(self) -> GenerationTicket:
        return GenerationTicket(epoch=self.epoch)

    def is_current(self, ticket: GenerationTicket) -> bool:
        return not self.closed and ticket.epoch == self.epoch

    def replace_model(self, model: TemplateModel) -> None:
        """Switch to another template (new or loaded). In-flight work is invalidated."""
        self._model = model
        self.selected_section_id = None
        self.epoch += 1
        self._saved_revision = model.revision

    def discard(self) -> None:
        """Drop the in-memory model. Late responses for it are ignored."""
        self._model = None
        self.selected_section_id = None
        self.epoch += 1

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, section_id: str | None) -> bool:
        if section_id is not None and self.model.get_section(section_id) is None:
            return False
        self.selected_section_id = section_id
        return True

    @property
    def selected(self) -> SectionInstance | None:
        if self.selected_section_id is None or self._model is None:
            return None
        return self._model.get_section(self.selected_section_id)

    # ------------------------------------------------------------------
    # Mutations (synchronous)
    # ------------------------------------------------------------------

    def add_section(self, section_type: str, variant_id: str | None = None, index: int | None = None) -> SectionInstance:
        instance = self.model.add_section(section_type, variant_id, index)
        self.selected_section_id = instance.id
        return instance

    def remove_section(self, section_id: str) -> bool:
        removed = self.model.remove_section(section_id)
        if removed and self.selected_section_id == section_id:
            self.selected_section_id = None
        return removed

    def move_section(self, section_id: str, new_index: int) -> bool:
        return self.model.move_section(section_id, new_index)

    def duplicate_section(self, section_id: str) -> SectionInstance | None:
        clone = self.model.duplicate_section(section_id)
        if clone is not None:
            self.selected_section_id = clone.id
        return clone

    def reconcile_order(self, explicit_order: list[str]) -> list[str]:
        return self.model.reconcile_order(explicit_order)

    def edit_field(self, section_id: str, key: str, value: Any) -> bool:
        return self.model.edit_field(section_id, key, value)

    def set_ai_flag(self, section_id: str, key: str, enabled: bool) -> bool:
        return self.model.set_ai_flag(section_id, key, enabled)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save(self) -> str:
        """Explicit save. Failures propagate to the caller."""
        if self.saver is None:
            raise RuntimeError("session has no storage")
        return await self.saver.save()

    async def open(self, template_id: str) -> TemplateModel:
        if self.storage is None:
            raise RuntimeError("session has no storage")
        model = await self.storage.load(template_id)
        self.replace_model(model)
        return model


# ---------------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------------


class TemplateSaver:
    """
    Serialises writes for one session: at most one save is in flight.

    A save requested while another is running does not start a second
    concurrent write. All such requests share one follow-up save, which
    snapshots the model only once the running write has finished, so it
    persists the latest state.
    """

    def __init__(self, session: EditorSession, storage: TemplateStorage):
        self.session = session
        self.storage = storage
        self._lock = asyncio.Lock()
        self._follow_up: asyncio.Future[str] | None = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def save(self) -> str:
        if self._follow_up is not None:
            return await asyncio.shield(self._follow_up)

        if not self._lock.locked():
            async with self._lock:
                return await self._write()

        follow_up: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._follow_up = follow_up
        async with self._lock:
            self._follow_up = None
            try:
                template_id = await self._write()
            except Exception as e:
                follow_up.set_exception(e)
                # Mark retrieved; this caller re-raises it below
                follow_up.exception()
                raise
            follow_up.set_result(template_id)
            return template_id

    async def _write(self) -> str:
        session = self.session
        epoch = session.epoch
        model = session.model
        revision = model.revision
        snapshot = model.clone()
        if snapshot.created_at is None:
            snapshot.created_at = now_iso()

        template_id = await self.storage.save(snapshot)

        if session.epoch == epoch and not session.closed:
            model.id = template_id
            if model.created_at is None:
                model.created_at = snapshot.created_at
            session.mark_saved(revision)
        logger.info("assembly: saved template %s (revision %d)", template_id, revision)
        return template_id


class Autosaver:
    """
    Periodic, low-priority checkpoint for one session.

    Every `interval` seconds it saves if the session has unsaved mutations.
    A failed autosave is logged and retried on the next tick; it never
    raises into the editor.
    """

    def __init__(self, session: EditorSession, interval: float = AUTOSAVE_INTERVAL_SECONDS):
        self.session = session
        self.interval = interval
        self._task: asyncio.Task[None] | None = None
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def run(self) -> None:
        """Background loop. Ends when cancelled or when the session is discarded."""
        while not self.session.closed:
            await asyncio.sleep(self.interval)
            await self.tick()

    async def tick(self) -> bool:
        """One checkpoint. Returns True if a save happened."""
        session = self.session
        if session.closed or not session.dirty or session.saver is None:
            return False
        try:
            await session.saver.save()
        except Exception as e:
            self.failures += 1
            logger.warning("autosave: checkpoint failed, retrying next interval: %s", e)
            return False
        return True
