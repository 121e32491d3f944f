"""
Mailkit Kernel: Generation Tasks

Runs a SectionGenerator (the AI collaborator) against sections of an
editing session and merges what comes back.

Each call takes a ticket from the session before suspending. When a reply
arrives it is applied only if the ticket is still current and the target
section still exists; otherwise it is dropped. Replies are applied in
arrival order, last applied wins per field. Model mutations happen only
between suspension points.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from mailkit.kernel.assembly import EditorSession, GenerationTicket
from mailkit.kernel.merge import ai_request_fields, apply_ai_patch
from mailkit.kernel.registry import get_type, has_type
from mailkit.kernel.types import (
    APPLIED,
    DISCARDED,
    FAILED,
    SKIPPED,
    GenerationContext,
    GenerationReply,
    GenerationReport,
    SectionOutcome,
    SectionType,
)

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The generator could not produce content for a section."""


class SectionGenerator(Protocol):
    async def generate(
        self,
        section_type: SectionType,
        settings: dict[str, Any],
        fields: list[str],
        context: GenerationContext,
    ) -> GenerationReply:
        """
        Produce values for `fields` of one section. Fields it cannot produce
        go in reply.field_errors. Raises GenerationError for a total failure.
        """
        ...


async def regenerate_section(
    session: EditorSession,
    section_id: str,
    generator: SectionGenerator,
    context: GenerationContext,
) -> SectionOutcome:
    """Regenerate the AI-enabled fields of one section."""
    ticket = session.ticket()
    request = _prepare(session, section_id)
    if isinstance(request, SectionOutcome):
        return request
    return await _generate_one(session, ticket, section_id, request, generator, context)


async def generate_all(
    session: EditorSession,
    generator: SectionGenerator,
    context: GenerationContext,
) -> GenerationReport:
    """
    Generate every AI-capable section concurrently. Each reply is merged as
    soon as it arrives; outcomes are reported in section order.
    """
    ticket = session.ticket()
    outcomes: dict[str, SectionOutcome] = {}
    pending: list[asyncio.Task[SectionOutcome]] = []
    order = session.model.section_ids

    for section_id in order:
        request = _prepare(session, section_id)
        if isinstance(request, SectionOutcome):
            outcomes[section_id] = request
            continue
        pending.append(asyncio.create_task(_generate_one(session, ticket, section_id, request, generator, context)))

    try:
        for finished in asyncio.as_completed(pending):
            outcome = await finished
            outcomes[outcome.section_id] = outcome
    finally:
        # Cancelled callers must not leave tasks writing into the model
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    return GenerationReport(outcomes=[outcomes[sid] for sid in order if sid in outcomes])


async def _generate_one(
    session: EditorSession,
    ticket: GenerationTicket,
    section_id: str,
    request: tuple[SectionType, dict[str, Any], list[str]],
    generator: SectionGenerator,
    context: GenerationContext,
) -> SectionOutcome:
    section_type, settings, fields = request
    try:
        reply = await generator.generate(section_type, settings, fields, context)
    except GenerationError as e:
        logger.warning("generation: section %s (%s) failed: %s", section_id, section_type.type, e)
        return SectionOutcome(section_id=section_id, status=FAILED, error=str(e))
    except Exception as e:
        logger.error(
            "generation: section %s (%s) raised unexpectedly: %s", section_id, section_type.type, e, exc_info=True
        )
        return SectionOutcome(section_id=section_id, status=FAILED, error=f"generator error: {e}")
    return _apply(session, ticket, section_id, fields, reply)


def _prepare(session: EditorSession, section_id: str) -> tuple[SectionType, dict[str, Any], list[str]] | SectionOutcome:
    section = session.model.get_section(section_id)
    if section is None:
        return SectionOutcome(section_id=section_id, status=DISCARDED, error="section not found")
    if not has_type(section.type):
        logger.warning("generation: section %s has unknown type %r, skipped", section_id, section.type)
        return SectionOutcome(section_id=section_id, status=SKIPPED, error="unknown section type")
    section_type = get_type(section.type)
    fields = ai_request_fields(section)
    if not section_type.has_ai or not fields:
        return SectionOutcome(section_id=section_id, status=SKIPPED)
    return section_type, dict(section.settings), fields


def _apply(
    session: EditorSession,
    ticket: GenerationTicket,
    section_id: str,
    fields: list[str],
    reply: GenerationReply,
) -> SectionOutcome:
    if not session.is_current(ticket):
        logger.info("generation: reply for section %s arrived after the session moved on, dropped", section_id)
        return SectionOutcome(section_id=section_id, status=DISCARDED)

    section = session.model.get_section(section_id)
    if section is None:
        # Deleted while the request was in flight
        return SectionOutcome(section_id=section_id, status=DISCARDED)

    # Fields the generator reported as failed keep their prior values
    patch = {k: v for k, v in reply.patch.items() if k not in reply.field_errors}
    result = apply_ai_patch(section, patch)
    if result.applied:
        session.model.touch()

    field_errors = dict(reply.field_errors)
    for key in fields:
        if key not in patch and key not in field_errors and key not in result.pinned:
            field_errors[key] = "not returned"

    return SectionOutcome(
        section_id=section_id,
        status=APPLIED,
        result=result,
        field_errors=field_errors,
    )
