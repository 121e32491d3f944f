"""
Mock section generator for deterministic testing and UX timing simulation.

Replays golden patch files (one JSON object per section type) with
configurable delays. Used in tests (instant profile) and in local previews
without an AI provider (realistic profiles).
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from mailkit.kernel.generation import GenerationError
from mailkit.kernel.types import GenerationContext, GenerationReply, SectionType

GOLDEN_DIR = Path(__file__).parent / "tests" / "fixtures" / "golden"

DELAY_PROFILES: dict[str, dict[str, int]] = {
    "instant": {"think_ms": 0},
    "quick": {"think_ms": 150},
    "slow": {"think_ms": 1500},
}


class MockGenerator:
    """Answers generation requests from golden files."""

    def __init__(
        self,
        golden_dir: Path = GOLDEN_DIR,
        profile: str = "instant",
        delays: dict[str, float] | None = None,
        failures: set[str] | None = None,
    ):
        """
        Args:
            golden_dir: Directory holding <section_type>.json patch files
            profile: Delay profile name from DELAY_PROFILES
            delays: Per-section-type delay overrides in seconds
            failures: Section types that raise GenerationError
        """
        if profile not in DELAY_PROFILES:
            raise ValueError(f"Unknown delay profile: {profile!r}. Valid profiles: {list(DELAY_PROFILES)}")
        self.golden_dir = golden_dir
        self.profile = profile
        self.delays = delays or {}
        self.failures = failures or set()
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        section_type: SectionType,
        settings: dict[str, Any],
        fields: list[str],
        context: GenerationContext,
    ) -> GenerationReply:
        self.calls.append({"type": section_type.type, "fields": list(fields)})

        delay = self.delays.get(section_type.type, DELAY_PROFILES[self.profile]["think_ms"] / 1000)
        if delay > 0:
            await asyncio.sleep(delay)

        if section_type.type in self.failures:
            raise GenerationError(f"mock failure for {section_type.type}")

        golden = self.load(section_type.type)
        patch = dict(golden.get("patch", {}))
        field_errors = dict(golden.get("field_errors", {}))
        return GenerationReply(patch=patch, field_errors=field_errors)

    def load(self, section_type: str) -> dict[str, Any]:
        """
        Read one golden file.

        Raises:
            GenerationError: If there is no golden file for the type
        """
        path = self.golden_dir / f"{section_type}.json"
        if not path.exists():
            raise GenerationError(f"Golden file not found: {path}")
        return json.loads(path.read_text())

    def list_scenarios(self) -> list[str]:
        """Section types with a golden file."""
        return sorted(p.stem for p in self.golden_dir.glob("*.json"))
