"""Shared fixtures: silent logger, manual clock, fake procedure source, sample payloads."""

from __future__ import annotations

from typing import Any

import pytest

from eregulations_mcp.foundation.config import Settings, clear_settings_cache
from eregulations_mcp.foundation.errors import ErrorTrace, Ok, Result
from eregulations_mcp.models import ProcedureDetail, ProcedureSummary, Step
from eregulations_mcp.runtime.observability import BoundLogger, NoOpRenderer


class ManualClock:
    """Clock whose time only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource:
    """In-memory ProcedureSource. Set `error` to fail every call, `raises` to blow up."""

    def __init__(
        self,
        procedures: list[ProcedureSummary] | None = None,
        detail: ProcedureDetail | None = None,
        step: Step | None = None,
    ) -> None:
        self.procedures = procedures or []
        self.detail = detail
        self.step = step
        self.error: Result[Any, ErrorTrace] | None = None
        self.raises: Exception | None = None
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _answer(self, name: str, args: tuple[Any, ...], value: Any) -> Result[Any, ErrorTrace]:
        self.calls.append((name, args))
        if self.raises is not None:
            raise self.raises
        return self.error if self.error is not None else Ok(value)

    async def fetch_procedure_summaries(self) -> Result[list[ProcedureSummary], ErrorTrace]:
        return self._answer("fetch_procedure_summaries", (), self.procedures)

    async def fetch_procedure_by_id(self, procedure_id: int) -> Result[ProcedureDetail, ErrorTrace]:
        return self._answer("fetch_procedure_by_id", (procedure_id,), self.detail)

    async def fetch_step(self, procedure_id: int, step_id: int) -> Result[Step, ErrorTrace]:
        return self._answer("fetch_step", (procedure_id, step_id), self.step)

    async def search_by_keyword(self, keyword: str) -> Result[list[ProcedureSummary], ErrorTrace]:
        matches = [p for p in self.procedures if keyword.lower() in (p.name or "").lower()]
        return self._answer("search_by_keyword", (keyword,), matches)


# ═════════════════════════════════════════════════════════════════════════════
# Sample payloads (camelCase, as the API sends them)
# ═════════════════════════════════════════════════════════════════════════════


STEP_PAYLOAD: dict[str, Any] = {
    "id": 7,
    "name": "Register company name",
    "isOnline": True,
    "online": {"url": "https://ors.brela.go.tz"},
    "contact": {
        "entityInCharge": {
            "name": "BRELA",
            "firstPhone": "+255 22 2180113",
            "firstEmail": "info@brela.go.tz",
            "address": "Ushirika Building, Dar es Salaam",
        },
        "unitInCharge": {"name": "Registration desk"},
        "personInCharge": {"name": "Jane Doe", "profession": "Registrar"},
    },
    "requirements": [
        {"name": "Passport copy", "nbOriginal": 1, "nbCopy": 2, "comments": "Certified"},
        {"name": "Application form"},
    ],
    "results": [
        {"name": "Name clearance", "isFinalResult": False},
        {"name": "Certificate of incorporation", "isFinalResult": True},
    ],
    "timeframe": {
        "timeSpentAtTheCounter": {"minutes": {"max": 30}},
        "waitingTimeInLine": {"minutes": {"max": 15}},
        "waitingTimeUntilNextStep": {"days": {"max": 2}},
    },
    "costs": [
        {"value": 1000, "unit": "TZS", "comments": "Filing fee"},
        {"value": 2, "operator": "percentage", "parameter": "of share capital"},
        {"value": 0, "unit": "TZS"},
    ],
    "laws": [{"name": "Companies Act 2002"}, {"name": "Business Names Act"}],
}

PROCEDURE_PAYLOAD: dict[str, Any] = {
    "id": 1246,
    "name": "Company registration",
    "isOnline": True,
    "data": {
        "id": 1246,
        "name": "Company registration",
        "url": "https://example.org/procedure/1246",
        "description": "Register a private limited company with BRELA.",
        "additionalInfo": "Applies to local companies",
        "blocks": [
            {"steps": [STEP_PAYLOAD]},
            {"steps": [{
                "id": 8,
                "name": "Obtain TIN",
                "contact": {"entityInCharge": {"name": "TRA"}},
                "requirements": [{"name": "Passport copy"}, {"name": "Lease agreement"}],
                "timeframe": {"waitingTimeUntilNextStep": {"days": {"max": 1}}},
                "costs": [{"value": 500, "unit": "TZS"}, {"value": 20, "unit": "USD"}],
            }]},
        ],
    },
}


# ═════════════════════════════════════════════════════════════════════════════
# Fixtures
# ═════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def silent_logger() -> BoundLogger:
    return BoundLogger(_renderer=NoOpRenderer())


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the process environment."""
    return Settings.model_validate({
        "api": {"url": "https://api.example.org/"},
        "retry": {"max_retries": 2, "delay": 0.5},
    })


@pytest.fixture
def summaries() -> list[ProcedureSummary]:
    return [
        ProcedureSummary(id=1, name="Import permit", is_online=True, explanatory_text="Permit for importing goods"),
        ProcedureSummary(id=2, name="Company registration", full_name="Business > Company registration",
                         parent_name="Business"),
        ProcedureSummary(id=3, name="Export licence", description="Licence to export agricultural produce"),
    ]


@pytest.fixture
def source(summaries: list[ProcedureSummary]) -> FakeSource:
    return FakeSource(
        procedures=summaries,
        detail=ProcedureDetail.model_validate(PROCEDURE_PAYLOAD),
        step=Step.model_validate({**STEP_PAYLOAD, "procedureId": 1246}),
    )


@pytest.fixture
def clean_settings_cache() -> object:
    clear_settings_cache()
    yield
    clear_settings_cache()
