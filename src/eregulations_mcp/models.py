"""Record models for eRegulations API payloads.

Every upstream field is optional: absence means "not specified" and the
formatters fall back accordingly. Attributes are snake_case, populated from
the API's camelCase wire names. Unknown fields are ignored and records are
frozen, so formatting can never mutate what the client cached.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ModelWrapValidatorHandler, ValidationError, model_validator
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    """Base for all upstream records.

    Parsing is lenient per field: a value that fails validation is dropped so
    the field keeps its default, and the rest of the record survives.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        revalidate_instances="never",
    )

    @model_validator(mode="wrap")
    @classmethod
    def _skip_invalid_fields(cls, data: Any, handler: ModelWrapValidatorHandler[Self]) -> Self:
        while True:
            try:
                return handler(data)
            except ValidationError as exc:
                if not isinstance(data, Mapping):
                    raise
                failed = {err["loc"][0] for err in exc.errors() if err["loc"]}
                kept = {k: v for k, v in data.items() if k not in failed and to_camel(k) not in failed}
                if len(kept) == len(data):
                    raise
                data = kept

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        """Treat explicit JSON nulls as absent so field defaults apply."""
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if v is not None}
        return data


# ═══════════════════════════════════════════════════════════════════════════════
# Procedure list / search
# ═══════════════════════════════════════════════════════════════════════════════


class ProcedureSummary(Record):
    """A procedure (objective) as returned by list and search queries."""

    id: int | None = None
    name: str | None = None
    full_name: str | None = None
    is_online: bool = False
    parent_name: str | None = None
    explanatory_text: str | None = None
    description: str | None = None
    is_procedure: bool = False

    @property
    def display_name(self) -> str | None:
        return self.full_name or self.name


# ═══════════════════════════════════════════════════════════════════════════════
# Step components
# ═══════════════════════════════════════════════════════════════════════════════


class Online(Record):
    url: str | None = None


class Entity(Record):
    """Institution in charge of a step."""

    name: str | None = None
    first_phone: str | None = None
    second_phone: str | None = None
    first_email: str | None = None
    second_email: str | None = None
    first_website: str | None = None
    second_website: str | None = None
    address: str | None = None
    schedule_comments: str | None = None


class Unit(Record):
    name: str | None = None


class Person(Record):
    name: str | None = None
    profession: str | None = None


class Contact(Record):
    entity_in_charge: Entity | None = None
    unit_in_charge: Unit | None = None
    person_in_charge: Person | None = None


class Requirement(Record):
    name: str | None = None
    comments: str | None = None
    nb_original: int | None = None
    nb_copy: int | None = None
    nb_authenticated: int | None = None


class StepResult(Record):
    """A document or output produced by a step."""

    name: str | None = None
    comments: str | None = None
    is_final_result: bool = False


class Span(Record):
    max: float | None = None


class MinutesSpan(Record):
    minutes: Span | None = None


class DaysSpan(Record):
    days: Span | None = None


class Timeframe(Record):
    time_spent_at_the_counter: MinutesSpan | None = None
    waiting_time_in_line: MinutesSpan | None = None
    waiting_time_until_next_step: DaysSpan | None = None
    comments: str | None = None

    @property
    def counter_minutes(self) -> float | None:
        span = self.time_spent_at_the_counter
        return span.minutes.max if span and span.minutes else None

    @property
    def wait_minutes(self) -> float | None:
        span = self.waiting_time_in_line
        return span.minutes.max if span and span.minutes else None

    @property
    def processing_days(self) -> float | None:
        span = self.waiting_time_until_next_step
        return span.days.max if span and span.days else None


class Cost(Record):
    """A fixed (`value unit`) or percentage (`value% parameter`) cost."""

    value: float | None = None
    unit: str | None = None
    operator: str | None = None
    parameter: str | None = None
    comments: str | None = None
    payment_details: str | None = None

    @property
    def is_percentage(self) -> bool:
        return self.operator == "percentage"


class AdditionalInfo(Record):
    text: str | None = None


class Law(Record):
    name: str | None = None


class Step(Record):
    """A single step of a procedure, with contact, requirements and costs."""

    id: int | None = None
    name: str | None = None
    procedure_id: int | None = None
    procedure_name: str | None = None
    is_optional: bool = False
    is_certified: bool = False
    is_parallel: bool = False
    is_online: bool = False
    online: Online | None = None
    contact: Contact | None = None
    requirements: list[Requirement] | None = None
    results: list[StepResult] | None = None
    timeframe: Timeframe | None = None
    costs: list[Cost] | None = None
    additional_info: AdditionalInfo | None = None
    laws: list[Law] | None = None

    @property
    def online_url(self) -> str | None:
        return self.online.url if self.online else None

    @property
    def entity_name(self) -> str | None:
        entity = self.contact.entity_in_charge if self.contact else None
        return entity.name if entity else None


# ═══════════════════════════════════════════════════════════════════════════════
# Procedure detail
# ═══════════════════════════════════════════════════════════════════════════════


class Block(Record):
    steps: list[Step] = Field(default_factory=list)


class ProcedureData(Record):
    id: int | None = None
    name: str | None = None
    url: str | None = None
    description: str | None = None
    additional_info: str | None = None
    blocks: list[Block] = Field(default_factory=list)


class ProcedureDetail(ProcedureSummary):
    """Full procedure record: summary fields plus nested `data` with step blocks."""

    data: ProcedureData | None = None

    @property
    def steps(self) -> list[Step]:
        """All steps across every block, in order."""
        if self.data is None:
            return []
        return [step for block in self.data.blocks for step in block.steps]
