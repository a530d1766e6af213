"""Condensed rendering of a full procedure with its steps and totals.

Procedure payloads can be large (dozens of steps, each with contacts,
documents and fees). The text keeps one compact block per step, lists each
requirement only the first time it appears, and closes with a summary of
institutions, time and costs accumulated across all steps.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from eregulations_mcp.models import ProcedureDetail, Step

from .base import Formatted, as_record, compact, grouped, num, truncate

EMPTY_TEXT = "No procedure data available"

_MINUTES_PER_DAY = 60 * 24


@dataclass(slots=True)
class _Totals:
    """Running totals collected while rendering steps."""

    institutions: set[str] = field(default_factory=set)
    requirements: set[str] = field(default_factory=set)
    counter_minutes: float = 0.0
    wait_minutes: float = 0.0
    processing_days: float = 0.0
    fixed_costs: dict[str, float] = field(default_factory=dict)
    variable_costs: list[str] = field(default_factory=list)

    @property
    def minutes(self) -> float:
        return self.counter_minutes + self.wait_minutes

    @property
    def days(self) -> float:
        return self.processing_days + self.minutes / _MINUTES_PER_DAY


class ProcedureFormatter:
    def format(
        self,
        procedure: ProcedureDetail | Mapping[str, Any] | None,
        max_length: int | None = None,
    ) -> Formatted[dict[str, Any]]:
        if procedure is None:
            return Formatted(text=EMPTY_TEXT, data={})

        proc = as_record(ProcedureDetail, procedure)
        return Formatted(text=self._text(proc, max_length), data=self._essential(proc))

    # ─────────────────────────────────────────────────────────────────
    # Data
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _essential(proc: ProcedureDetail) -> dict[str, Any]:
        data = proc.data
        return compact({
            "id": proc.id if proc.id is not None else (data.id if data else None),
            "name": proc.display_name or (data.name if data else None),
            "isOnline": proc.is_online,
            "description": _description(proc),
            "additionalInfo": data.additional_info if data else None,
            "steps": [
                compact({
                    "id": step.id,
                    "name": step.name,
                    "isOnline": step.is_online,
                    "entityName": step.entity_name,
                })
                for step in proc.steps
            ],
        })

    # ─────────────────────────────────────────────────────────────────
    # Text
    # ─────────────────────────────────────────────────────────────────

    def _text(self, proc: ProcedureDetail, max_length: int | None) -> str:
        data = proc.data
        name = proc.display_name or (data.name if data else None) or "Unknown"
        ident = (data.id if data and data.id else None) or proc.id or "Unknown"

        lines = [f"PROCEDURE: {name} (ID:{ident})"]
        if data and data.url:
            lines.append(f"URL: {data.url}")
        if description := _description(proc):
            lines.append(f"DESC: {truncate(description, max_length)}")
        if data and data.additional_info:
            lines.append(f"INFO: {data.additional_info}")

        totals = _Totals()
        steps = proc.steps
        lines += ["", "STEPS:"]
        for number, step in enumerate(steps, 1):
            lines += self._step_lines(number, step, totals)

        final_docs = [r.name for step in steps for r in step.results or () if r.is_final_result and r.name]
        if final_docs:
            lines += ["", "FINAL DOCUMENTS: " + " ".join(f"{doc};" for doc in final_docs)]

        lines += ["", "SUMMARY:"]
        lines.append(
            f"Steps: {len(steps)} | Institutions: {len(totals.institutions)} | Requirements: {len(totals.requirements)}"
        )
        if totals.days > 0:
            time_line = f"Est. time: {totals.days:.1f} days"
            if totals.minutes > 0:
                time_line += f" (includes {num(totals.minutes)} minutes at counters)"
            lines.append(time_line)
        if totals.fixed_costs:
            lines.append("Fixed costs: " + ", ".join(
                f"{grouped(amount)} {unit}".rstrip() for unit, amount in totals.fixed_costs.items()
            ))
        if totals.variable_costs:
            lines.append("Variable costs: " + " ".join(totals.variable_costs))
        return "\n".join(lines)

    @staticmethod
    def _step_lines(number: int, step: Step, totals: _Totals) -> list[str]:
        header = f"{number}. {step.name or 'Unnamed'} (STEP ID:{step.id if step.id is not None else 'N/A'})"
        if step.online_url or step.is_online:
            header += " [ONLINE]"
            if step.online_url:
                header += f" {step.online_url}"
        lines = [header]

        if entity := step.entity_name:
            totals.institutions.add(entity)
            lines.append(f"   Entity: {entity}")

        new_requirements = []
        for req in step.requirements or ():
            if req.name and req.name not in totals.requirements:
                totals.requirements.add(req.name)
                new_requirements.append(f"{req.name};")
        if new_requirements:
            lines.append("   Requirements: " + " ".join(new_requirements))

        if tf := step.timeframe:
            if days := tf.processing_days:
                lines.append(f"   Time: ~{num(days)} days")
                totals.processing_days += days
            totals.counter_minutes += tf.counter_minutes or 0
            totals.wait_minutes += tf.wait_minutes or 0

        costs = []
        for cost in step.costs or ():
            if not cost.value:
                continue
            if cost.is_percentage:
                costs.append(f"{num(cost.value)}% {cost.parameter or ''}".rstrip() + ";")
                label = f"{cost.comments or 'Fee'}: {num(cost.value)}%"
                totals.variable_costs.append(f"{label} {cost.unit};" if cost.unit else f"{label};")
            else:
                costs.append(f"{num(cost.value)} {cost.unit or ''}".rstrip() + ";")
                unit = cost.unit or ""
                totals.fixed_costs[unit] = totals.fixed_costs.get(unit, 0.0) + cost.value
        if costs:
            lines.append("   Cost: " + " ".join(costs))
        return lines


def _description(proc: ProcedureDetail) -> str | None:
    return (proc.data.description if proc.data else None) or proc.description or proc.explanatory_text
