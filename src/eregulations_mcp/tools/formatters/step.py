"""Rendering of a single procedure step."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from eregulations_mcp.models import Contact, Step, Timeframe

from .base import Formatted, as_record, compact, num

EMPTY_TEXT = "No step data available"


class StepFormatter:
    def format(self, step: Step | Mapping[str, Any] | None) -> Formatted[dict[str, Any]]:
        if step is None:
            return Formatted(text=EMPTY_TEXT, data={})

        record = as_record(Step, step)
        return Formatted(text=self._text(record), data=self._essential(record))

    @staticmethod
    def _essential(step: Step) -> dict[str, Any]:
        data = compact({
            "id": step.id,
            "name": step.name,
            "procedureId": step.procedure_id,
            "isOnline": step.is_online or bool(step.online_url),
            "entityName": step.entity_name,
            "onlineUrl": step.online_url,
        })
        if step.requirements is not None:
            data["requirementCount"] = len(step.requirements)
            data["requirements"] = [r.name for r in step.requirements]
        if step.costs is not None:
            data["costCount"] = len(step.costs)
            data["hasCosts"] = bool(step.costs)
        return data

    def _text(self, step: Step) -> str:
        lines = [f"STEP: {step.name or 'Unnamed'} (ID:{step.id or 'Unknown'})"]
        if step.procedure_name:
            lines.append(f"PROCEDURE: {step.procedure_name} (ID:{step.procedure_id})")
        if step.online_url or step.is_online:
            lines.append(f"ONLINE: Yes ({step.online_url})" if step.online_url else "ONLINE: Yes")

        flags = [label for label, on in (
            ("Optional", step.is_optional),
            ("Certified", step.is_certified),
            ("Parallel", step.is_parallel),
        ) if on]
        if flags:
            lines.append(f"STATUS: {', '.join(flags)}")

        if step.contact:
            lines += _contact_lines(step.contact)

        if step.requirements:
            lines.append("REQUIREMENTS:")
            for req in step.requirements:
                copies = [f"{n} {label}" for n, label in (
                    (req.nb_original, "orig"),
                    (req.nb_copy, "copy"),
                    (req.nb_authenticated, "auth"),
                ) if n]
                lines.append(f"- {req.name}" + (f" ({', '.join(copies)})" if copies else ""))
                if req.comments:
                    lines.append(f"  Note: {req.comments}")

        if step.results:
            lines.append("OUTPUTS:")
            lines += [f"- {res.name}{' [FINAL]' if res.is_final_result else ''}" for res in step.results]

        if step.timeframe:
            lines.append(f"TIMEFRAME: {_timeframe(step.timeframe)}")

        priced = [cost for cost in step.costs or () if cost.value]
        if priced:
            lines.append("COSTS:")
            for cost in priced:
                if cost.is_percentage:
                    line = f"- {num(cost.value)}% {cost.parameter or ''}".rstrip()
                else:
                    line = f"- {num(cost.value)} {cost.unit or ''}".rstrip()
                if cost.comments:
                    line += f" ({cost.comments})"
                lines.append(line)

        if step.laws:
            lines.append("LEGAL REFS: " + " | ".join(law.name or "Unnamed" for law in step.laws))
        return "\n".join(lines)


def _contact_lines(contact: Contact) -> list[str]:
    lines = ["CONTACT:"]
    if entity := contact.entity_in_charge:
        lines.append(f"Entity: {entity.name or 'Unknown'}")
        details = [f"{label}: {value}" for label, value in (
            ("Phone", entity.first_phone),
            ("Email", entity.first_email),
            ("Web", entity.first_website),
        ) if value]
        if details:
            lines.append(" | ".join(details))
        if entity.address:
            lines.append(f"Address: {entity.address}")
    if contact.unit_in_charge and contact.unit_in_charge.name:
        lines.append(f"Unit: {contact.unit_in_charge.name}")
    if (person := contact.person_in_charge) and person.name:
        lines.append(f"Contact: {person.name}" + (f" ({person.profession})" if person.profession else ""))
    return lines


def _timeframe(tf: Timeframe) -> str:
    parts = []
    if tf.counter_minutes:
        parts.append(f"{num(tf.counter_minutes)}min at counter")
    if tf.wait_minutes:
        parts.append(f"{num(tf.wait_minutes)}min wait")
    if tf.processing_days:
        parts.append(f"{num(tf.processing_days)} days processing")
    return " + ".join(parts) if parts else "Not specified"
