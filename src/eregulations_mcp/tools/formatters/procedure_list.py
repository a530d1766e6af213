"""Numbered rendering of the full procedure catalogue."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from eregulations_mcp.models import ProcedureSummary

from .base import Formatted, as_record, compact, truncate

EMPTY_TEXT = "No procedures available"


class ProcedureListFormatter:
    """Formats the procedure list.

    Nothing is capped implicitly: `max_items` bounds how many entries are
    rendered and `max_length` bounds each explanatory text. `data` covers the
    whole collection regardless of `max_items`.
    """

    def format(
        self,
        items: Sequence[ProcedureSummary | Mapping[str, Any]] | None,
        include_data: bool = False,
        max_items: int | None = None,
        max_length: int | None = None,
    ) -> Formatted[list[dict[str, Any]]]:
        if not isinstance(items, (list, tuple)) or not items:
            return Formatted(text=EMPTY_TEXT, data=[])

        procedures = [as_record(ProcedureSummary, item) for item in items]
        return Formatted(
            text=self._text(procedures, max_items, max_length),
            data=[self._essential(p) for p in procedures] if include_data else [],
        )

    @staticmethod
    def _essential(proc: ProcedureSummary) -> dict[str, Any]:
        entry = compact({"id": proc.id, "name": proc.display_name, "isOnline": proc.is_online})
        if proc.parent_name:
            entry["parentName"] = proc.parent_name
        return entry

    @staticmethod
    def _text(procedures: list[ProcedureSummary], max_items: int | None, max_length: int | None) -> str:
        shown = procedures if max_items is None else procedures[:max_items]
        lines = [f"Found {len(procedures)} procedures:", ""]
        for index, proc in enumerate(shown, 1):
            online = " [ONLINE]" if proc.is_online else ""
            lines.append(f"{index}. {proc.display_name or 'Unknown'}{online} (ID:{proc.id or 'N/A'})")
            if proc.explanatory_text:
                lines.append(f"   {truncate(proc.explanatory_text, max_length)}")

        remaining = len(procedures) - len(shown)
        if remaining > 0:
            lines.append(f"... and {remaining} more.")
        return "\n".join(lines)
