"""Rendering of keyword search results (objectives)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from eregulations_mcp.models import ProcedureSummary

from .base import Formatted, as_record, compact, truncate

DETAILS_HINT = "To get details about a specific procedure, use the getProcedureDetails tool with the procedure ID."


class SearchFormatter:
    def format(
        self,
        results: Sequence[ProcedureSummary | Mapping[str, Any]] | None,
        keyword: str | None = None,
        include_data: bool = False,
        max_items: int | None = None,
        max_length: int | None = None,
    ) -> Formatted[list[dict[str, Any]]]:
        if not isinstance(results, (list, tuple)) or not results:
            return Formatted(text=f'No procedures found matching "{keyword or "search term"}"', data=[])

        matches = [as_record(ProcedureSummary, r) for r in results]
        count = len(matches)
        shown = matches if max_items is None else matches[:max_items]

        term = f' for "{keyword}"' if keyword else ""
        lines = [f"Found {count} procedure{'' if count == 1 else 's'}{term}:", ""]
        for index, match in enumerate(shown, 1):
            online = " [ONLINE]" if match.is_online else ""
            lines.append(f"{index}. {match.display_name or 'Unknown'}{online} (ID:{match.id or 'N/A'})")
            if description := _description(match):
                lines.append(f"   {truncate(description, max_length)}")

        if (remaining := count - len(shown)) > 0:
            lines += ["", f"... and {remaining} more results."]
        lines += ["", DETAILS_HINT]

        data = [self._essential(m) for m in matches] if include_data else []
        return Formatted(text="\n".join(lines), data=data)

    @staticmethod
    def _essential(match: ProcedureSummary) -> dict[str, Any]:
        entry = compact({"id": match.id, "name": match.display_name})
        if description := _description(match):
            entry["description"] = description
        return entry


def _description(match: ProcedureSummary) -> str | None:
    return match.description or match.explanatory_text
