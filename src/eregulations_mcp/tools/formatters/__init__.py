"""Formatters condensing upstream records into model-readable text.

Each formatter is stateless; the shared instances below are safe to reuse.
"""

from .base import Formatted, Formatter, truncate
from .procedure import ProcedureFormatter
from .procedure_list import ProcedureListFormatter
from .search import SearchFormatter
from .step import StepFormatter

procedure_list_formatter = ProcedureListFormatter()
procedure_formatter = ProcedureFormatter()
step_formatter = StepFormatter()
search_formatter = SearchFormatter()

__all__ = [
    "Formatted",
    "Formatter",
    "ProcedureFormatter",
    "ProcedureListFormatter",
    "SearchFormatter",
    "StepFormatter",
    "procedure_formatter",
    "procedure_list_formatter",
    "search_formatter",
    "step_formatter",
    "truncate",
]
