"""Usage guides for each tool, served as MCP prompts."""

from __future__ import annotations

from dataclasses import dataclass

from eregulations_mcp.tools.schemas import ToolName

# Prompts share their names with the tools they document
PromptName = ToolName


@dataclass(frozen=True, slots=True)
class PromptTemplate:
    name: str
    description: str
    body: str


_LIST = """# List Procedures
Get a list of all available procedures in the eRegulations system.

## Usage
```json
{
  "name": "listProcedures",
  "arguments": {
    "max_items": 50,
    "return_data": false
  }
}
```

## Notes
- All arguments are optional; without `max_items` every procedure is listed
- `max_length` truncates each procedure's explanatory text
- `return_data: true` adds a JSON block with id, name, isOnline and parentName

## Returns
A numbered list of procedures with their IDs, names and online availability."""

_DETAILS = """# Get Procedure Details
Get detailed information about a specific procedure by its ID.

## Usage
```json
{
  "name": "getProcedureDetails",
  "arguments": {
    "procedureId": 725
  }
}
```

## Notes
- Use listProcedures first to find valid procedure IDs
- `max_length` truncates the procedure description
- Returns steps, requirements, timelines and costs, followed by a summary of totals"""

_STEP = """# Get Procedure Step
Get information about a specific step within a procedure.

## Usage
```json
{
  "name": "getProcedureStep",
  "arguments": {
    "procedureId": 725,
    "stepId": 2787
  }
}
```

## Notes
- Use getProcedureDetails first to find valid step IDs within a procedure
- Returns requirements, outputs, timeframe, costs, legal references and contact information"""

_SEARCH = """# Search Procedures
Search for procedures by keyword or phrase.

## Usage
```json
{
  "name": "searchProcedures",
  "arguments": {
    "keyword": "import",
    "max_items": 10
  }
}
```

## Notes
- `keyword` is required; matching is done by the eRegulations search endpoint
- Pass a returned ID to getProcedureDetails for the full procedure"""


PROMPT_TEMPLATES: dict[str, PromptTemplate] = {
    template.name: template
    for template in (
        PromptTemplate(PromptName.LIST_PROCEDURES, "How to list all procedures", _LIST),
        PromptTemplate(PromptName.GET_PROCEDURE_DETAILS, "How to get the details of one procedure", _DETAILS),
        PromptTemplate(PromptName.GET_PROCEDURE_STEP, "How to get one step of a procedure", _STEP),
        PromptTemplate(PromptName.SEARCH_PROCEDURES, "How to search procedures by keyword", _SEARCH),
    )
}
