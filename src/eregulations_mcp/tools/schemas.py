"""Tool names and parameter schemas.

Parameter names follow the wire names MCP clients already use
(`procedureId`, `stepId`, `return_data`, ...), so models keep them verbatim.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ToolName(StrEnum):
    LIST_PROCEDURES = "listProcedures"
    GET_PROCEDURE_DETAILS = "getProcedureDetails"
    GET_PROCEDURE_STEP = "getProcedureStep"
    SEARCH_PROCEDURES = "searchProcedures"


PositiveId = Annotated[int, Field(gt=0)]
MaxItems = Annotated[int | None, Field(ge=1, description="Maximum number of entries to render in the text output")]
MaxLength = Annotated[int | None, Field(ge=1, description="Maximum characters per description in the text output")]
ReturnData = Annotated[bool, Field(description="Also return the structured data as a JSON block")]


class ToolParams(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)


class ListProceduresParams(ToolParams):
    return_data: ReturnData = False
    max_items: MaxItems = None
    max_length: MaxLength = None


class GetProcedureDetailsParams(ToolParams):
    procedureId: PositiveId = Field(..., description="ID of the procedure to retrieve")  # noqa: N815
    max_length: MaxLength = None
    return_data: ReturnData = False


class GetProcedureStepParams(ToolParams):
    procedureId: PositiveId = Field(..., description="ID of the procedure")  # noqa: N815
    stepId: PositiveId = Field(..., description="ID of the step within the procedure")  # noqa: N815
    return_data: ReturnData = False


class SearchProceduresParams(ToolParams):
    keyword: str = Field(..., min_length=1, description="The keyword or phrase to search for procedures")
    return_data: ReturnData = False
    max_items: MaxItems = None
    max_length: MaxLength = None
