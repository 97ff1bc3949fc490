from pydantic import BaseModel
from typing import Any

from walkplanner.services.planning.types import Severity


class RuleFindingResponse(BaseModel):
    code: str
    severity: Severity
    message: str
    context: dict[str, Any]
    suggestions: list[str]

    class Config:
        from_attributes = True


class ValidationReportResponse(BaseModel):
    is_valid: bool
    violations: list[RuleFindingResponse]
    warnings: list[RuleFindingResponse]
    info: list[RuleFindingResponse]

    class Config:
        from_attributes = True
