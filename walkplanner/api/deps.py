from typing import Generator
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from walkplanner.core.config import settings
from walkplanner.db.database import SessionLocal
from walkplanner.schemas.validation import ValidationReportResponse
from walkplanner.services.planning.policy import PlanningPolicy, policy_from_settings
from walkplanner.services.planning.types import ValidationReport

_policy = policy_from_settings(settings)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_policy() -> PlanningPolicy:
    return _policy


def raise_on_violations(report: ValidationReport, message: str = "Business rule violation") -> None:
    """409 with the full structured report when any rule blocks the change."""
    if report.is_valid:
        return
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "message": message,
            "report": ValidationReportResponse.model_validate(report).model_dump(mode="json"),
        },
    )
