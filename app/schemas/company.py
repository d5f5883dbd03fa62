"""Pydantic schemas for company and alert configuration operations."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CompanyCreate(BaseModel):
    """Payload to create a new company."""

    name: str = Field(..., min_length=1, max_length=255)


class CompanyRead(BaseModel):
    """Company representation returned by APIs."""

    id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlertConfigUpsert(BaseModel):
    """Owner role and aging thresholds; thresholds must strictly increase."""

    owner_role_default: str = Field(default="COMPRAS_ANALISTA", min_length=1, max_length=64)
    yellow_days: int = Field(default=15, gt=0)
    red_days: int = Field(default=45, gt=0)
    critical_days: int = Field(default=90, gt=0)
    notify_emails: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _ascending_thresholds(self) -> "AlertConfigUpsert":
        if not self.yellow_days < self.red_days < self.critical_days:
            raise ValueError("thresholds must satisfy yellow_days < red_days < critical_days")
        return self


class AlertConfigRead(BaseModel):
    id: str
    company_id: str
    owner_role_default: str
    yellow_days: int
    red_days: int
    critical_days: int
    notify_emails: list[str] | None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
