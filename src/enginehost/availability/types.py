"""Availability probe results."""

from __future__ import annotations

from pydantic import BaseModel, Field

NOT_CHECKED = "Not checked"


class AvailabilityCheck(BaseModel):
    success: bool = False
    details: str | None = None


class AvailabilityReport(BaseModel):
    host: str = NOT_CHECKED
    controller: str = NOT_CHECKED
    controller_scope: str = NOT_CHECKED
    program: str = NOT_CHECKED
    api: str = NOT_CHECKED


class EngineConnectorAvailability(BaseModel):
    enabled: bool = False
    host: bool = False
    controller: bool = False
    controller_scope: bool = False
    program: bool = False
    api: bool = False
    report: AvailabilityReport = Field(default_factory=AvailabilityReport)
