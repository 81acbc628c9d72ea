"""Pydantic response models for API endpoints."""

import datetime as dt

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    config_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EDIT_REJECTED = "EDIT_REJECTED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ActionModel(BaseModel):
    """One planned worklog write, as exchanged with API clients."""

    date: dt.date
    kind: str  # "aggregate", "filler" or "borrowed"
    devpro_project: str
    devpro_project_id: str
    billability: str
    task_title: str
    normalized_hours: float
    source_hours: float
    is_meeting: bool = False
    action: str  # "CREATE", "UPDATE" or "SKIP"
    existing_worklog_id: str | None = None
    is_manually_fixed: bool = False
    chrono_project: str | None = None
    descriptions: list[str] = []
    max_hours: float | None = None
    source_date: dt.date | None = None


class PlanResponse(BaseModel):
    """Draft plan for a date range."""

    actions: list[ActionModel]
    day_totals: dict[dt.date, float]
    warnings: list[str] = []


class EditResponse(BaseModel):
    accepted: bool
    message: str
    minimum_hours: float | None = None
    actions: list[ActionModel]


class ApplyFailure(BaseModel):
    date: dt.date
    devpro_project: str
    message: str


class ApplyResponse(BaseModel):
    created: int
    updated: int
    skipped: int
    errors: int
    failures: list[ApplyFailure] = []
