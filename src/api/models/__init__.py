"""API Pydantic models."""

from .requests import ApplyRequest, EditRequest, PlanRequest, action_to_model, model_to_action
from .responses import (
    ActionModel,
    ApplyFailure,
    ApplyResponse,
    EditResponse,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    PlanResponse,
)

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
    "ActionModel",
    "PlanResponse",
    "EditResponse",
    "ApplyFailure",
    "ApplyResponse",
    "PlanRequest",
    "EditRequest",
    "ApplyRequest",
    "action_to_model",
    "model_to_action",
]
