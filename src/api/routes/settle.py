"""Settle plan, edit and apply endpoints.

The API is stateless: /plan returns the draft actions, and clients send them
back (possibly edited) to /edit and /apply.
"""

import asyncio
import random
import time

from fastapi import APIRouter, Depends, HTTPException, Request, status

from api.dependencies import SourcesFactory, get_settle_config, get_sources_factory, verify_api_key
from api.logging import RequestLog, log_request
from api.models.requests import (
    ApplyRequest,
    EditRequest,
    PlanRequest,
    action_to_model,
    model_to_action,
)
from api.models.responses import (
    ActionModel,
    ApplyFailure,
    ApplyResponse,
    EditResponse,
    ErrorCodes,
    PlanResponse,
)
from core.errors import ApiError, ChronoError
from core.validation import find_off_target_days
from models.config import SettleConfig
from models.entries import SettleAction
from services.hours import total_hours
from services.settle import apply_actions, day_totals, edit_action, prepare_actions

router = APIRouter(prefix="/v1/settle")


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def to_domain(models: list[ActionModel]) -> list[SettleAction]:
    try:
        return [model_to_action(m) for m in models]
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid action in request",
                "code": ErrorCodes.INVALID_REQUEST,
                "details": [str(e)],
            },
        )


def translate_error(e: Exception, request_log: RequestLog) -> HTTPException:
    """Map a service exception to an HTTPException and record it on the log."""
    if isinstance(e, HTTPException):
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
            for detail in e.detail.get("details", []):
                request_log.details.append(("validation_error", detail))
        else:
            request_log.error_message = str(e.detail)
        return e

    message = str(e)
    details = [d.strip() for d in message.split("\n") if d.strip()]

    if isinstance(e, ValueError):
        status_code, code, error = 422, ErrorCodes.VALIDATION_ERROR, "Settle validation failed"
        for detail in details:
            request_log.details.append(("validation_error", detail))
    elif isinstance(e, (ApiError, ChronoError)):
        status_code, code, error = 502, ErrorCodes.UPSTREAM_ERROR, "Upstream service error"
    else:
        status_code, code, error, details = 500, ErrorCodes.INTERNAL_ERROR, "Internal server error", []

    request_log.status_code = status_code
    request_log.error_code = code
    request_log.error_message = message
    return HTTPException(
        status_code=status_code,
        detail={"error": error, "code": code, "details": details},
    )


def _finish(request_log: RequestLog, start_time: float):
    request_log.processing_time_ms = int((time.time() - start_time) * 1000)
    try:
        log_request(request_log)
    except Exception as e:
        # Don't fail the request if logging fails
        print(f"✗ Request logging failed: {e}")


def _plan_in_thread(
    body: PlanRequest, config: SettleConfig, open_sources: SourcesFactory
) -> list[SettleAction]:
    sources = open_sources(config, body.date_from, body.date_to)
    try:
        rng = random.Random(body.seed) if body.seed is not None else None
        return prepare_actions(body.date_from, body.date_to, config, sources, rng)
    finally:
        sources.close()


def _apply_in_thread(
    actions: list[SettleAction], config: SettleConfig, open_sources: SourcesFactory
):
    days = [a.date for a in actions]
    sources = open_sources(config, min(days), max(days))
    try:
        return apply_actions(actions, sources.portal)
    finally:
        sources.close()


@router.post("/plan", response_model=PlanResponse)
async def plan_endpoint(
    request: Request,
    body: PlanRequest,
    _api_key: str = Depends(verify_api_key),
    config: SettleConfig = Depends(get_settle_config),
    open_sources: SourcesFactory = Depends(get_sources_factory),
):
    """Build the draft plan for a date range without writing anything."""
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/settle/plan",
        method="POST",
        client_ip=get_client_ip(request),
        date_from=body.date_from.isoformat(),
        date_to=body.date_to.isoformat(),
    )

    try:
        actions = await asyncio.to_thread(_plan_in_thread, body, config, open_sources)

        warnings = [
            f"{day} totals {hours:.2f}h (target {config.target_hours:.2f}h)"
            for day, hours in find_off_target_days(actions, config.target_hours).items()
        ]
        for warning in warnings:
            request_log.details.append(("warning", warning))

        request_log.status_code = 200
        request_log.actions_planned = len(actions)
        request_log.total_hours = total_hours(a.normalized_hours for a in actions)

        return PlanResponse(
            actions=[action_to_model(a) for a in actions],
            day_totals=day_totals(actions),
            warnings=warnings,
        )
    except Exception as e:
        raise translate_error(e, request_log)
    finally:
        _finish(request_log, start_time)


@router.post("/edit", response_model=EditResponse)
async def edit_endpoint(
    request: Request,
    body: EditRequest,
    _api_key: str = Depends(verify_api_key),
    config: SettleConfig = Depends(get_settle_config),
):
    """
    Pin one action's hours and rebalance its day.

    Rejected edits return 200 with accepted=false and the actions unchanged.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/settle/edit",
        method="POST",
        client_ip=get_client_ip(request),
    )

    try:
        result = edit_action(to_domain(body.actions), body.index, body.hours, config)
        request_log.status_code = 200
        request_log.actions_planned = len(result.actions)
        if not result.accepted:
            request_log.error_code = ErrorCodes.EDIT_REJECTED
            request_log.error_message = result.message

        return EditResponse(
            accepted=result.accepted,
            message=result.message,
            minimum_hours=result.minimum_hours,
            actions=[action_to_model(a) for a in result.actions],
        )
    except Exception as e:
        raise translate_error(e, request_log)
    finally:
        _finish(request_log, start_time)


@router.post("/apply", response_model=ApplyResponse)
async def apply_endpoint(
    request: Request,
    body: ApplyRequest,
    _api_key: str = Depends(verify_api_key),
    config: SettleConfig = Depends(get_settle_config),
    open_sources: SourcesFactory = Depends(get_sources_factory),
):
    """
    Write the actions to the portal in order.

    Per-action failures are reported in the response, not as an error status.
    """
    start_time = time.time()
    request_log = RequestLog(
        endpoint="/v1/settle/apply",
        method="POST",
        client_ip=get_client_ip(request),
    )

    try:
        actions = to_domain(body.actions)
        if not actions:
            request_log.status_code = 200
            return ApplyResponse(created=0, updated=0, skipped=0, errors=0)

        days = sorted({a.date for a in actions})
        request_log.date_from = days[0].isoformat()
        request_log.date_to = days[-1].isoformat()

        result = await asyncio.to_thread(_apply_in_thread, actions, config, open_sources)

        request_log.status_code = 200
        request_log.actions_planned = len(actions)
        request_log.total_hours = total_hours(a.normalized_hours for a in actions)
        for action, message in result.failures:
            request_log.details.append(
                ("action_failed", f"{action.date} {action.devpro_project}: {message}")
            )

        return ApplyResponse(
            created=result.created,
            updated=result.updated,
            skipped=result.skipped,
            errors=result.errors,
            failures=[
                ApplyFailure(date=a.date, devpro_project=a.devpro_project, message=m)
                for a, m in result.failures
            ],
        )
    except Exception as e:
        raise translate_error(e, request_log)
    finally:
        _finish(request_log, start_time)
