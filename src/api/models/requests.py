"""Pydantic request models and conversion to the settle domain types."""

from datetime import date

from pydantic import BaseModel, Field, model_validator

from api.models.responses import ActionModel
from models.entries import (
    ActionType,
    BorrowedEntry,
    DayProjectAggregate,
    EntryKind,
    FillerEntry,
    SettleAction,
)


class PlanRequest(BaseModel):
    date_from: date
    date_to: date
    seed: int | None = Field(default=None, description="Seed for filler selection")

    @model_validator(mode="after")
    def check_range(self):
        if self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


class EditRequest(BaseModel):
    actions: list[ActionModel]
    index: int = Field(description="Zero-based position of the action to pin")
    hours: float


class ApplyRequest(BaseModel):
    actions: list[ActionModel]


# =============================================================================
# CONVERSION
# =============================================================================


def action_to_model(action: SettleAction) -> ActionModel:
    entry = action.entry
    is_aggregate = entry.kind is EntryKind.AGGREGATE
    return ActionModel(
        date=action.date,
        kind=entry.kind.value,
        devpro_project=action.devpro_project,
        devpro_project_id=action.devpro_project_id,
        billability=action.billability,
        task_title=action.task_title,
        normalized_hours=action.normalized_hours,
        source_hours=entry.source_hours,
        is_meeting=action.is_meeting,
        action=action.action.value,
        existing_worklog_id=action.existing_worklog_id,
        is_manually_fixed=action.is_manually_fixed,
        chrono_project=entry.chrono_project if is_aggregate else None,
        descriptions=list(entry.descriptions) if is_aggregate else [],
        max_hours=entry.max_hours if is_aggregate else None,
        source_date=action.source_date,
    )


def model_to_action(model: ActionModel) -> SettleAction:
    """
    Raises:
        ValueError: On an unknown kind or action, or a borrowed entry without source_date
    """
    kind = EntryKind(model.kind)
    if kind is EntryKind.AGGREGATE:
        entry = DayProjectAggregate(
            date=model.date,
            chrono_project=model.chrono_project or "",
            total_hours=model.source_hours,
            descriptions=tuple(model.descriptions),
            devpro_project=model.devpro_project,
            billability=model.billability,
            max_hours=model.max_hours,
        )
    elif kind is EntryKind.FILLER:
        entry = FillerEntry(
            date=model.date,
            devpro_project=model.devpro_project,
            task_title=model.task_title,
            billability=model.billability,
            hours=model.source_hours,
        )
    else:
        if model.source_date is None:
            raise ValueError(f"Borrowed entry on {model.date} is missing source_date")
        entry = BorrowedEntry(
            date=model.date,
            source_date=model.source_date,
            devpro_project=model.devpro_project,
            task_title=model.task_title,
            billability=model.billability,
            hours=model.source_hours,
        )

    return SettleAction(
        entry=entry,
        normalized_hours=model.normalized_hours,
        is_meeting=model.is_meeting,
        task_title=model.task_title,
        devpro_project_id=model.devpro_project_id,
        action=ActionType(model.action),
        existing_worklog_id=model.existing_worklog_id,
        is_manually_fixed=model.is_manually_fixed,
    )
