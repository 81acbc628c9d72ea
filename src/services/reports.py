"""
Draft plan presentation: text table for the terminal and Excel export.
"""

from datetime import date
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from core.config import DRAFT_HEADERS, MAX_ENTRY_COLUMN_WIDTH
from models.entries import EntryKind, SettleAction


def format_date_display(d: date) -> str:
    """Format date as M/D/YYYY (platform-safe, no zero-padding)."""
    return f"{d.month}/{d.day}/{d.year}"


def format_date_short(d: date) -> str:
    """Format date as 'Mon D' (platform-safe, e.g., 'Nov 7')."""
    return f"{d.strftime('%b')} {d.day}"


def format_hours(original: float, normalized: float) -> str:
    """'5.50→ 6.00' when hours changed, otherwise just the hours."""
    if abs(original - normalized) < 0.01:
        return f"{normalized:5.2f}"
    return f"{original:5.2f}→{normalized:5.2f}"


def truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


# =============================================================================
# DRAFT ROWS
# =============================================================================


def chrono_entry_label(action: SettleAction) -> str:
    """Descriptions without the ' - <project>' suffix, or the synthetic marker."""
    entry = action.entry
    if entry.kind is not EntryKind.AGGREGATE:
        return entry.source_label
    suffix = f" - {entry.chrono_project}"
    return "; ".join(
        d[: -len(suffix)] if d.endswith(suffix) else d for d in entry.descriptions
    )


def draft_row(action: SettleAction) -> dict:
    entry = action.entry
    return {
        "date": action.date,
        "chrono_project": entry.source_label,
        "chrono_entry": chrono_entry_label(action),
        "devpro_project": action.devpro_project,
        "task_title": action.task_title,
        "type": "Meeting" if action.is_meeting else "Work",
        "original_hours": entry.source_hours,
        "hours": action.normalized_hours,
        "action": action.action.value.capitalize(),
        "manually_fixed": action.is_manually_fixed,
        "source_date": action.source_date,
    }


def format_draft_table(actions: list[SettleAction]) -> list[str]:
    """Lines of the draft table, header and totals included."""
    rows = [draft_row(a) for a in actions]

    project_w = max([14] + [len(r["chrono_project"]) for r in rows])
    entry_w = min(MAX_ENTRY_COLUMN_WIDTH, max([12] + [len(r["chrono_entry"]) for r in rows]))
    devpro_w = max([14] + [len(r["devpro_project"]) for r in rows])
    task_w = max([11] + [len(r["task_title"]) for r in rows])
    widths = [10, project_w, entry_w, devpro_w, task_w, 8, 13]

    def line(values) -> str:
        cells = [f"{v:<{w}}" for v, w in zip(values, widths)]
        return " | ".join(cells + [values[-1]])

    header = line(["Date", "Chrono Project", "Chrono Entry", "DevPro Project", "DevPro Task", "Type", "Hours", "Action"])
    separator = "-" * len(header)
    lines = [header, separator]

    for row in rows:
        marker = "*" if row["manually_fixed"] else ""
        lines.append(
            line(
                [
                    row["date"].isoformat(),
                    row["chrono_project"],
                    truncate(row["chrono_entry"], entry_w),
                    row["devpro_project"],
                    truncate(row["task_title"], task_w),
                    row["type"],
                    format_hours(row["original_hours"], row["hours"]) + marker,
                    row["action"],
                ]
            )
        )

    original_total = sum(r["original_hours"] for r in rows)
    normalized_total = sum(r["hours"] for r in rows)
    lines.append(separator)
    lines.append(f"Total: {original_total:.2f} → {normalized_total:.2f} hours, {len(rows)} entries")
    return lines


# =============================================================================
# EXCEL EXPORT
# =============================================================================


def write_excel_plan_sheet(ws, actions: list[SettleAction]):
    """
    Write the plan, one action per row.

    Headers follow DRAFT_HEADERS; hours are numeric so the sheet can be summed.
    """
    for col_idx, header in enumerate(DRAFT_HEADERS, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)

    for row_idx, action in enumerate(actions, start=2):
        row = draft_row(action)
        row_data = [
            format_date_display(row["date"]),
            row["chrono_project"],
            row["chrono_entry"],
            row["devpro_project"],
            row["task_title"],
            row["type"],
            round(row["original_hours"], 2),
            row["hours"],
            row["action"],
        ]
        for col_idx, value in enumerate(row_data, start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)


def write_excel_day_totals_sheet(ws, actions: list[SettleAction], plan_sheet_name: str):
    """
    Write one row per day with a SUMIF over the plan sheet's Hours column.

    Columns: Date | Planned Hours
    """
    days = sorted({a.date for a in actions})
    data_end_row = len(actions) + 1

    for col_idx, header in enumerate(["Date", "Planned Hours"], start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)

    for row_idx, day in enumerate(days, start=2):
        label = format_date_display(day)
        ws.cell(row=row_idx, column=1, value=label)
        ws.cell(
            row=row_idx,
            column=2,
            value=(
                f"=SUMIF('{plan_sheet_name}'!$A$2:$A${data_end_row},"
                f'"{label}",'
                f"'{plan_sheet_name}'!$H$2:$H${data_end_row})"
            ),
        )


def create_plan_excel_report(actions: list[SettleAction], output_path: Path):
    """
    Create Excel draft plan with two sheets.

    Sheet 1: "Plan" - every action
    Sheet 2: "Day Totals" - SUMIF per day over the plan
    """
    wb = Workbook()

    ws_plan = wb.active
    ws_plan.title = "Plan"
    write_excel_plan_sheet(ws_plan, actions)

    ws_totals = wb.create_sheet(title="Day Totals")
    write_excel_day_totals_sheet(ws_totals, actions, "Plan")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(output_path))
    print(f"Saved Excel plan to: {output_path}")
