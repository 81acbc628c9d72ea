"""
Email notifications for settle runs.
"""

import traceback
from collections import defaultdict
from datetime import date

from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.email_address import EmailAddress
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.message import Message
from msgraph.generated.models.recipient import Recipient
from msgraph.generated.users.item.send_mail.send_mail_post_request_body import (
    SendMailPostRequestBody,
)

from core.config import ERROR_EMAIL, FROM_EMAIL, TO_EMAIL
from core.graph_client import get_graph_client
from models.entries import ApplyResult, SettleAction
from services.reports import format_date_short


def format_summary_for_email(
    actions: list[SettleAction], result: ApplyResult, date_from: date, date_to: date
) -> str:
    """Per-day hours, then any failures."""
    lines = [f"Settle {format_date_short(date_from)} - {format_date_short(date_to)}", ""]

    hours_by_day: dict[date, float] = defaultdict(float)
    for action in actions:
        hours_by_day[action.date] += action.normalized_hours

    for day in sorted(hours_by_day):
        lines.append(f"  {format_date_short(day)}: {hours_by_day[day]:.2f}h")
    lines.append("")
    lines.append(f"Created: {result.created}, Updated: {result.updated}, Errors: {result.errors}")

    if result.failures:
        lines.append("")
        lines.append("Failures:")
        for action, message in result.failures:
            lines.append(f"  - {format_date_short(action.date)} {action.devpro_project}: {message}")

    return "\n".join(lines)


async def send_summary_email(
    actions: list[SettleAction], result: ApplyResult, date_from: date, date_to: date
):
    """Send the run summary to TO_EMAIL; a failed send is reported, not raised."""
    graph = get_graph_client()
    subject = f"Settle {format_date_short(date_from)} - {format_date_short(date_to)}"
    body_text = format_summary_for_email(actions, result, date_from, date_to)

    message = Message(
        subject=subject,
        body=ItemBody(content_type=BodyType.Text, content=body_text),
        to_recipients=[Recipient(email_address=EmailAddress(address=TO_EMAIL))],
    )
    request_body = SendMailPostRequestBody(message=message, save_to_sent_items=True)

    try:
        await graph.users.by_user_id(FROM_EMAIL).send_mail.post(request_body)
        print(f"Sent summary email to {TO_EMAIL}")
    except Exception as e:
        print(f"Failed to send summary email: {e}")


async def send_error_email(error: Exception):
    """Send error notification email."""
    graph = get_graph_client()
    subject = "Settle - Script Error"
    body_text = f"An error occurred while settling hours:\n\n{traceback.format_exc()}"

    message = Message(
        subject=subject,
        body=ItemBody(content_type=BodyType.Text, content=body_text),
        to_recipients=[Recipient(email_address=EmailAddress(address=ERROR_EMAIL))],
    )
    request_body = SendMailPostRequestBody(message=message, save_to_sent_items=True)

    try:
        await graph.users.by_user_id(FROM_EMAIL).send_mail.post(request_body)
        print(f"Sent error email to {ERROR_EMAIL}")
    except Exception as e:
        print(f"Failed to send error email: {e}")
