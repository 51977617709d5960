"""Share committed events by email.

Two paths are offered:

- :func:`build_mailto_link` composes a ``mailto:`` link the user's mail
  client can open, referencing the stored calendar file.
- :func:`send_invite` sends a "Calendar Invite" message with the event
  attached as ``event.ics`` over SMTP.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from urllib.parse import quote

from voice_cal.calendar.encoder import render_ics
from voice_cal.config import Settings
from voice_cal.exceptions import ShareError
from voice_cal.models.event import EventDetails, HistoryItem

logger = logging.getLogger(__name__)

_SMTP_TIMEOUT = 30


def format_time_range(details: EventDetails) -> str:
    """Render ``start - end`` as slash-joined components (``2026/2/19/12/0``)."""
    start = "/".join(str(part) for part in details.start)
    end = "/".join(str(part) for part in details.end)
    return f"{start} - {end}"


def build_mailto_link(item: HistoryItem) -> str:
    """Compose a ``mailto:`` link describing *item*.

    The body lists title, description, time range and location, and the
    link carries the calendar file handle as an ``attach`` parameter.
    """
    details = item.event_details
    body = (
        "Event Details:\n"
        f"{details.title}\n"
        f"{details.description}\n"
        f"Time: {format_time_range(details)}\n"
        f"Location: {details.location or 'Not specified'}\n"
    )
    return (
        f"mailto:?subject={quote(details.title)}"
        f"&body={quote(body)}"
        f"&attach={quote(item.download_url, safe='')}"
    )


def build_invite_message(item: HistoryItem, sender: str, recipient: str) -> EmailMessage:
    """Build the invite email for *item* with the ``.ics`` attachment."""
    details = item.event_details
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipient
    message["Subject"] = f"Calendar Invite: {details.title}"
    message.set_content(
        f"You've been invited to: {details.title}\n\n"
        f"Details: {details.description}\n\n"
        f"Time: {format_time_range(details)}"
    )
    message.add_attachment(
        render_ics(details, uid=f"{item.id}@voice-cal"),
        maintype="text",
        subtype="calendar",
        filename="event.ics",
    )
    return message


def send_invite(item: HistoryItem, sender: str, recipient: str, settings: Settings) -> None:
    """Email *item* to *recipient* through the configured SMTP server.

    Raises:
        ShareError: If SMTP is not configured or sending fails.
    """
    if not settings.smtp_host:
        raise ShareError("SMTP_HOST is not configured")

    message = build_invite_message(item, sender, recipient)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=_SMTP_TIMEOUT) as smtp:
            smtp.starttls()
            if settings.smtp_username and settings.smtp_password:
                smtp.login(settings.smtp_username, settings.smtp_password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Error sending email: %s", exc)
        raise ShareError(f"Failed to send email: {exc}") from exc

    logger.info("Invite for '%s' sent to %s", item.event_details.title, recipient)
