"""HTML and plain-text bodies for registration emails."""

from datetime import datetime
from html import escape
from typing import NamedTuple

from bootcamp.models import MeetingType, PaymentReminderData, RegistrationEmailData

MEETING_TYPE_NAMES: dict[MeetingType, str] = {
    MeetingType.ZOOM: "Zoom",
    MeetingType.GOOGLE_MEET: "Google Meet",
    MeetingType.TEAMS: "Microsoft Teams",
}

SUPPORT_EMAIL = "support@lexduo.ai"


class RenderedEmail(NamedTuple):
    subject: str
    html: str
    text: str


def display_name(name: str | None, email: str) -> str:
    """Name to greet with, falling back to the local part of the email."""
    if name and name.strip():
        return name.strip()
    return email.split("@", 1)[0]


def meeting_type_display(meeting_type: MeetingType | None) -> str:
    """Human-readable platform name; anything unknown is "Online"."""
    if meeting_type is None:
        return "Online"
    return MEETING_TYPE_NAMES.get(meeting_type, "Online")


def format_event_date(value: datetime | None) -> str:
    """Format like "Monday, March 2, 2026"."""
    if value is None:
        return "To be announced"
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def format_event_time(value: datetime | None) -> str:
    """Format like "02:00 PM"."""
    if value is None:
        return "To be announced"
    return value.strftime("%I:%M %p")


def _wrap(title: str, content: str) -> str:
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">{title}</h2>
        {content}
        <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;">
        <p style="color: #999; font-size: 12px;">
            This is an automated message from a no-reply email address. Please do not reply to this email.
        </p>
    </body>
    </html>
    """


def render_registration_confirmation(
    data: RegistrationEmailData,
    app_base_url: str,
) -> RenderedEmail:
    """Render the confirmation sent after a registration is paid."""
    subject = f"Registration Confirmed: {data.event_title}"
    name = escape(data.name)
    title = escape(data.event_title)
    date_str = format_event_date(data.event_date)
    time_str = format_event_time(data.event_date)
    event_url = f"{app_base_url}/events/{data.event_id}"

    meeting_html = ""
    meeting_text = ""
    if data.meeting_link:
        platform = meeting_type_display(data.meeting_type)
        link = escape(data.meeting_link, quote=True)
        meeting_html = f"""
        <div style="background: #f0f7ff; padding: 12px; border-radius: 4px;">
            <p><strong>Meeting Link:</strong> <a href="{link}">{platform} Meeting</a></p>
            <p style="color: #666; font-size: 14px;">
                Please save this link to join the event. We'll also send a reminder before the event starts.
            </p>
        </div>
        """
        meeting_text = f"Meeting Link ({platform}): {data.meeting_link}\n"

    content = f"""
        <p>Hello {name},</p>
        <p>Thank you for registering for <strong>{title}</strong>! Your spot has been confirmed, and we're excited to have you join us.</p>
        <p><strong>Event:</strong> {title}</p>
        <p><strong>Date:</strong> {date_str}</p>
        <p><strong>Time:</strong> {time_str}</p>
        <p><strong>Location:</strong> Virtual</p>
        <p><strong>Registration ID:</strong> {escape(data.registration_id)}</p>
        {meeting_html}
        <p><a href="{escape(event_url, quote=True)}">View Event Details</a></p>
        <p>If you have any questions or need to make changes to your registration, please contact
        our support team at <a href="mailto:{SUPPORT_EMAIL}">{SUPPORT_EMAIL}</a>.</p>
        <p>Best regards,<br>The AI Bootcamp Team</p>
    """

    text = f"""
Hello {data.name},

Thank you for registering for {data.event_title}! Your spot has been confirmed.

Event: {data.event_title}
Date: {date_str}
Time: {time_str}
Location: Virtual
Registration ID: {data.registration_id}
{meeting_text}
View event details: {event_url}

Questions? Contact {SUPPORT_EMAIL}.
"""
    return RenderedEmail(subject, _wrap("Thank You for Registering!", content), text)


def render_payment_reminder(
    data: PaymentReminderData,
    app_base_url: str,
) -> RenderedEmail:
    """Render the reminder for a registration that is still unpaid."""
    subject = f"Payment Reminder: {data.event_title}"
    title = escape(data.event_title)
    date_str = format_event_date(data.event_date)
    time_str = format_event_time(data.event_date)
    payment_url = f"{app_base_url}/payment/{data.registration_id}?eventId={data.event_id}"
    safe_url = escape(payment_url, quote=True)

    instructor_html = ""
    instructor_text = ""
    if data.instructor_name:
        instructor_html = f"<p><strong>Instructor:</strong> {escape(data.instructor_name)}</p>"
        instructor_text = f"Instructor: {data.instructor_name}\n"

    content = f"""
        <p>Hello {escape(data.name)},</p>
        <p><strong>This is a friendly reminder that your registration for {title} is still pending payment.</strong></p>
        <p>To secure your spot, please complete your payment as soon as possible.</p>
        <h3>Event Details</h3>
        <p><strong>Event:</strong> {title}</p>
        <p><strong>Date:</strong> {date_str}</p>
        <p><strong>Time:</strong> {time_str}</p>
        <p><strong>Location:</strong> Virtual</p>
        {instructor_html}
        <p><a href="{safe_url}">Complete Your Payment</a></p>
        <p>If the link above doesn't work, copy and paste this URL into your browser:</p>
        <p style="word-break: break-all;">{safe_url}</p>
        <p>Thank you,<br>AI Bootcamp Team</p>
    """

    text = f"""
Hello {data.name},

Your registration for {data.event_title} is still pending payment.

Event: {data.event_title}
Date: {date_str}
Time: {time_str}
Location: Virtual
{instructor_text}
Complete your payment: {payment_url}
"""
    return RenderedEmail(subject, _wrap("Payment Reminder", content), text)


def render_admin_registration_notice(data: RegistrationEmailData) -> RenderedEmail:
    """Plain notice to the administrator about a new paid registration."""
    subject = f"New class registration: {data.email}"
    text = (
        "A new class registration has occurred:\n\n"
        f"Name: {data.name}\n"
        f"Email: {data.email}\n"
        f"Event: {data.event_title}\n"
        f"Registration ID: {data.registration_id}\n"
    )
    html = _wrap("New class registration", f"<pre>{escape(text)}</pre>")
    return RenderedEmail(subject, html, text)
