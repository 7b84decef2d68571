"""Booking reminder emails sent through Resend.

Reminders are best effort. :func:`dispatch_reminder` is the only entry point the
booking flow uses and it never raises.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime

import resend

from backend.core import config
from backend.models.appointment import Appointment
from backend.scheduling.slot_store import scheduling_zone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderMessage:
    to: str
    slot_date: str
    start_time: str
    end_time: str
    purpose: str

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> 'ReminderMessage':
        start_time = _local(appointment.start_time)
        end_time = _local(appointment.end_time)
        return cls(
            to=appointment.requester_email,
            slot_date=start_time.date().isoformat(),
            start_time=_format_time(start_time),
            end_time=_format_time(end_time),
            purpose=appointment.purpose or '',
        )


def _local(value: datetime) -> datetime:
    # sqlite hands back naive wall-clock values
    if value.tzinfo is None:
        return value
    return value.astimezone(scheduling_zone())


def _format_time(value: datetime) -> str:
    return value.strftime('%I:%M %p').lstrip('0')


def render_reminder_html(message: ReminderMessage) -> str:
    # purpose is free text from the requester
    slot_date = html.escape(message.slot_date, quote=True)
    start_time = html.escape(message.start_time, quote=True)
    end_time = html.escape(message.end_time, quote=True)
    purpose = html.escape(message.purpose or 'Not specified', quote=True)
    return f"""
    <div style="font-family: Arial, sans-serif;">
      <h3>Meeting Slot Reminder</h3>
      <p>You booked a meeting slot. Please keep this email for your records.</p>
      <ul>
        <li><strong>Date:</strong> {slot_date}</li>
        <li><strong>Time:</strong> {start_time} - {end_time}</li>
        <li><strong>Purpose:</strong> {purpose}</li>
      </ul>
    </div>
    """


def send_slot_reminder(message: ReminderMessage) -> None:
    if not config.RESEND_API_KEY:
        raise RuntimeError('RESEND_API_KEY is not set')
    if not message.to:
        raise ValueError('Reminder recipient is missing')

    resend.api_key = config.RESEND_API_KEY
    resend.Emails.send(
        {
            'from': config.REMINDER_FROM_EMAIL,
            'to': [message.to],
            'subject': f'Reminder: Booked slot on {message.slot_date}',
            'html': render_reminder_html(message),
        }
    )
    logger.info('Reminder sent to %s for %s.', message.to, message.slot_date)


def dispatch_reminder(message: ReminderMessage) -> None:
    try:
        send_slot_reminder(message)
    except Exception:
        logger.exception('Reminder email to %s failed.', message.to)
