from datetime import datetime
from types import SimpleNamespace

import pytest

from backend.core import config
from backend.notifications import reminders
from backend.notifications.reminders import ReminderMessage


def _message(**overrides) -> ReminderMessage:
    values = {
        'to': 'scholar@example.edu',
        'slot_date': '2026-01-05',
        'start_time': '9:00 AM',
        'end_time': '9:30 AM',
        'purpose': 'Thesis review',
    }
    values.update(overrides)
    return ReminderMessage(**values)


def test_reminder_message_from_appointment_formats_times() -> None:
    appointment = SimpleNamespace(
        requester_email='scholar@example.edu',
        start_time=datetime(2026, 1, 5, 14, 0),
        end_time=datetime(2026, 1, 5, 14, 30),
        purpose='Thesis review',
    )

    message = ReminderMessage.from_appointment(appointment)

    assert message == _message(start_time='2:00 PM', end_time='2:30 PM')


def test_render_reminder_html_falls_back_when_purpose_missing() -> None:
    html = reminders.render_reminder_html(_message(purpose=''))

    assert 'Not specified' in html
    assert '9:00 AM - 9:30 AM' in html


def test_send_slot_reminder_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'RESEND_API_KEY', '')

    with pytest.raises(RuntimeError):
        reminders.send_slot_reminder(_message())


def test_send_slot_reminder_posts_email_through_resend(monkeypatch: pytest.MonkeyPatch) -> None:
    sent = []
    monkeypatch.setattr(config, 'RESEND_API_KEY', 're_test_key')
    monkeypatch.setattr(config, 'REMINDER_FROM_EMAIL', 'office@example.edu')
    monkeypatch.setattr(reminders.resend.Emails, 'send', lambda params: sent.append(params))

    reminders.send_slot_reminder(_message())

    assert reminders.resend.api_key == 're_test_key'
    assert len(sent) == 1
    assert sent[0]['from'] == 'office@example.edu'
    assert sent[0]['to'] == ['scholar@example.edu']
    assert sent[0]['subject'] == 'Reminder: Booked slot on 2026-01-05'


def test_dispatch_reminder_logs_and_swallows_failures(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    def explode(_message):
        raise RuntimeError('provider rejected the message')

    monkeypatch.setattr(reminders, 'send_slot_reminder', explode)

    reminders.dispatch_reminder(_message())

    assert 'Reminder email to scholar@example.edu failed.' in caplog.text


def test_render_reminder_html_escapes_requester_text() -> None:
    html = reminders.render_reminder_html(
        _message(purpose='<a href="https://evil.example">Reset password</a>'),
    )

    assert '<a href' not in html
    assert '&lt;a href=&quot;https://evil.example&quot;&gt;Reset password&lt;/a&gt;' in html
