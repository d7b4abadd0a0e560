"""
Reminder SMS delivery.

Fire-and-forget: an SMS failure is logged and reported in the result, it
never raises and never blocks the caller.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.application.ownership import get_owned
from app.infrastructure.db.models import ReminderModel
from app.infrastructure.gateway.sms import SmsResult, SmsSender, get_sms_sender

logger = logging.getLogger(__name__)


def render_reminder_sms(reminder: ReminderModel) -> str:
    when = reminder.scheduled_at.strftime("%a %d %b, %H:%M")
    text = f"MamaCare reminder: {reminder.title} - {when}."
    if reminder.description:
        text += f" {reminder.description}"
    return text


class SendReminderSmsUseCase:
    def __init__(self, db: Session, sms_sender: SmsSender | None = None):
        self.db = db
        self.sms = sms_sender or get_sms_sender()

    def execute(self, reminder_id: int, account_id: int, phone: str, now: datetime) -> SmsResult:
        reminder = get_owned(self.db, ReminderModel, reminder_id, account_id, "Reminder")

        result = self.sms.send_message(phone, render_reminder_sms(reminder))
        if result.success:
            reminder.notification_sent = True
            reminder.notification_sent_at = now
            self.db.commit()
        else:
            logger.warning("Reminder SMS not delivered for reminder_id=%d: %s", reminder_id, result.error)
        return result
