"""
ReminderCanceller -- the payment core's hook into due-date reminders.

The scheduler that decides when reminders fire lives elsewhere.  This
module stores what it schedules and vetoes every pending reminder once an
invoice is settled.
"""

from datetime import date

from sqlalchemy import select, update

from billing_kernel.logging_config import get_logger
from billing_kernel.services.base import BaseService
from billing_modules.payments.models import Reminder, ReminderStatus, ReminderType
from billing_modules.payments.orm import ReminderModel

logger = get_logger("modules.payments.reminders")


class ReminderCanceller(BaseService):
    """Set-based reminder updates.  Flushes, never commits."""

    def skip_pending(self, invoice_id: int) -> int:
        """
        Move every ``pending`` reminder of the invoice to ``skipped``.

        A single UPDATE keyed on invoice and status, so calling it again
        (or with no pending reminders) changes nothing.  Returns the number
        of reminders skipped.
        """
        result = self.session.execute(
            update(ReminderModel)
            .where(
                ReminderModel.invoice_id == invoice_id,
                ReminderModel.status == ReminderStatus.PENDING.value,
            )
            .values(status=ReminderStatus.SKIPPED.value)
            .execution_options(synchronize_session="fetch")
        )
        skipped = result.rowcount or 0
        logger.info(
            "reminders_skipped",
            extra={"invoice_id": invoice_id, "skipped_count": skipped},
        )
        return skipped

    def schedule_reminder(
        self,
        invoice_id: int,
        reminder_type: ReminderType | str,
        scheduled_date: date,
    ) -> Reminder:
        model = ReminderModel(
            invoice_id=invoice_id,
            reminder_type=ReminderType(reminder_type).value,
            scheduled_date=scheduled_date,
            status=ReminderStatus.PENDING.value,
        )
        self.session.add(model)
        self.session.flush()
        logger.debug(
            "reminder_scheduled",
            extra={
                "invoice_id": invoice_id,
                "reminder_type": model.reminder_type,
                "scheduled_date": scheduled_date,
            },
        )
        return model.to_dto()

    def get_invoice_reminders(self, invoice_id: int) -> list[Reminder]:
        rows = self.session.execute(
            select(ReminderModel)
            .where(ReminderModel.invoice_id == invoice_id)
            .order_by(ReminderModel.scheduled_date.asc(), ReminderModel.id.asc())
            .execution_options(populate_existing=True)
        ).scalars()
        return [row.to_dto() for row in rows]
