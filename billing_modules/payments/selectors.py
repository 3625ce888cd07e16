"""
PaymentSelector -- read-only views over the payment ledger.

Amounts are normalized through ``to_money`` in ``PaymentModel.to_dto`` so
callers always receive ``Decimal``, whatever the backend hands back.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select

from billing_kernel.db.types import to_money
from billing_kernel.logging_config import get_logger
from billing_kernel.selectors.base import BaseSelector
from billing_modules.payments.models import Payment
from billing_modules.payments.orm import PaymentModel

logger = get_logger("modules.payments.selectors")


def _as_date(value: date | str | None, name: str) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a date or YYYY-MM-DD string, got {value!r}") from None


class PaymentSelector(BaseSelector):
    """Ledger queries.  Never writes."""

    _newest_first = (
        PaymentModel.payment_date.desc(),
        PaymentModel.created_at.desc(),
        PaymentModel.id.desc(),
    )

    def get_payment_history(self, invoice_id: int) -> list[Payment]:
        """All payments for one invoice, newest first."""
        rows = self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.invoice_id == invoice_id)
            .order_by(*self._newest_first)
        ).scalars()
        return [row.to_dto() for row in rows]

    def get_all_payments(
        self,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
    ) -> list[Payment]:
        """
        Payments across all invoices ordered by ``payment_date`` descending.

        Both bounds are inclusive; either may be omitted.
        """
        start = _as_date(start_date, "start_date")
        end = _as_date(end_date, "end_date")

        stmt = select(PaymentModel)
        if start is not None:
            stmt = stmt.where(PaymentModel.payment_date >= start)
        if end is not None:
            stmt = stmt.where(PaymentModel.payment_date <= end)

        rows = self.session.execute(stmt.order_by(*self._newest_first)).scalars()
        payments = [row.to_dto() for row in rows]
        logger.debug(
            "payments_listed",
            extra={"start_date": start, "end_date": end, "count": len(payments)},
        )
        return payments

    def get_total_paid(self, invoice_id: int) -> Decimal:
        """Sum of the invoice's ledger entries (0 when there are none)."""
        total = self.session.execute(
            select(func.coalesce(func.sum(PaymentModel.amount), 0)).where(
                PaymentModel.invoice_id == invoice_id
            )
        ).scalar_one()
        return to_money(total)
