"""
PaymentLedger -- append-only record of payments applied to invoices.

The ledger is the source of truth for what was paid; ``amount_paid`` on
the invoice is a cache that must equal the sum of the invoice's entries.
Rows are never updated or deleted (enforced by ORM listeners registered in
``billing_kernel.db.immutability``).
"""

from decimal import Decimal

from billing_kernel.db.types import to_money
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import InvalidPaymentAmountError
from billing_kernel.logging_config import get_logger
from billing_kernel.services.base import BaseService
from billing_modules.payments.config import PaymentsConfig
from billing_modules.payments.models import Invoice, Payment
from billing_modules.payments.orm import PaymentModel
from billing_modules.payments.recorder import PaymentRecorder

logger = get_logger("modules.payments.ledger")


class PaymentLedger(BaseService):
    """Ledger writes.  Flushes, never commits."""

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        config: PaymentsConfig | None = None,
        recorder: PaymentRecorder | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._recorder = recorder or PaymentRecorder(session, self._clock, config)

    def append(
        self,
        invoice_id: int,
        amount: Decimal | int | float | str,
        payment_method: str,
        payment_reference: str | None = None,
        notes: str | None = None,
    ) -> Payment:
        """Insert one immutable payment row dated today."""
        payment_amount = to_money(amount)
        if payment_amount <= 0:
            raise InvalidPaymentAmountError(amount)

        model = PaymentModel(
            invoice_id=invoice_id,
            amount=payment_amount,
            payment_method=payment_method,
            payment_reference=payment_reference,
            notes=notes,
            payment_date=self._clock.today(),
            created_at=self._clock.now(),
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "payment_ledger_appended",
            extra={
                "payment_id": model.id,
                "invoice_id": invoice_id,
                "amount": str(payment_amount),
                "payment_date": model.payment_date,
            },
        )
        return model.to_dto()

    def record_payment_with_history(
        self,
        invoice_id: int,
        amount: Decimal | int | float | str,
        payment_method: str,
        payment_reference: str | None = None,
        notes: str | None = None,
    ) -> tuple[Invoice, Payment]:
        """
        Update the invoice, then append the matching ledger row.

        Both writes land in the caller's transaction.  A rejection from the
        recorder happens before the ledger is touched.
        """
        invoice = self._recorder.record_payment(
            invoice_id, amount, payment_method, payment_reference
        )
        payment = self.append(
            invoice_id, amount, payment_method, payment_reference, notes
        )
        return invoice, payment
