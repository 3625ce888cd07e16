"""
PaymentRecorder -- the sole writer of ``amount_paid`` and ``status``.

Responsibility:
    Validates a payment against the invoice, computes the new balance and
    status, writes both in one flush, and skips pending reminders once the
    invoice is settled.

Invariants enforced:
    - The read-compute-write sequence runs on a row-locked invoice with a
      version check, so two concurrent payments cannot both build on the
      same prior balance.
    - ``paid`` and ``cancelled`` are terminal: no payment is accepted.
    - All rejections happen before any write.
    - ``amount_paid <= amount_total + tolerance`` unless overpayment is
      explicitly allowed.

Failure modes:
    - InvoiceNotFoundError, InvoiceAlreadyPaidError, InvoiceCancelledError,
      InvalidPaymentAmountError, OverpaymentError: validation, nothing
      written.
    - OptimisticLockError: another transaction updated the invoice first.
      The caller rolls back (and may retry).

Transaction boundary:
    Flushes only.  ``InvoicePaymentService`` commits.
"""

from datetime import date
from decimal import Decimal

from billing_kernel.db.types import is_settled, to_money
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import (
    InvalidPaymentAmountError,
    InvoiceAlreadyPaidError,
    InvoiceCancelledError,
    InvoiceNotFoundError,
    OverpaymentError,
)
from billing_kernel.logging_config import get_logger
from billing_kernel.services.base import BaseService
from billing_modules.payments.config import PaymentsConfig
from billing_modules.payments.invoice_store import UNSET, InvoiceStore
from billing_modules.payments.models import Invoice, InvoiceStatus
from billing_modules.payments.orm import InvoiceModel
from billing_modules.payments.reminders import ReminderCanceller
from billing_modules.payments.workflows import assert_transition

logger = get_logger("modules.payments.recorder")


def decide_payment_status(
    amount_total: Decimal,
    new_amount_paid: Decimal,
    tolerance: Decimal,
) -> InvoiceStatus:
    """PAID when the remaining balance is within tolerance, else PARTIAL."""
    if is_settled(amount_total, new_amount_paid, tolerance):
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIAL


class PaymentRecorder(BaseService):
    """Applies payments to invoices."""

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        config: PaymentsConfig | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._config = config or PaymentsConfig()
        self._invoices = InvoiceStore(session)
        self._reminders = ReminderCanceller(session)

    def _load_payable(self, invoice_id: int) -> InvoiceModel:
        model = self._invoices.lock_invoice(invoice_id)
        if model is None:
            raise InvoiceNotFoundError(invoice_id)
        if model.status == InvoiceStatus.PAID.value:
            raise InvoiceAlreadyPaidError(invoice_id)
        if model.status == InvoiceStatus.CANCELLED.value:
            raise InvoiceCancelledError(invoice_id)
        return model

    def record_payment(
        self,
        invoice_id: int,
        amount: Decimal | int | float | str,
        payment_method: str,
        payment_reference: str | None = None,
    ) -> Invoice:
        """
        Apply ``amount`` to the invoice and return the updated invoice.

        Moves the invoice to ``partial`` or, when the remaining balance is
        within the configured tolerance, to ``paid`` (stamping
        ``paid_date`` and skipping pending reminders).  ``payment_method``
        and ``payment_reference`` are overwritten on every payment; a
        payment without a reference clears the previous one.

        Raises:
            InvoiceNotFoundError: unknown invoice.
            InvoiceAlreadyPaidError: invoice is ``paid``.
            InvoiceCancelledError: invoice is ``cancelled``.
            InvalidPaymentAmountError: amount is not a positive number.
            OverpaymentError: amount would take ``amount_paid`` past
                ``amount_total`` plus the tolerance (unless
                ``allow_overpayment`` is configured).
        """
        model = self._load_payable(invoice_id)

        payment_amount = to_money(amount)
        if payment_amount <= 0:
            raise InvalidPaymentAmountError(amount)

        amount_total = to_money(model.amount_total)
        new_amount_paid = to_money(model.amount_paid) + payment_amount
        tolerance = self._config.payment_tolerance

        if (
            not self._config.allow_overpayment
            and new_amount_paid > amount_total + tolerance
        ):
            raise OverpaymentError(
                invoice_id, payment_amount, amount_total - to_money(model.amount_paid)
            )

        new_status = decide_payment_status(amount_total, new_amount_paid, tolerance)
        assert_transition(model.status, new_status, "record_payment")

        paid_date: date | None = None
        if new_status is InvoiceStatus.PAID:
            paid_date = self._clock.today()

        invoice = self._invoices.update_invoice_status(
            invoice_id,
            new_status,
            amount_paid=new_amount_paid,
            payment_method=payment_method,
            payment_reference=payment_reference,
            paid_date=paid_date,
        )

        if new_status is InvoiceStatus.PAID:
            self._reminders.skip_pending(invoice_id)

        logger.info(
            "payment_recorded",
            extra={
                "invoice_id": invoice_id,
                "amount": str(payment_amount),
                "amount_paid": str(invoice.amount_paid),
                "amount_total": str(invoice.amount_total),
                "status": invoice.status.value,
                "payment_method": payment_method,
            },
        )
        return invoice

    def mark_invoice_as_paid(
        self,
        invoice_id: int,
        amount_paid: Decimal | int | float | str,
        payment_method: str,
        payment_reference: str | None = None,
    ) -> Invoice:
        """
        Administrative override: settle the invoice outright.

        Writes ``amount_paid`` as given and stamps today's ``paid_date``.
        Does not append a ledger entry.  An invoice that is already
        ``paid`` is returned unchanged.  The stored
        ``payment_reference`` is kept when none is supplied.
        """
        model = self._invoices.lock_invoice(invoice_id)
        if model is None:
            raise InvoiceNotFoundError(invoice_id)
        if model.status == InvoiceStatus.CANCELLED.value:
            raise InvoiceCancelledError(invoice_id)
        if model.status == InvoiceStatus.PAID.value:
            logger.info(
                "invoice_already_paid_noop",
                extra={"invoice_id": invoice_id},
            )
            return model.to_dto()

        settled_amount = to_money(amount_paid)
        if settled_amount < 0:
            raise InvalidPaymentAmountError(amount_paid, "cannot be negative")

        assert_transition(model.status, InvoiceStatus.PAID, "mark_paid")

        invoice = self._invoices.update_invoice_status(
            invoice_id,
            InvoiceStatus.PAID,
            amount_paid=settled_amount,
            payment_method=payment_method,
            payment_reference=UNSET if payment_reference is None else payment_reference,
            paid_date=self._clock.today(),
        )
        self._reminders.skip_pending(invoice_id)

        logger.info(
            "invoice_marked_paid",
            extra={
                "invoice_id": invoice_id,
                "amount_paid": str(invoice.amount_paid),
                "payment_method": payment_method,
                "paid_date": invoice.paid_date,
            },
        )
        return invoice
