"""
Invoice Payments Module Service - transaction boundary for payment recording.

Thin glue layer that:
1. Calls PaymentRecorder / PaymentLedger inside one transaction
2. Commits on success, rolls back on any failure
3. Retries the whole unit on an optimistic-lock conflict
4. Generates the receipt after the payment has committed, best-effort

Usage:
    service = InvoicePaymentService(session, clock=clock)
    result = service.record_payment_with_history(
        invoice_id, Decimal("250.00"), "bank_transfer", payment_reference="TX-1",
    )
    if not result.has_receipt:
        ...  # payment is recorded; surface "receipt unavailable"
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import OptimisticLockError, ReceiptGenerationFailedError
from billing_kernel.logging_config import LogContext, get_logger
from billing_modules.payments.config import PaymentsConfig
from billing_modules.payments.ledger import PaymentLedger
from billing_modules.payments.models import (
    Invoice,
    Payment,
    PaymentRecordResult,
    Receipt,
    ReceiptContext,
)
from billing_modules.payments.receipts import ReceiptGenerator, ReceiptService
from billing_modules.payments.recorder import PaymentRecorder
from billing_modules.payments.selectors import PaymentSelector

logger = get_logger("modules.payments.service")

T = TypeVar("T")


class InvoicePaymentService:
    """
    Orchestrates invoice payments through the recorder, ledger and selectors.

    Transaction boundary: this service commits on success, rolls back on
    failure.  The recorder, ledger and receipt service only flush.  Read
    methods also end their transaction; on SQLite an open transaction holds
    the database write lock.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PaymentsConfig | None = None,
        receipt_generator: ReceiptGenerator | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or PaymentsConfig()

        self._recorder = PaymentRecorder(session, self._clock, self._config)
        self._ledger = PaymentLedger(
            session, self._clock, self._config, recorder=self._recorder
        )
        self._selector = PaymentSelector(session)
        self._receipts = receipt_generator or ReceiptService(
            session, self._clock, self._config
        )

    # =========================================================================
    # Transaction handling
    # =========================================================================

    def _in_transaction(self, operation: str, invoice_id: int, work: Callable[[], T]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                result = work()
                self._session.commit()
                return result
            except (OptimisticLockError, StaleDataError) as exc:
                self._session.rollback()
                if attempt > self._config.max_lock_retries:
                    logger.error(
                        "payment_transaction_retries_exhausted",
                        extra={"operation": operation, "attempts": attempt},
                    )
                    if isinstance(exc, StaleDataError):
                        raise OptimisticLockError("Invoice", str(invoice_id)) from exc
                    raise
                logger.warning(
                    "payment_transaction_retry",
                    extra={"operation": operation, "attempt": attempt},
                )
            except Exception:
                self._session.rollback()
                raise

    def _read(self, work: Callable[[], T]) -> T:
        try:
            result = work()
            self._session.commit()
            return result
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Payments
    # =========================================================================

    def record_payment(
        self,
        invoice_id: int,
        amount: Decimal | int | float | str,
        payment_method: str,
        payment_reference: str | None = None,
    ) -> Invoice:
        """Apply a payment to the invoice balance (no ledger row)."""
        with LogContext.bind(invoice_id=invoice_id):
            return self._in_transaction(
                "record_payment",
                invoice_id,
                lambda: self._recorder.record_payment(
                    invoice_id, amount, payment_method, payment_reference
                ),
            )

    def record_payment_with_history(
        self,
        invoice_id: int,
        amount: Decimal | int | float | str,
        payment_method: str,
        payment_reference: str | None = None,
        notes: str | None = None,
    ) -> PaymentRecordResult:
        """
        Apply a payment, append it to the ledger, then try for a receipt.

        The invoice update and the ledger row commit together.  The receipt
        is generated afterwards in its own transaction; if that fails the
        result carries ``receipt=None`` and the payment stands.
        """
        with LogContext.bind(invoice_id=invoice_id):
            invoice, payment = self._in_transaction(
                "record_payment_with_history",
                invoice_id,
                lambda: self._ledger.record_payment_with_history(
                    invoice_id, amount, payment_method, payment_reference, notes
                ),
            )
            with LogContext.bind(payment_id=payment.id):
                receipt = self._generate_receipt(invoice, payment)
            return PaymentRecordResult(invoice=invoice, payment=payment, receipt=receipt)

    def mark_invoice_as_paid(
        self,
        invoice_id: int,
        amount_paid: Decimal | int | float | str,
        payment_method: str,
        payment_reference: str | None = None,
    ) -> Invoice:
        """Administrative settlement; see PaymentRecorder.mark_invoice_as_paid."""
        with LogContext.bind(invoice_id=invoice_id):
            return self._in_transaction(
                "mark_invoice_as_paid",
                invoice_id,
                lambda: self._recorder.mark_invoice_as_paid(
                    invoice_id, amount_paid, payment_method, payment_reference
                ),
            )

    def _generate_receipt(self, invoice: Invoice, payment: Payment) -> Receipt | None:
        if not self._config.generate_receipts:
            return None

        context = ReceiptContext(
            payment_method=payment.payment_method,
            payment_date=payment.payment_date,
            payment_reference=payment.payment_reference,
        )
        try:
            receipt = self._receipts.create_receipt(
                invoice.id, payment.id, payment.amount, context
            )
            self._session.commit()
            return receipt
        except Exception as exc:
            self._session.rollback()
            failure = ReceiptGenerationFailedError(invoice.id, payment.id, str(exc))
            logger.warning(
                "receipt_generation_failed",
                extra={
                    "payment_id": payment.id,
                    "error_code": failure.code,
                    "reason": failure.reason,
                },
                exc_info=True,
            )
            return None

    # =========================================================================
    # Queries
    # =========================================================================

    def get_payment_history(self, invoice_id: int) -> list[Payment]:
        return self._read(lambda: self._selector.get_payment_history(invoice_id))

    def get_all_payments(
        self,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
    ) -> list[Payment]:
        return self._read(
            lambda: self._selector.get_all_payments(start_date, end_date)
        )
