"""
Receipt generation for recorded payments.

``ReceiptGenerator`` is the boundary the ledger recording path calls; any
object with a matching ``create_receipt`` will do.  ``ReceiptService`` is
the stock implementation: it persists a receipt row numbered
``RCP-<year>-NNNN`` from a locked per-year counter.

Receipts document a payment but are not part of the financial record: a
failure here is logged by the caller and never rolls back the payment.
"""

from decimal import Decimal
from typing import Protocol

from sqlalchemy import select

from billing_kernel.db.types import to_money
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import InvoiceNotFoundError, ReceiptNotFoundError
from billing_kernel.logging_config import get_logger
from billing_kernel.services.base import BaseService
from billing_kernel.services.sequence_service import SequenceService
from billing_modules.payments.config import PaymentsConfig
from billing_modules.payments.models import Receipt, ReceiptContext
from billing_modules.payments.orm import InvoiceModel, ReceiptModel

logger = get_logger("modules.payments.receipts")


class ReceiptGenerator(Protocol):
    """Produces a receipt for one payment.  May raise."""

    def create_receipt(
        self,
        invoice_id: int,
        payment_id: int | None,
        amount: Decimal,
        context: ReceiptContext,
    ) -> Receipt:
        ...


class ReceiptService(BaseService):
    """
    Persisted receipts with sequential numbering.

    Usage:
        receipts = ReceiptService(session, clock, config)
        receipt = receipts.create_receipt(
            invoice_id, payment_id, Decimal("250.00"),
            ReceiptContext(payment_method="bank_transfer", payment_date=today),
        )
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        config: PaymentsConfig | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._config = config or PaymentsConfig()
        self._sequences = SequenceService(session)

    def _next_receipt_number(self) -> str:
        year = self._clock.today().year
        sequence = self._sequences.next_value(f"receipt:{year}")
        return self._config.format_receipt_number(year, sequence)

    def create_receipt(
        self,
        invoice_id: int,
        payment_id: int | None,
        amount: Decimal,
        context: ReceiptContext,
    ) -> Receipt:
        if self.session.get(InvoiceModel, invoice_id) is None:
            raise InvoiceNotFoundError(invoice_id)

        receipt_number = self._next_receipt_number()
        model = ReceiptModel(
            receipt_number=receipt_number,
            invoice_id=invoice_id,
            payment_id=payment_id,
            amount=to_money(amount),
            payment_method=context.payment_method,
            payment_reference=context.payment_reference,
            payment_date=context.payment_date,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "receipt_generated",
            extra={
                "receipt_id": model.id,
                "receipt_number": receipt_number,
                "invoice_id": invoice_id,
                "payment_id": payment_id,
                "amount": str(model.amount),
            },
        )
        return model.to_dto()

    def get_receipt_by_id(self, receipt_id: int) -> Receipt:
        model = self.session.get(ReceiptModel, receipt_id)
        if model is None:
            raise ReceiptNotFoundError(str(receipt_id))
        return model.to_dto()

    def get_receipt_by_number(self, receipt_number: str) -> Receipt:
        model = self.session.execute(
            select(ReceiptModel).where(ReceiptModel.receipt_number == receipt_number)
        ).scalar_one_or_none()
        if model is None:
            raise ReceiptNotFoundError(receipt_number)
        return model.to_dto()

    def get_receipts_by_invoice(self, invoice_id: int) -> list[Receipt]:
        rows = self.session.execute(
            select(ReceiptModel)
            .where(ReceiptModel.invoice_id == invoice_id)
            .order_by(ReceiptModel.created_at.desc(), ReceiptModel.id.desc())
        ).scalars()
        return [row.to_dto() for row in rows]
