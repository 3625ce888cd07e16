"""
InvoiceStore -- persisted invoice records for the payment core.

Responsibility:
    Read, row-lock and update invoices by id.  Creation is exposed for the
    invoicing workflow that issues invoices (and for tests); the payment
    core itself only reads and updates.

Invariants enforced:
    - ``status`` and ``amount_paid`` are written in the same flush, so a
      failed write leaves both at their prior values.
    - Every UPDATE carries the version check from ``InvoiceModel``; a
      concurrent writer surfaces as ``OptimisticLockError``.

Failure modes:
    - InvoiceNotFoundError from update_invoice_status on an unknown id.
    - OptimisticLockError when the row changed under us.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from billing_kernel.db.types import to_money
from billing_kernel.exceptions import InvoiceNotFoundError, OptimisticLockError
from billing_kernel.logging_config import get_logger
from billing_kernel.services.base import BaseService
from billing_modules.payments.models import Invoice, InvoiceStatus
from billing_modules.payments.orm import InvoiceModel

logger = get_logger("modules.payments.invoice_store")

# Marks an optional field that the caller did not supply.
UNSET = object()


class InvoiceStore(BaseService):
    """Invoice persistence.  Flushes, never commits."""

    def create_invoice(
        self,
        amount_total: Decimal | int | float | str,
        invoice_number: str | None = None,
        status: InvoiceStatus = InvoiceStatus.SENT,
        due_date: date | None = None,
        amount_paid: Decimal | int | float | str = Decimal("0"),
    ) -> Invoice:
        total = to_money(amount_total)
        paid = to_money(amount_paid)
        if total < 0:
            raise ValueError("amount_total cannot be negative")
        if paid < 0:
            raise ValueError("amount_paid cannot be negative")

        model = InvoiceModel(
            invoice_number=invoice_number,
            amount_total=total,
            amount_paid=paid,
            status=InvoiceStatus(status).value,
            due_date=due_date,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "invoice_created",
            extra={
                "invoice_id": model.id,
                "invoice_number": invoice_number,
                "amount_total": str(total),
                "status": model.status,
            },
        )
        return model.to_dto()

    def get_invoice_by_id(self, invoice_id: int) -> Invoice | None:
        model = self.session.get(InvoiceModel, invoice_id, populate_existing=True)
        return model.to_dto() if model is not None else None

    def lock_invoice(self, invoice_id: int) -> InvoiceModel | None:
        """
        Read the invoice row under ``SELECT ... FOR UPDATE``.

        The lock is held until the caller's transaction ends.  SQLite has
        no row locks; there the transaction already holds the database
        write lock from ``BEGIN IMMEDIATE``.
        """
        return self.session.execute(
            select(InvoiceModel)
            .where(InvoiceModel.id == invoice_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def update_invoice_status(
        self,
        invoice_id: int,
        status: InvoiceStatus,
        *,
        amount_paid: Decimal | None = None,
        payment_method: str | None | object = UNSET,
        payment_reference: str | None | object = UNSET,
        paid_date: date | None = None,
    ) -> Invoice:
        """
        Write ``status`` plus whichever payment fields are supplied.

        ``amount_paid`` and ``paid_date`` are left untouched when None.
        ``payment_method`` and ``payment_reference`` are left untouched
        when omitted; an explicit None clears them.
        """
        model = self.lock_invoice(invoice_id)
        if model is None:
            raise InvoiceNotFoundError(invoice_id)

        previous_status = model.status
        model.status = InvoiceStatus(status).value
        if amount_paid is not None:
            model.amount_paid = to_money(amount_paid)
        if payment_method is not UNSET:
            model.payment_method = payment_method
        if payment_reference is not UNSET:
            model.payment_reference = payment_reference
        if paid_date is not None:
            model.paid_date = paid_date

        try:
            self.session.flush()
        except StaleDataError:
            logger.warning(
                "invoice_version_conflict",
                extra={"invoice_id": invoice_id, "status": model.status},
            )
            raise OptimisticLockError("Invoice", str(invoice_id)) from None

        logger.info(
            "invoice_status_updated",
            extra={
                "invoice_id": invoice_id,
                "from_status": previous_status,
                "to_status": model.status,
                "amount_paid": str(model.amount_paid),
                "version": model.version,
            },
        )
        return model.to_dto()
