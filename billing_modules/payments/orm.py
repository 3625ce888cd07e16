"""
Invoice Payment ORM Models (``billing_modules.payments.orm``).

Responsibility
--------------
SQLAlchemy persistence models for the payment core.  Maps the frozen
domain dataclasses from ``models.py`` to database tables.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``billing_kernel.db`` and
sibling ``models.py``.  MUST NOT be imported by ``billing_kernel`` at module
load time.

Concurrency
-----------
``InvoiceModel.version`` is the mapper's ``version_id_col``: every UPDATE
of an invoice row is issued as ``... WHERE id = ? AND version = ?`` and a
zero rowcount raises ``StaleDataError``.  Together with the row lock taken
by ``InvoiceStore.lock_invoice`` this rules out lost updates on
``amount_paid``.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import TrackedBase
from billing_kernel.db.types import to_money


# ---------------------------------------------------------------------------
# 1. InvoiceModel
# ---------------------------------------------------------------------------


class InvoiceModel(TrackedBase):
    """
    ORM model for invoices.

    Guarantees:
        - invoice_number is unique when present.
        - amount_paid defaults to 0 and is written only by PaymentRecorder.
        - status stored as string enum value.
        - version increments on every UPDATE.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        CheckConstraint("amount_total >= 0", name="ck_invoices_total_non_negative"),
        CheckConstraint("amount_paid >= 0", name="ck_invoices_paid_non_negative"),
        Index("idx_invoices_status", "status"),
    )

    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    amount_total: Mapped[Decimal] = mapped_column(nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="sent")
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    version: Mapped[int] = mapped_column(nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from billing_modules.payments.models import Invoice, InvoiceStatus

        return Invoice(
            id=self.id,
            invoice_number=self.invoice_number,
            amount_total=to_money(self.amount_total),
            amount_paid=to_money(self.amount_paid),
            status=InvoiceStatus(self.status),
            due_date=self.due_date,
            payment_method=self.payment_method,
            payment_reference=self.payment_reference,
            paid_date=self.paid_date,
            version=self.version,
        )

    def __repr__(self) -> str:
        return (
            f"<InvoiceModel {self.id} status={self.status} "
            f"paid={self.amount_paid}/{self.amount_total} v{self.version}>"
        )


# ---------------------------------------------------------------------------
# 2. PaymentModel
# ---------------------------------------------------------------------------


class PaymentModel(TrackedBase):
    """
    ORM model for ledger payments.  Append-only: update and delete are
    blocked by ``billing_kernel.db.immutability``.

    Guarantees:
        - invoice_id FK to invoices.id.
        - amount > 0 (ck_invoice_payments_amount_positive).
    """

    __tablename__ = "invoice_payments"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoice_payments_amount_positive"),
        Index("idx_invoice_payments_invoice_id", "invoice_id"),
        Index("idx_invoice_payments_payment_date", "payment_date"),
    )

    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    payment_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from billing_modules.payments.models import Payment

        return Payment(
            id=self.id,
            invoice_id=self.invoice_id,
            amount=to_money(self.amount),
            payment_method=self.payment_method,
            payment_reference=self.payment_reference,
            payment_date=self.payment_date,
            notes=self.notes,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<PaymentModel {self.id} invoice={self.invoice_id} "
            f"amount={self.amount}>"
        )


# ---------------------------------------------------------------------------
# 3. ReminderModel
# ---------------------------------------------------------------------------


class ReminderModel(TrackedBase):
    """ORM model for invoice due-date reminders."""

    __tablename__ = "invoice_reminders"

    __table_args__ = (
        Index("idx_invoice_reminders_invoice", "invoice_id"),
        Index("idx_invoice_reminders_status", "status", "scheduled_date"),
    )

    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    reminder_type: Mapped[str] = mapped_column(String(20), nullable=False)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from billing_modules.payments.models import (
            Reminder,
            ReminderStatus,
            ReminderType,
        )

        return Reminder(
            id=self.id,
            invoice_id=self.invoice_id,
            reminder_type=ReminderType(self.reminder_type),
            scheduled_date=self.scheduled_date,
            status=ReminderStatus(self.status),
            sent_at=self.sent_at,
        )

    def __repr__(self) -> str:
        return (
            f"<ReminderModel {self.id} invoice={self.invoice_id} "
            f"{self.reminder_type} status={self.status}>"
        )


# ---------------------------------------------------------------------------
# 4. ReceiptModel
# ---------------------------------------------------------------------------


class ReceiptModel(TrackedBase):
    """
    ORM model for payment receipts.

    Guarantees:
        - receipt_number is unique (uq_receipts_receipt_number).
        - payment_id is nullable (receipts for out-of-band settlements).
    """

    __tablename__ = "receipts"

    __table_args__ = (
        UniqueConstraint("receipt_number", name="uq_receipts_receipt_number"),
        Index("idx_receipts_invoice_id", "invoice_id"),
    )

    receipt_number: Mapped[str] = mapped_column(String(50), nullable=False)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    payment_id: Mapped[int | None] = mapped_column(
        ForeignKey("invoice_payments.id"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_date: Mapped[date | None] = mapped_column(
        Date, nullable=True, server_default=func.current_date()
    )

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from billing_modules.payments.models import Receipt

        return Receipt(
            id=self.id,
            receipt_number=self.receipt_number,
            invoice_id=self.invoice_id,
            payment_id=self.payment_id,
            amount=to_money(self.amount),
            payment_method=self.payment_method,
            payment_reference=self.payment_reference,
            payment_date=self.payment_date,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<ReceiptModel {self.receipt_number} invoice={self.invoice_id}>"
