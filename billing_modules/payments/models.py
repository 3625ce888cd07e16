"""
Invoice Payment Domain Models (``billing_modules.payments.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of invoice payment:
invoices, ledger payments, reminders, receipts, and the composite result
of recording a payment with history.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned to
callers by the recorder, ledger, selectors and facade.  ORM models in
``orm.py`` convert to these via ``to_dto()``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields are ``Decimal`` -- NEVER ``float``.
* ``Payment.amount`` is strictly positive.
* ``Invoice.amount_paid`` and ``Invoice.amount_total`` are non-negative.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from billing_kernel.db.types import round_money
from billing_kernel.logging_config import get_logger

logger = get_logger("modules.payments.models")


class InvoiceStatus(Enum):
    """Invoice states visible to the payment core."""
    SENT = "sent"
    PARTIAL = "partial"
    PAID = "paid"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


class ReminderStatus(Enum):
    """Due-date reminder states."""
    PENDING = "pending"
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class ReminderType(Enum):
    """When a reminder fires relative to the due date."""
    UPCOMING = "upcoming"
    DUE = "due"
    OVERDUE_3 = "overdue_3"
    OVERDUE_7 = "overdue_7"
    OVERDUE_14 = "overdue_14"
    OVERDUE_30 = "overdue_30"


@dataclass(frozen=True)
class Invoice:
    """An invoice as seen by the payment core."""
    id: int
    amount_total: Decimal
    amount_paid: Decimal
    status: InvoiceStatus
    invoice_number: str | None = None
    due_date: date | None = None
    payment_method: str | None = None
    payment_reference: str | None = None
    paid_date: date | None = None
    version: int = 1

    def __post_init__(self):
        if self.amount_total < 0:
            raise ValueError("amount_total cannot be negative")
        if self.amount_paid < 0:
            raise ValueError("amount_paid cannot be negative")

    @property
    def remaining(self) -> Decimal:
        """Outstanding balance; negative when within-tolerance overpaid."""
        return self.amount_total - self.amount_paid

    @property
    def remaining_display(self) -> Decimal:
        return round_money(max(self.remaining, Decimal("0")))


@dataclass(frozen=True)
class Payment:
    """One immutable ledger entry applied to an invoice."""
    id: int
    invoice_id: int
    amount: Decimal
    payment_method: str
    payment_date: date
    created_at: datetime
    payment_reference: str | None = None
    notes: str | None = None

    def __post_init__(self):
        if self.amount <= 0:
            logger.warning(
                "payment_invalid_amount",
                extra={"payment_id": self.id, "amount": str(self.amount)},
            )
            raise ValueError("Payment amount must be positive")


@dataclass(frozen=True)
class Reminder:
    """A scheduled due-date notice tied to an invoice."""
    id: int
    invoice_id: int
    reminder_type: ReminderType
    scheduled_date: date
    status: ReminderStatus = ReminderStatus.PENDING
    sent_at: datetime | None = None


@dataclass(frozen=True)
class Receipt:
    """A generated artifact documenting one payment."""
    id: int
    receipt_number: str
    invoice_id: int
    amount: Decimal
    payment_id: int | None = None
    payment_method: str | None = None
    payment_reference: str | None = None
    payment_date: date | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class ReceiptContext:
    """Payment details handed to a receipt generator."""
    payment_method: str
    payment_date: date
    payment_reference: str | None = None


@dataclass(frozen=True)
class PaymentRecordResult:
    """
    Outcome of recording a payment with history.

    ``receipt`` is None when receipt generation failed or is disabled;
    the payment is fully recorded either way.
    """
    invoice: Invoice
    payment: Payment
    receipt: Receipt | None = None

    @property
    def has_receipt(self) -> bool:
        return self.receipt is not None
