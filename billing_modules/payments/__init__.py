"""
Invoice Payments Module.

Records full and partial payments against invoices, keeps the balance and
status consistent with an append-only payment ledger, skips due-date
reminders once an invoice is settled, and issues receipts best-effort.
"""

from billing_modules.payments.config import PaymentsConfig, PaymentsConfigError
from billing_modules.payments.invoice_store import InvoiceStore
from billing_modules.payments.ledger import PaymentLedger
from billing_modules.payments.models import (
    Invoice,
    InvoiceStatus,
    Payment,
    PaymentRecordResult,
    Receipt,
    ReceiptContext,
    Reminder,
    ReminderStatus,
    ReminderType,
)
from billing_modules.payments.receipts import ReceiptGenerator, ReceiptService
from billing_modules.payments.recorder import PaymentRecorder, decide_payment_status
from billing_modules.payments.reminders import ReminderCanceller
from billing_modules.payments.selectors import PaymentSelector
from billing_modules.payments.service import InvoicePaymentService
from billing_modules.payments.workflows import INVOICE_PAYMENT_WORKFLOW, assert_transition

__all__ = [
    "Invoice",
    "InvoiceStatus",
    "Payment",
    "PaymentRecordResult",
    "Receipt",
    "ReceiptContext",
    "Reminder",
    "ReminderStatus",
    "ReminderType",
    "PaymentsConfig",
    "PaymentsConfigError",
    "InvoiceStore",
    "PaymentLedger",
    "PaymentRecorder",
    "decide_payment_status",
    "ReminderCanceller",
    "ReceiptGenerator",
    "ReceiptService",
    "PaymentSelector",
    "InvoicePaymentService",
    "INVOICE_PAYMENT_WORKFLOW",
    "assert_transition",
]
