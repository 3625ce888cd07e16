"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the payment core (HTTP handlers, admin tooling, scheduler jobs)
must map failures to responses without parsing message strings:

    try:
        service.record_payment(invoice_id, amount, "credit_card")
    except InvoiceNotFoundError as e:
        return response(404, code=e.code, invoice_id=e.invoice_id)
    except (InvoiceAlreadyPaidError, InvoiceCancelledError) as e:
        return response(409, code=e.code, status=e.status)
    except InvalidPaymentAmountError as e:
        return response(400, code=e.code, amount=e.amount)

Every class carries:
  1. A ``code`` class attribute (machine-readable, API-safe).
  2. Its context as instance attributes (structured, log-friendly).

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingKernelError (base)
    |
    +-- InvoiceError
    |   +-- InvoiceNotFoundError
    |   +-- InvoiceAlreadyPaidError
    |   +-- InvoiceCancelledError
    |   +-- InvalidInvoiceTransitionError
    |
    +-- PaymentError
    |   +-- InvalidPaymentAmountError
    |       +-- OverpaymentError
    |
    +-- ReceiptError
    |   +-- ReceiptGenerationFailedError
    |   +-- ReceiptNotFoundError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|------------------------------------
Invoice      | INVOICE_NOT_FOUND           | No invoice with the given id
             | INVOICE_ALREADY_PAID        | Payment on a paid invoice
             | INVOICE_CANCELLED           | Payment on a cancelled invoice
             | INVALID_INVOICE_TRANSITION  | Status change not in the workflow
-------------|-----------------------------|------------------------------------
Payment      | INVALID_PAYMENT_AMOUNT      | Amount <= 0 or not a number
             | OVERPAYMENT                 | Payment exceeds balance + tolerance
-------------|-----------------------------|------------------------------------
Receipt      | RECEIPT_GENERATION_FAILED   | Logged only, never propagated
             | RECEIPT_NOT_FOUND           | Receipt lookup miss
-------------|-----------------------------|------------------------------------
Concurrency  | OPTIMISTIC_LOCK_CONFLICT    | Invoice row version changed under us
-------------|-----------------------------|------------------------------------
Immutability | IMMUTABILITY_VIOLATION      | Update/delete of a ledger payment

All validation errors are raised BEFORE any write is flushed.

===============================================================================
"""

from decimal import Decimal


class BillingKernelError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "BILLING_KERNEL_ERROR"


# Invoice-related exceptions


class InvoiceError(BillingKernelError):
    """Base exception for invoice-related errors."""

    code: str = "INVOICE_ERROR"


class InvoiceNotFoundError(InvoiceError):
    """Invoice with given ID was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: int):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class InvoiceAlreadyPaidError(InvoiceError):
    """Invoice is fully paid; it is terminal for payments."""

    code: str = "INVOICE_ALREADY_PAID"

    def __init__(self, invoice_id: int):
        self.invoice_id = invoice_id
        self.status = "paid"
        super().__init__(f"Invoice {invoice_id} is already fully paid")


class InvoiceCancelledError(InvoiceError):
    """Invoice was cancelled; it is terminal for payments."""

    code: str = "INVOICE_CANCELLED"

    def __init__(self, invoice_id: int):
        self.invoice_id = invoice_id
        self.status = "cancelled"
        super().__init__(
            f"Cannot record payment on cancelled invoice {invoice_id}"
        )


class InvalidInvoiceTransitionError(InvoiceError):
    """Requested status change is not part of the invoice workflow."""

    code: str = "INVALID_INVOICE_TRANSITION"

    def __init__(self, current_status: str, new_status: str, action: str):
        self.current_status = current_status
        self.new_status = new_status
        self.action = action
        super().__init__(
            f"Invalid invoice transition via {action}: "
            f"{current_status} -> {new_status}"
        )


# Payment-related exceptions


class PaymentError(BillingKernelError):
    """Base exception for payment-related errors."""

    code: str = "PAYMENT_ERROR"


class InvalidPaymentAmountError(PaymentError):
    """Payment amount is zero, negative, or not a finite number."""

    code: str = "INVALID_PAYMENT_AMOUNT"

    def __init__(self, amount, reason: str = "must be greater than zero"):
        self.amount = str(amount)
        self.reason = reason
        super().__init__(f"Invalid payment amount {amount}: {reason}")


class OverpaymentError(InvalidPaymentAmountError):
    """Payment would push amount_paid above total plus tolerance."""

    code: str = "OVERPAYMENT"

    def __init__(self, invoice_id: int, amount: Decimal, remaining: Decimal):
        self.invoice_id = invoice_id
        self.remaining = str(remaining)
        super().__init__(
            amount,
            f"exceeds remaining balance {remaining} on invoice {invoice_id}",
        )


# Receipt-related exceptions


class ReceiptError(BillingKernelError):
    """Base exception for receipt-related errors."""

    code: str = "RECEIPT_ERROR"


class ReceiptGenerationFailedError(ReceiptError):
    """
    Receipt generator raised while producing a receipt.

    Constructed only to be logged -- receipt failures never abort
    or roll back a recorded payment.
    """

    code: str = "RECEIPT_GENERATION_FAILED"

    def __init__(self, invoice_id: int, payment_id: int, reason: str):
        self.invoice_id = invoice_id
        self.payment_id = payment_id
        self.reason = reason
        super().__init__(
            f"Receipt generation failed for payment {payment_id} "
            f"on invoice {invoice_id}: {reason}"
        )


class ReceiptNotFoundError(ReceiptError):
    """Receipt lookup by id or number found nothing."""

    code: str = "RECEIPT_NOT_FOUND"

    def __init__(self, receipt_ref: str):
        self.receipt_ref = receipt_ref
        super().__init__(f"Receipt not found: {receipt_ref}")


# Concurrency-related exceptions


class ConcurrencyError(BillingKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability-related exceptions


class ImmutabilityError(BillingKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an immutable ledger record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
