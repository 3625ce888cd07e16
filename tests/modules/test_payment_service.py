"""
InvoicePaymentService: ledger recording, best-effort receipts, transaction
boundaries and optimistic-lock retries.
"""

from decimal import Decimal

import pytest

from billing_kernel.exceptions import (
    InvalidPaymentAmountError,
    InvoiceAlreadyPaidError,
    OptimisticLockError,
)
from billing_modules.payments import (
    InvoicePaymentService,
    InvoiceStatus,
    PaymentLedger,
    PaymentSelector,
    PaymentsConfig,
    ReceiptService,
)


class ExplodingReceiptGenerator:
    """Receipt generator whose storage is down."""

    def __init__(self):
        self.calls = []

    def create_receipt(self, invoice_id, payment_id, amount, context):
        self.calls.append((invoice_id, payment_id, amount, context))
        raise OSError("receipt storage unavailable")


class TestRecordPaymentWithHistory:

    def test_returns_invoice_payment_and_receipt(
        self, service, invoice_factory, deterministic_clock
    ):
        invoice = invoice_factory(amount_total="1000")

        result = service.record_payment_with_history(
            invoice.id, Decimal("250"), "bank_transfer", "TX-1", notes="first instalment"
        )

        assert result.invoice.amount_paid == Decimal("250")
        assert result.invoice.status is InvoiceStatus.PARTIAL
        assert result.payment.invoice_id == invoice.id
        assert result.payment.amount == Decimal("250")
        assert result.payment.notes == "first instalment"
        assert result.payment.payment_date == deterministic_clock.today()
        assert result.has_receipt
        assert result.receipt.receipt_number == "RCP-2024-0001"
        assert result.receipt.payment_id == result.payment.id
        assert result.receipt.payment_reference == "TX-1"

    def test_payment_appears_in_history(self, service, invoice_factory):
        invoice = invoice_factory(amount_total="1000")
        result = service.record_payment_with_history(invoice.id, Decimal("100"), "cash")

        history = service.get_payment_history(invoice.id)
        assert [p.id for p in history] == [result.payment.id]

    def test_receipt_failure_does_not_lose_payment(
        self, session, session_factory, deterministic_clock, invoice_factory, captured_logs
    ):
        generator = ExplodingReceiptGenerator()
        service = InvoicePaymentService(
            session, clock=deterministic_clock, receipt_generator=generator
        )
        invoice = invoice_factory(amount_total="500")

        result = service.record_payment_with_history(invoice.id, Decimal("500"), "credit_card")

        assert result.receipt is None
        assert not result.has_receipt
        assert result.invoice.status is InvoiceStatus.PAID
        assert result.payment.amount == Decimal("500")
        assert len(generator.calls) == 1
        assert [p.id for p in service.get_payment_history(invoice.id)] == [result.payment.id]

        # committed: visible from an independent session
        other = session_factory()
        try:
            assert PaymentSelector(other).get_total_paid(invoice.id) == Decimal("500")
        finally:
            other.close()

        failures = [r for r in captured_logs() if r["message"] == "receipt_generation_failed"]
        assert len(failures) == 1
        assert failures[0]["error_code"] == "RECEIPT_GENERATION_FAILED"
        assert failures[0]["payment_id"] == str(result.payment.id)
        assert failures[0]["exc_type"] == "OSError"

    def test_receipts_disabled(self, session, deterministic_clock, invoice_factory):
        generator = ExplodingReceiptGenerator()
        service = InvoicePaymentService(
            session,
            clock=deterministic_clock,
            config=PaymentsConfig(generate_receipts=False),
            receipt_generator=generator,
        )
        invoice = invoice_factory(amount_total="500")

        result = service.record_payment_with_history(invoice.id, Decimal("10"), "cash")

        assert result.receipt is None
        assert generator.calls == []

    def test_rejection_writes_nothing(self, service, invoice_factory):
        invoice = invoice_factory(amount_total="100", amount_paid="100", status=InvoiceStatus.PAID)

        with pytest.raises(InvoiceAlreadyPaidError):
            service.record_payment_with_history(invoice.id, Decimal("5"), "cash")

        assert service.get_payment_history(invoice.id) == []

    def test_invalid_amount_writes_nothing(self, service, invoice_store, invoice_factory):
        invoice = invoice_factory(amount_total="100")

        with pytest.raises(InvalidPaymentAmountError):
            service.record_payment_with_history(invoice.id, Decimal("0"), "cash")

        assert service.get_payment_history(invoice.id) == []
        assert invoice_store.get_invoice_by_id(invoice.id).status is InvoiceStatus.SENT

    def test_ledger_sum_matches_amount_paid(self, service, session, invoice_factory):
        invoice = invoice_factory(amount_total="1000")
        for amount in ("100.10", "200.20", "0.01", "699.69"):
            result = service.record_payment_with_history(invoice.id, Decimal(amount), "cash")

        assert result.invoice.status is InvoiceStatus.PAID
        assert PaymentSelector(session).get_total_paid(invoice.id) == result.invoice.amount_paid

    def test_ledger_and_receipt_events_logged(self, service, invoice_factory, captured_logs):
        invoice = invoice_factory(amount_total="100")
        service.record_payment_with_history(invoice.id, Decimal("100"), "cash")

        messages = [r["message"] for r in captured_logs()]
        assert "payment_recorded" in messages
        assert "payment_ledger_appended" in messages
        assert "receipt_generated" in messages
        assert messages.index("payment_ledger_appended") < messages.index("receipt_generated")


class TestPaymentLedgerAppend:

    def test_append_uses_clock(self, session, deterministic_clock, invoice_factory):
        invoice = invoice_factory(amount_total="100")
        deterministic_clock.advance_days(3)

        payment = PaymentLedger(session, deterministic_clock).append(invoice.id, "12.50", "cash")

        assert payment.amount == Decimal("12.50")
        assert payment.payment_date.isoformat() == "2024-03-18"

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1")])
    def test_append_rejects_non_positive(self, session, invoice_factory, amount):
        invoice = invoice_factory(amount_total="100")
        with pytest.raises(InvalidPaymentAmountError):
            PaymentLedger(session).append(invoice.id, amount, "cash")


class TestTransactionRetry:

    def test_retries_after_lock_conflict(self, service, invoice_factory, monkeypatch, captured_logs):
        invoice = invoice_factory(amount_total="500")
        ledger = service._ledger
        original = ledger.record_payment_with_history
        attempts = []

        def flaky(*args, **kwargs):
            attempts.append(1)
            if len(attempts) == 1:
                raise OptimisticLockError("Invoice", str(invoice.id))
            return original(*args, **kwargs)

        monkeypatch.setattr(ledger, "record_payment_with_history", flaky)

        result = service.record_payment_with_history(invoice.id, Decimal("200"), "cash")

        assert len(attempts) == 2
        assert result.invoice.amount_paid == Decimal("200")
        assert len(service.get_payment_history(invoice.id)) == 1
        assert any(r["message"] == "payment_transaction_retry" for r in captured_logs())

    def test_gives_up_after_max_retries(self, session, deterministic_clock, invoice_factory, monkeypatch):
        service = InvoicePaymentService(
            session, clock=deterministic_clock, config=PaymentsConfig(max_lock_retries=2)
        )
        invoice = invoice_factory(amount_total="500")
        attempts = []

        def always_conflicts(*args, **kwargs):
            attempts.append(1)
            raise OptimisticLockError("Invoice", str(invoice.id))

        monkeypatch.setattr(service._recorder, "record_payment", always_conflicts)

        with pytest.raises(OptimisticLockError):
            service.record_payment(invoice.id, Decimal("1"), "cash")
        assert len(attempts) == 3

    def test_validation_errors_not_retried(self, service, invoice_factory, monkeypatch):
        invoice = invoice_factory(amount_total="500")
        attempts = []
        original = service._recorder.record_payment

        def counting(*args, **kwargs):
            attempts.append(1)
            return original(*args, **kwargs)

        monkeypatch.setattr(service._recorder, "record_payment", counting)

        with pytest.raises(InvalidPaymentAmountError):
            service.record_payment(invoice.id, Decimal("-3"), "cash")
        assert len(attempts) == 1


class TestDefaultReceiptGenerator:

    def test_facade_uses_receipt_service_by_default(self, service):
        assert isinstance(service._receipts, ReceiptService)
