"""ORM guarantees: append-only ledger rows and invoice version checks."""

from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.orm.exc import StaleDataError

from billing_kernel.exceptions import (
    ImmutabilityViolationError,
    InvoiceNotFoundError,
    OptimisticLockError,
)
from billing_modules.payments import InvoiceStatus, PaymentLedger
from billing_modules.payments.orm import InvoiceModel, PaymentModel


class TestLedgerImmutability:

    def test_payment_update_blocked(self, session, invoice_factory):
        invoice = invoice_factory()
        payment = PaymentLedger(session).append(invoice.id, "10", "cash")
        model = session.get(PaymentModel, payment.id)

        model.amount = Decimal("1000")
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_payment_delete_blocked(self, session, invoice_factory):
        invoice = invoice_factory()
        payment = PaymentLedger(session).append(invoice.id, "10", "cash")
        session.delete(session.get(PaymentModel, payment.id))

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "PaymentModel"


class TestInvoiceVersioning:

    def test_new_invoice_starts_at_version_one(self, invoice_factory):
        assert invoice_factory().version == 1

    def test_stale_write_detected(self, session, invoice_factory):
        invoice = invoice_factory()
        model = session.get(InvoiceModel, invoice.id)
        table = InvoiceModel.__table__
        session.execute(
            update(table).where(table.c.id == invoice.id).values(version=table.c.version + 1)
        )

        model.amount_paid = Decimal("5")
        with pytest.raises(StaleDataError):
            session.flush()

    def test_store_translates_stale_write(self, session, invoice_store, invoice_factory, monkeypatch):
        invoice = invoice_factory()
        stale = session.get(InvoiceModel, invoice.id)
        table = InvoiceModel.__table__
        session.execute(
            update(table).where(table.c.id == invoice.id).values(version=table.c.version + 1)
        )
        monkeypatch.setattr(invoice_store, "lock_invoice", lambda invoice_id: stale)

        with pytest.raises(OptimisticLockError) as exc_info:
            invoice_store.update_invoice_status(
                invoice.id, InvoiceStatus.PARTIAL, amount_paid=Decimal("5")
            )
        assert exc_info.value.entity_id == str(invoice.id)


class TestInvoiceStore:

    def test_create_and_get(self, invoice_store, db_engine):
        created = invoice_store.create_invoice("1500.00", invoice_number="INV-2024-001")
        fetched = invoice_store.get_invoice_by_id(created.id)
        assert fetched.invoice_number == "INV-2024-001"
        assert fetched.status is InvoiceStatus.SENT
        assert fetched.amount_paid == Decimal("0")

    def test_missing_is_none(self, invoice_store, db_engine):
        assert invoice_store.get_invoice_by_id(8080) is None

    def test_negative_total_rejected(self, invoice_store, db_engine):
        with pytest.raises(ValueError):
            invoice_store.create_invoice("-1")

    def test_update_writes_only_given_fields(self, invoice_store, db_engine):
        created = invoice_store.create_invoice("100", invoice_number="INV-7")
        invoice_store.update_invoice_status(
            created.id, InvoiceStatus.PARTIAL, amount_paid=Decimal("40"), payment_method="cash"
        )
        updated = invoice_store.update_invoice_status(
            created.id, InvoiceStatus.PARTIAL, payment_reference="R-2"
        )
        assert updated.amount_paid == Decimal("40")
        assert updated.payment_method == "cash"
        assert updated.payment_reference == "R-2"
        assert updated.paid_date is None

    def test_update_explicit_none_clears_reference(self, invoice_store, db_engine):
        created = invoice_store.create_invoice("100")
        invoice_store.update_invoice_status(
            created.id, InvoiceStatus.PARTIAL, amount_paid=Decimal("40"), payment_reference="R-1"
        )
        updated = invoice_store.update_invoice_status(
            created.id, InvoiceStatus.PARTIAL, payment_reference=None
        )
        assert updated.payment_reference is None
        assert updated.amount_paid == Decimal("40")

    def test_update_unknown_invoice(self, invoice_store, db_engine):
        with pytest.raises(InvoiceNotFoundError):
            invoice_store.update_invoice_status(1, InvoiceStatus.PAID)
