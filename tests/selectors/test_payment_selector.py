"""Read-side views over the payment ledger."""

from datetime import date
from decimal import Decimal

import pytest

from billing_modules.payments import PaymentLedger, PaymentSelector


@pytest.fixture
def ledger(session, deterministic_clock):
    return PaymentLedger(session, deterministic_clock)


@pytest.fixture
def selector(session):
    return PaymentSelector(session)


@pytest.fixture
def three_days_of_payments(session, ledger, deterministic_clock, invoice_factory):
    """Invoice A paid on Mar 15, 16, 17; invoice B paid on Mar 16."""
    a = invoice_factory(amount_total="1000")
    b = invoice_factory(amount_total="1000")
    payments = {}
    payments["a1"] = ledger.append(a.id, "100", "cash")
    deterministic_clock.advance_days(1)
    payments["a2"] = ledger.append(a.id, "200", "cash")
    payments["b1"] = ledger.append(b.id, "50", "card")
    deterministic_clock.advance_days(1)
    payments["a3"] = ledger.append(a.id, "300", "cash")
    session.commit()
    return a, b, payments


class TestPaymentHistory:

    def test_newest_first(self, selector, three_days_of_payments):
        a, _, p = three_days_of_payments
        history = selector.get_payment_history(a.id)
        assert [x.id for x in history] == [p["a3"].id, p["a2"].id, p["a1"].id]

    def test_same_day_ordered_by_creation(self, session, selector, ledger, deterministic_clock, invoice_factory):
        invoice = invoice_factory(amount_total="1000")
        first = ledger.append(invoice.id, "1", "cash")
        deterministic_clock.advance(60)
        second = ledger.append(invoice.id, "2", "cash")
        third = ledger.append(invoice.id, "3", "cash")  # same timestamp, later id
        session.commit()

        history = selector.get_payment_history(invoice.id)
        assert [x.id for x in history] == [third.id, second.id, first.id]

    def test_amounts_are_decimal(self, selector, three_days_of_payments):
        a, _, _ = three_days_of_payments
        for payment in selector.get_payment_history(a.id):
            assert isinstance(payment.amount, Decimal)
        assert sorted(p.amount for p in selector.get_payment_history(a.id)) == [
            Decimal("100"), Decimal("200"), Decimal("300"),
        ]

    def test_unknown_invoice_is_empty(self, selector, db_engine):
        assert selector.get_payment_history(123456) == []


class TestAllPayments:

    def test_unbounded_is_everything_newest_first(self, selector, three_days_of_payments):
        _, _, p = three_days_of_payments
        payments = selector.get_all_payments()
        assert len(payments) == 4
        assert payments[0].id == p["a3"].id
        dates = [x.payment_date for x in payments]
        assert dates == sorted(dates, reverse=True)

    def test_bounds_are_inclusive(self, selector, three_days_of_payments):
        _, _, p = three_days_of_payments
        payments = selector.get_all_payments(date(2024, 3, 16), date(2024, 3, 16))
        assert {x.id for x in payments} == {p["a2"].id, p["b1"].id}

    def test_start_only(self, selector, three_days_of_payments):
        payments = selector.get_all_payments(start_date=date(2024, 3, 16))
        assert len(payments) == 3

    def test_end_only(self, selector, three_days_of_payments):
        _, _, p = three_days_of_payments
        payments = selector.get_all_payments(end_date=date(2024, 3, 15))
        assert [x.id for x in payments] == [p["a1"].id]

    def test_iso_string_bounds(self, selector, three_days_of_payments):
        payments = selector.get_all_payments("2024-03-17", "2024-12-31")
        assert len(payments) == 1

    def test_empty_range(self, selector, three_days_of_payments):
        assert selector.get_all_payments("2025-01-01") == []

    def test_bad_bound_rejected(self, selector, db_engine):
        with pytest.raises(ValueError, match="start_date"):
            selector.get_all_payments("15/03/2024")

    def test_facade_delegates(self, service, three_days_of_payments):
        assert len(service.get_all_payments("2024-03-16")) == 3


class TestTotalPaid:

    def test_sum(self, selector, three_days_of_payments):
        a, b, _ = three_days_of_payments
        assert selector.get_total_paid(a.id) == Decimal("600")
        assert selector.get_total_paid(b.id) == Decimal("50")

    def test_no_payments_is_zero(self, selector, invoice_factory):
        invoice = invoice_factory()
        assert selector.get_total_paid(invoice.id) == Decimal("0")
