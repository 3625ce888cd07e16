"""
ORM-level immutability enforcement for the payment ledger.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | Immutable when      | Why
----------------|---------------------|------------------------------------------
PaymentModel    | ALWAYS              | Ledger is the source of truth for amount_paid
ReceiptModel    | ALWAYS              | Issued receipt numbers are never reused

Invoices are NOT protected here: amount_paid/status are a derived cache
that the payment recorder updates under a row lock.

===============================================================================
USAGE
===============================================================================

Registered by ``create_tables()``; safe to call more than once:

    from billing_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from billing_kernel.exceptions import ImmutabilityViolationError
from billing_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _reject_ledger_update(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={"entity_type": type(target).__name__, "entity_id": target.id},
    )
    raise ImmutabilityViolationError(
        type(target).__name__,
        str(target.id),
        "ledger records cannot be modified",
    )


def _reject_ledger_delete(mapper, connection, target):
    logger.error(
        "immutability_violation_blocked",
        extra={"entity_type": type(target).__name__, "entity_id": target.id},
    )
    raise ImmutabilityViolationError(
        type(target).__name__,
        str(target.id),
        "ledger records cannot be deleted",
    )


def _protected_models():
    # Inline import: models import from db, db must not import models at load.
    from billing_modules.payments.orm import PaymentModel, ReceiptModel

    return (PaymentModel, ReceiptModel)


def register_immutability_listeners() -> None:
    """Register before_update/before_delete guards on ledger models (idempotent)."""
    for model in _protected_models():
        if not event.contains(model, "before_update", _reject_ledger_update):
            event.listen(model, "before_update", _reject_ledger_update)
        if not event.contains(model, "before_delete", _reject_ledger_delete):
            event.listen(model, "before_delete", _reject_ledger_delete)
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners() -> None:
    """Remove the ledger guards. FOR TESTING ONLY."""
    for model in _protected_models():
        if event.contains(model, "before_update", _reject_ledger_update):
            event.remove(model, "before_update", _reject_ledger_update)
        if event.contains(model, "before_delete", _reject_ledger_delete):
            event.remove(model, "before_delete", _reject_ledger_delete)
    logger.debug("immutability_listeners_unregistered")
