"""
BaseService -- abstract base for all write-side services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service that mutates billing state.  Concrete services receive a
    SQLAlchemy ``Session`` and use ``session.flush()`` -- never
    ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back themselves.  The facade
    (``InvoicePaymentService``) or the test harness owns commit/rollback,
    which is what keeps "invoice balance + ledger row" atomic.

Failure modes:
    - A subclass that calls ``session.commit()`` breaks the atomicity of
      multi-step payment recording.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for write-side services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read-only listing methods -- those belong
          in selectors.
    """

    def __init__(self, session: Session):
        self.session = session
