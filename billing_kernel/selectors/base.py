"""
Module: billing_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.  Selectors
    form the query side of the payment core: ledger history and listings.
Architecture position: Kernel > Selectors.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(), delete(),
      commit(), or flush().
    - DTO return convention: selectors return frozen dataclasses, never ORM
      instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Abstract base class for all selectors."""

    def __init__(self, session: Session):
        self.session = session
