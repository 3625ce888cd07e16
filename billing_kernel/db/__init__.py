"""Database layer - engine, base classes, types, and ledger immutability."""

from billing_kernel.db.base import Base, IdentityInteger, TrackedBase
from billing_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from billing_kernel.db.types import PAYMENT_TOLERANCE, Money, to_money

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "IdentityInteger",
    "Money",
    "PAYMENT_TOLERANCE",
    "to_money",
]
