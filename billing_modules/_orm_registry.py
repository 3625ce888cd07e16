"""
Module ORM Registry (``billing_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy ORM model is imported so that ``Base.metadata``
contains its table before ``create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Imported lazily by
``billing_kernel.db.engine.create_tables`` (the one sanctioned
kernel -> modules reference).
"""


def import_all_orm_models() -> None:
    """Import kernel tables and every ``billing_modules.*.orm`` module (idempotent)."""
    import billing_kernel.services.sequence_service  # noqa: F401  # sequence_counters
    import billing_modules.payments.orm  # noqa: F401
