"""
Billing Kernel

Shared infrastructure for the invoice payment core:
- Structured JSON logging
- Typed exception hierarchy
- SQLAlchemy persistence with row locking and optimistic versioning
- Decimal money with an explicit payment tolerance
"""

__version__ = "0.1.0"
