"""
Billing Modules.

Orchestration layers over the Billing Kernel.  Each module contains:
- Domain models (the nouns)
- ORM models (persistence)
- Workflows (state machines)
- Configuration schemas
- Services, selectors, and a transactional facade

Modules:
- Payments: invoice payment recording, payment ledger, reminder
  cancellation, and receipt generation
"""

from billing_modules import payments

__all__ = ["payments"]
