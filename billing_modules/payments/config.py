"""
Invoice Payments Configuration Schema.

Defines the structure and sensible defaults for payment settings.
Actual values are loaded from ``billing_config`` at runtime.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from billing_kernel.db.types import PAYMENT_TOLERANCE, to_money
from billing_kernel.exceptions import InvalidPaymentAmountError
from billing_kernel.logging_config import get_logger

logger = get_logger("modules.payments.config")


class PaymentsConfigError(ValueError):
    """A payments configuration value is out of range or malformed."""

    code: str = "PAYMENTS_CONFIG_INVALID"


@dataclass
class PaymentsConfig:
    """
    Configuration schema for the invoice payment core.

    Field defaults match the behaviour clients already rely on.
    Override at instantiation or through a settings file:

        config = PaymentsConfig(allow_overpayment=True, max_lock_retries=5)
    """

    # Remaining balance at or below this counts as fully paid
    payment_tolerance: Decimal = PAYMENT_TOLERANCE

    # Reject payments that push amount_paid above amount_total + tolerance
    allow_overpayment: bool = False

    # Optimistic-lock conflicts retried by InvoicePaymentService
    max_lock_retries: int = 3

    # Receipts
    generate_receipts: bool = True
    receipt_number_prefix: str = "RCP"
    receipt_number_width: int = 4

    def __post_init__(self):
        try:
            self.payment_tolerance = to_money(self.payment_tolerance)
        except InvalidPaymentAmountError as exc:
            raise PaymentsConfigError(
                f"payment_tolerance must be a number, got '{exc.amount}'"
            ) from None
        if self.payment_tolerance < 0:
            raise PaymentsConfigError("payment_tolerance cannot be negative")
        if self.payment_tolerance > Decimal("1"):
            raise PaymentsConfigError("payment_tolerance cannot exceed 1.00")

        if isinstance(self.max_lock_retries, bool) or not isinstance(self.max_lock_retries, int):
            raise PaymentsConfigError("max_lock_retries must be an integer")
        if self.max_lock_retries < 0:
            raise PaymentsConfigError("max_lock_retries cannot be negative")

        if not self.receipt_number_prefix or not self.receipt_number_prefix.strip():
            raise PaymentsConfigError("receipt_number_prefix cannot be empty")
        if "-" in self.receipt_number_prefix:
            raise PaymentsConfigError("receipt_number_prefix cannot contain '-'")
        if not 1 <= self.receipt_number_width <= 12:
            raise PaymentsConfigError(
                f"receipt_number_width must be between 1 and 12, "
                f"got {self.receipt_number_width}"
            )

        logger.info(
            "payments_config_initialized",
            extra={
                "payment_tolerance": str(self.payment_tolerance),
                "allow_overpayment": self.allow_overpayment,
                "max_lock_retries": self.max_lock_retries,
                "generate_receipts": self.generate_receipts,
                "receipt_number_prefix": self.receipt_number_prefix,
            },
        )

    def format_receipt_number(self, year: int, sequence: int) -> str:
        """RCP-2024-0001 style receipt number."""
        return (
            f"{self.receipt_number_prefix}-{year}-"
            f"{sequence:0{self.receipt_number_width}d}"
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the stock defaults."""
        logger.info("payments_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from a YAML file)."""
        logger.info(
            "payments_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise PaymentsConfigError(f"Unknown payments settings: {unknown}")
        return cls(**data)
