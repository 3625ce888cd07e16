"""
Invoice Payment Workflows.

State machine for the payment-side lifecycle of an invoice.  ``sent`` is
entered by the invoicing workflow and ``cancelled`` by the cancellation
workflow; neither is reachable from here.
"""

from dataclasses import dataclass

from billing_kernel.exceptions import InvalidInvoiceTransitionError
from billing_kernel.logging_config import get_logger

logger = get_logger("modules.payments.workflows")


@dataclass(frozen=True)
class Guard:
    """A condition for a transition."""
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def find_transition(self, from_state: str, to_state: str, action: str) -> Transition | None:
        for transition in self.transitions:
            if (
                transition.from_state == from_state
                and transition.to_state == to_state
                and transition.action == action
            ):
                return transition
        return None

    def allowed_actions(self, from_state: str) -> tuple[str, ...]:
        return tuple(sorted({t.action for t in self.transitions if t.from_state == from_state}))


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

BALANCE_WITHIN_TOLERANCE = Guard(
    name="balance_within_tolerance",
    description="Remaining balance is at or below the payment tolerance",
)

BALANCE_OUTSTANDING = Guard(
    name="balance_outstanding",
    description="Remaining balance is above the payment tolerance",
)


# -----------------------------------------------------------------------------
# Invoice Payment Workflow
# -----------------------------------------------------------------------------

INVOICE_PAYMENT_WORKFLOW = Workflow(
    name="invoice_payment",
    description="Invoice settlement by incremental payment or administrative override",
    initial_state="sent",
    states=(
        "sent",
        "partial",
        "paid",
        "cancelled",
    ),
    transitions=(
        Transition("sent", "partial", action="record_payment", guard=BALANCE_OUTSTANDING),
        Transition("sent", "paid", action="record_payment", guard=BALANCE_WITHIN_TOLERANCE),
        Transition("partial", "partial", action="record_payment", guard=BALANCE_OUTSTANDING),
        Transition("partial", "paid", action="record_payment", guard=BALANCE_WITHIN_TOLERANCE),
        Transition("sent", "paid", action="mark_paid"),
        Transition("partial", "paid", action="mark_paid"),
    ),
    terminal_states=("paid", "cancelled"),
)

logger.info(
    "invoice_payment_workflow_registered",
    extra={
        "workflow_name": INVOICE_PAYMENT_WORKFLOW.name,
        "state_count": len(INVOICE_PAYMENT_WORKFLOW.states),
        "transition_count": len(INVOICE_PAYMENT_WORKFLOW.transitions),
        "initial_state": INVOICE_PAYMENT_WORKFLOW.initial_state,
    },
)


def assert_transition(
    current: str,
    new: str,
    action: str,
    workflow: Workflow = INVOICE_PAYMENT_WORKFLOW,
) -> Transition:
    """
    Return the declared transition or raise.

    Accepts enum members or their string values.

    Raises:
        InvalidInvoiceTransitionError: No transition ``current -> new`` is
            declared for ``action``.
    """
    current = getattr(current, "value", current)
    new = getattr(new, "value", new)
    transition = workflow.find_transition(current, new, action)
    if transition is None:
        logger.warning(
            "invoice_transition_rejected",
            extra={
                "workflow_name": workflow.name,
                "from_state": current,
                "to_state": new,
                "action": action,
            },
        )
        raise InvalidInvoiceTransitionError(current, new, action)
    return transition
