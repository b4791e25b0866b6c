"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for caller-facing domain errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Operation would violate an invariant spanning several entities."""


class InvalidStateError(DomainError):
    """Requested state transition is not permitted from the current state."""

    def __init__(self, current: str, requested: str, subject: str = "Transaction"):
        self.current = current
        self.requested = requested
        super().__init__(
            f"{subject} is {current}; cannot move to {requested}"
        )


class AtomicityFailure(RuntimeError):
    """The store could not commit a combined state and balance write.

    Not a DomainError: callers receive an opaque failure and must re-query
    state before retrying.
    """


class ConcurrentUpdateError(AtomicityFailure):
    """A versioned row changed underneath an atomic unit; safe to re-run."""


def account_not_found(account_id: int) -> str:
    """Return message for missing financial account."""
    return f"Account {account_id} not found"


def account_inactive(account_id: int) -> str:
    """Return message for an account that no longer accepts movements."""
    return f"Account {account_id} is not active"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def ledger_account_not_found(ledger_account_id: int) -> str:
    """Return message for missing chart-of-accounts node."""
    return f"Ledger account {ledger_account_id} not found"


def ledger_account_not_imputable(code: str) -> str:
    """Return message for a posting aimed at an aggregator node."""
    return f"Ledger account '{code}' is not imputable and cannot receive postings"


def duplicate_account_name(name: str) -> str:
    """Return message for duplicate account name."""
    return f"Account with name '{name}' already exists"


def duplicate_ledger_code(code: str) -> str:
    """Return message for duplicate chart-of-accounts code."""
    return f"Ledger account with code '{code}' already exists"


def transfer_not_found(transfer_ref: str) -> str:
    """Return message for unknown transfer reference."""
    return f"Transfer '{transfer_ref}' not found"


def account_deactivate_blocked(account_id: int, open_count: int) -> str:
    """Return message when an account still has unresolved transactions."""
    return (
        f"Cannot deactivate account {account_id}: it has {open_count} "
        f"pending or confirmed transaction{'s' if open_count != 1 else ''}. "
        "Reconcile or void them first."
    )


def ledger_deactivate_blocked(
    code: str, posting_count: int, active_children: int
) -> str:
    """Return message when a chart node is still referenced."""
    parts = []
    if posting_count > 0:
        parts.append(
            f"{posting_count} posting{'s' if posting_count != 1 else ''}"
        )
    if active_children > 0:
        parts.append(
            f"{active_children} active sub-account{'s' if active_children != 1 else ''}"
        )
    return f"Cannot deactivate ledger account '{code}': it has {', '.join(parts)}"


def account_currency_locked(account_id: int, live_count: int) -> str:
    """Return message when a currency change would relabel recorded movements."""
    return (
        f"Cannot change the currency of account {account_id}: it has {live_count} "
        f"transaction{'s' if live_count != 1 else ''} that "
        f"{'are' if live_count != 1 else 'is'} not voided"
    )


def cost_center_not_found(cost_center_id: int) -> str:
    """Return message for missing cost center."""
    return f"Cost center {cost_center_id} not found"


def duplicate_cost_center_code(code: str) -> str:
    """Return message for duplicate cost center code."""
    return f"Cost center with code '{code}' already exists"


def cost_center_deactivate_blocked(
    code: str, transaction_count: int, active_children: int
) -> str:
    """Return message when a cost center is still in use."""
    parts = []
    if transaction_count > 0:
        parts.append(
            f"{transaction_count} assigned transaction{'s' if transaction_count != 1 else ''}"
        )
    if active_children > 0:
        parts.append(
            f"{active_children} active child cost center{'s' if active_children != 1 else ''}"
        )
    return f"Cannot deactivate cost center '{code}': it has {' and '.join(parts)}"
