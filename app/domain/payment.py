"""
Payment attempt state machine.

  pending   -> completed | failed
  completed -> refunded

failed and refunded are terminal; retrying a payment means a new attempt
with a new reference.
"""
import secrets
import time

from app.domain.errors import InvalidInputError

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
REFUNDED = "refunded"

PAYMENT_STATUSES = {PENDING, COMPLETED, FAILED, REFUNDED}

_TRANSITIONS = {
    PENDING: {COMPLETED, FAILED},
    COMPLETED: {REFUNDED},
}

# Gateway notification outcome -> attempt status
_OUTCOMES = {"success": COMPLETED, "failed": FAILED}

REFERENCE_PREFIX = "MAMACARE"


def can_transition(current: str, target: str) -> bool:
    return target in _TRANSITIONS.get(current, set())


def is_settled(status: str) -> bool:
    """True once the gateway result has been applied (no longer pending)."""
    return status != PENDING


def status_for_outcome(outcome: str) -> str:
    try:
        return _OUTCOMES[outcome]
    except KeyError:
        raise InvalidInputError(f"Unknown gateway outcome: {outcome}") from None


def generate_reference() -> str:
    """Globally unique payment reference: prefix + ms timestamp + random token."""
    return f"{REFERENCE_PREFIX}_{int(time.time() * 1000)}_{secrets.token_hex(6)}"
