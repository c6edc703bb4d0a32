"""Authorize/capture state machine for charges."""

from typing import Any

from mockpay.common.errors import InvalidRequest, no_such
from mockpay.common.state_machine import ChargeState, state_for, validate_transition
from mockpay.engine.models import Charge
from mockpay.engine.validation import validate_capture_amount


def initial_fields(amount: int, capture: bool) -> dict[str, Any]:
    """Lifecycle fields of a freshly created charge."""

    return {
        "captured": capture,
        "amount_captured": amount if capture else 0,
        "amount_refunded": 0,
    }


def capture(ctx, charge_id: str, amount: Any = None) -> Charge:
    """Move an uncaptured charge to captured, optionally for less than authorized.

    Read, check and write happen under the charge collection lock and the write
    is a compare-and-set on the record version, so of two concurrent captures
    exactly one applies and the other reports the charge as already captured.
    """

    with ctx.store.locked("charge"):
        record = ctx.store.record("charge", charge_id)
        if record is None:
            raise no_such("charge", charge_id, "charge")
        charge = record.resource
        try:
            validate_transition(state_for(charge.captured), ChargeState.CAPTURED)
        except ValueError as exc:
            raise InvalidRequest(f"Charge {charge_id} has already been captured.", param="charge") from exc

        capture_amount = validate_capture_amount(amount, charge.amount)
        # Refund bookkeeping lands before the flag flips.
        ctx.store.compare_and_set(
            "charge",
            charge_id,
            record.version,
            {
                "amount_captured": capture_amount,
                "amount_refunded": charge.amount - capture_amount,
                "captured": True,
            },
        )
        return charge
