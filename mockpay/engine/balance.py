"""Balance transaction generation and the fee policies it uses."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from mockpay.engine.models import BalanceTransaction


class FeePolicy(Protocol):
    def __call__(self, amount: int, currency: str) -> int: ...


@dataclass(frozen=True)
class FlatFeePolicy:
    """Same fee for every charge, as the sandbox reports it."""

    fee_cents: int = 20

    def __call__(self, amount: int, currency: str) -> int:
        return self.fee_cents


@dataclass(frozen=True)
class PercentageFeePolicy:
    """Percentage of the amount plus a fixed fee, rounded half-up to minor units."""

    percent: Decimal = Decimal("2.9")
    fixed_cents: int = 30

    def __call__(self, amount: int, currency: str) -> int:
        variable = (Decimal(amount) * Decimal(self.percent) / Decimal(100)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return int(variable) + self.fixed_cents


def generate_balance_transaction(ctx, charge_id: str, amount: int, currency: str) -> BalanceTransaction:
    """Create and store the ledger record for one charge.

    Caller must hold the `balance_transaction` collection lock together with
    the charge collection lock so the pair is inserted atomically.
    """

    fee = max(int(ctx.fee_policy(amount, currency)), 0)
    txn = BalanceTransaction(
        id=ctx.ids.next_id("balance_transaction"),
        amount=amount,
        currency=currency,
        fee=fee,
        net=amount - fee,
        source=charge_id,
        fee_details=[{"amount": fee, "currency": currency, "type": "stripe_fee"}],
    )
    ctx.store.insert("balance_transaction", txn)
    return txn
