"""Explicitly constructed engine state: store, allocator, settings, fee policy."""

from mockpay.common.config import MockSettings, settings as default_settings
from mockpay.engine.balance import FeePolicy, FlatFeePolicy
from mockpay.engine.ids import IdAllocator
from mockpay.engine.store import ObjectStore


class MockContext:
    """Everything one mock service instance shares between operations.

    Tests typically build one per case or call `reset()` between cases.
    """

    def __init__(self, config: MockSettings | None = None, fee_policy: FeePolicy | None = None) -> None:
        self.settings = config or default_settings
        self.ids = IdAllocator(self.settings.id_prefix)
        self.store = ObjectStore()
        self.fee_policy = fee_policy or FlatFeePolicy(self.settings.flat_fee_cents)

    @property
    def card_defaults(self) -> dict:
        return {
            "number": self.settings.default_card_number,
            "exp_month": self.settings.default_card_exp_month,
            "exp_year": self.settings.default_card_exp_year,
        }

    def reset(self) -> None:
        self.store.reset()
        self.ids.reset()
