"""Resource models returned by the mock engine.

Stored instances are shared with callers, so a capture applied to the stored
charge is visible through every reference to it. Expanded responses are copies
that carry inlined records in place of reference ids.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, PrivateAttr


class MockResource(BaseModel):
    """Common envelope fields plus the service binding used by conveniences."""

    id: str
    object: str
    livemode: bool = False
    _service: Any = PrivateAttr(default=None)

    def bind(self, service: Any) -> "MockResource":
        self._service = service
        return self

    def _bound_service(self) -> Any:
        if self._service is None:
            raise RuntimeError(f"{self.object} {self.id} is not bound to a mock service")
        return self._service

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Card(MockResource):
    object: Literal["card"] = "card"
    last4: str
    brand: str
    exp_month: int
    exp_year: int
    customer: str | None = None


class Token(MockResource):
    object: Literal["token"] = "token"
    type: Literal["card"] = "card"
    card: Card
    used: bool = False


class BalanceTransaction(MockResource):
    object: Literal["balance_transaction"] = "balance_transaction"
    amount: int
    currency: str
    fee: int
    net: int
    source: str
    type: Literal["charge"] = "charge"
    status: str = "available"
    fee_details: list[dict[str, Any]] = Field(default_factory=list)


class ListObject(BaseModel):
    """Paginated list envelope."""

    object: Literal["list"] = "list"
    url: str
    data: list[Any]
    has_more: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "object": self.object,
            "url": self.url,
            "has_more": self.has_more,
            "data": [item.to_dict() if isinstance(item, MockResource) else item for item in self.data],
        }


class Customer(MockResource):
    object: Literal["customer"] = "customer"
    email: str | None = None
    description: str | None = None
    default_source: str | Card | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    source_ids: list[str] = Field(default_factory=list, exclude=True)

    @property
    def sources(self) -> ListObject:
        """Attached cards, oldest first."""

        service = self._bound_service()
        cards = [service.context.store.get("card", card_id) for card_id in self.source_ids]
        return ListObject(
            url=f"/v1/customers/{self.id}/sources",
            data=[card for card in cards if card is not None],
            has_more=False,
        )

    @property
    def charges(self) -> ListObject:
        """Charges made against this customer, computed on read."""

        return self._bound_service().list_charges(customer=self.id)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self._service is not None:
            data["sources"] = self.sources.to_dict()
        return data


class Charge(MockResource):
    object: Literal["charge"] = "charge"
    amount: int
    amount_captured: int
    amount_refunded: int = 0
    currency: str
    captured: bool = True
    paid: bool = True
    refunded: bool = False
    status: Literal["succeeded"] = "succeeded"
    description: str | None = None
    customer: str | Customer | None = None
    source: Card
    balance_transaction: str | BalanceTransaction
    metadata: dict[str, str] = Field(default_factory=dict)

    def capture(self, amount: int | None = None) -> "Charge":
        """Capture this charge and return the stored record.

        When called on a detached copy (an expanded response) the copy's
        lifecycle fields are refreshed from the result as well.
        """

        captured = self._bound_service().capture_charge(self.id, amount=amount)
        if captured is not self:
            for field in ("amount_captured", "amount_refunded", "captured"):
                setattr(self, field, getattr(captured, field))
        return captured
