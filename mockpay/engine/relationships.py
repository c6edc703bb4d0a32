"""Links between charges, customers and payment sources.

Resolution only reads the store; `materialize_source` and `attach_card` are the
write steps, called after every check of a request has passed. Callers hold
the `card`, `customer` and `token` collection locks across both phases.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mockpay.common.errors import InvalidRequest, no_such
from mockpay.engine.models import Card, Charge, Customer, Token
from mockpay.engine.validation import CardDetails, ChargeRequest, validate_card_params


@dataclass
class ResolvedSource:
    """Where a charge's money comes from, before anything is written."""

    card: Card | None = None
    details: CardDetails | None = None
    token: Token | None = None
    customer: Customer | None = None

    @property
    def reference(self) -> str:
        if self.token is not None:
            return self.token.id
        if self.card is not None:
            return self.card.id
        return "<card details>"


def resolve_customer(ctx, customer_id: str, param: str = "customer") -> Customer:
    customer = ctx.store.get("customer", customer_id)
    if customer is None:
        raise no_such("customer", customer_id, param)
    return customer


def resolve_source_reference(ctx, reference: str | Mapping[str, Any], param: str) -> ResolvedSource:
    """Turn a token id, card id or raw card details into a `ResolvedSource`."""

    if isinstance(reference, Mapping):
        return ResolvedSource(details=validate_card_params(reference, ctx.card_defaults))

    if ctx.ids.matches("token", reference):
        token = ctx.store.get("token", reference)
        if token is None:
            raise no_such("token", reference, param)
        if token.used:
            raise InvalidRequest(f"You cannot use a token more than once: {reference}.", param=param)
        return ResolvedSource(card=token.card, token=token)

    if ctx.ids.matches("card", reference):
        card = ctx.store.get("card", reference)
        if card is None:
            raise no_such("source", reference, param)
        return ResolvedSource(card=card)

    raise InvalidRequest(f"Invalid token id: {reference}", param=param)


def resolve_charge_source(ctx, request: ChargeRequest) -> ResolvedSource:
    """Pick the card a charge uses, honoring the customer it is made for."""

    customer = resolve_customer(ctx, request.customer) if request.customer else None

    if request.source is None:
        # Customer-only charges use the most recently attached card.
        if not customer.source_ids:
            raise InvalidRequest("Cannot charge a customer that has no active card", param="card")
        return ResolvedSource(card=ctx.store.get("card", customer.source_ids[-1]), customer=customer)

    resolved = resolve_source_reference(ctx, request.source, request.source_param)
    if customer is not None:
        if resolved.card is None or resolved.card.customer != customer.id:
            raise InvalidRequest(
                f"Customer {customer.id} does not have a linked source with ID {resolved.reference}.",
                param=request.source_param,
                http_status=404,
            )
        resolved.customer = customer
    return resolved


def ensure_attachable(resolved: ResolvedSource, customer_id: str | None = None) -> None:
    """Reject cards that already belong to another customer."""

    card = resolved.card
    if card is not None and card.customer is not None and card.customer != customer_id:
        raise InvalidRequest(
            f"Source {card.id} is already attached to customer {card.customer}.",
            param="source",
        )


def create_card(ctx, details: CardDetails, customer_id: str | None = None) -> Card:
    card = Card(
        id=ctx.ids.next_id("card"),
        last4=details.last4,
        brand=details.brand,
        exp_month=details.exp_month,
        exp_year=details.exp_year,
        customer=customer_id,
    )
    ctx.store.insert("card", card)
    return card


def materialize_source(ctx, resolved: ResolvedSource) -> Card:
    """Consume the token or create the ad hoc card the resolution points at."""

    if resolved.token is not None:
        record = ctx.store.record("token", resolved.token.id)
        ctx.store.compare_and_set("token", record.id, record.version, {"used": True})
    if resolved.details is not None:
        resolved.card = create_card(ctx, resolved.details)
    return resolved.card


def attach_card(ctx, customer: Customer, card: Card) -> None:
    """Append `card` to `customer` and make it the default source."""

    card_record = ctx.store.record("card", card.id)
    ctx.store.compare_and_set("card", card.id, card_record.version, {"customer": customer.id})
    customer_record = ctx.store.record("customer", customer.id)
    changes = {"source_ids": [*customer.source_ids, card.id], "default_source": card.id}
    if customer_record is None:
        # Not inserted yet: the customer is still private to its creator.
        for field, value in changes.items():
            setattr(customer, field, value)
        return
    ctx.store.compare_and_set("customer", customer.id, customer_record.version, changes)


def charge_customer_id(charge: Charge) -> str | None:
    if isinstance(charge.customer, Customer):
        return charge.customer.id
    return charge.customer
