"""Mock payment service facade.

Wires validation, relationship resolution, id allocation, balance transaction
generation and the capture state machine into the operations client code
calls. Validation failures propagate to the caller untouched; only successful
mutations are logged and counted.
"""

from collections.abc import Mapping
from typing import Any

from mockpay.common.errors import InvalidRequest, no_such
from mockpay.common.logging import logger, resource_context
from mockpay.common.metrics import (
    charge_captures_total,
    charges_created_total,
    customers_created_total,
    tokens_created_total,
)
from mockpay.engine import expansion, lifecycle
from mockpay.engine.balance import generate_balance_transaction
from mockpay.engine.context import MockContext
from mockpay.engine.listing import list_resources
from mockpay.engine.models import BalanceTransaction, Card, Charge, Customer, ListObject, Token
from mockpay.engine.relationships import (
    attach_card,
    charge_customer_id,
    create_card,
    ensure_attachable,
    materialize_source,
    resolve_charge_source,
    resolve_customer,
    resolve_source_reference,
)
from mockpay.engine.validation import (
    parse_expand,
    validate_card_params,
    validate_charge_params,
    validate_customer_params,
)

# Collections a charge creation may write to.
CHARGE_WRITE_SET = ("balance_transaction", "card", "charge", "customer", "token")


class MockPaymentService:
    """In-memory stand-in for the remote charge/customer/token API."""

    def __init__(self, context: MockContext | None = None) -> None:
        self.context = context or MockContext()

    @property
    def service_name(self) -> str:
        return self.context.settings.service_name

    def reset(self) -> None:
        """Forget every record and restart id counters."""

        self.context.reset()

    def _get(self, resource_type: str, resource_id: str, label: str, param: str):
        resource = self.context.store.get(resource_type, resource_id)
        if resource is None:
            raise no_such(label, resource_id, param)
        return resource

    # Tokens

    def generate_source_token(self, attrs: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        """Tokenize card details (defaults fill the gaps) and return the token id."""

        ctx = self.context
        if attrs is not None and not isinstance(attrs, Mapping):
            raise InvalidRequest("Invalid object", param="card")
        details = validate_card_params({**(attrs or {}), **kwargs}, ctx.card_defaults)
        with ctx.store.locked("card", "token"):
            card = create_card(ctx, details)
            token = Token(id=ctx.ids.next_id("token"), card=card)
            ctx.store.insert("token", token)
        tokens_created_total.labels(service=self.service_name).inc()
        logger.info("token_created token_id=%s card_id=%s last4=%s", token.id, card.id, card.last4)
        return token.id

    def retrieve_token(self, token_id: str) -> Token:
        return self._get("token", token_id, "token", "token")

    # Charges

    def create_charge(self, params: Mapping[str, Any]) -> Charge:
        """Validate, link, ledger and store one charge.

        Every check runs before the first id is allocated, so a rejected
        request leaves no charge, card or balance transaction behind.
        """

        ctx = self.context
        request = validate_charge_params(params)
        with ctx.store.locked(*CHARGE_WRITE_SET):
            resolved = resolve_charge_source(ctx, request)
            card = materialize_source(ctx, resolved)
            charge_id = ctx.ids.next_id("charge")
            txn = generate_balance_transaction(ctx, charge_id, request.amount, request.currency)
            charge = Charge(
                id=charge_id,
                amount=request.amount,
                currency=request.currency,
                description=request.description,
                customer=resolved.customer.id if resolved.customer else None,
                source=card,
                balance_transaction=txn.id,
                metadata=request.metadata,
                **lifecycle.initial_fields(request.amount, request.capture),
            )
            charge.bind(self)
            ctx.store.insert("charge", charge)

        charges_created_total.labels(service=self.service_name, captured=str(charge.captured).lower()).inc()
        with resource_context(charge_id=charge.id, customer_id=charge.customer):
            logger.info(
                "charge_created amount=%s currency=%s captured=%s balance_transaction=%s",
                charge.amount,
                charge.currency,
                charge.captured,
                txn.id,
            )
        return expansion.expand(ctx, charge, request.expand)

    def retrieve_charge(self, charge_id: str, expand: Any = None) -> Charge:
        charge = self._get("charge", charge_id, "charge", "charge")
        return expansion.expand(self.context, charge, parse_expand(expand))

    def list_charges(
        self,
        customer: str | None = None,
        limit: Any = None,
        starting_after: Any = None,
        expand: Any = None,
    ) -> ListObject:
        """List charges oldest first, optionally only those of one customer."""

        predicate = None
        if customer is not None:
            resolve_customer(self.context, customer)

            def predicate(charge: Charge) -> bool:
                return charge_customer_id(charge) == customer

        page = list_resources(
            self.context,
            "charge",
            url="/v1/charges",
            limit=limit,
            starting_after=starting_after,
            predicate=predicate,
        )
        return expansion.expand_list(self.context, page, parse_expand(expand))

    def capture_charge(self, charge_id: str, amount: Any = None) -> Charge:
        charge = lifecycle.capture(self.context, charge_id, amount)
        partial = charge.amount_refunded > 0
        charge_captures_total.labels(service=self.service_name, partial=str(partial).lower()).inc()
        with resource_context(charge_id=charge.id, customer_id=charge_customer_id(charge)):
            logger.info(
                "charge_captured amount_captured=%s amount_refunded=%s",
                charge.amount_captured,
                charge.amount_refunded,
            )
        return charge

    # Customers

    def create_customer(self, params: Mapping[str, Any] | None = None) -> Customer:
        ctx = self.context
        request = validate_customer_params(params or {})
        with ctx.store.locked("card", "customer", "token"):
            resolved = None
            if request.source is not None:
                resolved = resolve_source_reference(ctx, request.source, "source")
                ensure_attachable(resolved)
            customer = Customer(
                id=ctx.ids.next_id("customer"),
                email=request.email,
                description=request.description,
                metadata=request.metadata,
            )
            if resolved is not None:
                attach_card(ctx, customer, materialize_source(ctx, resolved))
            customer.bind(self)
            ctx.store.insert("customer", customer)

        customers_created_total.labels(service=self.service_name).inc()
        with resource_context(customer_id=customer.id):
            logger.info("customer_created sources=%s", len(customer.source_ids))
        return expansion.expand(ctx, customer, request.expand)

    def retrieve_customer(self, customer_id: str, expand: Any = None) -> Customer:
        customer = resolve_customer(self.context, customer_id)
        return expansion.expand(self.context, customer, parse_expand(expand))

    def list_customers(self, limit: Any = None, starting_after: Any = None) -> ListObject:
        return list_resources(
            self.context, "customer", url="/v1/customers", limit=limit, starting_after=starting_after
        )

    def create_customer_source(self, customer_id: str, source: Any) -> Card:
        """Attach another card to an existing customer; it becomes the default."""

        ctx = self.context
        if source in (None, ""):
            raise InvalidRequest("Missing required param: source.", param="source")
        with ctx.store.locked("card", "customer", "token"):
            customer = resolve_customer(ctx, customer_id)
            if not isinstance(source, (str, Mapping)):
                raise InvalidRequest(f"Invalid token id: {source}", param="source")
            resolved = resolve_source_reference(ctx, source, "source")
            ensure_attachable(resolved, customer.id)
            if resolved.card is not None and resolved.card.id in customer.source_ids:
                return resolved.card
            card = materialize_source(ctx, resolved)
            attach_card(ctx, customer, card)
        with resource_context(customer_id=customer.id):
            logger.info("customer_source_attached card_id=%s", card.id)
        return card

    # Ledger

    def retrieve_balance_transaction(self, txn_id: str) -> BalanceTransaction:
        return self._get("balance_transaction", txn_id, "balance transaction", "balance_transaction")
