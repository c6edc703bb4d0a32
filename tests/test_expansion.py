"""Expansion of reference fields into inlined records."""

from mockpay.engine.expansion import expand


def test_unknown_expansions_are_ignored(service, card_token):
    charge = service.create_charge(
        {"amount": 10, "currency": "usd", "card": card_token(), "expand": ["refunds", "balance_transaction"]}
    )

    assert charge.balance_transaction.fee == 20


def test_expansion_is_idempotent(service, context, card_token):
    charge = service.create_charge({"amount": 10, "currency": "usd", "card": card_token()})

    once = expand(context, charge, ["balance_transaction"])
    twice = expand(context, once, ["balance_transaction"])
    assert twice is once


def test_no_expansion_returns_stored_record(service, context, card_token):
    charge = service.create_charge({"amount": 10, "currency": "usd", "card": card_token()})

    assert expand(context, charge, []) is context.store.get("charge", charge.id)


def test_nested_expansion(service, card_token):
    customer = service.create_customer({"source": card_token()})
    charge = service.create_charge({"amount": 10, "currency": "usd", "customer": customer.id})

    expanded = service.retrieve_charge(charge.id, expand=["customer.default_source"])
    assert expanded.customer.id == customer.id
    assert expanded.customer.default_source.last4 == "4242"
    assert service.retrieve_customer(customer.id).default_source == customer.default_source


def test_expand_accepts_single_string(service, card_token):
    charge = service.create_charge({"amount": 10, "currency": "usd", "card": card_token()})

    expanded = service.retrieve_charge(charge.id, expand="balance_transaction")
    assert expanded.balance_transaction.id == charge.balance_transaction
