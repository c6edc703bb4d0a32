"""Parameter validation for creation, capture and list requests.

Rules run in a fixed order and the first violation is the one reported, so
callers that match on the message see the same error the real service gives.
Nothing here touches the store.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from mockpay.common.errors import InvalidRequest, missing_param


_INTEGER_RE = re.compile(r"-?\d+")
_CURRENCY_RE = re.compile(r"[A-Za-z]{3}")
_CARD_NUMBER_RE = re.compile(r"\d{12,19}")

SOURCE_PARAMS = ("source", "card")


@dataclass
class ChargeRequest:
    """Validated charge-creation parameters."""

    amount: int
    currency: str
    source: str | Mapping[str, Any] | None
    source_param: str
    customer: str | None
    description: str | None
    capture: bool
    metadata: dict[str, str] = field(default_factory=dict)
    expand: list[str] = field(default_factory=list)


@dataclass
class CustomerRequest:
    email: str | None
    description: str | None
    source: str | Mapping[str, Any] | None
    metadata: dict[str, str] = field(default_factory=dict)
    expand: list[str] = field(default_factory=list)


@dataclass
class CardDetails:
    number: str
    exp_month: int
    exp_year: int

    @property
    def last4(self) -> str:
        return self.number[-4:]

    @property
    def brand(self) -> str:
        if self.number.startswith("4"):
            return "Visa"
        if self.number[:2] in {"51", "52", "53", "54", "55"} or self.number[:2] == "22":
            return "MasterCard"
        if self.number[:2] in {"34", "37"}:
            return "American Express"
        if self.number.startswith("6011") or self.number.startswith("65"):
            return "Discover"
        return "Unknown"


def _present(params: Mapping[str, Any], name: str) -> bool:
    return params.get(name) not in (None, "")


def parse_integer(value: Any, param: str) -> int:
    """Accept ints and digit strings; floats, booleans and the rest are rejected."""

    if isinstance(value, bool):
        raise InvalidRequest(f"Invalid integer: {value}", param=param)
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INTEGER_RE.fullmatch(value.strip()):
        return int(value.strip())
    raise InvalidRequest(f"Invalid integer: {value}", param=param)


def parse_positive_integer(value: Any, param: str) -> int:
    number = parse_integer(value, param)
    if number <= 0:
        raise InvalidRequest(f"Invalid positive integer: {value}", param=param)
    return number


def parse_boolean(value: Any, param: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    raise InvalidRequest(f"Invalid boolean: {value}", param=param)


def parse_string(value: Any, param: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidRequest(f"Invalid string: {value}", param=param)
    return value


def parse_metadata(value: Any) -> dict[str, str]:
    if value is None or value == "":
        return {}
    if not isinstance(value, Mapping):
        raise InvalidRequest("Invalid object", param="metadata")
    return {str(key): str(item) for key, item in value.items()}


def parse_expand(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, set, frozenset)) and all(isinstance(item, str) for item in value):
        return list(value)
    raise InvalidRequest("Invalid array", param="expand")


def parse_currency(params: Mapping[str, Any]) -> str:
    if not _present(params, "currency"):
        raise missing_param("currency")
    currency = params["currency"]
    if not isinstance(currency, str) or not _CURRENCY_RE.fullmatch(currency):
        raise InvalidRequest(f"Invalid currency: {currency}", param="currency")
    return currency.lower()


def _source_reference(value: Any, param: str) -> str | Mapping[str, Any]:
    if isinstance(value, (str, Mapping)):
        return value
    raise InvalidRequest(f"Invalid token id: {value}", param=param)


def validate_charge_params(params: Mapping[str, Any]) -> ChargeRequest:
    if not _present(params, "amount"):
        raise missing_param("amount")
    amount = parse_positive_integer(params["amount"], "amount")
    currency = parse_currency(params)

    capture = True
    if params.get("capture") is not None:
        capture = parse_boolean(params["capture"], "capture")
    description = parse_string(params.get("description"), "description")
    metadata = parse_metadata(params.get("metadata"))
    expand = parse_expand(params.get("expand"))

    source = None
    source_param = "source"
    for name in SOURCE_PARAMS:
        if _present(params, name):
            source = _source_reference(params[name], name)
            source_param = name
            break
    customer = parse_string(params.get("customer") or None, "customer")
    if source is None and customer is None:
        raise InvalidRequest("Must provide source or customer.", param="source")

    return ChargeRequest(
        amount=amount,
        currency=currency,
        source=source,
        source_param=source_param,
        customer=customer,
        description=description,
        capture=capture,
        metadata=metadata,
        expand=expand,
    )


def validate_customer_params(params: Mapping[str, Any]) -> CustomerRequest:
    source = None
    if _present(params, "source"):
        source = _source_reference(params["source"], "source")
    return CustomerRequest(
        email=parse_string(params.get("email"), "email"),
        description=parse_string(params.get("description"), "description"),
        source=source,
        metadata=parse_metadata(params.get("metadata")),
        expand=parse_expand(params.get("expand")),
    )


def validate_capture_amount(value: Any, authorized_amount: int) -> int:
    """Return the amount to capture; defaults to the full authorization."""

    if value is None:
        return authorized_amount
    amount = parse_positive_integer(value, "amount")
    if amount > authorized_amount:
        raise InvalidRequest(
            f"Amount to capture ({amount}) is greater than the authorized amount ({authorized_amount}).",
            param="amount",
        )
    return amount


def _luhn_valid(number: str) -> bool:
    total = 0
    for index, digit in enumerate(reversed(number)):
        value = int(digit)
        if index % 2 == 1:
            value *= 2
            if value > 9:
                value -= 9
        total += value
    return total % 10 == 0


def validate_card_params(params: Mapping[str, Any], defaults: Mapping[str, Any]) -> CardDetails:
    """Validate raw card details, filling gaps from `defaults`."""

    def given(key: str) -> Any:
        value = params.get(key)
        return defaults[key] if value is None else value

    number = str(given("number")).replace(" ", "")
    if not _CARD_NUMBER_RE.fullmatch(number) or not _luhn_valid(number):
        raise InvalidRequest("Your card number is incorrect.", param="number")
    exp_month = parse_integer(given("exp_month"), "exp_month")
    if not 1 <= exp_month <= 12:
        raise InvalidRequest("Your card's expiration month is invalid.", param="exp_month")
    exp_year = parse_integer(given("exp_year"), "exp_year")
    if exp_year <= 0:
        raise InvalidRequest("Your card's expiration year is invalid.", param="exp_year")
    return CardDetails(number=number, exp_month=exp_month, exp_year=exp_year)


def validate_list_params(limit: Any, starting_after: Any, max_limit: int) -> tuple[int | None, str | None]:
    parsed_limit = None
    if limit is not None:
        parsed_limit = parse_integer(limit, "limit")
        if not 1 <= parsed_limit <= max_limit:
            raise InvalidRequest(f"Invalid limit: must be between 1 and {max_limit}", param="limit")
    return parsed_limit, parse_string(starting_after or None, "starting_after")
