"""Request parameter decoding for the HTTP binding.

Client libraries send form-encoded bodies with bracket notation
(`expand[]=balance_transaction`, `card[number]=4242...`); JSON bodies are
accepted as-is.
"""

import json
import re
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request

from mockpay.common.errors import InvalidRequest


_KEY_RE = re.compile(r"([^\[\]]+)|\[([^\[\]]*)\]")


def _split_key(key: str) -> list[str]:
    return [name if name else index for name, index in _KEY_RE.findall(key)]


def unflatten(pairs: list[tuple[str, str]]) -> dict[str, Any]:
    """Fold bracketed form keys into nested dicts and lists."""

    params: dict[str, Any] = {}
    for key, value in pairs:
        parts = _split_key(key)
        if not parts:
            continue
        target = params
        for position, part in enumerate(parts[:-1]):
            following = parts[position + 1]
            default: Any = [] if following == "" or following.isdigit() else {}
            if isinstance(target, list):
                target.append(default)
                target = target[-1]
            else:
                target = target.setdefault(part, default)
                if not isinstance(target, type(default)):
                    raise InvalidRequest(f"Invalid array or object: {key}", param=parts[0])
        last = parts[-1]
        if isinstance(target, list):
            target.append(value)
        else:
            target[last] = value
    return params


async def request_params(request: Request) -> dict[str, Any]:
    """Merge query-string and body parameters of one request."""

    params = unflatten(list(request.query_params.multi_items()))
    body = await request.body()
    if not body:
        return params
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            payload = await request.json()
        except json.JSONDecodeError as exc:
            raise InvalidRequest("Invalid JSON body.") from exc
        if not isinstance(payload, dict):
            raise InvalidRequest("Request body must be an object.")
        params.update(payload)
        return params
    params.update(unflatten(parse_qsl(body.decode("utf-8"), keep_blank_values=True)))
    return params
