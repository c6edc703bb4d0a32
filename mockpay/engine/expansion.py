"""Inline referenced records in place of their ids on request."""

from collections.abc import Iterable

from pydantic import BaseModel

from mockpay.engine.models import ListObject, MockResource

# object -> field -> collection holding the referenced record
EXPANDABLE_FIELDS: dict[str, dict[str, str]] = {
    "charge": {"balance_transaction": "balance_transaction", "customer": "customer"},
    "customer": {"default_source": "card"},
}


def expand(ctx, resource: MockResource, fields: Iterable[str]) -> MockResource:
    """Return a copy of `resource` with the requested fields inlined.

    Dotted paths expand nested records. Unknown or unresolvable names are
    ignored and already-inlined fields are left as they are.
    """

    expandable = EXPANDABLE_FIELDS.get(resource.object, {})
    updates = {}
    for path in fields:
        head, _, rest = path.partition(".")
        collection = expandable.get(head)
        if collection is None:
            continue
        current = getattr(resource, head)
        value = updates.get(head, current)
        if isinstance(value, str):
            value = ctx.store.get(collection, value)
            if value is None:
                continue
        if rest and isinstance(value, MockResource):
            value = expand(ctx, value, [rest])
        if isinstance(value, BaseModel) and value is not current:
            updates[head] = value
    if not updates:
        return resource
    return resource.model_copy(update=updates)


def expand_list(ctx, page: ListObject, fields: Iterable[str]) -> ListObject:
    """Apply `data.<field>` expansions to every item of a page."""

    item_fields = [path.partition(".")[2] for path in fields if path.startswith("data.")]
    if not item_fields:
        return page
    return page.model_copy(update={"data": [expand(ctx, item, item_fields) for item in page.data]})
