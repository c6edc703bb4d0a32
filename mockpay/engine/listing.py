"""List queries with limit/cursor pagination."""

from collections.abc import Sequence
from typing import Any

from mockpay.common.errors import no_such
from mockpay.engine.models import ListObject
from mockpay.engine.validation import validate_list_params


def paginate(
    records: Sequence[Any],
    *,
    url: str,
    limit: int,
    starting_after: str | None = None,
    resource_label: str = "object",
) -> ListObject:
    """Return the first `limit` records (creation order) after the cursor.

    `has_more` reports whether records remain beyond the returned page.
    """

    start = 0
    if starting_after is not None:
        ids = [record.id for record in records]
        if starting_after not in ids:
            raise no_such(resource_label, starting_after, "starting_after")
        start = ids.index(starting_after) + 1
    remaining = list(records[start:])
    return ListObject(url=url, data=remaining[:limit], has_more=len(remaining) > limit)


def list_resources(
    ctx,
    resource_type: str,
    *,
    url: str,
    limit: Any = None,
    starting_after: Any = None,
    predicate=None,
) -> ListObject:
    """Snapshot one collection, filter it and cut a page out of it."""

    parsed_limit, cursor = validate_list_params(limit, starting_after, ctx.settings.max_list_limit)
    records = ctx.store.snapshot(resource_type)
    if predicate is not None:
        records = [record for record in records if predicate(record)]
    return paginate(
        records,
        url=url,
        limit=parsed_limit or ctx.settings.default_list_limit,
        starting_after=cursor,
        resource_label=resource_type.replace("_", " "),
    )
