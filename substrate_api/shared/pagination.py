import math
from typing import Any, Generic, List, Mapping, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .exceptions import RequestValidationError

T = TypeVar("T")


class PaginationMeta(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Page(BaseModel, Generic[T]):
    """A page of results plus the metadata of the full collection."""

    data: List[T] = Field(default_factory=list)
    meta: PaginationMeta

    model_config = ConfigDict(arbitrary_types_allowed=True)


def _positive_int(params: Mapping[str, Any], key: str) -> Optional[int]:
    raw = params.get(key)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise RequestValidationError(f"{key} must be an integer")
    if value < 1:
        raise RequestValidationError(f"{key} must be at least 1")
    return value


def paginate(
    items: Sequence[T], params: Mapping[str, Any], default_page_size: int
) -> Page[T]:
    """
    Wrap a collection in the list envelope.

    Without ``perPage`` (or ``limit``) the full collection is returned as a
    single page sized to the collection, so ``meta.total == len(data)``.
    With it, the requested window is returned and ``total`` still counts the
    full collection.

    Args:
        items: Full filtered collection
        params: Request parameters (page, perPage/limit)
        default_page_size: Page size reported for an empty unwindowed list

    Returns:
        Page with data and pagination metadata
    """
    total = len(items)
    per_page = _positive_int(params, "perPage") or _positive_int(params, "limit")
    page = _positive_int(params, "page") or 1

    if per_page is None:
        per_page = total or default_page_size
        data = list(items)
        page = 1
    else:
        start = (page - 1) * per_page
        data = list(items[start : start + per_page])

    return Page(
        data=data,
        meta=PaginationMeta(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=math.ceil(total / per_page),
        ),
    )
