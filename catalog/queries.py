# catalog/queries.py
"""
Product query composition.

Filters are first turned into a small list of predicates (plain values that
can be inspected and tested on their own), then compiled once into a Django
``Q`` object. Sorting and offset pagination are applied on top.
"""
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from django.conf import settings
from django.db import connections
from django.db.models import F, Q

SORT_OPTIONS = ("price_asc", "price_desc", "name_asc", "name_desc", "newest")

DEFAULT_PAGE_SIZE = 2
MAX_PAGE_SIZE = 50
# keeps (page - 1) * page_size well inside a 64-bit OFFSET
MAX_PAGE = 1_000_000

ATTRIBUTE_KEY_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")

AttributeValue = Union[str, List[str]]


def is_valid_attribute_key(key):
    return bool(ATTRIBUTE_KEY_RE.match(key)) and "__" not in key


def default_page_size():
    return getattr(settings, "CATALOG_PAGE_SIZE", DEFAULT_PAGE_SIZE)


def max_page_size():
    return getattr(settings, "CATALOG_MAX_PAGE_SIZE", MAX_PAGE_SIZE)


@dataclass
class ProductFilters:
    attribute_filters: Dict[str, AttributeValue] = field(default_factory=dict)
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: bool = False
    sort: Optional[str] = None


@dataclass(frozen=True)
class Pagination:
    page: int
    page_size: int

    @property
    def offset(self):
        return (self.page - 1) * self.page_size


@dataclass
class PaginatedProducts:
    items: List[Any]
    page: int
    page_size: int
    total: Optional[int]
    total_pages: Optional[int]

    @property
    def failed(self):
        return self.total is None

    def to_dict(self):
        return {
            "items": self.items,
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
        }


# ---------------- PREDICATES ----------------

@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class Range:
    field: str
    gte: Optional[float] = None
    lte: Optional[float] = None
    gt: Optional[float] = None


@dataclass(frozen=True)
class AttributeEquals:
    """Typed equality on attributes[key], used for JSON booleans."""
    key: str
    value: Any


@dataclass(frozen=True)
class AttributeContains:
    """attributes contains {key: value}, exact string match."""
    key: str
    value: str


@dataclass(frozen=True)
class AttributeAnyOf:
    key: str
    values: Tuple[str, ...]


Predicate = Union[Equals, Range, AttributeEquals, AttributeContains, AttributeAnyOf]


def normalize_pagination(page=None, page_size=None):
    """
    Missing or zero values fall back to page 1 / the configured page size,
    then page is clamped to [1, MAX_PAGE] and page_size to [1, max].
    """
    page = page or 1
    page_size = page_size or default_page_size()

    if page < 1:
        page = 1
    if page > MAX_PAGE:
        page = MAX_PAGE
    if page_size < 1:
        page_size = default_page_size()
    if page_size > max_page_size():
        page_size = max_page_size()

    return Pagination(page=page, page_size=page_size)


def total_pages_for(total, page_size):
    if total is None:
        return None
    return math.ceil(total / page_size) if total > 0 else 0


def _attribute_predicate(key, value):
    if not is_valid_attribute_key(key):
        raise ValueError(f"Invalid attribute key: {key!r}")

    if isinstance(value, (list, tuple)):
        values = tuple(v for v in value if v != "")
        if not values:
            return None
        return AttributeAnyOf(key, values)

    if not value:
        return None
    if value in ("true", "false"):
        return AttributeEquals(key, value == "true")
    return AttributeContains(key, value)


def build_predicates(scope: Equals, filters: ProductFilters) -> List[Predicate]:
    """Scope first, then price, stock and one predicate per attribute filter."""
    predicates: List[Predicate] = [scope]

    if filters.min_price is not None or filters.max_price is not None:
        predicates.append(Range("price", gte=filters.min_price, lte=filters.max_price))

    if filters.in_stock:
        predicates.append(Range("stock", gt=0))

    for key, value in (filters.attribute_filters or {}).items():
        predicate = _attribute_predicate(key, value)
        if predicate is not None:
            predicates.append(predicate)

    return predicates


def compile_predicate(predicate, supports_contains=False):
    if isinstance(predicate, Equals):
        return Q(**{predicate.field: predicate.value})

    if isinstance(predicate, Range):
        q = Q()
        for op in ("gte", "lte", "gt"):
            bound = getattr(predicate, op)
            if bound is not None:
                q &= Q(**{f"{predicate.field}__{op}": bound})
        return q

    if isinstance(predicate, AttributeEquals):
        return Q(**{f"attributes__{predicate.key}": predicate.value})

    if isinstance(predicate, AttributeContains):
        if supports_contains:
            return Q(attributes__contains={predicate.key: predicate.value})
        # same result for a top-level string value on backends without @>
        return Q(**{f"attributes__{predicate.key}": predicate.value})

    if isinstance(predicate, AttributeAnyOf):
        q = Q()
        for value in predicate.values:
            q |= Q(**{f"attributes__{predicate.key}": value})
        return q

    raise TypeError(f"Unknown predicate: {predicate!r}")


def compile_predicates(predicates, supports_contains=False):
    q = Q()
    for predicate in predicates:
        q &= compile_predicate(predicate, supports_contains)
    return q


def order_by_for(sort):
    """Every ordering ends on id so that ties keep stable page boundaries."""
    if sort == "price_asc":
        return [F("price").asc(nulls_last=True), "id"]
    if sort == "price_desc":
        return [F("price").desc(nulls_last=True), "id"]
    if sort == "name_asc":
        return ["name", "id"]
    if sort == "name_desc":
        return ["-name", "id"]
    # "newest" and default
    return ["-created_at", "-id"]


def compose(queryset, scope, filters, pagination):
    """
    Return (page_queryset, count_queryset) for the given scope and filters.

    The count queryset carries the same predicate as the page, without
    ordering or slicing.
    """
    supports_contains = connections[queryset.db].features.supports_json_field_contains
    predicate = compile_predicates(build_predicates(scope, filters), supports_contains)

    filtered = queryset.filter(predicate)
    ordered = filtered.order_by(*order_by_for(filters.sort))
    offset = pagination.offset
    return ordered[offset:offset + pagination.page_size], filtered
