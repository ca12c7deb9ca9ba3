# catalog/url_codec.py
"""
Mapping between a FilterState and its query-string form.

Everything read from a URL goes through the sanitizers here, which never
raise: malformed values fall back to their defaults.
"""
import math
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlencode

from .queries import MAX_PAGE, SORT_OPTIONS, ProductFilters, is_valid_attribute_key, max_page_size
from .stores import FilterState

SUBCATEGORY_PARAM = "subcategoria"

RESERVED_PARAMS = (
    SUBCATEGORY_PARAM,
    "page",
    "sort",
    "minPrice",
    "maxPrice",
    "inStock",
)

# only meaningful on the listing endpoint, never taken as attribute filters
API_RESERVED_PARAMS = RESERVED_PARAMS + ("categorySlug", "pageSize")


# ---------------- SANITIZERS ----------------

def _parse_int(raw):
    """Plain ASCII digits only: no sign, spaces, underscores or fractions."""
    if not isinstance(raw, str) or not (raw.isascii() and raw.isdecimal()):
        return None
    try:
        return int(raw, 10)
    except ValueError:
        # more digits than int() will convert
        return None


def parse_page(raw):
    page = _parse_int(raw)
    if page is None or page < 1:
        return 1
    return min(page, MAX_PAGE)


def parse_page_size(raw):
    """Positive integer or None; clamping is left to normalize_pagination."""
    page_size = _parse_int(raw)
    if page_size is None or page_size < 1:
        return None
    return page_size


def parse_sort(raw):
    return raw if raw in SORT_OPTIONS else None


def parse_subcategory(raw, subcategory_slugs):
    if raw and raw in subcategory_slugs:
        return raw
    return None


def parse_price(raw):
    if not raw:
        return None
    try:
        price = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(price) or math.isinf(price) or price < 0:
        return None
    return price


def parse_in_stock(raw):
    return raw == "true"


def format_number(value):
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def query_pairs(query):
    """
    Accept a query string, a QueryDict-like object or an iterable of
    (key, value) pairs and return the pairs in encounter order.
    """
    if query is None:
        return []
    if isinstance(query, str):
        return parse_qsl(query.lstrip("?"), keep_blank_values=True)
    if hasattr(query, "lists"):
        return [(key, value) for key, values in query.lists() for value in values]
    return list(query)


def first_value(pairs, key):
    for pair_key, value in pairs:
        if pair_key == key:
            return value
    return None


def list_keys_for(filter_config):
    """Keys of checkbox filters, which always hold a list of values."""
    return {f.get("key") for f in filter_config or [] if f.get("type") == "checkbox"}


def collect_attribute_filters(pairs, reserved=API_RESERVED_PARAMS, list_keys=()):
    """
    Non-reserved keys become attribute filters; repeated keys become lists.
    Keys in ``list_keys`` are lists even with a single value.
    """
    filters = {}
    for key, value in pairs:
        if key in reserved or value == "" or not is_valid_attribute_key(key):
            continue
        existing = filters.get(key)
        if existing is None:
            filters[key] = [value] if key in list_keys else value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            filters[key] = [existing, value]
    return filters


# ---------------- DECODE ----------------

def parse_query(query, category_slug, subcategory_slugs=(), page_size=None, filter_configs=None):
    """
    Build a sanitized FilterState from a browser URL query.

    ``filter_configs`` maps subcategory slug to its filter config; checkbox
    filters of the selected subcategory are read back as lists.
    """
    pairs = query_pairs(query)
    subcategory_slug = parse_subcategory(first_value(pairs, SUBCATEGORY_PARAM), subcategory_slugs)
    list_keys = list_keys_for((filter_configs or {}).get(subcategory_slug)) if subcategory_slug else set()
    values = {
        "category_slug": category_slug,
        "subcategory_slug": subcategory_slug,
        "page": parse_page(first_value(pairs, "page")),
        "sort": parse_sort(first_value(pairs, "sort")),
        "attribute_filters": collect_attribute_filters(pairs, list_keys=list_keys),
        "min_price": parse_price(first_value(pairs, "minPrice")),
        "max_price": parse_price(first_value(pairs, "maxPrice")),
        "in_stock": parse_in_stock(first_value(pairs, "inStock")),
    }
    if page_size is not None:
        values["page_size"] = page_size
    return FilterState(**values)


@dataclass
class ListingParams:
    category_slug: Optional[str]
    subcategory_slug: Optional[str]
    page: int
    page_size: Optional[int]
    filters: ProductFilters

    def applied_filters(self):
        return {
            "subcategorySlug": self.subcategory_slug,
            "page": self.page,
            "pageSize": self.page_size,
            "sort": self.filters.sort,
            "attributeFilters": self.filters.attribute_filters,
            "minPrice": self.filters.min_price,
            "maxPrice": self.filters.max_price,
            "inStock": self.filters.in_stock,
        }


def parse_listing_params(query):
    """
    Read the listing endpoint's parameters. The subcategory slug is kept raw
    here; it is checked against the database by the caller.
    """
    pairs = query_pairs(query)
    return ListingParams(
        category_slug=first_value(pairs, "categorySlug") or None,
        subcategory_slug=first_value(pairs, SUBCATEGORY_PARAM) or None,
        page=parse_page(first_value(pairs, "page")),
        page_size=parse_page_size(first_value(pairs, "pageSize")),
        filters=ProductFilters(
            attribute_filters=collect_attribute_filters(pairs),
            min_price=parse_price(first_value(pairs, "minPrice")),
            max_price=parse_price(first_value(pairs, "maxPrice")),
            in_stock=parse_in_stock(first_value(pairs, "inStock")),
            sort=parse_sort(first_value(pairs, "sort")),
        ),
    )


# ---------------- ENCODE ----------------

def _filter_pairs(state):
    pairs = []
    if state.sort:
        pairs.append(("sort", state.sort))
    for key in sorted(state.attribute_filters):
        value = state.attribute_filters[key]
        if isinstance(value, (list, tuple)):
            pairs.extend((key, item) for item in value)
        else:
            pairs.append((key, value))
    if state.min_price is not None:
        pairs.append(("minPrice", format_number(state.min_price)))
    if state.max_price is not None:
        pairs.append(("maxPrice", format_number(state.max_price)))
    if state.in_stock:
        pairs.append(("inStock", "true"))
    return pairs


def state_to_pairs(state: FilterState):
    """Canonical pairs: defaults (page 1, no sort, inStock false) are left out."""
    pairs = []
    if state.subcategory_slug:
        pairs.append((SUBCATEGORY_PARAM, state.subcategory_slug))
    if state.page > 1:
        pairs.append(("page", str(state.page)))
    return pairs + _filter_pairs(state)


def serialize(state: FilterState):
    return urlencode(state_to_pairs(state))


def build_url(path, state: FilterState):
    query = serialize(state)
    return f"{path}?{query}" if query else path


def to_api_params(state: FilterState):
    """Parameters for the listing endpoint; page and pageSize are always sent."""
    pairs = [("categorySlug", state.category_slug)]
    if state.subcategory_slug:
        pairs.append((SUBCATEGORY_PARAM, state.subcategory_slug))
    pairs.append(("page", str(state.page)))
    pairs.append(("pageSize", str(state.page_size)))
    return pairs + _filter_pairs(state)


def cache_key(state: FilterState):
    """Canonical string identifying the (scope, page, filters) of a request."""
    return urlencode(to_api_params(state))


# ---------------- JSON SEED ----------------

def state_to_json(state: FilterState):
    return {
        "categorySlug": state.category_slug,
        "subcategorySlug": state.subcategory_slug,
        "page": state.page,
        "pageSize": state.page_size,
        "sort": state.sort,
        "attributeFilters": state.attribute_filters,
        "minPrice": state.min_price,
        "maxPrice": state.max_price,
        "inStock": state.in_stock,
    }


def state_from_json(data, category_slug, subcategory_slugs=()):
    """
    Rebuild a FilterState from ``state_to_json`` output, re-running the same
    sanitization as a URL read.
    """
    pairs = []
    list_keys = set()
    for key, value in (data.get("attributeFilters") or {}).items():
        if isinstance(value, (list, tuple)):
            # JSON keeps the list shape, single-item lists included
            list_keys.add(key)
            pairs.extend((key, str(item)) for item in value if item is not None)
        elif value is not None:
            pairs.append((key, str(value)))

    def text(value):
        return None if value is None else str(value)

    values = {
        "category_slug": category_slug,
        "subcategory_slug": parse_subcategory(data.get("subcategorySlug"), subcategory_slugs),
        "page": parse_page(text(data.get("page"))),
        "sort": parse_sort(data.get("sort")),
        "attribute_filters": collect_attribute_filters(pairs, list_keys=list_keys),
        "min_price": parse_price(text(data.get("minPrice"))),
        "max_price": parse_price(text(data.get("maxPrice"))),
        "in_stock": data.get("inStock") is True,
    }
    page_size = parse_page_size(text(data.get("pageSize")))
    if page_size is not None:
        values["page_size"] = min(page_size, max_page_size())
    return FilterState(**values)
