# catalog/stores.py
"""
Client-side state containers for the category page.

A ``Store`` holds one immutable state value and notifies its subscribers on
every ``set``. ``FiltersStore`` mirrors the URL (it is not the source of
truth); ``ProductsStore`` holds the result set paired with it.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Union

from .queries import MAX_PAGE, ProductFilters, default_page_size, max_page_size

AttributeValue = Union[str, List[str]]


@dataclass(frozen=True)
class FilterState:
    category_slug: str = ""
    subcategory_slug: Optional[str] = None
    page: int = 1
    page_size: int = field(default_factory=default_page_size)
    sort: Optional[str] = None
    attribute_filters: Dict[str, AttributeValue] = field(default_factory=dict)
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: bool = False

    @property
    def has_active_filters(self):
        return (
            self.subcategory_slug is not None
            or len(self.attribute_filters) > 0
            or self.min_price is not None
            or self.max_price is not None
            or self.in_stock
            or self.sort is not None
        )

    def product_filters(self):
        return ProductFilters(
            attribute_filters=dict(self.attribute_filters),
            min_price=self.min_price,
            max_price=self.max_price,
            in_stock=self.in_stock,
            sort=self.sort,
        )


@dataclass(frozen=True)
class ProductsState:
    items: List[Any] = field(default_factory=list)
    page: int = 1
    page_size: int = field(default_factory=default_page_size)
    total: Optional[int] = None
    total_pages: Optional[int] = None
    is_loading: bool = False
    error: Optional[str] = None


class Store:
    """Observable holder for a single state value."""

    def __init__(self, initial):
        self._state = initial
        self._listeners: List[Callable[[Any], None]] = []

    def get(self):
        return self._state

    def set(self, state):
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def subscribe(self, listener):
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_listeners(self):
        self._listeners.clear()


def _is_empty(value):
    return value is None or value == "" or (isinstance(value, (list, tuple)) and len(value) == 0)


class FiltersStore(Store):
    """
    Filter selection for one category page.

    Every setter applies a single change; anything other than a page change
    sends the user back to page 1.
    """

    def __init__(self, initial: Optional[FilterState] = None):
        super().__init__(initial or FilterState())

    def init(self, **values):
        self.set(replace(FilterState(), **values))

    def _update(self, **changes):
        self.set(replace(self.get(), **changes))

    def set_page(self, page):
        self._update(page=max(1, min(MAX_PAGE, page)))

    def set_page_size(self, page_size):
        self._update(page_size=max(1, min(max_page_size(), page_size)), page=1)

    def set_sort(self, sort):
        self._update(sort=sort, page=1)

    def set_subcategory(self, subcategory_slug):
        # each subcategory has its own filter config
        self._update(subcategory_slug=subcategory_slug, attribute_filters={}, page=1)

    def set_attribute_filter(self, key, value):
        filters = dict(self.get().attribute_filters)
        if _is_empty(value):
            filters.pop(key, None)
        elif isinstance(value, (list, tuple)):
            filters[key] = list(value)
        else:
            filters[key] = value
        self._update(attribute_filters=filters, page=1)

    def set_price_range(self, min_price=None, max_price=None):
        self._update(min_price=min_price, max_price=max_price, page=1)

    def set_in_stock(self, in_stock):
        self._update(in_stock=bool(in_stock), page=1)

    def reset_filters(self):
        current = self.get()
        self.set(FilterState(category_slug=current.category_slug, page_size=current.page_size))

    @property
    def has_active_filters(self):
        return self.get().has_active_filters


class ProductsStore(Store):

    def __init__(self, initial: Optional[ProductsState] = None):
        super().__init__(initial or ProductsState())

    def start_loading(self):
        self.set(replace(self.get(), is_loading=True, error=None))

    def apply_result(self, result):
        self.set(ProductsState(
            items=list(result.get("items") or []),
            page=result.get("page", 1),
            page_size=result.get("pageSize", self.get().page_size),
            total=result.get("total"),
            total_pages=result.get("totalPages"),
        ))

    def fail(self, message):
        # previous items stay visible until the next successful load
        self.set(replace(self.get(), is_loading=False, error=message))
