# catalog/browser.py
"""
Category page controller.

Keeps the URL, the filter store and the visible result set in step:

    filter change -> canonical URL pushed -> cached result applied at once,
    or a sequenced request to the listing endpoint.

Back/forward navigation re-reads the URL through the sanitizer and never
pushes a new history entry.
"""
import logging
from urllib.parse import urlsplit

import httpx

from .result_cache import ResultCache
from .sequencer import RequestSequencer
from .stores import FiltersStore, ProductsState, ProductsStore
from .url_codec import build_url, cache_key, parse_query, state_from_json, to_api_params

logger = logging.getLogger(__name__)

LISTING_API_PATH = "/api/products"


class History:
    """Minimal browser history: a list of URLs and a cursor."""

    def __init__(self, initial_url):
        self._entries = [initial_url]
        self._index = 0

    @property
    def current(self):
        return self._entries[self._index]

    @property
    def entries(self):
        return list(self._entries)

    def push(self, url):
        del self._entries[self._index + 1:]
        self._entries.append(url)
        self._index += 1

    def back(self):
        if self._index == 0:
            return None
        self._index -= 1
        return self.current

    def forward(self):
        if self._index >= len(self._entries) - 1:
            return None
        self._index += 1
        return self.current


class CategoryPage:

    def __init__(
        self,
        client: httpx.AsyncClient,
        category,
        subcategories,
        initial_filters,
        initial_result,
        page_path=None,
        api_path=LISTING_API_PATH,
        history=None,
        sequencer=None,
        cache=None,
    ):
        self.client = client
        self.category = category
        self.subcategories = list(subcategories)
        self.api_path = api_path
        self.page_path = page_path or f"/categorias/{category['slug']}/"

        self.filters = FiltersStore(initial_filters)
        self.products = ProductsStore(ProductsState(
            items=list(initial_result.get("items") or []),
            page=initial_result.get("page", initial_filters.page),
            page_size=initial_result.get("pageSize", initial_filters.page_size),
            total=initial_result.get("total"),
            total_pages=initial_result.get("totalPages"),
        ))
        self.history = history or History(build_url(self.page_path, initial_filters))
        self.sequencer = sequencer or RequestSequencer()
        self.cache = cache or ResultCache()

        self._syncing = False
        if initial_result.get("total") is not None:
            self.cache.seed(cache_key(initial_filters), initial_result)
        self._unsubscribe = self.filters.subscribe(self._on_filters_changed)

    @classmethod
    def from_seed(cls, client, seed, **kwargs):
        """Build the controller from the JSON seed embedded in the category page."""
        category = seed["category"]
        subcategories = seed.get("subcategories") or []
        initial_filters = state_from_json(
            seed.get("initialFilters") or {},
            category["slug"],
            [s["slug"] for s in subcategories],
        )
        kwargs.setdefault("page_path", seed.get("pagePath"))
        return cls(client, category, subcategories, initial_filters, seed.get("initialResult") or {}, **kwargs)

    @property
    def subcategory_slugs(self):
        return [s["slug"] for s in self.subcategories]

    @property
    def filter_configs(self):
        return {s["slug"]: s.get("filter_config") or [] for s in self.subcategories}

    @property
    def filter_config(self):
        return self.filter_configs.get(self.filters.get().subcategory_slug, [])

    # ---------------- STORE -> URL -> RESULTS ----------------

    def _on_filters_changed(self, state):
        if self._syncing:
            return
        url = build_url(self.page_path, state)
        if url == self.history.current:
            return
        self.history.push(url)
        self.load(state)

    def load(self, state=None):
        """
        Show the results for ``state``. Returns the request task, or None
        when the result came from the cache.
        """
        state = state or self.filters.get()
        key = cache_key(state)

        cached = self.cache.get(key)
        if cached is not None:
            # anything still in flight belongs to an older state
            self.sequencer.invalidate()
            self.products.apply_result(cached)
            return None

        self.products.start_loading()
        return self.sequencer.dispatch(
            lambda: self._fetch(state),
            on_success=lambda result: self._apply(key, result),
            on_error=self._fail,
        )

    async def _fetch(self, state):
        response = await self.client.get(self.api_path, params=to_api_params(state))
        response.raise_for_status()
        return response.json()

    def _apply(self, key, result):
        if result.get("total") is not None:
            self.cache.set(key, result)
        self.products.apply_result(result)

    def _fail(self, exc):
        if isinstance(exc, httpx.HTTPStatusError):
            message = f"Error {exc.response.status_code}: {exc.response.reason_phrase}"
        else:
            message = str(exc) or exc.__class__.__name__
        logger.warning("Loading products for %s failed: %s", self.category["slug"], message)
        self.products.fail(message)

    # ---------------- NAVIGATION ----------------

    def pop_state(self, url):
        """Apply a URL reached through back/forward navigation."""
        state = parse_query(
            urlsplit(url).query,
            self.category["slug"],
            self.subcategory_slugs,
            page_size=self.filters.get().page_size,
            filter_configs=self.filter_configs,
        )
        self._syncing = True
        try:
            self.filters.set(state)
        finally:
            self._syncing = False
        return self.load(state)

    def back(self):
        url = self.history.back()
        return self.pop_state(url) if url is not None else None

    def forward(self):
        url = self.history.forward()
        return self.pop_state(url) if url is not None else None

    async def close(self):
        self._unsubscribe()
        self.sequencer.cancel()
