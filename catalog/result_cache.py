# catalog/result_cache.py
import logging

logger = logging.getLogger(__name__)


class ResultCache:
    """
    Listing results for one page session, keyed by the canonical request
    string (see ``url_codec.cache_key``). Entries are never evicted.
    """

    def __init__(self):
        self._entries = {}

    def __contains__(self, key):
        return key in self._entries

    def __len__(self):
        return len(self._entries)

    def get(self, key):
        return self._entries.get(key)

    def set(self, key, result):
        self._entries[key] = result

    def seed(self, key, result):
        """Store the server-rendered first result unless the key is already known."""
        if key in self._entries:
            return False
        self._entries[key] = result
        logger.debug("Seeded result cache with %s", key)
        return True

    def clear(self):
        self._entries.clear()
