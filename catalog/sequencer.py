# catalog/sequencer.py
import asyncio
import itertools
import logging

logger = logging.getLogger(__name__)


class RequestSequencer:
    """
    Keeps only the latest request's outcome.

    Each dispatch takes the next number from a monotonic counter and becomes
    the current request. A response (or error) is delivered only if its
    number is still current when it arrives. Superseded tasks are also
    cancelled when ``cancel_superseded`` is set, but delivery never depends
    on the cancellation having worked.
    """

    def __init__(self, cancel_superseded=True):
        self.cancel_superseded = cancel_superseded
        self._counter = itertools.count(1)
        self._current = 0
        self._task = None

    @property
    def current(self):
        return self._current

    def next_id(self):
        self._current = next(self._counter)
        return self._current

    def is_current(self, request_id):
        return request_id == self._current

    def dispatch(self, fetch, on_success, on_error=None):
        """
        Start ``fetch()`` (a coroutine factory) as a task on the running loop.

        ``on_success(result)`` / ``on_error(exc)`` are called only when this
        request is still the latest one.
        """
        if self.cancel_superseded:
            self.cancel()

        request_id = self.next_id()
        task = asyncio.ensure_future(self._run(request_id, fetch, on_success, on_error))
        self._task = task
        return task

    async def _run(self, request_id, fetch, on_success, on_error):
        try:
            result = await fetch()
        except asyncio.CancelledError:
            logger.debug("Request %s cancelled", request_id)
            return
        except Exception as exc:
            if not self.is_current(request_id):
                logger.debug("Dropping error of stale request %s: %s", request_id, exc)
                return
            if on_error is None:
                raise
            on_error(exc)
            return

        if not self.is_current(request_id):
            logger.debug("Dropping stale response %s (current %s)", request_id, self._current)
            return
        on_success(result)

    def invalidate(self):
        """Make any in-flight request stale without starting a new one."""
        self.next_id()
        if self.cancel_superseded:
            self.cancel()

    def cancel(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self):
        """Wait for the current in-flight task, if any."""
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
