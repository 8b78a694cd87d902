"""admin-ajax.php dispatcher with one cancellable request per channel."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

import requests

from ..utils.logging import get_logger
from .models import AjaxResponse

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20


class AjaxError(RuntimeError):
    """An admin-ajax request failed or returned something other than JSON."""


class RequestHandle:
    """One in-flight admin-ajax request."""

    def __init__(self, action: str, channel: str):
        self.action = action
        self.channel = channel
        self._cancelled = threading.Event()
        self._future: Optional[Future] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Drop the response; the callback will not run."""
        self._cancelled.set()
        if self._future is not None:
            self._future.cancel()

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def result(self, timeout: Optional[float] = None) -> AjaxResponse:
        if self._future is None:
            raise RuntimeError(f"Request '{self.action}' was never started")
        return self._future.result(timeout=timeout)


class AjaxDispatcher:
    """
    Sends admin-ajax actions for the alert editor.

    ``post`` is synchronous. ``submit`` runs the request on a worker thread
    and applies ``callback`` only if the handle is still the newest one on
    its channel, so a slow earlier response never overwrites a later one.
    Requests time out after ``timeout_seconds``; nothing is retried.
    """

    def __init__(
        self,
        ajax_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        cookies: Optional[Dict[str, str]] = None,
        max_workers: int = 4,
    ):
        if not ajax_url:
            raise ValueError("alerts.ajax_url is not configured")
        self.ajax_url = ajax_url
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        if cookies:
            self.session.cookies.update(cookies)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="streamlog-ajax")
        self._channels: Dict[str, RequestHandle] = {}
        self._lock = threading.RLock()

    def post(self, action: str, data: Optional[Dict[str, Any]] = None) -> AjaxResponse:
        payload = {"action": action}
        payload.update(data or {})
        logger.debug("POST %s action=%s", self.ajax_url, action)
        try:
            response = self.session.post(self.ajax_url, data=payload, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as e:
            raise AjaxError(f"admin-ajax action '{action}' failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise AjaxError(f"admin-ajax action '{action}' returned a non-JSON body") from e
        if not isinstance(body, dict):
            raise AjaxError(f"admin-ajax action '{action}' returned {type(body).__name__}, expected an object")
        return AjaxResponse.model_validate(body)

    def submit(
        self,
        action: str,
        data: Optional[Dict[str, Any]],
        callback: Callable[[AjaxResponse], None],
        channel: Optional[str] = None,
    ) -> RequestHandle:
        """Start a request, cancelling whatever was still pending on the same channel."""
        channel = channel or action
        handle = RequestHandle(action, channel)
        with self._lock:
            previous = self._channels.get(channel)
            if previous is not None and not previous.done():
                logger.debug("Superseding pending %s request on channel %s", previous.action, channel)
                previous.cancel()
            self._channels[channel] = handle

        def run() -> AjaxResponse:
            response = self.post(action, data)
            with self._lock:
                if handle.cancelled or self._channels.get(channel) is not handle:
                    logger.debug("Discarding stale %s response", action)
                    return response
                callback(response)
            return response

        future = self._executor.submit(run)
        future.add_done_callback(self._log_failure)
        handle._future = future
        if handle.cancelled:
            future.cancel()
        return handle

    def wait(self, channel: str, timeout: Optional[float] = None) -> Optional[AjaxResponse]:
        """Block until the newest request on a channel has finished."""
        with self._lock:
            handle = self._channels.get(channel)
        if handle is None:
            return None
        return handle.result(timeout=timeout)

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning("admin-ajax request failed: %s", error)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self.session.close()

    def __enter__(self) -> "AjaxDispatcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
