from __future__ import annotations
import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests

from topicdriver.app.job_runner import spawn_job
from topicdriver.core.models import ConnectorOptions, Handler, Message, PayloadMode
from topicdriver.core.registry import TopicRegistry
from topicdriver.core.transport import TopicTransport
from topicdriver.http.errors import AlreadyStarted, DriverError

ErrorReporter = Callable[[str, Exception], None]


class Connector:
    """
    Topic dispatch loop. Owns the topic -> handler registry and, once
    started, sweeps every registered topic each ``options.period`` seconds
    on one background thread, handing each pulled message to its handler.

    register_topic / bulk_register_topics may be called from any thread
    while the loop runs.
    """
    def __init__(
        self,
        options: ConnectorOptions,
        *,
        error_reporter: Optional[ErrorReporter] = None,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ):
        self.options = options
        self._log = logger or logging.getLogger("topicdriver")
        self._report_error = error_reporter or self._log_error
        self._transport = TopicTransport(
            options.url,
            payload=options.payload,
            timeout=options.timeout,
            logger=logger,
            session=session,
        )
        self._registry = TopicRegistry(options.topics)

        self._register_lock = threading.Lock()
        self._token_lock = threading.Lock()
        self._tokens: Dict[str, str] = {}
        self._last_token = ""

        self._state_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---------- Registration ----------
    def register_topic(self, topic: str, handler: Handler) -> None:
        """Subscribe remotely (new topics only), then install the handler.
        Raises RegistrationFailed; nothing is installed in that case."""
        with self._register_lock:
            if topic not in self._registry:
                token = self._transport.register(topic)
                with self._token_lock:
                    self._tokens[topic] = token
                    self._last_token = token
                self._log.info("subscribed topic=%s", topic)
            self._registry.put(topic, handler)

    def bulk_register_topics(self, topics: Mapping[str, Handler]) -> None:
        """Replace the whole registry. Local only: no subscribe calls."""
        self._registry.replace_all(topics)
        self._log.info("registry replaced topics=%s", sorted(topics))

    def topics(self) -> List[str]:
        return self._registry.snapshot()

    def token_for(self, topic: str) -> str:
        with self._token_lock:
            return self._tokens.get(topic, self._last_token)

    # ---------- Publishing / pulling ----------
    def publish(self, topic: str, key: str, value: Any) -> None:
        self._transport.submit(topic, key, value)

    def pull(self, topic: str) -> Optional[Message]:
        """Fetch one pending message for ``topic`` without dispatching it.
        None when the queue is empty; raises RetrievalFailed."""
        return self._transport.retrieve(topic, self.token_for(topic))

    # ---------- Lifecycle ----------
    @property
    def running(self) -> bool:
        """True while the sweep thread is alive, including a stopping one."""
        with self._state_lock:
            return self._alive()

    def _alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._state_lock:
            if self._alive():
                raise AlreadyStarted(message="listener is already up")
            self._stop = threading.Event()
            self._thread = spawn_job(self._listener, self._stop, name="topicdriver-sweep")
        self._log.info("listener start period=%ss topics=%d", self.options.period, len(self._registry))

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the sweep thread and wait up to ``timeout`` for it to exit.
        If it is still busy afterwards (slow handler, or stop() called from a
        handler) the connector stays running until the thread finishes."""
        with self._state_lock:
            th = self._thread
            if th is None:
                return
            self._stop.set()
        if th is not threading.current_thread():
            th.join(timeout=timeout)
        with self._state_lock:
            if self._thread is th and not th.is_alive():
                self._thread = None
        self._log.info("listener stop")

    def sweep_once(self) -> None:
        """Run a single sweep on the calling thread (connector must be idle)."""
        if self.running:
            raise AlreadyStarted(message="cannot sweep manually while the listener is up")
        self._sweep(None)

    # ---------- Sweep ----------
    def _listener(self, stop: threading.Event) -> None:
        while not stop.is_set():
            self._sweep(stop)
            if stop.wait(self.options.period):
                break

    def _sweep(self, stop: Optional[threading.Event]) -> None:
        for topic in self._registry.snapshot():
            if stop is not None and stop.is_set():
                return
            self._poll(topic)

    def _poll(self, topic: str) -> None:
        try:
            msg = self.pull(topic)
        except DriverError as ex:
            self._report(topic, ex)
            return
        if msg is None:
            return

        # re-read: the topic may have been replaced or dropped during the pull
        handler = self._registry.handler_for(topic)
        if handler is None:
            self._log.debug("dropped message key=%s for unregistered topic=%s", msg.key, topic)
            return
        try:
            handler(msg.key, msg.value)
        except Exception as ex:
            self._report(topic, ex)

    def _report(self, topic: str, error: Exception) -> None:
        try:
            self._report_error(topic, error)
        except Exception:
            self._log.exception("error reporter failed topic=%s", topic)

    def _log_error(self, topic: str, error: Exception) -> None:
        self._log.warning("sweep error topic=%s err=%s", topic, error)


def connect(
    url: str,
    period: float = 30.0,
    topics: Optional[Mapping[str, Handler]] = None,
    *,
    payload: PayloadMode = PayloadMode.JSON,
    timeout: float = 30.0,
    **kwargs,
) -> Connector:
    """Shorthand for Connector(ConnectorOptions(...))."""
    opts = ConnectorOptions(
        url=url, period=period, topics=dict(topics or {}), payload=PayloadMode(payload), timeout=timeout,
    )
    return Connector(opts, **kwargs)
