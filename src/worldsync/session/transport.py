"""Websocket transport.

A daemon thread owns the socket: it connects (retrying per RetryPolicy),
decodes each inbound message and pushes events onto a queue. ``poll``
drains that queue without blocking, so handlers always run on the thread
that calls ``SessionClient.poll``.

Usage:
    transport = WebSocketTransport(RetryPolicy(max_attempts=3, backoff="exponential"))
    transport.open("ws://localhost:38281")
    events = transport.poll()
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Literal

import tenacity
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import ClientConnection, connect

from worldsync.errors import TransportError
from worldsync.session.protocol import TransportEvent

logger = logging.getLogger(__name__)

CLOSE_JOIN_TIMEOUT = 1.0
"""Seconds ``close`` waits for the reader thread of an established socket."""


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Configuration for retrying the socket open.

    Reconnecting after an established session drops is the caller's job;
    this only covers the initial open.
    """

    max_attempts: int = 1
    """Maximum attempts (1 = no retry). Default: no retry."""

    backoff: Literal["none", "linear", "exponential"] = "none"
    """Backoff strategy between retries."""

    base_delay: float = 0.5
    """Base delay in seconds for backoff calculation."""


def build_retryer(policy: RetryPolicy) -> tenacity.Retrying:
    """Build a tenacity retryer from RetryPolicy configuration."""
    wait: tenacity.wait.wait_base
    if policy.backoff == "exponential":
        wait = tenacity.wait_exponential(multiplier=policy.base_delay, min=policy.base_delay)
    elif policy.backoff == "linear":
        wait = tenacity.wait_incrementing(start=policy.base_delay, increment=policy.base_delay)
    else:
        wait = tenacity.wait_none()

    return tenacity.Retrying(
        stop=tenacity.stop_after_attempt(max(1, policy.max_attempts)),
        wait=wait,
        retry=tenacity.retry_if_exception_type((OSError, WebSocketException, TimeoutError)),
        before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def decode_message(raw: str | bytes) -> list[Any]:
    """Decode one websocket message into its packet list."""
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TransportError(f"Undecodable message: {e}") from e
    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list):
        raise TransportError(f"Expected packet array, got {type(payload).__name__}")
    return payload


class WebSocketTransport:
    """Transport backed by the ``websockets`` synchronous client.

    Each ``open`` gets its own event queue and stop flag, so events from a
    previous connection never leak into the next one.

    Args:
        retry_policy: Socket-open retry policy.
        open_timeout: Seconds allowed for each open handshake.
    """

    def __init__(self, retry_policy: RetryPolicy | None = None, open_timeout: float = 10.0) -> None:
        self._retry_policy = retry_policy or RetryPolicy()
        self._open_timeout = open_timeout
        self._events: queue.Queue[TransportEvent] = queue.Queue()
        self._stop = threading.Event()
        self._connection: ClientConnection | None = None
        self._thread: threading.Thread | None = None
        self._send_lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self, url: str) -> None:
        if self._thread is not None and self._thread.is_alive() and not self._stop.is_set():
            raise TransportError("Transport already open")
        self._events = queue.Queue()
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(url, self._events, self._stop),
            daemon=True,
            name="worldsync-transport",
        )
        self._thread.start()

    def _run(self, url: str, events: queue.Queue[TransportEvent], stop: threading.Event) -> None:
        retryer = build_retryer(self._retry_policy)
        try:
            connection = retryer(connect, url, open_timeout=self._open_timeout, max_size=None)
        except Exception as e:  # noqa: BLE001 - reported as a transport event
            logger.warning("Could not connect to %s: %s", url, e)
            events.put(TransportEvent.error(str(e)))
            events.put(TransportEvent.closed(str(e)))
            return

        if stop.is_set():
            # closed while the open was still in progress
            connection.close()
            return

        self._connection = connection
        events.put(TransportEvent.opened())
        reason = ""
        try:
            for raw in connection:
                try:
                    events.put(TransportEvent.message(decode_message(raw)))
                except TransportError as e:
                    logger.warning("%s", e)
                    events.put(TransportEvent.error(str(e)))
        except ConnectionClosed as e:
            reason = str(e)
        except Exception as e:  # noqa: BLE001 - reported as a transport event
            reason = str(e)
            events.put(TransportEvent.error(reason))
        finally:
            if self._connection is connection:
                self._connection = None
            events.put(TransportEvent.closed(reason))

    def send(self, packets: list[dict[str, Any]]) -> None:
        connection = self._connection
        if connection is None:
            raise TransportError("Transport is not open")
        with self._send_lock:
            try:
                connection.send(json.dumps(packets))
            except (ConnectionClosed, OSError) as e:
                raise TransportError(f"Send failed: {e}") from e

    def poll(self) -> list[TransportEvent]:
        events: list[TransportEvent] = []
        while True:
            try:
                events.append(self._events.get_nowait())
            except queue.Empty:
                return events

    def close(self) -> None:
        """Close the socket and discard undelivered events.

        Never waits for an open that is still in progress; that attempt
        sees the stop flag and closes its own socket.
        """
        self._stop.set()
        connection = self._connection
        self._connection = None
        thread = self._thread
        if connection is not None:
            connection.close()
            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout=CLOSE_JOIN_TIMEOUT)
        self._thread = None
        self._events = queue.Queue()
