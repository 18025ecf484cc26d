"""
webhook_monitor.py

In-memory webhook inbox and live event broadcaster for the inspector UI.

Requirements:
- Every received webhook is appended to the event log (memory only, unbounded).
- Server-Sent Events (SSE): Flask streams JSON events to clients.
- A client that connects gets the full backlog first, then live events, with no gap
  and no duplicate between the two.
"""

from __future__ import annotations

import json
import queue
import threading
from typing import Any, Callable, Dict, Iterable, Iterator, Mapping, Optional

from event_log import EventLog
from webhook_helpers import debug_dump, project_headers

KEEPALIVE_FRAME = ": keepalive\n\n"
CONNECTED_FRAME = ": connected\n\n"


def serialize_event(event: Dict[str, Any]) -> str:
    return json.dumps(event, separators=(",", ":"), ensure_ascii=False)


def format_sse(msg: str) -> str:
    return f"data: {msg}\n\n"


class Subscription:
    """
    One connected SSE client.

    Connected -> Disconnected, nothing else. Disconnection happens on unsubscribe
    or when the client's queue overflows; it is terminal.
    """

    def __init__(self, max_queue_size: int = 0) -> None:
        self._queue: queue.Queue[str] = queue.Queue(maxsize=max_queue_size)
        self._lock = threading.Lock()
        self._connected = True
        # Highest event id queued so far; anything at or below it was already delivered.
        self.last_event_id = 0

    @property
    def connected(self) -> bool:
        return self._connected

    def deliver(self, event_id: int, msg: str) -> bool:
        """
        Queue `msg` without blocking. Returns False if the subscription is (or just became)
        disconnected.
        """
        with self._lock:
            if not self._connected:
                return False
            if event_id <= self.last_event_id:
                return True
            try:
                self._queue.put_nowait(msg)
            except queue.Full:
                self._connected = False
                return False
            self.last_event_id = event_id
            return True

    def get(self, timeout: Optional[float] = None) -> str:
        """Next serialized event. Raises queue.Empty when nothing arrives within `timeout`."""
        return self._queue.get(timeout=timeout)

    def close(self) -> None:
        with self._lock:
            self._connected = False


class WebhookEventHub:
    """
    Thread-safe fan-out hub.

    Each SSE client gets its own Subscription (own queue). Publishing pushes to all
    queues without blocking; a client that is closed or cannot keep up is dropped
    silently (best-effort monitoring, no retry).
    """

    def __init__(self, max_queue_size: int = 0) -> None:
        self._lock = threading.Lock()
        self._clients: set[Subscription] = set()
        self.max_queue_size = max_queue_size

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._clients)

    def subscribe(self, backlog: Optional[Callable[[], Iterable[Dict[str, Any]]]] = None) -> Subscription:
        """
        Register a new client.

        `backlog` is read under the hub lock and queued before the client becomes
        visible to `publish`, so a concurrent publish either lands after the backlog
        or is skipped because the backlog already contained it.
        """
        with self._lock:
            events = list(backlog()) if backlog is not None else []
            # The bound applies to live events only; the backlog always fits.
            queue_size = self.max_queue_size + len(events) if self.max_queue_size > 0 else 0
            sub = Subscription(max_queue_size=queue_size)
            for event in events:
                sub.deliver(event["id"], serialize_event(event))
            if sub.connected:
                self._clients.add(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        sub.close()
        with self._lock:
            self._clients.discard(sub)

    def publish(self, event: Dict[str, Any]) -> int:
        """Deliver `event` to every connected client. Returns how many clients got it."""
        msg = serialize_event(event)
        with self._lock:
            clients = list(self._clients)
        delivered = 0
        dropped = []
        for sub in clients:
            if sub.deliver(event["id"], msg):
                delivered += 1
            else:
                dropped.append(sub)
        if dropped:
            with self._lock:
                for sub in dropped:
                    self._clients.discard(sub)
        return delivered


class WebhookInbox:
    """
    Owns the event log and the hub for one app instance.

    `receive` appends then publishes under one lock, so clients always see events in id order.
    """

    def __init__(
        self,
        event_log: Optional[EventLog] = None,
        hub: Optional[WebhookEventHub] = None,
        keepalive_seconds: float = 15.0,
    ) -> None:
        self.event_log = event_log if event_log is not None else EventLog()
        self.hub = hub if hub is not None else WebhookEventHub()
        self.keepalive_seconds = keepalive_seconds
        self._ingress_lock = threading.Lock()

    def receive(self, headers: Mapping[str, str], body: Any) -> Dict[str, Any]:
        with self._ingress_lock:
            event = self.event_log.append(project_headers(headers), body)
            self.hub.publish(event)
        print(f"[webhook-receive] #{event['id']} {serialize_event(body)}")
        debug_dump(event)
        return event

    def subscribe(self) -> Subscription:
        return self.hub.subscribe(backlog=self.event_log.all)

    def unsubscribe(self, sub: Subscription) -> None:
        self.hub.unsubscribe(sub)

    def stream(self, sub: Subscription) -> Iterator[str]:
        """
        SSE frames for one client: a connected comment, then backlog and live events,
        with keepalive comments while idle. Closing the generator unsubscribes.
        """
        try:
            yield CONNECTED_FRAME
            while True:
                try:
                    msg = sub.get(timeout=self.keepalive_seconds)
                except queue.Empty:
                    if not sub.connected:
                        return
                    # Keep-alive comment to prevent idle timeouts in some proxies.
                    yield KEEPALIVE_FRAME
                    continue
                yield format_sse(msg)
        finally:
            self.unsubscribe(sub)
