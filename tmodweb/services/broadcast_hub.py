"""WebSocket subscriber registry and status fan-out."""

import json
import queue
import threading

_CLOSE = object()


def serialize_snapshot(snapshot):
    """Compact JSON text for one ``StatusSnapshot``."""
    return json.dumps(snapshot.to_payload(), separators=(",", ":"))


class Subscriber:
    """One live push connection with its own bounded outbound queue.

    A dedicated writer thread drains the queue into ``connection.send`` so a
    peer that stops reading only ever fills its own queue. Once started, the
    writer thread is the only one that closes the connection.
    """

    def __init__(self, connection, queue_size=16, name=None):
        self.connection = connection
        self.name = name or f"subscriber-{id(self):x}"
        self._queue = queue.Queue(maxsize=max(1, int(queue_size)))
        self._closed = threading.Event()
        self._state_lock = threading.Lock()
        self._writer = None

    @property
    def closed(self):
        return self._closed.is_set()

    def start(self, on_failure):
        """Start the writer thread; ``on_failure(self, exc)`` runs on a failed send."""
        with self._state_lock:
            if self._writer is not None or self._closed.is_set():
                return
            self._writer = threading.Thread(
                target=self._write_loop,
                args=(on_failure,),
                name=f"tmodweb-{self.name}",
                daemon=True,
            )
        self._writer.start()

    def offer(self, payload):
        """Queue ``payload`` without blocking; False when closed or backed up."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(payload)
        except queue.Full:
            return False
        return True

    def _write_loop(self, on_failure):
        try:
            while not self.closed:
                payload = self._queue.get()
                if payload is _CLOSE or self.closed:
                    return
                try:
                    self.connection.send(payload)
                except Exception as exc:
                    on_failure(self, exc)
                    return
        finally:
            with self._state_lock:
                self._closed.set()
            self._close_connection()

    def _close_connection(self):
        try:
            self.connection.close()
        except Exception:
            # Peer already gone.
            pass

    def close(self):
        """Mark closed and wake the writer; never blocks on the peer.

        Safe to call from any thread and more than once. The connection is
        closed by the writer thread once its current send returns, or here
        when no writer was ever started.
        """
        with self._state_lock:
            if self._closed.is_set():
                return
            self._closed.set()
            writer = self._writer
        try:
            self._queue.put_nowait(_CLOSE)
        except queue.Full:
            # Writer exits on the closed flag after its current item.
            pass
        if writer is None:
            self._close_connection()


class BroadcastHub:
    """Set of live subscribers guarded by one lock."""

    def __init__(self, log_action, log_exception):
        self.log_action = log_action
        self.log_exception = log_exception
        self._lock = threading.Lock()
        self._subscribers = []

    def subscribe(self, subscriber):
        with self._lock:
            if subscriber not in self._subscribers:
                self._subscribers.append(subscriber)
        subscriber.start(self._on_send_failure)
        self.log_action("ws-connect", command=f"{subscriber.name} clients={self.subscriber_count()}")

    def unsubscribe(self, subscriber):
        """Remove and close ``subscriber``; unknown subscribers are ignored."""
        with self._lock:
            removed = self._discard(subscriber)
        subscriber.close()
        if removed:
            self.log_action("ws-disconnect", command=f"{subscriber.name} clients={self.subscriber_count()}")

    def _discard(self, subscriber):
        try:
            self._subscribers.remove(subscriber)
        except ValueError:
            return False
        return True

    def _on_send_failure(self, subscriber, exc):
        self.log_action(
            "ws-send",
            command=subscriber.name,
            rejection_message=f"Error sending message to client: {type(exc).__name__}: {exc}",
        )
        self.unsubscribe(subscriber)

    def subscriber_count(self):
        with self._lock:
            return len(self._subscribers)

    def _serialize(self, snapshot):
        try:
            return serialize_snapshot(snapshot)
        except (TypeError, ValueError) as exc:
            self.log_exception("broadcast/serialize", exc)
            return None

    def push(self, subscriber, snapshot):
        """Queue ``snapshot`` for one subscriber only (initial status on connect)."""
        payload = self._serialize(snapshot)
        if payload is None:
            return False
        if subscriber.offer(payload):
            return True
        self.unsubscribe(subscriber)
        return False

    def broadcast(self, snapshot):
        """Serialize ``snapshot`` once and queue it for every subscriber.

        Subscribers that are closed or whose queue is full are evicted in the
        same pass. Returns how many subscribers the payload was queued for.
        """
        payload = self._serialize(snapshot)
        if payload is None:
            return 0
        delivered = 0
        evicted = []
        with self._lock:
            for subscriber in list(self._subscribers):
                if subscriber.offer(payload):
                    delivered += 1
                    continue
                self._discard(subscriber)
                evicted.append(subscriber)
        for subscriber in evicted:
            subscriber.close()
            self.log_action(
                "ws-evict",
                command=subscriber.name,
                rejection_message="Subscriber closed or not keeping up.",
            )
        return delivered
