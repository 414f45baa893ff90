"""Worker loop that drains the reconcile queue."""

import logging
import threading
import time

from django.conf import settings
from django.db import DatabaseError, close_old_connections
from redis.exceptions import RedisError

from .exceptions import (
    AmbiguousBindingsError,
    InvalidSpec,
    ObjectNotFound,
    ReconcileCancelled,
    ScopeError,
)
from .queue import ReconcileQueue, backoff_delay
from .reconciler import ScopeInstanceReconciler

logger = logging.getLogger(__name__)


class ScopeController:
    """Pop instance names, reconcile them, and retry failures with backoff.

    Every ``resync_interval`` seconds all instances are queued again, which
    recovers from lost notifications and from crashes mid-pass.
    """

    def __init__(
        self,
        reconciler: ScopeInstanceReconciler | None = None,
        queue: ReconcileQueue | None = None,
        resync_interval: float | None = None,
        poll_timeout: int = 1,
        clock=time.monotonic,
    ):
        self.reconciler = reconciler if reconciler is not None else ScopeInstanceReconciler()
        self.queue = queue if queue is not None else ReconcileQueue()
        self.resync_interval = (
            settings.SCOPE_RESYNC_INTERVAL if resync_interval is None else resync_interval
        )
        self.poll_timeout = poll_timeout
        self.clock = clock
        self._next_resync: float | None = None

    def resync(self) -> int:
        """Queue every known instance; return how many were newly queued."""
        queued = 0
        for instance in self.reconciler.store.list_instances():
            if self.queue.add(instance.name):
                queued += 1
        logger.info("Resync queued %d ScopeInstance(s)", queued)
        return queued

    def process_next(self, timeout: int = 0, cancel_event: threading.Event | None = None) -> bool:
        """Reconcile one queued instance; return False if the queue was empty."""
        name = self.queue.get(timeout=timeout)
        if name is None:
            return False

        try:
            self.reconciler.reconcile(name, cancel_event=cancel_event)
        except ReconcileCancelled:
            logger.info("Reconcile of ScopeInstance %s cancelled; re-queueing", name)
            self.queue.add(name)
        except ObjectNotFound as exc:
            if exc.kind == "ScopeInstance" and exc.name == name:
                # Deleted: its bindings go with it through the owner reference.
                logger.info("ScopeInstance %s no longer exists; dropping", name)
                self.queue.forget(name)
            else:
                self._retry(name, exc)
        except (AmbiguousBindingsError, InvalidSpec) as exc:
            logger.error("ScopeInstance %s needs manual repair: %s", name, exc)
            self._retry(name, exc)
        except (ScopeError, DatabaseError) as exc:
            self._retry(name, exc)
        else:
            self.queue.forget(name)
        return True

    def run(self, stop_event: threading.Event, once: bool = False) -> None:
        """Process the queue until ``stop_event`` is set (or it drains, with ``once``)."""
        logger.info("Scope controller started (resync every %ss)", self.resync_interval)
        while not stop_event.is_set():
            close_old_connections()
            try:
                self._maybe_resync()
                self.queue.promote_due()
                processed = self.process_next(
                    timeout=0 if once else self.poll_timeout,
                    cancel_event=stop_event,
                )
            except RedisError as exc:
                logger.error("Work queue unavailable: %s", exc)
                if once:
                    raise
                stop_event.wait(settings.SCOPE_BACKOFF_BASE)
                continue
            if once and not processed:
                break
        logger.info("Scope controller stopped")

    def _maybe_resync(self) -> None:
        now = self.clock()
        if self._next_resync is None or now >= self._next_resync:
            try:
                self.resync()
            except (ScopeError, DatabaseError) as exc:
                logger.error("Resync failed: %s", exc)
            self._next_resync = now + self.resync_interval

    def _retry(self, name: str, exc: Exception) -> None:
        failures = self.queue.record_failure(name)
        delay = backoff_delay(failures)
        logger.warning(
            "Reconcile of ScopeInstance %s failed (attempt %d), retrying in %.1fs: %s",
            name,
            failures,
            delay,
            exc,
        )
        self.queue.add_after(name, delay)


__all__ = ["ScopeController"]
