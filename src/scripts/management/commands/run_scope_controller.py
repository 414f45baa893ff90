"""Run the reconcile worker loop until interrupted."""

import signal
import threading

from django.core.management.base import BaseCommand

from core.redis_client import close_redis_client
from scopes.controller import ScopeController


class Command(BaseCommand):
    """Management command that drains the reconcile queue."""

    help = (
        "Reconcile ScopeInstances as they are queued, re-queueing all of them "
        "periodically. Use --once to drain the queue a single time and exit."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--once",
            action="store_true",
            help="Queue every instance, drain the queue once, then exit.",
        )
        parser.add_argument(
            "--resync-interval",
            type=float,
            default=None,
            help="Seconds between full resyncs (defaults to SCOPE_RESYNC_INTERVAL).",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        stop_event = threading.Event()
        self._install_signal_handlers(stop_event)

        controller = ScopeController(resync_interval=options.get("resync_interval"))
        self.stdout.write("Starting scope controller...")
        try:
            controller.run(stop_event, once=options.get("once", False))
        finally:
            close_redis_client()
        self.stdout.write(self.style.SUCCESS("Scope controller stopped."))

    @staticmethod
    def _install_signal_handlers(stop_event: threading.Event) -> None:
        """Stop between (or in the middle of) passes on SIGINT/SIGTERM."""

        def _stop(signum, frame):
            stop_event.set()

        # Only the main thread may install handlers (not the case under some test runners).
        if threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGINT, _stop)
            signal.signal(signal.SIGTERM, _stop)
