"""Run one synchronous reconcile pass per ScopeInstance."""

from django.core.management.base import BaseCommand, CommandError

from scopes.exceptions import ScopeError
from scopes.reconciler import ScopeInstanceReconciler


class Command(BaseCommand):
    """Management command to reconcile instances without the work queue."""

    help = "Reconcile the named ScopeInstances, or all of them when none are given."

    def add_arguments(self, parser):
        parser.add_argument("names", nargs="*", help="ScopeInstance names to reconcile.")

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        reconciler = ScopeInstanceReconciler()
        names = options.get("names") or [
            instance.name for instance in reconciler.store.list_instances()
        ]

        failures = 0
        for name in names:
            try:
                result = reconciler.reconcile(name)
            except ScopeError as exc:
                failures += 1
                self.stderr.write(self.style.ERROR(f"{name}: {exc}"))
                continue

            summary = (
                f"{name}: created={result.created} updated={result.updated} "
                f"deleted={result.deleted}"
            )
            if result.orphaned:
                summary += " (template missing, bindings reclaimed)"
            self.stdout.write(summary)

        if failures:
            raise CommandError(f"{failures} of {len(names)} ScopeInstance(s) failed to reconcile.")
        self.stdout.write(self.style.SUCCESS(f"Reconciled {len(names)} ScopeInstance(s)."))
