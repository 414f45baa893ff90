"""Reconcile a ScopeInstance: make the bindings in the store match its template.

A pass runs in a fixed order:

1. load the instance (not-found propagates to the caller),
2. load its template; if it is gone, delete everything the instance owns,
3. ensure one binding per (role, scope), creating or updating in place,
4. delete bindings left over from a previous instance spec,
5. delete bindings left over from a previous template spec.

Bindings are ensured before stale ones are swept, so a grant that is still
valid is never absent, even between the two phases. Any store failure aborts
the pass; the caller re-runs it later, which is safe because every step is a
no-op on an already consistent state.
"""

import logging
import threading
from dataclasses import dataclass

from .exceptions import AmbiguousBindingsError, ObjectNotFound, ReconcileCancelled
from .labels import (
    LabelSelector,
    identity_selector,
    instance_selector,
    is_owned_by,
    stale_instance_selector,
    stale_template_selector,
)
from .models import Binding, ScopeInstance, ScopeTemplate
from .store import BindingStore
from .synthesizer import synthesize_bindings

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Summary of the mutations issued by one pass."""

    name: str
    created: int = 0
    updated: int = 0
    deleted: int = 0
    orphaned: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.deleted)

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "orphaned": self.orphaned,
        }


class ScopeInstanceReconciler:
    """Drive the bindings of one ScopeInstance towards their desired state."""

    def __init__(self, store: BindingStore | None = None):
        self.store = store if store is not None else BindingStore()

    def reconcile(self, name: str, cancel_event: threading.Event | None = None) -> ReconcileResult:
        """Run one pass for the instance called ``name``."""
        logger.info("Reconciling ScopeInstance %s", name)
        result = ReconcileResult(name=name)

        _check_cancelled(cancel_event)
        instance = self.store.get_instance(name)

        _check_cancelled(cancel_event)
        try:
            template = self.store.get_template(instance.scope_template_name)
        except ObjectNotFound:
            # The template was deleted or renamed away: reclaim every grant.
            logger.info(
                "ScopeTemplate %s referenced by ScopeInstance %s not found; deleting its bindings",
                instance.scope_template_name,
                name,
            )
            result.deleted = self.delete_bindings(instance_selector(instance), cancel_event)
            result.orphaned = True
            return result

        result.created, result.updated = self.ensure_bindings(instance, template, cancel_event)
        result.deleted += self.delete_bindings(stale_instance_selector(instance), cancel_event)
        result.deleted += self.delete_bindings(stale_template_selector(instance, template), cancel_event)

        logger.info(
            "Reconciled ScopeInstance %s (created=%d updated=%d deleted=%d)",
            name,
            result.created,
            result.updated,
            result.deleted,
        )
        return result

    def ensure_bindings(
        self,
        instance: ScopeInstance,
        template: ScopeTemplate,
        cancel_event: threading.Event | None = None,
    ) -> tuple[int, int]:
        """Create missing bindings and update drifted ones; return (created, updated).

        Every desired binding is matched against the store before anything is
        written, so an ambiguous identity aborts the pass with no mutation.
        """
        plan = []
        for desired in synthesize_bindings(instance, template):
            _check_cancelled(cancel_event)
            plan.append((desired, self._find_existing(instance, template, desired)))

        created = updated = 0
        for desired, existing in plan:
            _check_cancelled(cancel_event)
            if existing is None:
                # Names are immutable, so anything that must change shape is recreated.
                self.store.create(desired)
                created += 1
                continue

            if (
                is_owned_by(existing, instance)
                and existing.subjects == desired.subjects
                and existing.labels == desired.labels
            ):
                logger.debug("Existing %s %s does not need to be updated", existing.kind, existing.name)
                continue

            existing.labels = desired.labels
            existing.owner = desired.owner
            existing.subjects = desired.subjects
            self.store.update(existing)
            updated += 1

        return created, updated

    def delete_bindings(
        self,
        selector: LabelSelector,
        cancel_event: threading.Event | None = None,
    ) -> int:
        """Delete every binding of either shape matching ``selector``.

        A binding that disappears before we get to it is not an error. Any
        other failure stops here and propagates.
        """
        deleted = 0
        for model in self.store.binding_models:
            _check_cancelled(cancel_event)
            for binding in self.store.list_bindings(model, selector):
                _check_cancelled(cancel_event)
                try:
                    self.store.delete(binding)
                except ObjectNotFound:
                    logger.debug("%s %s already deleted", binding.kind, binding.name)
                    continue
                deleted += 1
        return deleted

    def _find_existing(self, instance, template, desired: Binding) -> Binding | None:
        model = type(desired)
        namespace = getattr(desired, "namespace", None)
        matches = self.store.list_bindings(
            model,
            identity_selector(instance, template, desired.role_ref_name),
            namespace=namespace,
        )
        if len(matches) > 1:
            raise AmbiguousBindingsError(model.kind, desired.role_ref_name, namespace, count=len(matches))
        return matches[0] if matches else None


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ReconcileCancelled("Reconcile pass cancelled")


__all__ = ["ScopeInstanceReconciler", "ReconcileResult"]
