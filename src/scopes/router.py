"""Map ScopeTemplate changes to the ScopeInstances that must be reconciled again."""

import logging

from django.db import DatabaseError

from .exceptions import StoreError
from .store import BindingStore

logger = logging.getLogger(__name__)


def instances_for_template(template_name: str, store: BindingStore | None = None) -> list[str]:
    """Return the names of every instance referencing ``template_name``.

    Never raises on lookup problems: a dropped notification is recovered by
    the periodic resync, while an exception here would break the caller's
    notification handling.
    """
    if not template_name:
        return []

    store = store if store is not None else BindingStore()
    try:
        instances = store.list_instances()
    except (StoreError, DatabaseError) as exc:
        logger.error("Error listing ScopeInstances for ScopeTemplate %s: %s", template_name, exc)
        return []

    names = [instance.name for instance in instances if instance.scope_template_name == template_name]
    logger.debug("ScopeTemplate %s change affects %d ScopeInstance(s)", template_name, len(names))
    return names


__all__ = ["instances_for_template"]
