"""Queue reconciles when scope resources change.

ScopeInstance changes queue the instance itself; ScopeTemplate changes are
routed to every instance that references the template. Queueing happens
after the surrounding transaction commits so the worker reads the new state.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver
from redis.exceptions import RedisError

from .models import ScopeInstance, ScopeTemplate
from .queue import ReconcileQueue
from .router import instances_for_template

logger = logging.getLogger(__name__)


def enqueue(names) -> None:
    """Queue each name; Redis outages are logged, the next resync catches up."""
    queue = ReconcileQueue()
    for name in names:
        try:
            queue.add(name)
        except RedisError as exc:
            logger.warning("Could not queue ScopeInstance %s: %s", name, exc)
            return


def _enabled() -> bool:
    return getattr(settings, "SCOPE_ENQUEUE_ON_CHANGE", True)


@receiver(post_save, sender=ScopeInstance)
@receiver(post_delete, sender=ScopeInstance)
def scope_instance_changed(sender, instance: ScopeInstance, **kwargs) -> None:
    if not _enabled():
        return
    name = instance.name
    transaction.on_commit(lambda: enqueue([name]))


@receiver(post_save, sender=ScopeTemplate)
@receiver(post_delete, sender=ScopeTemplate)
def scope_template_changed(sender, instance: ScopeTemplate, **kwargs) -> None:
    if not _enabled():
        return
    template_name = instance.name
    transaction.on_commit(lambda: enqueue(instances_for_template(template_name)))


__all__ = ["enqueue", "scope_instance_changed", "scope_template_changed"]
