"""Store adapter: the get/list/create/update/delete primitives the controller needs.

The ORM is the object store. Each call here is atomic on its own; nothing in
this module spans several calls, so a reconcile pass is a sequence of
independent mutations.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.crypto import get_random_string

from .exceptions import AlreadyExists, Conflict, ObjectNotFound, StoreUnavailable
from .labels import LabelSelector
from .models import BINDING_MODELS, Binding, ScopeInstance, ScopeTemplate

logger = logging.getLogger(__name__)

# Same alphabet Kubernetes uses for generateName suffixes (no vowels, no 0/1/3).
NAME_SUFFIX_CHARS = "bcdfghjklmnpqrstvwxz2456789"
NAME_SUFFIX_LENGTH = 5


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    """Re-raise database failures as StoreUnavailable."""
    try:
        yield
    except DatabaseError as exc:
        raise StoreUnavailable(f"Database error while trying to {action}: {exc}") from exc


class BindingStore:
    """ORM-backed store for scope resources and the bindings they own."""

    binding_models = BINDING_MODELS

    def get_instance(self, name: str) -> ScopeInstance:
        with _translate_errors(f"get ScopeInstance {name}"):
            try:
                return ScopeInstance.objects.get(name=name)
            except ScopeInstance.DoesNotExist:
                raise ObjectNotFound("ScopeInstance", name) from None

    def get_template(self, name: str) -> ScopeTemplate:
        with _translate_errors(f"get ScopeTemplate {name}"):
            try:
                return ScopeTemplate.objects.get(name=name)
            except ScopeTemplate.DoesNotExist:
                raise ObjectNotFound("ScopeTemplate", name) from None

    def list_instances(self) -> list[ScopeInstance]:
        with _translate_errors("list ScopeInstances"):
            return list(ScopeInstance.objects.all())

    def list_bindings(
        self,
        model: type[Binding],
        selector: LabelSelector | None = None,
        namespace: str | None = None,
    ) -> list[Binding]:
        """List bindings of one shape, optionally narrowed to a namespace.

        ``namespace`` is ignored for cluster-scoped models. Label matching is
        done on the decoded label map so that the same selector semantics
        apply on every database backend.
        """
        queryset = model.objects.all()
        if namespace is not None and model.namespaced:
            queryset = queryset.filter(namespace=namespace)
        with _translate_errors(f"list {model.kind}s"):
            items = list(queryset)
        if selector is None:
            return items
        return [item for item in items if selector.matches(item.labels)]

    def create(self, binding: Binding) -> Binding:
        """Persist a new binding under a generated ``<role>-<suffix>`` name."""
        if binding.pk is not None:
            raise ValueError(f"{binding.kind} {binding.name} already has a primary key")

        binding.name = self.generate_name(binding.generate_name)
        binding.resource_version = 1
        try:
            with transaction.atomic():
                binding.save(force_insert=True)
        except IntegrityError as exc:
            binding.pk = None
            raise AlreadyExists(f"{binding.kind} {binding.name} could not be created: {exc}") from exc
        except DatabaseError as exc:
            binding.pk = None
            raise StoreUnavailable(f"Database error while creating {binding.kind}: {exc}") from exc

        logger.info("Created %s %s", binding.kind, _describe(binding))
        return binding

    def update(self, binding: Binding) -> Binding:
        """Write labels, owner and subjects back if nobody changed the row since we read it."""
        model = type(binding)
        with _translate_errors(f"update {binding.kind} {binding.name}"):
            with transaction.atomic():
                updated = model.objects.filter(
                    pk=binding.pk, resource_version=binding.resource_version
                ).update(
                    labels=binding.labels,
                    owner=binding.owner,
                    subjects=binding.subjects,
                    resource_version=F("resource_version") + 1,
                    updated_at=timezone.now(),
                )
                if not updated:
                    if model.objects.filter(pk=binding.pk).exists():
                        raise Conflict(
                            f"{binding.kind} {_describe(binding)} was modified concurrently "
                            f"(expected resource version {binding.resource_version})"
                        )
                    raise ObjectNotFound(binding.kind, binding.name, getattr(binding, "namespace", None))

        binding.resource_version += 1
        logger.info("Updated %s %s", binding.kind, _describe(binding))
        return binding

    def delete(self, binding: Binding) -> None:
        model = type(binding)
        with _translate_errors(f"delete {binding.kind} {binding.name}"):
            with transaction.atomic():
                deleted, _ = model.objects.filter(pk=binding.pk).delete()
        if not deleted:
            raise ObjectNotFound(binding.kind, binding.name, getattr(binding, "namespace", None))
        logger.info("Deleted %s %s", binding.kind, _describe(binding))

    @staticmethod
    def generate_name(prefix: str) -> str:
        return prefix + get_random_string(NAME_SUFFIX_LENGTH, NAME_SUFFIX_CHARS)


def _describe(binding: Binding) -> str:
    namespace = getattr(binding, "namespace", None)
    return f"{namespace}/{binding.name}" if namespace else binding.name


__all__ = ["BindingStore", "NAME_SUFFIX_CHARS", "NAME_SUFFIX_LENGTH"]
