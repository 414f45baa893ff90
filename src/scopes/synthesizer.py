"""Derive the desired bindings for a ScopeInstance from its ScopeTemplate."""

import copy

from .exceptions import InvalidSpec
from .labels import ownership_labels
from .models import (
    ROLE_REF_API_GROUP,
    ROLE_REF_KIND,
    ClusterRoleBinding,
    RoleBinding,
    ScopeInstance,
    ScopeTemplate,
    cluster_roles_errors,
    namespaces_errors,
)


def synthesize_bindings(instance: ScopeInstance, template: ScopeTemplate) -> list:
    """Return unsaved bindings describing the desired state.

    With no namespaces on the instance, every role spec becomes one
    ClusterRoleBinding. Otherwise every (namespace, role spec) pair becomes
    one RoleBinding. Names are left empty; the store generates them on
    creation.

    Raises ``InvalidSpec`` when the stored resources would yield a binding
    without a role or two bindings with the same identity.
    """

    errors = [f"ScopeTemplate {template.name}: {error}" for error in cluster_roles_errors(template.cluster_roles)]
    errors += [f"ScopeInstance {instance.name}: {error}" for error in namespaces_errors(instance.namespaces)]
    if errors:
        raise InvalidSpec(" ".join(errors))

    desired = []
    if instance.is_cluster_scoped:
        for role_spec in template.cluster_roles:
            desired.append(_build(ClusterRoleBinding, instance, template, role_spec))
        return desired

    for namespace in instance.namespaces:
        for role_spec in template.cluster_roles:
            desired.append(_build(RoleBinding, instance, template, role_spec, namespace=namespace))
    return desired


def _build(model, instance, template, role_spec: dict, **extra):
    role_name = role_spec["role_name"]
    return model(
        labels=ownership_labels(instance, template, role_name).to_labels(),
        owner=instance,
        subjects=copy.deepcopy(role_spec.get("subjects") or []),
        role_ref_kind=ROLE_REF_KIND,
        role_ref_name=role_name,
        role_ref_api_group=ROLE_REF_API_GROUP,
        **extra,
    )


__all__ = ["synthesize_bindings"]
