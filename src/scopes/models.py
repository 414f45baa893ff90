"""Scope models: ScopeTemplate, ScopeInstance, and the bindings they produce."""

import uuid

from django.core.exceptions import ValidationError
from django.db import models

from .hashing import hash_object

ROLE_REF_KIND = "ClusterRole"
ROLE_REF_API_GROUP = "rbac.authorization.k8s.io"


def cluster_roles_errors(cluster_roles) -> list[str]:
    """Describe what keeps ``cluster_roles`` from being synthesized (empty when valid)."""
    if not isinstance(cluster_roles, list):
        return ["cluster_roles must be a list."]

    errors = []
    seen = set()
    for index, role_spec in enumerate(cluster_roles):
        role_name = role_spec.get("role_name") if isinstance(role_spec, dict) else None
        if not role_name or not isinstance(role_name, str):
            errors.append(f"cluster_roles[{index}] has no role_name.")
            continue
        if role_name in seen:
            errors.append(f"Duplicate role name: {role_name}.")
        seen.add(role_name)
        if not isinstance(role_spec.get("subjects", []), list):
            errors.append(f"Subjects of role {role_name} must be a list.")
    return errors


def namespaces_errors(namespaces) -> list[str]:
    """Describe what is wrong with an instance's ``namespaces`` (empty when valid)."""
    if not isinstance(namespaces, list):
        return ["namespaces must be a list."]

    errors = [
        f"Invalid namespace: {namespace!r}."
        for namespace in namespaces
        if not namespace or not isinstance(namespace, str)
    ]
    names = [namespace for namespace in namespaces if isinstance(namespace, str)]
    duplicates = sorted({namespace for namespace in names if names.count(namespace) > 1})
    if duplicates:
        errors.append(f"Duplicate namespaces: {', '.join(duplicates)}.")
    return errors


class ScopeTemplate(models.Model):
    """Reusable set of role grants.

    ``cluster_roles`` is an ordered list of role specs, each shaped as
    ``{"role_name": str, "subjects": [subject, ...]}``.
    """

    name = models.CharField(max_length=253, unique=True)
    uid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    cluster_roles = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    @property
    def spec(self) -> dict:
        return {"cluster_roles": self.cluster_roles}

    def spec_hash(self) -> str:
        """Fingerprint of the mutable part of the template."""
        return hash_object(self.spec)

    def clean(self):
        errors = cluster_roles_errors(self.cluster_roles)
        if errors:
            raise ValidationError({"cluster_roles": errors})


class ScopeInstance(models.Model):
    """Applies a template to a set of namespaces, or cluster-wide when empty."""

    name = models.CharField(max_length=253, unique=True)
    uid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    scope_template_name = models.CharField(max_length=253)
    namespaces = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    @property
    def spec(self) -> dict:
        return {
            "scope_template_name": self.scope_template_name,
            "namespaces": self.namespaces,
        }

    def spec_hash(self) -> str:
        """Fingerprint of the mutable part of the instance."""
        return hash_object(self.spec)

    def clean(self):
        errors = namespaces_errors(self.namespaces)
        if errors:
            raise ValidationError({"namespaces": errors})

    @property
    def is_cluster_scoped(self) -> bool:
        return not self.namespaces


class Binding(models.Model):
    """Fields shared by cluster-scoped and namespace-scoped bindings.

    ``name`` is generated by the store on creation and never changes
    afterwards. ``owner`` is the owner reference: deleting the instance
    cascades to every binding it owns.
    """

    name = models.CharField(max_length=253)
    labels = models.JSONField(default=dict, blank=True)
    owner = models.ForeignKey(ScopeInstance, on_delete=models.CASCADE, related_name="+")
    subjects = models.JSONField(default=list, blank=True)
    role_ref_kind = models.CharField(max_length=64, default=ROLE_REF_KIND)
    role_ref_name = models.CharField(max_length=253)
    role_ref_api_group = models.CharField(max_length=253, default=ROLE_REF_API_GROUP)
    resource_version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Set on concrete subclasses.
    kind = ""
    namespaced = False

    class Meta:
        abstract = True

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.kind} {self.name}"

    @property
    def generate_name(self) -> str:
        return f"{self.role_ref_name}-"


class ClusterRoleBinding(Binding):
    """Grant of a role's subjects across the whole cluster."""

    kind = "ClusterRoleBinding"

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["name"], name="unique_clusterrolebinding_name"),
        ]


class RoleBinding(Binding):
    """Grant of a role's subjects within a single namespace."""

    kind = "RoleBinding"
    namespaced = True

    namespace = models.CharField(max_length=253)

    class Meta:
        ordering = ["namespace", "name"]
        constraints = [
            models.UniqueConstraint(fields=["namespace", "name"], name="unique_rolebinding_namespace_name"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.kind} {self.namespace}/{self.name}"


BINDING_MODELS = (ClusterRoleBinding, RoleBinding)


__all__ = [
    "ScopeTemplate",
    "ScopeInstance",
    "Binding",
    "ClusterRoleBinding",
    "RoleBinding",
    "BINDING_MODELS",
    "ROLE_REF_KIND",
    "ROLE_REF_API_GROUP",
    "cluster_roles_errors",
    "namespaces_errors",
]
