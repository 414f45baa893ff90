"""Serializers for scope templates, scope instances, and their bindings."""

from rest_framework import serializers

from .models import ClusterRoleBinding, RoleBinding, ScopeInstance, ScopeTemplate

SUBJECT_KINDS = ("User", "Group", "ServiceAccount")
RBAC_API_GROUP = "rbac.authorization.k8s.io"


class SubjectSerializer(serializers.Serializer):
    """A principal that a role is granted to."""

    kind = serializers.ChoiceField(choices=SUBJECT_KINDS)
    name = serializers.CharField(max_length=253)
    api_group = serializers.CharField(max_length=253, required=False, allow_blank=True)
    namespace = serializers.CharField(max_length=253, required=False, allow_blank=True)

    def validate(self, attrs):
        """Fill in the API group and require a namespace for service accounts."""
        if attrs["kind"] == "ServiceAccount":
            if not attrs.get("namespace"):
                raise serializers.ValidationError("ServiceAccount subjects require a namespace.")
            attrs.setdefault("api_group", "")
        else:
            if attrs.get("namespace"):
                raise serializers.ValidationError(f"{attrs['kind']} subjects are not namespaced.")
            attrs.pop("namespace", None)
            attrs.setdefault("api_group", RBAC_API_GROUP)
        return attrs


class RoleSpecSerializer(serializers.Serializer):
    """One role of a template and the subjects it is granted to."""

    role_name = serializers.RegexField(
        r"^[a-z0-9]([-a-z0-9.:]*[a-z0-9])?$",
        max_length=200,
        error_messages={"invalid": "Role names must be lowercase alphanumerics, '-', '.' or ':'."},
    )
    subjects = SubjectSerializer(many=True)


class ScopeTemplateSerializer(serializers.ModelSerializer):
    """Expose templates by name; ``uid`` and timestamps are read-only."""

    cluster_roles = serializers.ListField(child=RoleSpecSerializer(), allow_empty=True)

    class Meta:
        model = ScopeTemplate
        fields = ["name", "uid", "cluster_roles", "created_at", "updated_at"]
        read_only_fields = ["uid", "created_at", "updated_at"]

    def validate_cluster_roles(self, value):
        """A role may appear only once, since it identifies the binding."""
        names = [role["role_name"] for role in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise serializers.ValidationError(f"Duplicate role names: {', '.join(duplicates)}.")
        return value


class ScopeInstanceSerializer(serializers.ModelSerializer):
    """Expose instances by name; an empty ``namespaces`` list means cluster-wide."""

    namespaces = serializers.ListField(
        child=serializers.RegexField(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$", max_length=63),
        required=False,
        allow_empty=True,
    )

    class Meta:
        model = ScopeInstance
        fields = ["name", "uid", "scope_template_name", "namespaces", "created_at", "updated_at"]
        read_only_fields = ["uid", "created_at", "updated_at"]

    def validate_namespaces(self, value):
        if len(set(value)) != len(value):
            raise serializers.ValidationError("Namespaces must be unique.")
        return value


class ClusterRoleBindingSerializer(serializers.ModelSerializer):
    owner = serializers.SlugRelatedField(slug_field="name", read_only=True)

    class Meta:
        model = ClusterRoleBinding
        fields = [
            "name",
            "labels",
            "owner",
            "subjects",
            "role_ref_kind",
            "role_ref_name",
            "role_ref_api_group",
            "resource_version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RoleBindingSerializer(ClusterRoleBindingSerializer):
    class Meta(ClusterRoleBindingSerializer.Meta):
        model = RoleBinding
        fields = ["id", "namespace"] + ClusterRoleBindingSerializer.Meta.fields
        read_only_fields = fields


__all__ = [
    "SubjectSerializer",
    "RoleSpecSerializer",
    "ScopeTemplateSerializer",
    "ScopeInstanceSerializer",
    "ClusterRoleBindingSerializer",
    "RoleBindingSerializer",
]
