"""ViewSets for scope resources and the bindings the controller manages."""

from rest_framework import permissions
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError

from core.response import BaseReadOnlyViewSet, BaseViewSet, api_response
from .labels import LabelSelector
from .models import ClusterRoleBinding, RoleBinding, ScopeInstance, ScopeTemplate
from .reconciler import ScopeInstanceReconciler
from .serializers import (
    ClusterRoleBindingSerializer,
    RoleBindingSerializer,
    ScopeInstanceSerializer,
    ScopeTemplateSerializer,
)


class ScopeTemplateViewSet(BaseViewSet):
    """CRUD endpoints for ScopeTemplates, addressed by name."""

    serializer_class = ScopeTemplateSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = ScopeTemplate.objects.all()
    lookup_field = "name"


class ScopeInstanceViewSet(BaseViewSet):
    """CRUD endpoints for ScopeInstances, plus an on-demand reconcile."""

    serializer_class = ScopeInstanceSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = ScopeInstance.objects.all()
    lookup_field = "name"

    @action(detail=True, methods=["post"])
    def reconcile(self, request, name=None):
        """Run one reconcile pass synchronously and return its summary.

        Store and invariant errors are rendered by the project exception
        handler.
        """
        instance = self.get_object()
        result = ScopeInstanceReconciler().reconcile(instance.name)
        return api_response(result.as_dict())


class LabelSelectorFilterMixin:
    """Filter list results with ``?label_selector=`` (and ``?namespace=``)."""

    def get_queryset(self):
        queryset = super().get_queryset()
        if getattr(self, "swagger_fake_view", False):
            return queryset
        namespace = self.request.query_params.get("namespace")
        if namespace and queryset.model.namespaced:
            queryset = queryset.filter(namespace=namespace)

        raw = self.request.query_params.get("label_selector")
        if not raw:
            return queryset
        try:
            selector = LabelSelector.parse(raw)
        except ValueError as exc:
            raise ValidationError({"label_selector": [str(exc)]}) from exc
        matching = [binding.pk for binding in queryset if selector.matches(binding.labels)]
        return queryset.filter(pk__in=matching)


class ClusterRoleBindingViewSet(LabelSelectorFilterMixin, BaseReadOnlyViewSet):
    """Read-only view of cluster-scoped bindings."""

    serializer_class = ClusterRoleBindingSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = ClusterRoleBinding.objects.select_related("owner")
    lookup_field = "name"


class RoleBindingViewSet(LabelSelectorFilterMixin, BaseReadOnlyViewSet):
    """Read-only view of namespace-scoped bindings."""

    serializer_class = RoleBindingSerializer
    permission_classes = [permissions.IsAdminUser]
    queryset = RoleBinding.objects.select_related("owner")


__all__ = [
    "ScopeTemplateViewSet",
    "ScopeInstanceViewSet",
    "ClusterRoleBindingViewSet",
    "RoleBindingViewSet",
]
