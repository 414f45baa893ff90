"""Routing for scope resources and the bindings they produce."""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    ClusterRoleBindingViewSet,
    RoleBindingViewSet,
    ScopeInstanceViewSet,
    ScopeTemplateViewSet,
)

router = DefaultRouter()
router.register(r"scope-templates", ScopeTemplateViewSet, basename="scope-template")
router.register(r"scope-instances", ScopeInstanceViewSet, basename="scope-instance")
router.register(r"cluster-role-bindings", ClusterRoleBindingViewSet, basename="cluster-role-binding")
router.register(r"role-bindings", RoleBindingViewSet, basename="role-binding")

urlpatterns = [
    path("", include(router.urls)),
]
