"""Admin registrations for scope resources; bindings are read-only."""

from django.contrib import admin

from .models import ClusterRoleBinding, RoleBinding, ScopeInstance, ScopeTemplate


@admin.register(ScopeTemplate)
class ScopeTemplateAdmin(admin.ModelAdmin):
    list_display = ("name", "uid", "updated_at")
    readonly_fields = ("uid",)
    search_fields = ("name",)


@admin.register(ScopeInstance)
class ScopeInstanceAdmin(admin.ModelAdmin):
    list_display = ("name", "scope_template_name", "namespaces", "updated_at")
    readonly_fields = ("uid",)
    search_fields = ("name", "scope_template_name")


class BindingAdmin(admin.ModelAdmin):
    """Bindings belong to the controller; editing them here would only cause drift."""

    list_display = ("name", "role_ref_name", "owner", "resource_version")
    list_select_related = ("owner",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(ClusterRoleBinding)
class ClusterRoleBindingAdmin(BindingAdmin):
    pass


@admin.register(RoleBinding)
class RoleBindingAdmin(BindingAdmin):
    list_display = ("namespace",) + BindingAdmin.list_display
    list_filter = ("namespace",)
