import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ScopeInstance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=253, unique=True)),
                ("uid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("scope_template_name", models.CharField(max_length=253)),
                ("namespaces", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ScopeTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=253, unique=True)),
                ("uid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("cluster_roles", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ClusterRoleBinding",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=253)),
                ("labels", models.JSONField(blank=True, default=dict)),
                ("subjects", models.JSONField(blank=True, default=list)),
                ("role_ref_kind", models.CharField(default="ClusterRole", max_length=64)),
                ("role_ref_name", models.CharField(max_length=253)),
                ("role_ref_api_group", models.CharField(default="rbac.authorization.k8s.io", max_length=253)),
                ("resource_version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="scopes.scopeinstance",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(fields=("name",), name="unique_clusterrolebinding_name"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RoleBinding",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=253)),
                ("labels", models.JSONField(blank=True, default=dict)),
                ("subjects", models.JSONField(blank=True, default=list)),
                ("role_ref_kind", models.CharField(default="ClusterRole", max_length=64)),
                ("role_ref_name", models.CharField(max_length=253)),
                ("role_ref_api_group", models.CharField(default="rbac.authorization.k8s.io", max_length=253)),
                ("resource_version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("namespace", models.CharField(max_length=253)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="scopes.scopeinstance",
                    ),
                ),
            ],
            options={
                "ordering": ["namespace", "name"],
                "constraints": [
                    models.UniqueConstraint(fields=("namespace", "name"), name="unique_rolebinding_namespace_name"),
                ],
            },
        ),
    ]
