"""Seed demo scope templates and instances."""

from django.core.management.base import BaseCommand

from scopes.models import ScopeInstance, ScopeTemplate

SEED_TEMPLATES = {
    "namespace-admins": [
        {
            "role_name": "admin",
            "subjects": [
                {"kind": "Group", "name": "platform-admins", "api_group": "rbac.authorization.k8s.io"},
            ],
        },
    ],
    "read-only": [
        {
            "role_name": "view",
            "subjects": [
                {"kind": "Group", "name": "developers", "api_group": "rbac.authorization.k8s.io"},
                {"kind": "ServiceAccount", "name": "auditor", "namespace": "monitoring", "api_group": ""},
            ],
        },
    ],
}

SEED_INSTANCES = {
    "team-a-admins": ("namespace-admins", ["team-a", "team-a-staging"]),
    "cluster-readers": ("read-only", []),
}


def create_seed_templates() -> dict[str, ScopeTemplate]:
    """Create or update the demo templates and return a name->template map."""
    templates = {}
    for name, cluster_roles in SEED_TEMPLATES.items():
        template, _ = ScopeTemplate.objects.update_or_create(
            name=name, defaults={"cluster_roles": cluster_roles}
        )
        templates[name] = template
    return templates


def create_seed_instances() -> dict[str, ScopeInstance]:
    """Create or update the demo instances and return a name->instance map."""
    instances = {}
    for name, (template_name, namespaces) in SEED_INSTANCES.items():
        instance, _ = ScopeInstance.objects.update_or_create(
            name=name,
            defaults={"scope_template_name": template_name, "namespaces": namespaces},
        )
        instances[name] = instance
    return instances


class Command(BaseCommand):
    """Management command to seed demo scope resources."""

    help = (
        "Seed demo ScopeTemplates and ScopeInstances. "
        "Use --reset to delete previously seeded resources first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the seeded templates and instances (and their bindings) first.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        if options.get("reset"):
            self.stdout.write("Resetting previously seeded scope resources...")
            # Bindings are removed with their instances by cascade.
            ScopeInstance.objects.filter(name__in=list(SEED_INSTANCES)).delete()
            ScopeTemplate.objects.filter(name__in=list(SEED_TEMPLATES)).delete()
            self.stdout.write(self.style.WARNING("Seeded scope resources cleared."))

        self.stdout.write("Seeding scope resources...")
        create_seed_templates()
        create_seed_instances()
        self.stdout.write(self.style.SUCCESS("Scope seed completed."))
