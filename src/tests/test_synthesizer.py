"""Desired-state synthesis tests."""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.test import TestCase

from scopes.exceptions import InvalidSpec
from scopes.labels import ownership_labels
from scopes.models import ClusterRoleBinding, RoleBinding, ScopeInstance, ScopeTemplate
from scopes.synthesizer import synthesize_bindings
from tests.utils import ADMINS, DEVELOPERS, make_instance, make_template


class SynthesizeBindingsTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.template = make_template()

    def test_cluster_scoped_instance_yields_cluster_role_bindings(self):
        instance = make_instance()

        desired = synthesize_bindings(instance, self.template)

        self.assertEqual([type(b) for b in desired], [ClusterRoleBinding, ClusterRoleBinding])
        self.assertEqual([b.role_ref_name for b in desired], ["admin", "view"])
        self.assertEqual(desired[1].subjects, [DEVELOPERS])
        for binding in desired:
            self.assertIsNone(binding.pk)
            self.assertEqual(binding.name, "")
            self.assertEqual(binding.owner, instance)
            self.assertEqual(
                binding.labels,
                ownership_labels(instance, self.template, binding.role_ref_name).to_labels(),
            )

    def test_namespaced_instance_yields_role_binding_per_namespace_and_role(self):
        instance = make_instance(namespaces=["ns-a", "ns-b"])

        desired = synthesize_bindings(instance, self.template)

        self.assertTrue(all(isinstance(b, RoleBinding) for b in desired))
        self.assertEqual(
            [(b.namespace, b.role_ref_name) for b in desired],
            [("ns-a", "admin"), ("ns-a", "view"), ("ns-b", "admin"), ("ns-b", "view")],
        )

    def test_output_is_deterministic_and_detached_from_template(self):
        instance = make_instance(namespaces=["ns-a"])

        first = synthesize_bindings(instance, self.template)
        second = synthesize_bindings(instance, self.template)
        first[0].subjects.append({"kind": "User", "name": "mallory"})

        self.assertEqual(
            [(b.namespace, b.labels, b.role_ref_name) for b in first],
            [(b.namespace, b.labels, b.role_ref_name) for b in second],
        )
        self.assertEqual(self.template.cluster_roles[0]["subjects"], [ADMINS])
        self.assertEqual(second[0].subjects, [ADMINS])


class SpecValidationTests(TestCase):
    """Stored specs that cannot produce one binding per identity are rejected."""

    def test_role_without_name_is_invalid_spec(self):
        template = ScopeTemplate.objects.create(name="broken", cluster_roles=[{"subjects": [ADMINS]}])
        instance = make_instance(template_name="broken")

        with self.assertRaises(InvalidSpec) as ctx:
            synthesize_bindings(instance, template)

        self.assertIn("cluster_roles[0] has no role_name", str(ctx.exception))

    def test_non_list_namespaces_are_invalid_spec(self):
        template = make_template()
        instance = make_instance()
        instance.namespaces = {"ns-a": True}

        with self.assertRaises(InvalidSpec):
            synthesize_bindings(instance, template)

    def test_template_clean_rejects_repeated_roles(self):
        template = ScopeTemplate(
            name="dup",
            cluster_roles=[{"role_name": "admin", "subjects": []}, {"role_name": "admin", "subjects": []}],
        )

        with self.assertRaises(ValidationError) as ctx:
            template.full_clean()

        self.assertIn("cluster_roles", ctx.exception.message_dict)

    def test_instance_clean_rejects_repeated_namespaces(self):
        instance = ScopeInstance(name="team-a", scope_template_name="team-access", namespaces=["ns-a", "ns-a"])

        with self.assertRaises(ValidationError) as ctx:
            instance.full_clean()

        self.assertEqual(ctx.exception.message_dict["namespaces"], ["Duplicate namespaces: ns-a."])

    def test_clean_accepts_valid_specs(self):
        ScopeTemplate(name="ok", cluster_roles=[{"role_name": "admin", "subjects": [ADMINS]}]).full_clean()
        ScopeInstance(name="team-a", scope_template_name="ok", namespaces=[]).full_clean()
