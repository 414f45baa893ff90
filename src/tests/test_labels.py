"""Fingerprint, ownership label, and selector tests."""

from __future__ import annotations

from django.test import SimpleTestCase, TestCase

from scopes import labels
from scopes.hashing import HASH_LENGTH, hash_object
from scopes.labels import LabelSelector, OwnershipLabels, Requirement
from scopes.models import ClusterRoleBinding
from tests.utils import ADMINS, make_instance, make_template


class HashObjectTests(SimpleTestCase):
    def test_mapping_key_order_does_not_matter(self):
        first = {"scope_template_name": "t", "namespaces": ["a", "b"]}
        second = {"namespaces": ["a", "b"], "scope_template_name": "t"}
        self.assertEqual(hash_object(first), hash_object(second))

    def test_any_field_change_changes_the_hash(self):
        base = {"cluster_roles": [{"role_name": "admin", "subjects": [ADMINS]}]}
        changed = {"cluster_roles": [{"role_name": "admin", "subjects": []}]}
        self.assertNotEqual(hash_object(base), hash_object(changed))
        self.assertNotEqual(hash_object(["a", "b"]), hash_object(["b", "a"]))

    def test_hash_is_a_valid_label_value(self):
        value = hash_object({"namespaces": []})
        self.assertEqual(len(value), HASH_LENGTH)
        self.assertLessEqual(len(value), 63)
        self.assertRegex(value, r"^[0-9a-f]+$")


class OwnershipLabelTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.template = make_template()
        cls.instance = make_instance(namespaces=["ns-a"])

    def test_labels_carry_identity_and_current_hashes(self):
        result = labels.ownership_labels(self.instance, self.template, "admin").to_labels()

        self.assertEqual(result[labels.INSTANCE_UID_KEY], str(self.instance.uid))
        self.assertEqual(result[labels.TEMPLATE_UID_KEY], str(self.template.uid))
        self.assertEqual(result[labels.INSTANCE_HASH_KEY], self.instance.spec_hash())
        self.assertEqual(result[labels.TEMPLATE_HASH_KEY], self.template.spec_hash())
        self.assertEqual(result[labels.ROLE_NAME_KEY], "admin")
        self.assertEqual(OwnershipLabels.from_labels(result).role_name, "admin")

    def test_from_labels_requires_every_key(self):
        with self.assertRaises(KeyError):
            OwnershipLabels.from_labels({labels.INSTANCE_UID_KEY: "x"})

    def test_is_owned_by_checks_owner_reference_not_labels(self):
        other = make_instance(name="other")
        forged = ClusterRoleBinding(
            labels=labels.ownership_labels(self.instance, self.template, "admin").to_labels(),
            owner=other,
            role_ref_name="admin",
        )
        self.assertFalse(labels.is_owned_by(forged, self.instance))
        self.assertTrue(labels.is_owned_by(forged, other))

    def test_stale_selectors_match_previous_hashes_only(self):
        current = labels.ownership_labels(self.instance, self.template, "admin").to_labels()
        previous = dict(current)
        previous[labels.INSTANCE_HASH_KEY] = "old"

        stale = labels.stale_instance_selector(self.instance)
        self.assertFalse(stale.matches(current))
        self.assertTrue(stale.matches(previous))
        self.assertFalse(labels.stale_template_selector(self.instance, self.template).matches(previous))


class LabelSelectorTests(SimpleTestCase):
    def test_parse_and_render(self):
        selector = LabelSelector.parse("app=web, tier!=db,env==prod")
        self.assertEqual(
            selector.requirements,
            (
                Requirement("app", "=", "web"),
                Requirement("tier", "!=", "db"),
                Requirement("env", "=", "prod"),
            ),
        )
        self.assertEqual(str(selector), "app=web,tier!=db,env=prod")

    def test_not_equals_matches_missing_key(self):
        selector = LabelSelector.parse("tier!=db")
        self.assertTrue(selector.matches({}))
        self.assertTrue(selector.matches({"tier": "web"}))
        self.assertFalse(selector.matches({"tier": "db"}))

    def test_equals_requires_key(self):
        selector = LabelSelector.from_mapping({"app": "web"})
        self.assertFalse(selector.matches({}))
        self.assertFalse(selector.matches(None))
        self.assertTrue(selector.matches({"app": "web", "extra": "x"}))

    def test_empty_selector_matches_everything(self):
        selector = LabelSelector.parse("")
        self.assertFalse(selector)
        self.assertTrue(selector.matches({"anything": "goes"}))

    def test_invalid_clauses_are_rejected(self):
        with self.assertRaises(ValueError):
            LabelSelector.parse("justakey")
        with self.assertRaises(ValueError):
            LabelSelector.parse("=value")
        with self.assertRaises(ValueError):
            Requirement("key", "in", "value")
