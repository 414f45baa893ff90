"""Tests for the scope management commands."""

from __future__ import annotations

from io import StringIO
from unittest import mock

from django.core.management import CommandError, call_command
from django.test import TestCase

from scopes.models import ClusterRoleBinding, RoleBinding, ScopeInstance, ScopeTemplate
from scripts.management.commands.seed_scopes import SEED_INSTANCES, SEED_TEMPLATES
from tests.utils import FakeRedis, make_instance, make_template


class SeedScopesCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_scopes", stdout=StringIO())
        call_command("seed_scopes", stdout=StringIO())

        self.assertEqual(ScopeTemplate.objects.count(), len(SEED_TEMPLATES))
        self.assertEqual(ScopeInstance.objects.count(), len(SEED_INSTANCES))

    def test_reset_removes_seeded_bindings(self):
        call_command("seed_scopes", stdout=StringIO())
        call_command("reconcile_scopes", stdout=StringIO())
        self.assertTrue(RoleBinding.objects.exists())

        call_command("seed_scopes", "--reset", stdout=StringIO())

        self.assertFalse(RoleBinding.objects.exists())
        self.assertFalse(ClusterRoleBinding.objects.exists())
        self.assertEqual(ScopeInstance.objects.count(), len(SEED_INSTANCES))


class ReconcileScopesCommandTests(TestCase):
    def test_reconciles_all_instances(self):
        make_template()
        make_instance(name="team-a")
        make_instance(name="team-b", namespaces=["ns-b"])
        out = StringIO()

        call_command("reconcile_scopes", stdout=out)

        self.assertIn("team-a: created=2 updated=0 deleted=0", out.getvalue())
        self.assertIn("Reconciled 2 ScopeInstance(s).", out.getvalue())
        self.assertEqual(ClusterRoleBinding.objects.count(), 2)
        self.assertEqual(RoleBinding.objects.count(), 2)

    def test_reports_orphaned_instances(self):
        make_instance(name="team-a", template_name="missing")
        out = StringIO()

        call_command("reconcile_scopes", "team-a", stdout=out)

        self.assertIn("template missing", out.getvalue())

    def test_failure_raises_command_error(self):
        make_template()
        make_instance(name="team-a")
        err = StringIO()

        with self.assertRaises(CommandError):
            call_command("reconcile_scopes", "team-a", "missing", stdout=StringIO(), stderr=err)

        self.assertIn("missing", err.getvalue())
        self.assertEqual(ClusterRoleBinding.objects.count(), 2)


class RunScopeControllerCommandTests(TestCase):
    def setUp(self):
        self.redis = FakeRedis()
        for patcher in (
            mock.patch("scopes.queue.get_redis_client", return_value=self.redis),
            mock.patch("signal.signal"),
        ):
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_once_drains_queue_and_exits(self):
        make_template()
        make_instance(name="team-a", namespaces=["ns-a"])
        out = StringIO()

        call_command("run_scope_controller", "--once", stdout=out)

        self.assertEqual(RoleBinding.objects.count(), 2)
        self.assertIn("Scope controller stopped.", out.getvalue())
        self.assertEqual(self.redis.lists.get("test:scopes:queue:ready"), [])
