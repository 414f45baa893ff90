"""Shared helpers for tests (scope fixtures, recording store, fake Redis)."""

from __future__ import annotations

from typing import Dict, List

from scopes.models import ScopeInstance, ScopeTemplate
from scopes.store import BindingStore

ADMINS = {"kind": "Group", "name": "platform-admins", "api_group": "rbac.authorization.k8s.io"}
DEVELOPERS = {"kind": "Group", "name": "developers", "api_group": "rbac.authorization.k8s.io"}
ALICE = {"kind": "User", "name": "alice", "api_group": "rbac.authorization.k8s.io"}


class FakeRedis:
    """Minimal Redis stub supporting the commands used by ReconcileQueue."""

    def __init__(self):
        self.lists: Dict[str, List[str]] = {}
        self.zsets: Dict[str, Dict[str, float]] = {}
        self.hashes: Dict[str, Dict[str, int]] = {}

    def rpush(self, key: str, *values: str) -> int:
        items = self.lists.setdefault(key, [])
        items.extend(values)
        return len(items)

    def lpop(self, key: str):
        items = self.lists.get(key) or []
        return items.pop(0) if items else None

    def blpop(self, keys, timeout: int = 0):
        """Non-blocking in tests: return immediately when every list is empty."""
        for key in keys:
            value = self.lpop(key)
            if value is not None:
                return key, value
        return None

    def lpos(self, key: str, value: str):
        items = self.lists.get(key) or []
        return items.index(value) if value in items else None

    def pipeline(self) -> "FakePipeline":
        return FakePipeline(self)

    def llen(self, key: str) -> int:
        return len(self.lists.get(key) or [])

    def zadd(self, key: str, mapping: Dict[str, float]) -> int:
        zset = self.zsets.setdefault(key, {})
        added = len([member for member in mapping if member not in zset])
        zset.update(mapping)
        return added

    def zrangebyscore(self, key: str, minimum: float, maximum: float) -> List[str]:
        zset = self.zsets.get(key) or {}
        return [m for m, score in sorted(zset.items(), key=lambda kv: kv[1]) if minimum <= score <= maximum]

    def zrem(self, key: str, *members: str) -> int:
        zset = self.zsets.setdefault(key, {})
        return len([zset.pop(member) for member in members if member in zset])

    def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        mapping = self.hashes.setdefault(key, {})
        mapping[field] = mapping.get(field, 0) + amount
        return mapping[field]

    def hdel(self, key: str, *fields: str) -> int:
        mapping = self.hashes.setdefault(key, {})
        return len([mapping.pop(field) for field in fields if field in mapping])


class FakePipeline:
    """WATCH/MULTI stub; tests are single-threaded so a watch never fails."""

    def __init__(self, redis: FakeRedis):
        self.redis = redis
        self.queued: List[tuple] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.reset()

    def watch(self, *keys: str) -> None:
        pass

    def multi(self) -> None:
        self.queued = []

    def lpos(self, key: str, value: str):
        return self.redis.lpos(key, value)

    def rpush(self, key: str, *values: str) -> None:
        self.queued.append(("rpush", key, values))

    def execute(self) -> list:
        results = [getattr(self.redis, command)(key, *args) for command, key, args in self.queued]
        self.reset()
        return results

    def reset(self) -> None:
        self.queued = []


class RecordingStore(BindingStore):
    """BindingStore that records every mutating call it forwards."""

    def __init__(self):
        self.calls: List[tuple] = []

    def create(self, binding):
        self.calls.append(("create", binding.kind, binding.role_ref_name))
        return super().create(binding)

    def update(self, binding):
        self.calls.append(("update", binding.kind, binding.name))
        return super().update(binding)

    def delete(self, binding):
        self.calls.append(("delete", binding.kind, binding.name))
        return super().delete(binding)

    @property
    def mutations(self) -> List[tuple]:
        return list(self.calls)


def make_template(name: str = "team-access", roles: Dict[str, list] | None = None) -> ScopeTemplate:
    """Create a template; ``roles`` maps role name to its subjects."""

    if roles is None:
        roles = {"admin": [ADMINS], "view": [DEVELOPERS]}
    cluster_roles = [{"role_name": role, "subjects": subjects} for role, subjects in roles.items()]
    return ScopeTemplate.objects.create(name=name, cluster_roles=cluster_roles)


def make_instance(name: str = "team-a", template_name: str = "team-access", namespaces=None) -> ScopeInstance:
    """Create an instance; no namespaces means cluster-wide."""

    return ScopeInstance.objects.create(
        name=name,
        scope_template_name=template_name,
        namespaces=list(namespaces or []),
    )


def set_roles(template: ScopeTemplate, roles: Dict[str, list]) -> ScopeTemplate:
    """Replace the roles of ``template`` and save it."""

    template.cluster_roles = [{"role_name": role, "subjects": subjects} for role, subjects in roles.items()]
    template.save()
    return template
