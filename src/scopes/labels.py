"""Ownership labels and label selectors for the bindings we manage.

Every binding created by the controller carries the identity of the
ScopeInstance and ScopeTemplate it was derived from, the spec hash of each,
and the role name it grants. Together they form a composite key: the
reconciler finds "its" bindings by selecting on these labels, and finds stale
ones by selecting on hash mismatches.
"""

from dataclasses import dataclass
from typing import Mapping

# UID keys track the owners of the bindings we create.
INSTANCE_UID_KEY = "scopes.rbac.io/scope-instance-uid"
TEMPLATE_UID_KEY = "scopes.rbac.io/scope-template-uid"

# Hash keys track bindings abandoned by a spec change.
INSTANCE_HASH_KEY = "scopes.rbac.io/scope-instance-hash"
TEMPLATE_HASH_KEY = "scopes.rbac.io/scope-template-hash"

# One template yields one binding per role; this tells them apart.
ROLE_NAME_KEY = "scopes.rbac.io/role-name"

EQUALS = "="
NOT_EQUALS = "!="


@dataclass(frozen=True)
class OwnershipLabels:
    """Typed view over the identity labels of a single binding."""

    instance_uid: str
    template_uid: str
    instance_hash: str
    template_hash: str
    role_name: str

    def to_labels(self) -> dict[str, str]:
        return {
            INSTANCE_UID_KEY: self.instance_uid,
            TEMPLATE_UID_KEY: self.template_uid,
            INSTANCE_HASH_KEY: self.instance_hash,
            TEMPLATE_HASH_KEY: self.template_hash,
            ROLE_NAME_KEY: self.role_name,
        }

    @classmethod
    def from_labels(cls, labels: Mapping[str, str]) -> "OwnershipLabels":
        """Read identity labels back; raises KeyError when one is missing."""
        return cls(
            instance_uid=labels[INSTANCE_UID_KEY],
            template_uid=labels[TEMPLATE_UID_KEY],
            instance_hash=labels[INSTANCE_HASH_KEY],
            template_hash=labels[TEMPLATE_HASH_KEY],
            role_name=labels[ROLE_NAME_KEY],
        )


def ownership_labels(instance, template, role_name: str) -> OwnershipLabels:
    """Build the labels for a binding of ``role_name`` from current specs."""

    return OwnershipLabels(
        instance_uid=str(instance.uid),
        template_uid=str(template.uid),
        instance_hash=instance.spec_hash(),
        template_hash=template.spec_hash(),
        role_name=role_name,
    )


def is_owned_by(binding, instance) -> bool:
    """Check the owner reference, not the labels.

    Labels can be edited by anyone with write access to the binding; the
    owner reference is enforced by the store.
    """

    return binding.owner_id is not None and binding.owner_id == instance.pk


@dataclass(frozen=True)
class Requirement:
    """Single ``key=value`` or ``key!=value`` clause of a selector."""

    key: str
    operator: str
    value: str

    def __post_init__(self):
        if self.operator not in (EQUALS, NOT_EQUALS):
            raise ValueError(f"Unsupported selector operator: {self.operator!r}")
        if not self.key:
            raise ValueError("Selector key must not be empty")

    def matches(self, labels: Mapping[str, str]) -> bool:
        # A missing key satisfies "!=", as with Kubernetes selectors.
        if self.operator == EQUALS:
            return self.key in labels and labels[self.key] == self.value
        return labels.get(self.key) != self.value

    def __str__(self) -> str:
        return f"{self.key}{self.operator}{self.value}"


class LabelSelector:
    """Conjunction of requirements; the empty selector matches everything."""

    def __init__(self, requirements=()):
        self.requirements: tuple[Requirement, ...] = tuple(requirements)

    @classmethod
    def from_mapping(cls, labels: Mapping[str, str]) -> "LabelSelector":
        """Selector requiring every given label to match exactly."""
        return cls(Requirement(key, EQUALS, value) for key, value in labels.items())

    @classmethod
    def parse(cls, text: str) -> "LabelSelector":
        """Parse ``"a=b,c!=d"``; ``==`` is accepted as a synonym for ``=``."""
        requirements = []
        for raw in (text or "").split(","):
            clause = raw.strip()
            if not clause:
                continue
            if "!=" in clause:
                key, value = clause.split("!=", 1)
                operator = NOT_EQUALS
            elif "==" in clause:
                key, value = clause.split("==", 1)
                operator = EQUALS
            elif "=" in clause:
                key, value = clause.split("=", 1)
                operator = EQUALS
            else:
                raise ValueError(f"Invalid selector clause: {clause!r}")
            requirements.append(Requirement(key.strip(), operator, value.strip()))
        return cls(requirements)

    def add(self, key: str, operator: str, value: str) -> "LabelSelector":
        """Return a new selector with one more requirement."""
        return LabelSelector(self.requirements + (Requirement(key, operator, value),))

    def matches(self, labels: Mapping[str, str] | None) -> bool:
        labels = labels or {}
        return all(requirement.matches(labels) for requirement in self.requirements)

    def __bool__(self) -> bool:
        return bool(self.requirements)

    def __eq__(self, other) -> bool:
        return isinstance(other, LabelSelector) and self.requirements == other.requirements

    def __str__(self) -> str:
        return ",".join(str(requirement) for requirement in self.requirements)

    def __repr__(self) -> str:
        return f"LabelSelector({str(self)!r})"


def instance_selector(instance) -> LabelSelector:
    """Everything owned by ``instance`` across every template and scope."""

    return LabelSelector([Requirement(INSTANCE_UID_KEY, EQUALS, str(instance.uid))])


def identity_selector(instance, template, role_name: str) -> LabelSelector:
    """The unique binding for (instance, template, role) at one scope."""

    return LabelSelector(
        [
            Requirement(INSTANCE_UID_KEY, EQUALS, str(instance.uid)),
            Requirement(TEMPLATE_UID_KEY, EQUALS, str(template.uid)),
            Requirement(ROLE_NAME_KEY, EQUALS, role_name),
        ]
    )


def stale_instance_selector(instance) -> LabelSelector:
    """Bindings of ``instance`` created from a previous instance spec."""

    return instance_selector(instance).add(INSTANCE_HASH_KEY, NOT_EQUALS, instance.spec_hash())


def stale_template_selector(instance, template) -> LabelSelector:
    """Bindings of ``instance`` created from a previous spec of ``template``."""

    return LabelSelector(
        [
            Requirement(INSTANCE_UID_KEY, EQUALS, str(instance.uid)),
            Requirement(TEMPLATE_UID_KEY, EQUALS, str(template.uid)),
            Requirement(TEMPLATE_HASH_KEY, NOT_EQUALS, template.spec_hash()),
        ]
    )


__all__ = [
    "INSTANCE_UID_KEY",
    "TEMPLATE_UID_KEY",
    "INSTANCE_HASH_KEY",
    "TEMPLATE_HASH_KEY",
    "ROLE_NAME_KEY",
    "EQUALS",
    "NOT_EQUALS",
    "OwnershipLabels",
    "ownership_labels",
    "is_owned_by",
    "Requirement",
    "LabelSelector",
    "instance_selector",
    "identity_selector",
    "stale_instance_selector",
    "stale_template_selector",
]
