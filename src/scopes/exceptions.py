"""Error taxonomy for the scope controller."""


class ScopeError(Exception):
    """Base class for every error raised by the scopes app."""


class StoreError(ScopeError):
    """A store operation failed; the reconcile pass should be retried later."""


class ObjectNotFound(StoreError):
    """The requested object does not exist (or vanished mid-operation)."""

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        where = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {where} not found")


class AlreadyExists(StoreError):
    """An object with the same name already exists in the same scope."""


class Conflict(StoreError):
    """Optimistic concurrency check failed: the object changed underneath us."""


class StoreUnavailable(StoreError):
    """The backing database could not be reached or rejected the operation."""


class AmbiguousBindingsError(ScopeError):
    """More than one binding matches a (instance, template, role) identity.

    This is an invariant violation. It is never resolved automatically since
    picking a winner could silently revoke or grant unintended access.
    """

    def __init__(self, kind: str, role_name: str, namespace: str | None = None, count: int = 2):
        self.kind = kind
        self.role_name = role_name
        self.namespace = namespace
        self.count = count
        scope = f"namespace {namespace}" if namespace else "cluster scope"
        super().__init__(f"more than one {kind} ({count}) found for role {role_name} in {scope}")


class InvalidSpec(ScopeError):
    """A template or instance cannot be turned into bindings as stored.

    Raised before any mutation; the pass is retried once the resource is fixed.
    """


class ReconcileCancelled(ScopeError):
    """The reconcile pass was abandoned because cancellation was requested."""


__all__ = [
    "ScopeError",
    "StoreError",
    "ObjectNotFound",
    "AlreadyExists",
    "Conflict",
    "StoreUnavailable",
    "AmbiguousBindingsError",
    "InvalidSpec",
    "ReconcileCancelled",
]
