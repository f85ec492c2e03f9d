"""Claims, volumes and the ownership reference between them."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .enums import ClaimConditionType, ClaimPhase, ReclaimPolicy, VolumePhase  # noqa: TC001


@dataclass(slots=True, frozen=True, order=True)
class ObjectIdentity:
    """Namespaced name of a claim; the key a reconcile pass works on."""

    namespace: str
    name: str

    @classmethod
    def parse(cls, value: str) -> ObjectIdentity:
        namespace, sep, name = value.partition("/")
        if not sep or not namespace or not name or "/" in name:
            raise ValueError(f"Expected NAMESPACE/NAME, got: {value!r}")
        return cls(namespace=namespace, name=name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(slots=True, frozen=True)
class ClaimCondition:
    type: ClaimConditionType | str
    message: str = ""


@dataclass(slots=True, frozen=True)
class PersistentVolumeClaim:
    name: str
    namespace: str
    phase: ClaimPhase | None = None
    conditions: tuple[ClaimCondition, ...] = field(default_factory=tuple)
    uid: str | None = None
    resource_version: str | None = None

    @property
    def identity(self) -> ObjectIdentity:
        return ObjectIdentity(namespace=self.namespace, name=self.name)


@dataclass(slots=True, frozen=True)
class ClaimReference:
    """The ``claimRef`` a volume keeps to the claim it is (or was) bound to.

    ``uid`` and ``resource_version`` pin the reference to one incarnation of the
    claim. Clearing them leaves the name/namespace target in place while letting
    the binding controller match the volume again.
    """

    name: str
    namespace: str
    uid: str | None = None
    resource_version: str | None = None

    def points_at(self, identity: ObjectIdentity) -> bool:
        return self.name == identity.name and self.namespace == identity.namespace

    def without_binding_tokens(self) -> ClaimReference:
        return replace(self, uid=None, resource_version=None)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(slots=True, frozen=True)
class PersistentVolume:
    name: str
    reclaim_policy: ReclaimPolicy | None = None
    phase: VolumePhase | None = None
    claim_ref: ClaimReference | None = None
    resource_version: str | None = None
