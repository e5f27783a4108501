"""
Data model shared by the discovery, probing and execution layers.

Normalized Move types arrive from the fullnode as nested JSON, e.g.::

    "U64"
    {"Reference": {"Struct": {"address": "0x2", "module": "clock", "name": "Clock", "typeArguments": []}}}
    {"MutableReference": {"Struct": {...}}}
    {"TypeParameter": 0}

``ParameterDescriptor`` unwraps these into structural fields so roles can be
decided by equality on (address, module, name) instead of text matching.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


def normalize_sui_address(value: str) -> str:
    """Lowercase, 0x-prefixed, left-padded to 32 bytes."""
    raw = value.strip().lower()
    if raw.startswith("0x"):
        raw = raw[2:]
    return "0x" + raw.rjust(64, "0")


def is_object_id(value: Any) -> bool:
    if not isinstance(value, str) or not value.startswith("0x") or len(value) != 66:
        return False
    try:
        int(value[2:], 16)
    except ValueError:
        return False
    return True


class OwnershipKind(Enum):
    SHARED = "Shared"
    IMMUTABLE = "Immutable"
    ADDRESS_OWNED = "AddressOwner"
    OBJECT_OWNED = "ObjectOwner"
    UNKNOWN = "Unknown"

    @classmethod
    def from_owner(cls, owner: Any) -> "OwnershipKind":
        """Classify the ``owner`` field of a sui_getObject response."""
        if owner == "Immutable":
            return cls.IMMUTABLE
        if isinstance(owner, dict):
            if "Shared" in owner:
                return cls.SHARED
            if "Immutable" in owner:
                return cls.IMMUTABLE
            if "AddressOwner" in owner:
                return cls.ADDRESS_OWNED
            if "ObjectOwner" in owner:
                return cls.OBJECT_OWNED
        return cls.UNKNOWN

    @property
    def concurrent_safe(self) -> bool:
        return self in (OwnershipKind.SHARED, OwnershipKind.IMMUTABLE)


@dataclass(frozen=True)
class ResourceRef:
    """An on-chain object id plus what the transaction builder needs to reference it."""
    object_id: str
    owner_kind: OwnershipKind
    version: int | None = None
    digest: str | None = None
    initial_shared_version: int | None = None
    type: str | None = None


class ParameterRole(Enum):
    VERSION_STAMP = "version"
    BORROWER_POSITION = "position"
    POSITION_CAPABILITY = "capability"
    MARKET = "market"
    PRICE_REGISTRY = "price_registry"
    PRICE_ORACLE = "price_oracle"
    CLOCK_REF = "clock"
    COIN_INPUT = "coin"
    NUMERIC_AMOUNT = "amount"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class StructTag:
    address: str
    module: str
    name: str


@dataclass(frozen=True)
class ParameterDescriptor:
    """One declared parameter of a Move function, as a structural type tag."""
    raw: Any

    @property
    def reference_kind(self) -> str | None:
        if isinstance(self.raw, dict):
            if "MutableReference" in self.raw:
                return "mut"
            if "Reference" in self.raw:
                return "ref"
        return None

    @property
    def body(self) -> Any:
        if isinstance(self.raw, dict):
            if "MutableReference" in self.raw:
                return self.raw["MutableReference"]
            if "Reference" in self.raw:
                return self.raw["Reference"]
        return self.raw

    @property
    def is_mutable(self) -> bool:
        # by-value object parameters are consumed, so they need mutable access too
        return self.reference_kind != "ref"

    @property
    def primitive(self) -> str | None:
        body = self.body
        return body if isinstance(body, str) else None

    @property
    def struct(self) -> StructTag | None:
        body = self.body
        if isinstance(body, dict) and isinstance(body.get("Struct"), dict):
            s = body["Struct"]
            return StructTag(
                address=normalize_sui_address(str(s.get("address", "0x0"))),
                module=str(s.get("module", "")),
                name=str(s.get("name", "")),
            )
        return None

    @property
    def is_tx_context(self) -> bool:
        tag = self.struct
        return (
            tag is not None
            and tag.address == normalize_sui_address("0x2")
            and tag.module == "tx_context"
            and tag.name == "TxContext"
        )

    def describe(self) -> str:
        tag = self.struct
        if tag is not None:
            return f"{tag.module}::{tag.name}"
        if self.primitive is not None:
            return self.primitive
        return str(self.raw)


@dataclass(frozen=True)
class EntryPoint:
    package_id: str
    module: str
    function: str
    parameters: tuple[ParameterDescriptor, ...] = ()
    type_parameter_count: int = 0
    is_entry: bool = True

    @property
    def target(self) -> str:
        return f"{self.package_id}::{self.module}::{self.function}"

    @property
    def qualified_name(self) -> str:
        return f"{self.module}::{self.function}".lower()

    @property
    def call_parameters(self) -> tuple[ParameterDescriptor, ...]:
        """Parameters the caller must supply (TxContext is injected by the runtime)."""
        return tuple(p for p in self.parameters if not p.is_tx_context)

    @property
    def needs_type_argument(self) -> bool:
        return self.type_parameter_count > 0


@dataclass(frozen=True)
class RankedEntry:
    entry: EntryPoint
    score: int
    roles: tuple[ParameterRole, ...] = ()

    @property
    def needs_registry(self) -> bool:
        return ParameterRole.PRICE_REGISTRY in self.roles


@dataclass(frozen=True)
class RoleBindings:
    """One resolved object id (or amount) per parameter role; None means unbound."""
    version_id: str | None = None
    position_id: str | None = None
    capability_id: str | None = None
    market_id: str | None = None
    registry_id: str | None = None
    oracle_id: str | None = None
    clock_id: str | None = None
    amount: int | None = None

    def value_for(self, role: ParameterRole) -> str | int | None:
        return {
            ParameterRole.VERSION_STAMP: self.version_id,
            ParameterRole.BORROWER_POSITION: self.position_id,
            ParameterRole.POSITION_CAPABILITY: self.capability_id,
            ParameterRole.MARKET: self.market_id,
            ParameterRole.PRICE_REGISTRY: self.registry_id,
            ParameterRole.PRICE_ORACLE: self.oracle_id,
            ParameterRole.CLOCK_REF: self.clock_id,
            ParameterRole.NUMERIC_AMOUNT: self.amount,
            # split from the wallet at call time, sized by the amount
            ParameterRole.COIN_INPUT: self.amount,
        }.get(role)

    def with_amount(self, amount: int) -> "RoleBindings":
        return replace(self, amount=amount)

    def with_registry(self, registry_id: str | None) -> "RoleBindings":
        return replace(self, registry_id=registry_id)


class FailureKind(Enum):
    RESOURCE_LIMIT = "resource_limit"
    FEE_SHORTFALL = "fee_shortfall"
    OTHER = "other"


@dataclass(frozen=True)
class ProbeResult:
    accepted: bool
    error_message: str | None = None
    classification: FailureKind | None = None
    amount: int | None = None

    @property
    def resource_limited(self) -> bool:
        return not self.accepted and self.classification is FailureKind.RESOURCE_LIMIT

    @property
    def usable(self) -> bool:
        """The path works: accepted, or only rejected for size."""
        return self.accepted or self.resource_limited


@dataclass(frozen=True)
class CollateralLookup:
    found: bool
    available: int | None = None


@dataclass(frozen=True)
class PositionPick:
    capability_id: str
    position_id: str
    available: int | None = None


@dataclass(frozen=True)
class RegistrySelection:
    registry_id: str | None
    verified: bool = False


@dataclass
class ExecutionOutcome:
    success: bool
    final_amount: int
    digest: str | None = None
    attempts: int = 0
    events: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class EntrySelection:
    """The entry point chosen for a run and the registry it will be called with."""
    ranked: RankedEntry
    registry: RegistrySelection

    @property
    def entry(self) -> EntryPoint:
        return self.ranked.entry
