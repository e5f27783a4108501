"""
Programmable transaction builder.

Builds ``TransactionData::V1`` bytes for a sequence of commands. Only the
pieces this bot needs are covered: object and pure u64 inputs, MoveCall,
SplitCoins and MergeCoins commands whose results can feed later calls, and
gas data. Serialization goes through ``aptos_sdk.bcs.Serializer``; every
wire type here implements ``serialize(serializer)``.

Usage::

    tb = TransactionBuilder(sender)
    req = tb.move_call(f"{oracle_pkg}::x_oracle::price_update_request",
                       [tb.object(oracle_ref, mutable=True)], [asset_type])
    tb.move_call(f"{rule_pkg}::rule::set_price_as_primary",
                 [req, tb.pure_u64(ttl), tb.object(clock_ref, mutable=False)], [asset_type])
    tx_bytes = tb.build(gas_payment, gas_price, gas_budget)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import base58
from aptos_sdk.bcs import Serializer

from creek_bot.errors import ConfigurationError
from creek_bot.helpers.bcs import encode_u64, serialize_address
from creek_bot.helpers.models import OwnershipKind, ResourceRef, normalize_sui_address

# enum tags
_CALL_ARG_PURE = 0
_CALL_ARG_OBJECT = 1
_OBJECT_ARG_OWNED = 0
_OBJECT_ARG_SHARED = 1
_ARG_GAS_COIN = 0
_ARG_INPUT = 1
_ARG_RESULT = 2
_ARG_NESTED_RESULT = 3
_COMMAND_MOVE_CALL = 0
_COMMAND_SPLIT_COINS = 2
_COMMAND_MERGE_COINS = 3
_KIND_PROGRAMMABLE = 0
_TX_DATA_V1 = 0
_EXPIRATION_NONE = 0

_PRIMITIVE_TYPE_TAGS = {
    "bool": 0,
    "u8": 1,
    "u64": 2,
    "u128": 3,
    "address": 4,
    "signer": 5,
    "u16": 8,
    "u32": 9,
    "u256": 10,
}
_VECTOR_TAG = 6
_STRUCT_TAG = 7


# ---------------------------------------------------------------------------
# Type tags
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TypeTag:
    kind: str  # primitive name, "vector" or "struct"
    address: str | None = None
    module: str | None = None
    name: str | None = None
    params: tuple["TypeTag", ...] = ()

    def serialize(self, serializer: Serializer) -> None:
        if self.kind in _PRIMITIVE_TYPE_TAGS:
            serializer.u8(_PRIMITIVE_TYPE_TAGS[self.kind])
        elif self.kind == "vector":
            serializer.u8(_VECTOR_TAG)
            self.params[0].serialize(serializer)
        else:
            serializer.u8(_STRUCT_TAG)
            serialize_address(serializer, self.address)
            serializer.str(self.module)
            serializer.str(self.name)
            serializer.sequence(list(self.params), Serializer.struct)


def _split_top_level(text: str) -> list[str]:
    parts, depth, start = [], 0, 0
    for i, ch in enumerate(text):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(text[start:i].strip())
            start = i + 1
    parts.append(text[start:].strip())
    return [p for p in parts if p]


def parse_type_tag(text: str) -> TypeTag:
    """Parse ``0x2::coin::Coin<0x2::sui::SUI>``, ``vector<u8>``, ``u64`` ..."""
    text = text.strip()
    if text in _PRIMITIVE_TYPE_TAGS:
        return TypeTag(kind=text)
    if text.startswith("vector<") and text.endswith(">"):
        return TypeTag(kind="vector", params=(parse_type_tag(text[7:-1]),))

    params: tuple[TypeTag, ...] = ()
    head = text
    if "<" in text:
        if not text.endswith(">"):
            raise ConfigurationError(f"Malformed type tag: {text}")
        lt = text.index("<")
        head = text[:lt]
        params = tuple(parse_type_tag(p) for p in _split_top_level(text[lt + 1:-1]))

    pieces = head.split("::")
    if len(pieces) != 3 or not all(pieces):
        raise ConfigurationError(f"Malformed type tag: {text}")
    address, module, name = pieces
    return TypeTag(kind="struct", address=normalize_sui_address(address), module=module, name=name, params=params)


def same_type(a: str, b: str) -> bool:
    """Type strings equal once addresses are normalized (``0x2::sui::SUI`` == ``0x000..2::sui::SUI``)."""
    try:
        return parse_type_tag(a) == parse_type_tag(b)
    except ConfigurationError:
        return a.strip() == b.strip()


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Argument:
    kind: int
    index: int = 0
    sub_index: int = 0

    def serialize(self, serializer: Serializer) -> None:
        serializer.u8(self.kind)
        if self.kind in (_ARG_INPUT, _ARG_RESULT):
            serializer.u16(self.index)
        elif self.kind == _ARG_NESTED_RESULT:
            serializer.u16(self.index)
            serializer.u16(self.sub_index)


GAS_COIN = Argument(_ARG_GAS_COIN)


@dataclass(frozen=True)
class ObjectRef:
    object_id: str
    version: int
    digest: str

    def serialize(self, serializer: Serializer) -> None:
        serialize_address(serializer, self.object_id)
        serializer.u64(self.version)
        serializer.to_bytes(base58.b58decode(self.digest))

    def as_resource(self) -> ResourceRef:
        return ResourceRef(self.object_id, OwnershipKind.ADDRESS_OWNED, version=self.version, digest=self.digest)


@dataclass
class _ObjectInput:
    ref: ResourceRef
    mutable: bool

    def serialize(self, serializer: Serializer) -> None:
        serializer.u8(_CALL_ARG_OBJECT)
        if self.ref.owner_kind is OwnershipKind.SHARED:
            serializer.u8(_OBJECT_ARG_SHARED)
            serialize_address(serializer, self.ref.object_id)
            serializer.u64(self.ref.initial_shared_version)
            serializer.bool(self.mutable)
        else:
            serializer.u8(_OBJECT_ARG_OWNED)
            ObjectRef(self.ref.object_id, self.ref.version, self.ref.digest).serialize(serializer)


@dataclass
class _PureInput:
    data: bytes

    def serialize(self, serializer: Serializer) -> None:
        serializer.u8(_CALL_ARG_PURE)
        serializer.to_bytes(self.data)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MoveCall:
    package: str
    module: str
    function: str
    type_arguments: tuple[TypeTag, ...]
    arguments: tuple[Argument, ...]

    def serialize(self, serializer: Serializer) -> None:
        serializer.u8(_COMMAND_MOVE_CALL)
        serialize_address(serializer, self.package)
        serializer.str(self.module)
        serializer.str(self.function)
        serializer.sequence(list(self.type_arguments), Serializer.struct)
        serializer.sequence(list(self.arguments), Serializer.struct)


@dataclass(frozen=True)
class SplitCoins:
    coin: Argument
    amounts: tuple[Argument, ...]

    def serialize(self, serializer: Serializer) -> None:
        serializer.u8(_COMMAND_SPLIT_COINS)
        self.coin.serialize(serializer)
        serializer.sequence(list(self.amounts), Serializer.struct)


@dataclass(frozen=True)
class MergeCoins:
    destination: Argument
    sources: tuple[Argument, ...]

    def serialize(self, serializer: Serializer) -> None:
        serializer.u8(_COMMAND_MERGE_COINS)
        self.destination.serialize(serializer)
        serializer.sequence(list(self.sources), Serializer.struct)


Command = Union[MoveCall, SplitCoins, MergeCoins]


def split_target(target: str) -> tuple[str, str, str]:
    parts = target.strip().split("::")
    if len(parts) != 3 or not all(parts):
        raise ConfigurationError(f"Target must be <package>::<module>::<function>, got {target!r}")
    return normalize_sui_address(parts[0]), parts[1], parts[2]


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class TransactionBuilder:
    """Accumulates inputs and commands, then serializes TransactionData."""

    def __init__(self, sender: str):
        self.sender = normalize_sui_address(sender)
        self._inputs: list[_ObjectInput | _PureInput] = []
        self._object_index: dict[str, int] = {}
        self.commands: list[Command] = []

    @property
    def inputs(self) -> list[_ObjectInput | _PureInput]:
        return list(self._inputs)

    def object(self, ref: ResourceRef, mutable: bool = True) -> Argument:
        """Object input; the same object used twice shares one input slot."""
        object_id = normalize_sui_address(ref.object_id)
        if object_id in self._object_index:
            idx = self._object_index[object_id]
            existing = self._inputs[idx]
            existing.mutable = existing.mutable or mutable
            return Argument(_ARG_INPUT, idx)
        if ref.owner_kind is OwnershipKind.SHARED and ref.initial_shared_version is None:
            raise ConfigurationError(f"Shared object {object_id} has no initial shared version")
        if ref.owner_kind is not OwnershipKind.SHARED and (ref.version is None or not ref.digest):
            raise ConfigurationError(f"Object {object_id} has no version/digest for an owned reference")
        self._inputs.append(_ObjectInput(ref, mutable))
        self._object_index[object_id] = len(self._inputs) - 1
        return Argument(_ARG_INPUT, len(self._inputs) - 1)

    def pure_u64(self, value: int) -> Argument:
        self._inputs.append(_PureInput(encode_u64(value)))
        return Argument(_ARG_INPUT, len(self._inputs) - 1)

    def move_call(
        self,
        target: str,
        arguments: Sequence[Argument],
        type_arguments: Sequence[str] = (),
    ) -> Argument:
        package, module, function = split_target(target)
        self.commands.append(
            MoveCall(
                package=package,
                module=module,
                function=function,
                type_arguments=tuple(parse_type_tag(t) for t in type_arguments),
                arguments=tuple(arguments),
            )
        )
        return Argument(_ARG_RESULT, len(self.commands) - 1)

    def split_coins(self, coin: Argument, amounts: Sequence[Argument]) -> list[Argument]:
        """One new coin per amount, as nested results of the split."""
        self.commands.append(SplitCoins(coin, tuple(amounts)))
        idx = len(self.commands) - 1
        return [Argument(_ARG_NESTED_RESULT, idx, i) for i in range(len(amounts))]

    def merge_coins(self, destination: Argument, sources: Sequence[Argument]) -> None:
        self.commands.append(MergeCoins(destination, tuple(sources)))

    def kind_bytes(self) -> bytes:
        s = Serializer()
        s.u8(_KIND_PROGRAMMABLE)
        s.sequence(self._inputs, Serializer.struct)
        s.sequence(self.commands, Serializer.struct)
        return s.output()

    def build(self, gas_payment: Sequence[ObjectRef], gas_price: int, gas_budget: int) -> bytes:
        if not self.commands:
            raise ConfigurationError("Transaction has no commands")
        s = Serializer()
        s.u8(_TX_DATA_V1)
        s.fixed_bytes(self.kind_bytes())
        serialize_address(s, self.sender)
        # GasData
        s.sequence(list(gas_payment), Serializer.struct)
        serialize_address(s, self.sender)
        s.u64(gas_price)
        s.u64(gas_budget)
        s.u8(_EXPIRATION_NONE)
        return s.output()
