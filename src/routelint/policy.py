"""Type-to-policy inference.

Maps a handler parameter's annotation to the route constraint it implies::

    id: int              -> "int"
    when: datetime       -> "datetime"
    key: UUID | None     -> "guid"
    name: str            -> None   (no suggestion)

Classification is a total function over the closed ``SpecialType``
enumeration. Optional types unwrap exactly once.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

# Route constraints that classify a parameter's type. Any of these on a
# route parameter suppresses the add-constraint suggestion.
TYPE_POLICIES: frozenset[str] = frozenset({
    "int", "long", "bool", "datetime", "decimal", "double", "float", "guid",
})


@dataclass(frozen=True, slots=True)
class TypeRef:
    """A resolved type annotation.

    ``module`` is ``None`` when the annotation could not be resolved
    against the module's imports; such types never infer a policy.
    """

    module: str | None
    name: str
    args: tuple[TypeRef, ...] = ()

    @property
    def qualified_name(self) -> str:
        if self.module is None:
            return self.name
        return f"{self.module}.{self.name}"

    def is_same_type(self, other: TypeRef) -> bool:
        return self.module is not None and (self.module, self.name) == (other.module, other.name)

    def __str__(self) -> str:
        if not self.args:
            return self.qualified_name
        return f"{self.qualified_name}[{', '.join(str(a) for a in self.args)}]"


NONE_TYPE = TypeRef("builtins", "None")


@dataclass(frozen=True, slots=True)
class WellKnownTypes:
    """Types that need identity comparison rather than a table lookup.

    Built once per analysis run by the host and shared read-only across
    every file analyzed in that run.
    """

    guid: TypeRef

    @classmethod
    def create(cls) -> WellKnownTypes:
        return cls(guid=TypeRef("uuid", "UUID"))


class SpecialType(Enum):
    """Primitive classification of a type."""

    NONE = auto()
    BOOLEAN = auto()
    INT16 = auto()
    UINT16 = auto()
    INT32 = auto()
    UINT32 = auto()
    INT64 = auto()
    UINT64 = auto()
    DECIMAL = auto()
    SINGLE = auto()
    DOUBLE = auto()
    DATETIME = auto()
    NULLABLE = auto()


_SPECIAL_TYPES: dict[str, SpecialType] = {
    "builtins.bool": SpecialType.BOOLEAN,
    "builtins.int": SpecialType.INT32,
    "builtins.float": SpecialType.SINGLE,
    "decimal.Decimal": SpecialType.DECIMAL,
    "datetime.datetime": SpecialType.DATETIME,
    # numpy scalars
    "numpy.bool_": SpecialType.BOOLEAN,
    "numpy.int16": SpecialType.INT16,
    "numpy.uint16": SpecialType.UINT16,
    "numpy.int32": SpecialType.INT32,
    "numpy.uint32": SpecialType.UINT32,
    "numpy.int64": SpecialType.INT64,
    "numpy.uint64": SpecialType.UINT64,
    "numpy.float32": SpecialType.SINGLE,
    "numpy.float64": SpecialType.DOUBLE,
    # ctypes
    "ctypes.c_bool": SpecialType.BOOLEAN,
    "ctypes.c_short": SpecialType.INT16,
    "ctypes.c_int16": SpecialType.INT16,
    "ctypes.c_ushort": SpecialType.UINT16,
    "ctypes.c_uint16": SpecialType.UINT16,
    "ctypes.c_int": SpecialType.INT32,
    "ctypes.c_int32": SpecialType.INT32,
    "ctypes.c_uint": SpecialType.UINT32,
    "ctypes.c_uint32": SpecialType.UINT32,
    "ctypes.c_long": SpecialType.INT64,
    "ctypes.c_longlong": SpecialType.INT64,
    "ctypes.c_int64": SpecialType.INT64,
    "ctypes.c_ulong": SpecialType.UINT64,
    "ctypes.c_ulonglong": SpecialType.UINT64,
    "ctypes.c_uint64": SpecialType.UINT64,
    "ctypes.c_float": SpecialType.SINGLE,
    "ctypes.c_double": SpecialType.DOUBLE,
}

_UNION_TYPES = frozenset({"typing.Union", "types.UnionType"})


def underlying_type(type_ref: TypeRef) -> TypeRef | None:
    """The ``T`` of ``Optional[T]``, ``T | None`` or ``Union[T, None]``."""
    qualified = type_ref.qualified_name
    if qualified == "typing.Optional" and len(type_ref.args) == 1:
        return type_ref.args[0]
    if qualified in _UNION_TYPES:
        others = [arg for arg in type_ref.args if not arg.is_same_type(NONE_TYPE)]
        if len(others) == 1 and len(type_ref.args) == 2:
            return others[0]
    return None


def classify(type_ref: TypeRef) -> SpecialType:
    if type_ref.module is None:
        return SpecialType.NONE
    if underlying_type(type_ref) is not None:
        return SpecialType.NULLABLE
    return _SPECIAL_TYPES.get(type_ref.qualified_name, SpecialType.NONE)


def infer_policy(type_ref: TypeRef | None, well_known: WellKnownTypes) -> str | None:
    """Route constraint implied by *type_ref*, or ``None`` for no suggestion."""
    if type_ref is None:
        return None
    return _policy_for(type_ref, well_known, unwrap=True)


def _policy_for(type_ref: TypeRef, well_known: WellKnownTypes, *, unwrap: bool) -> str | None:
    match classify(type_ref):
        case SpecialType.BOOLEAN:
            return "bool"
        case SpecialType.INT16 | SpecialType.UINT16 | SpecialType.INT32 | SpecialType.UINT32:
            return "int"
        case SpecialType.INT64 | SpecialType.UINT64:
            return "long"
        case SpecialType.DECIMAL:
            return "decimal"
        case SpecialType.SINGLE:
            return "float"
        case SpecialType.DOUBLE:
            return "double"
        case SpecialType.DATETIME:
            return "datetime"
        case SpecialType.NULLABLE:
            inner = underlying_type(type_ref)
            if not unwrap or inner is None:
                return None
            return _policy_for(inner, well_known, unwrap=False)
        case SpecialType.NONE:
            if type_ref.is_same_type(well_known.guid):
                return "guid"
            return None


def has_type_policy(policies: Iterable[str]) -> bool:
    """True if any policy (``":int"`` or ``"int"``) classifies the type."""
    return any(policy.lstrip(":") in TYPE_POLICIES for policy in policies)
