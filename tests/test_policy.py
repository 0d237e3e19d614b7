"""Tests for routelint.policy — type-to-constraint inference."""

import pytest

from routelint.policy import (
    NONE_TYPE,
    SpecialType,
    TypeRef,
    WellKnownTypes,
    classify,
    has_type_policy,
    infer_policy,
    underlying_type,
)

INT = TypeRef("builtins", "int")
STR = TypeRef("builtins", "str")
UUID = TypeRef("uuid", "UUID")


@pytest.fixture
def well_known() -> WellKnownTypes:
    return WellKnownTypes.create()


class TestInferPolicy:
    @pytest.mark.parametrize(
        ("type_ref", "policy"),
        [
            (TypeRef("builtins", "int"), "int"),
            (TypeRef("builtins", "bool"), "bool"),
            (TypeRef("builtins", "float"), "float"),
            (TypeRef("decimal", "Decimal"), "decimal"),
            (TypeRef("datetime", "datetime"), "datetime"),
            (TypeRef("numpy", "int16"), "int"),
            (TypeRef("numpy", "uint32"), "int"),
            (TypeRef("numpy", "int64"), "long"),
            (TypeRef("numpy", "float64"), "double"),
            (TypeRef("ctypes", "c_double"), "double"),
            (TypeRef("ctypes", "c_float"), "float"),
            (TypeRef("uuid", "UUID"), "guid"),
        ],
    )
    def test_primitive_types(self, type_ref: TypeRef, policy: str, well_known: WellKnownTypes) -> None:
        assert infer_policy(type_ref, well_known) == policy

    @pytest.mark.parametrize(
        "type_ref",
        [
            STR,
            TypeRef("builtins", "bytes"),
            TypeRef("datetime", "date"),
            TypeRef("builtins", "list", (INT,)),
            TypeRef("__module__", "User"),
        ],
    )
    def test_no_suggestion(self, type_ref: TypeRef, well_known: WellKnownTypes) -> None:
        assert infer_policy(type_ref, well_known) is None

    def test_missing_annotation(self, well_known: WellKnownTypes) -> None:
        assert infer_policy(None, well_known) is None

    def test_unresolved_name_never_suggests(self, well_known: WellKnownTypes) -> None:
        assert infer_policy(TypeRef(None, "int"), well_known) is None

    def test_optional_unwraps(self, well_known: WellKnownTypes) -> None:
        assert infer_policy(TypeRef("typing", "Optional", (INT,)), well_known) == "int"

    def test_union_with_none_unwraps(self, well_known: WellKnownTypes) -> None:
        pipe = TypeRef("types", "UnionType", (UUID, NONE_TYPE))
        union = TypeRef("typing", "Union", (NONE_TYPE, INT))

        assert infer_policy(pipe, well_known) == "guid"
        assert infer_policy(union, well_known) == "int"

    def test_unwraps_only_once(self, well_known: WellKnownTypes) -> None:
        nested = TypeRef("typing", "Optional", (TypeRef("typing", "Optional", (INT,)),))
        assert infer_policy(nested, well_known) is None

    def test_union_of_two_types_is_not_optional(self, well_known: WellKnownTypes) -> None:
        assert infer_policy(TypeRef("typing", "Union", (INT, STR)), well_known) is None
        assert infer_policy(TypeRef("types", "UnionType", (INT, STR, NONE_TYPE)), well_known) is None

    def test_custom_guid_type(self) -> None:
        custom = WellKnownTypes(guid=TypeRef("mylib.ids", "Guid"))

        assert infer_policy(TypeRef("mylib.ids", "Guid"), custom) == "guid"
        assert infer_policy(UUID, custom) is None


class TestClassify:
    def test_nullable(self) -> None:
        assert classify(TypeRef("typing", "Optional", (INT,))) is SpecialType.NULLABLE

    def test_unknown_module(self) -> None:
        assert classify(TypeRef(None, "int")) is SpecialType.NONE

    def test_underlying_type(self) -> None:
        assert underlying_type(TypeRef("typing", "Optional", (STR,))) == STR
        assert underlying_type(STR) is None


class TestHasTypePolicy:
    @pytest.mark.parametrize(
        ("policies", "expected"),
        [
            ((":int",), True),
            ((":min(1)", ":guid"), True),
            (("long",), True),
            ((":min(1)",), False),
            ((":alpha", ":length(4)"), False),
            ((), False),
        ],
    )
    def test_detection(self, policies: tuple[str, ...], expected: bool) -> None:
        assert has_type_policy(policies) is expected


class TestTypeRef:
    def test_str(self) -> None:
        assert str(TypeRef("typing", "Optional", (INT,))) == "typing.Optional[builtins.int]"
        assert str(TypeRef(None, "Foo")) == "Foo"

    def test_unresolved_types_are_never_the_same(self) -> None:
        assert not TypeRef(None, "int").is_same_type(TypeRef(None, "int"))
