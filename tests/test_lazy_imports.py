"""Tests for routelint.__init__ — lazy exports cover all public names."""

import pytest

import routelint


@pytest.mark.parametrize("name", routelint.__all__)
def test_all_names_resolve(name: str) -> None:
    """Every name in __all__ must resolve via __getattr__ without error."""
    obj = getattr(routelint, name)
    assert obj is not None, f"routelint.{name} resolved to None"


def test_unknown_name_raises_attribute_error() -> None:
    with pytest.raises(AttributeError, match="no attribute"):
        routelint.__getattr__("ThisDoesNotExist")
