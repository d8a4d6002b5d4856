from __future__ import annotations

from typing import Annotated, Optional, Protocol, Union

import pytest

from injected.exceptions import InjectedInvalidRegistrationError
from injected.keys import dependency_key, is_runtime_class, select_key


class _Service:
    class Nested:
        pass


class _ServiceProtocol(Protocol):
    def run(self) -> None: ...


def test_class_key_uses_module_and_qualname() -> None:
    assert dependency_key(_Service) == f"{__name__}._Service"
    assert dependency_key(_Service.Nested) == f"{__name__}._Service.Nested"
    assert dependency_key(int) == "builtins.int"


def test_protocol_key_differs_from_implementation_key() -> None:
    assert dependency_key(_ServiceProtocol) != dependency_key(_Service)


def test_same_short_name_in_different_scopes_do_not_collide() -> None:
    def build() -> type[_Service]:
        class _Service:
            pass

        return _Service

    local_service = build()

    assert local_service.__name__ == _Service.__name__
    assert dependency_key(local_service) != dependency_key(_Service)


def test_typing_constructs_use_repr() -> None:
    assert dependency_key(list[int]) == repr(list[int])
    assert dependency_key(Annotated[_Service, "replica"]) == dependency_key(
        Annotated[_Service, "replica"],
    )
    assert dependency_key(Annotated[_Service, "replica"]) != dependency_key(
        Annotated[_Service, "primary"],
    )


def test_optional_spellings_share_one_key() -> None:
    expected = f"Union[builtins.NoneType, {__name__}._Service]"

    assert dependency_key(Optional[_Service]) == expected  # noqa: UP045
    assert dependency_key(Union[_Service, None]) == expected  # noqa: UP007
    assert dependency_key(_Service | None) == expected
    assert dependency_key(None | _Service) == expected


def test_union_key_keeps_module_of_each_member() -> None:
    def build() -> type[_Service]:
        class _Service:
            pass

        return _Service

    local_service = build()

    assert dependency_key(local_service | None) != dependency_key(_Service | None)
    assert dependency_key(_Service | int) == f"Union[builtins.int, {__name__}._Service]"


@pytest.mark.parametrize("value", [None, "builtins.int"])
def test_none_and_strings_are_rejected(value: object) -> None:
    with pytest.raises(InjectedInvalidRegistrationError):
        dependency_key(value)


def test_select_key_prefers_explicit_key() -> None:
    assert select_key(_Service, "custom") == "custom"
    assert select_key(None, "custom") == "custom"
    assert select_key(_Service, None) == dependency_key(_Service)


def test_is_runtime_class() -> None:
    assert is_runtime_class(_Service)
    assert not is_runtime_class(list[int])
    assert not is_runtime_class(_Service())
