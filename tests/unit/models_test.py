"""Unit tests for Pydantic models."""

import pytest
from pydantic import ValidationError

from accessor_nav.models import (
    ClassDescriptor,
    CodeAction,
    NamingConvention,
    Position,
    Reference,
    ReferenceKind,
    ResolvedLocation,
    TextEdit,
)


class TestPositionModel:
    def test_creates_position(self) -> None:
        pos = Position(row=0, column=5)
        assert pos.row == 0
        assert pos.column == 5

    def test_position_requires_row(self) -> None:
        with pytest.raises(ValidationError):
            Position(column=0)  # type: ignore[call-arg]

    def test_position_serializes_to_dict(self) -> None:
        assert Position(row=3, column=7).model_dump() == {"row": 3, "column": 7}


class TestReferenceModel:
    def test_reference_is_frozen(self) -> None:
        reference = Reference(
            symbol_text="getName",
            kind=ReferenceKind.ACCESSOR,
            source_file="/ws/a.php",
            source_position=Position(row=1, column=2),
            surrounding_line="$a->getName();",
        )
        with pytest.raises(ValidationError):
            reference.symbol_text = "other"  # type: ignore[misc]


class TestResolvedLocation:
    def test_equality(self) -> None:
        a = ResolvedLocation(file_path="/a.php", position=Position(row=1, column=4), offset=10, symbol="x")
        b = ResolvedLocation(file_path="/a.php", position=Position(row=1, column=4), offset=10, symbol="x")
        assert a == b

    def test_serializes(self) -> None:
        location = ResolvedLocation(file_path="/a.php", position=Position(row=0, column=0))
        assert location.model_dump() == {
            "file_path": "/a.php",
            "position": {"row": 0, "column": 0},
            "offset": 0,
            "symbol": None,
        }


class TestClassDescriptor:
    def test_fully_qualified_name(self) -> None:
        assert ClassDescriptor(short_name="W", namespace="App", file_path="/w.php").fully_qualified_name == "App\\W"
        assert ClassDescriptor(short_name="W", namespace="", file_path="/w.php").fully_qualified_name == "W"


class TestEnums:
    def test_naming_convention_values_match_annotations(self) -> None:
        assert NamingConvention("LOWER_CAMEL_CASE") is NamingConvention.LOWER_CAMEL
        assert NamingConvention("UPPER_CAMEL_CASE") is NamingConvention.UPPER_CAMEL


class TestCodeAction:
    def test_defaults(self) -> None:
        action = CodeAction(
            title="fix",
            edits=[TextEdit(file_path="/a.php", position=Position(row=0, column=0), new_text="x")],
        )
        assert action.kind == "quickfix"
        assert action.is_preferred is False
