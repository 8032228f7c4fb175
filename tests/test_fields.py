from datetime import date

import pytest

from gdv_pipeline.errors import (
    FieldFormatError,
    OutOfRangeError,
    SizeMismatchError,
    UnsupportedLengthError,
)
from gdv_pipeline.fields import Align, Field, FieldType


def test_alphanumeric_defaults_to_left_aligned_blanks():
    field = Field.alphanumeric("ort", 10, 50)

    assert field.content == " " * 10
    assert field.align == Align.LEFT
    assert field.end == 59
    assert field.is_empty()

    field.set_content("Stuttgart")
    assert field.content == "Stuttgart "
    assert field.decode() == "Stuttgart"
    assert not field.is_empty()


def test_right_aligned_text_is_space_padded():
    field = Field("kennung", 5, 1, FieldType.ALPHANUMERIC, align=Align.RIGHT, value="abc")

    assert field.content == "  abc"


def test_content_longer_than_field_is_rejected():
    field = Field.alphanumeric("kurz", 3)

    with pytest.raises(SizeMismatchError):
        field.set_content("abcd")
    assert field.content == "   "


def test_none_resets_to_default_content():
    field = Field.numeric("n", 4, value=42)
    field.set_content(None)

    assert field.content == "0000"


def test_invalid_geometry():
    with pytest.raises(ValueError):
        Field.alphanumeric("leer", 0)
    with pytest.raises(ValueError):
        Field.alphanumeric("vorne", 3, 0)


def test_numeric_encodes_zero_padded():
    field = Field.numeric("anzahl", 4)
    assert field.content == "0000"

    field.set_content(7)
    assert field.content == "0007"
    assert field.to_int() == 7


def test_numeric_parses_existing_content():
    field = Field.numeric("anzahl", 4, value="0007")

    assert field.to_int() == 7


def test_numeric_string_is_zero_padded():
    assert Field.numeric("anzahl", 4, value="12").content == "0012"


def test_numeric_negative_value():
    field = Field.numeric("saldo", 4, value=-7)

    assert field.content == "-007"
    assert field.to_int() == -7


def test_numeric_out_of_range():
    field = Field.numeric("anzahl", 4)

    with pytest.raises(OutOfRangeError):
        field.set_content(12345)
    with pytest.raises(OutOfRangeError):
        field.set_content(-1234)


def test_numeric_garbage_is_invalid():
    field = Field.numeric("schrott", 4, value="xxxx")

    with pytest.raises(FieldFormatError):
        field.to_int()
    violations = field.validate()
    assert len(violations) == 1
    assert violations[0].subject is field
    assert violations[0].value == "xxxx"
    assert "not numeric" in violations[0].message
    assert not field.is_valid()


def test_numeric_blank_and_zero_are_both_empty():
    assert Field.numeric("n", 4).is_empty()
    blank = Field.numeric("n", 4, value="    ")
    assert blank.content == "    "
    assert blank.is_empty()
    assert blank.is_valid()
    assert blank.decode() is None
    assert not Field.numeric("n", 4, value=1).is_empty()


def test_date_unset_sentinel_is_valid_and_empty():
    field = Field.date("datum", value="00000000")

    assert field.is_empty()
    assert field.is_valid()
    assert field.decode() is None


def test_date_with_impossible_day_is_invalid():
    field = Field.date("datum", value="31042021")

    assert not field.is_empty()
    assert not field.is_valid()
    violations = field.validate()
    assert len(violations) == 1
    assert violations[0].message == "31042021 is not a valid date"
    with pytest.raises(FieldFormatError):
        field.to_date()


def test_date_valid():
    field = Field.date("datum", value="01012021")

    assert field.is_valid()
    assert field.to_date() == date(2021, 1, 1)


def test_date_starting_with_00_is_always_valid():
    field = Field.date("datum", value="00992021")

    assert not field.is_empty()
    assert field.is_valid()


def test_blank_date_is_valid():
    field = Field.date("datum")

    assert field.is_empty()
    assert field.validate() == []


@pytest.mark.parametrize(
    ("length", "valid", "invalid"),
    [
        (2, "31", "32"),
        (4, "0421", "1321"),
        (6, "042021", "132021"),
        (8, "29022020", "29022021"),
    ],
)
def test_date_pattern_selected_by_length(length, valid, invalid):
    assert Field.date("d", length=length, value=valid).is_valid()
    assert not Field.date("d", length=length, value=invalid).is_valid()


def test_date_rejects_unsupported_length():
    with pytest.raises(UnsupportedLengthError):
        Field.date("d", length=3)


def test_date_set_from_date_object():
    field = Field.date("vertragsbeginn", 44)
    field.set_content(date(2021, 1, 1))

    assert field.content == "01012021"


def test_today():
    field = Field.today("heute")

    assert field.to_date() == date.today()
    assert field.is_valid()


def test_date_to_date_on_text_field():
    with pytest.raises(FieldFormatError):
        Field.alphanumeric("text", 8, value="01012021").to_date()


@pytest.mark.parametrize(
    ("field", "value"),
    [
        (Field.alphanumeric("name", 10), "Stuttgart"),
        (Field.alphanumeric("name", 10), ""),
        (Field.numeric("anzahl", 4), 0),
        (Field.numeric("anzahl", 4), 9999),
        (Field.numeric("anzahl", 4), -999),
        (Field.date("datum"), date(2021, 12, 31)),
        (Field.date("monat", length=6), date(2021, 4, 1)),
    ],
)
def test_decode_returns_encoded_value(field, value):
    field.set_content(value)

    assert field.decode() == value


def test_control_characters_are_reported():
    field = Field.alphanumeric("name", 5, value="a\tb")

    violations = field.validate()
    assert len(violations) == 1
    assert "non-printable" in violations[0].message


def test_overlaps_and_moved():
    first = Field.alphanumeric("a", 30, 44)
    second = Field.alphanumeric("b", 4, 50)
    third = Field.alphanumeric("c", 4, 74)

    assert first.overlaps(second)
    assert second.overlaps(first)
    assert not first.overlaps(third)

    moved = first.moved(-20)
    assert moved.start == 24
    assert moved.content == first.content
    assert first.start == 44


def test_field_equality():
    assert Field.numeric("n", 4, 5, value=1) == Field.numeric("n", 4, 5, value=1)
    assert Field.numeric("n", 4, 5, value=1) != Field.numeric("n", 4, 5, value=2)


@pytest.mark.parametrize(
    ("length", "value", "content"),
    [
        (8, date(999, 1, 1), "01010999"),
        (6, date(5, 3, 1), "030005"),
        (4, date(5, 3, 1), "0305"),
    ],
)
def test_early_years_are_zero_padded(length, value, content):
    field = Field.date("datum", length=length, value=value)

    assert field.content == content
    assert len(field.content) == length
    assert field.is_valid()


def test_early_year_round_trip():
    field = Field.date("datum", value=date(999, 1, 1))

    assert field.to_date() == date(999, 1, 1)
