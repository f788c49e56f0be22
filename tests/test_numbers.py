import pytest

from phototale.commands import parse_number_from_string


@pytest.mark.parametrize(
    "spoken, expected",
    [
        ("3 seconds", 3),
        ("10", 10),
        ("three seconds", 3),
        ("Five", 5),
        ("in 5 seconds", 5),
        ("in seven", 7),
        ("about 4", 4),
    ],
)
def test_numbers_are_recovered(spoken, expected):
    assert parse_number_from_string(spoken) == expected


@pytest.mark.parametrize("spoken", [None, "", "   ", "soon", "later please"])
def test_non_numeric_text_gives_none(spoken):
    assert parse_number_from_string(spoken) is None
