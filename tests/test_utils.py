import pytest

from blockbuilder.utils import count_text, deep_clone, plural_form

CARD_LABELS = {"one": "card", "few": "cards", "many": "cards", "zero": "no cards"}


@pytest.mark.parametrize(
    "count,expected",
    [
        (1, "one"),
        (21, "one"),
        (11, "many"),
        (2, "few"),
        (24, "few"),
        (12, "many"),
        (5, "many"),
        (0, "many"),
    ],
)
def test_plural_form(count, expected):
    assert plural_form(count) == expected


def test_count_text():
    assert count_text(1, CARD_LABELS) == "1 card"
    assert count_text(3, CARD_LABELS) == "3 cards"
    assert count_text(0, CARD_LABELS) == "0 no cards"


def test_count_text_falls_back():
    assert count_text(4) == "4"
    assert count_text(3, {"one": "link", "many": "links"}) == "3 links"
    assert count_text(7, {"one": "link"}) == "7 link"


def test_deep_clone_is_independent():
    original = {"cards": [{"links": [{"url": "a"}]}]}

    copy = deep_clone(original)
    copy["cards"][0]["links"][0]["url"] = "b"

    assert original["cards"][0]["links"][0]["url"] == "a"
