"""Error router tests"""

import asyncio

import pytest

from blockbuilder.repeatable import RepeatableInstance
from blockbuilder.router import ErrorRouter

from conftest import card, link


class RecordingViewport:
    def __init__(self, missing=()):
        self.missing = set(missing)
        self.calls = []

    async def settle(self):
        self.calls.append(("settle",))

    def locate(self, path):
        self.calls.append(("locate", path))
        return path not in self.missing

    def decorate(self, errors):
        self.calls.append(("decorate", tuple(sorted(errors))))

    def scroll_to(self, path):
        self.calls.append(("scroll", path))

    def focus(self, path):
        self.calls.append(("focus", path))


@pytest.fixture
def cards(cards_field):
    value = [
        card("A", links=[link(), link(url="bad")]),
        card("B"),
        card("", links=[link()]),
    ]
    return RepeatableInstance(cards_field, value)


def test_route_expands_ancestors_before_focus(cards):
    """Test: Collapsed card and collapsed link are expanded, then the leaf is focused"""
    cards.collapse_item(0)
    links = cards.nested_instance(0, "links")
    links.collapse_item(1)
    viewport = RecordingViewport()
    errors = {"cards[0].links[1].url": ["invalid"]}

    result = asyncio.run(ErrorRouter({"cards": cards}).route_to_first_error(errors, viewport))

    assert result.key == "cards[0].links[1].url"
    assert result.reached
    assert result.expanded == [("cards", 0), ("cards[0].links", 1)]
    assert not cards.is_item_collapsed(0)
    assert not links.is_item_collapsed(1)
    assert viewport.calls == [
        ("settle",),
        ("settle",),
        ("decorate", ("cards[0].links[1].url",)),
        ("locate", "cards[0].links[1].url"),
        ("scroll", "cards[0].links[1].url"),
        ("focus", "cards[0].links[1].url"),
    ]


def test_route_skips_settle_for_expanded_items(cards):
    viewport = RecordingViewport()

    result = asyncio.run(
        ErrorRouter({"cards": cards}).route_to_first_error({"cards[1].title": ["x"]}, viewport)
    )

    assert result.reached
    assert result.expanded == []
    assert ("settle",) not in viewport.calls


def test_route_picks_first_key_in_order(cards):
    viewport = RecordingViewport()
    errors = {"cards[2].title": ["x"], "cards[0].links[1].url": ["y"], "title": []}

    result = asyncio.run(ErrorRouter({"cards": cards}).route_to_first_error(errors, viewport))

    assert result.key == "cards[0].links[1].url"


def test_route_scalar_key_focuses_directly(cards):
    viewport = RecordingViewport()

    result = asyncio.run(
        ErrorRouter({"cards": cards}).route_to_first_error({"title": ["x"]}, viewport)
    )

    assert result.reached
    assert viewport.calls[-2:] == [("scroll", "title"), ("focus", "title")]


@pytest.mark.parametrize("key", ["slides[0].title", "cards[9].title", "cards[1].links[4].url"])
def test_route_missing_container_aborts_silently(cards, key):
    viewport = RecordingViewport()

    result = asyncio.run(ErrorRouter({"cards": cards}).route_to_first_error({key: ["x"]}, viewport))

    assert result.key == key
    assert not result.reached
    assert viewport.calls == []


def test_route_unrendered_leaf_is_not_reached(cards):
    viewport = RecordingViewport(missing={"cards[1].title"})

    result = asyncio.run(
        ErrorRouter({"cards": cards}).route_to_first_error({"cards[1].title": ["x"]}, viewport)
    )

    assert not result.reached
    assert ("focus", "cards[1].title") not in viewport.calls


def test_route_without_errors_returns_none(cards):
    assert asyncio.run(ErrorRouter({"cards": cards}).route_to_first_error({}, RecordingViewport())) is None


def test_expand_for_errors_opens_every_ancestor_once(cards):
    cards.collapse_item(0)
    cards.collapse_item(1)
    cards.collapse_item(2)
    errors = {
        "cards[2].title": ["x"],
        "cards[0].title": ["x"],
        "cards[0].links[1].url": ["y"],
    }
    viewport = RecordingViewport()

    expanded = asyncio.run(ErrorRouter({"cards": cards}).expand_for_errors(errors, viewport))

    assert expanded == [("cards", 0), ("cards", 2)]
    assert cards.is_item_collapsed(1)
    assert viewport.calls.count(("settle",)) == 2


def test_handle_validation_errors(cards):
    cards.collapse_item(2)
    links = cards.nested_instance(0, "links")
    links.collapse_item(1)
    errors = {"cards[2].title": ["required"], "cards[0].links[1].url": ["invalid"]}

    result = asyncio.run(
        ErrorRouter({"cards": cards}).handle_validation_errors(errors, RecordingViewport())
    )

    assert cards.errors == errors
    assert links.errors == {"links[1].url": ["invalid"]}
    assert result.key == "cards[0].links[1].url"
    assert result.expanded == [("cards[0].links", 1), ("cards", 2)]
    assert not cards.is_item_collapsed(2)


def test_handle_validation_errors_without_expand_all(cards):
    cards.collapse_item(2)
    errors = {"cards[0].title": ["required"], "cards[2].title": ["required"]}

    result = asyncio.run(
        ErrorRouter({"cards": cards}).handle_validation_errors(
            errors, RecordingViewport(), expand_all=False
        )
    )

    assert result.key == "cards[0].title"
    assert cards.is_item_collapsed(2)
