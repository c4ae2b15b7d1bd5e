"""Path grammar, key ordering and error subsets"""

from blockbuilder.paths import (
    build_error_subset_for_item,
    build_path,
    errors_under,
    first_error_key,
    order_keys,
    parse_path,
    split_path,
)


def test_parse_path_nested_key():
    """Test: A nested key splits into field, index and remainder recursively"""
    info = parse_path("cards[2].links[0].url")

    assert info.is_repeatable
    assert info.field_name == "cards"
    assert info.index == 2
    assert info.remainder == "links[0].url"

    rest = parse_path(info.remainder)
    assert rest.field_name == "links"
    assert rest.index == 0
    assert rest.remainder == "url"
    assert not parse_path(rest.remainder).is_repeatable


def test_parse_path_scalar_keys():
    for key in ("title", "cards", "cards[0]", "cards[x].title"):
        info = parse_path(key)
        assert not info.is_repeatable
        assert info.field_name == key
        assert info.remainder is None


def test_build_path_matches_parse():
    path = build_path(build_path("cards", 2, "links"), 0, "url")

    assert path == "cards[2].links[0].url"
    assert parse_path(path).remainder == "links[0].url"


def test_split_path():
    assert split_path("cards[0].links[1].url") == ([("cards", 0), ("links", 1)], "url")
    assert split_path("cards[3]") == ([("cards", 3)], "")
    assert split_path("title") == ([], "title")


def test_order_keys_scalars_first_then_index():
    assert order_keys(["title", "cards[1].title", "cards[0].title"]) == [
        "title",
        "cards[0].title",
        "cards[1].title",
    ]


def test_order_keys_compares_indices_numerically():
    keys = ["cards[10].title", "cards[2].title", "cards[9].title"]

    assert order_keys(keys) == ["cards[2].title", "cards[9].title", "cards[10].title"]


def test_order_keys_nested_and_field_names():
    keys = [
        "slides[0].title",
        "cards[2].links[10].url",
        "cards[2].links[9].url",
        "cards[2].title",
        "alpha",
        "title",
    ]

    assert order_keys(keys) == [
        "alpha",
        "title",
        "cards[2].links[10].url",
        "cards[2].links[9].url",
        "cards[2].title",
        "slides[0].title",
    ]


def test_order_keys_same_item_falls_back_to_string_order():
    assert order_keys(["cards[0].title", "cards[0].links[0].url"]) == [
        "cards[0].links[0].url",
        "cards[0].title",
    ]


def test_order_keys_is_independent_of_input_order():
    keys = ["cards[1].title", "title", "cards[0].links[0].url", "cards[0].title"]

    assert order_keys(keys) == order_keys(list(reversed(keys)))


def test_first_error_key_skips_empty_messages():
    errors = {"title": [], "cards[1].title": ["required"], "cards[3].title": ["required"]}

    assert first_error_key(errors) == "cards[1].title"
    assert first_error_key({}) is None


def test_build_error_subset_for_item():
    errors = {
        "title": ["required"],
        "cards[0].title": ["required"],
        "cards[0].links[1].url": ["invalid"],
        "cards[1].title": ["required"],
        "cards[10].title": ["required"],
    }

    assert build_error_subset_for_item(errors, "cards", 0) == {
        "cards[0].title": ["required"],
        "cards[0].links[1].url": ["invalid"],
    }
    assert build_error_subset_for_item(errors, "cards", 1, relativize=True) == {
        "title": ["required"],
    }
    assert build_error_subset_for_item(errors, "cards", 5) == {}


def test_errors_under():
    errors = {"cards": ["too many"], "cards[0].title": ["x"], "cardsx": ["y"], "title": ["z"]}

    assert errors_under(errors, "cards") == {"cards": ["too many"], "cards[0].title": ["x"]}
