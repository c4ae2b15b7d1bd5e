"""Record store unit tests"""

from blockbuilder.records import RecordStore


def test_ids_are_stable_across_moves():
    store = RecordStore([{"n": 0}, {"n": 1}, {"n": 2}])
    ids = store.ids

    assert store.move(0, 2)
    assert [r["n"] for _, r in store] == [1, 2, 0]
    assert store.ids == [ids[1], ids[2], ids[0]]
    assert store.index_of(ids[0]) == 2


def test_move_out_of_range_is_noop():
    store = RecordStore([{"n": 0}, {"n": 1}])

    assert not store.move(0, 5)
    assert not store.move(-1, 0)
    assert not store.move(1, 1)
    assert store.to_list() == [{"n": 0}, {"n": 1}]


def test_remove_drops_collapse_flag():
    store = RecordStore([{"n": 0}, {"n": 1}, {"n": 2}])
    store.collapse(1)
    store.collapse(2)

    removed = store.remove(1)

    assert removed is not None
    assert store.index_of(removed) is None
    assert store.collapsed_indices() == {1}
    assert store.remove(7) is None


def test_collapse_follows_record_on_move():
    store = RecordStore([{"n": 0}, {"n": 1}])
    store.collapse(0)

    store.move(0, 1)

    assert not store.is_collapsed(0)
    assert store.is_collapsed(1)


def test_expand_is_idempotent():
    store = RecordStore([{"n": 0}])

    assert store.collapse(0)
    assert not store.collapse(0)
    assert store.expand(0)
    assert not store.expand(0)
    assert not store.toggle(3)


def test_replace_assigns_new_ids_and_clears_collapsed():
    store = RecordStore([{"n": 0}])
    old_ids = store.ids
    store.collapse(0)

    store.replace([{"n": 5}, "not a record", {"n": 6}])

    assert store.to_list() == [{"n": 5}, {"n": 6}]
    assert not set(old_ids) & set(store.ids)
    assert store.collapsed_indices() == set()


def test_values_are_copied_in_and_out():
    source = [{"tags": ["a"]}]
    store = RecordStore(source)

    source[0]["tags"].append("b")
    out = store.to_list()
    out[0]["tags"].append("c")

    assert store.to_list() == [{"tags": ["a"]}]
