import pytest

from lazyvid.core.source import Resolution, SourceMedia
from lazyvid.core.timeline import ItemIdGenerator, TimelineItem, TimelineModel


def _source(path="/media/a.mp4", duration=10.0):
    return SourceMedia(path, duration, Resolution(1920, 1080))


def _item(item_id, start, trim_start=0.0, trim_end=10.0):
    return TimelineItem(item_id, _source(), start, trim_start, trim_end)


def _assert_contiguous(model):
    items = model.items()
    if items:
        assert items[0].start_time == 0
    for left, right in zip(items, items[1:]):
        assert left.end_time == right.start_time


def test_compact_sorts_and_closes_gaps():
    model = TimelineModel()
    model.append(_item("c", 40.0, 0.0, 3.0))
    model.append(_item("a", 5.0, 2.0, 6.0))
    model.append(_item("b", 12.0))
    model.compact()
    assert [i.id for i in model.items()] == ["a", "b", "c"]
    assert [i.start_time for i in model.items()] == [0.0, 4.0, 14.0]
    assert model.total_duration() == 17.0
    _assert_contiguous(model)


def test_compact_is_idempotent_and_stable_for_ties():
    model = TimelineModel()
    model.append(_item("first", 3.0))
    model.append(_item("second", 3.0))
    model.compact()
    before = [(i.id, i.start_time) for i in model.items()]
    model.compact()
    assert [(i.id, i.start_time) for i in model.items()] == before
    assert before[0][0] == "first"


def test_item_containing_is_half_open():
    model = TimelineModel()
    model.append(_item("a", 0.0))
    model.append(_item("b", 10.0))
    model.compact()
    assert model.item_containing(0.0).id == "a"
    assert model.item_containing(9.999).id == "a"
    assert model.item_containing(10.0).id == "b"
    assert model.item_containing(20.0) is None
    assert model.item_containing(-1.0) is None


def test_item_containing_tolerates_a_gap():
    model = TimelineModel()
    model.append(_item("a", 0.0, 0.0, 2.0))
    model.append(_item("b", 5.0, 0.0, 2.0))  # not compacted
    assert model.item_containing(3.0) is None


def test_reorder_restacks_by_list_order():
    model = TimelineModel()
    for idx, name in enumerate("abc"):
        model.append(_item(name, idx * 10.0))
    model.compact()
    assert model.reorder("c", 0)
    assert [i.id for i in model.items()] == ["c", "a", "b"]
    _assert_contiguous(model)
    assert not model.reorder("missing", 0)


def test_remove_and_lookup():
    model = TimelineModel()
    model.append(_item("a", 0.0))
    assert model.index_of("a") == 0
    assert model.remove("a").id == "a"
    assert model.remove("a") is None
    assert model.get("a") is None
    assert model.index_of("a") == -1
    assert model.total_duration() == 0.0
    assert len(model) == 0


def test_items_view_is_read_only():
    model = TimelineModel()
    model.append(_item("a", 0.0))
    view = model.items()
    with pytest.raises(AttributeError):
        view.append(_item("b", 0.0))


def test_item_time_mapping():
    item = _item("a", 4.0, 2.0, 8.0)
    assert item.visible_duration == 6.0
    assert item.end_time == 10.0
    assert item.source_time_at(5.0) == 3.0
    assert item.global_time_at(3.0) == 5.0


def test_id_generator_is_monotonic():
    gen = ItemIdGenerator()
    assert [gen.next() for _ in range(3)] == ["item-1", "item-2", "item-3"]
    assert ItemIdGenerator("clip").next() == "clip-1"
