"""
Unit tests for Topic Registry.
Covers tree shape, leaf marking, message ordering and concurrent access.
"""

import threading
from datetime import datetime, timedelta

import pytest

from topic_explorer.models.topic_node import TopicNode
from topic_explorer.registry.topic_registry import RegistryPoisonedError, TopicRegistry


@pytest.fixture
def registry():
    return TopicRegistry()


def test_registry_initialization(registry):
    """Test creating new registry."""
    with registry.read() as root:
        assert root.name == "root"
        assert root.children == {}
        assert root.is_leaf is False
        assert root.messages == []


def test_insert_creates_every_prefix(registry):
    """Every prefix of an inserted path is reachable from the root."""
    paths = [["a", "b", "c"], ["a", "x"], ["d"], ["a", "b", "e", "f"]]
    for path in paths:
        registry.insert(path)

    for path in paths:
        for i in range(1, len(path) + 1):
            node = registry.find(path[:i])
            assert node is not None
            assert node.name == path[i - 1]


def test_insert_empty_path_marks_root_leaf(registry):
    """Empty path marks the current node itself as leaf."""
    node = registry.insert([])

    with registry.read() as root:
        assert node is root
        assert root.is_leaf is True
        assert root.messages == []


def test_intermediate_node_can_be_leaf(registry):
    """Inserting a/b then a/b/c gives a leaf "b" with a child "c"."""
    registry.insert(["a", "b"])
    registry.insert(["a", "b", "c"])

    b = registry.find(["a", "b"])
    assert b.is_leaf is True
    assert list(b.children) == ["c"]

    a = registry.find(["a"])
    assert a.is_leaf is False


def test_message_on_existing_intermediate_node(registry):
    """A topic ending on an intermediate node adds a message and marks it leaf."""
    registry.add_message(["a", "b", "c"], "deep")
    registry.add_message(["a", "b"], "shallow")

    b = registry.find(["a", "b"])
    assert b.is_leaf is True
    assert [m.payload for m in b.messages] == ["shallow"]
    assert "c" in b.children


def test_same_path_twice_appends_without_duplicates(registry):
    """Same path twice gives two messages on one node, no duplicate siblings."""
    registry.add_message(["sensor", "temp"], "21.5")
    registry.add_message(["sensor", "temp"], "21.7")

    with registry.read() as root:
        assert list(root.children) == ["sensor"]
        assert list(root.children["sensor"].children) == ["temp"]
        temp = root.children["sensor"].children["temp"]
        assert [m.payload for m in temp.messages] == ["21.5", "21.7"]


def test_add_message_does_not_change_shape(registry):
    """Repeated add_message on a known path only grows the terminal messages."""
    registry.add_message(["a", "b"], "0")
    nodes_before = registry.node_count()

    for i in range(1, 10):
        registry.add_message(["a", "b"], str(i))

    assert registry.node_count() == nodes_before
    assert len(registry.find(["a", "b"]).messages) == 10


def test_messages_keep_call_order_across_interleaving(registry):
    """Message order follows add_message calls, not timestamps."""
    late = datetime(2024, 1, 1, 12, 0, 0)
    early = late - timedelta(hours=1)

    registry.add_message(["x"], "first", late)
    registry.add_message(["y"], "other")
    registry.add_message(["x"], "second", early)
    registry.add_message(["y", "z"], "other")
    registry.add_message(["x"], "third")

    x = registry.find(["x"])
    assert [m.payload for m in x.messages] == ["first", "second", "third"]
    assert x.messages[1].timestamp == early


def test_end_to_end_sensor_scenario(registry):
    """sensor/temp twice and sensor/humidity once produce the expected tree."""
    t1 = datetime(2024, 6, 1, 10, 0, 0)
    t2 = datetime(2024, 6, 1, 10, 0, 5)
    t3 = datetime(2024, 6, 1, 10, 0, 9)

    registry.add_message(["sensor", "temp"], "21.5", t1)
    registry.add_message(["sensor", "temp"], "21.7", t2)
    registry.add_message(["sensor", "humidity"], "55", t3)

    with registry.read() as root:
        assert list(root.children) == ["sensor"]
        sensor = root.children["sensor"]
        assert list(sensor.children) == ["temp", "humidity"]
        assert [(m.timestamp, m.payload) for m in sensor.children["temp"].messages] == [
            (t1, "21.5"), (t2, "21.7")
        ]
        assert [(m.timestamp, m.payload) for m in sensor.children["humidity"].messages] == [
            (t3, "55")
        ]


def test_empty_segment_is_a_regular_key(registry):
    """Empty segments are accepted verbatim as node names."""
    registry.add_message([""], "empty topic")
    registry.add_message(["a", "", "b"], "double delimiter")

    empty = registry.find([""])
    assert empty.name == ""
    assert empty.is_leaf is True
    assert len(empty.messages) == 1
    assert registry.find(["a", "", "b"]) is not None


def test_topics_lists_leaf_paths_in_insertion_order(registry):
    registry.insert(["a", "b"])
    registry.insert(["a", "b", "c"])
    registry.insert(["z"])
    registry.insert(["a", "d"])

    assert registry.topics() == ["a/b", "a/b/c", "a/d", "z"]


def test_counts(registry):
    registry.add_message(["a", "b"], "1")
    registry.add_message(["a", "c"], "2")
    registry.add_message(["a", "c"], "3")

    assert registry.node_count() == 3
    assert registry.message_count() == 3


def test_find_missing_path(registry):
    registry.insert(["a"])
    assert registry.find(["a", "b"]) is None
    assert registry.find(["nope"]) is None


def test_reset(registry):
    registry.add_message(["a"], "1")
    registry.reset()

    assert registry.node_count() == 0
    assert registry.find(["a"]) is None


def test_failed_write_poisons_registry(registry, monkeypatch):
    """A write failing mid-mutation makes every later access fail."""
    def broken_child(self, segment):
        raise RuntimeError("boom")

    monkeypatch.setattr(TopicNode, "child", broken_child)
    with pytest.raises(RuntimeError, match="boom"):
        registry.add_message(["a"], "x")
    monkeypatch.undo()

    with pytest.raises(RegistryPoisonedError):
        registry.add_message(["a"], "x")
    with pytest.raises(RegistryPoisonedError):
        with registry.read():
            pass


def test_concurrent_insert_and_traversal(registry):
    """Readers never crash and never see a half-inserted child."""
    errors = []
    done = threading.Event()

    def writer():
        try:
            for i in range(2000):
                registry.add_message(["dev", str(i % 50), "value"], str(i))
        except Exception as e:
            errors.append(e)
        finally:
            done.set()

    def check(node):
        for key, child in node.children.items():
            assert isinstance(child, TopicNode)
            assert child.name == key
            check(child)

    def reader():
        try:
            while not done.is_set():
                with registry.read() as root:
                    check(root)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=writer)] + [
        threading.Thread(target=reader) for _ in range(3)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert errors == []
    assert registry.message_count() == 2000
    assert len(registry.find(["dev"]).children) == 50


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
