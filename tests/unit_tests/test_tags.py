"""
TagStore unit tests
"""

from __future__ import annotations

import threading

import pytest

from linelog.tags import TagStore, is_valid_tag


class TestTagStore:
    """Add / remove / snapshot semantics"""

    def test_add_and_snapshot(self) -> None:
        store = TagStore()
        store.add("CampaignId", "Banana")
        store.add("UserId", 42)
        assert store.snapshot() == {"CampaignId": "Banana", "UserId": 42}

    def test_overwrite_keeps_position(self) -> None:
        store = TagStore({"a": 1, "b": 2})
        store.add("a", 3)
        assert list(store.snapshot().items()) == [("a", 3), ("b", 2)]

    def test_remove_missing_tag_is_a_no_op(self) -> None:
        store = TagStore({"a": 1})
        store.remove("missing")
        store.remove("a")
        assert store.snapshot() == {}
        assert len(store) == 0

    def test_snapshot_is_a_copy(self) -> None:
        store = TagStore({"a": 1})
        snapshot = store.snapshot()
        snapshot["b"] = 2
        assert "b" not in store

    def test_clear(self) -> None:
        store = TagStore({"a": 1, "b": 2})
        store.clear()
        assert store.snapshot() == {}


class TestMerging:
    """Call-site tags override ambient tags"""

    def test_call_site_wins_on_collision(self) -> None:
        store = TagStore({"shared": "ambient", "only_ambient": 1})
        merged = store.merged({"shared": "call-site", "only_call": 2})
        assert merged == {"shared": "call-site", "only_ambient": 1, "only_call": 2}

    def test_merge_without_call_site_tags(self) -> None:
        store = TagStore({"a": 1})
        assert store.merged(None) == {"a": 1}
        assert store.merged({}) == {"a": 1}

    def test_merge_does_not_modify_store(self) -> None:
        store = TagStore({"a": 1})
        store.merged({"a": 2})
        assert store.snapshot() == {"a": 1}


class TestScoped:
    def test_scoped_restores_previous_values(self) -> None:
        store = TagStore({"kept": 1, "replaced": "old"})
        with store.scoped({"replaced": "new", "added": True}):
            assert store.snapshot() == {"kept": 1, "replaced": "new", "added": True}
        assert store.snapshot() == {"kept": 1, "replaced": "old"}

    def test_scoped_restores_after_error(self) -> None:
        store = TagStore()
        with pytest.raises(RuntimeError):
            with store.scoped({"RequestId": "abc"}):
                raise RuntimeError("boom")
        assert "RequestId" not in store


class TestConcurrency:
    def test_concurrent_writers_and_readers(self) -> None:
        store = TagStore()
        errors: list[BaseException] = []

        def writer(worker: int) -> None:
            try:
                for index in range(500):
                    store.add(f"w{worker}-{index % 10}", index)
                    store.snapshot()
                    store.remove(f"w{worker}-{(index + 5) % 10}")
            except BaseException as exc:  # noqa: BLE001 - surfaced through the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=writer, args=(worker,)) for worker in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert all(name.startswith("w") for name in store.snapshot())


class TestValidation:
    @pytest.mark.parametrize(
        ("name", "value", "valid"),
        [
            ("CampaignId", "Banana", True),
            ("with-dash_and_underscore9", 1, True),
            ("foo", 3.14, True),
            ("foo", None, True),
            ("foo", b"raw", True),
            ("has space", 1, False),
            ("naïve", 1, False),
            ("", 1, False),
            (5, 1, False),
            ("foo", [1], False),
            ("foo", {"a": 1}, False),
            ("foo", object(), False),
        ],
    )
    def test_is_valid_tag(self, name, value, valid) -> None:
        assert is_valid_tag(name, value) is valid
