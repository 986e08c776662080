"""Tests for the observable tool state store."""

from tooldeck.models.state import ToolStateEntry


class TestStoreBasics:

    def test_get_unknown(self, store):
        assert store.get("missing") is None

    def test_set_and_get(self, store):
        store.set("c1", ToolStateEntry(output={"v": 1}))

        entry = store.get("c1")
        assert entry.output == {"v": 1}
        assert entry.seq_no == 1
        assert entry.renderable

    def test_seq_no_assigned_once(self, store):
        store.set("a", ToolStateEntry(loading=True))
        store.set("b", ToolStateEntry(loading=True))
        store.set("a", ToolStateEntry(output=1))

        assert store.get("a").seq_no == 1
        assert store.get("b").seq_no == 2

    def test_seq_no_on_input_is_ignored(self, store):
        store.set("a", ToolStateEntry(seq_no=42))
        assert store.get("a").seq_no == 1

    def test_snapshots_are_copy_on_write(self, store):
        store.set("a", ToolStateEntry(output=1))
        before = store.get_snapshot()

        store.set("b", ToolStateEntry(output=2))
        after = store.get_snapshot()

        assert before is not after
        assert set(before) == {"a"}
        assert set(after) == {"a", "b"}

    def test_unchanged_store_returns_same_snapshot(self, store):
        store.set("a", ToolStateEntry(output=1))
        assert store.get_snapshot() is store.get_snapshot()


class TestSubscriptions:

    def test_key_listeners_before_global(self, store):
        calls = []
        store.subscribe_all(lambda: calls.append("global"))
        store.subscribe("a", lambda: calls.append("key"))

        store.set("a", ToolStateEntry(output=1))

        assert calls == ["key", "global"]

    def test_listener_sees_new_snapshot(self, store):
        seen = []
        store.subscribe("a", lambda: seen.append(store.get("a").output))

        store.set("a", ToolStateEntry(output="fresh"))

        assert seen == ["fresh"]

    def test_key_listener_only_for_its_key(self, store):
        calls = []
        store.subscribe("a", lambda: calls.append("a"))

        store.set("b", ToolStateEntry(output=1))

        assert calls == []

    def test_unsubscribe(self, store):
        calls = []
        off_key = store.subscribe("a", lambda: calls.append("key"))
        off_all = store.subscribe_all(lambda: calls.append("global"))

        off_key()
        off_all()
        off_key()
        store.set("a", ToolStateEntry(output=1))

        assert calls == []

    def test_listener_may_unsubscribe_during_notification(self, store):
        calls = []

        def once():
            calls.append("once")
            off()

        off = store.subscribe_all(once)
        store.subscribe_all(lambda: calls.append("other"))

        store.set("a", ToolStateEntry())
        store.set("a", ToolStateEntry())

        assert calls == ["once", "other", "other"]

    def test_clear(self, store):
        calls = []
        store.set("a", ToolStateEntry(output=1))
        store.subscribe("a", lambda: calls.append("key"))
        store.subscribe_all(lambda: calls.append("global"))

        store.clear()

        assert store.get("a") is None
        assert store.get_snapshot() == {}
        assert calls == ["key", "global"]

        store.set("b", ToolStateEntry())
        assert store.get("b").seq_no == 1


class TestEntityGrouping:
    """Anchors, followups and per-entity views."""

    def test_find_anchor_is_oldest(self, store):
        store.set("first", ToolStateEntry(entity_id="weather:paris", output=1))
        store.set("other", ToolStateEntry(entity_id="weather:rome", output=2))

        anchor_id, anchor = store.find_anchor("weather:paris")

        assert anchor_id == "first"
        assert anchor.output == 1
        assert store.find_anchor("weather:oslo") is None

    def test_followup_output_merges_into_anchor(self, store):
        store.set("first", ToolStateEntry(entity_id="weather:paris", output={"temp": 10}))
        store.set("second", ToolStateEntry(entity_id="weather:paris", loading=True))
        store.set("second", ToolStateEntry(entity_id="weather:paris", output={"temp": 12}))

        anchor = store.get("first")
        followup = store.get("second")

        assert anchor.output == {"temp": 12}
        assert anchor.loading is False
        assert anchor.renderable
        assert followup.output is None
        assert followup.merged_into == "first"
        assert not followup.renderable

    def test_followup_without_output_leaves_anchor(self, store):
        store.set("first", ToolStateEntry(entity_id="e", output="kept"))
        store.set("second", ToolStateEntry(entity_id="e", loading=True, error="boom"))

        assert store.get("first").output == "kept"
        assert store.get("second").error == "boom"
        assert store.get("second").merged_into == "first"

    def test_merge_notifies_anchor_listeners(self, store):
        calls = []
        store.set("first", ToolStateEntry(entity_id="e", output=1))
        store.subscribe("first", lambda: calls.append("anchor"))
        store.subscribe("second", lambda: calls.append("followup"))

        store.set("second", ToolStateEntry(entity_id="e", output=2))

        assert calls == ["followup", "anchor"]

    def test_anchor_updates_itself(self, store):
        store.set("first", ToolStateEntry(entity_id="e", output=1))
        store.set("second", ToolStateEntry(entity_id="e"))
        store.set("first", ToolStateEntry(entity_id="e", output=3))

        assert store.get("first").output == 3
        assert store.get("first").merged_into is None

    def test_latest_per_entity(self, store):
        store.set("a1", ToolStateEntry(entity_id="e1", output=1))
        store.set("loose", ToolStateEntry(output="x"))
        store.set("a2", ToolStateEntry(entity_id="e1", output=2))
        store.set("b1", ToolStateEntry(entity_id="e2", output=3))

        latest = store.get_latest_per_entity()

        assert set(latest) == {"a2", "loose", "b1"}
