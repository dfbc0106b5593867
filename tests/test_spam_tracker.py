"""Tests for the create and edit spam windows."""

from automod.domain.detection.spam_tracker import (
    CreateSpamTracker,
    EditSpamTracker,
    SpamWindowTracker,
    has_edit_cycle,
)

G, U = 1000, 42


class TestEditCycle:
    def test_alternating_contents(self):
        assert has_edit_cycle(["alpha", "beta", "alpha", "beta"]) is True

    def test_distinct_contents_are_not_a_cycle(self):
        assert has_edit_cycle(["a", "b", "c", "d"]) is False

    def test_identical_contents_are_not_a_cycle(self):
        assert has_edit_cycle(["a", "a", "a", "a"]) is False

    def test_needs_four_entries(self):
        assert has_edit_cycle(["a", "b", "a"]) is False


class TestEditSpamTracker:
    def test_unchanged_edit_is_ignored(self, clock):
        tracker = EditSpamTracker(clock=clock)
        assert tracker.record(G, U, 1, "Same", "same") is False
        assert tracker.window_size(G, U) == 0

    def test_alternating_edits_trip_on_fourth(self, clock):
        tracker = EditSpamTracker(clock=clock)
        edits = [("original", "alpha one"), ("alpha one", "beta two"), ("beta two", "alpha one"), ("alpha one", "beta two")]
        results = []
        for old, new in edits:
            clock.advance(1)
            results.append(tracker.record(G, U, 7, old, new, threshold=4))
        assert results == [False, False, False, True]

    def test_distinct_burst_trips_on_fourth(self, clock):
        tracker = EditSpamTracker(clock=clock)
        contents = ["original", "alpha one", "beta two", "gamma three", "delta four"]
        results = []
        for old, new in zip(contents, contents[1:]):
            clock.advance(1)
            results.append(tracker.record(G, U, 7, old, new, threshold=4))
        assert results == [False, False, False, True]

    def test_cycle_trips_below_burst_threshold(self, clock):
        tracker = EditSpamTracker(clock=clock)
        edits = [("original", "alpha one"), ("alpha one", "beta two"), ("beta two", "alpha one"), ("alpha one", "beta two")]
        results = []
        for old, new in edits:
            clock.advance(1)
            results.append(tracker.record(G, U, 7, old, new, threshold=6))
        assert results == [False, False, False, True]
        assert tracker.window_size(G, U) == 4

    def test_slow_edits_stay_below_threshold(self, clock):
        tracker = EditSpamTracker(clock=clock)
        assert tracker.record(G, U, 7, "v0", "first version", threshold=3) is False
        clock.advance(20)
        assert tracker.record(G, U, 7, "first version", "second version", threshold=3) is False
        clock.advance(20)
        assert tracker.record(G, U, 7, "second version", "third version", threshold=3) is False
        assert tracker.window_size(G, U) == 2

    def test_spammy_new_content(self, clock):
        tracker = EditSpamTracker(clock=clock)
        assert tracker.record(G, U, 7, "hi", "zzzzzzzzzzzz") is True

    def test_users_tracked_separately(self, clock):
        tracker = EditSpamTracker(clock=clock)
        tracker.record(G, U, 7, "a", "b one", threshold=2)
        assert tracker.record(G, U + 1, 8, "a", "b one", threshold=2) is False


class TestCreateSpamTracker:
    def test_identical_burst(self, clock):
        tracker = CreateSpamTracker(clock=clock)
        results = []
        for i in range(5):
            clock.advance(1)
            results.append(tracker.record(G, U, i, "BUY NOW", threshold=5))
        assert results == [False, False, False, False, True]

    def test_varied_messages_are_fine(self, clock):
        tracker = CreateSpamTracker(clock=clock)
        texts = ["good morning", "anyone up for a game", "42", "the weather is nice", "brb dinner"]
        hits = []
        for i, text in enumerate(texts):
            clock.advance(1)
            hits.append(tracker.record(G, U, i, text, threshold=5))
        assert not any(hits)

    def test_window_expiry(self, clock):
        tracker = CreateSpamTracker(clock=clock)
        for i in range(4):
            tracker.record(G, U, i, "same text", threshold=5)
        clock.advance(11)
        assert tracker.record(G, U, 5, "same text", threshold=5) is False
        assert tracker.window_size(G, U) == 1


class TestSweep:
    def test_sweep_drops_idle_keys(self, clock):
        spam = SpamWindowTracker(clock=clock)
        spam.create.record(G, U, 1, "hello")
        spam.edit.record(G, U, 1, "hello", "hello there")
        clock.advance(60)
        assert spam.sweep() == 2
        assert spam.create.window_size(G, U) == 0
