"""Tests for ScrollTrigger."""

import pytest

from pokedex.services.scroll_trigger import ScrollTrigger


@pytest.fixture
def trigger():
    return ScrollTrigger(threshold=0.9)


@pytest.fixture
def requests(trigger):
    fired = []
    trigger.load_more_requested.connect(lambda: fired.append(True))
    return fired


class TestScrollTrigger:
    """Tests for threshold crossing."""

    def test_below_threshold_does_not_fire(self, trigger, requests):
        assert trigger.observe(899, 1000) is False
        assert requests == []

    def test_fires_at_threshold(self, trigger, requests):
        assert trigger.observe(900, 1000) is True
        assert len(requests) == 1

    def test_fires_once_per_crossing(self, trigger, requests):
        trigger.observe(920, 1000)
        trigger.observe(950, 1000)
        trigger.observe(1000, 1000)

        assert len(requests) == 1
        assert not trigger.armed

    def test_rearms_after_scrolling_back(self, trigger, requests):
        trigger.observe(950, 1000)
        trigger.observe(500, 1000)
        trigger.observe(950, 1000)

        assert len(requests) == 2

    def test_rearms_when_extent_grows(self, trigger, requests):
        trigger.observe(950, 1000)
        # Next page rendered, user already at the new bottom
        trigger.observe(2000, 2000)

        assert len(requests) == 2

    def test_no_scrollable_content(self, trigger, requests):
        assert trigger.observe(0, 0) is False
        assert requests == []

    def test_reset_rearms(self, trigger, requests):
        trigger.observe(950, 1000)
        trigger.reset()
        trigger.observe(950, 1000)

        assert len(requests) == 2

    @pytest.mark.parametrize("threshold", [0.0, -0.5, 1.5])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(ValueError):
            ScrollTrigger(threshold=threshold)
