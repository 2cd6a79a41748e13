"""
Tests for the traversal controller, driven by FakeSession page sequences.
"""

import logging

import pytest

from src.FIVERR.config import DELAY_BETWEEN_PAGES, SETTLE_DELAY
from src.FIVERR.models import TraversalState
from src.FIVERR.traversal import BlockedError, Phase, TraversalController, detect_block

from conftest import FakeSession, ListSink, gig_card, search_page

START_URL = "https://www.fiverr.com/search/gigs?query=logo"


def page_with(card_ids, next_page="enabled", body_text=""):
    cards = [gig_card(gig_id=gig_id) for gig_id in card_ids]
    return search_page(cards, next_page=next_page, body_text=body_text)


def test_walks_until_next_control_is_disabled(strict_specs, sink, sleeps):
    session = FakeSession([
        page_with(["1", "2"]),
        page_with(["3", "4"]),
        page_with(["5"], next_page="disabled"),
    ])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=5))

    assert controller.phase is Phase.TERMINATED
    assert state.pages_visited == 3
    assert state.current_page == 3
    assert state.gigs_pushed == 5
    assert session.follows == 2
    assert session.navigations[0] == START_URL
    assert [gig.id for gig in sink.gigs] == ["1", "2", "3", "4", "5"]


def test_three_page_run_ends_after_third_page(strict_specs, sink, sleeps):
    session = FakeSession([
        page_with(["1"]),
        page_with(["2"]),
        page_with(["3"], next_page="disabled"),
    ])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=3))

    assert controller.phase is Phase.TERMINATED
    assert state.pages_visited == 3
    assert session.follows == 2
    # Start URL plus the two followed links, nothing after page 3
    assert len(session.navigations) == 3
    assert session.index == 2


def test_page_limit_is_honored(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"]), page_with(["2"]), page_with(["3"])])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=2))

    assert state.pages_visited == 2
    assert session.follows == 1
    assert [gig.id for gig in sink.gigs] == ["1", "2"]


def test_single_page_run_never_looks_for_next(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"])])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=1))

    assert state.pages_visited == 1
    assert session.follows == 0
    assert sleeps == [SETTLE_DELAY]


def test_delays_between_pages(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"]), page_with(["2"], next_page=None)])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    controller.run(START_URL, TraversalState(page_limit=3))

    assert len(sleeps) == 3
    assert sleeps[0] == SETTLE_DELAY
    assert DELAY_BETWEEN_PAGES[0] <= sleeps[1] <= DELAY_BETWEEN_PAGES[1]
    assert sleeps[2] == SETTLE_DELAY


def test_load_timeout_is_not_fatal(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"], next_page=None)], load_timeout=True)
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=1))

    assert controller.phase is Phase.TERMINATED
    assert state.gigs_pushed == 1


def test_blocked_page_aborts_run(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"], body_text="Please complete the CAPTCHA to continue")])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)
    state = TraversalState(page_limit=3)

    with pytest.raises(BlockedError) as exc_info:
        controller.run(START_URL, state)

    assert controller.phase is Phase.FAILED
    assert exc_info.value.phrase == "captcha"
    assert exc_info.value.url == session.url()
    assert session.unhealthy_marks == 1
    assert session.contents_served == 0
    assert state.pages_visited == 0
    assert sink.gigs == []


def test_next_button_without_href_is_clicked(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"], next_page="button"), page_with(["2"], next_page=None)])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=3))

    assert session.clicks == 1
    assert state.pages_visited == 2
    assert len(session.navigations) == 1


def test_push_failures_are_counted(strict_specs, sleeps):
    sink = ListSink(accept=False)
    session = FakeSession([page_with(["1", "2"], next_page=None)])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=1))

    assert state.gigs_pushed == 0
    assert state.push_failures == 2
    assert controller.phase is Phase.TERMINATED


def test_page_without_listings_still_continues(strict_specs, sink, sleeps):
    session = FakeSession([search_page([]), page_with(["2"], next_page=None)])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=2))

    assert state.pages_visited == 2
    assert [gig.id for gig in sink.gigs] == ["2"]


def test_resumed_state_is_not_reset(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["3"], next_page=None)])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)
    state = TraversalState(page_limit=3, current_page=2, pages_visited=1, gigs_pushed=4)

    controller.run(START_URL, state)

    assert state.current_page == 2
    assert state.pages_visited == 2
    assert state.gigs_pushed == 5


def test_snapshots_written_per_page(strict_specs, sink, sleeps, tmp_path):
    session = FakeSession([page_with(["1"]), page_with(["2"], next_page=None)])
    controller = TraversalController(session, sink, "logo design", field_specs=strict_specs,
                                     sleep=sleeps.append, snapshot_dir=tmp_path)

    controller.run(START_URL, TraversalState(page_limit=2))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["logo_design_page1.html", "logo_design_page2.html"]


@pytest.mark.parametrize("text, expected", [
    ("Access Denied", "access denied"),
    ("Please pass the security check", "security check"),
    ("I will design a modern minimalist logo", None),
    ("", None),
])
def test_detect_block(text, expected):
    assert detect_block(text) == expected


def test_requested_url_follows_next_links(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"]), page_with(["2"], next_page=None)])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=2))

    assert state.requested_url == "https://www.fiverr.com/search/gigs?query=logo&page=2"


def test_requested_url_after_click_is_landing_url(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"], next_page="button"), page_with(["2"], next_page=None)])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    state = controller.run(START_URL, TraversalState(page_limit=2))

    assert state.requested_url == "https://www.fiverr.com/search/gigs?query=logo&page=2"


def test_redirect_does_not_replace_requested_url(strict_specs, sink, sleeps):
    session = FakeSession([page_with(["1"], next_page=None, body_text="captcha")],
                          redirect_url="https://www.fiverr.com/px/captcha?uuid=abc")
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)
    state = TraversalState(page_limit=1)

    with pytest.raises(BlockedError) as exc_info:
        controller.run(START_URL, state)

    assert exc_info.value.url == "https://www.fiverr.com/px/captcha?uuid=abc"
    assert state.requested_url == START_URL


def test_url_and_title_logged_after_load(strict_specs, sink, sleeps, caplog):
    caplog.set_level(logging.INFO, logger="src.FIVERR.traversal")
    session = FakeSession([page_with(["1"], next_page=None)])
    controller = TraversalController(session, sink, "logo", field_specs=strict_specs, sleep=sleeps.append)

    controller.run(START_URL, TraversalState(page_limit=1))

    assert "Page title: Fiverr search" in caplog.text
    assert f"Current URL: {session.url()}" in caplog.text
