"""
Tests for page extraction: container selection and candidate acceptance.
"""

from bs4 import BeautifulSoup

from src.FIVERR.parser import extract_page, select_containers

from conftest import gig_card, search_page


def test_complete_card_yields_gig(strict_specs):
    gigs = extract_page(search_page([gig_card()]), "logo design", field_specs=strict_specs)

    assert len(gigs) == 1
    gig = gigs[0]
    assert gig.id == "101"
    assert gig.title == "I will design a modern minimalist logo"
    assert gig.link == "https://www.fiverr.com/designer_joe/design-a-modern-minimalist-logo"
    assert gig.rating == 4.9
    assert gig.review_count == 1234
    assert gig.price == "From $45"
    assert gig.seller == "designer_joe"
    assert gig.seller_level == "Level 2 Seller"
    assert gig.thumbnail == "https://fiverr-res.cloudinary.com/images/t_main1/logo.jpg"
    assert gig.tags == ["Logo", "Design"]


def test_one_gig_per_conforming_container_in_dom_order(strict_specs):
    cards = [
        gig_card(gig_id="1", title="I will design a modern minimalist logo"),
        gig_card(gig_id="2", title="I will build your wordpress website"),
        gig_card(gig_id="3", title="I will edit your youtube videos"),
    ]
    gigs = extract_page(search_page(cards), "logo", field_specs=strict_specs)
    assert [gig.id for gig in gigs] == ["1", "2", "3"]


def test_strict_mode_rejects_incomplete_or_out_of_range(strict_specs):
    cards = [
        gig_card(gig_id="ok"),
        gig_card(gig_id="free", price="$0"),
        gig_card(gig_id="no-rating", rating=None),
        gig_card(gig_id="no-seller", seller=None, level=None),
        gig_card(gig_id="short", title="Logo"),
        gig_card(gig_id="no-image", img=None),
    ]
    gigs = extract_page(search_page(cards), "logo", field_specs=strict_specs)
    assert [gig.id for gig in gigs] == ["ok"]


def test_level_badge_is_not_taken_as_seller(strict_specs, permissive_specs):
    html = search_page([gig_card(seller=None, level="Level 2")])

    assert extract_page(html, "logo", field_specs=strict_specs) == []

    gigs = extract_page(html, "logo", field_specs=permissive_specs)
    assert gigs[0].seller is None
    assert gigs[0].seller_level == "Level 2 Seller"


def test_entities_are_decoded_exactly_once(strict_specs):
    cards = [
        gig_card(gig_id="1", title="I will fix your &amp;lt;div&amp;gt; layout"),
        gig_card(gig_id="2", title="Logo &amp; brand identity design"),
    ]
    gigs = extract_page(search_page(cards), "logo", field_specs=strict_specs)

    assert [gig.title for gig in gigs] == ["I will fix your &lt;div&gt; layout", "Logo & brand identity design"]


def test_permissive_mode_keeps_partial_cards(permissive_specs):
    cards = [
        gig_card(gig_id="partial", rating=None, reviews=None, price=None),
        gig_card(gig_id="no-title", title=None),
    ]
    gigs = extract_page(search_page(cards), "logo", field_specs=permissive_specs)

    assert [gig.id for gig in gigs] == ["partial"]
    assert gigs[0].rating is None
    assert gigs[0].review_count is None
    assert gigs[0].price is None
    assert gigs[0].seller == "designer_joe"


def test_invalid_optional_field_becomes_none_in_permissive_mode(permissive_specs):
    gigs = extract_page(search_page([gig_card(price="$0")]), "logo", field_specs=permissive_specs)
    assert len(gigs) == 1
    assert gigs[0].price is None


def test_missing_gig_id_is_synthesized(strict_specs):
    html = search_page([gig_card(gig_id=None)])
    gigs = extract_page(html, "logo", field_specs=strict_specs)
    assert len(gigs) == 1
    assert gigs[0].id.startswith("gig-")


def test_link_scan_fallback_when_no_container_matches(permissive_specs):
    html = (
        "<html><body>"
        '<a href="/gigs/landing-page-design">Build a responsive landing page</a>'
        '<a href="/search/gigs/?query=landing">Search landing pages</a>'
        "</body></html>"
    )
    gigs = extract_page(html, "landing page", field_specs=permissive_specs)

    assert len(gigs) == 1
    assert gigs[0].title == "Build a responsive landing page"
    assert gigs[0].link == "https://www.fiverr.com/gigs/landing-page-design"


def test_link_scan_candidates_fail_strict_mode(strict_specs):
    html = '<html><body><a href="/gigs/landing-page-design">Build a responsive landing page</a></body></html>'
    assert extract_page(html, "landing page", field_specs=strict_specs) == []


def test_working_selector_is_tried_first():
    html = search_page([
        gig_card(gig_id=None, css_class="gig-wrapper"),
        gig_card(gig_id=None, css_class="gig-wrapper"),
        gig_card(gig_id="9"),
    ])
    soup = BeautifulSoup(html, 'html.parser')

    selector, containers = select_containers(soup, working_selector='.gig-wrapper')
    assert selector == '.gig-wrapper'
    assert len(containers) == 2

    selector, containers = select_containers(soup)
    assert selector == '[data-gig-id]'
    assert len(containers) == 1


def test_empty_page_yields_nothing(strict_specs):
    assert extract_page(search_page([], next_page=None), "logo", field_specs=strict_specs) == []
