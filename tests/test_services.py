import pytest

from vitrina.engagement import EngagementService
from vitrina.matching import MatchingEngine


@pytest.fixture
def store(supabase):
    supabase.seed(
        "buyer_sessions",
        [{
            "id": "s1",
            "buyer_name": "Sam",
            "preferences": {
                "min_price": 200000,
                "max_price": 400000,
                "cities": ["Austin"],
                "must_have_features": ["pool"],
            },
        }],
    )
    supabase.seed(
        "listings",
        [
            {"id": "l1", "price": 300000, "city": "Austin", "features": ["Heated Pool"],
             "status": "active", "created_at": 1},
            {"id": "l2", "price": 250000, "city": "Austin", "features": ["Garage"],
             "status": "active", "created_at": 2},
            {"id": "l3", "price": 390000, "city": "austin", "features": ["Pool"],
             "status": "active", "created_at": 3},
            {"id": "l4", "price": 300000, "city": "Austin", "features": ["Pool"],
             "status": "sold", "created_at": 4},
        ],
    )
    return supabase


@pytest.fixture
def engine(session_repo, listing_repo):
    return MatchingEngine(session_repo=session_repo, listing_repo=listing_repo)


@pytest.fixture
def service(view_repo, listing_repo, session_repo):
    return EngagementService(view_repo=view_repo, listing_repo=listing_repo, session_repo=session_repo)


def test_matching_unknown_session(store, engine):
    with pytest.raises(ValueError):
        engine.get_matching_listings("nope")


def test_matching_filters_and_orders(store, engine):
    matches = engine.get_matching_listings("s1")

    # l2 has no pool, l4 is sold
    assert [m.listing.id for m in matches] == ["l1", "l3"]
    assert [m.match_score for m in matches] == [100, 94]
    assert matches[1].to_api_dict()["matchScore"] == 94


def test_matching_limit(store, engine):
    assert [m.listing.id for m in engine.get_matching_listings("s1", limit=1)] == ["l1"]


def test_history_skips_deleted_listings(store, service):
    store.seed(
        "property_views",
        [
            {"id": "v1", "listing_id": "l1", "buyer_session_id": "s1", "view_duration": 240,
             "timestamp": 10},
            {"id": "v2", "listing_id": "gone", "buyer_session_id": "s1", "view_duration": 30,
             "timestamp": 20},
            {"id": "v3", "listing_id": "l1", "buyer_session_id": "s1", "view_duration": 120,
             "timestamp": 30, "ai_match_score": {"score": 91, "calculated_at": 35}},
        ],
    )

    history = service.get_buyer_view_history("s1")

    assert len(history) == 1
    summary = history[0]
    assert summary.listing.id == "l1"
    assert summary.view_count == 2
    assert summary.total_time == 360
    assert summary.last_viewed == 30
    assert summary.match_score == 91
    assert summary.engagement_score == 33


def test_history_unknown_session(store, service):
    with pytest.raises(ValueError):
        service.get_buyer_view_history("nope")


def test_listing_viewers_and_analytics(store, service):
    store.seed(
        "property_views",
        [
            {"id": "v1", "listing_id": "l1", "buyer_session_id": "s1", "view_duration": 60,
             "timestamp": 10},
            {"id": "v2", "listing_id": "l1", "viewer_type": "anonymous", "view_duration": 20,
             "timestamp": 20},
        ],
    )

    viewers = service.get_listing_viewers("l1")
    assert [v.session.id for v in viewers] == ["s1"]
    assert viewers[0].view_count == 1

    analytics = service.get_listing_analytics("l1")
    assert analytics.total_views == 2
    assert analytics.unique_viewers == 1
