from vitrina.models import AIMatchScore


def _view(view_id, **overrides):
    row = {
        "id": view_id,
        "listing_id": "l1",
        "buyer_session_id": "s1",
        "viewer_type": "buyer",
        "view_duration": 30,
        "timestamp": 100,
    }
    row.update(overrides)
    return row


def test_malformed_rows_are_skipped(supabase, view_repo):
    supabase.seed(
        "property_views",
        [
            _view("ok", timestamp=1),
            _view("bad", timestamp=None),
            _view("negative", timestamp=2, view_duration=-5),
        ],
    )

    assert [e.id for e in view_repo.get_by_buyer_session("s1")] == ["ok"]


def test_views_come_back_in_timestamp_order(supabase, view_repo):
    supabase.seed("property_views", [_view("b", timestamp=20), _view("a", timestamp=10)])

    assert [e.id for e in view_repo.get_by_listing("l1")] == ["a", "b"]


def test_camel_case_rows_are_accepted(supabase, session_repo):
    supabase.seed(
        "buyer_sessions",
        [{
            "id": "s1",
            "buyerName": "Sam",
            "preferences": {"minPrice": 1, "mustHaveFeatures": ["pool"], "propertyTypes": []},
            "preQualification": {"amount": 400000, "lender": "Acme"},
        }],
    )

    session = session_repo.get_by_id("s1")

    assert session.preferences.min_price == 1
    assert session.preferences.must_have_features == ["pool"]
    assert session.pre_qualification.amount == 400000


def test_get_many_omits_deleted_listings(supabase, listing_repo):
    supabase.seed("listings", [{"id": "l1", "price": 1}, {"id": "l2", "price": 2}])

    found = listing_repo.get_many(["l1", "gone", "l1"])

    assert list(found) == ["l1"]
    assert listing_repo.get_many([]) == {}


def test_active_catalog(supabase, listing_repo):
    supabase.seed(
        "listings",
        [
            {"id": "l1", "price": 1, "status": "active", "created_at": 2},
            {"id": "l2", "price": 1, "status": "sold", "created_at": 1},
            {"id": "l3", "price": 1, "status": "active", "created_at": 1},
        ],
    )

    assert [l.id for l in listing_repo.get_active()] == ["l3", "l1"]


def test_unscored_buyer_views(supabase, view_repo):
    supabase.seed(
        "property_views",
        [
            _view("scored", ai_match_score={"score": 50, "calculated_at": 1}),
            _view("anon", buyer_session_id=None),
            _view("pending"),
        ],
    )

    assert [e.id for e in view_repo.get_unscored_buyer_views()] == ["pending"]


def test_attach_uses_compare_and_set(supabase, view_repo):
    supabase.seed("property_views", [_view("v1")])

    assert view_repo.attach_ai_match_score("v1", AIMatchScore(score=70, calculated_at=200))
    assert not view_repo.attach_ai_match_score("v1", AIMatchScore(score=20, calculated_at=100))
    assert not view_repo.attach_ai_match_score("v1", AIMatchScore(score=20, calculated_at=200))
    assert view_repo.attach_ai_match_score("v1", AIMatchScore(score=88, calculated_at=300))

    assert view_repo.get_by_id("v1").ai_match_score.score == 88
    assert supabase.or_filters[-1] == (
        "ai_match_score.is.null,ai_match_score->calculated_at.lt.300"
    )


def test_attach_to_unknown_view(view_repo):
    assert not view_repo.attach_ai_match_score("missing", AIMatchScore(score=1, calculated_at=1))


def test_attach_retries_then_gives_up(supabase, view_repo):
    supabase.seed("property_views", [_view("v1")])
    supabase.fail_updates = True

    assert not view_repo.attach_ai_match_score("v1", AIMatchScore(score=70, calculated_at=200))
    assert supabase.update_attempts == 3
    assert view_repo.get_by_id("v1").ai_match_score is None


def test_create_view_returns_event_with_id(view_repo):
    from conftest import make_event

    created = view_repo.create(make_event(timestamp=7))

    assert created.id
    assert created.timestamp == 7
    assert view_repo.get_by_id(created.id).listing_id == "l1"
