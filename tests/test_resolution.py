from conftest import make_event, make_listing, make_profile

from vitrina.models import AIMatchScore
from vitrina.scoring import (
    fallback_match_score,
    latest_ai_score,
    resolve_match_score,
    should_replace_ai_score,
)


def test_latest_calculated_ai_score_wins():
    events = [
        make_event(timestamp=1, ai_score=60, calculated_at=100),
        make_event(timestamp=2, ai_score=85, calculated_at=200),
    ]

    assert resolve_match_score(events) == 85


def test_older_view_scored_later_still_wins():
    # El cálculo de la visita vieja terminó después: gana por calculated_at
    events = [
        make_event(timestamp=1, ai_score=40, calculated_at=300),
        make_event(timestamp=2, ai_score=85, calculated_at=200),
    ]

    assert resolve_match_score(events) == 40


def test_ai_score_ties_keep_first_seen():
    events = [
        make_event(timestamp=1, ai_score=55, calculated_at=100),
        make_event(timestamp=2, ai_score=90, calculated_at=100),
    ]

    assert latest_ai_score(events).score == 55


def test_ai_score_overrides_preference_fallback():
    profile = make_profile(min_price=900000)
    events = [make_event(ai_score=92, calculated_at=10), make_event()]

    assert resolve_match_score(events, profile, make_listing(price=100000)) == 92


def test_fallback_formula_without_ai_score():
    profile = make_profile(min_price=200000, bedrooms=3)
    listing = make_listing(price=150000, bedrooms=2)

    assert resolve_match_score([make_event()], profile, listing) == 65


def test_fallback_penalties():
    profile = make_profile(max_price=200000, bathrooms=3)
    listing = make_listing(price=250000, bathrooms=2)

    assert fallback_match_score(profile, listing) == 65
    assert fallback_match_score(make_profile(), listing) == 100


def test_default_when_no_profile_or_listing():
    assert resolve_match_score([make_event()]) == 70
    assert resolve_match_score([], profile=make_profile()) == 70
    assert resolve_match_score([], default_score=50) == 50


def test_compare_and_set_rule():
    older = AIMatchScore(score=60, calculated_at=100)
    newer = AIMatchScore(score=85, calculated_at=200)

    assert should_replace_ai_score(None, older)
    assert should_replace_ai_score(older, newer)
    assert not should_replace_ai_score(newer, older)
    assert not should_replace_ai_score(newer, AIMatchScore(score=10, calculated_at=200))


def test_ai_score_is_clamped_on_load():
    assert AIMatchScore(score=130, calculated_at=1).score == 100
    assert AIMatchScore(score=-4, calculated_at=1).score == 0
    assert AIMatchScore.model_validate({"score": 72.5, "calculatedAt": 1}).score == 73
