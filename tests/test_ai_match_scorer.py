import json

import pytest
from conftest import FakeLLMProvider, make_listing, make_profile

from vitrina.analysis import AIMatchScorer
from vitrina.models import PreQualification, ViewContext

RESPONSE = {
    "matchScore": 82,
    "breakdown": {"price": 25, "location": 20, "propertyType": 15, "rooms": 12, "features": 10},
    "reasoning": "Fits the budget and the preferred city.",
}


def _scorer(provider, timeout=1.0):
    return AIMatchScorer(provider=provider, timeout_seconds=timeout, clock=lambda: 1234)


def _context():
    return ViewContext(view_duration=95, images_viewed=[0, 1, 1, 4], sections_visited=["photos", "schools"])


@pytest.mark.asyncio
async def test_scores_and_attaches_detail():
    provider = FakeLLMProvider(text=json.dumps(RESPONSE))

    result = await _scorer(provider).score_async(make_profile(), make_listing(), _context())

    assert result.score == 82
    assert result.calculated_at == 1234
    assert result.breakdown.property_type == 15
    assert result.reasoning.startswith("Fits the budget")
    assert result.provider == "fake"
    assert result.model == "fake-model"


@pytest.mark.asyncio
async def test_strips_code_fences_and_clamps():
    payload = dict(RESPONSE, matchScore=140, breakdown={"price": 45, "rooms": -3, "unknown": 9})
    provider = FakeLLMProvider(text=f"```json\n{json.dumps(payload)}\n```")

    result = await _scorer(provider).score_async(make_profile(), make_listing(), _context())

    assert result.score == 100
    assert result.breakdown.price == 30
    assert result.breakdown.rooms == 0
    assert result.breakdown.location == 0


@pytest.mark.asyncio
async def test_invalid_json_returns_none():
    provider = FakeLLMProvider(text="I think it's an 8/10")

    assert await _scorer(provider).score_async(make_profile(), make_listing(), _context()) is None


@pytest.mark.asyncio
async def test_missing_score_returns_none():
    provider = FakeLLMProvider(text=json.dumps({"reasoning": "no idea"}))

    assert await _scorer(provider).score_async(make_profile(), make_listing(), _context()) is None


@pytest.mark.asyncio
async def test_empty_response_returns_none():
    provider = FakeLLMProvider(text="")

    assert await _scorer(provider).score_async(make_profile(), make_listing(), _context()) is None


@pytest.mark.asyncio
async def test_provider_error_returns_none():
    provider = FakeLLMProvider(error=RuntimeError("rate limited"))

    assert await _scorer(provider).score_async(make_profile(), make_listing(), _context()) is None


@pytest.mark.asyncio
async def test_timeout_returns_none():
    provider = FakeLLMProvider(text=json.dumps(RESPONSE), delay=1.0)

    result = await _scorer(provider, timeout=0.05).score_async(
        make_profile(), make_listing(), _context()
    )

    assert result is None


def test_prompt_carries_preferences_listing_and_behavior():
    scorer = _scorer(FakeLLMProvider())
    profile = make_profile(
        min_price=250000,
        max_price=400000,
        bedrooms=3,
        cities=["Austin"],
        must_have_features=["pool"],
    )
    listing = make_listing(sqft=2100, year_built=1998, features=["Heated Pool", "Garage"])

    prompt = scorer.build_prompt(
        profile, listing, _context(), PreQualification(amount=420000, lender="Acme")
    )

    assert "$250,000 - $400,000" in prompt
    assert "Bedrooms: 3+" in prompt
    assert "Bathrooms: any+" in prompt
    assert "Must-Have Features: pool" in prompt
    assert "Pre-qualified: $420,000" in prompt
    assert "12 Oak St, Austin, TX" in prompt
    assert "Year Built: 1998" in prompt
    assert "Heated Pool, Garage" in prompt
    assert "Images viewed: 3" in prompt
    assert "Sections visited: photos, schools" in prompt
    assert "Time on page: 95 seconds" in prompt


def test_prompt_without_budget():
    prompt = _scorer(FakeLLMProvider()).build_prompt(make_profile(), make_listing(), ViewContext())

    assert "Budget: any" in prompt
    assert "Sections visited: none" in prompt
