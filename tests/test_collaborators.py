"""Text generation and address autocomplete collaborators"""

import httpx
import pytest

from app.services.places import GooglePlacesClient, PlacesError
from app.services.text_generation import (
    FAILED_DESCRIPTION,
    FAILED_MATCH,
    MISSING_KEY_APPLICATION,
    MISSING_KEY_DESCRIPTION,
    MISSING_KEY_MATCH,
    GeminiTextGenerator,
)


# =============================================================================
# Text generation
# =============================================================================


def test_job_description_falls_back_without_a_key(client, client_account):
    response = client.post(
        "/ai/job-description", json={"rooms": 2, "bathrooms": 1, "location": "Sea Point"}, headers=client_account.headers
    )
    assert response.status_code == 200
    assert response.json() == {"text": MISSING_KEY_DESCRIPTION}


def test_application_message_needs_an_existing_job(client, client_account, maid, post_job):
    assert client.post("/ai/application-message", json={"jobId": "missing"}, headers=maid.headers).status_code == 404

    job = post_job(client_account)
    response = client.post("/ai/application-message", json={"jobId": job["id"]}, headers=maid.headers)
    assert response.json() == {"text": MISSING_KEY_APPLICATION}


def test_candidate_match_falls_back_without_a_key(client, client_account):
    response = client.post(
        "/ai/candidate-match",
        json={"jobDescription": "Deep clean", "candidateBio": "Five years of home cleaning"},
        headers=client_account.headers,
    )
    assert response.json() == {"text": MISSING_KEY_MATCH}


@pytest.mark.asyncio
async def test_generation_errors_fall_back(monkeypatch):
    generator = GeminiTextGenerator(api_key="test-key")

    async def unreachable(prompt):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(generator, "generate", unreachable)

    assert await generator.job_description(2, 1, 80, "Sea Point", None) == FAILED_DESCRIPTION
    assert await generator.candidate_match("Deep clean", "Experienced cleaner") == FAILED_MATCH


@pytest.mark.asyncio
async def test_empty_generation_falls_back(monkeypatch):
    generator = GeminiTextGenerator(api_key="test-key")

    async def silent(prompt):
        return None

    monkeypatch.setattr(generator, "generate", silent)
    assert await generator.job_description(None, None, None, None, None) == FAILED_DESCRIPTION


@pytest.mark.asyncio
async def test_generated_text_is_returned(monkeypatch):
    generator = GeminiTextGenerator(api_key="test-key")
    prompts = []

    async def fake_generate(prompt):
        prompts.append(prompt)
        return "A sparkling two-bedroom clean in Sea Point."

    monkeypatch.setattr(generator, "generate", fake_generate)

    text = await generator.job_description(2, 1, 80, "Sea Point", "Pet friendly")
    assert text == "A sparkling two-bedroom clean in Sea Point."
    assert "Sea Point" in prompts[0]
    assert "2 bedrooms, 1 bathrooms" in prompts[0]


# =============================================================================
# Places
# =============================================================================


def test_autocomplete_route(client, maid, places):
    response = client.get("/places/autocomplete?input=Sea%20Po&sessionToken=abc", headers=maid.headers)
    assert response.status_code == 200
    assert response.json()["predictions"][0] == {
        "description": "Sea Point, Cape Town, South Africa",
        "placeId": "place-sea-point",
    }
    assert places.calls == [("Sea Po", "abc")]


def test_short_input_returns_nothing(client, maid):
    response = client.get("/places/autocomplete?input=Se", headers=maid.headers)
    assert response.json() == {"predictions": []}


def test_provider_failure_is_a_bad_gateway(client, maid, places):
    places.error = PlacesError("Places provider unavailable")
    response = client.get("/places/autocomplete?input=Sandton", headers=maid.headers)
    assert response.status_code == 502
    assert response.json() == {"detail": "Places provider unavailable", "code": "upstream_error"}


@pytest.mark.asyncio
async def test_places_client_without_key():
    places = GooglePlacesClient(api_key=None)
    assert await places.autocomplete("ab") == []
    with pytest.raises(PlacesError):
        await places.autocomplete("Cape Town")
