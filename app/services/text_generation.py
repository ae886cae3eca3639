"""
Gemini text generation for job descriptions, application messages and match hints

Calls the generateContent REST endpoint with httpx. Generation is a
convenience: when no key is configured or the call fails, a fixed fallback
string is returned instead of an error.
"""

import logging
from typing import Optional

import httpx

from ..config import GEMINI_API_KEY, GEMINI_MODEL

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"
REQUEST_TIMEOUT_SECONDS = 20.0

MISSING_KEY_DESCRIPTION = "API Key missing. Please provide a description manually."
FAILED_DESCRIPTION = "Failed to generate description due to an error."
MISSING_KEY_APPLICATION = "API Key missing. Please write your application message manually."
FAILED_APPLICATION = "Failed to generate an application message due to an error."
MISSING_KEY_MATCH = "Match analysis unavailable."
FAILED_MATCH = "Analysis failed."


class GeminiTextGenerator:
    """Text-generation collaborator backed by the Gemini REST API"""

    def __init__(self, api_key: Optional[str] = GEMINI_API_KEY, model: str = GEMINI_MODEL):
        self.api_key = api_key
        self.model = model

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def generate(self, prompt: str) -> Optional[str]:
        """Return generated plain text, or None when the model produced nothing"""
        url = f"{GEMINI_BASE_URL}/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS) as client:
            resp = await client.post(url, json=payload, headers={"x-goog-api-key": self.api_key})
            resp.raise_for_status()
            data = resp.json()

        candidates = data.get("candidates") or []
        if not candidates:
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts).strip()
        return text or None

    async def _generate_or_fallback(self, prompt: str, missing_key: str, failed: str, purpose: str) -> str:
        if not self.configured:
            logger.info(f"ℹ️ Gemini key not configured, returning fallback {purpose}")
            return missing_key
        try:
            return await self.generate(prompt) or failed
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ Gemini {purpose} generation failed: {e}")
            return failed

    async def job_description(
        self,
        rooms: Optional[int],
        bathrooms: Optional[int],
        area_size: Optional[int],
        location: Optional[str],
        requirements: Optional[str],
    ) -> str:
        prompt = (
            "Write a professional and attractive job description for a house cleaning service on MaidServSA.\n"
            "Details:\n"
            f"- Location: {location or 'not specified'}\n"
            f"- Size: {area_size if area_size is not None else 'unknown'} square meters\n"
            f"- Configuration: {rooms or 0} bedrooms, {bathrooms or 0} bathrooms.\n"
            f"- Specific Requirements: {requirements or 'none'}\n\n"
            "Keep it concise (under 100 words), inviting for professional cleaners, "
            "and emphasize the fair competitive rate.\n"
            "Return plain text only."
        )
        return await self._generate_or_fallback(
            prompt, MISSING_KEY_DESCRIPTION, FAILED_DESCRIPTION, "job description"
        )

    async def application_message(
        self, job_title: str, job_description: Optional[str], maid_name: str, maid_bio: Optional[str]
    ) -> str:
        prompt = (
            "Write a short, friendly application message from a professional cleaner to a client.\n"
            f"Job: \"{job_title}\"\n"
            f"Job description: \"{job_description or ''}\"\n"
            f"Cleaner name: {maid_name}\n"
            f"Cleaner bio: \"{maid_bio or ''}\"\n\n"
            "Keep it under 80 words, mention relevant experience and availability.\n"
            "Return plain text only."
        )
        return await self._generate_or_fallback(
            prompt, MISSING_KEY_APPLICATION, FAILED_APPLICATION, "application message"
        )

    async def candidate_match(self, job_description: str, candidate_bio: str) -> str:
        prompt = (
            "Analyze the fit between this cleaning job and the candidate.\n"
            f"Job: \"{job_description}\"\n"
            f"Candidate Bio: \"{candidate_bio}\"\n\n"
            "Give a 1-sentence assessment of why they might be a good fit."
        )
        return await self._generate_or_fallback(prompt, MISSING_KEY_MATCH, FAILED_MATCH, "candidate match")


def get_text_generator() -> GeminiTextGenerator:
    """Dependency for the text generator; overridden in tests"""
    return GeminiTextGenerator()
