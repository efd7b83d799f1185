"""Fournisseur de génération de texte.

Interface volontairement étroite: ``generate(messages) -> str``.
Aucune relance: un échec remonte immédiatement en ``UpstreamError``.
"""
import logging

import httpx
from flask import current_app

from mina_notes.common.errors import UpstreamError

log = logging.getLogger("mina_notes.ai")

# Gemini ne connaît que "user" et "model"
_GEMINI_ROLES = {"assistant": "model", "system": "user", "user": "user"}


class TextGenerator:
    def generate(self, messages: list[dict]) -> str:
        raise NotImplementedError


class GeminiGenerator(TextGenerator):
    def __init__(self, api_key: str, api_url: str, timeout: float = 30.0, transport: httpx.BaseTransport | None = None):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    @staticmethod
    def to_contents(messages: list[dict]) -> list[dict]:
        return [
            {"role": _GEMINI_ROLES.get(m.get("role"), "user"), "parts": [{"text": m.get("content", "")}]}
            for m in messages
        ]

    def generate(self, messages: list[dict]) -> str:
        if not self.api_key:
            raise UpstreamError("GEMINI_API_KEY environment variable is not set")

        body = {"contents": self.to_contents(messages)}
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(self.api_url, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as e:
            log.error("gemini_transport_error", extra={"error": str(e)})
            raise UpstreamError(f"Gemini API request failed: {e}") from e

        if resp.status_code >= 400:
            log.error("gemini_api_error", extra={"status": resp.status_code})
            raise UpstreamError(f"Gemini API error: {resp.status_code} - {resp.text}")

        try:
            data = resp.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError("Unexpected response format from Gemini API") from e


def init_text_generator(app, generator: TextGenerator | None = None):
    app.extensions["text_generator"] = generator or GeminiGenerator(
        api_key=app.config.get("GEMINI_API_KEY", ""),
        api_url=app.config["GEMINI_API_URL"],
        timeout=app.config.get("GEMINI_TIMEOUT", 30.0),
    )


def get_text_generator() -> TextGenerator:
    return current_app.extensions["text_generator"]
