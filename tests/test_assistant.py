"""
tests/test_assistant.py

Panorama AI: prompt construction, report detection and the chat endpoints.
The generative AI API is never called; requests go to an httpx mock
transport or `generate_text` is replaced.

Run:
    pytest tests/test_assistant.py -v
"""

import httpx
import pytest

from panorama.models.config import default_config
from panorama.services import assistant_service
from panorama.services.assistant_service import (
    AssistantError,
    asset_context_line,
    build_prompt,
    generate_text,
    is_report,
)

from conftest import run

ASSET = {
    "code": "2024-EDC-IT-0001",
    "name": "Ordinateur portable",
    "category": "IT",
    "acquisition_year": "2024",
    "registration_date": "2024-03-01",
    "location": "EDC",
    "door": "",
    "state": "Bon état",
    "holder": "Marie Ngono",
    "holder_presence": "Présent",
    "amount": 450000,
    "unit": "FCFA",
}


def mock_gemini(monkeypatch, handler):
    """Routes every httpx.AsyncClient created by the service through `handler`."""
    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(assistant_service.httpx, "AsyncClient", client_factory)


class TestPrompt:
    def test_context_line(self):
        assert asset_context_line(ASSET) == (
            "- [2024-EDC-IT-0001] Ordinateur portable (IT) | Année: 2024 | Date Enreg: 2024-03-01"
            " | Loc: EDC (Porte: N/A) | Etat: Bon état | Détenteur: Marie Ngono (Présent) | Valeur: 450000 FCFA"
        )

    def test_prompt_contents(self):
        prompt = build_prompt("Quels actifs en 2024 ?", [ASSET], default_config())
        assert prompt.startswith("NOM DE L'ASSISTANT: Panorama AI")
        assert "l'entreprise EDC Panorama" in prompt
        assert '"Quels actifs en 2024 ?"' in prompt
        assert "[2024-EDC-IT-0001]" in prompt

    def test_is_report(self):
        assert not is_report("Il y a 3 actifs.")
        assert is_report("## Rapport")
        assert is_report("| Code | Nom |")
        assert is_report("x" * 201)


class TestGenerateText:
    def test_missing_key(self):
        with pytest.raises(AssistantError, match="Clé API introuvable."):
            run(generate_text("bonjour", api_key=""))
        with pytest.raises(AssistantError, match="Clé API introuvable."):
            run(generate_text("bonjour", api_key="PLACEHOLDER_API_KEY"))

    def test_answer_text(self, monkeypatch):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": "Il y a "}, {"text": "1 actif."}]}}],
            })

        mock_gemini(monkeypatch, handler)
        assert run(generate_text("bonjour", api_key="k-123", model="gemini-test")) == "Il y a 1 actif."
        assert seen["url"].endswith("/models/gemini-test:generateContent")
        assert seen["key"] == "k-123"

    def test_rate_limited(self, monkeypatch):
        mock_gemini(monkeypatch, lambda request: httpx.Response(429, json={}))
        with pytest.raises(AssistantError, match="Trop de demandes. Veuillez patienter une minute."):
            run(generate_text("bonjour", api_key="k-123"))

    def test_other_failure(self, monkeypatch):
        mock_gemini(monkeypatch, lambda request: httpx.Response(500, json={}))
        with pytest.raises(AssistantError, match="Une erreur est survenue."):
            run(generate_text("bonjour", api_key="k-123"))

    def test_unexpected_payload(self, monkeypatch):
        mock_gemini(monkeypatch, lambda request: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(AssistantError):
            run(generate_text("bonjour", api_key="k-123"))


class TestAssistantEndpoints:
    def test_greeting(self, client, reader_headers):
        body = client.get("/assistant/greeting", headers=reader_headers).json()
        assert body["role"] == "ai"
        assert body["text"].startswith("Bonjour ! Je suis Panorama AI, l'intelligence artificielle de EDC Panorama.")

    def test_ask_uses_active_inventory(self, client, editor_headers, create_asset, monkeypatch):
        create_asset(name="Ordinateur portable", category="IT")
        archived = create_asset(name="Vieille chaise", category="MB")
        client.delete(f"/assets/{archived['id']}", headers=editor_headers)
        prompts = []

        async def fake_generate(prompt):
            prompts.append(prompt)
            return "## Rapport\n| Code | Nom |"

        monkeypatch.setattr(assistant_service, "generate_text", fake_generate)

        resp = client.post("/assistant/ask", json={"question": "Fais un rapport"}, headers=editor_headers)

        assert resp.json() == {"role": "ai", "text": "## Rapport\n| Code | Nom |", "is_report": True}
        assert "Ordinateur portable" in prompts[0]
        assert "Vieille chaise" not in prompts[0]

    def test_failure_becomes_message(self, client, reader_headers, monkeypatch):
        async def failing_generate(prompt):
            raise AssistantError(assistant_service.RATE_LIMIT_MESSAGE)

        monkeypatch.setattr(assistant_service, "generate_text", failing_generate)

        resp = client.post("/assistant/ask", json={"question": "Combien ?"}, headers=reader_headers)

        assert resp.status_code == 200
        assert resp.json() == {
            "role": "ai",
            "text": "⚠️ Trop de demandes. Veuillez patienter une minute.",
            "is_report": False,
        }

    def test_empty_question(self, client, reader_headers):
        assert client.post("/assistant/ask", json={"question": ""}, headers=reader_headers).status_code == 422
