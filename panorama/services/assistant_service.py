"""
Assistant service.

Answers natural-language questions about the inventory with the Gemini
generative AI API. Each question is sent as a single prompt holding the
whole active inventory serialized as text, the user's question and fixed
answering instructions.

Failures are never raised to the caller: they come back as an assistant
message starting with a warning sign, like any other answer.
"""

from typing import Any, Dict, List

import httpx

from panorama.core.config import GEMINI_API_KEY, GEMINI_API_URL, GEMINI_MODEL, GEMINI_TIMEOUT_SECONDS
from panorama.models.config import AppConfig
from panorama.services.assets_service import list_active_assets
from panorama.services.config_service import get_config

ASSISTANT_NAME = "Panorama AI"

REPORT_MIN_LENGTH = 200

MISSING_KEY_MESSAGE = "Clé API introuvable."
RATE_LIMIT_MESSAGE = "Trop de demandes. Veuillez patienter une minute."
GENERIC_ERROR_MESSAGE = "Une erreur est survenue."


class AssistantError(Exception):
    """Raised when the assistant cannot produce an answer; carries the user-facing message."""


def greeting(config: AppConfig) -> str:
    return (
        f"Bonjour ! Je suis {ASSISTANT_NAME}, l'intelligence artificielle de {config.company_name}. "
        "Je suis là pour analyser votre inventaire. Que puis-je faire pour vous ?"
    )


def asset_context_line(asset: Dict[str, Any]) -> str:
    """One line of the inventory context given to the model."""
    return (
        f"- [{asset.get('code', '')}] {asset.get('name', '')} ({asset.get('category', '')})"
        f" | Année: {asset.get('acquisition_year', '')}"
        f" | Date Enreg: {asset.get('registration_date', '')}"
        f" | Loc: {asset.get('location', '')} (Porte: {asset.get('door') or 'N/A'})"
        f" | Etat: {asset.get('state', '')}"
        f" | Détenteur: {asset.get('holder') or 'Aucun'} ({asset.get('holder_presence', '')})"
        f" | Valeur: {asset.get('amount') or 0} {asset.get('unit') or ''}"
    ).rstrip()


def build_prompt(question: str, assets: List[Dict[str, Any]], config: AppConfig) -> str:
    """
    Composes the prompt sent to the model.

    Args:
        question (str): The user's question.
        assets (List[Dict[str, Any]]): Active assets to analyse.
        config (AppConfig): Configuration providing the company name.

    Returns:
        str: The full prompt.
    """

    data_context = "\n".join(asset_context_line(asset) for asset in assets)
    return f"""NOM DE L'ASSISTANT: {ASSISTANT_NAME}
CONTEXTE: Tu es une IA experte en audit et gestion de patrimoine pour l'entreprise {config.company_name}.

DONNÉES INVENTAIRE EXHAUSTIVES:
{data_context}

DEMANDE UTILISATEUR: "{question}"

CONSIGNES STRICTES:
1. Analyse TOUTES les données fournies ci-dessus.
2. Si l'utilisateur demande des acquisitions pour une année spécifique (ex: 2025), regarde le champ "Année" ou "Date Enreg".
3. Si l'utilisateur demande un rapport, structure-le proprement en Markdown (Titres ##, Listes à puces, Tableaux si pertinent).
4. Inclus des totaux et des sommaires (valeur totale, nombre d'articles) quand c'est pertinent.
5. Sois professionnel, précis et synthétique.
6. Si aucune donnée ne correspond, dis-le clairement.
"""


def is_report(text: str) -> bool:
    """Long or structured answers are offered as printable reports."""
    return len(text) > REPORT_MIN_LENGTH or "##" in text or "|" in text


async def generate_text(prompt: str, api_key: str = GEMINI_API_KEY, model: str = GEMINI_MODEL) -> str:
    """
    Sends a prompt to the Gemini `generateContent` endpoint.

    Raises:
        AssistantError: If the key is missing, the rate limit is hit or the
        request fails in any other way.
    """

    if not api_key or "PLACEHOLDER" in api_key:
        raise AssistantError(MISSING_KEY_MESSAGE)

    url = f"{GEMINI_API_URL.rstrip('/')}/models/{model}:generateContent"
    payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
    headers = {"x-goog-api-key": api_key}

    try:
        async with httpx.AsyncClient(timeout=GEMINI_TIMEOUT_SECONDS) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        print(f"❌ [ERROR] Erreur IA: HTTP {e.response.status_code}")
        if e.response.status_code == 429:
            raise AssistantError(RATE_LIMIT_MESSAGE)
        raise AssistantError(GENERIC_ERROR_MESSAGE)
    except httpx.RequestError as e:
        print(f"❌ [ERROR] Erreur IA: {e}")
        raise AssistantError(GENERIC_ERROR_MESSAGE)

    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        print(f"❌ [ERROR] Erreur IA: unexpected response {data}")
        raise AssistantError(GENERIC_ERROR_MESSAGE)
    return "".join(part.get("text", "") for part in parts)


async def ask(question: str) -> Dict[str, Any]:
    """
    Answers a question about the current inventory.

    Returns:
        dict: The assistant message, `role`, `text` and `is_report`.
    """

    config = await get_config()
    assets = await list_active_assets()
    prompt = build_prompt(question, assets, config)

    try:
        text = await generate_text(prompt)
    except AssistantError as e:
        return {"role": "ai", "text": f"⚠️ {e}", "is_report": False}

    return {"role": "ai", "text": text, "is_report": is_report(text)}
