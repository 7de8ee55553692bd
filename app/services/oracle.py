"""
Service: oracle.py
- Centralise les appels vers l'oracle sémantique (Gemini par défaut, Ollama possible)
  qui répond "はい / いいえ" à une question fermée sur un mot.
- Échec fermé : timeout, erreur réseau, statut non-2xx, réponse mal formée ou clé absente
  → verdict `False`, journalisé, jamais propagé à la salle.

Fonctions principales:
- OracleClient.generate(prompt): appel HTTP bloquant (requests), sans retry automatique.
- SemanticOracle.ask(question): version async (thread worker via anyio) qui renvoie un bool.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

import anyio
import requests
from requests.adapters import HTTPAdapter

from app.config.settings import settings

logger = logging.getLogger(__name__)

YES_ANSWERS = frozenset({"はい", "yes"})


class OracleServiceError(RuntimeError):
    """Erreur encapsulant un échec de communication avec l'oracle."""


class OracleClient:
    """
    Client HTTP centralisé pour interroger l'oracle.
    - Aucun retry : un échec vaut "non" immédiatement.
    - Journalise chaque requête avec un identifiant de corrélation.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        provider: str = "gemini",
        model: str = "",
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Tuple[float, float] = (5.0, 15.0),
    ) -> None:
        self.endpoint = endpoint
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.session = session or self._build_session()
        self.timeout = timeout

    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    @property
    def has_credential(self) -> bool:
        if self.provider == "gemini":
            return bool(self.api_key)
        return True

    def _post(self, url: str, payload: Dict[str, Any], *, request_id: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        try:
            logger.debug(
                "Oracle request start",
                extra={"oracle_url": url, "oracle_request_id": request_id},
            )
            response = self.session.post(url, json=payload, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response
        except requests.Timeout as exc:
            logger.warning(
                "Oracle request timeout",
                extra={"oracle_url": url, "oracle_request_id": request_id},
            )
            raise OracleServiceError("Oracle request timed out") from exc
        except requests.RequestException as exc:
            logger.error(
                "Oracle request failed",
                exc_info=True,
                extra={"oracle_url": url, "oracle_request_id": request_id},
            )
            raise OracleServiceError("Oracle request failed") from exc

    def _payload(self, prompt: str) -> Dict[str, Any]:
        if self.provider == "ollama":
            return {"model": self.model, "prompt": prompt, "stream": False}
        return {"contents": [{"parts": [{"text": prompt}]}]}

    @staticmethod
    def _extract_text(provider: str, data: Dict[str, Any]) -> str:
        if provider == "ollama":
            text = data.get("response")
        else:
            # Gemini: candidates[0].content.parts[0].text
            try:
                text = data["candidates"][0]["content"]["parts"][0]["text"]
            except (KeyError, IndexError, TypeError):
                text = None
        if not isinstance(text, str):
            raise OracleServiceError("Unexpected oracle response shape")
        return text

    def generate(self, prompt: str, *, request_id: str) -> str:
        if not self.has_credential:
            raise OracleServiceError("Oracle credential is not configured")
        params = {"key": self.api_key} if self.provider == "gemini" else None
        response = self._post(self.endpoint, self._payload(prompt), request_id=request_id, params=params)
        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            logger.error(
                "Invalid JSON payload from oracle",
                exc_info=True,
                extra={"oracle_request_id": request_id},
            )
            raise OracleServiceError("Invalid JSON payload from oracle") from exc
        text = self._extract_text(self.provider, data if isinstance(data, dict) else {})
        logger.debug("Oracle generate success", extra={"oracle_request_id": request_id})
        return text


def is_affirmative(text: str) -> bool:
    """'はい' / 'yes' (casse et ponctuation finale ignorées)."""
    cleaned = (text or "").strip().lower().rstrip("。.!！")
    return cleaned in YES_ANSWERS


class SemanticOracle:
    """Façade async : une question fermée → un booléen, sans jamais lever."""

    def __init__(self, client: OracleClient) -> None:
        self.client = client

    @property
    def available(self) -> bool:
        return self.client.has_credential

    async def ask(self, question: str, *, log: Optional[List[Dict[str, str]]] = None) -> bool:
        request_id = f"oracle-{uuid4().hex}"
        if not self.client.has_credential:
            logger.warning(
                "Oracle credential missing, answering no",
                extra={"oracle_request_id": request_id},
            )
            if log is not None:
                log.append({"prompt": question, "response": "Error: missing credential"})
            return False
        try:
            text = await anyio.to_thread.run_sync(
                lambda: self.client.generate(question, request_id=request_id)
            )
        except OracleServiceError as exc:
            if log is not None:
                log.append({"prompt": question, "response": f"Error: {exc}"})
            return False
        except Exception as exc:
            logger.exception("Unexpected error while asking oracle", extra={"oracle_request_id": request_id})
            if log is not None:
                log.append({"prompt": question, "response": f"Error: {exc}"})
            return False

        answer = text.strip().lower()
        if log is not None:
            log.append({"prompt": question, "response": answer})
        verdict = is_affirmative(answer)
        logger.info(
            "Oracle answered",
            extra={"oracle_request_id": request_id, "oracle_verdict": verdict},
        )
        return verdict


def build_oracle() -> SemanticOracle:
    """Oracle configuré depuis `settings` (provider, modèle, clé, timeouts)."""
    client = OracleClient(
        settings.ORACLE_ENDPOINT,
        provider=settings.ORACLE_PROVIDER,
        model=settings.ORACLE_MODEL,
        api_key=settings.GEMINI_API_KEY,
        timeout=(settings.ORACLE_CONNECT_TIMEOUT, settings.ORACLE_READ_TIMEOUT),
    )
    return SemanticOracle(client)


ORACLE = build_oracle()
