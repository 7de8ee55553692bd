"""
Configuration de l'application (Settings)
=========================================

Rôle
----
- Centraliser les paramètres du serveur (nom, host/port, CORS, oracle, constantes de jeu).
- Les valeurs par défaut conviennent pour un environnement de dev local.
- Les variables peuvent être surchargées via un fichier `.env` ou l'environnement.

Intégrations
------------
- `pydantic-settings` charge automatiquement les variables d'env et `.env`.
- Les services/routers importent `from app.config.settings import settings`.
- `GameConfig.from_settings()` fige les constantes de jeu au moment où une salle est créée.

Bonnes pratiques
----------------
- *Ne commitez pas* de vraie `GEMINI_API_KEY`. Utilisez `.env`.
- Sans clé, les règles "oracle" ne rapportent jamais de point mais la partie reste jouable.

Exemples de `.env`
------------------
PORT=3000
GEMINI_API_KEY="mettre-une-clé-en-prod"
ORACLE_PROVIDER="ollama"
ORACLE_MODEL="llama3"
ORACLE_ENDPOINT="http://localhost:11434/api/generate"
TURN_CEILING=10
"""
from dataclasses import dataclass
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash-lite:generateContent"


class Settings(BaseSettings):
    # Nom du service (apparaît dans /health)
    APP_NAME: str = "Hidden Rule Shiritori"
    # Bind réseau (FastAPI / Uvicorn)
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Frontends autorisés (CORS)
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    # Oracle sémantique : "gemini" (clé requise) ou "ollama" (local, sans clé)
    ORACLE_PROVIDER: str = "gemini"
    ORACLE_MODEL: str = "gemini-2.0-flash-lite"
    ORACLE_ENDPOINT: str = GEMINI_ENDPOINT
    GEMINI_API_KEY: Optional[str] = None
    ORACLE_CONNECT_TIMEOUT: float = 5.0
    ORACLE_READ_TIMEOUT: float = 15.0

    # Constantes de partie (lues à la création de chaque salle)
    WIN_SCORE: int = 5
    TURN_CEILING: int = 7
    MAX_PLAYERS: int = 2
    HINT_STREAK: int = 2
    ACTIVE_RULE_COUNT: int = 3
    CANDIDATE_DECOY_COUNT: int = 6
    HINT_DECOY_COUNT: int = 2
    ROOM_CODE_PATTERN: str = r"^[0-9A-Za-z_-]{1,32}$"
    MAX_WORD_LENGTH: int = 32

    # Paramétrage pydantic-settings :
    # - lit le fichier .env (UTF-8) si présent
    # - ignore les clés supplémentaires pour éviter les erreurs
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@dataclass(frozen=True)
class GameConfig:
    """Constantes figées pour la durée de vie d'une salle."""
    win_score: int = 5
    turn_ceiling: int = 7
    max_players: int = 2
    hint_streak: int = 2
    active_rule_count: int = 3
    candidate_decoy_count: int = 6
    hint_decoy_count: int = 2
    max_word_length: int = 32

    @classmethod
    def from_settings(cls, s: "Settings") -> "GameConfig":
        return cls(
            win_score=s.WIN_SCORE,
            turn_ceiling=s.TURN_CEILING,
            max_players=s.MAX_PLAYERS,
            hint_streak=s.HINT_STREAK,
            active_rule_count=s.ACTIVE_RULE_COUNT,
            candidate_decoy_count=s.CANDIDATE_DECOY_COUNT,
            hint_decoy_count=s.HINT_DECOY_COUNT,
            max_word_length=s.MAX_WORD_LENGTH,
        )


# Instance unique importable partout : `settings`
settings = Settings()
