"""
Application FastAPI — Point d'entrée
====================================

Rôle
----
- Instancie l'app FastAPI, configure le CORS pour le front,
- Crée le registre des salles (`app.state.rooms`) avec l'oracle configuré,
- Monte les routeurs (REST + WebSocket),
- Journalise la configuration oracle et la liste des routes au démarrage.

Notes
-----
- Les importations des routeurs sont explicites pour éviter les surprises d'auto-discovery.
- `create_app(registry=...)` permet aux tests d'injecter un oracle factice et un RNG fixé.
- ⚠️ Le middleware CORS doit être ajouté AVANT les include_router.
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.routes.health import router as health_router
from app.routes.rooms import router as rooms_router
from app.routes.rules import router as rules_router
from app.routes.websocket import router as ws_router

from app.config.settings import settings
from app.services.oracle import ORACLE
from app.services.room_registry import RoomRegistry

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(registry: Optional[RoomRegistry] = None) -> FastAPI:
    app = FastAPI(title=settings.APP_NAME)
    app.state.rooms = registry if registry is not None else RoomRegistry(ORACLE)

    # ===========================
    # CORS (dev: permissif)
    # ===========================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ===========================
    # Montage des routers
    # ===========================
    app.include_router(ws_router)                  # WebSocket endpoint (/ws)
    app.include_router(rules_router)               # /api/check-hidden-rule
    app.include_router(rooms_router)
    app.include_router(health_router)

    # --- Racine utile pour "ping" simple (sans /health) ---
    @app.get("/")
    async def root():
        """Ping basique : permet de vérifier que l'app tourne (sans dépendance oracle)."""
        return {"ok": True, "service": "hidden-rule-shiritori"}

    # --- Hook de démarrage ---
    @app.on_event("startup")
    async def list_routes():
        """
        Au démarrage:
        - journalise la config oracle courante (provider, modèle, clé présente ou non),
        - liste les routes (path + méthodes) (diagnostic).
        """
        logger.info(
            "Oracle config provider=%s model=%s credential=%s",
            settings.ORACLE_PROVIDER,
            settings.ORACLE_MODEL,
            app.state.rooms.oracle.available,
        )
        for r in app.routes:
            logger.info("Route %s %s", getattr(r, "path", "?"), getattr(r, "methods", None) or "WS")

    return app


# --- App FastAPI principale ---
app = create_app()
