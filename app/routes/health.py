"""
Module routes/health.py
Rôle:
- Endpoints de santé (service OK + sonde de l'oracle).

Intégrations:
- settings: nom d'app + paramètres oracle.
- registry.oracle: question triviale pour mesurer la latence du provider / modèle.
"""
from fastapi import APIRouter, Depends
import time

from app.config.settings import settings
from app.deps.rooms import get_registry
from app.services.room_registry import RoomRegistry

router = APIRouter(prefix="/health", tags=["health"])

PROBE_QUESTION = "「りんご」は食べ物の名前ですか？ はい、いいえで答えてください。"


@router.get("")
async def health(registry: RoomRegistry = Depends(get_registry)):
    """Renvoie un OK minimal avec le nom de service et le nombre de salles vivantes."""
    return {"ok": True, "service": settings.APP_NAME, "rooms": len(registry)}


@router.get("/oracle")
async def health_oracle(registry: RoomRegistry = Depends(get_registry)):
    """
    Vérifie la disponibilité de l'oracle en mesurant une latence simple.
    - Sans clé configurée : pas d'appel réseau, `credential=False`.
    - `answer` doit valoir True pour la question témoin ("りんご" est un aliment).
    """
    oracle = registry.oracle
    if not oracle.available:
        return {
            "ok": False,
            "provider": settings.ORACLE_PROVIDER,
            "model": settings.ORACLE_MODEL,
            "credential": False,
        }
    t0 = time.perf_counter()
    answer = await oracle.ask(PROBE_QUESTION)
    dt = time.perf_counter() - t0
    return {
        "ok": answer,
        "provider": settings.ORACLE_PROVIDER,
        "model": settings.ORACLE_MODEL,
        "credential": True,
        "latency_s": round(dt, 3),
        "answer": answer,
    }
