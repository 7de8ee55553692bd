"""
Module routes/rules.py
Rôle:
- Endpoint requête/réponse de vérification d'une règle du catalogue pour un mot.
- `ruleId` → gabarit de question fixe → oracle ; règle locale → évaluée sur place.
- `ruleId` inconnu → 400, sans appel à l'oracle.
"""
from fastapi import APIRouter, Depends, HTTPException

from app.deps.rooms import get_registry
from app.models.messages import CheckRuleRequest, CheckRuleResponse
from app.services.errors import UnknownRuleError
from app.services.game_engine import check_rule
from app.services.room_registry import RoomRegistry

router = APIRouter(prefix="/api", tags=["rules"])


@router.post("/check-hidden-rule", response_model=CheckRuleResponse)
async def check_hidden_rule(payload: CheckRuleRequest, registry: RoomRegistry = Depends(get_registry)):
    """Renvoie {"result": bool} pour le couple (word, ruleId)."""
    try:
        result = await check_rule(registry.oracle, payload.ruleId, payload.word)
    except UnknownRuleError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    return CheckRuleResponse(result=result)
