"""
Module routes/rooms.py
Rôle:
- Lecture seule des salles vivantes (diagnostic).
- Toujours la vue assainie : ni prédicats, ni drapeau oracle, ni journal oracle.
"""
from fastapi import APIRouter, Depends, HTTPException

from app.deps.rooms import get_registry
from app.services.room_registry import RoomRegistry

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("")
async def list_rooms(registry: RoomRegistry = Depends(get_registry)):
    """Codes de salle, joueurs, nombre de connexions et phase."""
    return {"rooms": registry.stats()}


@router.get("/{room_code}")
async def room_state(room_code: str, registry: RoomRegistry = Depends(get_registry)):
    room = registry.get(room_code)
    if room is None:
        raise HTTPException(404, "Unknown room")
    return {"gameState": room.game_state.snapshot()}
