"""
Dépendance FastAPI donnant accès au registre des salles.

Le registre est créé avec l'app (`app.state.rooms`) ; les routes HTTP le reçoivent
via `Depends(get_registry)`, le WebSocket via `ws.app.state.rooms`.
"""
from __future__ import annotations

from fastapi import Request

from app.services.room_registry import RoomRegistry


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.rooms
