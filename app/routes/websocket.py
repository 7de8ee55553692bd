# app/routes/websocket.py
"""
WebSocket endpoint.

- /ws : canal joueur (join / word / checkRule / ping).
- Un refus de jeu (`GameError`) n'est renvoyé qu'à la socket fautive.
- Un message illisible ou hors schéma donne une erreur générique `bad_request`,
  sans toucher à la salle ni aux autres connexions.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from app.models.messages import INBOUND, CheckRuleMessage, JoinMessage, PingMessage, WordMessage
from app.services.errors import GameError, NotJoinedError
from app.services.game_engine import check_rule
from app.services.io_utils import JSONDecodeError, loads
from app.services.room_registry import RoomRegistry

logger = logging.getLogger(__name__)

router = APIRouter()

BAD_REQUEST = {"type": "error", "code": "bad_request", "message": "不正なメッセージです"}


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    """
    Boucle d'écoute des clients joueurs.
    - {"type":"join","roomCode":"1234","playerName":"A"} → inscription + gameState.
    - {"type":"word","word":"あり"} → tour de jeu (après join).
    - {"type":"checkRule","word":"...","ruleId":"rule4"} → diagnostic (checkRuleResult).
    - {"type":"ping"} → pong.
    """
    registry: RoomRegistry = ws.app.state.rooms
    manager = registry.ws
    await manager.connect(ws)
    room_code: Optional[str] = None
    player_name: Optional[str] = None
    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            msg = None
            # une trame binaire (raw None) est hors protocole
            if raw is not None:
                try:
                    msg = INBOUND.validate_python(loads(raw))
                except (JSONDecodeError, ValidationError):
                    msg = None
            if msg is None:
                logger.info("Malformed inbound payload", extra={"room_code": room_code})
                await manager.send_json(ws, BAD_REQUEST)
                continue

            try:
                if isinstance(msg, JoinMessage):
                    room = await registry.join(msg.roomCode, msg.playerName, ws)
                    room_code, player_name = room.code, room.clients.get(ws)
                elif isinstance(msg, WordMessage):
                    if not room_code or not player_name:
                        raise NotJoinedError("ルームに参加していません")
                    await registry.submit_word(room_code, player_name, msg.word)
                elif isinstance(msg, CheckRuleMessage):
                    result = await check_rule(registry.oracle, msg.ruleId, msg.word)
                    await manager.send_type(ws, "checkRuleResult", ruleId=msg.ruleId, word=msg.word, result=result)
                elif isinstance(msg, PingMessage):
                    await manager.send_type(ws, "pong")
            except GameError as exc:
                await manager.send_json(ws, exc.to_payload())
    except WebSocketDisconnect:
        pass
    finally:
        await registry.disconnect(ws)
