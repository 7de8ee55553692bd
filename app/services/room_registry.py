"""
Room registry
=============

Associe chaque code de salle à {GameState + moteur, connexions vivantes}.

- Créée au démarrage de l'app (`app.state.rooms`), jamais en variable globale.
- Création (premier `join`) et destruction (dernière déconnexion) sont faites sous
  `_lock`, sans `await` entre le test et la mutation.
- Chaque salle possède un `asyncio.Lock` : les mots d'une même salle sont traités
  un par un (aller-retour oracle compris) ; deux salles différentes s'entrelacent librement.
- Toute émission d'état passe par `GameState.snapshot()` (vue assainie).
"""
from __future__ import annotations

import asyncio
import logging
import random
import re
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from app.config.settings import GameConfig, settings
from app.services.errors import GameError, InvalidRoomCodeError, NotJoinedError, RoomFullError
from app.services.game_engine import GameEngine, TurnResult
from app.services.game_state import GameState
from app.services.oracle import SemanticOracle
from app.services.rule_catalog import CATALOG, RuleCatalog
from app.services.rule_selector import RuleSelector
from app.services.ws_manager import WS, WSManager

logger = logging.getLogger(__name__)


@dataclass
class Room:
    code: str
    engine: GameEngine
    # socket -> nom du joueur
    clients: Dict[Any, str] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def game_state(self) -> GameState:
        return self.engine.game_state

    def sockets(self) -> List[Any]:
        return list(self.clients.keys())


class RoomRegistry:
    def __init__(
        self,
        oracle: SemanticOracle,
        *,
        catalog: RuleCatalog = CATALOG,
        rng: Optional[random.Random] = None,
        config_factory: Optional[Callable[[], GameConfig]] = None,
        ws_manager: WSManager = WS,
        room_code_pattern: str = settings.ROOM_CODE_PATTERN,
    ) -> None:
        self.oracle = oracle
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.config_factory = config_factory or (lambda: GameConfig.from_settings(settings))
        self.ws = ws_manager
        self._room_code_re = re.compile(room_code_pattern)
        self._lock = RLock()
        self._rooms: Dict[str, Room] = {}
        # reverse map: socket -> room code
        self._socket_rooms: Dict[Any, str] = {}

    # ---------- lecture ----------
    def get(self, room_code: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_code)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def stats(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                {
                    "roomCode": code,
                    "players": list(room.game_state.players),
                    "connections": len(room.clients),
                    "phase": room.game_state.phase,
                }
                for code, room in self._rooms.items()
            ]

    # ---------- cycle de vie ----------
    def _create_room(self, room_code: str) -> Room:
        selector = RuleSelector(self.catalog, self.rng)
        game_state = GameState.create(room_code, selector, config=self.config_factory())
        engine = GameEngine(game_state, selector, self.oracle, self.catalog)
        room = Room(code=room_code, engine=engine)
        self._rooms[room_code] = room
        logger.info(
            "Room created",
            extra={
                "room_code": room_code,
                "first_character": game_state.first_character,
                "rule_ids": [rule.id for rule in game_state.rules],
            },
        )
        return room

    def _register(self, room_code: str, player_name: str, ws: Any) -> tuple[Room, Optional[tuple[Room, str, bool]]]:
        """
        Partie synchrone (atomique) du join : création, contrôle de capacité, inscription.
        Renvoie aussi le résultat du détachement si la socket quittait une autre salle.
        """
        code = (room_code or "").strip()
        if not self._room_code_re.match(code):
            raise InvalidRoomCodeError("ルームコードが不正です")
        name = (player_name or "").strip()
        if not name:
            raise GameError("プレイヤー名を入力してください", code="invalid_player_name")
        with self._lock:
            room = self._rooms.get(code) or self._create_room(code)
            gs = room.game_state
            if name not in gs.players and gs.is_full:
                raise RoomFullError("ルームが満員です")
            detached = None
            if self._socket_rooms.get(ws) not in (None, code):
                detached = self._detach(ws)
            gs.add_player(name)
            room.clients[ws] = name
            self._socket_rooms[ws] = code
            return room, detached

    def _detach(self, ws: Any) -> Optional[tuple[Room, str, bool]]:
        """Retire `ws` de sa salle ; détruit la salle si elle devient vide."""
        with self._lock:
            code = self._socket_rooms.pop(ws, None)
            room = self._rooms.get(code) if code else None
            if room is None:
                return None
            player = room.clients.pop(ws, None)
            destroyed = not room.clients
            if destroyed:
                self._rooms.pop(code, None)
                logger.info("Room destroyed", extra={"room_code": code})
            return room, player, destroyed

    # ---------- actions ----------
    async def join(self, room_code: str, player_name: str, ws: Any) -> Room:
        """Inscrit le joueur (idempotent), envoie l'état au nouvel arrivant puis à tous."""
        room, detached = self._register(room_code, player_name, ws)
        await self._notify_departure(detached)
        snapshot = room.game_state.snapshot()
        await self.ws.send_type(ws, "gameState", gameState=snapshot)
        await self.ws.broadcast_type(room.sockets(), "gameState", gameState=snapshot)
        return room

    async def submit_word(self, room_code: str, player_name: str, word: str) -> TurnResult:
        """
        Route le mot vers le moteur de la salle (sérialisé par salle), puis diffuse
        pointGained / hint / gameOver selon le résultat et, dans tous les cas, l'état.
        Les refus (`GameError`) remontent à l'appelant, sans diffusion.
        """
        room = self.get(room_code)
        if room is None:
            raise NotJoinedError("ルームに参加していません")

        async with room.lock:
            result = await room.engine.process_word(player_name, word)
            sockets = room.sockets()

            if result.points > 0:
                await self.ws.broadcast_type(
                    sockets,
                    "pointGained",
                    player=result.player,
                    points=result.points,
                    rulesAchieved=result.rules_achieved,
                    newScore=result.new_score,
                )
            if result.hint is not None:
                await self.ws.broadcast_type(sockets, "hint", **result.hint.to_payload())
            if result.game_over:
                await self.ws.broadcast_type(
                    sockets,
                    "gameOver",
                    winner=result.winner or ", ".join(result.winners),
                    winners=result.winners,
                    draw=result.draw,
                    reason=result.reason,
                    reasonCode=result.reason_code,
                    interactions=list(room.game_state.oracle_interactions),
                )
            await self.ws.broadcast_type(sockets, "gameState", gameState=room.game_state.snapshot())
        return result

    async def disconnect(self, ws: Any) -> None:
        """Retire la connexion ; salle détruite si vide, sinon les autres sont prévenus."""
        await self._notify_departure(self._detach(ws))

    async def _notify_departure(self, detached: Optional[tuple[Room, str, bool]]) -> None:
        if detached is None:
            return
        room, player, destroyed = detached
        if not destroyed:
            await self.ws.broadcast_type(room.sockets(), "playerDisconnected", player=player)
