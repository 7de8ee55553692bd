# app/services/ws_manager.py
"""
Service: ws_manager.py
- Acceptation des sockets, envoi JSON "best effort" (orjson).
- Un envoi qui échoue renvoie False et est journalisé : il n'empêche jamais la
  livraison aux autres membres et ne remonte pas comme erreur de salle.
- Snapshots immuables pour éviter "set changed size during iteration".
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from starlette.websockets import WebSocket

from .io_utils import dumps_text

logger = logging.getLogger(__name__)


class WSManager:
    async def connect(self, ws: WebSocket) -> None:
        """Accepte la connexion WS."""
        await ws.accept()

    async def send_json(self, ws: Any, payload: Any) -> bool:
        """Envoie à un WS ; renvoie True si succès, sinon False."""
        try:
            await ws.send_text(dumps_text(payload))
            return True
        except Exception:
            logger.debug("Dropped message to dead socket", exc_info=True)
            return False

    async def send_type(self, ws: Any, event_type: str, **fields: Any) -> bool:
        return await self.send_json(ws, {"type": event_type, **fields})

    async def broadcast(self, sockets: Iterable[Any], payload: Any) -> int:
        """Diffuse à un snapshot de sockets ; renvoie le nombre d'envois réussis."""
        conns = list(sockets)
        success = 0
        for ws in conns:
            if await self.send_json(ws, payload):
                success += 1
        if success < len(conns):
            logger.debug("Broadcast partially delivered", extra={"delivered": success, "targets": len(conns)})
        return success

    async def broadcast_type(self, sockets: Iterable[Any], event_type: str, **fields: Any) -> int:
        return await self.broadcast(sockets, {"type": event_type, **fields})


WS = WSManager()
