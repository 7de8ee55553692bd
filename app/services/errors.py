"""
Service: errors.py
- Erreurs "joueur" : refus récupérables, renvoyés uniquement à la connexion fautive.
- Chaque erreur porte un `code` stable (pour le front) et un message lisible.
"""
from __future__ import annotations


class GameError(ValueError):
    """Action refusée par le serveur ; aucun état n'a été modifié."""

    code = "game_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_payload(self) -> dict:
        return {"type": "error", "code": self.code, "message": self.message}


class NotYourTurnError(GameError):
    code = "not_your_turn"


class ChainLinkError(GameError):
    code = "chain_broken"


class ForbiddenEndingError(GameError):
    code = "forbidden_ending"


class GameOverError(GameError):
    code = "game_over"


class InvalidWordError(GameError):
    code = "invalid_word"


class UnknownPlayerError(GameError):
    code = "unknown_player"


class RoomFullError(GameError):
    code = "room_full"


class InvalidRoomCodeError(GameError):
    code = "invalid_room_code"


class NotJoinedError(GameError):
    code = "not_joined"


class WaitingForPlayersError(GameError):
    code = "waiting_for_players"


class UnknownRuleError(GameError):
    code = "unknown_rule"
