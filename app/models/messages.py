"""
Models / messages.py
Rôle:
- Messages entrants du canal WebSocket (union discriminée sur `type`).
- Corps requête/réponse de l'endpoint HTTP de vérification de règle.

Notes:
- Les noms de champs suivent le protocole du client (camelCase).
- Un payload qui ne valide pas ces modèles donne une erreur générique `bad_request`.
"""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class JoinMessage(BaseModel):
    type: Literal["join"]
    roomCode: str = Field(..., min_length=1)
    playerName: str = Field(..., min_length=1, max_length=32)


class WordMessage(BaseModel):
    type: Literal["word"]
    word: str


class CheckRuleMessage(BaseModel):
    type: Literal["checkRule"]
    word: str = Field(..., min_length=1)
    ruleId: str


class PingMessage(BaseModel):
    type: Literal["ping"]


InboundMessage = Annotated[
    Union[JoinMessage, WordMessage, CheckRuleMessage, PingMessage],
    Field(discriminator="type"),
]

INBOUND = TypeAdapter(InboundMessage)


class CheckRuleRequest(BaseModel):
    word: str = Field(..., min_length=1)
    ruleId: str


class CheckRuleResponse(BaseModel):
    result: bool
