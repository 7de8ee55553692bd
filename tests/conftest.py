from __future__ import annotations

import asyncio
import json
from typing import Dict, List, Optional

import pytest

from app.config.settings import GameConfig
from app.models.rule import Rule
from app.services.game_state import GameState
from app.services.rule_catalog import CATALOG


class FakeOracle:
    """Oracle de test : réponses fixées par sous-chaîne de question, sinon `default`."""

    def __init__(self, default: bool = False, answers: Optional[Dict[str, bool]] = None, available: bool = True):
        self.default = default
        self.answers = answers or {}
        self.available = available
        self.questions: List[str] = []

    async def ask(self, question: str, *, log=None) -> bool:
        self.questions.append(question)
        verdict = self.default
        for needle, answer in self.answers.items():
            if needle in question:
                verdict = answer
        if log is not None:
            log.append({"prompt": question, "response": "はい" if verdict else "いいえ"})
        return verdict


class SlowOracle(FakeOracle):
    """Oracle lent : cède la boucle avant de répondre (simule l'aller-retour réseau)."""

    def __init__(self, delay: float = 0.01, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay

    async def ask(self, question: str, *, log=None) -> bool:
        await asyncio.sleep(self.delay)
        return await super().ask(question, log=log)


class HangingOracle(FakeOracle):
    """Oracle qui ne répond jamais : la tâche ne peut finir que par annulation."""

    async def ask(self, question: str, *, log=None) -> bool:
        self.questions.append(question)
        await asyncio.Event().wait()
        return False


class FakeSocket:
    """Socket minimale : enregistre les messages envoyés (ou échoue si `fail`)."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[dict] = []

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(data))

    def of_type(self, event_type: str) -> List[dict]:
        return [m for m in self.sent if m["type"] == event_type]


def make_state(
    rule_ids,
    players=("A", "B"),
    first_character: str = "あ",
    config: Optional[GameConfig] = None,
) -> GameState:
    state = GameState(
        room_code="1234",
        first_character=first_character,
        rules=[Rule(definition=CATALOG.get(rid)) for rid in rule_ids],
        candidates=[],
        config=config or GameConfig(),
    )
    for name in players:
        state.add_player(name)
    return state


@pytest.fixture
def oracle():
    return FakeOracle()
