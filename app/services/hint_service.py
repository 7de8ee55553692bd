from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.services.game_state import GameState
from app.services.rule_selector import RuleSelector

HINT_MESSAGE_PREFIX = "ヒント：隠し条件のうち一つは次のいずれかです： "


@dataclass
class Hint:
    target_rule_id: str
    options: List[str] = field(default_factory=list)
    message: str = ""

    def to_payload(self) -> Dict[str, Any]:
        # la cible n'est jamais envoyée au client
        return {"options": list(self.options), "message": self.message}


def build_hint_message(options: List[str]) -> str:
    return HINT_MESSAGE_PREFIX + "、".join(options)


def maybe_deliver_hint(game_state: GameState, selector: RuleSelector) -> Optional[Hint]:
    """
    Appelée après un tour sans point (série déjà incrémentée).
    Émet un QCM (cible + leurres) quand la série atteint le seuil et qu'une règle
    active reste non réalisée ; la série repart alors à zéro.
    """
    if game_state.no_point_turns < game_state.config.hint_streak:
        return None

    unachieved = game_state.unachieved_rules()
    if not unachieved:
        return None

    target = selector.pick(unachieved)
    options = selector.select_hint_options(target.definition, game_state.config.hint_decoy_count)
    game_state.no_point_turns = 0
    return Hint(target_rule_id=target.id, options=options, message=build_hint_message(options))
