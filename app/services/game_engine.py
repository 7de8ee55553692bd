"""
Service: game_engine.py
Rôle:
- Moteur d'une salle : validation du mot (tour, enchaînement, « ん » final), évaluation
  des 3 règles cachées, score, indices et détection de fin de partie.

Machine à états:
- WAITING_FOR_PLAYERS → IN_PROGRESS → COMPLETE(winner)
- IN_PROGRESS boucle sur chaque mot accepté.

Ordre des contrôles (chacun court-circuite, sans mutation):
  0. partie terminée / salle incomplète / joueur inconnu
  1. tour du joueur
  2. enchaînement (ou caractère de départ pour le premier mot)
  3. « ん » final, sauf si la règle dédiée est active ET vraie pour ce mot

API interne exposée au registre:
- GameEngine.process_word(player, word) -> TurnResult (lève GameError si refus)
- GameEngine.evaluate_rule(definition, word, previous) -> bool
"""
from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.models.game import AchievedRule, TurnRecord
from app.models.rule import DelegatedPredicate, RuleDefinition
from app.services import kana
from app.services.errors import (
    ChainLinkError,
    ForbiddenEndingError,
    GameError,
    GameOverError,
    InvalidWordError,
    NotYourTurnError,
    UnknownRuleError,
    UnknownPlayerError,
    WaitingForPlayersError,
)
from app.services.game_state import GameState
from app.services.hint_service import Hint, maybe_deliver_hint
from app.services.oracle import SemanticOracle
from app.services.rule_catalog import CATALOG, N_ENDING_RULE_ID, RuleCatalog
from app.services.rule_selector import RuleSelector

logger = logging.getLogger(__name__)

REASON_SCORE = "score_threshold"
REASON_CEILING = "turn_ceiling"


@dataclass
class TurnResult:
    player: str
    word: str
    points: int = 0
    rules_achieved: List[Dict[str, Any]] = field(default_factory=list)
    new_score: int = 0
    hint: Optional[Hint] = None
    game_over: bool = False
    winner: Optional[str] = None
    winners: List[str] = field(default_factory=list)
    draw: bool = False
    reason: Optional[str] = None
    reason_code: Optional[str] = None


def normalize_word(word: str) -> str:
    return unicodedata.normalize("NFC", (word or "").strip())


class GameEngine:
    def __init__(
        self,
        game_state: GameState,
        selector: RuleSelector,
        oracle: SemanticOracle,
        catalog: RuleCatalog = CATALOG,
    ) -> None:
        self.game_state = game_state
        self.selector = selector
        self.oracle = oracle
        self.catalog = catalog

    # ---------------- évaluation ----------------
    async def evaluate_rule(self, definition: RuleDefinition, word: str, previous: Optional[str] = None) -> bool:
        """Évalue une règle : table locale ou question à l'oracle (échec → False)."""
        predicate = definition.predicate
        if isinstance(predicate, DelegatedPredicate):
            if predicate.needs_previous and not previous:
                return False
            question = predicate.question(word, previous)
            return await self.oracle.ask(question, log=self.game_state.oracle_interactions)
        return self.catalog.check_local(definition, word, previous)

    # ---------------- validation ----------------
    async def validate(self, player: str, word: str) -> None:
        gs = self.game_state
        if gs.is_complete:
            raise GameOverError("ゲームは終了しています")
        if player not in gs.players:
            raise UnknownPlayerError("このルームのプレイヤーではありません")
        if not gs.is_full:
            raise WaitingForPlayersError("対戦相手の参加を待っています")
        if gs.players.index(player) != gs.turn:
            raise NotYourTurnError("相手のターンです")
        if not word or len(word) > gs.config.max_word_length:
            raise InvalidWordError("単語を入力してください")

        previous = gs.previous_word
        if previous is not None:
            if not kana.links(previous, word):
                raise ChainLinkError("前の単語の最後の文字で始めてください")
        elif kana.fold(kana.head_char(word)) != kana.fold(gs.first_character):
            raise ChainLinkError(f"最初の単語は「{gs.first_character}」から始めてください")

        if kana.ends_with_n(word) and not await self._n_ending_allowed(word, previous):
            raise ForbiddenEndingError("「ん」で終わる単語は使えません (特別なルールがない限り)")

    async def _n_ending_allowed(self, word: str, previous: Optional[str]) -> bool:
        rule = self.game_state.rule(N_ENDING_RULE_ID)
        if rule is None:
            return False
        return await self.evaluate_rule(rule.definition, word, previous)

    # ---------------- tour complet ----------------
    async def process_word(self, player: str, word: str) -> TurnResult:
        """
        Traite un mot soumis. Lève `GameError` (sans mutation) si refusé ; sinon
        ajoute le mot, score, éventuel indice, puis fin de partie ou tour suivant.
        """
        gs = self.game_state
        word = normalize_word(word)
        try:
            await self.validate(player, word)
        except GameError as exc:
            logger.info(
                "Word rejected",
                extra={"room_code": gs.room_code, "player": player, "word": word, "reason": str(exc)},
            )
            raise

        previous = gs.previous_word
        # évaluation d'abord (allers-retours oracle), puis mutations d'un seul bloc
        satisfied = []
        for rule in gs.rules:
            if await self.evaluate_rule(rule.definition, word, previous):
                satisfied.append(rule)

        gs.history.append(word)
        gs.words_said[player] = gs.words_said.get(player, 0) + 1

        result = TurnResult(player=player, word=word)
        for rule in satisfied:
            result.points += rule.points
            result.rules_achieved.append({"ruleId": rule.id, "description": rule.description, "points": rule.points})
            rule.mark_achieved(player)

        gs.history_details.append(
            TurnRecord(
                player=player,
                word=word,
                points=result.points,
                rules_achieved=[
                    AchievedRule(id=r["ruleId"], description=r["description"]) for r in result.rules_achieved
                ],
            )
        )

        if result.points > 0:
            gs.scores[player] = gs.scores.get(player, 0) + result.points
            gs.no_point_turns = 0
        else:
            gs.no_point_turns += 1
            result.hint = maybe_deliver_hint(gs, self.selector)
        result.new_score = gs.scores.get(player, 0)

        self._check_game_over(player, result)
        if not result.game_over:
            gs.turn = (gs.turn + 1) % len(gs.players)

        logger.info(
            "Word accepted",
            extra={"room_code": gs.room_code, "player": player, "word": word, "points": result.points},
        )
        return result

    def _check_game_over(self, player: str, result: TurnResult) -> None:
        gs = self.game_state
        cfg = gs.config
        if gs.scores.get(player, 0) >= cfg.win_score:
            gs.finish([player], f"{player}が{cfg.win_score}ポイント獲得しました！", REASON_SCORE)
        elif all(gs.words_said.get(p, 0) >= cfg.turn_ceiling for p in gs.players):
            best = max(gs.scores.get(p, 0) for p in gs.players)
            leaders = [p for p in gs.players if gs.scores.get(p, 0) == best]
            gs.finish(leaders, f"各プレイヤーが{cfg.turn_ceiling}単語言い終わりました。", REASON_CEILING)
        else:
            return

        result.game_over = True
        result.winner = gs.winner
        result.winners = list(gs.winners)
        result.draw = gs.draw
        result.reason = gs.game_over_reason
        result.reason_code = gs.end_reason
        logger.info(
            "Game over",
            extra={"room_code": gs.room_code, "winners": gs.winners, "reason": gs.end_reason},
        )


async def check_rule(
    oracle: SemanticOracle,
    rule_id: str,
    word: str,
    previous: Optional[str] = None,
    catalog: RuleCatalog = CATALOG,
) -> bool:
    """
    Vérification ponctuelle d'une règle du catalogue (diagnostic, hors partie).
    Id inconnu → `UnknownRuleError` sans jamais interroger l'oracle.
    """
    definition = catalog.get(rule_id)
    if definition is None:
        raise UnknownRuleError(f"Unknown rule id '{rule_id}'")
    word = normalize_word(word)
    if not definition.needs_oracle:
        return catalog.check_local(definition, word, previous)
    if definition.needs_previous and not previous:
        return False
    return await oracle.ask(catalog.question_for(rule_id, word, previous))
