"""
Service: game_state.py
Rôle :
- Stocker l'état d'une salle (joueurs, mots, tour, règles, scores, journal) en mémoire.
- Une instance par code de salle, créée au premier `join` et détruite avec la salle.

Invariants :
- `turn` ∈ [0, len(players)) et vaut (nombre de mots acceptés) mod len(players).
- `history` et `history_details` ne font que croître.
- Au plus `config.max_players` noms distincts.
- `public_view()` est la seule sortie vers l'extérieur : jamais de prédicat ni de
  drapeau "oracle", jamais le journal des échanges oracle.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.config.settings import GameConfig, settings
from app.models.game import GameStateView, TurnRecord
from app.models.rule import CandidateView, Rule
from app.services import kana
from app.services.rule_selector import RuleSelector

PHASE_WAITING = "WAITING_FOR_PLAYERS"
PHASE_IN_PROGRESS = "IN_PROGRESS"
PHASE_COMPLETE = "COMPLETE"


@dataclass
class GameState:
    room_code: str
    first_character: str
    rules: List[Rule]
    candidates: List[CandidateView]
    config: GameConfig = field(default_factory=lambda: GameConfig.from_settings(settings))
    players: List[str] = field(default_factory=list)
    history: List[str] = field(default_factory=list)
    turn: int = 0
    scores: Dict[str, int] = field(default_factory=dict)
    words_said: Dict[str, int] = field(default_factory=dict)
    no_point_turns: int = 0
    winner: Optional[str] = None
    winners: List[str] = field(default_factory=list)
    draw: bool = False
    game_over_reason: Optional[str] = None
    end_reason: Optional[str] = None
    history_details: List[TurnRecord] = field(default_factory=list)
    oracle_interactions: List[Dict[str, str]] = field(default_factory=list)

    # -----------------------------
    # Création
    # -----------------------------
    @classmethod
    def create(
        cls,
        room_code: str,
        selector: RuleSelector,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> "GameState":
        """Nouvelle salle : caractère de départ + tirage des règles et des leurres."""
        config = config or GameConfig.from_settings(settings)
        rules = selector.select_active_rules(config.active_rule_count)
        candidates = selector.select_candidate_set(rules, config.candidate_decoy_count)
        return cls(
            room_code=room_code,
            first_character=kana.random_start_char(rng or selector.rng),
            rules=rules,
            candidates=candidates,
            config=config,
        )

    # -----------------------------
    # Lecture
    # -----------------------------
    @property
    def phase(self) -> str:
        if self.is_complete:
            return PHASE_COMPLETE
        if len(self.players) < self.config.max_players:
            return PHASE_WAITING
        return PHASE_IN_PROGRESS

    @property
    def is_complete(self) -> bool:
        return self.game_over_reason is not None

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.config.max_players

    @property
    def previous_word(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def unachieved_rules(self) -> List[Rule]:
        return [rule for rule in self.rules if rule.achieved_by is None]

    def rule(self, rule_id: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    # -----------------------------
    # Gestion des joueurs
    # -----------------------------
    def add_player(self, name: str) -> bool:
        """Inscrit `name` ; idempotent. Renvoie True si le joueur est nouveau."""
        if name in self.players:
            return False
        self.players.append(name)
        self.scores[name] = 0
        self.words_said[name] = 0
        return True

    # -----------------------------
    # Fin de partie
    # -----------------------------
    def finish(self, winners: List[str], reason: str, code: str) -> None:
        self.winners = list(winners)
        self.draw = len(winners) > 1
        self.winner = winners[0] if len(winners) == 1 else None
        self.game_over_reason = reason
        self.end_reason = code

    # -----------------------------
    # Sérialisation assainie
    # -----------------------------
    def public_view(self) -> GameStateView:
        return GameStateView(
            room_code=self.room_code,
            phase=self.phase,
            players=list(self.players),
            history=list(self.history),
            turn=self.turn,
            hidden_rules=[rule.view() for rule in self.rules],
            candidate_hidden_rules=list(self.candidates),
            scores=dict(self.scores),
            words_said_count=dict(self.words_said),
            no_point_turns=self.no_point_turns,
            first_character=self.first_character,
            winner=self.winner,
            winners=list(self.winners),
            draw=self.draw,
            game_over_reason=self.game_over_reason,
            history_details=list(self.history_details),
            win_score=self.config.win_score,
            turn_ceiling=self.config.turn_ceiling,
        )

    def snapshot(self) -> Dict[str, Any]:
        """Dict JSON-compatible (alias camelCase) de la vue publique."""
        return self.public_view().model_dump(by_alias=True)
