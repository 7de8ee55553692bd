"""
Models / game.py
Rôle:
- Définir le snapshot public (assaini) de l'état d'une salle, tel qu'envoyé aux clients.
- Les règles n'y figurent que sous forme `RuleView` (id, description, points, achievedByPlayer).

Champs (alias camelCase côté fil):
- players / history / turn : joueurs inscrits, mots acceptés, index du joueur attendu.
- hiddenRules / candidateHiddenRules : règles actives assainies et ensemble vraies+leurres.
- scores / wordsSaidCount / noPointTurns : compteurs par joueur et série sans point.
- firstCharacter : caractère imposé au tout premier mot.
- winner / winners / draw / gameOverReason : résultat une fois la partie terminée.
- historyDetails : journal par tour {player, word, points, rulesAchieved}.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional

from app.models.rule import CandidateView, RuleView


class AchievedRule(BaseModel):
    id: str
    description: str


class TurnRecord(BaseModel):
    """Entrée du journal d'audit (un mot accepté)."""
    player: str
    word: str
    points: int
    rules_achieved: List[AchievedRule] = Field(default_factory=list, alias="rulesAchieved")

    model_config = ConfigDict(populate_by_name=True)


class GameStateView(BaseModel):
    """Vue publique d'une salle ; aucune logique d'évaluation n'y est sérialisée."""
    model_config = ConfigDict(populate_by_name=True)

    room_code: str = Field(alias="roomCode")
    phase: str
    players: List[str] = Field(default_factory=list)
    history: List[str] = Field(default_factory=list)
    turn: int = 0
    hidden_rules: List[RuleView] = Field(default_factory=list, alias="hiddenRules")
    candidate_hidden_rules: List[CandidateView] = Field(default_factory=list, alias="candidateHiddenRules")
    scores: Dict[str, int] = Field(default_factory=dict)
    words_said_count: Dict[str, int] = Field(default_factory=dict, alias="wordsSaidCount")
    no_point_turns: int = Field(default=0, alias="noPointTurns")
    first_character: str = Field(alias="firstCharacter")
    winner: Optional[str] = None
    winners: List[str] = Field(default_factory=list)
    draw: bool = False
    game_over_reason: Optional[str] = Field(default=None, alias="gameOverReason")
    history_details: List[TurnRecord] = Field(default_factory=list, alias="historyDetails")
    win_score: int = Field(alias="winScore")
    turn_ceiling: int = Field(alias="turnCeiling")
