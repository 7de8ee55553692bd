"""
Models / rule.py
Rôle:
- Définir une règle cachée sous forme de données pures (aucune fonction embarquée).
- Le prédicat est un variant étiqueté :
  - `LocalPredicate(pattern_id)` → évalué par la table de dispatch du catalogue,
  - `DelegatedPredicate(question_template)` → question oui/non posée à l'oracle.
- `RuleView` est la seule forme sérialisée vers l'extérieur (id, description, points, achievedBy).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class LocalPredicate:
    pattern_id: str
    needs_previous: bool = False


@dataclass(frozen=True)
class DelegatedPredicate:
    question_template: str
    needs_previous: bool = False

    def question(self, word: str, previous: Optional[str] = None) -> str:
        return self.question_template.format(word=word, previous=previous or "")


Predicate = Union[LocalPredicate, DelegatedPredicate]


@dataclass(frozen=True)
class RuleDefinition:
    """Entrée immuable du catalogue."""
    id: str
    description: str
    points: int
    predicate: Predicate

    @property
    def needs_oracle(self) -> bool:
        return isinstance(self.predicate, DelegatedPredicate)

    @property
    def needs_previous(self) -> bool:
        return self.predicate.needs_previous


@dataclass
class Rule:
    """Règle active d'une salle : définition + premier joueur l'ayant satisfaite."""
    definition: RuleDefinition
    achieved_by: Optional[str] = None

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def points(self) -> int:
        return self.definition.points

    def mark_achieved(self, player: str) -> bool:
        """Fixe le premier réalisateur ; ne le remplace jamais ensuite."""
        if self.achieved_by is None:
            self.achieved_by = player
            return True
        return False

    def view(self) -> "RuleView":
        return RuleView(
            id=self.id,
            description=self.description,
            points=self.points,
            achieved_by=self.achieved_by,
        )


class RuleView(BaseModel):
    """Vue publique d'une règle (jamais de prédicat ni de drapeau oracle)."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    description: str
    points: int
    achieved_by: Optional[str] = Field(default=None, alias="achievedByPlayer")


class CandidateView(BaseModel):
    """Règle candidate affichée au joueur (vraie ou leurre, indiscernables)."""
    id: str
    description: str
    points: int
