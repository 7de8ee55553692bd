"""
Service: rule_selector.py
Rôle:
- Tirer les 3 règles cachées d'une salle (sans remise, uniforme, sans pondération).
- Construire l'ensemble "candidats" affiché aux joueurs (vraies règles + leurres, mélangés).
- Construire les options d'un indice (règle cible + leurres, mélangés).

Notes:
- Toute l'aléa passe par `self.rng` (un `random.Random`) ; les tests injectent une graine
  pour obtenir des tirages reproductibles.
"""
from __future__ import annotations

import random
from typing import Iterable, List, Optional

from app.models.rule import CandidateView, Rule, RuleDefinition
from app.services.rule_catalog import CATALOG, RuleCatalog


class RuleSelector:
    def __init__(self, catalog: RuleCatalog = CATALOG, rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.rng = rng or random.Random()

    def select_active_rules(self, count: int = 3) -> List[Rule]:
        """Tirage uniforme de `count` règles distinctes, chacune non encore réalisée."""
        picked = self.rng.sample(self.catalog.all(), count)
        return [Rule(definition=d) for d in picked]

    def select_candidate_set(self, active: Iterable[Rule], decoys: int = 6) -> List[CandidateView]:
        """Règles actives + `decoys` leurres tirés du reste du catalogue, le tout mélangé."""
        actual = [rule.definition for rule in active]
        active_ids = {d.id for d in actual}
        remaining = [d for d in self.catalog.all() if d.id not in active_ids]
        picked = self.rng.sample(remaining, min(decoys, len(remaining)))
        candidates = actual + picked
        self.rng.shuffle(candidates)
        return [CandidateView(id=d.id, description=d.description, points=d.points) for d in candidates]

    def select_hint_options(self, target: RuleDefinition, k: int = 2) -> List[str]:
        """Description de la cible + `k` descriptions leurres (cible exclue), mélangées."""
        pool = [d for d in self.catalog.all() if d.id != target.id]
        options = [target.description] + [d.description for d in self.rng.sample(pool, min(k, len(pool)))]
        self.rng.shuffle(options)
        return options

    def pick(self, rules: List[Rule]) -> Rule:
        """Choix uniforme d'une règle (cible d'indice)."""
        return self.rng.choice(rules)
