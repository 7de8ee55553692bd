"""
Service: rule_catalog.py
Rôle:
- Référentiel statique des règles cachées (catalogue immuable).
- Table de dispatch des prédicats locaux (`pattern_id` → fonction pure).
- Exposer `CATALOG.get(id)`, `CATALOG.all()` et `CATALOG.question_for(...)`.

Remarque:
- Les règles "oracle" ne portent qu'un gabarit de question ; l'appel réseau est fait
  par le moteur via `SemanticOracle`.
"""
from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from app.models.rule import DelegatedPredicate, LocalPredicate, RuleDefinition
from app.services import kana

LocalCheck = Callable[[str, Optional[str]], bool]

_REPEATED_CHAR = re.compile(r"(\w).*\1")


def _question(category: str) -> str:
    return "「{word}」は" + category + "ですか？ はい、いいえで答えてください。"


LOCAL_CHECKS: Dict[str, LocalCheck] = {
    "length_3": lambda word, prev: len(word) == 3,
    "ends_with_n": lambda word, prev: kana.ends_with_n(word),
    "hiragana_5_plus": lambda word, prev: len(word) >= 5 and kana.is_hiragana(word),
    "hiragana_only": lambda word, prev: kana.is_hiragana(word),
    "contains_ri": lambda word, prev: "り" in word or "リ" in word,
    "voiced_mark": lambda word, prev: kana.has_voiced_mark(word),
    "repeated_char": lambda word, prev: bool(_REPEATED_CHAR.search(word)),
    "same_first_last": lambda word, prev: len(word) > 1 and word[0] == word[-1],
    "longer_than_previous": lambda word, prev: bool(prev) and len(word) > len(prev),
    "lengthening_mark": lambda word, prev: any(ch in kana.LENGTHENING_MARKS for ch in word),
}

# Règle spéciale : seule règle autorisant un mot terminé par « ん »
N_ENDING_RULE_ID = "rule2"

_DEFINITIONS: List[RuleDefinition] = [
    RuleDefinition("rule1", "3文字の単語", 1, LocalPredicate("length_3")),
    RuleDefinition("rule2", "「ん」で終わる単語", 2, LocalPredicate("ends_with_n")),
    RuleDefinition("rule3", "食べ物の名前", 1, DelegatedPredicate(_question("食べ物の名前"))),
    RuleDefinition("rule4", "動物の名前", 1, DelegatedPredicate(_question("動物の名前"))),
    RuleDefinition("rule5", "色を表す単語", 1, DelegatedPredicate(_question("色を表す単語"))),
    RuleDefinition("rule6", "ひらがな5文字以上の単語", 2, LocalPredicate("hiragana_5_plus")),
    RuleDefinition("rule7", "ひらがなの単語", 1, LocalPredicate("hiragana_only")),
    RuleDefinition("rule8", "「り」を含む単語", 1, LocalPredicate("contains_ri")),
    RuleDefinition("rule9", "濁音もしくは半濁音を含む単語", 1, LocalPredicate("voiced_mark")),
    RuleDefinition("rule11", "植物の名前", 1, DelegatedPredicate(_question("植物の名前"))),
    RuleDefinition("rule12", "乗り物の名前", 1, DelegatedPredicate(_question("乗り物の名前"))),
    RuleDefinition("rule13", "同じ文字を2つ含む単語 (例:ばなな)", 2, LocalPredicate("repeated_char")),
    RuleDefinition("rule14", "最初の文字と最後の文字が同じ単語", 2, LocalPredicate("same_first_last")),
    RuleDefinition("rule15", "天候に関する言葉", 1, DelegatedPredicate(_question("天候に関する言葉"))),
    RuleDefinition("rule16", "スポーツの名前", 1, DelegatedPredicate(_question("スポーツの名前"))),
    RuleDefinition("rule19", "楽器の名前", 1, DelegatedPredicate(_question("楽器の名前"))),
    RuleDefinition("rule20", "丸い形を連想させる言葉", 1, DelegatedPredicate(_question("丸い形を連想させる言葉"))),
    RuleDefinition("rule21", "柔らかいものを表す言葉", 1, DelegatedPredicate(_question("柔らかいものを表す言葉"))),
    RuleDefinition("rule22", "甘いものを表す言葉", 1, DelegatedPredicate(_question("甘いものを表す言葉"))),
    RuleDefinition("rule23", "夏を連想させる言葉", 1, DelegatedPredicate(_question("夏を連想させる言葉"))),
    RuleDefinition(
        "rule24",
        "前の単語と関連性の高い言葉",
        2,
        DelegatedPredicate(
            "「{word}」は「{previous}」と関連性の高い言葉ですか？ はい、いいえで答えてください。",
            needs_previous=True,
        ),
    ),
    RuleDefinition(
        "rule25",
        "前の単語より文字数が多い言葉",
        2,
        LocalPredicate("longer_than_previous", needs_previous=True),
    ),
    RuleDefinition("rule26", "体の部位", 1, DelegatedPredicate(_question("体の部位を表す言葉"))),
    RuleDefinition("rule27", "伸ばし棒（長音）を含む単語", 1, LocalPredicate("lengthening_mark")),
]


class RuleCatalog:
    """Catalogue statique des règles (référentiel).

    Exemple d'entrée:
    RuleDefinition("rule4", "動物の名前", 1, DelegatedPredicate("「{word}」は動物の名前ですか？ ..."))
    """

    def __init__(self, definitions: List[RuleDefinition]):
        self.catalog: Dict[str, RuleDefinition] = {}
        for definition in definitions:
            if isinstance(definition.predicate, LocalPredicate) and definition.predicate.pattern_id not in LOCAL_CHECKS:
                raise ValueError(f"Unknown local pattern '{definition.predicate.pattern_id}'")
            if definition.id in self.catalog:
                raise ValueError(f"Duplicate rule id '{definition.id}'")
            self.catalog[definition.id] = definition

    def get(self, rule_id: str) -> RuleDefinition | None:
        """Retourne la définition ou None si id inconnu."""
        return self.catalog.get(rule_id)

    def all(self) -> List[RuleDefinition]:
        """Retourne toutes les définitions, dans l'ordre du catalogue."""
        return list(self.catalog.values())

    def __len__(self) -> int:
        return len(self.catalog)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self.catalog

    @staticmethod
    def check_local(definition: RuleDefinition, word: str, previous: Optional[str] = None) -> bool:
        """Évalue un prédicat local ; une règle relationnelle sans mot précédent est fausse."""
        predicate = definition.predicate
        if not isinstance(predicate, LocalPredicate):
            raise TypeError(f"Rule '{definition.id}' is not local")
        if predicate.needs_previous and not previous:
            return False
        return LOCAL_CHECKS[predicate.pattern_id](word, previous)

    def question_for(self, rule_id: str, word: str, previous: Optional[str] = None) -> Optional[str]:
        """Question oracle pour une règle déléguée (None si inconnue ou locale)."""
        definition = self.get(rule_id)
        if definition is None or not isinstance(definition.predicate, DelegatedPredicate):
            return None
        return definition.predicate.question(word, previous)


CATALOG = RuleCatalog(_DEFINITIONS)
