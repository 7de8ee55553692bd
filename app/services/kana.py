"""
Service: kana.py
Helpers texte pour la shiritori japonaise.

- Caractère de liaison : on ignore un trait d'allongement (ー) en fin de mot précédent
  et en début de mot courant, puis on compare après repliement katakana → hiragana.
- Les petits kana (ゃ, っ, ...) se lient comme leur forme pleine.
- Détection des (han)dakuten via décomposition NFD (U+3099 / U+309A).
"""
from __future__ import annotations

import random
import re
import unicodedata

LENGTHENING_MARKS = frozenset({"ー", "～", "〜"})

VOICED_MARKS = ("\u3099", "\u309a")

N_CHARS = frozenset({"ん", "ン"})

START_CHARACTERS = "あいうえおかきくけこさしすせそたちつてとなにぬねのはひふへほまみむめもやゆよらりるれろわ"

_SMALL_TO_FULL = {
    "ぁ": "あ", "ぃ": "い", "ぅ": "う", "ぇ": "え", "ぉ": "お",
    "っ": "つ", "ゃ": "や", "ゅ": "ゆ", "ょ": "よ", "ゎ": "わ",
    "ゕ": "か", "ゖ": "け",
}

_HIRAGANA_RE = re.compile(r"^[ぁ-んー]+$")

# Katakana ァ(U+30A1)..ヶ(U+30F6) sont à +0x60 de leur équivalent hiragana
_KATA_START = 0x30A1
_KATA_END = 0x30F6
_KATA_OFFSET = 0x60


def fold(ch: str) -> str:
    """Repliement pour comparaison : katakana → hiragana, petit kana → plein, casse latine."""
    if not ch:
        return ch
    code = ord(ch)
    if _KATA_START <= code <= _KATA_END:
        ch = chr(code - _KATA_OFFSET)
    ch = _SMALL_TO_FULL.get(ch, ch)
    return ch.lower()


def tail_char(word: str) -> str:
    """Dernier caractère utile du mot (trait d'allongement final ignoré)."""
    if len(word) > 1 and word[-1] in LENGTHENING_MARKS:
        return word[-2]
    return word[-1:]


def head_char(word: str) -> str:
    """Premier caractère utile du mot (trait d'allongement initial ignoré)."""
    if len(word) > 1 and word[0] in LENGTHENING_MARKS:
        return word[1]
    return word[:1]


def links(previous: str, word: str) -> bool:
    """True si `word` enchaîne correctement sur `previous`."""
    return fold(tail_char(previous)) == fold(head_char(word))


def ends_with_n(word: str) -> bool:
    return tail_char(word) in N_CHARS


def has_voiced_mark(word: str) -> bool:
    decomposed = unicodedata.normalize("NFD", word)
    return any(mark in decomposed for mark in VOICED_MARKS)


def is_hiragana(word: str) -> bool:
    return bool(_HIRAGANA_RE.match(word))


def random_start_char(rng: random.Random | None = None) -> str:
    return (rng or random).choice(START_CHARACTERS)
