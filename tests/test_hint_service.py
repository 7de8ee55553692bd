from __future__ import annotations

import random

import pytest

from conftest import make_state

from app.services.hint_service import build_hint_message, maybe_deliver_hint
from app.services.rule_selector import RuleSelector


@pytest.fixture
def selector():
    return RuleSelector(rng=random.Random(11))


def test_no_hint_below_streak(selector):
    state = make_state(["rule8", "rule27", "rule14"])
    state.no_point_turns = 1

    assert maybe_deliver_hint(state, selector) is None
    assert state.no_point_turns == 1


def test_hint_targets_unachieved_rule_and_resets_streak(selector):
    state = make_state(["rule8", "rule27", "rule14"])
    state.rule("rule8").mark_achieved("A")
    state.rule("rule27").mark_achieved("B")
    state.no_point_turns = 2

    hint = maybe_deliver_hint(state, selector)

    assert hint.target_rule_id == "rule14"
    assert "最初の文字と最後の文字が同じ単語" in hint.options
    assert len(set(hint.options)) == 3
    assert state.no_point_turns == 0


def test_hint_is_reproducible_with_seed():
    first = make_state(["rule8", "rule27", "rule14"])
    second = make_state(["rule8", "rule27", "rule14"])
    first.no_point_turns = second.no_point_turns = 2

    a = maybe_deliver_hint(first, RuleSelector(rng=random.Random(3)))
    b = maybe_deliver_hint(second, RuleSelector(rng=random.Random(3)))

    assert (a.target_rule_id, a.options) == (b.target_rule_id, b.options)


def test_hint_message_lists_options():
    assert build_hint_message(["a", "b", "c"]) == "ヒント：隠し条件のうち一つは次のいずれかです： a、b、c"
