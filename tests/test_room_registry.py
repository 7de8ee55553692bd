import asyncio
import json
import random

import pytest

from conftest import FakeOracle, FakeSocket, SlowOracle

from app.config.settings import GameConfig
from app.models.rule import Rule
from app.services.errors import InvalidRoomCodeError, NotJoinedError, NotYourTurnError, RoomFullError
from app.services.room_registry import RoomRegistry
from app.services.rule_catalog import CATALOG


@pytest.fixture
def registry():
    return RoomRegistry(FakeOracle(), rng=random.Random(7), config_factory=GameConfig)


def run(coro):
    return asyncio.run(coro)


def _fix_rules(registry, code, rule_ids, first_character="あ"):
    state = registry.get(code).game_state
    state.rules = [Rule(definition=CATALOG.get(rid)) for rid in rule_ids]
    state.first_character = first_character
    return state


def test_first_join_creates_room(registry):
    ws = FakeSocket()
    room = run(registry.join("1234", "A", ws))

    state = room.game_state
    assert len(registry) == 1
    assert state.players == ["A"]
    assert len(state.rules) == 3
    assert len(state.candidates) == 9
    assert state.first_character
    # état envoyé au nouvel arrivant puis diffusé à la salle
    assert [m["type"] for m in ws.sent] == ["gameState", "gameState"]
    assert ws.sent[0]["gameState"]["players"] == ["A"]


def test_rejoin_same_name_is_idempotent(registry):
    first, second = FakeSocket(), FakeSocket()
    run(registry.join("1234", "A", first))
    room = run(registry.join("1234", "A", second))

    assert room.game_state.players == ["A"]
    assert set(room.clients) == {first, second}


def test_third_player_is_rejected(registry):
    run(registry.join("1234", "A", FakeSocket()))
    run(registry.join("1234", "B", FakeSocket()))

    with pytest.raises(RoomFullError):
        run(registry.join("1234", "C", FakeSocket()))
    assert registry.get("1234").game_state.players == ["A", "B"]

    # un joueur déjà inscrit peut encore se reconnecter
    run(registry.join("1234", "B", FakeSocket()))


def test_invalid_room_code(registry):
    with pytest.raises(InvalidRoomCodeError):
        run(registry.join("no spaces!", "A", FakeSocket()))
    assert len(registry) == 0


def test_submit_word_broadcasts_points_and_state(registry):
    a, b = FakeSocket(), FakeSocket()
    run(registry.join("1234", "A", a))
    run(registry.join("1234", "B", b))
    _fix_rules(registry, "1234", ["rule8", "rule27", "rule14"])
    a.sent.clear()
    b.sent.clear()

    run(registry.submit_word("1234", "A", "あり"))

    for ws in (a, b):
        assert [m["type"] for m in ws.sent] == ["pointGained", "gameState"]
        gained = ws.sent[0]
        assert gained["player"] == "A"
        assert gained["points"] == 1
        assert gained["newScore"] == 1
        assert gained["rulesAchieved"][0]["ruleId"] == "rule8"
        assert ws.sent[1]["gameState"]["turn"] == 1


def test_rejected_word_raises_without_broadcast(registry):
    a, b = FakeSocket(), FakeSocket()
    run(registry.join("1234", "A", a))
    run(registry.join("1234", "B", b))
    _fix_rules(registry, "1234", ["rule8", "rule27", "rule14"])
    a.sent.clear()
    b.sent.clear()

    with pytest.raises(NotYourTurnError):
        run(registry.submit_word("1234", "B", "あり"))
    assert a.sent == [] and b.sent == []


def test_submit_to_unknown_room(registry):
    with pytest.raises(NotJoinedError):
        run(registry.submit_word("9999", "A", "あり"))


def test_hint_and_game_over_notifications(registry):
    registry.config_factory = lambda: GameConfig(turn_ceiling=1)
    a, b = FakeSocket(), FakeSocket()
    run(registry.join("1234", "A", a))
    run(registry.join("1234", "B", b))
    _fix_rules(registry, "1234", ["rule27", "rule2", "rule14"])

    run(registry.submit_word("1234", "A", "あさ"))
    a.sent.clear()
    run(registry.submit_word("1234", "B", "さかな"))

    assert [m["type"] for m in a.sent] == ["hint", "gameOver", "gameState"]
    hint, over, state = a.sent
    assert set(hint) == {"type", "options", "message"}
    assert over["draw"] is True
    assert over["winners"] == ["A", "B"]
    assert over["winner"] == "A, B"
    assert over["reasonCode"] == "turn_ceiling"
    assert state["gameState"]["phase"] == "COMPLETE"


def test_failed_send_does_not_block_others(registry):
    dead, alive = FakeSocket(fail=True), FakeSocket()
    run(registry.join("1234", "A", dead))
    run(registry.join("1234", "B", alive))

    assert alive.of_type("gameState")


def test_disconnect_notifies_then_destroys_room(registry):
    a, b = FakeSocket(), FakeSocket()
    run(registry.join("1234", "A", a))
    run(registry.join("1234", "B", b))

    run(registry.disconnect(b))
    assert a.of_type("playerDisconnected") == [{"type": "playerDisconnected", "player": "B"}]
    assert len(registry) == 1

    run(registry.disconnect(a))
    assert len(registry) == 0
    assert registry.get("1234") is None

    # la salle renaît vierge au prochain join
    room = run(registry.join("1234", "C", FakeSocket()))
    assert room.game_state.players == ["C"]


def test_disconnect_unknown_socket_is_noop(registry):
    run(registry.disconnect(FakeSocket()))
    assert len(registry) == 0


def test_outward_state_is_sanitized(registry):
    ws = FakeSocket()
    room = run(registry.join("1234", "A", ws))
    room.game_state.oracle_interactions.append({"prompt": "secret", "response": "はい"})

    snapshot = room.game_state.snapshot()
    for rule in snapshot["hiddenRules"]:
        assert set(rule) == {"id", "description", "points", "achievedByPlayer"}
    for candidate in snapshot["candidateHiddenRules"]:
        assert set(candidate) == {"id", "description", "points"}

    raw = json.dumps(ws.sent + [snapshot], ensure_ascii=False)
    for forbidden in ("predicate", "pattern_id", "question", "needs", "secret", "oracle"):
        assert forbidden not in raw


def test_switching_rooms_notifies_the_old_room(registry):
    a, b = FakeSocket(), FakeSocket()
    run(registry.join("1234", "A", a))
    run(registry.join("1234", "B", b))

    run(registry.join("5678", "B", b))

    assert a.of_type("playerDisconnected") == [{"type": "playerDisconnected", "player": "B"}]
    assert set(registry.get("1234").clients) == {a}
    assert set(registry.get("5678").clients) == {b}


def test_concurrent_words_in_one_room_are_serialized():
    registry = RoomRegistry(SlowOracle(default=True), rng=random.Random(7), config_factory=GameConfig)
    run(registry.join("1234", "A", FakeSocket()))
    run(registry.join("1234", "B", FakeSocket()))
    state = _fix_rules(registry, "1234", ["rule4", "rule27", "rule14"])

    async def both():
        return await asyncio.gather(
            registry.submit_word("1234", "A", "あり"),
            registry.submit_word("1234", "A", "あさ"),
            return_exceptions=True,
        )

    first, second = run(both())

    assert first.word == "あり"
    assert isinstance(second, NotYourTurnError)
    assert state.history == ["あり"]
    assert state.turn == 1
    assert state.words_said == {"A": 1, "B": 0}
