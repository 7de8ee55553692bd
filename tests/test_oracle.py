import asyncio
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import requests

from app.services.oracle import OracleClient, OracleServiceError, SemanticOracle, is_affirmative


def _response(payload=None, status_error=None):
    response = Mock()
    response.raise_for_status = Mock(side_effect=status_error)
    response.json = Mock(return_value=payload)
    return response


def _gemini_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def session_stub():
    return SimpleNamespace(post=Mock())


def _oracle(session_stub, **kwargs):
    kwargs.setdefault("api_key", "secret")
    client = OracleClient("https://example.test/generate", session=session_stub, **kwargs)
    return SemanticOracle(client)


def test_ask_yes_from_gemini(session_stub):
    session_stub.post.return_value = _response(_gemini_payload("はい\n"))
    oracle = _oracle(session_stub)
    log = []

    assert asyncio.run(oracle.ask("「いぬ」は動物の名前ですか？", log=log)) is True

    _, kwargs = session_stub.post.call_args
    assert kwargs["params"] == {"key": "secret"}
    assert kwargs["json"] == {"contents": [{"parts": [{"text": "「いぬ」は動物の名前ですか？"}]}]}
    assert log == [{"prompt": "「いぬ」は動物の名前ですか？", "response": "はい"}]


def test_ask_no_from_gemini(session_stub):
    session_stub.post.return_value = _response(_gemini_payload("いいえ"))
    assert asyncio.run(_oracle(session_stub).ask("q")) is False


def test_missing_credential_answers_no_without_calling(session_stub):
    oracle = _oracle(session_stub, api_key=None)
    log = []

    assert oracle.available is False
    assert asyncio.run(oracle.ask("q", log=log)) is False
    session_stub.post.assert_not_called()
    assert log[0]["response"].startswith("Error")


def test_timeout_fails_closed(session_stub):
    session_stub.post.side_effect = requests.Timeout("slow")
    log = []

    assert asyncio.run(_oracle(session_stub).ask("q", log=log)) is False
    assert session_stub.post.call_count == 1
    assert "timed out" in log[0]["response"]


def test_http_error_fails_closed(session_stub):
    session_stub.post.return_value = _response(status_error=requests.HTTPError("500"))
    assert asyncio.run(_oracle(session_stub).ask("q")) is False


def test_bad_shape_fails_closed(session_stub):
    session_stub.post.return_value = _response({"candidates": []})
    assert asyncio.run(_oracle(session_stub).ask("q")) is False


def test_ollama_provider_needs_no_key(session_stub):
    session_stub.post.return_value = _response({"response": "Yes."})
    oracle = _oracle(session_stub, provider="ollama", model="llama3", api_key=None)

    assert oracle.available is True
    assert asyncio.run(oracle.ask("q")) is True
    _, kwargs = session_stub.post.call_args
    assert kwargs["json"] == {"model": "llama3", "prompt": "q", "stream": False}
    assert kwargs["params"] is None


def test_generate_raises_service_error(session_stub):
    session_stub.post.side_effect = requests.ConnectionError("down")
    client = OracleClient("https://example.test/generate", api_key="k", session=session_stub)

    with pytest.raises(OracleServiceError):
        client.generate("q", request_id="test")


@pytest.mark.parametrize(
    "text,expected",
    [("はい", True), ("はい。", True), (" YES ", True), ("いいえ", False), ("はい、そうです", False), ("", False)],
)
def test_is_affirmative(text, expected):
    assert is_affirmative(text) is expected
