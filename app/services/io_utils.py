"""
Utilitaires JSON (rapides) basés sur orjson.
- dumps_text(data) → str (UTF-8, sans échappement des kana)
- loads(raw)       → Any (lève orjson.JSONDecodeError si illisible)

Attention:
- orjson renvoie des bytes ; on décode pour `WebSocket.send_text`.
- orjson ne sait pas sérialiser les modèles pydantic : passer par `model_dump()` avant.
"""
import orjson as json
from typing import Any, Union

JSONDecodeError = json.JSONDecodeError


def dumps_text(data: Any) -> str:
    """Sérialise en texte JSON compact."""
    return json.dumps(data).decode("utf-8")


def loads(raw: Union[str, bytes]) -> Any:
    """Parse un texte/bytes JSON."""
    return json.loads(raw)
