import json
import logging
from pathlib import Path
from typing import Union

from scoreboard.config import MATCHES_DIR, SCHEMA_VERSION
from scoreboard.exceptions import CorruptStateError
from scoreboard.models import MatchState

logger = logging.getLogger(__name__)


def resolve_match_path(name: Union[str, Path]) -> Path:
    """
    Absolute or explicitly relative paths are used as given;
    a bare file name lands in MATCHES_DIR.
    """
    path = Path(name)
    if path.is_absolute() or path.parent != Path("."):
        return path
    return MATCHES_DIR / path


def load_match(path: Path) -> MatchState:
    if not path.exists():
        raise FileNotFoundError(f"Match file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise CorruptStateError(f"Match document must be an object: {path}")

    if data.get("schema_version") != SCHEMA_VERSION:
        raise CorruptStateError(
            f"Unsupported schema_version: {data.get('schema_version')!r}"
        )

    try:
        return MatchState.from_dict(data["match"])
    except (KeyError, TypeError, ValueError) as e:
        raise CorruptStateError(f"Malformed match document {path}: {e}") from e


def save_match(path: Path, match: MatchState):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({
            "schema_version": SCHEMA_VERSION,
            "match": match.to_dict(),
        }, f, ensure_ascii=False, indent=4)

    logger.info("Saved match (%d event(s)) to %s", len(match.history), path)
