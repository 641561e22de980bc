from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from soloquiz.api.models import (
    AnsweredTag,
    FinalResolution,
    GameState,
    PlayerState,
    ResultRow,
    Stage,
    WagerState,
    X2State,
)
from soloquiz.store import KeyValueStore, StorageError

logger = logging.getLogger(__name__)


# Storage field name -> (GameState attribute, JSON adapter).
# Each logical field lives under its own key so a corrupt value only costs that field.
SESSION_FIELDS: dict[str, tuple[str, TypeAdapter[Any]]] = {
    "index": ("index", TypeAdapter(int)),
    "stage": ("stage", TypeAdapter(Stage)),
    "player": ("player", TypeAdapter(PlayerState)),
    "x2": ("x2", TypeAdapter(X2State)),
    "wager": ("wager", TypeAdapter(WagerState)),
    "finalResolution": ("final_resolution", TypeAdapter(FinalResolution)),
    "answered": ("answered", TypeAdapter(dict[int, AnsweredTag])),
    "lastOutcomeSide": ("last_outcome_side", TypeAdapter(str | None)),
    "ledger": ("ledger", TypeAdapter(dict[int, ResultRow])),
}


def field_key(*, prefix: str, session_id: str, field: str) -> str:
    return f"{prefix}:{session_id}:{field}"


def new_game_state(*, player_name: str = "Player") -> GameState:
    return GameState(player=PlayerState(name=player_name))


def clamp_index(index: int, *, question_count: int) -> int:
    last_index = question_count - 1
    if last_index < 0 or index < 0:
        return 0
    return min(index, last_index)


def load_session(
    *,
    store: KeyValueStore,
    prefix: str,
    session_id: str,
    question_count: int,
    player_name: str = "Player",
) -> GameState:
    """Rebuild a session from its per-field keys.

    Absent, unreadable or malformed fields fall back to their defaults; this never raises.
    """

    values: dict[str, Any] = {}
    for field, (attr, adapter) in SESSION_FIELDS.items():
        key = field_key(prefix=prefix, session_id=session_id, field=field)
        try:
            raw = store.load(key)
        except StorageError as e:
            logger.warning("Storage read failed; using default for %s (%s)", key, e)
            continue
        if raw is None:
            continue
        try:
            values[attr] = adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Malformed value at %s; using default", key)

    state = new_game_state(player_name=player_name).model_copy(update=values)

    clamped = clamp_index(state.index, question_count=question_count)
    if clamped != state.index:
        logger.debug("Clamped persisted index %s -> %s for session %s", state.index, clamped, session_id)
        state.index = clamped
    return state


def save_session(*, store: KeyValueStore, prefix: str, session_id: str, state: GameState) -> bool:
    """Best-effort write of the whole session as one unit. Returns False if the backend failed.

    On failure the previously stored snapshot is left intact; fields are never mixed
    across two saves.
    """

    values = {
        field_key(prefix=prefix, session_id=session_id, field=field): adapter.dump_json(getattr(state, attr)).decode(
            "utf-8"
        )
        for field, (attr, adapter) in SESSION_FIELDS.items()
    }
    try:
        store.save_many(values)
    except StorageError as e:
        logger.warning("Storage write failed for session %s; state kept in memory only (%s)", session_id, e)
        return False
    return True
