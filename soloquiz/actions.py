from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, get_args

import redis

from soloquiz.api.models import GameState, GameView, Outcome
from soloquiz.config import Settings, get_settings
from soloquiz.game_store import load_session, save_session
from soloquiz.lock import session_lock
from soloquiz.questions.registry import QuestionSet
from soloquiz.stage_machine import ActionResult, StageMachine
from soloquiz.store import RedisKeyValueStore

logger = logging.getLogger(__name__)


ActionName = Literal[
    "next",
    "previous",
    "arm_x2",
    "set_wager",
    "award_outcome",
    "resolve_final",
    "rename",
    "reset",
]
ACTION_NAMES: frozenset[str] = frozenset(get_args(ActionName))


@dataclass(frozen=True, slots=True)
class DispatchResult:
    applied: bool
    reason: str | None
    view: GameView


def open_session(
    *,
    r: redis.Redis,
    session_id: str,
    questions: QuestionSet,
    settings: Settings | None = None,
) -> StageMachine:
    """Load a session from storage and bind a StageMachine that writes back after every change."""

    settings = settings or get_settings()
    store = RedisKeyValueStore(r)

    def _persist(state: GameState) -> bool:
        return save_session(store=store, prefix=settings.key_prefix, session_id=session_id, state=state)

    state = load_session(
        store=store,
        prefix=settings.key_prefix,
        session_id=session_id,
        question_count=len(questions),
        player_name=settings.default_player_name,
    )
    return StageMachine(
        state=state,
        questions=questions,
        persist=_persist,
        sticky_final_resolution=settings.sticky_final_resolution,
    )


def _parse_outcome(payload: dict[str, Any]) -> Outcome:
    raw = payload.get("outcome")
    try:
        return Outcome(str(raw))
    except ValueError as e:
        allowed = ",".join(o.value for o in Outcome)
        raise ValueError(f"outcome must be one of: {allowed}") from e


def _parse_amount(payload: dict[str, Any]) -> int:
    raw = payload.get("amount")
    if isinstance(raw, bool) or raw is None:
        raise ValueError("amount must be an integer")
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ValueError("amount must be an integer") from e


def _parse_advance(payload: dict[str, Any]) -> bool:
    raw = payload.get("advance", True)
    # JSON booleans only: "false" and 0 are rejected.
    if not isinstance(raw, bool):
        raise ValueError("advance must be a boolean")
    return raw


def _apply(machine: StageMachine, action: ActionName, payload: dict[str, Any]) -> ActionResult:
    if action == "next":
        return machine.next()
    if action == "previous":
        return machine.previous()
    if action == "arm_x2":
        return machine.arm_x2()
    if action == "set_wager":
        return machine.set_wager(_parse_amount(payload))
    if action == "award_outcome":
        return machine.award_outcome(_parse_outcome(payload), advance=_parse_advance(payload))
    if action == "resolve_final":
        return machine.resolve_final(_parse_outcome(payload), advance=_parse_advance(payload))
    if action == "rename":
        return machine.rename_player(str(payload.get("name") or ""))
    if action == "reset":
        return machine.reset()
    raise ValueError(f"Unknown action: {action}")


def dispatch_action(
    *,
    r: redis.Redis,
    session_id: str,
    action: ActionName,
    payload: dict[str, Any],
    questions: QuestionSet,
    settings: Settings | None = None,
) -> DispatchResult:
    """Entry point for every player action coming from the UI.

    Applies an action by:
    - acquiring the per-session lock
    - loading the session (defaults for anything missing or corrupt)
    - checking the action's gate and applying it through the StageMachine
    - persisting the new snapshot (best-effort)
    """

    settings = settings or get_settings()

    with session_lock(r=r, prefix=settings.key_prefix, session_id=session_id, ttl_ms=settings.lock_ttl_ms):
        machine = open_session(r=r, session_id=session_id, questions=questions, settings=settings)
        result = _apply(machine, action, payload)

        if result.applied:
            logger.info("Session %s: %s applied (index=%s stage=%s)", session_id, action, machine.state.index, machine.state.stage.value)
        else:
            logger.debug("Session %s: %s not applied (%s)", session_id, action, result.reason)

        return DispatchResult(applied=result.applied, reason=result.reason, view=machine.view(session_id=session_id))
