from __future__ import annotations

from dataclasses import dataclass

from soloquiz.api.models import (
    MAX_WAGER,
    AnsweredTag,
    FinalResolution,
    Outcome,
    PlayerState,
    WagerState,
)

MIN_WAGER = 0


@dataclass(frozen=True, slots=True)
class WagerResolution:
    player: PlayerState
    final_resolution: FinalResolution
    tag: AnsweredTag
    delta: int


def clamp_wager(amount: int) -> int:
    return min(MAX_WAGER, max(MIN_WAGER, amount))


def set_wager(amount: int) -> WagerState:
    return WagerState(amount=clamp_wager(amount))


def resolve(
    *,
    player: PlayerState,
    wager: WagerState,
    final_resolution: FinalResolution,
    outcome: Outcome,
) -> WagerResolution | None:
    """Settle the final-question bet.

    Returns None when the bet was already settled. X2 and the streak bonus never
    apply here, and the streak itself is left alone.
    """

    if final_resolution.resolved:
        return None

    won = outcome == Outcome.correct
    delta = wager.amount if won else -wager.amount
    return WagerResolution(
        player=player.model_copy(update={"score": player.score + delta}),
        final_resolution=FinalResolution(resolved=True),
        tag=AnsweredTag.final_correct if won else AnsweredTag.final_wrong,
        delta=delta,
    )
