"""Score deltas for regular (non-final) questions.

Pure functions: they take the current player record and return a new one. The
stage machine decides when they may run and stores the result.
"""

from __future__ import annotations

from dataclasses import dataclass

from soloquiz.api.models import PlayerState, Question

X2_MULTIPLIER = 2
STREAK_BONUS_THRESHOLD = 3
STREAK_BONUS_POINTS = 1


@dataclass(frozen=True, slots=True)
class ScoreDelta:
    """Result of awarding a correct answer.

    - `base_points`: base weight x category points x (X2 multiplier if active).
    - `streak_bonus`: flat bonus, never multiplied.
    """

    player: PlayerState
    base_points: int
    streak_bonus: int
    x2_applied: bool
    last_outcome_side: str

    @property
    def total(self) -> int:
        return self.base_points + self.streak_bonus


def streak_bonus_for(streak: int) -> int:
    return STREAK_BONUS_POINTS if streak >= STREAK_BONUS_THRESHOLD else 0


def award_correct(
    *,
    player: PlayerState,
    question: Question,
    last_outcome_side: str | None,
    x2_active: bool,
    base_weight: int = 1,
) -> ScoreDelta:
    multiplier = question.points * (X2_MULTIPLIER if x2_active else 1)
    base_points = base_weight * multiplier

    new_streak = player.streak + 1 if last_outcome_side == player.player_id else 1
    bonus = streak_bonus_for(new_streak)

    updated = player.model_copy(
        update={
            "score": player.score + base_points + bonus,
            "streak": new_streak,
            "max_streak": max(player.max_streak, new_streak),
        }
    )
    return ScoreDelta(
        player=updated,
        base_points=base_points,
        streak_bonus=bonus,
        x2_applied=x2_active,
        last_outcome_side=player.player_id,
    )


def record_wrong_or_no_answer(*, player: PlayerState) -> PlayerState:
    # Score is untouched; the caller also clears last_outcome_side.
    return player.model_copy(update={"streak": 0})
