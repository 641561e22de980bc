from __future__ import annotations

import pytest

from soloquiz.api.models import AnsweredTag, FinalResolution, GameState, Stage, X2State
from soloquiz.gating.validators import (
    DEFAULT_ACTION_PIPELINES,
    GateContext,
    OutcomeRecordedRule,
    pipeline_for_action,
)


def _check(action: str, state: GameState, *, last_index: int = 4) -> str | None:
    ctx = GateContext(action=action, last_index=last_index)
    return pipeline_for_action(action).first_failure(ctx=ctx, state=state)


def test_every_gated_action_has_a_pipeline() -> None:
    assert set(DEFAULT_ACTION_PIPELINES) == {"next", "previous", "arm_x2", "set_wager", "award_outcome", "resolve_final"}


def test_unknown_action_raises() -> None:
    with pytest.raises(ValueError, match="Unknown action"):
        pipeline_for_action("teleport")


def test_no_questions_blocks_everything() -> None:
    for action in DEFAULT_ACTION_PIPELINES:
        assert _check(action, GameState(), last_index=-1) == "No questions loaded"


def test_outcome_rule_only_applies_on_answer_stage() -> None:
    rule = OutcomeRecordedRule()
    ctx = GateContext(action="next", last_index=4)
    assert rule.check(ctx=ctx, state=GameState(stage=Stage.question)) is None
    assert rule.check(ctx=ctx, state=GameState(stage=Stage.answer)) == "Record the answer first"
    assert rule.check(ctx=ctx, state=GameState(stage=Stage.answer, answered={0: AnsweredTag.wrong})) is None


def test_next_on_final_answer_needs_resolution() -> None:
    assert _check("next", GameState(index=4, stage=Stage.answer)) == "Resolve the final wager first"
    resolved = GameState(index=4, stage=Stage.answer, final_resolution=FinalResolution(resolved=True))
    assert _check("next", resolved) is None


def test_next_at_results_is_blocked() -> None:
    assert _check("next", GameState(index=4, stage=Stage.results)) == "Round is complete"


def test_previous_only_blocked_at_very_start() -> None:
    assert _check("previous", GameState()) == "Already at the start"
    assert _check("previous", GameState(stage=Stage.question)) is None
    assert _check("previous", GameState(index=1)) is None


def test_spent_token_reason_wins_over_stage() -> None:
    spent = GameState(stage=Stage.answer, x2=X2State(available=False, armed_index=0))
    assert _check("arm_x2", spent) == "X2 already used this game"


def test_set_wager_after_resolution_is_blocked() -> None:
    state = GameState(index=4, final_resolution=FinalResolution(resolved=True))
    assert _check("set_wager", state) == "Final wager already resolved"
