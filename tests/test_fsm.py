from __future__ import annotations

import warnings

import pytest
from statemachine.exceptions import TransitionNotAllowed

from soloquiz.api.models import AnsweredTag, FinalResolution, GameState, Stage, WagerState
from soloquiz.fsm import StageFSM


def _fsm(game: GameState, *, sticky: bool = True) -> StageFSM:
    return StageFSM(game, last_index=4, sticky_final_resolution=sticky)


def test_starts_from_persisted_stage() -> None:
    fsm = _fsm(GameState(stage=Stage.answer))
    assert fsm.current_state_value == "answer"


def test_forward_walk_within_a_question() -> None:
    game = GameState()
    fsm = _fsm(game)

    fsm.send("advance")
    fsm.sync_stage_to_model()
    assert game.stage == Stage.question

    fsm.send("advance")
    fsm.sync_stage_to_model()
    assert game.stage == Stage.answer
    assert game.index == 0


def test_answer_without_outcome_does_not_advance() -> None:
    fsm = _fsm(GameState(stage=Stage.answer))
    with pytest.raises(TransitionNotAllowed):
        fsm.send("advance")


def test_answer_with_outcome_moves_to_next_category() -> None:
    game = GameState(stage=Stage.answer, answered={0: AnsweredTag.correct})
    fsm = _fsm(game)

    fsm.send("advance")
    fsm.sync_stage_to_model()
    assert (game.index, game.stage) == (1, Stage.category)


def test_resolved_final_moves_to_results() -> None:
    game = GameState(index=4, stage=Stage.answer, final_resolution=FinalResolution(resolved=True))
    fsm = _fsm(game)

    fsm.send("advance")
    fsm.sync_stage_to_model()
    assert (game.index, game.stage) == (4, Stage.results)


def test_retreat_from_category_goes_to_previous_answer() -> None:
    game = GameState(index=2, stage=Stage.category)
    fsm = _fsm(game)

    fsm.send("retreat")
    fsm.sync_stage_to_model()
    assert (game.index, game.stage) == (1, Stage.answer)


def test_retreat_into_category_clears_unsettled_wager() -> None:
    game = GameState(index=4, stage=Stage.question, wager=WagerState(amount=3))
    fsm = _fsm(game)

    fsm.send("retreat")
    assert game.wager.amount == 0


def test_sticky_resolution_survives_category_entry() -> None:
    game = GameState(
        index=4,
        stage=Stage.question,
        wager=WagerState(amount=2),
        final_resolution=FinalResolution(resolved=True),
        answered={4: AnsweredTag.final_correct},
    )
    _fsm(game).send("retreat")

    assert game.final_resolution.resolved is True
    assert game.wager.amount == 2


def test_non_sticky_resolution_is_cleared_on_category_entry() -> None:
    game = GameState(
        index=4,
        stage=Stage.question,
        wager=WagerState(amount=2),
        final_resolution=FinalResolution(resolved=True),
        answered={4: AnsweredTag.final_correct},
    )
    _fsm(game, sticky=False).send("retreat")

    assert game.final_resolution.resolved is False
    assert game.wager.amount == 0


def test_finale_stage_is_reserved() -> None:
    with pytest.raises(TransitionNotAllowed):
        _fsm(GameState()).send("open_finale")


def test_finale_stage_still_exits_forward_and_back() -> None:
    game = GameState(index=3, stage=Stage.finale)
    fsm = _fsm(game)
    fsm.send("advance")
    fsm.sync_stage_to_model()
    assert game.stage == Stage.question

    game = GameState(index=3, stage=Stage.finale)
    fsm = _fsm(game)
    fsm.send("retreat")
    fsm.sync_stage_to_model()
    assert game.stage == Stage.category


def test_stage_sync_emits_no_deprecation_warning() -> None:
    game = GameState()
    fsm = _fsm(game)
    fsm.send("advance")

    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        fsm.sync_stage_to_model()
    assert game.stage == Stage.question
