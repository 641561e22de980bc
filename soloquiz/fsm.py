from __future__ import annotations

from statemachine import State, StateMachine

from soloquiz.api.models import AnsweredTag, FinalResolution, GameState, Stage, WagerState

FINAL_TAGS = frozenset({AnsweredTag.final_correct, AnsweredTag.final_wrong})


class StageFSM(StateMachine):
    """Transition table for one question's lifecycle, wrapped around a GameState.

    - forward (`advance`): category -> question -> answer -> next category | results
    - backward (`retreat`): answer -> question -> category -> previous answer; results -> answer

    Guards read the wrapped state; transition actions move the index and run the
    category entry reset. Scoring lives in the stage machine, not here.
    """

    # Reserved stage: reachable only through `open_finale`, which stays disabled.
    FINALE_STAGE_ENABLED = False

    category = State(Stage.category.value, value=Stage.category.value, initial=True)
    question = State(Stage.question.value, value=Stage.question.value)
    answer = State(Stage.answer.value, value=Stage.answer.value)
    finale = State(Stage.finale.value, value=Stage.finale.value)
    results = State(Stage.results.value, value=Stage.results.value)

    advance = (
        category.to(question)
        | question.to(answer)
        | finale.to(question)
        | answer.to(category, cond=["outcome_recorded", "has_next_question"], on="step_forward")
        | answer.to(results, cond="outcome_recorded", unless="has_next_question")
    )
    retreat = (
        question.to(category, on="reset_finale_on_entry")
        | answer.to(question)
        | finale.to(category, on="reset_finale_on_entry")
        | results.to(answer)
        | category.to(answer, cond="has_previous_question", on="step_back")
    )
    open_finale = category.to(finale, cond="finale_stage_enabled")

    def __init__(self, game: GameState, *, last_index: int, sticky_final_resolution: bool = True):
        self.game = game
        self.last_index = last_index
        self.sticky_final_resolution = sticky_final_resolution
        super().__init__(start_value=game.stage.value)

    # Guards.

    def outcome_recorded(self) -> bool:
        if self.game.index == self.last_index:
            return self.game.final_resolution.resolved
        return self.game.index in self.game.answered

    def has_next_question(self) -> bool:
        return self.game.index < self.last_index

    def has_previous_question(self) -> bool:
        return self.game.index > 0

    def finale_stage_enabled(self) -> bool:
        return self.FINALE_STAGE_ENABLED

    def final_question_settled(self) -> bool:
        return self.game.answered.get(self.last_index) in FINAL_TAGS

    # Transition actions.

    def step_forward(self) -> None:
        self.game.index += 1
        self.reset_finale_on_entry()

    def step_back(self) -> None:
        self.game.index -= 1

    def reset_finale_on_entry(self) -> None:
        """Category entry action: clear the wager and the final resolution flag."""

        if self.sticky_final_resolution and self.final_question_settled():
            return
        self.game.wager = WagerState()
        self.game.final_resolution = FinalResolution()

    def sync_stage_to_model(self) -> None:
        self.game.stage = Stage(str(self.current_state_value))
