from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from soloquiz.api.models import GameState, Stage


@dataclass(frozen=True, slots=True)
class GateContext:
    """Inputs available to rules besides the game state itself."""

    action: str
    last_index: int

    @property
    def has_questions(self) -> bool:
        return self.last_index >= 0


class ActionRule(ABC):
    """A small, composable legality check. Returns a reason when the action is not allowed."""

    @abstractmethod
    def check(self, *, ctx: GateContext, state: GameState) -> str | None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class QuestionsLoadedRule(ActionRule):
    def check(self, *, ctx: GateContext, state: GameState) -> str | None:
        if not ctx.has_questions:
            return "No questions loaded"
        return None


@dataclass(frozen=True, slots=True)
class StageRule(ActionRule):
    allowed_stages: frozenset[Stage]
    reason: str

    def check(self, *, ctx: GateContext, state: GameState) -> str | None:
        if state.stage not in self.allowed_stages:
            return self.reason
        return None


@dataclass(frozen=True, slots=True)
class FinalQuestionRule(ActionRule):
    """Restrict an action to the final question (or, with `final=False`, to every other one)."""

    final: bool
    reason: str

    def check(self, *, ctx: GateContext, state: GameState) -> str | None:
        is_final = state.index == ctx.last_index
        if is_final != self.final:
            return self.reason
        return None


@dataclass(frozen=True, slots=True)
class OutcomeRecordedRule(ActionRule):
    """Forward navigation from the answer stage needs a recorded outcome."""

    def check(self, *, ctx: GateContext, state: GameState) -> str | None:
        if state.stage != Stage.answer:
            return None
        if state.index == ctx.last_index:
            if not state.final_resolution.resolved:
                return "Resolve the final wager first"
            return None
        if state.index not in state.answered:
            return "Record the answer first"
        return None


@dataclass(frozen=True, slots=True)
class HasPreviousRule(ActionRule):
    def check(self, *, ctx: GateContext, state: GameState) -> str | None:
        if state.stage == Stage.category and state.index == 0:
            return "Already at the start"
        return None


@dataclass(frozen=True, slots=True)
class X2AvailableRule(ActionRule):
    def check(self, *, ctx: GateContext, state: GameState) -> str | None:
        if not state.x2.available:
            return "X2 already used this game"
        return None


@dataclass(frozen=True, slots=True)
class FinalUnresolvedRule(ActionRule):
    def check(self, *, ctx: GateContext, state: GameState) -> str | None:
        if state.final_resolution.resolved:
            return "Final wager already resolved"
        return None


@dataclass(frozen=True, slots=True)
class RulePipeline:
    rules: tuple[ActionRule, ...]

    def first_failure(self, *, ctx: GateContext, state: GameState) -> str | None:
        for rule in self.rules:
            reason = rule.check(ctx=ctx, state=state)
            if reason is not None:
                return reason
        return None


_ANSWER_ONLY = frozenset({Stage.answer})

DEFAULT_ACTION_PIPELINES: dict[str, RulePipeline] = {
    "next": RulePipeline(
        rules=(
            QuestionsLoadedRule(),
            StageRule(
                allowed_stages=frozenset({Stage.category, Stage.question, Stage.answer, Stage.finale}),
                reason="Round is complete",
            ),
            OutcomeRecordedRule(),
        )
    ),
    "previous": RulePipeline(
        rules=(
            QuestionsLoadedRule(),
            HasPreviousRule(),
        )
    ),
    "arm_x2": RulePipeline(
        rules=(
            QuestionsLoadedRule(),
            X2AvailableRule(),
            FinalQuestionRule(final=False, reason="X2 is not allowed on the final question"),
            StageRule(allowed_stages=frozenset({Stage.category}), reason="X2 can only be armed from the category stage"),
        )
    ),
    "set_wager": RulePipeline(
        rules=(
            QuestionsLoadedRule(),
            FinalQuestionRule(final=True, reason="Wagers are only placed on the final question"),
            StageRule(allowed_stages=frozenset({Stage.category}), reason="Place the wager before the question is shown"),
            FinalUnresolvedRule(),
        )
    ),
    "award_outcome": RulePipeline(
        rules=(
            QuestionsLoadedRule(),
            FinalQuestionRule(final=False, reason="The final question is scored by its wager"),
            StageRule(allowed_stages=_ANSWER_ONLY, reason="Outcomes are recorded on the answer stage"),
        )
    ),
    "resolve_final": RulePipeline(
        rules=(
            QuestionsLoadedRule(),
            FinalQuestionRule(final=True, reason="Only the final question has a wager"),
            StageRule(allowed_stages=_ANSWER_ONLY, reason="Outcomes are recorded on the answer stage"),
            FinalUnresolvedRule(),
        )
    ),
}


def pipeline_for_action(action: str) -> RulePipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
