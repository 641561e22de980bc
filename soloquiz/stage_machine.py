from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from statemachine.exceptions import TransitionNotAllowed

from soloquiz import ledger, scoring, wager, x2
from soloquiz.api.models import (
    ActionGate,
    AnsweredTag,
    AvailableActions,
    GameState,
    GameView,
    Outcome,
    PlayerState,
    Question,
)
from soloquiz.fsm import StageFSM
from soloquiz.game_store import clamp_index
from soloquiz.gating.validators import GateContext, pipeline_for_action
from soloquiz.questions.registry import QuestionSet

logger = logging.getLogger(__name__)

PersistFn = Callable[[GameState], object]


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of a player action.

    Disabled actions are not errors: `applied` is False and `reason` says why.
    """

    applied: bool
    reason: str | None = None


APPLIED = ActionResult(applied=True)


class StageMachine:
    """Owner of the GameState aggregate and its only mutation surface.

    Every applied action is followed by one call to `persist` (when given). Persistence
    is best-effort and never undoes the in-memory change.
    """

    def __init__(
        self,
        *,
        state: GameState,
        questions: QuestionSet,
        persist: PersistFn | None = None,
        sticky_final_resolution: bool = True,
    ) -> None:
        self.state = state
        self.questions = questions
        self._persist = persist
        self.sticky_final_resolution = sticky_final_resolution
        self.state.index = clamp_index(self.state.index, question_count=len(questions))

    @property
    def last_index(self) -> int:
        return self.questions.last_index

    @property
    def is_final_index(self) -> bool:
        return self.questions.is_final(self.state.index)

    @property
    def current_question(self) -> Question | None:
        return self.questions.get(self.state.index)

    def x2_active(self) -> bool:
        return x2.is_active_for(x2=self.state.x2, index=self.state.index)

    # Gating.

    def gate(self, action: str) -> ActionGate:
        ctx = GateContext(action=action, last_index=self.last_index)
        reason = pipeline_for_action(action).first_failure(ctx=ctx, state=self.state)
        return ActionGate(enabled=reason is None, reason=reason)

    def availability(self) -> AvailableActions:
        return AvailableActions(
            next=self.gate("next"),
            previous=self.gate("previous"),
            arm_x2=self.gate("arm_x2"),
            set_wager=self.gate("set_wager"),
            award_outcome=self.gate("award_outcome"),
            resolve_final=self.gate("resolve_final"),
        )

    def _blocked(self, action: str) -> ActionResult | None:
        gate = self.gate(action)
        if gate.enabled:
            return None
        logger.debug("Action %s blocked at index=%s stage=%s: %s", action, self.state.index, self.state.stage, gate.reason)
        return ActionResult(applied=False, reason=gate.reason)

    # Navigation.

    def _fsm(self) -> StageFSM:
        return StageFSM(
            self.state,
            last_index=self.last_index,
            sticky_final_resolution=self.sticky_final_resolution,
        )

    def _send(self, event: str) -> ActionResult:
        fsm = self._fsm()
        before = (self.state.index, self.state.stage)
        try:
            fsm.send(event)
        except TransitionNotAllowed:
            return ActionResult(applied=False, reason=f"Cannot {event} from the {self.state.stage.value} stage")
        fsm.sync_stage_to_model()
        logger.debug("Transition %s: %s -> %s", event, before, (self.state.index, self.state.stage))
        return APPLIED

    def next(self) -> ActionResult:
        blocked = self._blocked("next")
        if blocked is not None:
            return blocked
        result = self._send("advance")
        if result.applied:
            self._commit()
        return result

    def previous(self) -> ActionResult:
        blocked = self._blocked("previous")
        if blocked is not None:
            return blocked
        result = self._send("retreat")
        if result.applied:
            self._commit()
        return result

    # X2 token.

    def arm_x2(self) -> ActionResult:
        blocked = self._blocked("arm_x2")
        if blocked is not None:
            return blocked
        self.state.x2 = x2.arm(
            x2=self.state.x2,
            stage=self.state.stage,
            index=self.state.index,
            last_index=self.last_index,
        )
        self._commit()
        return APPLIED

    # Regular questions.

    def award_outcome(self, outcome: Outcome, *, advance: bool = True) -> ActionResult:
        blocked = self._blocked("award_outcome")
        if blocked is not None:
            return blocked

        question = self.current_question
        if question is None:
            return ActionResult(applied=False, reason="No questions loaded")
        index = self.state.index
        x2_active = self.x2_active()

        if outcome == Outcome.correct:
            delta = scoring.award_correct(
                player=self.state.player,
                question=question,
                last_outcome_side=self.state.last_outcome_side,
                x2_active=x2_active,
            )
            self.state.player = delta.player
            self.state.last_outcome_side = delta.last_outcome_side
            self.state.answered[index] = AnsweredTag.correct
            points, bonus = delta.total, delta.streak_bonus
        else:
            self.state.player = scoring.record_wrong_or_no_answer(player=self.state.player)
            self.state.last_outcome_side = None
            self.state.answered[index] = AnsweredTag.wrong
            points, bonus = 0, 0

        self.state.ledger = ledger.record_row(
            self.state.ledger,
            ledger.build_row(
                index=index,
                question=question,
                is_final=False,
                outcome=outcome,
                x2_applied=x2_active,
                delta=points,
                running_total=self.state.player.score,
                streak_bonus_points=bonus,
            ),
        )
        logger.info("Question %s recorded as %s (%+d, total %s)", index, outcome.value, points, self.state.player.score)

        if advance:
            self._send("advance")
        self._commit()
        return APPLIED

    # Final question.

    def set_wager(self, amount: int) -> ActionResult:
        blocked = self._blocked("set_wager")
        if blocked is not None:
            return blocked
        self.state.wager = wager.set_wager(amount)
        self._commit()
        return APPLIED

    def resolve_final(self, outcome: Outcome, *, advance: bool = True) -> ActionResult:
        blocked = self._blocked("resolve_final")
        if blocked is not None:
            return blocked

        resolution = wager.resolve(
            player=self.state.player,
            wager=self.state.wager,
            final_resolution=self.state.final_resolution,
            outcome=outcome,
        )
        if resolution is None:
            return ActionResult(applied=False, reason="Final wager already resolved")

        question = self.current_question
        if question is None:
            return ActionResult(applied=False, reason="No questions loaded")
        index = self.state.index

        self.state.player = resolution.player
        self.state.final_resolution = resolution.final_resolution
        self.state.answered[index] = resolution.tag
        self.state.ledger = ledger.record_row(
            self.state.ledger,
            ledger.build_row(
                index=index,
                question=question,
                is_final=True,
                outcome=outcome,
                x2_applied=False,
                delta=resolution.delta,
                running_total=self.state.player.score,
            ),
        )
        logger.info("Final wager of %s resolved as %s (%+d)", self.state.wager.amount, outcome.value, resolution.delta)

        if advance:
            self._send("advance")
        self._commit()
        return APPLIED

    # Whole game.

    def rename_player(self, name: str) -> ActionResult:
        cleaned = name.strip()
        if not cleaned:
            return ActionResult(applied=False, reason="Player name must not be empty")
        self.state.player = self.state.player.model_copy(update={"name": cleaned})
        self._commit()
        return APPLIED

    def reset(self) -> ActionResult:
        """Start over: zeroed score and streaks, fresh X2 token, player name kept."""

        player = self.state.player
        self.state = GameState(player=PlayerState(player_id=player.player_id, name=player.name))
        logger.info("Game reset for player %s", player.name)
        self._commit()
        return APPLIED

    def view(self, *, session_id: str | None = None) -> GameView:
        s = self.state
        return GameView(
            session_id=session_id,
            index=s.index,
            total_questions=len(self.questions),
            is_final=self.is_final_index,
            stage=s.stage,
            question=self.current_question,
            player=s.player,
            x2=s.x2,
            x2_active=self.x2_active(),
            wager=s.wager,
            final_resolution=s.final_resolution,
            answered=dict(s.answered),
            results=ledger.ordered_rows(s.ledger),
            actions=self.availability(),
        )

    def _commit(self) -> None:
        if self._persist is not None:
            self._persist(self.state)