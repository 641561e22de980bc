from __future__ import annotations

from typing import Annotated, Any

import redis
from fastapi import APIRouter, Body, Depends, HTTPException, Path, WebSocket, WebSocketDisconnect, status

from soloquiz.actions import ACTION_NAMES, ActionName, dispatch_action, open_session
from soloquiz.api.deps import get_question_set, get_redis
from soloquiz.api.models import (
    ActionResponse,
    GameView,
    OutcomeRequest,
    Question,
    RenameRequest,
    WagerRequest,
)
from soloquiz.lock import SessionBusyError
from soloquiz.questions.registry import QuestionSet
from soloquiz.websocket_hub import hub

router = APIRouter()

SessionId = Annotated[str, Path(min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_-]+$")]


@router.websocket("/ws/session/{session_id}")
async def session_updates_ws(
    websocket: WebSocket,
    session_id: str,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> None:
    machine = open_session(r=r, session_id=session_id, questions=questions)
    await hub.subscribe(session_id, websocket, current=machine.view(session_id=session_id))

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.unsubscribe(session_id, websocket)
    except Exception:
        await hub.unsubscribe(session_id, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/questions", response_model=list[Question])
async def list_questions_route(questions: QuestionSet = Depends(get_question_set)) -> list[Question]:
    return list(questions)


@router.get("/session/{session_id}", response_model=GameView)
async def get_session_route(
    session_id: SessionId,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> GameView:
    machine = open_session(r=r, session_id=session_id, questions=questions)
    return machine.view(session_id=session_id)


async def _run_action(
    *,
    r: redis.Redis,
    questions: QuestionSet,
    session_id: str,
    action: ActionName,
    payload: dict[str, Any],
) -> ActionResponse:
    try:
        result = dispatch_action(r=r, session_id=session_id, action=action, payload=payload, questions=questions)
    except SessionBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    if result.applied:
        await hub.publish(session_id, action=action, view=result.view)
    return ActionResponse(applied=result.applied, reason=result.reason, view=result.view)


@router.post("/session/{session_id}/actions/{action}", response_model=ActionResponse)
async def generic_action_route(
    session_id: SessionId,
    action: str,
    body: dict[str, Any] | None = Body(default=None),
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    if action not in ACTION_NAMES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown action: {action}")
    act: ActionName = action  # type: ignore[assignment]
    return await _run_action(r=r, questions=questions, session_id=session_id, action=act, payload=body or {})


@router.post("/session/{session_id}/next", response_model=ActionResponse)
async def next_route(
    session_id: SessionId,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    return await _run_action(r=r, questions=questions, session_id=session_id, action="next", payload={})


@router.post("/session/{session_id}/previous", response_model=ActionResponse)
async def previous_route(
    session_id: SessionId,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    return await _run_action(r=r, questions=questions, session_id=session_id, action="previous", payload={})


@router.post("/session/{session_id}/x2", response_model=ActionResponse)
async def arm_x2_route(
    session_id: SessionId,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    return await _run_action(r=r, questions=questions, session_id=session_id, action="arm_x2", payload={})


@router.post("/session/{session_id}/wager", response_model=ActionResponse)
async def wager_route(
    session_id: SessionId,
    payload: WagerRequest,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    return await _run_action(
        r=r, questions=questions, session_id=session_id, action="set_wager", payload=payload.model_dump()
    )


@router.post("/session/{session_id}/outcome", response_model=ActionResponse)
async def outcome_route(
    session_id: SessionId,
    payload: OutcomeRequest,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    return await _run_action(
        r=r, questions=questions, session_id=session_id, action="award_outcome", payload=payload.model_dump(mode="json")
    )


@router.post("/session/{session_id}/final", response_model=ActionResponse)
async def final_route(
    session_id: SessionId,
    payload: OutcomeRequest,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    return await _run_action(
        r=r, questions=questions, session_id=session_id, action="resolve_final", payload=payload.model_dump(mode="json")
    )


@router.post("/session/{session_id}/player", response_model=ActionResponse)
async def rename_route(
    session_id: SessionId,
    payload: RenameRequest,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    return await _run_action(r=r, questions=questions, session_id=session_id, action="rename", payload=payload.model_dump())


@router.post("/session/{session_id}/reset", response_model=ActionResponse)
async def reset_route(
    session_id: SessionId,
    r: redis.Redis = Depends(get_redis),
    questions: QuestionSet = Depends(get_question_set),
) -> ActionResponse:
    return await _run_action(r=r, questions=questions, session_id=session_id, action="reset", payload={})
