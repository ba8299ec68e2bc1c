from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import EXAM_MODES, MESSAGES
from app.core.exam_config import EXAM_PROFILES
from app.schemas.response import APIResponse
from app.schemas.exam_answer import AnswerResult, AnswerSubmit
from app.schemas.exam_session import (
    CompleteExamRequest,
    CompleteExamResponse,
    ExamHistoryItem,
    ExamModeInfo,
    ExamProfiles,
    ExamResults,
    ExamSessionState,
    StartExamRequest,
    StartExamResponse,
)
from app.services.exam_session import exam_session_service
from app.services.exam_history import exam_history_service
from app.utils import deps

router = APIRouter()


@router.get("/modes", response_model=APIResponse[List[ExamModeInfo]])
def get_exam_modes(request_id: Optional[str] = Depends(deps.get_request_id)):
    modes = [ExamModeInfo(**m) for m in EXAM_MODES]
    return APIResponse(message=MESSAGES["modes_loaded"], data=modes, request_id=request_id)


@router.get("/profiles", response_model=APIResponse[ExamProfiles])
def get_exam_profiles(request_id: Optional[str] = Depends(deps.get_request_id)):
    profiles = ExamProfiles.describe(settings.DEFAULT_EXAM_PROFILE, list(EXAM_PROFILES.values()))
    return APIResponse(message=MESSAGES["profiles_loaded"], data=profiles, request_id=request_id)


@router.post("/start", response_model=APIResponse[StartExamResponse])
def start_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    start_in: StartExamRequest,
    user_id: str = Depends(deps.get_current_user_id),
    request_id: Optional[str] = Depends(deps.get_request_id)
):
    started = exam_session_service.start_exam(
        db,
        user_id=user_id,
        session_id=start_in.session_id,
        mode=start_in.mode,
        category=start_in.category,
        profile=start_in.profile,
    )
    message = MESSAGES["exam_resumed"] if started.resumed else MESSAGES["exam_started"]
    return APIResponse(message=message, data=started, request_id=request_id)


@router.post("/answer", response_model=APIResponse[AnswerResult])
def submit_answer(
    *,
    db: Session = Depends(deps.get_transactional_db),
    answer_in: AnswerSubmit,
    user_id: str = Depends(deps.get_current_user_id),
    request_id: Optional[str] = Depends(deps.get_request_id)
):
    result = exam_session_service.submit_answer(db, answer_in=answer_in, user_id=user_id)
    return APIResponse(message=result.message, data=result, request_id=request_id)


@router.post("/complete", response_model=APIResponse[CompleteExamResponse])
def complete_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    complete_in: CompleteExamRequest,
    user_id: str = Depends(deps.get_current_user_id),
    request_id: Optional[str] = Depends(deps.get_request_id)
):
    completed = exam_session_service.complete_exam(db, session_id=complete_in.session_id, user_id=user_id)
    return APIResponse(message=completed.message, data=completed, request_id=request_id)


@router.get("/history", response_model=APIResponse[List[ExamHistoryItem]])
def get_exam_history(
    db: Session = Depends(deps.get_db),
    user_id: str = Depends(deps.get_current_user_id),
    request_id: Optional[str] = Depends(deps.get_request_id),
    skip: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1)
):
    history = exam_history_service.get_history(db, user_id=user_id, skip=skip, limit=limit)
    return APIResponse(message=MESSAGES["history_loaded"], data=history, request_id=request_id)


@router.get("/results/{session_id}", response_model=APIResponse[ExamResults])
def get_exam_results(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
    user_id: str = Depends(deps.get_current_user_id),
    request_id: Optional[str] = Depends(deps.get_request_id)
):
    results = exam_history_service.get_results(db, session_id=session_id, user_id=user_id)
    return APIResponse(message=MESSAGES["results_loaded"], data=results, request_id=request_id)


@router.get("/sessions/{session_id}", response_model=APIResponse[ExamSessionState])
def get_exam_session(
    *,
    db: Session = Depends(deps.get_db),
    session_id: str,
    user_id: str = Depends(deps.get_current_user_id),
    request_id: Optional[str] = Depends(deps.get_request_id)
):
    state = exam_history_service.get_session_state(db, session_id=session_id, user_id=user_id)
    return APIResponse(message=MESSAGES["session_loaded"], data=state, request_id=request_id)
