from typing import List
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse, PaginatedData
from app.utils import deps
from app.schemas.exam_attempt import ExamAttempt, ExamHistoryItem, ExamResult, ScoredResult
from app.schemas.attempt_question import (
    AllQuestions,
    AnswerIn,
    AnswerStatus,
    AttemptAnswerIn,
    AttemptQuestionDetail,
    MarkReviewIn,
    MarkReviewStatus,
    Navigation,
    QuestionStatus,
    QuestionStatusIn,
    ReviewSection,
    SectionQuestions,
    SectionTimingIn,
    SectionTimingStatus,
    SkipIn,
    SkipStatus,
)
from app.services.exam_attempt import exam_attempt_service
from app.schemas.user import UserContext

router = APIRouter()


@router.post("/test-series/{test_series_id}/start", response_model=APIResponse[ExamAttempt], status_code=status.HTTP_201_CREATED)
async def start_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    test_series_id: int,
    response: Response,
    context: UserContext = Depends(deps.get_current_user_context)
):
    attempt, resumed = exam_attempt_service.start_exam(db, test_series_id=test_series_id, current_user_context=context)
    if resumed:
        response.status_code = status.HTTP_200_OK
        return APIResponse(message="Resuming existing exam", data=ExamAttempt.model_validate(attempt))
    return APIResponse(message="Exam started successfully", data=ExamAttempt.model_validate(attempt))


@router.get("/attempts/{attempt_id}/questions", response_model=APIResponse[AllQuestions])
async def get_all_questions(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_context)
):
    questions = exam_attempt_service.get_all_questions(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Exam questions retrieved successfully", data=questions)


@router.get("/attempts/{attempt_id}/sections/{section_id}/questions", response_model=APIResponse[SectionQuestions])
async def get_section_questions(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    section_id: int,
    context: UserContext = Depends(deps.get_current_user_context)
):
    section_questions = exam_attempt_service.get_section_questions(
        db, attempt_id=attempt_id, section_id=section_id, current_user_context=context
    )
    return APIResponse(message="Section questions retrieved successfully", data=section_questions)


@router.post("/attempts/{attempt_id}/sections/{section_id}/timing", response_model=APIResponse[SectionTimingStatus])
async def update_section_timing(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    section_id: int,
    timing_in: SectionTimingIn,
    context: UserContext = Depends(deps.get_current_user_context)
):
    timing = exam_attempt_service.update_section_timing(
        db, attempt_id=attempt_id, section_id=section_id, timing_in=timing_in, current_user_context=context
    )
    return APIResponse(message="Section timing updated successfully", data=timing)


@router.post("/attempts/{attempt_id}/answer-question", response_model=APIResponse[AnswerStatus])
async def answer_attempt_question(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    answer_in: AttemptAnswerIn,
    context: UserContext = Depends(deps.get_current_user_context)
):
    attempt_question = exam_attempt_service.answer_attempt_question(
        db, attempt_id=attempt_id, answer_in=answer_in, current_user_context=context
    )
    return APIResponse(message="Answer saved successfully", data=AnswerStatus.model_validate(attempt_question))


@router.post("/attempts/{attempt_id}/update-question-status", response_model=APIResponse[QuestionStatus])
async def update_question_status(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    status_in: QuestionStatusIn,
    context: UserContext = Depends(deps.get_current_user_context)
):
    attempt_question = exam_attempt_service.update_question_status(
        db, attempt_id=attempt_id, status_in=status_in, current_user_context=context
    )
    return APIResponse(message="Question status updated successfully", data=QuestionStatus.model_validate(attempt_question))


@router.get("/attempts/{attempt_id}/navigation", response_model=APIResponse[Navigation])
async def get_navigation(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_context)
):
    navigation = exam_attempt_service.get_navigation(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Question navigation retrieved successfully", data=navigation)


@router.post("/attempts/{attempt_id}/submit", response_model=APIResponse[ScoredResult])
async def submit_exam(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_context)
):
    attempt = exam_attempt_service.submit_exam(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Exam submitted successfully", data=ScoredResult.model_validate(attempt))


@router.get("/attempts/{attempt_id}/result", response_model=APIResponse[ExamResult])
async def get_result(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_context)
):
    result = exam_attempt_service.get_result(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Exam result retrieved successfully", data=result)


@router.get("/attempts/{attempt_id}/review", response_model=APIResponse[List[ReviewSection]])
async def get_review(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_context)
):
    review = exam_attempt_service.get_review(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Exam review retrieved successfully", data=review)


@router.get("/history", response_model=APIResponse[PaginatedData[ExamHistoryItem]])
async def get_history(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_context),
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100)
):
    history = exam_attempt_service.get_history(db, current_user_context=context, page=page, size=size)
    return APIResponse(message="Exam history retrieved successfully", data=history)


@router.get("/questions/{attempt_question_id}", response_model=APIResponse[AttemptQuestionDetail])
async def get_question(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_question_id: int,
    context: UserContext = Depends(deps.get_current_user_context)
):
    question = exam_attempt_service.get_question(db, attempt_question_id=attempt_question_id, current_user_context=context)
    return APIResponse(message="Question retrieved successfully", data=question)


@router.post("/questions/{attempt_question_id}/answer", response_model=APIResponse[AnswerStatus])
async def answer_question(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_question_id: int,
    answer_in: AnswerIn,
    context: UserContext = Depends(deps.get_current_user_context)
):
    attempt_question = exam_attempt_service.answer_question(
        db, attempt_question_id=attempt_question_id, answer_in=answer_in, current_user_context=context
    )
    return APIResponse(message="Answer saved successfully", data=AnswerStatus.model_validate(attempt_question))


@router.post("/questions/{attempt_question_id}/skip", response_model=APIResponse[SkipStatus])
async def skip_question(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_question_id: int,
    skip_in: SkipIn,
    context: UserContext = Depends(deps.get_current_user_context)
):
    attempt_question = exam_attempt_service.skip_question(
        db, attempt_question_id=attempt_question_id, skip_in=skip_in, current_user_context=context
    )
    return APIResponse(message="Question skipped", data=SkipStatus.model_validate(attempt_question))


@router.post("/questions/{attempt_question_id}/mark-review", response_model=APIResponse[MarkReviewStatus])
async def mark_for_review(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_question_id: int,
    mark_in: MarkReviewIn,
    context: UserContext = Depends(deps.get_current_user_context)
):
    attempt_question = exam_attempt_service.mark_for_review(
        db, attempt_question_id=attempt_question_id, mark_in=mark_in, current_user_context=context
    )
    message = "Question marked for review" if attempt_question.is_marked_for_review else "Question unmarked for review"
    return APIResponse(message=message, data=MarkReviewStatus.model_validate(attempt_question))
