import logging
import math
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import List, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import AttemptQuestionStatusEnum, AttemptStatusEnum
from app.core.database import SessionLocal
from app.core.exceptions import (
    AlreadyCompletedError,
    AttemptCompletedError,
    AttemptExpiredError,
    AttemptNotCompletedError,
    EmptyTestError,
    EntitlementRequiredError,
    NotFoundError,
    ValidationFailedError,
)
from app.core.scheduler import cancel_auto_submit, schedule_auto_submit
from app.crud.attempt_question import attempt_question as crud_attempt_question
from app.crud.exam_attempt import exam_attempt as crud_exam_attempt
from app.crud.section import section as crud_section
from app.crud.test_series import test_series as crud_test_series
from app.crud.test_series_question import test_series_question as crud_test_series_question
from app.models.attempt_question import AttemptQuestion
from app.models.exam_attempt import ExamAttempt, AttemptSectionTiming
from app.schemas.attempt_question import (
    AllQuestions,
    AnswerIn,
    AttemptAnswerIn,
    AttemptOverview,
    AttemptQuestionDetail,
    AttemptQuestionView,
    MarkReviewIn,
    Navigation,
    NavigationQuestion,
    NavigationSection,
    QuestionStats,
    QuestionStatusIn,
    ReviewQuestion,
    ReviewSection,
    SectionQuestions,
    SectionSummary,
    SectionTimingIn,
    SectionTimingStatus,
    SkipIn,
    StructuredSection,
)
from app.schemas.exam_attempt import (
    ExamHistoryItem,
    ExamResult,
    ExamTiming,
    RemainingTime,
    SectionResultStats,
    SectionTimeSpent,
    TestSeriesSummary,
)
from app.schemas.response import PaginatedData
from app.schemas.user import UserContext
from app.services import scoring
from app.services.entitlement import entitlement_service
from app.utils.time import format_remaining, remaining_milliseconds, utcnow

logger = logging.getLogger(__name__)


class ExamAttemptService:

    def _get_owned_attempt(self, db: Session, attempt_id: int, current_user_context: UserContext) -> ExamAttempt:
        # Someone else's attempt is reported exactly like a missing one
        attempt = crud_exam_attempt.get_for_user(db, id=attempt_id, user_id=current_user_context.user_id)
        if not attempt:
            raise NotFoundError("Exam attempt not found.")
        return attempt

    def _require_in_progress(self, attempt: ExamAttempt, now: datetime):
        if attempt.status != AttemptStatusEnum.STARTED:
            raise AttemptCompletedError()

        if now >= attempt.end_time:
            raise AttemptExpiredError()

    def _require_completed(self, attempt: ExamAttempt):
        if attempt.status != AttemptStatusEnum.COMPLETED:
            raise AttemptNotCompletedError()

    def _get_live_attempt_question(self, db: Session, attempt_question_id: int,
                                   current_user_context: UserContext, now: datetime) -> AttemptQuestion:
        attempt_question = crud_attempt_question.get(db, id=attempt_question_id)
        if not attempt_question or attempt_question.attempt.user_id != current_user_context.user_id:
            raise NotFoundError("Question not found.")

        self._require_in_progress(attempt_question.attempt, now)
        return attempt_question

    def _get_live_question_in_attempt(self, db: Session, attempt_id: int, attempt_question_id: int,
                                      current_user_context: UserContext, now: datetime) -> AttemptQuestion:
        attempt = self._get_owned_attempt(db, attempt_id, current_user_context)
        self._require_in_progress(attempt, now)

        attempt_question = crud_attempt_question.get_in_attempt(db, id=attempt_question_id, attempt_id=attempt.id)
        if not attempt_question:
            raise NotFoundError("Question not found.")
        return attempt_question

    def _apply_answer(self, attempt_question: AttemptQuestion, answer_in: AnswerIn):
        if not answer_in.answer or not answer_in.answer.strip():
            raise ValidationFailedError("Answer is required.")

        attempt_question.user_answer = answer_in.answer
        attempt_question.is_correct = answer_in.answer == attempt_question.question.right_answer
        attempt_question.status = AttemptQuestionStatusEnum.ATTEMPTED
        if answer_in.is_marked_for_review is not None:
            attempt_question.is_marked_for_review = answer_in.is_marked_for_review
        attempt_question.time_spent = (attempt_question.time_spent or 0) + answer_in.time_spent

    def _exam_timing(self, attempt: ExamAttempt, now: datetime) -> ExamTiming:
        return ExamTiming(
            start_time=attempt.start_time,
            end_time=attempt.end_time,
            remaining_time=self._remaining_time(attempt, now)
        )

    def _remaining_time(self, attempt: ExamAttempt, now: datetime) -> RemainingTime:
        if attempt.status != AttemptStatusEnum.STARTED:
            milliseconds = 0
        else:
            milliseconds = remaining_milliseconds(attempt.end_time, now)
        return RemainingTime(milliseconds=milliseconds, formatted=format_remaining(milliseconds))

    def _question_view(self, attempt_question: AttemptQuestion) -> AttemptQuestionView:
        return AttemptQuestionView(
            id=attempt_question.id,
            sequence=attempt_question.sequence,
            question_text=attempt_question.question.question_text,
            options=attempt_question.question.keyed_options,
            user_answer=attempt_question.user_answer,
            is_marked_for_review=attempt_question.is_marked_for_review,
            status=attempt_question.status,
            visit_count=attempt_question.visit_count
        )

    def _question_stats(self, attempt_questions: List[AttemptQuestion]) -> QuestionStats:
        return QuestionStats(
            total_questions=len(attempt_questions),
            attempted=sum(1 for aq in attempt_questions if aq.status == AttemptQuestionStatusEnum.ATTEMPTED),
            unattempted=sum(1 for aq in attempt_questions if aq.status == AttemptQuestionStatusEnum.UNATTEMPTED),
            skipped=sum(1 for aq in attempt_questions if aq.status == AttemptQuestionStatusEnum.SKIPPED),
            marked_for_review=sum(1 for aq in attempt_questions if aq.is_marked_for_review)
        )

    def _section_summary(self, section) -> SectionSummary:
        return SectionSummary(id=section.id, name=section.name, sequence=section.sequence)

    def _group_by_section(self, attempt: ExamAttempt, attempt_questions: List[AttemptQuestion]):
        """Pairs each snapshot section (in attempt order) with its questions."""
        grouped = OrderedDict((timing.section_id, (timing.section, [])) for timing in attempt.section_timings)
        for attempt_question in attempt_questions:
            if attempt_question.section_id not in grouped:
                grouped[attempt_question.section_id] = (attempt_question.section, [])
            grouped[attempt_question.section_id][1].append(attempt_question)
        return list(grouped.values())

    def _finalize(self, db: Session, attempt: ExamAttempt) -> bool:
        """Score and close a STARTED attempt. False when another caller already finalized it."""
        finished_at = utcnow()
        if not crud_exam_attempt.claim_completion(db, id=attempt.id, finished_at=finished_at):
            db.rollback()
            return False

        test_series = attempt.test_series
        attempt_questions = crud_attempt_question.get_all_by_attempt(db, attempt_id=attempt.id)
        counts = scoring.tally(attempt_questions)

        total_score = scoring.compute_score(
            counts.correct_count, counts.wrong_count,
            test_series.correct_marks, test_series.negative_marks
        )
        max_score = scoring.compute_max_score(counts.total_questions, test_series.correct_marks)

        attempt.total_questions = counts.total_questions
        attempt.attempted_count = counts.attempted_count
        attempt.correct_count = counts.correct_count
        attempt.wrong_count = counts.wrong_count
        attempt.skipped_count = counts.skipped_count
        attempt.marked_for_review_count = counts.marked_for_review_count
        attempt.total_score = total_score
        attempt.max_score = max_score
        attempt.percentage = scoring.compute_percentage(total_score, max_score)

        for timing in attempt.section_timings:
            if timing.start_time and not timing.end_time:
                timing.end_time = finished_at

        db.flush()
        attempt.rank = crud_exam_attempt.count_higher_scores(
            db,
            test_series_id=attempt.test_series_id,
            total_score=total_score,
            exclude_id=attempt.id
        ) + 1

        db.commit()
        db.refresh(attempt)
        return True

    def start_exam(self, db: Session, test_series_id: int, current_user_context: UserContext) -> Tuple[ExamAttempt, bool]:
        """Returns the attempt and whether it was resumed rather than newly created."""
        user_id = current_user_context.user_id
        test_series = crud_test_series.get(db, id=test_series_id)
        if not test_series or not test_series.is_active:
            raise NotFoundError("Test series not found.")

        if not entitlement_service.has_access(db, user_id=user_id, test_series=test_series):
            raise EntitlementRequiredError()

        existing = crud_exam_attempt.get_started(db, user_id=user_id, test_series_id=test_series.id)
        if existing:
            logger.info(f"User {user_id} resumed exam attempt {existing.id}")
            return existing, True

        sections = crud_section.get_active_by_test_series(db, test_series_id=test_series.id)
        if not sections:
            raise EmptyTestError("No sections found for this test series.")

        rows = crud_test_series_question.get_snapshot_rows(
            db, test_series_id=test_series.id, section_ids=[s.id for s in sections]
        )
        if not rows:
            raise EmptyTestError("No questions found for this test series.")

        start_time = utcnow()
        attempt = ExamAttempt(
            user_id=user_id,
            test_series_id=test_series.id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=test_series.duration_minutes),
            status=AttemptStatusEnum.STARTED,
            total_questions=len(rows),
            max_score=scoring.compute_max_score(len(rows), test_series.correct_marks),
            section_timings=[
                AttemptSectionTiming(section_id=s.id, sequence=index, total_time_spent=0)
                for index, s in enumerate(sections, start=1)
            ],
            attempt_questions=[
                AttemptQuestion(
                    section_id=row.section_id,
                    question_id=row.question_id,
                    sequence=index,
                    status=AttemptQuestionStatusEnum.UNATTEMPTED,
                    is_marked_for_review=False,
                    visit_count=0,
                    time_spent=0
                )
                for index, row in enumerate(rows, start=1)
            ]
        )
        db.add(attempt)

        try:
            db.commit()
        except IntegrityError:
            # A concurrent start for the same user and series won the unique index
            db.rollback()
            existing = crud_exam_attempt.get_started(db, user_id=user_id, test_series_id=test_series.id)
            if not existing:
                raise
            logger.info(f"User {user_id} resumed exam attempt {existing.id} after concurrent start")
            return existing, True

        db.refresh(attempt)
        schedule_auto_submit(attempt.id, attempt.end_time)
        logger.info(f"User {user_id} started exam attempt {attempt.id} for test series {test_series.id}")
        return attempt, False

    def get_section_questions(self, db: Session, attempt_id: int, section_id: int,
                              current_user_context: UserContext) -> SectionQuestions:
        now = utcnow()
        attempt = self._get_owned_attempt(db, attempt_id, current_user_context)
        self._require_in_progress(attempt, now)

        # Sections come from the attempt snapshot, so later catalog deletes do not hide them
        timing = next((t for t in attempt.section_timings if t.section_id == section_id), None)
        if not timing:
            raise NotFoundError("Section not found.")

        section = timing.section
        if timing.start_time is None:
            timing.start_time = now

        attempt_questions = crud_attempt_question.get_by_attempt_and_section(
            db, attempt_id=attempt.id, section_id=section.id
        )
        if attempt_questions and attempt_questions[0].visit_count == 0:
            attempt_questions[0].visit_count += 1

        section_questions = SectionQuestions(
            section=self._section_summary(section),
            questions=[self._question_view(aq) for aq in attempt_questions],
            stats=self._question_stats(attempt_questions),
            exam_timing=self._exam_timing(attempt, now)
        )
        db.commit()
        return section_questions

    def get_all_questions(self, db: Session, attempt_id: int, current_user_context: UserContext) -> AllQuestions:
        now = utcnow()
        attempt = self._get_owned_attempt(db, attempt_id, current_user_context)
        self._require_in_progress(attempt, now)

        attempt_questions = crud_attempt_question.get_all_by_attempt(db, attempt_id=attempt.id)
        sections = [
            StructuredSection(
                id=section.id,
                name=section.name,
                sequence=section.sequence,
                questions=[self._question_view(aq) for aq in questions],
                stats=self._question_stats(questions)
            )
            for section, questions in self._group_by_section(attempt, attempt_questions)
        ]

        return AllQuestions(
            exam=AttemptOverview(
                id=attempt.id,
                test_series=TestSeriesSummary.model_validate(attempt.test_series),
                start_time=attempt.start_time,
                end_time=attempt.end_time,
                status=attempt.status,
                remaining_time=self._remaining_time(attempt, now)
            ),
            sections=sections,
            stats=self._question_stats(attempt_questions)
        )

    def get_question(self, db: Session, attempt_question_id: int,
                     current_user_context: UserContext) -> AttemptQuestionDetail:
        now = utcnow()
        attempt_question = self._get_live_attempt_question(db, attempt_question_id, current_user_context, now)

        if attempt_question.visit_count == 0:
            attempt_question.visit_count += 1
            db.commit()

        return AttemptQuestionDetail(
            **self._question_view(attempt_question).model_dump(),
            exam_timing=self._exam_timing(attempt_question.attempt, now)
        )

    def answer_question(self, db: Session, attempt_question_id: int, answer_in: AnswerIn,
                        current_user_context: UserContext) -> AttemptQuestion:
        now = utcnow()
        attempt_question = self._get_live_attempt_question(db, attempt_question_id, current_user_context, now)
        self._apply_answer(attempt_question, answer_in)

        db.commit()
        db.refresh(attempt_question)
        return attempt_question

    def skip_question(self, db: Session, attempt_question_id: int, skip_in: SkipIn,
                      current_user_context: UserContext) -> AttemptQuestion:
        now = utcnow()
        attempt_question = self._get_live_attempt_question(db, attempt_question_id, current_user_context, now)

        # A previous answer and its correctness are left in place
        attempt_question.status = AttemptQuestionStatusEnum.SKIPPED
        if skip_in.is_marked_for_review is not None:
            attempt_question.is_marked_for_review = skip_in.is_marked_for_review
        attempt_question.time_spent = (attempt_question.time_spent or 0) + skip_in.time_spent

        db.commit()
        db.refresh(attempt_question)
        return attempt_question

    def mark_for_review(self, db: Session, attempt_question_id: int, mark_in: MarkReviewIn,
                        current_user_context: UserContext) -> AttemptQuestion:
        now = utcnow()
        attempt_question = self._get_live_attempt_question(db, attempt_question_id, current_user_context, now)

        attempt_question.is_marked_for_review = mark_in.is_marked_for_review
        attempt_question.time_spent = (attempt_question.time_spent or 0) + mark_in.time_spent

        db.commit()
        db.refresh(attempt_question)
        return attempt_question

    def answer_attempt_question(self, db: Session, attempt_id: int, answer_in: AttemptAnswerIn,
                                current_user_context: UserContext) -> AttemptQuestion:
        now = utcnow()
        attempt_question = self._get_live_question_in_attempt(
            db, attempt_id, answer_in.question_id, current_user_context, now
        )
        self._apply_answer(attempt_question, answer_in)

        db.commit()
        db.refresh(attempt_question)
        return attempt_question

    def update_question_status(self, db: Session, attempt_id: int, status_in: QuestionStatusIn,
                               current_user_context: UserContext) -> AttemptQuestion:
        now = utcnow()
        attempt_question = self._get_live_question_in_attempt(
            db, attempt_id, status_in.question_id, current_user_context, now
        )

        if status_in.status == AttemptQuestionStatusEnum.ATTEMPTED and attempt_question.user_answer is None:
            raise ValidationFailedError("Question has no answer to mark as attempted.")

        if status_in.status == AttemptQuestionStatusEnum.UNATTEMPTED:
            # Clearing a response also drops it from scoring
            attempt_question.user_answer = None
            attempt_question.is_correct = None

        attempt_question.status = status_in.status
        if status_in.is_marked_for_review is not None:
            attempt_question.is_marked_for_review = status_in.is_marked_for_review
        attempt_question.time_spent = (attempt_question.time_spent or 0) + status_in.time_spent

        db.commit()
        db.refresh(attempt_question)
        logger.info(f"Exam attempt {attempt_id} question {attempt_question.id} set to {status_in.status.value}")
        return attempt_question

    def update_section_timing(self, db: Session, attempt_id: int, section_id: int, timing_in: SectionTimingIn,
                              current_user_context: UserContext) -> SectionTimingStatus:
        now = utcnow()
        attempt = self._get_owned_attempt(db, attempt_id, current_user_context)
        self._require_in_progress(attempt, now)

        timing = next((t for t in attempt.section_timings if t.section_id == section_id), None)
        if not timing:
            raise NotFoundError("Section timing not found.")

        timing.total_time_spent = (timing.total_time_spent or 0) + timing_in.time_spent
        if timing.start_time is None:
            timing.start_time = now
        timing.end_time = now

        timing_status = SectionTimingStatus(section_id=timing.section_id, total_time_spent=timing.total_time_spent)
        db.commit()
        return timing_status

    def submit_exam(self, db: Session, attempt_id: int, current_user_context: UserContext) -> ExamAttempt:
        attempt = self._get_owned_attempt(db, attempt_id, current_user_context)
        if attempt.status != AttemptStatusEnum.STARTED:
            raise AlreadyCompletedError()

        if not self._finalize(db, attempt):
            raise AlreadyCompletedError()

        cancel_auto_submit(attempt.id)
        logger.info(
            f"User {attempt.user_id} submitted exam attempt {attempt.id}: "
            f"score {attempt.total_score}/{attempt.max_score}, rank {attempt.rank}"
        )
        return attempt

    def auto_submit_exam(self, db: Session, attempt_id: int) -> bool:
        attempt = crud_exam_attempt.get(db, id=attempt_id)
        if not attempt:
            logger.error(f"Exam attempt {attempt_id} not found for auto-submit")
            return False

        if attempt.status != AttemptStatusEnum.STARTED:
            logger.info(f"Exam attempt {attempt_id} already completed, skipping auto-submit")
            return False

        logger.info(f"Auto-submitting exam attempt {attempt_id} for user {attempt.user_id}")
        if not self._finalize(db, attempt):
            logger.info(f"Exam attempt {attempt_id} was completed concurrently, skipping auto-submit")
            return False

        logger.info(
            f"Exam attempt {attempt_id} auto-submitted: "
            f"score {attempt.total_score}/{attempt.max_score}, rank {attempt.rank}"
        )
        return True

    def get_navigation(self, db: Session, attempt_id: int, current_user_context: UserContext) -> Navigation:
        attempt = self._get_owned_attempt(db, attempt_id, current_user_context)
        attempt_questions = crud_attempt_question.get_all_by_attempt(db, attempt_id=attempt.id)

        return Navigation(
            attempt_id=attempt.id,
            status=attempt.status,
            sections=[
                NavigationSection(
                    id=section.id,
                    name=section.name,
                    sequence=section.sequence,
                    questions=[
                        NavigationQuestion(
                            id=aq.id,
                            sequence=aq.sequence,
                            status=aq.status,
                            is_marked_for_review=aq.is_marked_for_review
                        )
                        for aq in questions
                    ],
                    stats=self._question_stats(questions)
                )
                for section, questions in self._group_by_section(attempt, attempt_questions)
            ]
        )

    def get_result(self, db: Session, attempt_id: int, current_user_context: UserContext) -> ExamResult:
        attempt = self._get_owned_attempt(db, attempt_id, current_user_context)
        self._require_completed(attempt)

        test_series = attempt.test_series
        attempt_questions = crud_attempt_question.get_all_by_attempt(db, attempt_id=attempt.id)
        grouped = self._group_by_section(attempt, attempt_questions)

        section_stats = []
        for section, questions in grouped:
            counts = scoring.tally(questions)
            section_stats.append(SectionResultStats(
                section_id=section.id,
                name=section.name,
                total_questions=counts.total_questions,
                attempted=counts.attempted_count,
                correct=counts.correct_count,
                wrong=counts.wrong_count,
                skipped=counts.skipped_count
            ))

        section_timings = [
            SectionTimeSpent(
                section_id=timing.section_id,
                name=timing.section.name,
                total_time_spent=timing.total_time_spent or 0
            )
            for timing in attempt.section_timings
        ]

        scores = crud_exam_attempt.get_completed_scores(db, test_series_id=attempt.test_series_id)

        return ExamResult(
            id=attempt.id,
            test_series=TestSeriesSummary.model_validate(test_series),
            start_time=attempt.start_time,
            end_time=attempt.end_time,
            total_duration=(attempt.end_time - attempt.start_time).total_seconds(),
            total_questions=attempt.total_questions,
            attempted_count=attempt.attempted_count,
            correct_count=attempt.correct_count,
            wrong_count=attempt.wrong_count,
            skipped_count=attempt.skipped_count,
            marked_for_review_count=attempt.marked_for_review_count,
            total_score=attempt.total_score,
            max_score=attempt.max_score,
            percentage=attempt.percentage,
            rank=attempt.rank,
            passed=scoring.has_passed(attempt.percentage, test_series.passing_percentage),
            percentile=scoring.compute_percentile(attempt.total_score, scores),
            section_stats=section_stats,
            section_timings=section_timings
        )

    def get_review(self, db: Session, attempt_id: int, current_user_context: UserContext) -> List[ReviewSection]:
        attempt = self._get_owned_attempt(db, attempt_id, current_user_context)
        self._require_completed(attempt)

        attempt_questions = crud_attempt_question.get_all_by_attempt(db, attempt_id=attempt.id)
        return [
            ReviewSection(
                section=self._section_summary(section),
                questions=[
                    ReviewQuestion(
                        id=aq.id,
                        sequence=aq.sequence,
                        question_text=aq.question.question_text,
                        options=aq.question.keyed_options,
                        user_answer=aq.user_answer,
                        correct_answer=aq.question.right_answer,
                        is_correct=aq.is_correct,
                        explanation=aq.question.explanation,
                        status=aq.status,
                        is_marked_for_review=aq.is_marked_for_review,
                        time_spent=aq.time_spent or 0
                    )
                    for aq in questions
                ]
            )
            for section, questions in self._group_by_section(attempt, attempt_questions)
        ]

    def get_history(self, db: Session, current_user_context: UserContext,
                    page: int = 1, size: int = 10) -> PaginatedData[ExamHistoryItem]:
        skip = (page - 1) * size
        attempts, total = crud_exam_attempt.get_completed_by_user(
            db, user_id=current_user_context.user_id, skip=skip, limit=size
        )
        pages = math.ceil(total / size) if size else 0

        return PaginatedData[ExamHistoryItem](
            items=[ExamHistoryItem.model_validate(attempt) for attempt in attempts],
            total=total,
            page=page,
            size=size,
            pages=pages,
            has_next=page < pages,
            has_previous=page > 1
        )


exam_attempt_service = ExamAttemptService()


def run_auto_submit(attempt_id: int):
    db = SessionLocal()
    try:
        exam_attempt_service.auto_submit_exam(db, attempt_id)
    except Exception as e:
        db.rollback()
        logger.error(f"Error auto-submitting exam attempt {attempt_id}: {e}", exc_info=True)
    finally:
        db.close()


def sweep_expired_attempts() -> int:
    db = SessionLocal()
    submitted = 0
    try:
        expired = crud_exam_attempt.get_expired_started(db, as_of=utcnow())
        if expired:
            logger.info(f"Found {len(expired)} expired exam attempts to auto-submit")

        for attempt_id in [attempt.id for attempt in expired]:
            try:
                if exam_attempt_service.auto_submit_exam(db, attempt_id):
                    submitted += 1
            except Exception as e:
                db.rollback()
                logger.error(f"Error auto-submitting exam attempt {attempt_id}: {e}", exc_info=True)
    finally:
        db.close()

    return submitted
