import pytest
from itertools import count
from sqlalchemy.orm import Session
from app.crud.attempt_question import attempt_question as crud_attempt_question
from app.schemas.attempt_question import AnswerIn
from app.schemas.user import UserContext
from app.services.exam_attempt import exam_attempt_service

_grading_users = count(50000)


def _take_exam(db_session, series, answers):
    """Starts, answers (question index -> answer) and submits as a fresh user."""
    context = UserContext(user_id=next(_grading_users))
    attempt, _ = exam_attempt_service.start_exam(db_session, test_series_id=series.id, current_user_context=context)
    questions = crud_attempt_question.get_all_by_attempt(db_session, attempt_id=attempt.id)
    for index, answer in answers.items():
        exam_attempt_service.answer_question(
            db_session, attempt_question_id=questions[index].id, answer_in=AnswerIn(answer=answer), current_user_context=context
        )
    exam_attempt_service.submit_exam(db_session, attempt_id=attempt.id, current_user_context=context)
    return attempt, context


def test_score_applies_negative_marks(db_session: Session, make_test_series):
    series = make_test_series(
        sections={"A": ["option1", "option2", "option3", "option4"]},
        correct_marks=4.0, negative_marks=1.0, passing_percentage=50.0
    )
    attempt, context = _take_exam(db_session, series, {0: "option1", 1: "option2", 2: "option1"})

    assert attempt.correct_count == 2
    assert attempt.wrong_count == 1
    assert attempt.total_score == 7.0
    assert attempt.max_score == 16.0
    assert attempt.percentage == pytest.approx(43.75)

    result = exam_attempt_service.get_result(db_session, attempt_id=attempt.id, current_user_context=context)
    assert result.passed is False


def test_score_can_go_negative(db_session: Session, make_test_series):
    series = make_test_series(sections={"A": ["option1", "option2"]}, correct_marks=1.0, negative_marks=0.25)
    attempt, _ = _take_exam(db_session, series, {0: "option3", 1: "option3"})

    assert attempt.total_score == -0.5
    assert attempt.percentage == pytest.approx(-25.0)


def test_zero_correct_marks_gives_zero_percentage(db_session: Session, make_test_series):
    series = make_test_series(sections={"A": ["option1"]}, correct_marks=0.0, negative_marks=0.0)
    attempt, _ = _take_exam(db_session, series, {0: "option1"})

    assert attempt.max_score == 0
    assert attempt.percentage == 0.0


def test_rank_counts_strictly_higher_scores(db_session: Session, make_test_series):
    series = make_test_series(sections={"A": ["option1", "option2", "option3"]}, correct_marks=1.0, negative_marks=0.0)

    top, _ = _take_exam(db_session, series, {0: "option1", 1: "option2", 2: "option3"})
    tied_a, _ = _take_exam(db_session, series, {0: "option1"})
    tied_b, _ = _take_exam(db_session, series, {1: "option2"})
    last, _ = _take_exam(db_session, series, {})

    assert [top.rank, tied_a.rank, tied_b.rank, last.rank] == [1, 2, 2, 4]


def test_rank_is_not_recomputed_when_others_finish_later(db_session: Session, make_test_series):
    series = make_test_series(sections={"A": ["option1", "option2"]}, correct_marks=1.0, negative_marks=0.0)

    early, context = _take_exam(db_session, series, {0: "option1"})
    assert early.rank == 1

    _take_exam(db_session, series, {0: "option1", 1: "option2"})

    db_session.refresh(early)
    assert early.rank == 1
    result = exam_attempt_service.get_result(db_session, attempt_id=early.id, current_user_context=context)
    assert result.rank == 1


def test_percentile_uses_completed_score_distribution(db_session: Session, make_test_series):
    series = make_test_series(sections={"A": ["option1", "option2", "option3"]}, correct_marks=1.0, negative_marks=0.0)

    _, low_context = _take_exam(db_session, series, {})
    middle, middle_context = _take_exam(db_session, series, {0: "option1"})
    _take_exam(db_session, series, {0: "option1", 1: "option2", 2: "option3"})
    _take_exam(db_session, series, {0: "option1", 1: "option2"})

    result = exam_attempt_service.get_result(db_session, attempt_id=middle.id, current_user_context=middle_context)
    assert result.percentile == pytest.approx(50.0)
    assert result.total_duration >= 0


def test_history_pages_newest_first(db_session: Session, make_test_series):
    context = UserContext(user_id=next(_grading_users))
    finished = []
    for _ in range(3):
        series = make_test_series(sections={"A": ["option1"]})
        attempt, _ = exam_attempt_service.start_exam(db_session, test_series_id=series.id, current_user_context=context)
        exam_attempt_service.submit_exam(db_session, attempt_id=attempt.id, current_user_context=context)
        finished.append(attempt.id)

    page_one = exam_attempt_service.get_history(db_session, current_user_context=context, page=1, size=2)
    page_two = exam_attempt_service.get_history(db_session, current_user_context=context, page=2, size=2)

    assert page_one.total == 3
    assert page_one.pages == 2
    assert page_one.has_next is True
    assert [item.id for item in page_one.items] == [finished[2], finished[1]]
    assert [item.id for item in page_two.items] == [finished[0]]
    assert page_two.has_previous is True
