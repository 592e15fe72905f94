import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
os.environ["TESTING"] = "true"

import pytest
from datetime import timedelta
from itertools import count
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.core.database import Base
from app.utils import deps as deps_utils
from app.models import registry
import main
from fastapi.testclient import TestClient
from app.core.config import settings
from app.core.constants import PurchaseItemTypeEnum, PurchaseStatusEnum
from app.core.scheduler import scheduler
from tests.helpers.auth import create_access_token
from app.schemas.user import UserContext
from app.utils.time import utcnow

test_db_url = settings.TEST_DATABASE_URL or "sqlite:///./test.db"

_user_ids = count(1000)

@pytest.fixture(scope="session")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(test_db_url)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    if test_db_url.startswith("sqlite") and os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="session")
def session_factory(database_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=database_engine)

@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture(autouse=True)
def _clean_state(database_engine):
    yield
    scheduler.remove_all_jobs()
    with database_engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())

@pytest.fixture(scope="function")
def client(db_session):
    # Re-initialize the app for each test function to ensure a clean state
    from importlib import reload
    reload(main)
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client

@pytest.fixture
def user_id():
    return next(_user_ids)

@pytest.fixture
def other_user_id():
    return next(_user_ids)

@pytest.fixture
def user_context(user_id):
    return UserContext(user_id=user_id)

@pytest.fixture
def other_user_context(other_user_id):
    return UserContext(user_id=other_user_id)

@pytest.fixture
def auth_headers(user_id):
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}

@pytest.fixture
def other_auth_headers(other_user_id):
    return {"Authorization": f"Bearer {create_access_token(other_user_id)}"}

@pytest.fixture
def make_test_series(db_session):
    """Builds a test series with sections and questions.

    ``sections`` maps a section name to a list of right answers, one per question.
    """
    def _make(
        sections=None,
        duration_minutes=60,
        correct_marks=2.0,
        negative_marks=0.5,
        passing_percentage=40.0,
        is_free=True,
        is_active=True,
        exam_plan_id=None,
    ):
        if sections is None:
            sections = {"Quantitative": ["option1", "option2"], "Reasoning": ["option3"]}

        series = registry.TestSeries(
            title="Mock Test",
            description="Full length mock",
            exam_plan_id=exam_plan_id,
            duration_minutes=duration_minutes,
            correct_marks=correct_marks,
            negative_marks=negative_marks,
            passing_percentage=passing_percentage,
            instructions="Read every question carefully.",
            is_free=is_free,
            is_active=is_active,
        )
        db_session.add(series)
        db_session.flush()

        for section_sequence, (name, answers) in enumerate(sections.items(), start=1):
            section = registry.Section(test_series_id=series.id, name=name, sequence=section_sequence, is_active=True)
            db_session.add(section)
            db_session.flush()
            for question_sequence, right_answer in enumerate(answers, start=1):
                question = registry.Question(
                    question_text=f"{name} question {question_sequence}",
                    options=["A", "B", "C", "D"],
                    right_answer=right_answer,
                    explanation=f"The answer is {right_answer}.",
                )
                db_session.add(question)
                db_session.flush()
                db_session.add(registry.TestSeriesQuestion(
                    test_series_id=series.id,
                    section_id=section.id,
                    question_id=question.id,
                    sequence=question_sequence,
                    is_active=True,
                ))

        db_session.commit()
        db_session.refresh(series)
        return series

    return _make

@pytest.fixture
def grant_purchase(db_session):
    def _grant(user_id, item_type=PurchaseItemTypeEnum.TEST_SERIES, item_id=None,
               status=PurchaseStatusEnum.ACTIVE, expires_in=timedelta(days=30)):
        purchase = registry.UserPurchase(
            user_id=user_id,
            item_type=item_type,
            item_id=item_id,
            status=status,
            expiry_date=utcnow() + expires_in,
        )
        db_session.add(purchase)
        db_session.commit()
        return purchase

    return _grant

@pytest.fixture
def expire_attempt(db_session):
    """Moves an attempt's deadline into the past without waiting for it."""
    def _expire(attempt_id, seconds_ago=1):
        attempt = db_session.get(registry.ExamAttempt, attempt_id)
        attempt.end_time = utcnow() - timedelta(seconds=seconds_ago)
        db_session.commit()
        return attempt

    return _expire
