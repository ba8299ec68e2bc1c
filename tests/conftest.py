import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import json
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.core.database import Base, get_db
from app.core.config import settings
from app.core.exam_config import EXAM_PROFILES
from app.core.security import create_access_token
from app.models import exam_session, exam_answer  # noqa: F401
from app.services.exam_assembler import exam_assembler
from app.services.exam_history import exam_history_service
from app.services.question_bank import QuestionBankStore
from app.utils import deps as deps_utils
from tests.helpers.exam_api import SMALL_BANK, TINY_PROFILE
import main

test_db_url = settings.TEST_DATABASE_URL or "sqlite:///./test.db"

@pytest.fixture(scope="session")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(test_db_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    if test_db_url == "sqlite:///./test.db" and os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def db_session(database_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()

@pytest.fixture
def token_for_user():
    def _token(user_id: str = "user-1") -> str:
        return create_access_token(user_id)
    return _token

@pytest.fixture
def auth_headers(token_for_user):
    def _headers(user_id: str = "user-1"):
        return {"Authorization": f"Bearer {token_for_user(user_id)}"}
    return _headers

@pytest.fixture
def bank_dir(tmp_path):
    """A bank directory holding a small category A pool."""
    (tmp_path / "questions_A.json").write_text(json.dumps(SMALL_BANK, ensure_ascii=False), encoding="utf-8")
    return tmp_path

@pytest.fixture
def small_bank(bank_dir, monkeypatch):
    """Route every service to a fresh store backed by ``bank_dir``."""
    store = QuestionBankStore(bank_dir=bank_dir)
    monkeypatch.setattr(exam_assembler, "bank", store)
    monkeypatch.setattr(exam_history_service, "bank", store)
    return store

@pytest.fixture
def tiny_profile(monkeypatch):
    monkeypatch.setitem(EXAM_PROFILES, TINY_PROFILE.name, TINY_PROFILE)
    return TINY_PROFILE
