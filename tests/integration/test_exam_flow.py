import pytest
from sqlalchemy.orm import Session

from app.core.constants import ExamModeEnum
from app.core.exam_config import EXAM_PROFILES
from app.crud.exam_answer import exam_answer as crud_exam_answer
from app.crud.exam_session import exam_session as crud_exam_session
from app.schemas.exam_answer import AnswerSubmit
from app.services.exam_assembler import exam_assembler
from app.services.exam_history import exam_history_service
from app.services.exam_session import exam_session_service
from app.services.question_bank import BUNDLED_POOL_PATH, QuestionBankStore
from app.utils.time import utcnow
from tests.helpers.exam_api import CORRECT_ANSWERS, TINY_PROFILE, wrong_answer_for


def _submit(db, session_id, question, user_answer, user_id="flow-user"):
    answer_in = AnswerSubmit(
        session_id=session_id,
        question_id=question.id,
        question_type=question.type,
        user_answer=user_answer,
    )
    return exam_session_service.submit_answer(db, answer_in=answer_in, user_id=user_id)


def test_exam_full_flow(db_session: Session, small_bank, tiny_profile):
    """
    Start an exam, answer one question right and one wrong, then complete it.
    """
    print("\n[TEST] Exam full flow")

    print("[1] Starting exam")
    started = exam_session_service.start_exam(
        db_session, user_id="flow-user", mode=ExamModeEnum.RANDOM, category="A", profile="tiny"
    )
    assert [q.type for q in started.questions] == ["single", "single", "multiple", "judge"]
    single, judge = started.questions[0], started.questions[3]

    print("[2] Answering a single-choice question correctly")
    right = _submit(db_session, started.session_id, single, CORRECT_ANSWERS[single.id])
    assert right.is_correct is True
    assert right.score == 1

    print("[3] Answering a judge question wrongly")
    wrong = _submit(db_session, started.session_id, judge, wrong_answer_for(judge.model_dump()))
    assert wrong.is_correct is False
    assert wrong.score == 0

    print("[4] Completing exam")
    completed = exam_session_service.complete_exam(db_session, session_id=started.session_id, user_id="flow-user")
    assert completed.total_score == 1
    assert completed.pass_score == 60
    assert completed.passed is False

    session = crud_exam_session.get(db_session, id=started.session_id)
    assert session.is_completed is True
    assert session.end_time is not None
    print("[OK] Exam flow complete")


def test_record_answer_is_idempotent(db_session: Session, small_bank, tiny_profile):
    started = exam_session_service.start_exam(db_session, user_id="flow-user", category="A", profile="tiny")
    single = started.questions[0]
    for _ in range(2):
        exam_session_service.record_answer(
            db_session,
            session_id=started.session_id,
            question_id=single.id,
            question_type="single",
            user_answer=CORRECT_ANSWERS[single.id],
            correct_answer=CORRECT_ANSWERS[single.id],
        )
    answers = crud_exam_answer.get_all_by_session(db_session, session_id=started.session_id)
    assert len(answers) == 1
    assert answers[0].score == 1.0


def test_finalize_is_idempotent(db_session: Session, small_bank, tiny_profile):
    started = exam_session_service.start_exam(db_session, user_id="flow-user", category="A", profile="tiny")
    single = started.questions[0]
    _submit(db_session, started.session_id, single, CORRECT_ANSWERS[single.id])

    first = exam_session_service.finalize(db_session, started.session_id)
    second = exam_session_service.finalize(db_session, started.session_id)
    assert first == second == 1.0


def test_snapshot_round_trip(db_session: Session, small_bank, tiny_profile):
    started = exam_session_service.start_exam(
        db_session, user_id="flow-user", mode=ExamModeEnum.RANDOM, category="A", profile="tiny"
    )
    resumed = exam_session_service.start_exam(db_session, user_id="flow-user", session_id=started.session_id)
    assert [q.id for q in resumed.questions] == [q.id for q in started.questions]
    assert resumed.config == started.config


def test_resume_repairs_misordered_snapshot(db_session: Session, small_bank, tiny_profile):
    started = exam_session_service.start_exam(db_session, user_id="flow-user", category="A", profile="tiny")
    session = crud_exam_session.get(db_session, id=started.session_id)
    crud_exam_session.update_questions(db_session, db_obj=session, questions=list(reversed(session.questions)))

    resumed = exam_session_service.resume_exam(db_session, session_id=started.session_id, user_id="flow-user")
    assert [q.type for q in resumed.questions] == ["single", "single", "multiple", "judge"]
    session = crud_exam_session.get(db_session, id=started.session_id)
    assert [q["type"] for q in session.questions] == ["single", "single", "multiple", "judge"]


def test_wrong_first_uses_history(db_session: Session, small_bank, tiny_profile):
    first = exam_session_service.start_exam(db_session, user_id="history-user", category="A", profile="tiny")
    judge = first.questions[3]
    _submit(db_session, first.session_id, judge, wrong_answer_for(judge.model_dump()), user_id="history-user")
    exam_session_service.complete_exam(db_session, session_id=first.session_id, user_id="history-user")

    missed = crud_exam_answer.get_answered_question_ids(
        db_session, user_id="history-user", category="A", only_incorrect=True
    )
    assert missed == {judge.id}

    history = exam_history_service.get_history(db_session, user_id="history-user")
    assert [item.id for item in history] == [first.session_id]
    assert history[0].wrong_answers_count == 1


@pytest.fixture
def bundled_bank(monkeypatch):
    store = QuestionBankStore(bank_dir=BUNDLED_POOL_PATH.parent)
    monkeypatch.setattr(exam_assembler, "bank", store)
    monkeypatch.setattr(exam_history_service, "bank", store)
    return store


@pytest.fixture
def whole_bank_profile(monkeypatch):
    """Draws every question of the small bank, so ordering is the only variable."""
    profile = TINY_PROFILE.model_copy(update={
        "name": "whole_bank", "single_choice_count": 3, "multiple_choice_count": 2, "judge_count": 2,
    })
    monkeypatch.setitem(EXAM_PROFILES, profile.name, profile)
    return profile


def _snapshot_answers(db, session_id):
    session = crud_exam_session.get(db, id=session_id)
    return {q["id"]: q for q in session.questions}


def test_standard_exam_on_bundled_pool(db_session: Session, bundled_bank):
    """
    Category C, default profile: start, answer one question per block, complete.
    """
    print("\n[TEST] Standard exam on the bundled category C pool")

    print("[1] Starting exam")
    started = exam_session_service.start_exam(
        db_session, user_id="c-user", mode=ExamModeEnum.RANDOM, category="C", profile="standard_100"
    )
    types = [q.type for q in started.questions]
    assert types == ["judge"] * 40 + ["single"] * 40 + ["multiple"] * 20
    snapshot = _snapshot_answers(db_session, started.session_id)
    judge, single, multiple = started.questions[0], started.questions[40], started.questions[80]

    print("[2] Judge right, single wrong, multiple right")
    assert _submit(db_session, started.session_id, judge, snapshot[judge.id]["correctAnswer"],
                   user_id="c-user").is_correct is True
    wrong_letter = next(k for k in snapshot[single.id]["options"] if k != snapshot[single.id]["correctAnswer"])
    assert _submit(db_session, started.session_id, single, wrong_letter, user_id="c-user").is_correct is False
    assert _submit(db_session, started.session_id, multiple, snapshot[multiple.id]["correctAnswer"],
                   user_id="c-user").score == 1.0

    print("[3] Completing exam")
    completed = exam_session_service.complete_exam(db_session, session_id=started.session_id, user_id="c-user")
    assert completed.total_score == 2.0
    assert completed.max_score == 100
    assert completed.pass_score == 60
    assert completed.passed is False

    history = exam_history_service.get_history(db_session, user_id="c-user")
    assert [item.id for item in history] == [started.session_id]
    assert history[0].category == "C"
    assert history[0].wrong_answers_count == 1
    print("[OK] Standard exam complete")


def _record_first_session(db):
    """Single 1 right, single 2 wrong, multiple 4 right, judge 6 wrong."""
    first = exam_session_service.start_exam(db, user_id="ordering-user", category="A", profile="whole_bank")
    by_id = {q.id: q for q in first.questions}
    _submit(db, first.session_id, by_id[1], CORRECT_ANSWERS[1], user_id="ordering-user")
    _submit(db, first.session_id, by_id[2], wrong_answer_for(by_id[2].model_dump()), user_id="ordering-user")
    _submit(db, first.session_id, by_id[4], CORRECT_ANSWERS[4], user_id="ordering-user")
    _submit(db, first.session_id, by_id[6], wrong_answer_for(by_id[6].model_dump()), user_id="ordering-user")
    exam_session_service.complete_exam(db, session_id=first.session_id, user_id="ordering-user")


def _ids_by_type(questions):
    grouped = {}
    for q in questions:
        grouped.setdefault(q.type, []).append(q.id)
    return grouped


def test_unanswered_first_uses_stored_history(db_session: Session, small_bank, whole_bank_profile):
    _record_first_session(db_session)
    assert crud_exam_answer.get_answered_question_ids(
        db_session, user_id="ordering-user", category="A"
    ) == {1, 2, 4, 6}

    for _ in range(5):
        started = exam_session_service.start_exam(
            db_session, user_id="ordering-user", mode=ExamModeEnum.UNANSWERED_FIRST,
            category="A", profile="whole_bank",
        )
        grouped = _ids_by_type(started.questions)
        assert [q.type for q in started.questions] == ["single"] * 3 + ["multiple"] * 2 + ["judge"] * 2
        assert grouped["single"][0] == 3
        assert set(grouped["single"][1:]) == {1, 2}
        assert grouped["multiple"] == [5, 4]
        assert grouped["judge"] == [7, 6]


def test_wrong_first_uses_stored_history(db_session: Session, small_bank, whole_bank_profile):
    _record_first_session(db_session)

    for _ in range(5):
        started = exam_session_service.start_exam(
            db_session, user_id="ordering-user", mode=ExamModeEnum.WRONG_FIRST,
            category="A", profile="whole_bank",
        )
        grouped = _ids_by_type(started.questions)
        assert grouped["single"][0] == 2
        assert set(grouped["single"][1:]) == {1, 3}
        assert set(grouped["multiple"]) == {4, 5}
        assert grouped["judge"] == [6, 7]


def test_history_of_another_user_is_ignored(db_session: Session, small_bank, whole_bank_profile):
    _record_first_session(db_session)
    started = exam_session_service.start_exam(
        db_session, user_id="newcomer", mode=ExamModeEnum.WRONG_FIRST, category="A", profile="whole_bank",
    )
    assert crud_exam_answer.get_answered_question_ids(
        db_session, user_id="newcomer", category="A", only_incorrect=True
    ) == set()
    assert len(started.questions) == 7


def test_history_returns_every_completed_session(db_session: Session, tiny_profile):
    config = tiny_profile.model_dump(mode="json")
    for _ in range(101):
        session = crud_exam_session.create_session(
            db_session, user_id="bulk-user", category="A", mode=None, config=config, questions=[],
        )
        crud_exam_session.complete_session(db_session, db_obj=session, end_time=utcnow(), score=0.0)

    history = exam_history_service.get_history(db_session, user_id="bulk-user")
    assert len(history) == 101
    assert len({item.id for item in history}) == 101

    assert len(exam_history_service.get_history(db_session, user_id="bulk-user", limit=10)) == 10
    assert len(exam_history_service.get_history(db_session, user_id="bulk-user", skip=100)) == 1


def test_resume_leaves_unfixable_snapshot_alone(db_session: Session, small_bank, tiny_profile):
    started = exam_session_service.start_exam(db_session, user_id="flow-user", category="A", profile="tiny")
    session = crud_exam_session.get(db_session, id=started.session_id)
    judge_six = {"id": 6, "type": "judge", "question": "从业人员有权拒绝违章指挥。", "correctAnswer": True}
    judge_seven = {"id": 7, "type": "judge", "question": "氧气瓶和乙炔瓶可以混放。", "correctAnswer": False}
    multiple = next(q for q in session.questions if q["type"] == "multiple")
    single = next(q for q in session.questions if q["type"] == "single")
    # right total, wrong mix: one single, two judges
    broken = [judge_six, single, multiple, judge_seven]
    crud_exam_session.update_questions(db_session, db_obj=session, questions=broken)

    for _ in range(2):
        resumed = exam_session_service.resume_exam(db_session, session_id=started.session_id, user_id="flow-user")
        assert [q.id for q in resumed.questions] == [6, single["id"], multiple["id"], 7]
        session = crud_exam_session.get(db_session, id=started.session_id)
        assert session.questions == broken
