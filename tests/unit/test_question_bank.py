import json

import pytest

from app.core.constants import QuestionTypeEnum
from app.core.exceptions import QuestionBankConfigurationError
from app.services.question_bank import BUNDLED_POOL_PATH, QuestionBankStore


class TestQuestionBankStore:
    def test_loads_category_file(self, bank_dir):
        store = QuestionBankStore(bank_dir=bank_dir)
        pool = store.load_pool("A")
        assert len(pool.for_type(QuestionTypeEnum.SINGLE)) == 3
        assert len(pool.for_type(QuestionTypeEnum.MULTIPLE)) == 2
        assert len(pool.for_type(QuestionTypeEnum.JUDGE)) == 2
        assert store.outcomes["A"].fallback is False

    def test_pool_is_cached(self, bank_dir):
        store = QuestionBankStore(bank_dir=bank_dir)
        first = store.load_pool("A")
        (bank_dir / "questions_A.json").unlink()
        assert store.load_pool("A") is first

    def test_missing_file_falls_back_to_bundled_pool(self, bank_dir):
        store = QuestionBankStore(bank_dir=bank_dir)
        pool = store.load_pool("B")
        outcome = store.outcomes["B"]
        assert outcome.fallback is True
        assert outcome.source == str(BUNDLED_POOL_PATH)
        assert len(pool.for_type(QuestionTypeEnum.SINGLE)) >= 40

    def test_unknown_category_falls_back(self, bank_dir):
        store = QuestionBankStore(bank_dir=bank_dir)
        store.load_pool("Z")
        assert store.outcomes["Z"].fallback is True
        assert "unknown category" in store.outcomes["Z"].reason

    def test_invalid_file_falls_back(self, bank_dir):
        (bank_dir / "questions_B.json").write_text("{not json", encoding="utf-8")
        store = QuestionBankStore(bank_dir=bank_dir)
        store.load_pool("B")
        assert store.outcomes["B"].fallback is True

    def test_duplicate_ids_are_rejected(self, bank_dir):
        bank = json.loads((bank_dir / "questions_A.json").read_text(encoding="utf-8"))
        bank["questions"]["judge"][0]["id"] = 1
        (bank_dir / "questions_A.json").write_text(json.dumps(bank), encoding="utf-8")
        store = QuestionBankStore(bank_dir=bank_dir)
        store.load_pool("A")
        assert store.outcomes["A"].fallback is True

    def test_missing_bundled_pool_is_fatal(self, tmp_path):
        store = QuestionBankStore(bank_dir=tmp_path, bundled_path=tmp_path / "missing.json")
        with pytest.raises(QuestionBankConfigurationError):
            store.load_pool("A")

    def test_find_by_id(self, bank_dir):
        pool = QuestionBankStore(bank_dir=bank_dir).load_pool("A")
        assert pool.find(4).type == "multiple"
        assert pool.find(999) is None

    def test_bundled_pool_serves_the_standard_profile(self):
        pool = QuestionBankStore(bank_dir=BUNDLED_POOL_PATH.parent).load_pool("C")
        assert len(pool.for_type(QuestionTypeEnum.SINGLE)) >= 40
        assert len(pool.for_type(QuestionTypeEnum.MULTIPLE)) >= 20
        assert len(pool.for_type(QuestionTypeEnum.JUDGE)) >= 40
