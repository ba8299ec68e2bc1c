import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from app.core.config import settings
from app.core.constants import BUNDLED_CATEGORY, ExamCategoryEnum, QuestionTypeEnum
from app.core.exceptions import QuestionBankConfigurationError
from app.schemas.question import (
    JudgeQuestion,
    MultipleChoiceQuestion,
    QuestionBankFile,
    SingleChoiceQuestion,
)

logger = logging.getLogger(__name__)

BUNDLED_POOL_PATH = Path(__file__).resolve().parent.parent / "data" / f"questions_{BUNDLED_CATEGORY.value}.json"

AnyQuestion = Union[SingleChoiceQuestion, MultipleChoiceQuestion, JudgeQuestion]


@dataclass(frozen=True)
class QuestionPool:
    """Immutable per-category pool, grouped by question type."""
    source_category: str
    single: Tuple[SingleChoiceQuestion, ...]
    multiple: Tuple[MultipleChoiceQuestion, ...]
    judge: Tuple[JudgeQuestion, ...]
    _index: Dict[int, AnyQuestion] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_bank_file(cls, category: str, bank: QuestionBankFile) -> "QuestionPool":
        single = tuple(bank.questions.single_choice)
        multiple = tuple(bank.questions.multiple_choice)
        judge = tuple(bank.questions.judge)
        index = {q.id: q for q in (*single, *multiple, *judge)}
        return cls(source_category=category, single=single, multiple=multiple, judge=judge, _index=index)

    def for_type(self, question_type: QuestionTypeEnum) -> Tuple[AnyQuestion, ...]:
        return {
            QuestionTypeEnum.SINGLE: self.single,
            QuestionTypeEnum.MULTIPLE: self.multiple,
            QuestionTypeEnum.JUDGE: self.judge,
        }[QuestionTypeEnum(question_type)]

    def find(self, question_id: int) -> Optional[AnyQuestion]:
        return self._index.get(question_id)

    def __len__(self) -> int:
        return len(self.single) + len(self.multiple) + len(self.judge)


@dataclass(frozen=True)
class PoolLoadOutcome:
    """How a category's pool was resolved; kept so fallbacks are observable."""
    category: str
    source: str
    fallback: bool = False
    reason: Optional[str] = None


class QuestionBankStore:
    """Loads category pools once and serves them from memory afterwards.

    Reads after the first load need no locking: cached pools are never
    replaced or mutated. A process restart is needed to pick up edits to
    the bank files.
    """

    def __init__(self, bank_dir: Union[str, Path], bundled_path: Union[str, Path] = BUNDLED_POOL_PATH):
        self.bank_dir = Path(bank_dir)
        self.bundled_path = Path(bundled_path)
        self.outcomes: Dict[str, PoolLoadOutcome] = {}
        self._pools: Dict[str, QuestionPool] = {}
        self._bundled: Optional[QuestionPool] = None
        self._lock = threading.Lock()

    def load_pool(self, category: Union[str, ExamCategoryEnum]) -> QuestionPool:
        key = category.value if isinstance(category, ExamCategoryEnum) else str(category)
        pool = self._pools.get(key)
        if pool is not None:
            return pool

        with self._lock:
            pool = self._pools.get(key)
            if pool is None:
                pool, outcome = self._resolve(key)
                self._pools[key] = pool
                self.outcomes[key] = outcome
        return pool

    def clear(self):
        with self._lock:
            self._pools.clear()
            self.outcomes.clear()
            self._bundled = None

    def _resolve(self, category: str) -> Tuple[QuestionPool, PoolLoadOutcome]:
        try:
            ExamCategoryEnum(category)
        except ValueError:
            return self._fall_back(category, f"unknown category '{category}'")

        path = self.bank_dir / f"questions_{category}.json"
        try:
            pool = self._read_pool(category, path)
        except (OSError, ValueError) as e:
            return self._fall_back(category, f"{type(e).__name__}: {e}")

        logger.info(f"Question pool for category {category} loaded from {path} ({len(pool)} questions)")
        return pool, PoolLoadOutcome(category=category, source=str(path))

    def _fall_back(self, category: str, reason: str) -> Tuple[QuestionPool, PoolLoadOutcome]:
        bundled = self._load_bundled()
        logger.warning(
            f"Question pool for category {category} unavailable, using bundled "
            f"category {BUNDLED_CATEGORY.value} pool: {reason}"
        )
        outcome = PoolLoadOutcome(
            category=category,
            source=str(self.bundled_path),
            fallback=True,
            reason=reason,
        )
        return bundled, outcome

    def _load_bundled(self) -> QuestionPool:
        if self._bundled is None:
            try:
                self._bundled = self._read_pool(BUNDLED_CATEGORY.value, self.bundled_path)
            except (OSError, ValueError) as e:
                logger.critical(f"Bundled question pool could not be loaded: {e}")
                raise QuestionBankConfigurationError(
                    "Bundled question bank could not be loaded",
                    details={"reason": f"{type(e).__name__}: {e}"},
                ) from e
        return self._bundled

    @staticmethod
    def _read_pool(category: str, path: Path) -> QuestionPool:
        # pydantic's ValidationError and json's JSONDecodeError are both ValueErrors.
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        bank = QuestionBankFile.model_validate(raw)
        return QuestionPool.from_bank_file(category, bank)


question_bank = QuestionBankStore(bank_dir=settings.QUESTION_BANK_DIR or BUNDLED_POOL_PATH.parent)
