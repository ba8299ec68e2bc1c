import logging
import random
from typing import Any, List, Optional, Sequence, Set, Tuple, Union

from sqlalchemy.orm import Session

from app.core.constants import ExamModeEnum, QuestionTypeEnum
from app.core.exam_config import ExamConfiguration
from app.core.exceptions import InsufficientQuestionPoolError
from app.crud.exam_answer import exam_answer as crud_exam_answer
from app.services.question_bank import AnyQuestion, QuestionBankStore, QuestionPool, question_bank

logger = logging.getLogger(__name__)


def _type_of(question: Any) -> str:
    return question["type"] if isinstance(question, dict) else question.type


class ExamAssembler:
    """Builds the ordered question list for a new exam session.

    Questions are laid out in contiguous blocks, one per type, in the
    configuration's ``block_order``. Ordering modes only ever reorder
    questions inside their own block.
    """

    def __init__(self, bank: QuestionBankStore, rng: Optional[random.Random] = None):
        self.bank = bank
        self.rng = rng or random.Random()

    def assemble(
        self,
        db: Session,
        category: str,
        config: ExamConfiguration,
        mode: Optional[Union[ExamModeEnum, str]] = None,
        user_id: Optional[str] = None,
    ) -> List[AnyQuestion]:
        mode = ExamModeEnum(mode) if mode else None
        pool = self.bank.load_pool(category)

        blocks = [
            self._sample(pool, question_type, config.count_for(question_type))
            for question_type in config.block_order
        ]

        history = self._load_history(db, category, mode, user_id)

        questions: List[AnyQuestion] = []
        for block in blocks:
            questions.extend(self._order_block(block, mode, history))

        logger.info(
            f"Assembled {len(questions)} questions for category {category} "
            f"(profile={config.name} v{config.version}, mode={mode.value if mode else 'sequential'})"
        )
        return questions

    def _sample(self, pool: QuestionPool, question_type: QuestionTypeEnum, count: int) -> List[AnyQuestion]:
        available = pool.for_type(question_type)
        if count > len(available):
            raise InsufficientQuestionPoolError(question_type.value, count, len(available))
        return self.rng.sample(list(available), count)

    def _load_history(self, db: Session, category: str, mode: Optional[ExamModeEnum],
                      user_id: Optional[str]) -> Optional[Set[int]]:
        if user_id is None or mode not in (ExamModeEnum.UNANSWERED_FIRST, ExamModeEnum.WRONG_FIRST):
            return None
        return crud_exam_answer.get_answered_question_ids(
            db,
            user_id=user_id,
            category=category,
            only_incorrect=mode == ExamModeEnum.WRONG_FIRST,
        )

    def _shuffled(self, questions: Sequence[AnyQuestion]) -> List[AnyQuestion]:
        result = list(questions)
        self.rng.shuffle(result)
        return result

    def _order_block(self, block: List[AnyQuestion], mode: Optional[ExamModeEnum],
                     history: Optional[Set[int]]) -> List[AnyQuestion]:
        if mode == ExamModeEnum.RANDOM:
            return self._shuffled(block)

        if history is not None and mode == ExamModeEnum.UNANSWERED_FIRST:
            unanswered = [q for q in block if q.id not in history]
            answered = [q for q in block if q.id in history]
            return self._shuffled(unanswered) + self._shuffled(answered)

        if history is not None and mode == ExamModeEnum.WRONG_FIRST:
            wrong = [q for q in block if q.id in history]
            others = [q for q in block if q.id not in history]
            return self._shuffled(wrong) + self._shuffled(others)

        return list(block)

    @staticmethod
    def has_canonical_layout(questions: Sequence[Any], config: ExamConfiguration) -> bool:
        if len(questions) != config.total_questions:
            return False
        for question_type, start, end in config.block_layout():
            if any(_type_of(q) != question_type.value for q in questions[start:end]):
                return False
        return True

    def repair_question_order(self, questions: Sequence[Any],
                              config: ExamConfiguration) -> Tuple[List[Any], bool]:
        """Regroup a snapshot whose type blocks are out of place.

        Returns ``(questions, repaired)``. The regrouped list keeps each
        type's internal order and is only returned when it matches the
        profile's block layout; a snapshot with the wrong number of
        questions per type cannot be fixed by regrouping and comes back
        untouched.
        """
        if self.has_canonical_layout(questions, config):
            return list(questions), False

        regrouped = [
            q for question_type in config.block_order
            for q in questions if _type_of(q) == question_type.value
        ]
        if not self.has_canonical_layout(regrouped, config):
            logger.warning(
                f"Snapshot layout does not match profile {config.name} and regrouping cannot fix it "
                f"({len(regrouped)} of {config.total_questions} questions); leaving it untouched"
            )
            return list(questions), False

        logger.warning(
            f"Snapshot blocks out of order for profile {config.name}; regrouped "
            f"{len(regrouped)} questions by type"
        )
        return regrouped, True


exam_assembler = ExamAssembler(question_bank)
