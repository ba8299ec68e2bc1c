import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from app.core.constants import BANK_FILE_KEYS, OPTION_LETTERS, QuestionTypeEnum

logger = logging.getLogger(__name__)

QUESTION_LINE = re.compile(r"^(\d+)\s*[\.．、]\s*(.*)$")
OPTION_LINE = re.compile(r"^([A-E])\s*[\.．、]\s*(.*)$")
ANSWER_LINE = re.compile(r"^正确答案\s*[：:]\s*(.*)$")
JUDGE_TOKENS = {"正确": True, "对": True, "√": True, "错误": False, "错": False, "×": False}


@dataclass
class RawBlock:
    number: int
    prompt: List[str]
    body: List[str] = field(default_factory=list)


@dataclass
class ParseReport:
    parsed: Dict[QuestionTypeEnum, List[Dict[str, Any]]] = field(
        default_factory=lambda: {t: [] for t in QuestionTypeEnum}
    )
    discarded: int = 0
    source_files: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(len(items) for items in self.parsed.values())


class QuestionParser:
    """Turns the plain-text question dumps into a question-bank file.

    Each file holds one question type. A block starts at a numbered line
    (``12.题干``) and runs until the next numbered line. Blocks that cannot
    be turned into a valid question are dropped and logged.
    """

    def _blocks(self, text: str) -> Iterator[RawBlock]:
        current: Optional[RawBlock] = None
        for raw in text.splitlines():
            line = raw.strip()
            if not line:
                continue
            match = QUESTION_LINE.match(line)
            if match:
                if current is not None:
                    yield current
                current = RawBlock(number=int(match.group(1)), prompt=[match.group(2).strip()])
            elif current is not None:
                current.body.append(line)
        if current is not None:
            yield current

    def _split_body(self, block: RawBlock) -> Tuple[str, Dict[str, str], Optional[str]]:
        prompt = list(block.prompt)
        options: Dict[str, str] = {}
        answer = None
        for line in block.body:
            answer_match = ANSWER_LINE.match(line)
            if answer_match:
                answer = answer_match.group(1).strip()
                continue
            option_match = OPTION_LINE.match(line)
            if option_match:
                options[option_match.group(1)] = option_match.group(2).strip()
            elif not options and answer is None:
                # prompt wrapped onto the following line
                prompt.append(line)
        options = {letter: text for letter, text in options.items() if text}
        return "".join(prompt).strip(), options, answer

    def _discard(self, report: ParseReport, question_type: QuestionTypeEnum, block: RawBlock, reason: str):
        report.discarded += 1
        logger.warning(f"Discarded {question_type.value} question {block.number}: {reason}")

    def parse_single_choice(self, text: str, report: ParseReport) -> List[Dict[str, Any]]:
        parsed = []
        for block in self._blocks(text):
            prompt, options, answer = self._split_body(block)
            if not prompt or not options:
                self._discard(report, QuestionTypeEnum.SINGLE, block, "missing prompt or options")
                continue
            answer = (answer or "").upper()
            if len(answer) != 1 or answer not in options:
                self._discard(report, QuestionTypeEnum.SINGLE, block, f"invalid answer '{answer}'")
                continue
            parsed.append({"sourceNumber": block.number, "question": prompt,
                           "options": options, "correctAnswer": answer})
        report.parsed[QuestionTypeEnum.SINGLE].extend(parsed)
        return parsed

    def parse_multiple_choice(self, text: str, report: ParseReport) -> List[Dict[str, Any]]:
        parsed = []
        for block in self._blocks(text):
            prompt, options, answer = self._split_body(block)
            if not prompt or not options:
                self._discard(report, QuestionTypeEnum.MULTIPLE, block, "missing prompt or options")
                continue
            letters = sorted({c for c in (answer or "").upper() if c in OPTION_LETTERS})
            if not letters or any(letter not in options for letter in letters):
                self._discard(report, QuestionTypeEnum.MULTIPLE, block, f"invalid answer '{answer}'")
                continue
            parsed.append({"sourceNumber": block.number, "question": prompt,
                           "options": options, "correctAnswer": letters})
        report.parsed[QuestionTypeEnum.MULTIPLE].extend(parsed)
        return parsed

    def parse_judge(self, text: str, report: ParseReport) -> List[Dict[str, Any]]:
        parsed = []
        for block in self._blocks(text):
            prompt = list(block.prompt)
            verdict = None
            for line in block.body:
                answer_match = ANSWER_LINE.match(line)
                token = answer_match.group(1).strip() if answer_match else line
                if token in JUDGE_TOKENS:
                    verdict = JUDGE_TOKENS[token]
                    break
                prompt.append(line)
            prompt = "".join(prompt).strip()
            if not prompt or verdict is None:
                self._discard(report, QuestionTypeEnum.JUDGE, block, "missing prompt or verdict")
                continue
            parsed.append({"sourceNumber": block.number, "question": prompt, "correctAnswer": verdict})
        report.parsed[QuestionTypeEnum.JUDGE].extend(parsed)
        return parsed

    def parse_files(
        self,
        single_path: Optional[Union[str, Path]] = None,
        multiple_path: Optional[Union[str, Path]] = None,
        judge_path: Optional[Union[str, Path]] = None,
    ) -> ParseReport:
        report = ParseReport()
        steps = (
            (single_path, self.parse_single_choice),
            (multiple_path, self.parse_multiple_choice),
            (judge_path, self.parse_judge),
        )
        for path, parse in steps:
            if path is None:
                continue
            path = Path(path)
            found = parse(path.read_text(encoding="utf-8"), report)
            report.source_files.append(path.name)
            logger.info(f"Parsed {len(found)} questions from {path.name}")
        return report

    def to_bank_file(self, report: ParseReport, category: str) -> Dict[str, Any]:
        """Number questions 1..n across all types and wrap them in bank-file form.

        Source files restart numbering per type, so the number from the source file is
        kept as ``sourceNumber`` for traceability.
        """
        questions: Dict[str, List[Dict[str, Any]]] = {}
        next_id = 1
        for question_type in QuestionTypeEnum:
            items = []
            for item in report.parsed[question_type]:
                items.append({"id": next_id, **item})
                next_id += 1
            questions[BANK_FILE_KEYS[question_type]] = items

        return {
            "metadata": {
                "category": category,
                "parseDate": datetime.now(timezone.utc).isoformat(),
                "sourceFiles": report.source_files,
                "counts": {key: len(items) for key, items in questions.items()},
                "total": report.total,
                "discarded": report.discarded,
            },
            "questions": questions,
        }
