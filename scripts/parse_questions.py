"""Build a question-bank JSON file from the plain-text question dumps.

Usage:
    python scripts/parse_questions.py --single res/单选题.txt --multiple res/多选题.txt \
        --judge res/判断题.txt --category C --output data/questions_C.json
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.core.logging import configure_logging
from app.core.constants import ExamCategoryEnum
from app.schemas.question import QuestionBankFile
from app.utils.question_parser import QuestionParser

logger = logging.getLogger("app.scripts.parse_questions")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Parse question dumps into a question-bank file.")
    parser.add_argument("--single", type=Path, help="Single-choice source file")
    parser.add_argument("--multiple", type=Path, help="Multiple-choice source file")
    parser.add_argument("--judge", type=Path, help="True/false source file")
    parser.add_argument(
        "--category",
        choices=[c.value for c in ExamCategoryEnum],
        default=ExamCategoryEnum.C.value,
        help="Certificate category the bank belongs to",
    )
    parser.add_argument("--output", type=Path, required=True, help="Where to write the JSON bank file")
    return parser


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging()

    if not any((args.single, args.multiple, args.judge)):
        logger.error("Nothing to parse: pass at least one of --single, --multiple, --judge")
        return 2

    question_parser = QuestionParser()
    report = question_parser.parse_files(args.single, args.multiple, args.judge)
    bank = question_parser.to_bank_file(report, category=args.category)

    # Fail before writing anything the server would refuse to load.
    QuestionBankFile.model_validate(bank)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(json.dumps(bank, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info(
        f"Wrote {report.total} questions ({report.discarded} discarded) to {args.output}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
