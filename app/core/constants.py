from enum import Enum


class QuestionTypeEnum(str, Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"
    JUDGE = "judge"

class ExamCategoryEnum(str, Enum):
    A = "A"
    B = "B"
    C = "C"

class ExamModeEnum(str, Enum):
    RANDOM = "random"
    UNANSWERED_FIRST = "unanswered_first"
    WRONG_FIRST = "wrong_first"

class MultipleScoringPolicyEnum(str, Enum):
    STRICT = "strict"
    PARTIAL = "partial"

# Category whose pool ships inside the package and backs every fallback.
BUNDLED_CATEGORY = ExamCategoryEnum.C

OPTION_LETTERS = ("A", "B", "C", "D", "E")

# Keys of the "questions" object in a question-bank file, by question type.
BANK_FILE_KEYS = {
    QuestionTypeEnum.SINGLE: "singleChoice",
    QuestionTypeEnum.MULTIPLE: "multipleChoice",
    QuestionTypeEnum.JUDGE: "judge",
}

EXAM_MODES = [
    {
        "mode": ExamModeEnum.RANDOM,
        "label": "随机模式",
        "description": "题目完全随机排列",
    },
    {
        "mode": ExamModeEnum.UNANSWERED_FIRST,
        "label": "未答题优先",
        "description": "优先显示未答的题目",
    },
    {
        "mode": ExamModeEnum.WRONG_FIRST,
        "label": "错题优先",
        "description": "优先显示之前答错的题目",
    },
]

MESSAGES = {
    "answer_correct": "答案正确！",
    "answer_wrong": "答案错误",
    "exam_passed": "恭喜，考试通过！",
    "exam_failed": "很遗憾，考试未通过",
    "exam_started": "考试已开始",
    "exam_resumed": "已恢复考试",
    "history_loaded": "考试记录获取成功",
    "results_loaded": "考试结果获取成功",
    "session_loaded": "考试状态获取成功",
    "modes_loaded": "考试模式获取成功",
    "profiles_loaded": "考试配置获取成功",
    "server_error": "服务器错误",
    "question_not_found": "题目未找到",
}
