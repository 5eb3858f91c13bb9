from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Language(str, Enum):
    C = 'c'
    CPP = 'cpp'
    JAVA = 'java'
    PYTHON = 'python'


class ExecutionStatus(str, Enum):
    OK = 'ok'
    COMPILE_ERROR = 'compile_error'
    RUNTIME_ERROR = 'runtime_error'
    TIMEOUT = 'timeout'
    TOOL_NOT_FOUND = 'tool_not_found'
    INTERNAL_ERROR = 'internal_error'
    INVALID_REQUEST = 'invalid_request'


# error text when the toolchain or program gives none
COMPILE_FAILED_MESSAGE = 'Compilation failed'
RUNTIME_FAILED_MESSAGE = 'Program exited with a non-zero status'


class QuestionType(str, Enum):
    CODING = 'coding'
    MCQ = 'mcq'


class ResultStatus(str, Enum):
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    TIMEOUT = 'timeout'


class Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Execution

class ExecutionRequest(Schema):
    # kept loose so missing or blank values reach the executor's own checks
    code: Optional[str] = None
    language: Optional[str] = None
    input: Optional[str] = None


class ExecutionResponse(Schema):
    success: bool
    output: str = ''
    error: str = ''
    execution_time: int = 0
    status: ExecutionStatus


# Questions and test cases

class TestCase(Schema):
    input: str = ''
    expected_output: str
    is_hidden: bool = Field(
        default=False,
        validation_alias=AliasChoices('isHidden', 'hidden', 'is_hidden'),
        serialization_alias='isHidden',
    )
    points: int = 10


class CodingQuestion(Schema):
    id: str
    title: str = ''
    test_cases: List[TestCase] = Field(min_length=1)
    allowed_languages: List[Language] = Field(default_factory=lambda: list(Language))
    points: int = 10


class McqOption(Schema):
    text: str
    is_correct: bool = False


class McqQuestion(Schema):
    id: str
    question: str = ''
    options: List[McqOption]
    points: int = 10


# Evaluation

class CodeAttempt(Schema):
    code: Optional[str] = None
    language: Optional[str] = None


class CustomTestCaseRequest(CodeAttempt):
    input: str = ''
    expected_output: str = ''


class TestCaseOutcome(Schema):
    index: int
    input: str
    expected_output: str
    actual_output: str
    passed: bool
    error: str = ''
    duration_ms: int = 0
    status: ExecutionStatus


class HiddenTestCaseOutcome(Schema):
    index: int
    passed: bool
    duration_ms: int = 0
    status: ExecutionStatus


class RunReport(Schema):
    results: List[TestCaseOutcome]
    passed: int
    total: int


class SubmitReport(Schema):
    visible: List[TestCaseOutcome]
    hidden: List[HiddenTestCaseOutcome]
    test_cases_passed: int
    total_test_cases: int


# Results

class QuestionRef(Schema):
    question_id: str
    type: QuestionType
    points: Optional[int] = None


class Answer(Schema):
    question_id: str
    type: QuestionType
    submitted_code: Optional[str] = None
    selected_option: Optional[Union[int, str]] = None
    language: Optional[Language] = None
    test_cases_passed: Optional[int] = None
    total_test_cases: Optional[int] = None
    points: int = 0
    max_points: int
    is_correct: Optional[bool] = None


class Result(Schema):
    id: str
    test_id: str
    answers: List[Answer]
    total_score: int = 0
    max_score: int
    percentage: int = 0
    status: ResultStatus = ResultStatus.IN_PROGRESS
    started_at: datetime
    submitted_at: Optional[datetime] = None
    time_spent: Optional[int] = None


class StartAttemptRequest(Schema):
    test_id: str
    questions: List[QuestionRef] = Field(min_length=1)


class SaveAnswerRequest(Schema):
    question_id: str
    code: Optional[str] = None
    language: Optional[str] = None
    selected_option: Optional[Union[int, str]] = None


class SubmitAttemptRequest(Schema):
    timed_out: bool = False
