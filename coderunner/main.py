from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .attempts import AttemptService
from .config import Settings, configure_logging, get_settings
from .errors import AlreadyCompletedError, InvalidSubmission, NotFound
from .evaluator import Evaluator
from .executor import execute
from .schemas import (
    CodeAttempt,
    CodingQuestion,
    CustomTestCaseRequest,
    ExecutionRequest,
    ExecutionResponse,
    ExecutionStatus,
    Result,
    RunReport,
    SaveAnswerRequest,
    StartAttemptRequest,
    SubmitAttemptRequest,
    SubmitReport,
    TestCaseOutcome,
)
from .stores import InMemoryQuestionStore, InMemoryResultStore, QuestionStore, ResultStore

_question_store = InMemoryQuestionStore()
_result_store = InMemoryResultStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings())
    yield


app = FastAPI(title='Code Runner', lifespan=lifespan)


def get_question_store() -> QuestionStore:
    return _question_store


def get_result_store() -> ResultStore:
    return _result_store


def get_evaluator(settings: Settings = Depends(get_settings)) -> Evaluator:
    return Evaluator(lambda code, language, stdin: execute(code, language, stdin, settings=settings))


def get_attempts(
    questions: QuestionStore = Depends(get_question_store),
    results: ResultStore = Depends(get_result_store),
    evaluator: Evaluator = Depends(get_evaluator),
    settings: Settings = Depends(get_settings),
) -> AttemptService:
    return AttemptService(questions, results, evaluator, settings)


def _coding_question(question_id: str, questions: QuestionStore) -> CodingQuestion:
    question = questions.get_coding(question_id)
    if question is None:
        raise NotFound('Question not found')
    return question


@app.exception_handler(InvalidSubmission)
async def invalid_submission(request: Request, exc: InvalidSubmission):
    return JSONResponse(
        status_code=400,
        content=ExecutionResponse(
            success=False, error=str(exc), execution_time=0, status=ExecutionStatus.INVALID_REQUEST
        ).model_dump(by_alias=True, mode='json'),
    )


@app.exception_handler(NotFound)
async def not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={'message': str(exc)})


@app.exception_handler(AlreadyCompletedError)
async def already_completed(request: Request, exc: AlreadyCompletedError):
    return JSONResponse(status_code=409, content={'message': str(exc), 'resultId': exc.result_id})


@app.post('/execute', response_model=ExecutionResponse)
async def run_code(req: ExecutionRequest, settings: Settings = Depends(get_settings)):
    res = await run_in_threadpool(execute, req.code, req.language, req.input or '', settings)
    if res.status == ExecutionStatus.TOOL_NOT_FOUND:
        return JSONResponse(status_code=503, content=res.model_dump(by_alias=True, mode='json'))
    return res


@app.post('/questions/{question_id}/run', response_model=RunReport)
async def run_visible_cases(
    question_id: str,
    req: CodeAttempt,
    questions: QuestionStore = Depends(get_question_store),
    evaluator: Evaluator = Depends(get_evaluator),
):
    question = _coding_question(question_id, questions)
    return await run_in_threadpool(evaluator.run, question.test_cases, req.code, req.language)


@app.post('/questions/{question_id}/run-custom', response_model=TestCaseOutcome)
async def run_custom_case(
    question_id: str,
    req: CustomTestCaseRequest,
    questions: QuestionStore = Depends(get_question_store),
    evaluator: Evaluator = Depends(get_evaluator),
):
    _coding_question(question_id, questions)
    return await run_in_threadpool(
        evaluator.run_custom, req.code, req.language, req.input, req.expected_output
    )


@app.post('/questions/{question_id}/submit', response_model=SubmitReport)
async def submit_all_cases(
    question_id: str,
    req: CodeAttempt,
    questions: QuestionStore = Depends(get_question_store),
    evaluator: Evaluator = Depends(get_evaluator),
):
    question = _coding_question(question_id, questions)
    return await run_in_threadpool(evaluator.submit, question.test_cases, req.code, req.language)


@app.post('/results', response_model=Result, status_code=201)
async def start_attempt(req: StartAttemptRequest, attempts: AttemptService = Depends(get_attempts)):
    return attempts.start(req.test_id, req.questions)


@app.get('/results/{result_id}', response_model=Result)
async def get_result(result_id: str, attempts: AttemptService = Depends(get_attempts)):
    return attempts.get(result_id)


@app.post('/results/{result_id}/answers', response_model=Result)
async def save_answer(
    result_id: str, req: SaveAnswerRequest, attempts: AttemptService = Depends(get_attempts)
):
    return await run_in_threadpool(
        attempts.save_answer,
        result_id,
        req.question_id,
        code=req.code,
        language=req.language,
        selected_option=req.selected_option,
    )


@app.post('/results/{result_id}/submit', response_model=Result)
async def submit_attempt(
    result_id: str,
    req: Optional[SubmitAttemptRequest] = None,
    attempts: AttemptService = Depends(get_attempts),
):
    return attempts.submit(result_id, timed_out=req.timed_out if req else False)


if __name__ == '__main__':
    import uvicorn
    uvicorn.run('coderunner.main:app', host='0.0.0.0', port=8000)
