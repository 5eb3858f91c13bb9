import logging
from typing import Optional, Sequence, Union

from .config import Settings, get_settings
from .errors import AlreadyCompletedError, InvalidSubmission, NotFound
from .evaluator import Evaluator
from .schemas import Language, QuestionRef, QuestionType, Result, ResultStatus
from .scoring import ensure_in_progress, finalize, new_result, score_coding, score_mcq
from .stores import QuestionStore, ResultStore

logger = logging.getLogger(__name__)


class AttemptService:
    """Start, answer and submit a test attempt.

    Executions run before the store is touched; each step then writes once,
    through ResultStore.update, against the result as currently stored.
    """

    def __init__(
        self,
        questions: QuestionStore,
        results: ResultStore,
        evaluator: Optional[Evaluator] = None,
        settings: Optional[Settings] = None,
    ):
        self.questions = questions
        self.results = results
        self.evaluator = evaluator or Evaluator()
        self.settings = settings or get_settings()

    def _load(self, result_id: str) -> Result:
        result = self.results.get(result_id)
        if result is None:
            raise NotFound('Result not found')
        return result

    def get(self, result_id: str) -> Result:
        return self._load(result_id)

    def start(self, test_id: str, questions: Sequence[QuestionRef]) -> Result:
        existing = self.results.find(test_id)
        if existing is not None:
            if existing.status != ResultStatus.IN_PROGRESS:
                raise AlreadyCompletedError(existing.id)
            return existing
        if not questions:
            raise InvalidSubmission('Test has no questions')

        result = new_result(test_id, questions, default_points=self.settings.default_points)
        self.results.save(result)
        logger.info('Attempt %s started for test %s (%d questions)', result.id, test_id, len(questions))
        return result

    def save_answer(
        self,
        result_id: str,
        question_id: str,
        code: Optional[str] = None,
        language: Optional[str] = None,
        selected_option: Union[int, str, None] = None,
    ) -> Result:
        result = self._load(result_id)
        ensure_in_progress(result)
        answer = next((a for a in result.answers if a.question_id == question_id), None)
        if answer is None:
            raise InvalidSubmission('Question not found in test')

        if answer.type == QuestionType.CODING:
            question = self.questions.get_coding(question_id)
            if question is None:
                raise NotFound('Question not found')
            lang = (language or '').strip().lower()
            if lang and lang not in {allowed.value for allowed in question.allowed_languages}:
                raise InvalidSubmission('Language not allowed for this question')
            report = self.evaluator.submit(question.test_cases, code, language)
            points, is_correct = score_coding(
                report.test_cases_passed, report.total_test_cases, answer.max_points
            )
            changes = {
                'submitted_code': code,
                'language': Language(lang),
                'test_cases_passed': report.test_cases_passed,
                'total_test_cases': report.total_test_cases,
            }
        else:
            question = self.questions.get_mcq(question_id)
            if question is None:
                logger.warning('MCQ question %s not found', question_id)
                points, is_correct = 0, False
            else:
                points, is_correct = score_mcq(selected_option, question.options, answer.max_points)
            changes = {'selected_option': selected_option}
        changes.update(points=points, is_correct=is_correct)

        # evaluation can take seconds; the stored result may have been
        # finalized or had other answers saved since it was loaded
        def apply(current: Result) -> Result:
            ensure_in_progress(current)
            target = next(a for a in current.answers if a.question_id == question_id)
            for field, value in changes.items():
                setattr(target, field, value)
            return current

        saved = self.results.update(result_id, apply)
        logger.info(
            'Answer saved for result %s question %s: %d/%d points',
            result_id, question_id, points, answer.max_points,
        )
        return saved

    def submit(self, result_id: str, timed_out: bool = False) -> Result:
        status = ResultStatus.TIMEOUT if timed_out else ResultStatus.COMPLETED
        return self.results.update(
            result_id, lambda current: finalize(current, self.questions.get_mcq, status=status)
        )
