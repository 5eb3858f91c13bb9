import logging
import math
import re
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Sequence, Tuple, Union

from .errors import AlreadyCompletedError
from .schemas import Answer, McqOption, McqQuestion, QuestionRef, QuestionType, Result, ResultStatus

logger = logging.getLogger(__name__)

DEFAULT_POINTS = 10

LEADING_INT_RE = re.compile(r'\s*([+-]?\d+)')


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_coding(passed: int, total: int, max_points: int) -> Tuple[int, bool]:
    """Points for a coding answer, proportional to the cases passed."""
    if total <= 0:
        raise ValueError('a coding question needs at least one test case')
    passed = min(max(passed, 0), total)
    points = round_half_up(passed / total * max_points)
    return points, passed == total


def _option_index(selected: Union[int, str, None]) -> Optional[int]:
    # leading integer, so "1.5" and "1abc" both select option 1
    if selected is None or isinstance(selected, bool):
        return None
    match = LEADING_INT_RE.match(str(selected))
    return int(match.group(1)) if match else None


def score_mcq(
    selected: Union[int, str, None], options: Sequence[McqOption], max_points: int
) -> Tuple[int, bool]:
    """Full points for the option flagged correct, zero for anything else.

    Missing, malformed and out-of-range selections score zero.
    """
    index = _option_index(selected)
    if index is None or not 0 <= index < len(options):
        return 0, False
    if options[index].is_correct:
        return max_points, True
    return 0, False


def new_result(
    test_id: str,
    questions: Iterable[QuestionRef],
    default_points: int = DEFAULT_POINTS,
    now: Optional[datetime] = None,
) -> Result:
    answers = [
        Answer(
            question_id=q.question_id,
            type=q.type,
            points=0,
            max_points=q.points if q.points is not None else default_points,
        )
        for q in questions
    ]
    return Result(
        id=uuid.uuid4().hex,
        test_id=test_id,
        answers=answers,
        max_score=sum(a.max_points for a in answers),
        started_at=now or datetime.now(timezone.utc),
    )


def ensure_in_progress(result: Result) -> None:
    if result.status != ResultStatus.IN_PROGRESS:
        raise AlreadyCompletedError(result.id)


def finalize(
    result: Result,
    mcq_lookup: Callable[[str], Optional[McqQuestion]],
    status: ResultStatus = ResultStatus.COMPLETED,
    now: Optional[datetime] = None,
) -> Result:
    """Compute the final score and close the result.

    MCQ answers are re-scored against the question data current at the time
    of the call. Returns a new Result; ``result`` itself is not modified.
    """
    ensure_in_progress(result)
    if status == ResultStatus.IN_PROGRESS:
        raise ValueError('finalize needs a terminal status')

    final = result.model_copy(deep=True)
    for answer in final.answers:
        if answer.type != QuestionType.MCQ or answer.selected_option is None:
            continue
        question = mcq_lookup(answer.question_id)
        if question is None:
            logger.warning('MCQ question %s not found, keeping saved score', answer.question_id)
            continue
        answer.points, answer.is_correct = score_mcq(answer.selected_option, question.options, answer.max_points)

    final.total_score = sum(a.points or 0 for a in final.answers)
    final.percentage = round_half_up(final.total_score / final.max_score * 100) if final.max_score else 0
    final.submitted_at = now or datetime.now(timezone.utc)
    final.time_spent = int((final.submitted_at - final.started_at).total_seconds())
    final.status = status

    logger.info(
        'Result %s finalized as %s: %d/%d (%d%%)',
        final.id, status.value, final.total_score, final.max_score, final.percentage,
    )
    return final
