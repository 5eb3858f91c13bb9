from datetime import datetime, timedelta, timezone

import pytest

from coderunner.errors import AlreadyCompletedError
from coderunner.schemas import McqOption, McqQuestion, QuestionRef, QuestionType, ResultStatus
from coderunner.scoring import finalize, new_result, round_half_up, score_coding, score_mcq

OPTIONS = [McqOption(text='a'), McqOption(text='b', is_correct=True), McqOption(text='c')]


def test_round_half_up_matches_js_math_round():
    assert round_half_up(7.5) == 8
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_coding_partial_score():
    assert score_coding(3, 4, 10) == (8, False)


def test_coding_full_score():
    assert score_coding(4, 4, 10) == (10, True)
    assert score_coding(0, 4, 10) == (0, False)


def test_coding_pass_count_is_clamped():
    assert score_coding(7, 4, 10) == (10, True)
    assert score_coding(-1, 4, 10) == (0, False)


def test_coding_without_test_cases_is_rejected():
    with pytest.raises(ValueError):
        score_coding(0, 0, 10)


def test_mcq_correct_option():
    assert score_mcq(1, OPTIONS, 5) == (5, True)
    assert score_mcq('1', OPTIONS, 5) == (5, True)


@pytest.mark.parametrize('selected', ['1.5', '1abc', ' 1 ', 1.0])
def test_mcq_selection_uses_leading_integer(selected):
    assert score_mcq(selected, OPTIONS, 5) == (5, True)


@pytest.mark.parametrize('selected', [0, 2, 3, 99, -1, '-1', None, 'abc', '', '.5', True])
def test_mcq_anything_else_scores_zero(selected):
    assert score_mcq(selected, OPTIONS, 5) == (0, False)


def _result(start):
    return new_result('test-1', [
        QuestionRef(question_id='q1', type=QuestionType.MCQ, points=5),
        QuestionRef(question_id='q2', type=QuestionType.CODING),
    ], now=start)


def test_new_result_starts_in_progress_with_zero_points():
    result = _result(datetime.now(timezone.utc))
    assert result.status == ResultStatus.IN_PROGRESS
    assert result.max_score == 15
    assert [a.points for a in result.answers] == [0, 0]


def test_finalize_rescores_mcq_against_current_question_data():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    result = _result(start)
    mcq, coding = result.answers
    mcq.selected_option = 1
    mcq.points, mcq.is_correct = 0, False  # stale score from an earlier save
    coding.points = 8

    question = McqQuestion(id='q1', options=OPTIONS)
    final = finalize(result, {'q1': question}.get, now=start + timedelta(seconds=90))

    assert final.answers[0].points == 5
    assert final.answers[0].is_correct is True
    assert final.total_score == 13
    assert final.percentage == 87
    assert final.status == ResultStatus.COMPLETED
    assert final.time_spent == 90
    assert result.status == ResultStatus.IN_PROGRESS


def test_finalize_keeps_saved_score_when_question_is_gone():
    result = _result(datetime.now(timezone.utc))
    result.answers[0].selected_option = 1
    result.answers[0].points = 5
    final = finalize(result, lambda _: None)
    assert final.total_score == 5


def test_second_finalize_is_rejected_without_changes():
    result = _result(datetime.now(timezone.utc))
    result.answers[1].points = 10
    final = finalize(result, lambda _: None)
    snapshot = final.model_copy(deep=True)

    with pytest.raises(AlreadyCompletedError):
        finalize(final, lambda _: None)
    assert final == snapshot


def test_finalize_with_timeout_status():
    result = _result(datetime.now(timezone.utc))
    final = finalize(result, lambda _: None, status=ResultStatus.TIMEOUT)
    assert final.status == ResultStatus.TIMEOUT
    with pytest.raises(AlreadyCompletedError):
        finalize(final, lambda _: None)
