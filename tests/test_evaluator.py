import pytest

from coderunner import schemas
from coderunner.errors import InvalidSubmission
from coderunner.evaluator import Evaluator
from coderunner.schemas import ExecutionResponse, ExecutionStatus


def case(input, expected, hidden=False):
    return schemas.TestCase(input=input, expected_output=expected, is_hidden=hidden)


class FakeExecute:
    """Echoes a canned response per stdin value."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def __call__(self, code, language, stdin):
        self.calls.append(stdin)
        response = self.responses[stdin]
        if isinstance(response, ExecutionResponse):
            return response
        return ExecutionResponse(success=True, output=response, execution_time=3, status=ExecutionStatus.OK)


def failed(status, error='boom'):
    return ExecutionResponse(success=False, output='', error=error, execution_time=1, status=status)


CASES = [
    case('1', '2'),
    case('2', '4'),
    case('SECRET-IN', 'SECRET-OUT', hidden=True),
]


def test_run_mode_executes_only_visible_cases():
    fake = FakeExecute({'1': '2\n', '2': '5'})
    report = Evaluator(fake).run(CASES, 'code', 'python')

    assert fake.calls == ['1', '2']
    assert report.total == 2
    assert report.passed == 1
    assert [r.passed for r in report.results] == [True, False]
    assert report.results[1].actual_output == '5'
    assert report.results[1].expected_output == '4'


def test_submit_mode_runs_every_case_in_order():
    fake = FakeExecute({'1': '2', '2': '4', 'SECRET-IN': 'SECRET-OUT'})
    report = Evaluator(fake).submit(CASES, 'code', 'python')

    assert fake.calls == ['1', '2', 'SECRET-IN']
    assert report.test_cases_passed == 3
    assert report.total_test_cases == 3
    assert len(report.visible) == 2
    assert [(h.index, h.passed) for h in report.hidden] == [(2, True)]


def test_hidden_case_content_never_appears_in_submit_report():
    fake = FakeExecute({
        '1': '2', '2': '4',
        'SECRET-IN': failed(ExecutionStatus.RUNTIME_ERROR, error='SECRET-OUT mismatch'),
    })
    report = Evaluator(fake).submit(CASES, 'code', 'python')
    payload = report.model_dump_json(by_alias=True)

    assert 'SECRET' not in payload
    assert report.hidden[0].status == ExecutionStatus.RUNTIME_ERROR
    assert not report.hidden[0].passed


def test_failure_on_one_case_does_not_stop_the_rest():
    fake = FakeExecute({
        '1': failed(ExecutionStatus.TIMEOUT),
        '2': failed(ExecutionStatus.TOOL_NOT_FOUND),
        'SECRET-IN': 'SECRET-OUT',
    })
    report = Evaluator(fake).submit(CASES, 'code', 'python')

    assert len(fake.calls) == 3
    assert report.test_cases_passed == 1
    assert [v.status for v in report.visible] == [ExecutionStatus.TIMEOUT, ExecutionStatus.TOOL_NOT_FOUND]


def test_matching_output_with_non_zero_exit_fails():
    fake = FakeExecute({'1': ExecutionResponse(
        success=False, output='2', error='exit 1', execution_time=1, status=ExecutionStatus.RUNTIME_ERROR,
    )})
    report = Evaluator(fake).run([case('1', '2')], 'code', 'python')
    assert not report.results[0].passed


def test_custom_case_reports_full_detail():
    fake = FakeExecute({'7': '49\r\n'})
    outcome = Evaluator(fake).run_custom('code', 'python', '7', '49')
    assert outcome.passed
    assert outcome.input == '7'


def test_invalid_request_is_rejected_before_any_case_runs():
    fake = FakeExecute({})
    with pytest.raises(InvalidSubmission):
        Evaluator(fake).submit(CASES, '', 'python')
    assert fake.calls == []


def test_end_to_end_with_real_python(settings):
    from coderunner.executor import execute

    cases = [
        case('3', '9'),
        case('4', '16'),
        case('1234', '1522756', hidden=True),
    ]
    evaluator = Evaluator(lambda code, lang, stdin: execute(code, lang, stdin, settings=settings))
    report = evaluator.submit(cases, 'n = int(input())\nprint(n * n)\n', 'python')

    assert report.test_cases_passed == 3
    assert report.total_test_cases == 3
    assert '1522756' not in report.model_dump_json(by_alias=True)
