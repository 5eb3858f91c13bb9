"""Grade a submission against a question's test cases.

Test cases are executed one after another, never in parallel: a single
submission never holds more than one child process, and outcomes are
reported in test case order. A case that fails for any reason (timeout,
runtime error, missing toolchain) is recorded as failed and the remaining
cases still run.
"""
import logging
from typing import Callable, List, Optional, Sequence

from .executor import execute, validate
from .schemas import (
    ExecutionResponse,
    HiddenTestCaseOutcome,
    RunReport,
    SubmitReport,
    TestCase,
    TestCaseOutcome,
)

logger = logging.getLogger(__name__)

ExecuteFn = Callable[[str, str, str], ExecutionResponse]


def normalize_output(text: Optional[str]) -> str:
    if not text:
        return ''
    text = text.strip().replace('\r\n', '\n').replace('\r', '\n')
    lines = (line.strip() for line in text.split('\n'))
    return '\n'.join(line for line in lines if line)


def outputs_match(expected: Optional[str], actual: Optional[str]) -> bool:
    return normalize_output(expected) == normalize_output(actual)


def is_pass(response: ExecutionResponse, expected: str) -> bool:
    # a non-zero exit fails the case even when stdout matches
    return response.success and outputs_match(expected, response.output)


class Evaluator:

    def __init__(self, execute_fn: Optional[ExecuteFn] = None):
        self.execute_fn = execute_fn or execute

    def _outcome(self, index: int, case_input: str, expected: str, code: str, language: str) -> TestCaseOutcome:
        response = self.execute_fn(code, language, case_input)
        return TestCaseOutcome(
            index=index,
            input=case_input,
            expected_output=expected,
            actual_output=response.output,
            passed=is_pass(response, expected),
            error=response.error,
            duration_ms=response.execution_time,
            status=response.status,
        )

    def run(self, cases: Sequence[TestCase], code: str, language: str) -> RunReport:
        """Run mode: visible cases only, full detail, nothing persisted."""
        code, language = validate(code, language)
        results: List[TestCaseOutcome] = []
        for index, case in enumerate(cases):
            if case.is_hidden:
                continue
            results.append(self._outcome(index, case.input, case.expected_output, code, language))

        passed = sum(1 for r in results if r.passed)
        logger.info('Run mode %s: %d/%d visible cases passed', language, passed, len(results))
        return RunReport(results=results, passed=passed, total=len(results))

    def run_custom(self, code: str, language: str, case_input: str, expected_output: str) -> TestCaseOutcome:
        code, language = validate(code, language)
        return self._outcome(0, case_input, expected_output, code, language)

    def submit(self, cases: Sequence[TestCase], code: str, language: str) -> SubmitReport:
        """Submit mode: every case, visible and hidden, in declared order.

        Hidden cases are reported as pass/fail only; their input, expected
        and actual output never leave this method.
        """
        code, language = validate(code, language)
        visible: List[TestCaseOutcome] = []
        hidden: List[HiddenTestCaseOutcome] = []
        passed = 0
        for index, case in enumerate(cases):
            outcome = self._outcome(index, case.input, case.expected_output, code, language)
            if outcome.passed:
                passed += 1
            if case.is_hidden:
                hidden.append(HiddenTestCaseOutcome(
                    index=index,
                    passed=outcome.passed,
                    duration_ms=outcome.duration_ms,
                    status=outcome.status,
                ))
            else:
                visible.append(outcome)

        logger.info(
            'Submit mode %s: %d/%d cases passed (%d hidden)', language, passed, len(cases), len(hidden)
        )
        return SubmitReport(
            visible=visible,
            hidden=hidden,
            test_cases_passed=passed,
            total_test_cases=len(cases),
        )
