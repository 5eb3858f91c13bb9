import logging
import os
from dataclasses import dataclass
from typing import List

from . import java_source
from .config import Settings
from .errors import ExecutionTimeout
from .process_runner import ProcessOutcome, ScratchArea, run_process, scratch_area, write_text_file
from .schemas import COMPILE_FAILED_MESSAGE, RUNTIME_FAILED_MESSAGE, ExecutionStatus, Language

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    success: bool
    stdout: str
    stderr: str
    duration_ms: int
    status: ExecutionStatus


def _from_run(outcome: ProcessOutcome, timeout_ms: int, elapsed_ms: int) -> ExecutionResult:
    if outcome.timed_out:
        return ExecutionResult(
            success=False,
            stdout=outcome.stdout,
            stderr=str(ExecutionTimeout(timeout_ms)),
            duration_ms=elapsed_ms,
            status=ExecutionStatus.TIMEOUT,
        )
    ok = outcome.exit_code == 0
    stderr = outcome.stderr
    if not ok and not stderr.strip():
        stderr = f'{RUNTIME_FAILED_MESSAGE} ({outcome.exit_code})'
    return ExecutionResult(
        success=ok,
        stdout=outcome.stdout,
        stderr=stderr,
        duration_ms=elapsed_ms,
        status=ExecutionStatus.OK if ok else ExecutionStatus.RUNTIME_ERROR,
    )


def _compile_failed(outcome: ProcessOutcome, timeout_ms: int) -> ExecutionResult:
    if outcome.timed_out:
        diagnostic = f'Compilation timed out ({timeout_ms} ms exceeded)'
    else:
        diagnostic = outcome.stderr.strip() or outcome.stdout.strip() or COMPILE_FAILED_MESSAGE
    return ExecutionResult(
        success=False,
        stdout='',
        stderr=diagnostic,
        duration_ms=outcome.duration_ms,
        status=ExecutionStatus.COMPILE_ERROR,
    )


class Runner:
    """Compile (if needed) and run one source + stdin pair for a language."""

    language: Language
    extension: str

    def __init__(self, settings: Settings):
        self.settings = settings

    def run(self, code: str, stdin: str = '') -> ExecutionResult:
        with scratch_area(self.settings.scratch_dir) as area:
            return self.execute_in(area, code, stdin)

    def execute_in(self, area: ScratchArea, code: str, stdin: str) -> ExecutionResult:
        raise NotImplementedError


class PythonRunner(Runner):
    language = Language.PYTHON
    extension = '.py'

    def execute_in(self, area, code, stdin):
        source = area.file(self.extension)
        write_text_file(source, code)
        outcome = run_process(
            [self.settings.python_command, source],
            stdin=stdin,
            timeout_ms=self.settings.run_timeout_ms,
            cwd=area.base_dir,
            hint='Please install Python 3.',
        )
        return _from_run(outcome, self.settings.run_timeout_ms, outcome.duration_ms)


class NativeRunner(Runner):
    """Single-file C family languages compiled to a standalone executable."""

    compiler_hint = ''

    def compiler(self) -> str:
        raise NotImplementedError

    def execute_in(self, area, code, stdin):
        source = area.file(self.extension)
        executable = area.file('.exe' if os.name == 'nt' else '')
        write_text_file(source, code)

        compiled = run_process(
            [self.compiler(), source, '-o', executable],
            timeout_ms=self.settings.compile_timeout_ms,
            cwd=area.base_dir,
            hint=self.compiler_hint,
        )
        if compiled.timed_out or compiled.exit_code != 0:
            return _compile_failed(compiled, self.settings.compile_timeout_ms)

        outcome = run_process(
            [executable],
            stdin=stdin,
            timeout_ms=self.settings.run_timeout_ms,
            cwd=area.base_dir,
            hint='The compiled executable disappeared from the scratch directory before it could start.',
        )
        return _from_run(
            outcome, self.settings.run_timeout_ms, compiled.duration_ms + outcome.duration_ms
        )


class CRunner(NativeRunner):
    language = Language.C
    extension = '.c'
    compiler_hint = 'Please install a C compiler (gcc).'

    def compiler(self):
        return self.settings.c_compiler


class CppRunner(NativeRunner):
    language = Language.CPP
    extension = '.cpp'
    compiler_hint = 'Please install a C++ compiler (g++).'

    def compiler(self):
        return self.settings.cpp_compiler


class JavaRunner(Runner):
    language = Language.JAVA
    extension = '.java'

    def execute_in(self, area, code, stdin):
        reconciled = java_source.reconcile(code)
        # the class name is not unique per request, so every run gets its own directory
        workdir = area.directory('java')
        source = os.path.join(workdir, reconciled.class_name + self.extension)
        write_text_file(source, reconciled.source)
        logger.debug('Java source reconciled to class %s', reconciled.class_name)

        compiled = run_process(
            [self.settings.javac_command, source],
            timeout_ms=self.settings.compile_timeout_ms,
            cwd=workdir,
            hint='Please install a Java JDK (javac).',
        )
        if compiled.timed_out or compiled.exit_code != 0:
            return _compile_failed(compiled, self.settings.compile_timeout_ms)

        outcome = run_process(
            [self.settings.java_command, '-cp', workdir, reconciled.class_name],
            stdin=stdin,
            timeout_ms=self.settings.run_timeout_ms,
            cwd=workdir,
            hint='Please install a Java runtime.',
        )
        return _from_run(
            outcome, self.settings.run_timeout_ms, compiled.duration_ms + outcome.duration_ms
        )


RUNNERS = {
    runner.language.value: runner
    for runner in (PythonRunner, CRunner, CppRunner, JavaRunner)
}


def supported_languages() -> List[str]:
    return sorted(RUNNERS)


def get_runner(language: str, settings: Settings) -> Runner:
    return RUNNERS[language](settings)

