class CodeRunnerError(Exception):
    pass


class InvalidSubmission(CodeRunnerError):
    """Request rejected before any process is spawned."""


class ToolNotFound(CodeRunnerError):
    def __init__(self, tool: str, hint: str = ''):
        self.tool = tool
        self.hint = hint
        message = f'{tool} not found on the execution host.'
        if hint:
            message = f'{message} {hint}'
        super().__init__(message)


class CompileError(CodeRunnerError):
    """Taxonomy only: compile failures are returned as ExecutionStatus.COMPILE_ERROR, never raised."""


class ProgramRuntimeError(CodeRunnerError):
    """Taxonomy only: non-zero exits are returned as ExecutionStatus.RUNTIME_ERROR, never raised."""


class ExecutionTimeout(CodeRunnerError):
    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f'Execution timeout ({timeout_ms} ms exceeded)')


class AlreadyCompletedError(CodeRunnerError):
    def __init__(self, result_id: str):
        self.result_id = result_id
        super().__init__('Test already submitted')


class NotFound(CodeRunnerError):
    pass
