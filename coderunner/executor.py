import logging
from typing import Optional, Tuple

from .config import Settings, get_settings
from .errors import InvalidSubmission, ToolNotFound
from .languages import get_runner, supported_languages
from .schemas import ExecutionResponse, ExecutionStatus

logger = logging.getLogger(__name__)

EXECUTION_FAILED = 'Execution failed. Please check your code syntax.'


def validate(code: Optional[str], language: Optional[str]) -> Tuple[str, str]:
    """Check a request before anything is written or spawned.

    Returns the code and the normalized language tag.
    """
    problems = []
    if not isinstance(code, str) or not code.strip():
        problems.append('Code is required')
    lang = language.strip().lower() if isinstance(language, str) else ''
    if lang not in supported_languages():
        problems.append('Invalid language')
    if problems:
        raise InvalidSubmission(', '.join(problems))
    return code, lang


def execute(
    code: Optional[str],
    language: Optional[str],
    stdin: str = '',
    settings: Optional[Settings] = None,
) -> ExecutionResponse:
    code, lang = validate(code, language)
    settings = settings or get_settings()
    logger.info('Executing %s submission (%d chars, stdin %s)', lang, len(code), 'yes' if stdin else 'no')

    try:
        result = get_runner(lang, settings).run(code, stdin or '')
    except ToolNotFound as e:
        logger.error('Toolchain missing for %s: %s', lang, e)
        return ExecutionResponse(
            success=False, error=str(e), execution_time=0, status=ExecutionStatus.TOOL_NOT_FOUND
        )
    except Exception:
        logger.exception('Unexpected failure while executing %s submission', lang)
        return ExecutionResponse(
            success=False, error=EXECUTION_FAILED, execution_time=0, status=ExecutionStatus.INTERNAL_ERROR
        )

    logger.info('Executed %s submission: status=%s time=%dms', lang, result.status.value, result.duration_ms)
    return ExecutionResponse(
        success=result.success,
        output=result.stdout.strip(),
        error=result.stderr.strip(),
        execution_time=result.duration_ms,
        status=result.status,
    )
