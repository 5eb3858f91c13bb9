import logging
import os
import shutil
import signal
import subprocess
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

from .errors import ToolNotFound

logger = logging.getLogger(__name__)

REAP_TIMEOUT_S = 1


@dataclass
class ProcessOutcome:
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int
    timed_out: bool


def _read_output(raw: Optional[bytes]) -> str:
    if raw is None:
        return ""
    return raw.decode('utf-8', errors='replace')


def _kill_process_group(proc: subprocess.Popen) -> None:
    try:
        if os.name == 'posix':
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        # already exited between the deadline and the kill
        pass


def _reap(proc: subprocess.Popen):
    """Collect output after a kill without waiting on escaped descendants.

    A descendant that left the process group can keep the pipes open; after
    REAP_TIMEOUT_S the pipes are closed and only the direct child is waited on.
    """
    try:
        return proc.communicate(timeout=REAP_TIMEOUT_S)
    except subprocess.TimeoutExpired as e:
        logger.warning('Output pipes still held after kill, abandoning them')
        for pipe in (proc.stdout, proc.stderr):
            if pipe is not None:
                pipe.close()
        proc.wait()
        return e.stdout, e.stderr


def run_process(
    argv: List[str],
    stdin: str = '',
    timeout_ms: int = 5000,
    cwd: Optional[str] = None,
    hint: str = '',
) -> ProcessOutcome:
    """Run ``argv`` to completion or until ``timeout_ms`` elapses.

    stdin is always piped and closed after ``stdin`` is written, so a program
    that reads input sees EOF instead of blocking until the deadline. On
    expiry the whole process group is killed with SIGKILL and reaped before
    returning.

    Raises ToolNotFound when ``argv[0]`` cannot be found.
    """
    start = time.monotonic()
    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            start_new_session=(os.name == 'posix'),
        )
    except FileNotFoundError:
        raise ToolNotFound(argv[0], hint)

    timed_out = False
    try:
        stdout, stderr = proc.communicate(
            input=stdin.encode('utf-8'), timeout=timeout_ms / 1000
        )
    except subprocess.TimeoutExpired:
        timed_out = True
        logger.warning('%s exceeded %d ms, killing process group', os.path.basename(argv[0]), timeout_ms)
        _kill_process_group(proc)
        stdout, stderr = _reap(proc)
    finally:
        if proc.poll() is None:
            _kill_process_group(proc)
            proc.wait()
    duration_ms = int((time.monotonic() - start) * 1000)

    return ProcessOutcome(
        stdout=_read_output(stdout),
        stderr=_read_output(stderr),
        exit_code=proc.returncode,
        duration_ms=duration_ms,
        timed_out=timed_out,
    )


def new_token() -> str:
    return f'{int(time.time() * 1000)}_{uuid.uuid4().hex}'


class ScratchArea:
    """Paths owned by a single execution.

    Everything handed out by ``file`` or ``directory`` is removed when the
    owning ``scratch_area`` block exits.
    """

    def __init__(self, base_dir: str, token: str):
        self.base_dir = base_dir
        self.token = token
        self._paths: List[str] = []

    def file(self, suffix: str = '') -> str:
        path = os.path.join(self.base_dir, f'code_{self.token}{suffix}')
        self._paths.append(path)
        return path

    def directory(self, prefix: str) -> str:
        path = os.path.join(self.base_dir, f'{prefix}_{self.token}')
        os.makedirs(path)
        self._paths.append(path)
        return path

    def release(self) -> None:
        for path in reversed(self._paths):
            try:
                if os.path.isdir(path):
                    shutil.rmtree(path)
                elif os.path.lexists(path):
                    os.remove(path)
            except OSError:
                logger.warning('Failed to clean up scratch path %s', path, exc_info=True)
        self._paths = []


@contextmanager
def scratch_area(base_dir: str) -> Iterator[ScratchArea]:
    base_dir = os.path.abspath(base_dir)
    os.makedirs(base_dir, exist_ok=True)
    area = ScratchArea(base_dir, new_token())
    try:
        yield area
    finally:
        area.release()


def write_text_file(path: str, content: str) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
