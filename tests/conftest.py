import os
import shutil
import sys

import pytest

from coderunner.config import Settings


@pytest.fixture
def scratch_dir(tmp_path):
    return str(tmp_path / 'scratch')


@pytest.fixture
def settings(scratch_dir):
    return Settings(scratch_dir=scratch_dir, python_command=sys.executable, run_timeout_ms=5000)


@pytest.fixture
def leftovers(scratch_dir):
    def _list():
        if not os.path.isdir(scratch_dir):
            return []
        return os.listdir(scratch_dir)
    return _list


requires_gcc = pytest.mark.skipif(shutil.which('gcc') is None, reason='gcc not installed')
requires_gxx = pytest.mark.skipif(shutil.which('g++') is None, reason='g++ not installed')
requires_java = pytest.mark.skipif(
    shutil.which('javac') is None or shutil.which('java') is None, reason='JDK not installed'
)
