import logging.config
import os
import tempfile
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='CODERUNNER_', env_file='.env', extra='ignore')

    # Limits
    run_timeout_ms: int = Field(default=5000, gt=0)
    compile_timeout_ms: int = Field(default=10000, gt=0)

    # Scratch area for sources and build artifacts
    scratch_dir: str = os.path.join(tempfile.gettempdir(), 'coderunner')

    # Toolchain
    python_command: str = 'python3'
    c_compiler: str = 'gcc'
    cpp_compiler: str = 'g++'
    javac_command: str = 'javac'
    java_command: str = 'java'

    default_points: int = 10
    log_level: str = 'INFO'


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings) -> None:
    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'default': {'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s'},
        },
        'handlers': {
            'console': {'class': 'logging.StreamHandler', 'formatter': 'default'},
        },
        'loggers': {
            'coderunner': {'handlers': ['console'], 'level': settings.log_level.upper()},
        },
    })
