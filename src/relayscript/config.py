"""Worker configuration.

Settings are resolved with priority:
1. Explicit arguments (CLI options)
2. Environment variables
3. YAML config file (path from argument or RELAYSCRIPT_CONFIG)
4. Defaults

Example config file:

    log_severity: debug
    terminator: quit
    preload:
      - myproject.operations
      - ./extra_operations.py
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from relayscript.core.types import Severity
from relayscript.server.decoder import DEFAULT_TERMINATOR

logger = logging.getLogger(__name__)

ENV_CONFIG = "RELAYSCRIPT_CONFIG"
ENV_LOG_SEVERITY = "RELAYSCRIPT_LOG_SEVERITY"
ENV_TERMINATOR = "RELAYSCRIPT_TERMINATOR"
ENV_PRELOAD = "RELAYSCRIPT_PRELOAD"


@dataclass
class WorkerConfig:
    """Worker configuration, fixed before the command loop starts.

    Attributes:
        log_severity: Minimum severity of log events written.
        terminator: "cmd" value that ends the loop.
        preload: Modules (dotted names or .py paths) whose public
            functions are installed as operations at startup.
    """

    log_severity: Severity = Severity.INFO
    terminator: str = DEFAULT_TERMINATOR
    preload: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.log_severity = Severity.parse(self.log_severity)
        if not self.terminator:
            raise ValueError("terminator must not be empty")


def load_config_file(config_file: str | None) -> dict[str, Any]:
    """Read a YAML config file.

    Args:
        config_file: Path to the file, or None to check RELAYSCRIPT_CONFIG.

    Returns:
        The file's mapping, or {} when no file is configured or found.

    Raises:
        ValueError: If the file does not contain a mapping.
    """
    config_path = config_file or os.environ.get(ENV_CONFIG)
    if not config_path:
        return {}

    try:
        content = Path(config_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("config_file_missing: path=%s", config_path)
        return {}

    data = yaml.safe_load(content) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return data


def load_worker_config(
    log_severity: str | None = None,
    terminator: str | None = None,
    preload: Sequence[str] | None = None,
    config_file: str | None = None,
) -> WorkerConfig:
    """Resolve the worker configuration.

    Args:
        log_severity: Minimum log severity (or RELAYSCRIPT_LOG_SEVERITY).
        terminator: Terminator sentinel (or RELAYSCRIPT_TERMINATOR).
        preload: Operation modules (or comma-separated RELAYSCRIPT_PRELOAD).
        config_file: YAML config path (or RELAYSCRIPT_CONFIG).

    Returns:
        The resolved configuration.

    Raises:
        ValueError: If a value is invalid.
    """
    file_config = load_config_file(config_file)

    def get_value(arg: str | None, env_key: str, file_key: str, default: str) -> str:
        if arg is not None:
            return arg
        env_val = os.environ.get(env_key)
        if env_val:
            return env_val
        file_val = file_config.get(file_key)
        if file_val:
            return str(file_val)
        return default

    if preload:
        modules = list(preload)
    elif os.environ.get(ENV_PRELOAD):
        modules = [m.strip() for m in os.environ[ENV_PRELOAD].split(",") if m.strip()]
    else:
        file_preload = file_config.get("preload") or []
        if isinstance(file_preload, str):
            file_preload = [file_preload]
        modules = [str(m) for m in file_preload]

    return WorkerConfig(
        log_severity=Severity.parse(
            get_value(log_severity, ENV_LOG_SEVERITY, "log_severity", Severity.INFO.value)
        ),
        terminator=get_value(terminator, ENV_TERMINATOR, "terminator", DEFAULT_TERMINATOR),
        preload=modules,
    )
