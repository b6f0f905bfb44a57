"""Shared configuration and utilities for the ESLint check."""

import enum
import functools
import json
import logging
import os
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from errors import ConfigError

# ---------------------------------------------------------------------------
# Logging (initialised once on first import)
# ---------------------------------------------------------------------------
def resolve_log_level(name: str | None) -> int:
    """Map a level name such as ``debug`` to its number; unknown names give INFO."""
    level = logging.getLevelName((name or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


logging.basicConfig(
    level=resolve_log_level(os.getenv("LOG_LEVEL")),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
CHECK_NAME = "ESLint check"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
DEFAULT_ESLINT_COMMAND = "npx --no-install eslint"
DEFAULT_IGNORE_FILE = ".gitignore"

# Repo format: "owner/repo"
_REPO_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


class MissingFilePolicy(str, enum.Enum):
    """What to do with a lint target that is not on disk."""

    EXCLUDE = "exclude"  # warn and drop it
    INCLUDE = "include"  # warn and let ESLint fail on it


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------
def validate_repo(repo: str) -> str:
    """Validate repository string matches 'owner/repo' format.

    Returns *repo* unchanged on success; raises ``ConfigError`` otherwise.
    """
    if not _REPO_PATTERN.match(repo):
        raise ConfigError(
            f"Invalid repo format: {repo!r}. Expected 'owner/repo' "
            f"(e.g. 'octo-org/web-app')."
        )
    return repo


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value < 1:
        raise ConfigError(f"{name} must be >= 1, got {value}")
    return value


def _float_setting(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def read_pr_number(env: Mapping[str, str]) -> int:
    """Find the pull request number for this run.

    ``PR_NUMBER`` wins when set; otherwise the number is read from the
    webhook payload at ``GITHUB_EVENT_PATH`` (``pull_request.number`` or the
    top-level ``number``).
    """
    explicit = env.get("PR_NUMBER")
    if explicit:
        return _int_setting(env, "PR_NUMBER", 0)

    event_path = env.get("GITHUB_EVENT_PATH")
    if not event_path:
        raise ConfigError(
            "No pull request number: set PR_NUMBER or GITHUB_EVENT_PATH."
        )

    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read event payload {event_path}: {e}") from e

    pull_request = payload.get("pull_request") or {}
    number = pull_request.get("number", payload.get("number"))
    if not isinstance(number, int):
        raise ConfigError(
            f"Event payload {event_path} is not a pull request event."
        )
    return number


# ---------------------------------------------------------------------------
# Run configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ActionConfig:
    """Everything the pipeline needs, resolved once at startup."""

    token: str
    repository: str
    pr_number: int
    workspace: Path
    working_directory: Path
    event_sha: str | None = None
    api_url: str = DEFAULT_API_URL
    graphql_url: str = DEFAULT_GRAPHQL_URL
    eslint_command: str = DEFAULT_ESLINT_COMMAND
    ignore_file: str = DEFAULT_IGNORE_FILE
    eslint_timeout: float = 600.0
    missing_files: MissingFilePolicy = MissingFilePolicy.EXCLUDE
    http_timeout: float = 30.0
    http_retries: int = 1
    max_files: int = 3000

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def repo_name(self) -> str:
        return self.repository.split("/", 1)[1]

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ActionConfig":
        """Build the configuration from environment variables.

        Args:
            env: Mapping to read from; defaults to ``os.environ``.

        Returns:
            A frozen ActionConfig

        Raises:
            ConfigError: If a required value is missing or malformed
        """
        env = os.environ if env is None else env

        token = env.get("GITHUB_TOKEN") or env.get("INPUT_REPO-TOKEN")
        if not token:
            raise ConfigError(
                "GITHUB_TOKEN not found. Set it in the workflow env or .env file."
            )

        repository = env.get("GITHUB_REPOSITORY")
        if not repository:
            raise ConfigError("GITHUB_REPOSITORY not found.")
        repository = validate_repo(repository)

        workspace = Path(env.get("GITHUB_WORKSPACE") or os.getcwd()).resolve()
        working_directory = workspace
        custom_directory = env.get("CUSTOM_DIRECTORY")
        if custom_directory:
            working_directory = (workspace / custom_directory).resolve()
            if not working_directory.is_dir():
                raise ConfigError(
                    f"CUSTOM_DIRECTORY {custom_directory!r} is not a directory "
                    f"under {workspace}"
                )

        policy_raw = env.get("MISSING_FILES", MissingFilePolicy.EXCLUDE.value)
        try:
            missing_files = MissingFilePolicy(policy_raw.lower())
        except ValueError as e:
            raise ConfigError(
                f"MISSING_FILES must be 'exclude' or 'include', got {policy_raw!r}"
            ) from e

        return cls(
            token=token,
            repository=repository,
            pr_number=read_pr_number(env),
            workspace=workspace,
            working_directory=working_directory,
            event_sha=env.get("GITHUB_SHA") or None,
            api_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            graphql_url=env.get("GITHUB_GRAPHQL_URL") or DEFAULT_GRAPHQL_URL,
            eslint_command=env.get("ESLINT_COMMAND") or DEFAULT_ESLINT_COMMAND,
            ignore_file=env.get("ESLINT_IGNORE_FILE") or DEFAULT_IGNORE_FILE,
            eslint_timeout=_float_setting(env, "ESLINT_TIMEOUT", 600.0),
            missing_files=missing_files,
            http_timeout=_float_setting(env, "HTTP_TIMEOUT", 30.0),
            http_retries=_int_setting(env, "HTTP_RETRIES", 1),
            max_files=_int_setting(env, "MAX_FILES", 3000),
        )


# ---------------------------------------------------------------------------
# Retry decorator
# ---------------------------------------------------------------------------
def with_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retryable: tuple[type[Exception], ...] = (Exception,),
):
    """Decorator: retry a function with exponential back-off.

    ``max_retries`` counts attempts, so ``1`` means a single call.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exc: Exception | None = None
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except retryable as exc:
                    last_exc = exc
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Attempt %d/%d for %s failed: %s. Retrying in %.1fs...",
                            attempt + 1,
                            max_retries,
                            func.__name__,
                            exc,
                            delay,
                        )
                        time.sleep(delay)
            raise last_exc  # type: ignore[misc]

        return wrapper

    return decorator
