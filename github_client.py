"""GitHub API client: PR change sets and check runs."""

import enum
import functools
import logging
from datetime import datetime, timezone

import requests
import requests.exceptions
from github import Auth, Github
from github.GithubException import GithubException

from config import CHECK_NAME, ActionConfig, with_retry
from errors import PreconditionError, TransportError
from models import ChangedFile, ChangeSet, Report

logger = logging.getLogger(__name__)

# GitHub rejects more than 50 annotations in a single request
MAX_ANNOTATIONS_PER_REQUEST = 50

# Page size for the files connection (GitHub's maximum)
FILES_PAGE_SIZE = 100

PR_FILES_QUERY = """
query($owner: String!, $name: String!, $prNumber: Int!, $pageSize: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $prNumber) {
      files(first: $pageSize, after: $cursor) {
        nodes {
          path
        }
        pageInfo {
          hasNextPage
          endCursor
        }
      }
      commits(last: 1) {
        nodes {
          commit {
            oid
          }
        }
      }
    }
  }
}
"""


def _error_message(e: GithubException) -> str:
    data = e.data if isinstance(e.data, dict) else {}
    return data.get("message", str(e))


# ---------------------------------------------------------------------------
# Cached GitHub client
# ---------------------------------------------------------------------------
@functools.lru_cache(maxsize=1)
def get_github_client(token: str, base_url: str, timeout: float) -> Github:
    """Create or return a cached PyGithub client."""
    # PyGithub takes whole seconds
    return Github(auth=Auth.Token(token), base_url=base_url, timeout=max(1, round(timeout)))


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------
def graphql_request(config: ActionConfig, query: str, variables: dict) -> dict:
    """
    POST a GraphQL query and return its ``data`` object.

    Args:
        config: Run configuration (token, endpoint, timeout, retries)
        query: GraphQL document
        variables: Query variables

    Returns:
        The ``data`` member of the response

    Raises:
        TransportError: On network failure, HTTP error, or GraphQL errors
    """
    headers = {
        "Authorization": f"bearer {config.token}",
        "Accept": "application/json",
        "User-Agent": "eslint-check",
    }

    @with_retry(
        max_retries=config.http_retries,
        base_delay=1.0,
        retryable=(
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
        ),
    )
    def _post() -> requests.Response:
        return requests.post(
            config.graphql_url,
            json={"query": query, "variables": variables},
            headers=headers,
            timeout=config.http_timeout,
        )

    try:
        response = _post()
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as e:
        raise TransportError(f"GraphQL request failed: {e}") from e
    except ValueError as e:
        raise TransportError(f"GraphQL response is not JSON: {e}") from e

    if not isinstance(payload, dict):
        raise TransportError("GraphQL response is not an object")
    if payload.get("errors"):
        messages = "; ".join(
            str(err.get("message", err)) if isinstance(err, dict) else str(err)
            for err in payload["errors"]
        )
        raise TransportError(f"GraphQL errors: {messages}")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise TransportError("GraphQL response has no data")
    return data


def _pull_request_node(data: dict, config: ActionConfig) -> dict:
    repository = data.get("repository")
    if not isinstance(repository, dict):
        raise TransportError(f"Repository {config.repository} not found")
    pull_request = repository.get("pullRequest")
    if not isinstance(pull_request, dict):
        raise TransportError(
            f"PR #{config.pr_number} not found in {config.repository}"
        )
    return pull_request


def fetch_change_set(config: ActionConfig) -> ChangeSet:
    """
    Fetch the files changed in the PR and the oid of its latest commit.

    Pages through the files connection until it is exhausted or
    ``config.max_files`` paths have been collected.

    Args:
        config: Run configuration (repository, PR number, credentials)

    Returns:
        ChangeSet with files in the order GitHub lists them

    Raises:
        TransportError: If the query fails or the response is malformed
    """
    files: list[ChangedFile] = []
    head_commit_id: str | None = None
    cursor: str | None = None

    while True:
        data = graphql_request(
            config,
            PR_FILES_QUERY,
            {
                "owner": config.owner,
                "name": config.repo_name,
                "prNumber": config.pr_number,
                "pageSize": FILES_PAGE_SIZE,
                "cursor": cursor,
            },
        )
        pull_request = _pull_request_node(data, config)

        try:
            if head_commit_id is None:
                head_commit_id = pull_request["commits"]["nodes"][0]["commit"]["oid"]
            connection = pull_request["files"]
            files.extend(ChangedFile(path=node["path"]) for node in connection["nodes"])
            page_info = connection.get("pageInfo") or {}
        except (KeyError, IndexError, TypeError) as e:
            raise TransportError(f"Malformed pull request data: {e!r}") from e

        if len(files) >= config.max_files:
            if page_info.get("hasNextPage") or len(files) > config.max_files:
                logger.warning("PR lists more than %d files; truncating", config.max_files)
            files = files[: config.max_files]
            break
        if not page_info.get("hasNextPage"):
            break
        cursor = page_info.get("endCursor")
        if not cursor:
            raise TransportError("Files connection has a next page but no cursor")

    if not isinstance(head_commit_id, str) or not head_commit_id:
        raise TransportError("Pull request head commit has no oid")

    return ChangeSet(head_commit_id=head_commit_id, files=tuple(files))


# ---------------------------------------------------------------------------
# Check runs
# ---------------------------------------------------------------------------
class CheckRunState(str, enum.Enum):
    """Lifecycle of the check run this process owns."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CheckRunReporter:
    """
    Opens a check run before linting and completes it afterwards.

    The only legal sequence is ``open()`` once, then ``close()`` once with
    the id ``open()`` returned. Anything else raises PreconditionError.
    """

    def __init__(
        self,
        config: ActionConfig,
        head_sha: str,
        name: str = CHECK_NAME,
        repository=None,
    ):
        self.config = config
        self.head_sha = head_sha
        self.name = name
        self.state = CheckRunState.NOT_STARTED
        self._repository = repository
        self._check_run = None

    def _repo(self):
        if self._repository is None:
            client = get_github_client(
                self.config.token, self.config.api_url, self.config.http_timeout
            )
            try:
                self._repository = client.get_repo(self.config.repository)
            except GithubException as e:
                raise TransportError(
                    f"Cannot access {self.config.repository}: {_error_message(e)}"
                ) from e
            except requests.exceptions.RequestException as e:
                raise TransportError(f"GitHub API unreachable: {e}") from e
        return self._repository

    def open(self) -> int:
        """
        Create the check run in ``in_progress``.

        Returns:
            Check run id

        Raises:
            PreconditionError: If the check run was already opened
            TransportError: If GitHub rejects or cannot receive the request
        """
        if self.state is not CheckRunState.NOT_STARTED:
            raise PreconditionError(f"Check run already {self.state.value}")

        repo = self._repo()
        try:
            self._check_run = repo.create_check_run(
                name=self.name,
                head_sha=self.head_sha,
                status=CheckRunState.IN_PROGRESS.value,
                started_at=datetime.now(timezone.utc),
            )
        except GithubException as e:
            raise TransportError(
                f"Failed to create check run: {_error_message(e)}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Failed to create check run: {e}") from e

        self.state = CheckRunState.IN_PROGRESS
        logger.info("Created check run %d on %s", self._check_run.id, self.head_sha)
        return self._check_run.id

    def close(self, check_run_id: int, report: Report | None = None) -> None:
        """
        Complete the check run.

        With a report, its conclusion and output are attached; annotations
        beyond the per-request limit are appended in follow-up updates.
        Without one, the run is concluded as ``failure`` with no output.

        Args:
            check_run_id: Id returned by ``open()``
            report: Lint report, or None when the pipeline failed

        Raises:
            PreconditionError: If the run is not open or the id is wrong
            TransportError: If GitHub rejects or cannot receive the update
        """
        if self.state is not CheckRunState.IN_PROGRESS:
            raise PreconditionError(
                f"Cannot close a check run that is {self.state.value}"
            )
        if check_run_id != self._check_run.id:
            raise PreconditionError(
                f"Check run {check_run_id} is not the one opened ({self._check_run.id})"
            )

        fields: dict = {
            "status": CheckRunState.COMPLETED.value,
            "completed_at": datetime.now(timezone.utc),
        }
        batches: list = []
        if report is None:
            fields["conclusion"] = "failure"
        else:
            annotations = report.annotations
            batches = [
                annotations[i : i + MAX_ANNOTATIONS_PER_REQUEST]
                for i in range(0, len(annotations), MAX_ANNOTATIONS_PER_REQUEST)
            ] or [[]]
            fields["conclusion"] = report.conclusion.value
            fields["output"] = report.to_output(batches[0])

        try:
            self._check_run.edit(**fields)
            self.state = CheckRunState.COMPLETED
            logger.info(
                "Completed check run %d: %s", check_run_id, fields["conclusion"]
            )

            for batch in batches[1:]:
                self._check_run.edit(output=report.to_output(batch))
                logger.debug("Appended %d annotation(s)", len(batch))
        except GithubException as e:
            raise TransportError(
                f"Failed to update check run {check_run_id}: {_error_message(e)}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"Failed to update check run {check_run_id}: {e}"
            ) from e
