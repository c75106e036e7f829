"""Thread source: raw review data for one pull request, one page at a time.

The adapter returns GraphQL nodes untouched. Turning them into Thread values
is the normalizer's job (prinbox_core.threads).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from github import Auth, Github, GithubException

logger = logging.getLogger(__name__)

_THREADS_PAGE_SIZE = 100
_THREAD_COMMENTS_LIMIT = 50
_CONVERSATION_PAGE_SIZE = 100

_PR_META_QUERY = """
query($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      number
      title
      url
      bodyText
    }
  }
}
"""

_REVIEW_THREADS_QUERY = f"""
query($owner: String!, $name: String!, $number: Int!, $after: String) {{
  repository(owner: $owner, name: $name) {{
    pullRequest(number: $number) {{
      reviewThreads(first: {_THREADS_PAGE_SIZE}, after: $after) {{
        nodes {{
          id
          isResolved
          path
          line
          originalLine
          comments(first: {_THREAD_COMMENTS_LIMIT}) {{
            nodes {{
              id
              databaseId
              body
              author {{ login }}
              createdAt
              url
              diffHunk
            }}
          }}
        }}
        pageInfo {{ hasNextPage endCursor }}
      }}
    }}
  }}
}}
"""

_CONVERSATION_COMMENTS_QUERY = f"""
query($owner: String!, $name: String!, $number: Int!, $after: String) {{
  repository(owner: $owner, name: $name) {{
    pullRequest(number: $number) {{
      comments(first: {_CONVERSATION_PAGE_SIZE}, after: $after) {{
        nodes {{
          id
          databaseId
          body
          author {{ login }}
          createdAt
          url
        }}
        pageInfo {{ hasNextPage endCursor }}
      }}
    }}
  }}
}}
"""


class ThreadSourceError(Exception):
    """Review data could not be fetched. Fatal to the whole inbox build."""


@dataclass
class Page:
    """One page of raw nodes plus the cursor needed to request the next one."""

    nodes: list[dict] = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: str | None = None


class ThreadSource(ABC):
    """Paged access to the discussion data of a single pull request.

    A cursor of None requests the first page. Implementations raise
    ThreadSourceError on any transport or parse failure and never retry.
    """

    @property
    @abstractmethod
    def repo(self) -> str:
        """Repository in owner/name form."""

    @abstractmethod
    def fetch_pr_meta(self) -> dict:
        """Return the raw pull request node (number, title, url, bodyText)."""

    @abstractmethod
    def fetch_review_threads_page(self, cursor: str | None) -> Page:
        """Return one page of line-anchored review thread nodes."""

    @abstractmethod
    def fetch_conversation_comments_page(self, cursor: str | None) -> Page:
        """Return one page of general PR conversation comment nodes."""


def parse_repository(repository: str) -> tuple[str, str]:
    parts = repository.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"invalid repository format: {repository}")
    return parts[0], parts[1]


def get_client(token: str) -> Github:
    # No retries: a failed page fails the whole fetch.
    return Github(auth=Auth.Token(token), retry=None)


class GithubThreadSource(ThreadSource):
    """ThreadSource backed by the GitHub GraphQL API through PyGithub."""

    def __init__(self, repo: str, pr_number: int, token: str, client: Github | None = None):
        self._owner, self._name = parse_repository(repo)
        self._repo = repo
        self._pr_number = pr_number
        self._gh = client if client is not None else get_client(token)

    @property
    def repo(self) -> str:
        return self._repo

    def fetch_pr_meta(self) -> dict:
        data = self._query(_PR_META_QUERY, {}, "PR metadata")
        pr = _pull_request(data)
        if not pr:
            raise ThreadSourceError(f"PR #{self._pr_number} not found in {self._repo}.")
        return pr

    def fetch_review_threads_page(self, cursor: str | None) -> Page:
        data = self._query(_REVIEW_THREADS_QUERY, {"after": cursor}, "review threads")
        return _page((_pull_request(data) or {}).get("reviewThreads"))

    def fetch_conversation_comments_page(self, cursor: str | None) -> Page:
        data = self._query(_CONVERSATION_COMMENTS_QUERY, {"after": cursor}, "conversation comments")
        return _page((_pull_request(data) or {}).get("comments"))

    def _query(self, query: str, extra: dict, what: str) -> dict:
        variables = {"owner": self._owner, "name": self._name, "number": self._pr_number, **extra}
        logger.debug("GraphQL fetch of %s for %s#%d (after=%s)", what, self._repo, self._pr_number, extra.get("after"))
        try:
            _, data = self._gh.requester.graphql_query(query, variables)
        except GithubException as e:
            raise ThreadSourceError(f"failed to fetch {what}: {e}") from e

        errors = data.get("errors")
        if errors:
            message = errors[0].get("message", errors) if isinstance(errors[0], dict) else errors
            raise ThreadSourceError(f"failed to fetch {what}: {message}")
        return data


def _pull_request(data: dict) -> dict | None:
    repository = (data.get("data") or {}).get("repository") or {}
    return repository.get("pullRequest")


def _page(connection: dict | None) -> Page:
    if connection is None:
        raise ThreadSourceError("unexpected response shape: connection missing")
    page_info = connection.get("pageInfo") or {}
    return Page(
        nodes=list(connection.get("nodes") or []),
        has_next_page=bool(page_info.get("hasNextPage")),
        end_cursor=page_info.get("endCursor"),
    )
