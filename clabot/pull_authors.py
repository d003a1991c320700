"""Commit authors of a pull request."""

import logging

from clabot.author_map import Author
from clabot.github_client import GitHubClient
from clabot.settings import InputSettings

logger = logging.getLogger(__name__)


class PullAuthors:
    def __init__(self, settings: InputSettings, client: GitHubClient | None = None):
        self.settings = settings
        self.client = client or GitHubClient(settings.github_token, settings.api_url)

    async def get_authors(self) -> list[Author]:
        """
        List unique commit authors, in order of first appearance.

        Commits linked to a GitHub account yield the account login and id;
        unlinked commits fall back to the git author name.
        """
        endpoint = (
            f"/repos/{self.settings.local_repository}"
            f"/pulls/{self.settings.pull_request_number}/commits"
        )
        authors: dict[Author, None] = {}
        async for commit in self.client.paginate(endpoint):
            author = self._author_from_commit(commit)
            if author is not None:
                authors.setdefault(author, None)

        logger.debug(f"Found {len(authors)} unique commit authors.")
        return list(authors)

    @staticmethod
    def _author_from_commit(commit: dict) -> Author | None:
        git_author = (commit.get("commit") or {}).get("author") or {}
        email = git_author.get("email") or None
        user = commit.get("author")
        if user and user.get("login"):
            return Author(name=user["login"], id=user.get("id"), email=email)
        if git_author.get("name"):
            return Author(name=git_author["name"], email=email)
        return None
