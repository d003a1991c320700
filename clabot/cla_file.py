"""
CLA ledger file.

The ledger is a JSON document committed to a repository:

    {"signedContributors": [{"name": "octocat", "id": 583231, ...}]}

ClaFile is its in-memory form; ClaFileRepository fetches and commits it
through the repository contents API.
"""

import base64
import json
import logging
from collections.abc import Iterable

from clabot.author_map import Author, AuthorMap
from clabot.github_client import GitHubClient
from clabot.settings import InputSettings

logger = logging.getLogger(__name__)

SIGNED_CONTRIBUTORS_KEY = "signedContributors"


class ClaFileError(RuntimeError):
    """Raised when the ledger cannot be read or written."""


class ClaFile:
    """Append-only list of authors who signed the CLA."""

    def __init__(self, signed: Iterable[Author] = ()):
        self._signed: list[Author] = []
        self._known: set[Author] = set()
        self.add_signature(signed)

    @classmethod
    def from_json(cls, text: str) -> "ClaFile":
        if not text.strip():
            return cls()
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ClaFileError(f"CLA file is not valid JSON: {e}")

        records = data.get(SIGNED_CONTRIBUTORS_KEY) if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise ClaFileError(f"CLA file must contain a '{SIGNED_CONTRIBUTORS_KEY}' list")
        return cls(Author.from_record(r) for r in records if isinstance(r, dict))

    def to_json(self) -> str:
        data = {SIGNED_CONTRIBUTORS_KEY: [a.to_record() for a in self._signed]}
        return json.dumps(data, indent=2) + "\n"

    @property
    def signed_authors(self) -> list[Author]:
        return list(self._signed)

    def __len__(self) -> int:
        return len(self._signed)

    def is_signed(self, author: Author) -> bool:
        return author in self._known

    def map_signed_authors(self, authors: Iterable[Author]) -> AuthorMap:
        """Map each requested author to whether the ledger holds a signature."""
        return AuthorMap((a, self.is_signed(a)) for a in authors)

    def add_signature(self, authors: Iterable[Author]) -> list[Author]:
        """
        Append signatures for authors not already in the ledger.

        Returns:
            Only the authors that were newly added, in input order
        """
        added = []
        for author in authors:
            if author in self._known:
                continue
            self._signed.append(author)
            self._known.add(author)
            added.append(author)
        return added


class ClaFileRepository:
    """Reads and commits the ledger file in the (possibly remote) CLA repository."""

    def __init__(self, settings: InputSettings, client: GitHubClient | None = None):
        self.settings = settings
        self.client = client or GitHubClient(settings.personal_access_token, settings.api_url)
        self.cla_file: ClaFile | None = None
        self.sha: str | None = None

    @property
    def _endpoint(self) -> str:
        return f"/repos/{self.settings.remote_repository}/contents/{self.settings.cla_file_path}"

    async def get_cla_file(self) -> ClaFile:
        """Fetch the ledger; a missing file is an empty ledger."""
        response = await self.client.request_optional(
            "GET", self._endpoint, params={"ref": self.settings.cla_file_branch}
        )
        if response is None:
            logger.info(
                f"No CLA file at {self.settings.remote_repository}/{self.settings.cla_file_path}, "
                "starting an empty one."
            )
            self.sha = None
            self.cla_file = ClaFile()
            return self.cla_file

        content = base64.b64decode(response.get("content", "")).decode("utf-8")
        self.sha = response.get("sha")
        self.cla_file = ClaFile.from_json(content)
        logger.debug(f"Loaded CLA file with {len(self.cla_file)} signatures.")
        return self.cla_file

    async def commit_cla_file(self, message: str) -> None:
        """Write the in-memory ledger back to the repository."""
        if self.cla_file is None:
            raise ClaFileError("get_cla_file() must be called before commit_cla_file()")

        body = {
            "message": message,
            "content": base64.b64encode(self.cla_file.to_json().encode("utf-8")).decode("ascii"),
            "branch": self.settings.cla_file_branch,
        }
        if self.sha:
            body["sha"] = self.sha

        response = await self.client.request("PUT", self._endpoint, json=body)
        self.sha = ((response or {}).get("content") or {}).get("sha", self.sha)
        logger.info(f"Committed CLA file: {message}")
