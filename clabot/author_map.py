"""Commit authors and their CLA signing status."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, eq=False)
class Author:
    """
    A pull request commit author.

    Identity is the GitHub user id when the commit is linked to an account,
    otherwise the case-folded name. Signature metadata never takes part in
    equality.
    """

    name: str
    id: int | None = None
    email: str | None = None
    comment_id: int | None = field(default=None, repr=False)
    created_at: str | None = field(default=None, repr=False)
    repo_id: int | None = field(default=None, repr=False)
    pull_request_no: int | None = field(default=None, repr=False)

    @property
    def linked(self) -> bool:
        """Whether the commit is attached to a GitHub account."""
        return self.id is not None

    @property
    def key(self) -> tuple[str, Any]:
        if self.id is not None:
            return ("id", self.id)
        return ("name", self.name.casefold())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Author):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def to_record(self) -> dict[str, Any]:
        """Serialize to a signed-contributor ledger entry."""
        return {
            "name": self.name,
            "id": self.id,
            "comment_id": self.comment_id,
            "created_at": self.created_at,
            "repoId": self.repo_id,
            "pullRequestNo": self.pull_request_no,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Author":
        return cls(
            name=str(record.get("name", "")),
            id=_as_int(record.get("id")),
            comment_id=record.get("comment_id"),
            created_at=record.get("created_at"),
            repo_id=record.get("repoId"),
            pull_request_no=record.get("pullRequestNo"),
        )


def _as_int(value: Any) -> int | None:
    # Older ledgers may hold ids as strings.
    if value is None or value == "":
        return None
    return int(value)


class AuthorMap:
    """Signed/unsigned status for exactly the authors it was built with."""

    def __init__(self, statuses: Iterable[tuple[Author, bool]] = ()):
        self._statuses: dict[Author, bool] = {}
        for author, signed in statuses:
            self._statuses[author] = bool(signed)

    def __iter__(self) -> Iterator[tuple[Author, bool]]:
        return iter(self._statuses.items())

    def __len__(self) -> int:
        return len(self._statuses)

    def __repr__(self) -> str:
        return f"AuthorMap(signed={len(self.signed_authors())}, total={len(self)})"

    def all_signed(self) -> bool:
        return all(self._statuses.values())

    def signed_authors(self) -> list[Author]:
        return [a for a, signed in self._statuses.items() if signed]

    def unsigned_authors(self) -> list[Author]:
        return [a for a, signed in self._statuses.items() if not signed]

    def unlinked_authors(self) -> list[Author]:
        """Unsigned authors that cannot sign because no GitHub account is attached."""
        return [a for a in self.unsigned_authors() if not a.linked]
