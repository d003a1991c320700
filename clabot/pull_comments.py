"""
Pull request comments: signature confirmations and the CLA status comment.
"""

import logging
import re

from clabot.author_map import Author, AuthorMap
from clabot.github_client import GitHubClient
from clabot.settings import InputSettings

logger = logging.getLogger(__name__)

# Hidden marker that identifies the bot's status comment.
COMMENT_MARKER = "<!-- cla-signature-bot -->"

_WHITESPACE = re.compile(r"\s+")


def normalize_comment(body: str) -> str:
    return _WHITESPACE.sub(" ", body or "").strip().casefold()


def render_cla_comment(author_map: AuthorMap, settings: InputSettings) -> str:
    """Build the markdown body of the status comment."""
    lines = [COMMENT_MARKER]

    if author_map.all_signed():
        lines.append("All contributors have signed the CLA ✍️ ✅")
        return "\n".join(lines) + "\n"

    document = (
        f"[Contributor License Agreement]({settings.cla_document_url})"
        if settings.cla_document_url
        else "Contributor License Agreement"
    )
    lines.extend(
        [
            "Thank you for your submission, we really appreciate it. Like many open-source "
            f"projects, we ask that you sign our {document} before we can accept your "
            "contribution. You can sign the CLA by posting a pull request comment in the "
            "format below.",
            "",
            "---",
            f"{settings.signing_comment}",
            "---",
            "",
        ]
    )

    signed = author_map.signed_authors()
    lines.append(f"**{len(signed)}** out of **{len(author_map)}** committers have signed the CLA.")
    lines.append("")

    for author, is_signed in author_map:
        if not author.linked:
            continue
        icon = ":white_check_mark:" if is_signed else ":x:"
        lines.append(f"{icon} @{author.name}")

    unlinked = author_map.unlinked_authors()
    if unlinked:
        names = ", ".join(a.name for a in unlinked)
        lines.extend(
            [
                "",
                f"**{names}** seem(s) not to be a GitHub user. You need a GitHub account to "
                "sign the CLA. If you already have one, please "
                "[add the email address used for this commit to your account]"
                "(https://help.github.com/articles/why-are-my-commits-linked-to-the-wrong-user/"
                "#commits-are-not-linked-to-any-user).",
            ]
        )

    lines.extend(
        [
            "",
            f"<sub>You can retrigger this bot by commenting **{settings.recheck_comment}** "
            "in this pull request.</sub>",
        ]
    )
    return "\n".join(lines) + "\n"


class PullComments:
    """Reads signature confirmations and maintains the single status comment."""

    def __init__(self, settings: InputSettings, client: GitHubClient | None = None):
        self.settings = settings
        self.client = client or GitHubClient(settings.github_token, settings.api_url)

    @property
    def _comments_endpoint(self) -> str:
        return (
            f"/repos/{self.settings.local_repository}"
            f"/issues/{self.settings.pull_request_number}/comments"
        )

    async def get_new_signatures(self, author_map: AuthorMap) -> list[Author]:
        """
        Find unsigned authors who posted the signing comment.

        Each author is returned at most once, carrying the metadata of their
        first confirming comment. Signed or unlinked authors never count.
        """
        candidates = {a.id: a for a in author_map.unsigned_authors() if a.linked}
        if not candidates:
            return []

        keyword = normalize_comment(self.settings.signing_comment)
        signatures: dict[int, Author] = {}
        async for comment in self.client.paginate(self._comments_endpoint):
            user_id = (comment.get("user") or {}).get("id")
            if user_id not in candidates or user_id in signatures:
                continue
            if normalize_comment(comment.get("body", "")) != keyword:
                continue

            author = candidates[user_id]
            signatures[user_id] = Author(
                name=author.name,
                id=author.id,
                email=author.email,
                comment_id=comment.get("id"),
                created_at=comment.get("created_at"),
                repo_id=self.settings.repository_id,
                pull_request_no=self.settings.pull_request_number,
            )
            logger.info(f"{author.name} signed the CLA in comment {comment.get('id')}.")

        return list(signatures.values())

    async def set_cla_comment(self, author_map: AuthorMap) -> None:
        """Create the status comment, or edit the existing one in place."""
        body = render_cla_comment(author_map, self.settings)
        existing = await self._find_cla_comment()

        if existing is None:
            await self.client.request("POST", self._comments_endpoint, json={"body": body})
            logger.info("Posted CLA status comment.")
            return

        if existing.get("body") == body:
            logger.debug("CLA status comment is already up to date.")
            return

        await self.client.request(
            "PATCH",
            f"/repos/{self.settings.local_repository}/issues/comments/{existing['id']}",
            json={"body": body},
        )
        logger.info(f"Updated CLA status comment {existing['id']}.")

    async def _find_cla_comment(self) -> dict | None:
        async for comment in self.client.paginate(self._comments_endpoint):
            user = comment.get("user") or {}
            # Only the bot's own comment can be edited; users may quote the marker.
            if user.get("type") == "Bot" and COMMENT_MARKER in (comment.get("body") or ""):
                return comment
        return None
