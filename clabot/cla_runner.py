"""
CLA enforcement for a single pull request event.

ClaRunner wires the collaborators together: it works out which commit
authors still owe a signature, records signatures confirmed by comment,
keeps the status comment current and reports whether the PR may proceed.
"""

import asyncio
import logging

import httpx

from clabot import actions
from clabot.allowlist import Allowlist
from clabot.author_map import AuthorMap
from clabot.blockchain_poster import BlockchainPoster
from clabot.cla_file import ClaFileRepository
from clabot.github_client import GitHubClient
from clabot.pull_authors import PullAuthors
from clabot.pull_check_runner import PullCheckRunner
from clabot.pull_comments import PullComments
from clabot.settings import InputSettings

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Waiting on additional CLA signatures."


class ClaRunner:
    """
    Orchestrates one CLA check.

    Every collaborator is built from the settings unless an instance is
    passed in, which is how tests substitute fakes.
    """

    def __init__(
        self,
        settings: InputSettings,
        cla_repo: ClaFileRepository | None = None,
        cla_allowlist: Allowlist | None = None,
        pull_comments: PullComments | None = None,
        pull_authors: PullAuthors | None = None,
        blockchain_poster: BlockchainPoster | None = None,
        pull_check_runner: PullCheckRunner | None = None,
        client: GitHubClient | None = None,
        remote_client: GitHubClient | None = None,
    ):
        self.settings = settings
        self.client = client or GitHubClient(settings.github_token, settings.api_url)
        self.remote_client = remote_client or GitHubClient(
            settings.personal_access_token, settings.api_url
        )
        self.cla_file_repository = cla_repo or ClaFileRepository(settings, self.remote_client)
        self.allowlist = cla_allowlist or Allowlist(settings.allowlist)
        self.pull_comments = pull_comments or PullComments(settings, self.client)
        self.pull_authors = pull_authors or PullAuthors(settings, self.client)
        self.blockchain_poster = blockchain_poster or BlockchainPoster(settings)
        self.pull_check_runner = pull_check_runner or PullCheckRunner(settings, self.client)
        self.author_map: AuthorMap | None = None

    async def execute(self) -> bool:
        """
        Run the check.

        Returns:
            True if the pull request may proceed, False while signatures are missing
        """
        if self.settings.payload_action == "closed":
            # Locking keeps the comment history, and with it the signatures, intact.
            await self.lock_pull_request()
            return True
        if self.settings.event_name == "issue_comment" and not self.settings.is_pull_request:
            logger.info("Skipping issue comment.")
            return True

        raw_authors, organization_members = await asyncio.gather(
            self.pull_authors.get_authors(),
            self.get_organization_members(),
        )
        required_authors = [
            a
            for a in raw_authors
            if not self.allowlist.is_user_allowlisted(a) and a.name not in organization_members
        ]

        if not required_authors:
            logger.info("No committers left after allowlisting. Approving pull request.")
            return True

        logger.debug(f"Found a total of {len(required_authors)} authors after allowlisting.")
        logger.debug(f"Authors: {', '.join(a.name for a in required_authors)}")

        cla_file = await self.cla_file_repository.get_cla_file()
        author_map = cla_file.map_signed_authors(required_authors)

        new_signatures = cla_file.add_signature(
            await self.pull_comments.get_new_signatures(author_map)
        )
        if new_signatures:
            new_names = ", ".join(s.name for s in new_signatures)
            logger.debug(f"Found new signatures: {new_names}.")
            author_map = cla_file.map_signed_authors(required_authors)
            await asyncio.gather(
                self.cla_file_repository.commit_cla_file(f"Add {new_names}."),
                self.blockchain_poster.post_to_blockchain(new_signatures),
                self.pull_comments.set_cla_comment(author_map),
                self.pull_check_runner.rerun_last_check(),
            )
        else:
            await self.pull_comments.set_cla_comment(author_map)

        self.author_map = author_map
        if not author_map.all_signed():
            actions.set_failed(FAILURE_MESSAGE)
            return False

        return True

    async def lock_pull_request(self) -> None:
        """Lock the PR conversation. Failures are logged, never raised."""
        number = self.settings.pull_request_number
        if not self.settings.lock_pull_request_after_merge:
            logger.info(f"Locking disabled, leaving pull request #{number} unlocked.")
            return

        logger.info(f"Locking pull request #{number} to safeguard the pull request's CLA signatures.")
        try:
            await self.client.request(
                "PUT",
                f"/repos/{self.settings.local_repository}/issues/{number}/lock",
                json={"lock_reason": "resolved"},
            )
            logger.info(f"Successfully locked pull request #{number}.")
        except httpx.HTTPError as e:
            logger.error(f"Failed to lock pull request #{number}: {e}")

    async def get_organization_members(self) -> list[str]:
        if not self.settings.allow_organization_members:
            return []
        members = await self.client.get_all(f"/orgs/{self.settings.local_repository_owner}/members")
        return [m["login"] for m in members]

    async def aclose(self) -> None:
        await self.client.aclose()
        if self.remote_client is not self.client:
            await self.remote_client.aclose()
        self.blockchain_poster.close()

