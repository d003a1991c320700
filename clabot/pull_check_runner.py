"""Re-run the latest completed check so merge gating re-evaluates."""

import logging

from clabot.github_client import GitHubClient
from clabot.settings import InputSettings

logger = logging.getLogger(__name__)


class PullCheckRunner:
    def __init__(self, settings: InputSettings, client: GitHubClient | None = None):
        self.settings = settings
        self.client = client or GitHubClient(settings.github_token, settings.api_url)

    async def rerun_last_check(self) -> None:
        """
        Request a re-run of the most recently completed check on the head commit.

        Only runs named settings.check_name are considered when it is set.
        """
        repo = self.settings.local_repository
        sha = await self._head_sha()

        runs = [
            run
            async for run in self.client.paginate(
                f"/repos/{repo}/commits/{sha}/check-runs", item_key="check_runs"
            )
            if run.get("status") == "completed"
            and (not self.settings.check_name or run.get("name") == self.settings.check_name)
        ]
        if not runs:
            logger.info(f"No completed check run found for {sha[:7]}, nothing to re-run.")
            return

        # ISO 8601 timestamps in UTC sort lexically.
        last = max(runs, key=lambda run: run.get("completed_at") or "")
        await self.client.request("POST", f"/repos/{repo}/check-runs/{last['id']}/rerequest")
        logger.info(f"Requested re-run of check '{last.get('name')}' ({last['id']}).")

    async def _head_sha(self) -> str:
        if self.settings.head_sha:
            return self.settings.head_sha
        pull = await self.client.request(
            "GET",
            f"/repos/{self.settings.local_repository}/pulls/{self.settings.pull_request_number}",
        )
        return pull["head"]["sha"]
