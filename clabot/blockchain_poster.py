"""
Best-effort notarization of new signatures on an external ledger.

A notarization failure is logged and swallowed: the signature is already
recorded in the CLA file, so it must not abort the run.
"""

import asyncio
import logging

import requests

from clabot.author_map import Author
from clabot.settings import InputSettings

logger = logging.getLogger(__name__)


class BlockchainPoster:
    TIMEOUT = 10

    def __init__(self, settings: InputSettings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return self.settings.blockchain_storage and bool(self.settings.blockchain_webhook_url)

    async def post_to_blockchain(self, signatures: list[Author]) -> None:
        if not signatures:
            return
        if not self.enabled:
            if self.settings.blockchain_storage:
                logger.warning("Blockchain storage is enabled but no webhook endpoint is configured.")
            return

        payload = {
            "contributors": [s.to_record() for s in signatures],
            "repository": self.settings.local_repository,
            "pullRequestNo": self.settings.pull_request_number,
        }

        # requests is blocking; keep the event loop free for the other writes.
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, lambda: self._post(payload))
            logger.info(f"Notarized {len(signatures)} signature(s).")
        except requests.RequestException as e:
            logger.warning(f"Failed to notarize signatures: {e}")

    def close(self) -> None:
        self.session.close()

    def _post(self, payload: dict) -> None:
        response = self.session.post(
            self.settings.blockchain_webhook_url,
            json=payload,
            timeout=self.TIMEOUT,
        )
        response.raise_for_status()
