"""Authors exempt from signing the CLA."""

import logging
import re
from collections.abc import Iterable

from clabot.author_map import Author

logger = logging.getLogger(__name__)


class Allowlist:
    """
    Matches authors against allowlist patterns.

    Patterns are compared case-insensitively against the whole author name or
    email. '*' matches any run of characters, so 'dependabot*' or '*[bot]'
    cover families of bot accounts.
    """

    def __init__(self, patterns: str | Iterable[str] = ""):
        if isinstance(patterns, str):
            patterns = patterns.split(",")
        self.patterns = [p.strip() for p in patterns if p and p.strip()]
        self._compiled = [(p, self._compile(p)) for p in self.patterns]

    @staticmethod
    def _compile(pattern: str) -> re.Pattern[str]:
        parts = (re.escape(part) for part in pattern.split("*"))
        return re.compile(".*".join(parts), re.IGNORECASE)

    def is_user_allowlisted(self, author: Author) -> bool:
        for pattern, regex in self._compiled:
            if regex.fullmatch(author.name):
                logger.debug(f"{author.name} matched allowlist pattern '{pattern}'")
                return True
            if author.email and regex.fullmatch(author.email):
                logger.debug(f"{author.email} matched allowlist pattern '{pattern}'")
                return True
        return False
