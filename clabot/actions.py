"""GitHub Actions workflow commands."""

import logging
import os
import sys

logger = logging.getLogger(__name__)


def set_failed(message: str) -> None:
    """Emit an error annotation that marks the step as failed."""
    logger.error(message)
    print(f"::error::{message}", file=sys.stdout, flush=True)


def set_output(name: str, value: str) -> None:
    """Set a step output, falling back to stdout outside of Actions."""
    github_output = os.environ.get("GITHUB_OUTPUT")
    if github_output:
        with open(github_output, "a", encoding="utf-8") as f:
            f.write(f"{name}={value}\n")
    else:
        print(f"{name}={value}")
