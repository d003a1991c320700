"""
Input settings for the CLA signature bot.

Settings are read from the GitHub Actions environment: action inputs arrive as
INPUT_<NAME> variables and the triggering event payload is a JSON file named
by GITHUB_EVENT_PATH.
"""

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_CLA_FILE_PATH = "signatures/cla.json"
DEFAULT_CLA_FILE_BRANCH = "master"
DEFAULT_SIGNING_COMMENT = "I have read the CLA Document and I hereby sign the CLA"
DEFAULT_RECHECK_COMMENT = "recheck"

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}


class SettingsError(ValueError):
    """Raised when required configuration is missing or malformed."""


@dataclass
class InputSettings:
    """Everything a single bot run needs to know about its environment."""

    github_token: str
    local_repository_owner: str
    local_repository_name: str
    event_name: str
    pull_request_number: int | None = None
    payload_action: str | None = None
    is_pull_request: bool = False
    head_sha: str | None = None
    repository_id: int | None = None
    personal_access_token: str | None = None
    remote_repository_owner: str | None = None
    remote_repository_name: str | None = None
    cla_file_path: str = DEFAULT_CLA_FILE_PATH
    cla_file_branch: str = DEFAULT_CLA_FILE_BRANCH
    cla_document_url: str = ""
    allowlist: str = ""
    allow_organization_members: bool = False
    signing_comment: str = DEFAULT_SIGNING_COMMENT
    recheck_comment: str = DEFAULT_RECHECK_COMMENT
    lock_pull_request_after_merge: bool = True
    blockchain_storage: bool = False
    blockchain_webhook_url: str = ""
    check_name: str = ""
    api_url: str = DEFAULT_API_URL
    payload: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        if not self.remote_repository_owner:
            self.remote_repository_owner = self.local_repository_owner
        if not self.remote_repository_name:
            self.remote_repository_name = self.local_repository_name
        if not self.personal_access_token:
            self.personal_access_token = self.github_token

    @property
    def local_repository(self) -> str:
        return f"{self.local_repository_owner}/{self.local_repository_name}"

    @property
    def remote_repository(self) -> str:
        return f"{self.remote_repository_owner}/{self.remote_repository_name}"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        event_path: str | Path | None = None,
    ) -> "InputSettings":
        """
        Build settings from environment variables and the event payload.

        Args:
            environ: Environment mapping (defaults to os.environ)
            event_path: Event payload file, overrides GITHUB_EVENT_PATH

        Returns:
            Populated InputSettings

        Raises:
            SettingsError: If a required value is missing or invalid
        """
        env = os.environ if environ is None else environ

        token = _input(env, "github_token") or env.get("GITHUB_TOKEN", "")
        if not token:
            raise SettingsError("A GitHub token is required (INPUT_GITHUB_TOKEN or GITHUB_TOKEN)")

        repository = env.get("GITHUB_REPOSITORY", "")
        owner, sep, name = repository.partition("/")
        if not sep or not owner or not name:
            raise SettingsError(f"GITHUB_REPOSITORY must look like 'owner/name', got {repository!r}")

        event_name = env.get("GITHUB_EVENT_NAME", "")
        if not event_name:
            raise SettingsError("GITHUB_EVENT_NAME is not set")

        payload = load_event_payload(event_path or env.get("GITHUB_EVENT_PATH"))
        pull_request = payload.get("pull_request") or {}
        issue = payload.get("issue") or {}

        if pull_request:
            number = pull_request.get("number")
            is_pull_request = True
        else:
            number = issue.get("number") or payload.get("number")
            is_pull_request = "pull_request" in issue

        return cls(
            github_token=token,
            local_repository_owner=owner,
            local_repository_name=name,
            event_name=event_name,
            pull_request_number=int(number) if number is not None else None,
            payload_action=payload.get("action"),
            is_pull_request=is_pull_request,
            head_sha=(pull_request.get("head") or {}).get("sha"),
            repository_id=(payload.get("repository") or {}).get("id"),
            personal_access_token=_input(env, "personal_access_token") or None,
            remote_repository_owner=_input(env, "remote_repository_owner") or None,
            remote_repository_name=_input(env, "remote_repository_name") or None,
            cla_file_path=_input(env, "path_to_signatures") or DEFAULT_CLA_FILE_PATH,
            cla_file_branch=_input(env, "branch") or DEFAULT_CLA_FILE_BRANCH,
            cla_document_url=_input(env, "path_to_cla_document"),
            allowlist=_input(env, "allowlist"),
            allow_organization_members=_as_bool(env, "allow_organization_members", False),
            signing_comment=_input(env, "signing_comment") or DEFAULT_SIGNING_COMMENT,
            recheck_comment=_input(env, "recheck_comment") or DEFAULT_RECHECK_COMMENT,
            lock_pull_request_after_merge=_as_bool(env, "lock_pullrequest_aftermerge", True),
            blockchain_storage=_as_bool(env, "blockchain_storage_flag", False),
            blockchain_webhook_url=_input(env, "blockchain_webhook_endpoint"),
            check_name=_input(env, "check_name"),
            api_url=env.get("GITHUB_API_URL") or DEFAULT_API_URL,
            payload=payload,
        )


def load_event_payload(path: str | Path | None) -> dict[str, Any]:
    """Read the webhook payload that triggered the workflow."""
    if not path:
        return {}
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise SettingsError(f"Event payload not found: {path}")
    except json.JSONDecodeError as e:
        raise SettingsError(f"Event payload is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise SettingsError("Event payload must be a JSON object")
    return data


def _input(env: Mapping[str, str], name: str) -> str:
    # The runner upper-cases input names and keeps everything else as-is.
    return env.get(f"INPUT_{name.upper()}", "").strip()


def _as_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(f"INPUT_{name.upper()}")
    if raw is None:
        return default
    value = raw.strip().lower()
    if not value:
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise SettingsError(f"Input '{name}' must be a boolean, got {raw!r}")
