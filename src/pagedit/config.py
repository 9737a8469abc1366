"""Site configuration and the stored access token."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from .errors import ConfigError

logger = logging.getLogger(__name__)

TOKEN_KEY = "pagedit_gh_token"

_DEFAULT_CREDENTIALS = Path.home() / ".config" / "pagedit" / "credentials.json"


@dataclass(frozen=True)
class SiteConfig:
    """Where the site's JSON data files live on the remote store.

    Attributes:
        repo: Repository as ``owner/name``.
        branch: Branch that edits are committed to.
        data_dir: Directory of the data files inside the repository.
        api_url: Base URL of the Contents API.
        timeout: Transport timeout in seconds, or None for httpx's default.
    """

    repo: str
    branch: str = "master"
    data_dir: str = "src/data"
    api_url: str = "https://api.github.com"
    timeout: float | None = None

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: str | None
    ) -> SiteConfig:
        """Build a config from ``PAGEDIT_*`` variables.

        Keyword overrides that are not None win over the environment.

        Raises:
            ConfigError: If no repository is configured.
        """
        env = os.environ if environ is None else environ
        values = {
            "repo": env.get("PAGEDIT_REPO", ""),
            "branch": env.get("PAGEDIT_BRANCH", cls.branch),
            "data_dir": env.get("PAGEDIT_DATA_DIR", cls.data_dir),
            "api_url": env.get("PAGEDIT_API_URL", cls.api_url),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        if not values["repo"] or "/" not in values["repo"]:
            raise ConfigError(
                "No repository configured. Pass --repo owner/name or set "
                "PAGEDIT_REPO environment variable."
            )
        config = cls(**values)
        return replace(
            config,
            api_url=config.api_url.rstrip("/"),
            data_dir=config.data_dir.strip("/"),
        )

    def contents_path(self, file_name: str) -> str:
        return f"/repos/{self.repo}/contents/{self.data_dir}/{file_name}.json"


class CredentialStore:
    """A single access token persisted in a small JSON file."""

    def __init__(self, path: str | Path | None = None) -> None:
        if path is None:
            path = os.environ.get("PAGEDIT_CREDENTIALS") or _DEFAULT_CREDENTIALS
        self.path = Path(path)

    def _load(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable credentials file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> str | None:
        token = self._load().get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set(self, token: str) -> None:
        token = token.strip()
        if not token:
            raise ValueError("token must not be empty")
        data = self._load()
        data[TOKEN_KEY] = token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        try:
            self.path.chmod(0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.path)
