"""Credential resolution and persistence for refwire."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import click
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from refwire.errors import AuthError, InputError, Suggestion

logger = logging.getLogger(__name__)

ENV_VAR_URL = "LISTSERV_URL"
ENV_VAR_API_KEY = "LISTSERV_API_KEY"
ENV_VAR_STORE_URL = "LISTSERV_STORE_URL"
DEFAULT_STORE_URL = "stor.refwire.online"

CONFIG_DIR_NAME = ".refwiredb"
CONFIG_FILE_NAME = "config.json"

_ENV_KEYS = {
    "server_url": ENV_VAR_URL,
    "api_key": ENV_VAR_API_KEY,
    "store_url": ENV_VAR_STORE_URL,
}


class Credentials(BaseModel):
    """Connection settings for the admin API and the dataset store."""

    model_config = ConfigDict(populate_by_name=True)

    server_url: str | None = Field(default=None, alias="serverUrl")
    api_key: str | None = Field(default=None, alias="apiKey")
    store_url: str | None = Field(default=None, alias="storeUrl")

    @property
    def is_complete(self) -> bool:
        return bool(self.server_url and self.api_key and self.store_url)


def config_file_path() -> Path:
    """Return the saved-credentials file, under the current home directory."""
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def normalize_url(url: str | None) -> str | None:
    if not url:
        return url
    return url.strip().rstrip("/")


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


class RefwireConfig:
    """Resolves credentials through the precedence chain.

    Later sources win: defaults, then the saved file, then environment
    variables.
    """

    def __init__(self, env: Mapping[str, str] | None = None, path: Path | None = None) -> None:
        self.env = os.environ if env is None else env
        self.path = path or config_file_path()
        self._config: dict[str, Any] = {}
        self._sources: dict[str, str] = {}
        self._load_defaults()
        self._load_saved_config()
        self._load_env_vars()

    def _load_defaults(self) -> None:
        self._config = {"server_url": None, "api_key": None, "store_url": DEFAULT_STORE_URL}
        self._sources = {"store_url": "default"}

    def _load_saved_config(self) -> None:
        """Load from ~/.refwiredb/config.json"""
        saved = load_saved_credentials(self.path)
        for key, value in saved.model_dump().items():
            if value:
                self._config[key] = value
                self._sources[key] = "file"

    def _load_env_vars(self) -> None:
        """Load from LISTSERV_* environment variables."""
        for key, env_key in _ENV_KEYS.items():
            value = self.env.get(env_key)
            if value:
                self._config[key] = value
                self._sources[key] = "env"

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def source(self, key: str) -> str | None:
        return self._sources.get(key)

    @property
    def env_overrides(self) -> list[str]:
        return [env_key for key, env_key in _ENV_KEYS.items() if self._sources.get(key) == "env"]

    def credentials(self) -> Credentials:
        return Credentials(
            server_url=normalize_url(self.get("server_url")),
            api_key=self.get("api_key"),
            store_url=normalize_url(self.get("store_url")),
        )


def load_saved_credentials(path: Path | None = None) -> Credentials:
    path = path or config_file_path()
    if not path.exists():
        return Credentials()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Error loading saved configuration from %s: %s", path, e)
        return Credentials()
    if not isinstance(data, dict):
        logger.warning("Ignoring saved configuration in %s: not a JSON object", path)
        return Credentials()
    try:
        return Credentials.model_validate(data)
    except PydanticValidationError as e:
        logger.warning("Ignoring saved configuration in %s: %s", path, e)
        return Credentials()


def save_credentials(credentials: Credentials, path: Path | None = None) -> Path:
    """Merge ``credentials`` into the saved file and return its path."""
    path = path or config_file_path()
    current = load_saved_credentials(path)
    update = {k: v for k, v in credentials.model_dump().items() if v}
    merged = current.model_copy(update=update)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(merged.model_dump(by_alias=True), indent=2) + "\n", encoding="utf-8")
    logger.debug("Saved credentials to %s", path)
    return path


def clear_credentials(path: Path | None = None) -> bool:
    """Delete the saved file. Returns False when there was nothing to delete."""
    path = path or config_file_path()
    if not path.exists():
        return False
    path.unlink()
    return True


def _validate_url_input(value: str) -> str:
    if not is_valid_url(value):
        raise click.BadParameter("Please enter a valid URL.")
    return value


def prompt_for_missing(config: RefwireConfig) -> Credentials:
    """Prompt for a missing server URL or API key and save the answers."""
    credentials = config.credentials()
    answers: dict[str, str] = {}

    if not credentials.server_url:
        answers["server_url"] = click.prompt(
            f"Enter the RefWire server URL (or set {ENV_VAR_URL} env var)",
            value_proc=_validate_url_input,
            err=True,
        )
    if not credentials.api_key:
        answers["api_key"] = click.prompt(
            f"Enter your API Key (or set {ENV_VAR_API_KEY} env var)",
            hide_input=True,
            err=True,
        )

    if not answers:
        return credentials

    saved = Credentials(
        server_url=normalize_url(answers.get("server_url")),
        api_key=answers.get("api_key"),
    )
    save_credentials(saved, config.path)
    click.echo("Credentials saved for future sessions.", err=True)
    return credentials.model_copy(update={k: v for k, v in saved.model_dump().items() if v})


def require_credentials(config: RefwireConfig | None = None, *, interactive: bool = True) -> Credentials:
    """Return complete credentials, prompting for missing values when allowed."""
    config = config or RefwireConfig()
    credentials = config.credentials()
    if not credentials.is_complete and interactive:
        try:
            credentials = prompt_for_missing(config)
        except click.Abort as e:
            raise _missing_credentials_error() from e
    if not credentials.is_complete:
        raise _missing_credentials_error()
    if not is_valid_url(credentials.server_url or ""):
        raise InputError(
            message=f"Invalid server URL: {credentials.server_url}",
            code="E1301",
            details={"server_url": credentials.server_url},
        )
    return credentials


def _missing_credentials_error() -> AuthError:
    return AuthError(
        message="Server URL and API Key are not configured.",
        code="E2001",
        suggestion=Suggestion(
            action="configure credentials",
            fix=f"Run 'refwire auth login' or set {ENV_VAR_URL}/{ENV_VAR_API_KEY} environment variables.",
            example="refwire auth login --server-url https://refwire.example.com",
        ),
    )
