"""Durable storage for the OAuth client credential and the token set."""

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from ..config import settings
from ..models import Credential, TokenSet
from .errors import ConfigError, ConfigErrorKind

logger = logging.getLogger(__name__)

SETUP_COMMAND = "vibe-logger-auth setup"
RESET_COMMAND = "vibe-logger-auth reset --force"

# Owner read/write only
TOKEN_FILE_MODE = 0o600


def _describe_validation_error(error: ValidationError) -> str:
    """Condense a pydantic error into one line naming the offending fields."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


class CredentialStore:
    """Loads, validates and persists the credential file and the token file.

    All operations touch the filesystem only.
    """

    def __init__(self, credentials_path: Path | None = None, tokens_path: Path | None = None):
        """Initialize the store.

        Args:
            credentials_path: OAuth client file (defaults to settings)
            tokens_path: Token file (defaults to settings)
        """
        self.credentials_path = credentials_path or settings.get_credentials_path()
        self.tokens_path = tokens_path or settings.get_tokens_path()

    def credentials_exist(self) -> bool:
        return self.credentials_path.is_file()

    def token_exists(self) -> bool:
        return self.tokens_path.is_file()

    def load(self) -> Credential:
        """Load the OAuth client credential.

        Returns:
            Validated credential

        Raises:
            ConfigError: MISSING if the file is absent, MALFORMED if it cannot be
                parsed or lacks client id, client secret or a redirect URI
        """
        path = self.credentials_path
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigError(
                ConfigErrorKind.MISSING,
                f"Credentials file not found: {path}",
                path=path,
                remediation=(
                    "Create an OAuth client (Desktop app) in Google Cloud Console, download "
                    f"its JSON file to {path}, then run '{SETUP_COMMAND}'."
                ),
            )
        except OSError as e:
            raise ConfigError(
                ConfigErrorKind.MALFORMED,
                f"Credentials file could not be read: {e}",
                path=path,
                remediation=f"Check the permissions of {path}.",
            ) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(
                ConfigErrorKind.MALFORMED,
                f"Credentials file is not valid JSON: {e}",
                path=path,
                remediation=f"Download the OAuth client file again and replace {path}.",
            ) from e

        try:
            credential = Credential.from_file_data(data)
        except ValidationError as e:
            raise ConfigError(
                ConfigErrorKind.MALFORMED,
                f"Invalid credentials file format: {_describe_validation_error(e)}",
                path=path,
                remediation=(
                    "The file must contain client_id, client_secret and at least one "
                    f"redirect URI. Download it again and replace {path}."
                ),
            ) from e

        logger.debug(f"Loaded OAuth client credential from {path}")
        return credential

    def load_token(self) -> TokenSet | None:
        """Load the persisted token set.

        Returns:
            Token set, or None if the token file does not exist

        Raises:
            ConfigError: MALFORMED if the file exists but fails validation
        """
        path = self.tokens_path
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ConfigError(
                ConfigErrorKind.MALFORMED,
                f"Token file could not be read: {e}",
                path=path,
                remediation=f"Run '{RESET_COMMAND}' and then '{SETUP_COMMAND}'.",
            ) from e

        try:
            return TokenSet.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            detail = (
                _describe_validation_error(e) if isinstance(e, ValidationError) else str(e)
            )
            raise ConfigError(
                ConfigErrorKind.MALFORMED,
                f"Invalid token file format: {detail}",
                path=path,
                remediation=f"Run '{RESET_COMMAND}' and then '{SETUP_COMMAND}'.",
            ) from e

    def save_token(self, token_set: TokenSet) -> None:
        """Persist the token set, replacing the file atomically.

        Raises:
            ConfigError: UNWRITABLE if the file or its directory cannot be written
        """
        path = self.tokens_path
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, TOKEN_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(token_set.to_file_data(), f, indent=2)
            os.chmod(tmp_path, TOKEN_FILE_MODE)
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise ConfigError(
                ConfigErrorKind.UNWRITABLE,
                f"Failed to save tokens: {e}",
                path=path,
                remediation=f"Check that {path.parent} exists and is writable.",
            ) from e

        logger.debug(f"Saved tokens to {path}")

    def clear(self) -> bool:
        """Delete the token file.

        Returns:
            True if a file was removed, False if there was nothing to remove
        """
        try:
            self.tokens_path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Removed token file: {self.tokens_path}")
        return True

    def remove_credentials(self) -> bool:
        """Delete the credential file.

        Returns:
            True if a file was removed, False if there was nothing to remove
        """
        try:
            self.credentials_path.unlink()
        except FileNotFoundError:
            return False
        logger.info(f"Removed credentials file: {self.credentials_path}")
        return True
