"""Team Foundation Server utilities.

This module provides shared helpers for both TFS providers: credential
construction, bearer token resolution, URL building, server path
normalization and revision fingerprint encoding.
"""

import json
import logging
import platform
import struct
import subprocess
import uuid
from datetime import datetime, timedelta
from typing import Iterable, Optional

from msrest.authentication import Authentication, BasicAuthentication

from providers.exceptions import ConnectionUnavailable

from .types import TfsConnectionConfig

logger = logging.getLogger(__name__)

ROOT_PATH = "$/"
DIRECTORY_SEPARATOR = "/"
WORK_ITEM_URL_FORMAT = "/web/UI/Pages/WorkItems/WorkItemEdit.aspx?id={0}"

BEARER_TOKEN_CACHE_DURATION_SECONDS = 300  # 5 minutes
BEARER_TOKEN_COMMAND_TIMEOUT_SECONDS = 30
WORKSPACE_NAME_PREFIX = "BuildMaster"
MAX_WORKSPACE_NAME_LENGTH = 64


class CommandTokenAuthentication(Authentication):
    """Bearer token authentication whose token comes from an external command.

    The command prints JSON carrying an ``accessToken`` (for example
    ``az account get-access-token``). It runs when the first request is
    signed, not when the credentials are built, and its token is cached for
    a short period.
    """

    def __init__(
        self,
        command: str,
        cache_seconds: int = BEARER_TOKEN_CACHE_DURATION_SECONDS,
        timeout: float = BEARER_TOKEN_COMMAND_TIMEOUT_SECONDS,
    ):
        super().__init__()
        self.command = command
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self._token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None

    def _run_command(self) -> str:
        logger.debug(f"Executing bearer token command: {self.command}")
        try:
            result = subprocess.run(
                self.command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ConnectionUnavailable(
                f"Bearer token command timed out after {self.timeout} seconds", cause=e
            ) from e
        except OSError as e:
            raise ConnectionUnavailable(f"Could not run bearer token command: {e}", cause=e) from e

        if result.returncode != 0:
            logger.error(f"Bearer token command failed with return code {result.returncode}: {result.stderr}")
            raise ConnectionUnavailable(
                f"Bearer token command failed with return code {result.returncode}",
                details={"stderr": result.stderr},
            )
        return result.stdout

    def get_token(self) -> str:
        """Return the cached token, or run the command for a fresh one.

        Raises:
            ConnectionUnavailable: if the command fails or prints no accessToken
        """
        if self._token and self._token_expiry and datetime.now() < self._token_expiry:
            logger.debug("Using cached bearer token")
            return self._token

        output = self._run_command()
        try:
            token = json.loads(output).get("accessToken")
        except (json.JSONDecodeError, AttributeError) as e:
            raise ConnectionUnavailable("Bearer token command did not print a JSON object", cause=e) from e

        if not token:
            raise ConnectionUnavailable("Bearer token command did not produce an access token")

        self._token = token
        self._token_expiry = datetime.now() + timedelta(seconds=self.cache_seconds)
        return token

    def signed_session(self, session=None):
        session = super().signed_session(session)
        session.headers["Authorization"] = f"Bearer {self.get_token()}"
        return session


def build_credentials(config: TfsConnectionConfig) -> Optional[Authentication]:
    """Build msrest credentials for a connection config.

    Explicit credentials are sent as domain-qualified basic authentication.
    System credentials use, in order, a personal access token, a bearer
    token command, or no credentials at all.
    """
    if not config.use_system_credentials:
        return BasicAuthentication(config.qualified_username or "", config.password or "")

    if config.personal_access_token:
        return BasicAuthentication("", config.personal_access_token)

    if config.bearer_token_command:
        return CommandTokenAuthentication(config.bearer_token_command)

    return None


def combine_paths(base_url: str, relative_url: str) -> str:
    """Join two URL parts with exactly one '/' between them."""
    return base_url.rstrip("/") + "/" + relative_url.lstrip("/")


def build_collection_url(base_url: str, collection_name: str) -> str:
    """Append the collection name to the server base URL.

    The separator follows the base URL: '\\' if it contains one, otherwise '/'.
    Separators around the collection name are dropped.
    """
    separator = "\\" if "\\" in base_url else "/"
    return base_url.rstrip(separator) + separator + collection_name.strip("/\\")


def build_issue_url(collection_url: str, issue_id: str) -> str:
    return combine_paths(collection_url, WORK_ITEM_URL_FORMAT.format(issue_id))


def build_source_path(source_path: Optional[str]) -> str:
    """Normalize a host source path to a server path.

    Empty paths map to the root "$/"; otherwise leading separators are stripped.
    """
    if not source_path:
        return ROOT_PATH

    return source_path.lstrip(DIRECTORY_SEPARATOR)


def get_item_name(server_path: str) -> str:
    """Return the final segment of a server path."""
    return server_path[server_path.rfind(DIRECTORY_SEPARATOR) + 1:]


def encode_revision(changeset_ids: Iterable[int]) -> bytes:
    """Encode the highest changeset id as a 4-byte little-endian integer.

    Returns an empty byte string when there are no changesets.
    """
    ids = [changeset_id for changeset_id in changeset_ids if changeset_id is not None]
    if not ids:
        return b""

    return struct.pack("<i", max(ids))


def generate_workspace_name(machine_name: Optional[str] = None) -> str:
    """Generate a workspace name unique to this machine and this operation."""
    machine = machine_name if machine_name is not None else platform.node()
    suffix = "-" + uuid.uuid4().hex[:12]
    prefix = (WORKSPACE_NAME_PREFIX + machine)[: MAX_WORKSPACE_NAME_LENGTH - len(suffix)]
    return prefix + suffix


def mask_secret(value: Optional[str]) -> Optional[str]:
    return "***" if value else None
