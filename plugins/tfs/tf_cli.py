"""TFVC command-line client.

Workspaces and labels are not exposed by the TFS REST API, so these
operations go through the vendor ``tf`` client (Visual Studio ``tf.exe``
or Team Explorer Everywhere).
"""

import logging
import subprocess
from contextlib import contextmanager
from typing import Iterator, List, Optional

from providers.exceptions import PermissionDenied, ProviderError

from .tfs_utils import generate_workspace_name
from .types import TfsConnectionConfig

logger = logging.getLogger(__name__)

LABEL_COMMENT = "Label applied by BuildMaster"
WORKSPACE_COMMENT = "Workspace created by BuildMaster"

# TF30063 not authorized, TF14098 access denied, TF204017 workspace permission
_PERMISSION_MARKERS = ("TF30063", "TF14098", "TF204017", "read permission")


class TfCommandError(ProviderError):
    """Raised when a tf command exits with a non-zero status."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message, {"returncode": returncode, "stderr": stderr})
        self.returncode = returncode
        self.stderr = stderr


class TfCommandRunner:
    """Runs tf commands against one project collection.

    Args:
        config: Connection settings; explicit credentials with a user name
            become ``-login``
        collection_url: Collection the commands target
    """

    def __init__(self, config: TfsConnectionConfig, collection_url: str):
        self.executable = config.tf_command
        self.collection_url = collection_url
        self.timeout = config.tf_timeout
        self.login: Optional[str] = None
        if not config.use_system_credentials and config.qualified_username:
            self.login = f"{config.qualified_username},{config.password or ''}"

    def build_command(self, args: List[str], include_collection: bool = True) -> List[str]:
        command = [self.executable, *args]
        if include_collection:
            command.append(f"-collection:{self.collection_url}")
        command.append("-noprompt")
        if self.login is not None:
            command.append(f"-login:{self.login}")
        return command

    def _masked(self, command: List[str]) -> str:
        return " ".join("-login:***" if part.startswith("-login:") else part for part in command)

    def run(self, *args: str, include_collection: bool = True, cwd: Optional[str] = None) -> str:
        """Run a tf command and return its standard output.

        Raises:
            PermissionDenied: if the server refused access
            TfCommandError: on any other failure
        """
        command = self.build_command(list(args), include_collection=include_collection)
        masked = self._masked(command)
        logger.debug(f"Executing command: {masked}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=cwd,
            )
        except subprocess.TimeoutExpired as e:
            raise TfCommandError(f"Command timed out after {self.timeout} seconds: {masked}") from e
        except OSError as e:
            raise TfCommandError(f"Could not run {self.executable}: {e}") from e

        if result.returncode != 0:
            error_text = (result.stderr or result.stdout or "").strip()
            logger.error(f"Command failed with return code {result.returncode}: {error_text}")
            if any(marker in error_text for marker in _PERMISSION_MARKERS):
                raise PermissionDenied(error_text, {"command": masked})
            raise TfCommandError(
                f"tf {args[0] if args else ''} failed: {error_text}",
                returncode=result.returncode,
                stderr=result.stderr or "",
            )

        return result.stdout or ""


class TfWorkspace:
    """A workspace mapping one server path to one local directory."""

    def __init__(self, runner: TfCommandRunner, name: str, server_path: str, local_path: str):
        self.runner = runner
        self.name = name
        self.server_path = server_path
        self.local_path = local_path

    def get(self, version_spec: str = "T") -> str:
        """Fetch every mapped file at version_spec, overwriting local content."""
        return self.runner.run(
            "get",
            self.local_path,
            f"-version:{version_spec}",
            "-all",
            "-overwrite",
            "-recursive",
            include_collection=False,
            cwd=self.local_path,
        )


@contextmanager
def mapped_workspace(
    runner: TfCommandRunner,
    server_path: str,
    local_path: str,
    name: Optional[str] = None,
) -> Iterator[TfWorkspace]:
    """Create a uniquely named workspace mapped to local_path, deleting it on exit.

    A failure to delete is logged and never replaces the error that ended
    the block.
    """
    workspace = TfWorkspace(runner, name or generate_workspace_name(), server_path, local_path)

    runner.run("workspace", "-new", workspace.name, f"-comment:{WORKSPACE_COMMENT}")
    try:
        runner.run(
            "workfold",
            "-map",
            server_path,
            local_path,
            f"-workspace:{workspace.name}",
        )
        yield workspace
    finally:
        try:
            runner.run("workspace", "-delete", workspace.name)
        except (TfCommandError, PermissionDenied) as e:
            logger.warning(f"Failed to delete workspace {workspace.name}: {e}")


def create_label(runner: TfCommandRunner, label: str, server_path: str) -> List[str]:
    """Label the full subtree of server_path at the latest version.

    Existing labels of the same name are replaced for child items.

    Returns:
        One result line per labeled item
    """
    output = runner.run(
        "label",
        f"{label}@{server_path}",
        server_path,
        "-version:T",
        "-recursive",
        "-child:replace",
        f"-comment:{LABEL_COMMENT}",
    )
    return [line for line in output.splitlines() if line.strip()]
