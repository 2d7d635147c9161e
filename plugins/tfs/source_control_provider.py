"""Team Foundation Server version control provider."""

import logging
import os
import tempfile
from typing import List, Optional

from azure.devops.v7_1.tfvc.models import TfvcChangesetSearchCriteria

from providers.exceptions import (
    ConnectionUnavailable,
    DirectoryNotFound,
    InvalidArgument,
    UnexpectedItemKind,
)
from providers.interfaces import (
    RevisionProviderInterface,
    SourceControlProviderInterface,
    VersioningProviderInterface,
)
from providers.plugin import register_provider
from providers.types import DirectoryEntryInfo, FileEntryInfo

# Import configuration manager
from config import env_manager

from .session import TfsSession
from .tf_cli import TfCommandRunner, create_label, mapped_workspace
from .tfs_utils import (
    DIRECTORY_SEPARATOR,
    ROOT_PATH,
    build_source_path,
    encode_revision,
    get_item_name,
    mask_secret,
)
from .types import TfsConnectionConfig


@register_provider
class TfsSourceControlProvider(
    SourceControlProviderInterface, VersioningProviderInterface, RevisionProviderInterface
):
    """Provides access to TFVC source control on a Team Foundation Server.

    Reads (directory listings, file contents, revision fingerprints) use the
    TFVC REST client. Workspaces and labels go through the ``tf`` client.
    Paths use '/' and the root is "$/".
    """

    @property
    def name(self) -> str:
        return "tfs_source_control"

    @property
    def description(self) -> str:
        return "Team Foundation Server: supports TFS 2010 and later version control."

    def __init__(
        self,
        config: Optional[TfsConnectionConfig] = None,
        session: Optional[TfsSession] = None,
        runner: Optional[TfCommandRunner] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.config = config if config is not None else self._load_config()
        self.session = session
        if self.session is None and self.config.base_url:
            self.session = TfsSession(self.config, collection_name=self.config.collection_name or None)
        self.runner = runner

    def _load_config(self) -> TfsConnectionConfig:
        """Load configuration from environment manager."""
        env_manager.load()
        config = TfsConnectionConfig.from_parameters(env_manager.get_tfs_parameters())

        self.logger.debug(
            f"Loaded TFS source control configuration: base_url={config.base_url}, "
            f"collection={config.collection_name}, tf_command={config.tf_command}, "
            f"use_system_credentials={config.use_system_credentials}, "
            f"username={config.qualified_username}, password={mask_secret(config.password)}"
        )
        return config

    def _get_session(self) -> TfsSession:
        if self.session is None:
            raise ConnectionUnavailable("TFS base URL is not configured")
        return self.session

    def _get_runner(self) -> TfCommandRunner:
        if self.runner is None:
            self.runner = TfCommandRunner(self.config, self._get_session().collection_url)
        return self.runner

    def __str__(self) -> str:
        return "Provides functionality for getting files and browsing folders in TFS 2010."

    @property
    def directory_separator(self) -> str:
        return DIRECTORY_SEPARATOR

    def is_available(self) -> bool:
        try:
            import azure.devops.connection  # noqa: F401
        except ImportError:
            return False
        return True

    def validate_connection(self) -> None:
        try:
            self._get_session().ensure_authenticated()
        except ConnectionUnavailable as e:
            raise ConnectionUnavailable(
                f"Could not connect to Team Foundation Server: {e.message}", cause=e.cause or e
            ) from e

    # Workspace operations

    def _check_get_arguments(self, source_path: str, target_path: str) -> None:
        if not source_path:
            raise InvalidArgument("source_path")
        if not target_path:
            raise InvalidArgument("target_path")
        if not os.path.isdir(target_path):
            raise DirectoryNotFound(target_path)

    def _get_into(self, source_path: str, target_path: str, version_spec: str) -> None:
        server_path = build_source_path(source_path)
        runner = self._get_runner()

        with mapped_workspace(runner, server_path, target_path) as workspace:
            self.logger.debug(
                f"Getting {server_path} at version {version_spec} into {target_path} "
                f"using workspace {workspace.name}"
            )
            workspace.get(version_spec)

    def get_latest(self, source_path: str, target_path: str) -> None:
        self._check_get_arguments(source_path, target_path)
        self._get_into(source_path, target_path, "T")

    def get_labeled(self, label: str, source_path: str, target_path: str) -> None:
        if not label:
            raise InvalidArgument("label")
        self._check_get_arguments(source_path, target_path)
        self._get_into(source_path, target_path, f"L{label}")

    def apply_label(self, label: str, source_path: str) -> None:
        if not source_path:
            raise InvalidArgument("source_path")
        if not label:
            raise InvalidArgument("label")

        server_path = build_source_path(source_path)
        for line in create_label(self._get_runner(), label, server_path):
            self.logger.debug(line)

    # Read operations

    def get_directory_entry_info(self, source_path: str) -> DirectoryEntryInfo:
        """List the files and folders directly under source_path.

        The root listing has an empty name and path; any other listing is
        named after its last path segment and has an empty path. Children
        carry their full server paths.
        """
        client = self._get_session().get_tfvc_client()
        server_path = client.get_item(path=build_source_path(source_path)).path

        items = client.get_items(scope_path=server_path, recursion_level="OneLevel") or []

        sub_directories: List[DirectoryEntryInfo] = []
        files: List[FileEntryInfo] = []
        for item in items:
            if not item.path:
                raise UnexpectedItemKind(f"{server_path} (item without a path)")

            if item.path == server_path:
                continue

            # The server only sends isFolder for folders
            if item.is_folder:
                sub_directories.append(
                    DirectoryEntryInfo(name=get_item_name(item.path), path=item.path)
                )
            else:
                files.append(
                    FileEntryInfo(
                        name=get_item_name(item.path),
                        path=item.path,
                        size=item.size,
                        last_modified=item.change_date,
                    )
                )

        if server_path.rstrip(DIRECTORY_SEPARATOR) == ROOT_PATH.rstrip(DIRECTORY_SEPARATOR):
            name = ""
        else:
            name = get_item_name(server_path.rstrip(DIRECTORY_SEPARATOR))

        self.logger.debug(
            f"Listed {server_path}: {len(sub_directories)} folders, {len(files)} files"
        )
        return DirectoryEntryInfo(name=name, path="", sub_directories=sub_directories, files=files)

    def get_file_contents(self, file_path: str) -> bytes:
        if not file_path:
            raise InvalidArgument("file_path")

        client = self._get_session().get_tfvc_client()
        server_path = build_source_path(file_path)

        with tempfile.TemporaryFile() as staging:
            for chunk in client.get_item_content(path=server_path, download=True):
                staging.write(chunk)
            staging.seek(0)
            return staging.read()

    def get_current_revision(self, path: str) -> bytes:
        """Fingerprint the latest state of the subtree at path.

        The fingerprint is the highest changeset id among the items and the
        newest changeset touching the path, as a 4-byte little-endian int,
        or b"" when the path has no items.
        """
        client = self._get_session().get_tfvc_client()
        server_path = client.get_item(path=build_source_path(path)).path

        items = client.get_items(scope_path=server_path, recursion_level="Full") or []
        if not items:
            return b""

        changeset_ids = [item.version for item in items]

        changesets = client.get_changesets(
            search_criteria=TfvcChangesetSearchCriteria(item_path=server_path), top=1
        ) or []
        changeset_ids.extend(changeset.changeset_id for changeset in changesets)

        revision = encode_revision(changeset_ids)
        self.logger.debug(f"Current revision of {server_path}: {revision.hex()}")
        return revision
