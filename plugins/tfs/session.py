"""Explicit TFS session objects.

A session owns the SDK connections for one provider instance. Building a
session performs no network I/O; the SDK contacts the server on first use
of a client.
"""

import logging
from typing import Optional

from azure.devops.connection import Connection

from providers.exceptions import ConnectionUnavailable

from .tfs_utils import build_credentials, build_collection_url, mask_secret
from .types import TfsConnectionConfig

logger = logging.getLogger(__name__)


class TfsSession:
    """SDK connections to a TFS server and one of its project collections.

    Args:
        config: Connection settings
        collection_name: Collection appended to the base URL. When None the
            base URL is used as the collection URL.
    """

    def __init__(self, config: TfsConnectionConfig, collection_name: Optional[str] = None):
        if not config.base_url:
            raise ConnectionUnavailable("TFS base URL is not configured")

        self.config = config
        self.server_url = config.base_url
        self.collection_url = (
            build_collection_url(config.base_url, collection_name)
            if collection_name is not None
            else config.base_url
        )
        self.credentials = build_credentials(config)

        self.server_connection = Connection(base_url=self.server_url, creds=self.credentials)
        self.collection_connection = (
            self.server_connection
            if self.collection_url == self.server_url
            else Connection(base_url=self.collection_url, creds=self.credentials)
        )

        logger.debug(
            f"Created TFS session: server={self.server_url}, collection={self.collection_url}, "
            f"system_credentials={config.use_system_credentials}, "
            f"username={config.qualified_username}, password={mask_secret(config.password)}"
        )

    def connection_for_collection(self, collection_name: str) -> Connection:
        """Open a connection to another collection on the same server"""
        return Connection(
            base_url=build_collection_url(self.server_url, collection_name),
            creds=self.credentials,
        )

    def get_work_item_tracking_client(self):
        return self.collection_connection.clients.get_work_item_tracking_client()

    def get_tfvc_client(self):
        return self.collection_connection.clients.get_tfvc_client()

    def get_core_client(self):
        return self.server_connection.clients.get_core_client()

    def ensure_authenticated(self, server: bool = False) -> None:
        """Authenticate against the server or the collection.

        Raises:
            ConnectionUnavailable: wrapping the underlying failure
        """
        connection = self.server_connection if server else self.collection_connection
        try:
            connection.authenticate()
        except Exception as e:
            logger.error(f"Failed to authenticate against {connection.base_url}: {e}")
            raise ConnectionUnavailable(str(e), cause=e) from e
