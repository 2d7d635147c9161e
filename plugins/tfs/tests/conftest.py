"""
Shared fixtures for TFS provider tests.
"""

import pytest
from unittest.mock import MagicMock, patch

from plugins.tfs.issue_tracking_provider import TfsIssueTrackingProvider
from plugins.tfs.source_control_provider import TfsSourceControlProvider
from plugins.tfs.types import TfsConnectionConfig

BASE_URL = "http://server:8080/tfs"


@pytest.fixture
def tfs_config():
    """Connection settings scoped to collection 'Coll' and project 'Proj'."""
    return TfsConnectionConfig(
        base_url=BASE_URL,
        custom_release_number_field_name="Custom.Release",
        category_id_filter=["Coll", "Proj"],
        use_system_credentials=True,
    )


@pytest.fixture
def mock_connection():
    """Patch the SDK Connection class; every connection shares one mock."""
    with patch("plugins.tfs.session.Connection") as mock_connection_class:
        connection = MagicMock()
        connection.base_url = BASE_URL
        mock_connection_class.return_value = connection
        yield mock_connection_class


@pytest.fixture
def connection(mock_connection):
    return mock_connection.return_value


@pytest.fixture
def wit_client(connection):
    return connection.clients.get_work_item_tracking_client.return_value


@pytest.fixture
def tfvc_client(connection):
    return connection.clients.get_tfvc_client.return_value


@pytest.fixture
def core_client(connection):
    return connection.clients.get_core_client.return_value


@pytest.fixture
def issue_provider(tfs_config, mock_connection):
    """Create a TfsIssueTrackingProvider backed by mock SDK clients."""
    return TfsIssueTrackingProvider(config=tfs_config)


@pytest.fixture
def mock_runner():
    """Mock tf command runner."""
    runner = MagicMock()
    runner.run.return_value = ""
    return runner


@pytest.fixture
def source_provider(tfs_config, mock_connection, mock_runner):
    """Create a TfsSourceControlProvider backed by mock SDK clients and tf runner."""
    return TfsSourceControlProvider(config=tfs_config, runner=mock_runner)
