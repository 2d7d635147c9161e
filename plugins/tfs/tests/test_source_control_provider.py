"""
Tests for the TFS source control provider.
"""

import logging
import struct
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from providers.exceptions import (
    ConnectionUnavailable,
    DirectoryNotFound,
    InvalidArgument,
    PermissionDenied,
    UnexpectedItemKind,
)
from plugins.tfs.source_control_provider import TfsSourceControlProvider
from plugins.tfs.tf_cli import LABEL_COMMENT, TfCommandError
from plugins.tfs.types import TfsConnectionConfig
from plugins.tfs.tests.helpers import make_tfvc_item


def run_commands(mock_runner):
    """Return the tf sub-commands the runner was asked to execute, in order."""
    return [call[0][:2] for call in mock_runner.run.call_args_list]


class TestGetLatest:
    """Test workspace based retrieval."""

    def test_get_latest(self, source_provider, mock_runner, tmp_path):
        source_provider.get_latest("/Proj/src", str(tmp_path))

        calls = mock_runner.run.call_args_list
        assert calls[0][0][:2] == ("workspace", "-new")
        workspace_name = calls[0][0][2]
        assert workspace_name.startswith("BuildMaster")

        assert calls[1][0] == (
            "workfold", "-map", "Proj/src", str(tmp_path), f"-workspace:{workspace_name}"
        )
        assert calls[2][0][:2] == ("get", str(tmp_path))
        assert "-version:T" in calls[2][0]
        assert "-overwrite" in calls[2][0]
        assert calls[3][0] == ("workspace", "-delete", workspace_name)

    def test_get_labeled(self, source_provider, mock_runner, tmp_path):
        source_provider.get_labeled("Release 1.0", "$/Proj", str(tmp_path))

        get_call = mock_runner.run.call_args_list[2]
        assert "-version:LRelease 1.0" in get_call[0]

    def test_workspace_names_are_unique_per_operation(self, source_provider, mock_runner, tmp_path):
        source_provider.get_latest("$/Proj", str(tmp_path))
        source_provider.get_latest("$/Proj", str(tmp_path))

        names = [call[0][2] for call in mock_runner.run.call_args_list if call[0][:2] == ("workspace", "-new")]
        assert len(names) == 2
        assert names[0] != names[1]

    @pytest.mark.parametrize("source_path,target_path", [("", "/tmp"), ("$/Proj", ""), (None, "/tmp")])
    def test_empty_arguments(self, source_provider, mock_runner, source_path, target_path):
        with pytest.raises(InvalidArgument):
            source_provider.get_latest(source_path, target_path)
        mock_runner.run.assert_not_called()

    def test_empty_label(self, source_provider, mock_runner, tmp_path):
        with pytest.raises(InvalidArgument):
            source_provider.get_labeled("", "$/Proj", str(tmp_path))
        mock_runner.run.assert_not_called()

    def test_missing_target_directory(self, source_provider, mock_runner, tmp_path):
        missing = str(tmp_path / "missing")

        with pytest.raises(DirectoryNotFound) as exc_info:
            source_provider.get_latest("$/Proj", missing)

        assert str(exc_info.value) == f"targetPath not found: {missing}"
        mock_runner.run.assert_not_called()

    def test_workspace_deleted_after_failure(self, source_provider, mock_runner, tmp_path):
        def run(*args, **kwargs):
            if args[0] == "get":
                raise PermissionDenied("TF14098: Access Denied")
            return ""

        mock_runner.run.side_effect = run

        with pytest.raises(PermissionDenied):
            source_provider.get_latest("$/Proj", str(tmp_path))

        assert run_commands(mock_runner)[-1] == ("workspace", "-delete")

    def test_delete_failure_is_logged(self, source_provider, mock_runner, tmp_path, caplog):
        def run(*args, **kwargs):
            if args[:2] == ("workspace", "-delete"):
                raise TfCommandError("TF14061: The workspace does not exist")
            return ""

        mock_runner.run.side_effect = run

        with caplog.at_level(logging.WARNING):
            source_provider.get_latest("$/Proj", str(tmp_path))

        assert "Failed to delete workspace" in caplog.text


class TestApplyLabel:
    """Test labeling."""

    def test_apply_label(self, source_provider, mock_runner, caplog):
        mock_runner.run.return_value = "Created label Release 1.0@$/Proj\n\n$/Proj/a.txt\n"

        with caplog.at_level(logging.DEBUG, logger="plugins.tfs.source_control_provider"):
            source_provider.apply_label("Release 1.0", "/Proj")

        args = mock_runner.run.call_args[0]
        assert args[:3] == ("label", "Release 1.0@Proj", "Proj")
        assert "-recursive" in args
        assert "-child:replace" in args
        assert f"-comment:{LABEL_COMMENT}" in args
        assert "$/Proj/a.txt" in caplog.text

    def test_apply_label_empty_source_path(self, source_provider, mock_runner):
        with pytest.raises(InvalidArgument):
            source_provider.apply_label("Release 1.0", "")
        mock_runner.run.assert_not_called()

    def test_apply_label_empty_label(self, source_provider, mock_runner):
        with pytest.raises(InvalidArgument):
            source_provider.apply_label("", "$/Proj")
        mock_runner.run.assert_not_called()


class TestDirectoryEntryInfo:
    """Test one-level directory listings."""

    def test_lists_folders_and_files(self, source_provider, tfvc_client):
        changed = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        tfvc_client.get_item.return_value = make_tfvc_item("$/Proj/src", is_folder=True)
        tfvc_client.get_items.return_value = [
            make_tfvc_item("$/Proj/src", is_folder=True),
            make_tfvc_item("$/Proj/src/lib", is_folder=True),
            make_tfvc_item("$/Proj/src/main.py", size=120, change_date="2024-05-01T12:00:00Z"),
        ]

        info = source_provider.get_directory_entry_info("/Proj/src")

        tfvc_client.get_item.assert_called_once_with(path="Proj/src")
        tfvc_client.get_items.assert_called_once_with(scope_path="$/Proj/src", recursion_level="OneLevel")
        assert info.name == "src"
        assert info.path == ""
        assert [(d.name, d.path) for d in info.sub_directories] == [("lib", "$/Proj/src/lib")]
        assert len(info.files) == 1
        assert info.files[0].name == "main.py"
        assert info.files[0].path == "$/Proj/src/main.py"
        assert info.files[0].size == 120
        assert info.files[0].last_modified == changed

    def test_root_listing(self, source_provider, tfvc_client):
        tfvc_client.get_item.return_value = make_tfvc_item("$/", is_folder=True)
        tfvc_client.get_items.return_value = [
            make_tfvc_item("$/", is_folder=True),
            make_tfvc_item("$/Proj", is_folder=True),
        ]

        info = source_provider.get_directory_entry_info("")

        tfvc_client.get_item.assert_called_once_with(path="$/")
        assert info.name == ""
        assert info.path == ""
        assert [d.path for d in info.sub_directories] == ["$/Proj"]
        assert info.files == []

    def test_file_items_without_folder_flag(self, source_provider, tfvc_client):
        tfvc_client.get_item.return_value = make_tfvc_item("$/Proj", is_folder=True)
        tfvc_client.get_items.return_value = [
            make_tfvc_item("$/Proj", is_folder=True),
            make_tfvc_item("$/Proj/a.txt", version=3, size=10),
        ]

        info = source_provider.get_directory_entry_info("$/Proj")

        assert tfvc_client.get_items.return_value[1].is_folder is None
        assert info.sub_directories == []
        assert [(f.name, f.size) for f in info.files] == [("a.txt", 10)]

    def test_unexpected_item_kind(self, source_provider, tfvc_client):
        tfvc_client.get_item.return_value = make_tfvc_item("$/Proj", is_folder=True)
        tfvc_client.get_items.return_value = [make_tfvc_item(None, version=3)]

        with pytest.raises(UnexpectedItemKind):
            source_provider.get_directory_entry_info("$/Proj")


class TestFileContents:
    """Test file content downloads."""

    def test_get_file_contents(self, source_provider, tfvc_client):
        tfvc_client.get_item_content.return_value = iter([b"hello ", b"world"])

        contents = source_provider.get_file_contents("/Proj/readme.txt")

        assert contents == b"hello world"
        assert tfvc_client.get_item_content.call_args[1]["path"] == "Proj/readme.txt"

    def test_empty_file(self, source_provider, tfvc_client):
        tfvc_client.get_item_content.return_value = iter([])

        assert source_provider.get_file_contents("$/Proj/empty.txt") == b""

    def test_empty_path(self, source_provider, tfvc_client):
        with pytest.raises(InvalidArgument):
            source_provider.get_file_contents("")
        tfvc_client.get_item_content.assert_not_called()


class TestCurrentRevision:
    """Test revision fingerprints."""

    def test_highest_item_version(self, source_provider, tfvc_client):
        tfvc_client.get_item.return_value = make_tfvc_item("$/Proj", is_folder=True)
        tfvc_client.get_items.return_value = [
            make_tfvc_item("$/Proj", is_folder=True, version=3),
            make_tfvc_item("$/Proj/a.txt", version=7),
            make_tfvc_item("$/Proj/b.txt", version=5),
        ]
        tfvc_client.get_changesets.return_value = [Mock(changeset_id=7)]

        assert source_provider.get_current_revision("$/Proj") == struct.pack("<i", 7)
        assert tfvc_client.get_items.call_args[1]["recursion_level"] == "Full"

    def test_deletion_changes_fingerprint(self, source_provider, tfvc_client):
        tfvc_client.get_item.return_value = make_tfvc_item("$/Proj", is_folder=True)
        tfvc_client.get_items.return_value = [make_tfvc_item("$/Proj/a.txt", version=7)]
        tfvc_client.get_changesets.return_value = [Mock(changeset_id=9)]

        revision = source_provider.get_current_revision("$/Proj")

        assert revision == b"\x09\x00\x00\x00"
        criteria = tfvc_client.get_changesets.call_args[1]["search_criteria"]
        assert criteria.item_path == "$/Proj"

    def test_no_items(self, source_provider, tfvc_client):
        tfvc_client.get_item.return_value = make_tfvc_item("$/Empty", is_folder=True)
        tfvc_client.get_items.return_value = []

        assert source_provider.get_current_revision("$/Empty") == b""
        tfvc_client.get_changesets.assert_not_called()


class TestConnection:
    """Test connection validation and provider metadata."""

    def test_validate_connection(self, source_provider, connection):
        source_provider.validate_connection()
        connection.authenticate.assert_called_once()

    def test_validate_connection_failure(self, source_provider, connection):
        connection.authenticate.side_effect = Exception("server unreachable")

        with pytest.raises(ConnectionUnavailable) as exc_info:
            source_provider.validate_connection()

        assert str(exc_info.value) == "Could not connect to Team Foundation Server: server unreachable"

    def test_unconfigured_base_url(self):
        provider = TfsSourceControlProvider(config=TfsConnectionConfig())

        with pytest.raises(ConnectionUnavailable):
            provider.get_file_contents("$/Proj/a.txt")

    def test_runner_targets_collection(self, tfs_config, mock_connection):
        provider = TfsSourceControlProvider(config=tfs_config)

        runner = provider._get_runner()

        assert runner.collection_url == "http://server:8080/tfs/Coll"

    def test_metadata(self, source_provider):
        assert source_provider.kind == "source_control"
        assert source_provider.name == "tfs_source_control"
        assert source_provider.directory_separator == "/"
        assert source_provider.is_available() is True
        assert "TFS" in str(source_provider)
