"""
Test helpers for TFS plugin tests.
"""

from unittest.mock import Mock

from azure.devops.v7_1.tfvc import models as tfvc_models
from msrest import Deserializer

_tfvc_deserializer = Deserializer(
    {name: model for name, model in vars(tfvc_models).items() if isinstance(model, type)}
)


def make_work_item(work_item_id, release=None, iteration_path="Project\\1.0", **fields):
    """Build a mock SDK work item."""
    work_item = Mock()
    work_item.id = work_item_id
    work_item.fields = {
        "System.Id": work_item_id,
        "System.Title": f"Work item {work_item_id}",
        "System.Description": f"Description {work_item_id}",
        "System.State": "Active",
        "System.IterationPath": iteration_path,
    }
    if release is not None:
        work_item.fields["Custom.Release"] = release
    work_item.fields.update(fields)
    return work_item


def make_query_result(ids):
    """Build a mock WIQL query result referencing the given ids."""
    result = Mock()
    result.work_items = [Mock(id=work_item_id) for work_item_id in ids]
    return result


def make_tfvc_item(path, is_folder=False, version=1, size=None, change_date=None):
    """Build a TFVC item the way the SDK deserializes the server's JSON.

    The server omits isFolder for files, so file items carry is_folder=None.
    """
    payload = {"version": version}
    if path is not None:
        payload["path"] = path
    if is_folder:
        payload["isFolder"] = True
    if size is not None:
        payload["size"] = size
    if change_date is not None:
        payload["changeDate"] = change_date
    return _tfvc_deserializer("TfvcItem", payload)


def make_named(name):
    """Build a mock SDK object with a name, such as a collection or project."""
    named = Mock()
    named.name = name
    return named
