"""Team Foundation Server issue tracking provider."""

import logging
from typing import Any, List, Optional

from azure.devops.v7_1.work_item_tracking.models import JsonPatchOperation, Wiql

from providers.exceptions import Ambiguous, ConnectionUnavailable, InvalidArgument, NotFound
from providers.interfaces import (
    CategoryFilterableInterface,
    IssueTrackingProviderInterface,
    UpdatingProviderInterface,
)
from providers.plugin import register_provider
from providers.types import Category, Issue

# Import configuration manager
from config import env_manager

from .session import TfsSession
from .tfs_utils import build_collection_url, build_issue_url, mask_secret
from .types import DefaultStatusNames, TfsCategory, TfsConnectionConfig, TfsIssue
from .wiql import WiqlQuery

# The work items endpoint accepts at most this many ids per request
WORK_ITEM_BATCH_SIZE = 200

ISSUE_FIELDS = [
    "System.Id",
    "System.Title",
    "System.Description",
    "System.State",
    "System.IterationPath",
]


@register_provider
class TfsIssueTrackingProvider(
    IssueTrackingProviderInterface, CategoryFilterableInterface, UpdatingProviderInterface
):
    """Connects to a Team Foundation Server to integrate work items as issues.

    Issues for a release are the work items whose release number matches.
    The release number comes from a custom field when one is configured,
    otherwise from the last segment of the work item's iteration path.

    Configuration:
        The provider loads default values from environment variables with
        the TFS_ prefix when no explicit config is given:
        - TFS_BASE_URL: Server URL without the collection, e.g. http://server:8080/tfs
        - TFS_CUSTOM_RELEASE_NUMBER_FIELD_NAME: Field holding the release number
        - TFS_USERNAME / TFS_PASSWORD / TFS_DOMAIN: Explicit credentials
        - TFS_USE_SYSTEM_CREDENTIALS: Use ambient credentials instead
        - TFS_CATEGORY_ID_FILTER: "Collection" or "Collection/Project"

    Example:
        provider = TfsIssueTrackingProvider(TfsConnectionConfig(
            base_url="http://server:8080/tfs",
            category_id_filter=["DefaultCollection", "MyProject"],
            use_system_credentials=True,
        ))
        for issue in provider.get_issues("2.0"):
            if not provider.is_issue_closed(issue):
                provider.close_issue(issue.issue_id)
    """

    @property
    def name(self) -> str:
        return "tfs_issue_tracking"

    @property
    def description(self) -> str:
        return "Team Foundation Server: supports TFS 2010 and later work item tracking."

    def __init__(
        self,
        config: Optional[TfsConnectionConfig] = None,
        session: Optional[TfsSession] = None,
    ):
        """Initialize the provider with explicit settings or the environment's TFS settings.

        Args:
            config: Connection settings. Loaded from the environment manager if None.
            session: Pre-built session, mainly for tests. Built from config if None.
        """
        self.logger = logging.getLogger(__name__)
        self.config = config if config is not None else self._load_config()
        self.session = session if session is not None else self._create_session()

    def _load_config(self) -> TfsConnectionConfig:
        """Load configuration from environment manager."""
        env_manager.load()
        config = TfsConnectionConfig.from_parameters(env_manager.get_tfs_parameters())

        self.logger.debug(
            f"Loaded TFS issue tracking configuration: base_url={config.base_url}, "
            f"category_id_filter={config.category_id_filter}, "
            f"custom_release_number_field_name={config.custom_release_number_field_name}, "
            f"use_system_credentials={config.use_system_credentials}, "
            f"username={config.qualified_username}, password={mask_secret(config.password)}"
        )
        return config

    def _create_session(self) -> Optional[TfsSession]:
        if not self.config.base_url:
            return None
        return TfsSession(self.config, collection_name=self.config.collection_name or None)

    def _get_session(self) -> TfsSession:
        if self.session is None:
            raise ConnectionUnavailable("TFS base URL is not configured")
        return self.session

    def __str__(self) -> str:
        return "Connects to a TFS 2010 server to integrate with work items."

    # Category filtering

    @property
    def category_id_filter(self) -> List[str]:
        return list(self.config.category_id_filter)

    @category_id_filter.setter
    def category_id_filter(self, value: List[str]) -> None:
        if value is None:
            raise InvalidArgument("category_id_filter", "category_id_filter must not be None")
        self.config = TfsConnectionConfig.model_validate(
            {**self.config.model_dump(), "category_id_filter": list(value)}
        )
        self.session = self._create_session()

    @property
    def category_type_names(self) -> List[str]:
        return list(TfsCategory.TYPE_NAMES)

    @property
    def collection_url(self) -> str:
        return build_collection_url(self.config.base_url or "", self.config.collection_name)

    def get_categories(self) -> List[Category]:
        """Return every collection on the server, each with every project in it."""
        session = self._get_session()
        core_client = session.get_core_client()

        categories = []
        for collection in core_client.get_project_collections():
            projects = self._get_project_categories(session, collection)
            categories.append(TfsCategory.create_collection(collection, projects))

        self.logger.debug(f"Found {len(categories)} project collections")
        return categories

    def _get_project_categories(self, session: TfsSession, collection: Any) -> List[Category]:
        connection = session.connection_for_collection(collection.name)
        core_client = connection.clients.get_core_client()
        response = core_client.get_projects()
        # Newer SDK releases wrap the page in a response object
        projects = getattr(response, "value", response) or []
        return [TfsCategory.create_project(project) for project in projects]

    # Updating capabilities

    @property
    def can_append_issue_descriptions(self) -> bool:
        return True

    @property
    def can_change_issue_statuses(self) -> bool:
        return True

    @property
    def can_close_issues(self) -> bool:
        return True

    # Issue tracking

    def is_available(self) -> bool:
        try:
            import azure.devops.connection  # noqa: F401
        except ImportError:
            return False
        return True

    def validate_connection(self) -> None:
        """Authenticate against the server.

        Raises:
            ConnectionUnavailable: carrying the underlying cause message
        """
        self._get_session().ensure_authenticated(server=True)

    def get_issue_url(self, issue: Issue) -> str:
        return build_issue_url(self.collection_url, issue.issue_id)

    def is_issue_closed(self, issue: Issue) -> bool:
        return issue.issue_status in (DefaultStatusNames.CLOSED, DefaultStatusNames.RESOLVED)

    def _issue_query(self) -> WiqlQuery:
        return WiqlQuery(ISSUE_FIELDS).select(self.config.custom_release_number_field_name)

    def build_issues_query(self, release_number: str) -> str:
        """Build the WIQL for the issues of a release.

        Conditions are [release][project] in that order; the release condition
        only applies with a custom release number field.
        """
        query = self._issue_query()

        if self.config.custom_release_number_field_name:
            query.where_equals(self.config.custom_release_number_field_name, release_number)

        if self.config.project_name:
            query.where_equals("System.TeamProject", self.config.project_name)

        return query.order_by_ascending("System.Id").build()

    def get_issues(self, release_number: str) -> List[TfsIssue]:
        """Get the issues of a release, ordered by ascending id.

        The query result is filtered again on the resolved release number;
        that local filter decides membership.
        """
        wiql = self.build_issues_query(release_number)
        work_items = self._query_work_items(wiql)

        issues = [
            TfsIssue.from_work_item(work_item, self.config.custom_release_number_field_name)
            for work_item in work_items
        ]
        matching = [issue for issue in issues if issue.release_number == release_number]

        self.logger.debug(
            f"Release {release_number}: {len(work_items)} work items queried, {len(matching)} issues matched"
        )
        return matching

    def _query_work_items(self, wiql: str) -> List[Any]:
        """Run a WIQL query and fetch the full work items, preserving query order."""
        client = self._get_session().get_work_item_tracking_client()

        self.logger.debug(f"Executing WIQL: {wiql}")
        result = client.query_by_wiql(Wiql(query=wiql))
        ids = [reference.id for reference in (result.work_items or [])]
        if not ids:
            return []

        fields = self._issue_query().fields
        work_items = []
        for start in range(0, len(ids), WORK_ITEM_BATCH_SIZE):
            batch = ids[start:start + WORK_ITEM_BATCH_SIZE]
            work_items.extend(client.get_work_items(batch, fields=fields) or [])

        by_id = {work_item.id: work_item for work_item in work_items}
        return [by_id[work_item_id] for work_item_id in ids if work_item_id in by_id]

    def _get_work_item_by_id(self, issue_id: str) -> Any:
        try:
            work_item_id = int(str(issue_id).strip())
        except ValueError:
            raise InvalidArgument("issue_id", f"Work item id must be an integer: {issue_id!r}")

        wiql = self._issue_query().where_equals("System.Id", work_item_id).build()
        work_items = self._query_work_items(wiql)

        if len(work_items) == 0:
            raise NotFound(f"There is no work item with the ID: {issue_id}")
        if len(work_items) > 1:
            raise Ambiguous(f"There are multiple issues with the same ID: {issue_id}")

        return work_items[0]

    def _update_field(self, work_item_id: int, field: str, value: str) -> None:
        client = self._get_session().get_work_item_tracking_client()
        document = [JsonPatchOperation(op="replace", path=f"/fields/{field}", value=value)]

        self.logger.debug(f"Updating work item {work_item_id}: {field}")
        client.update_work_item(document=document, id=work_item_id)

    def append_issue_description(self, issue_id: str, text_to_append: str) -> None:
        work_item = self._get_work_item_by_id(issue_id)
        description = (work_item.fields or {}).get("System.Description") or ""
        self._update_field(work_item.id, "System.Description", description + "\n" + text_to_append)

    def change_issue_status(self, issue_id: str, new_status: str) -> None:
        work_item = self._get_work_item_by_id(issue_id)
        self._update_field(work_item.id, "System.State", new_status)

    def close_issue(self, issue_id: str) -> None:
        self.change_issue_status(issue_id, DefaultStatusNames.CLOSED)
