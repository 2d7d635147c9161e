from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field, field_validator

from providers.types import Issue, Category


class TfsConnectionConfig(BaseModel):
    """Persisted connection settings shared by both TFS providers"""

    base_url: Optional[str] = None
    custom_release_number_field_name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    domain: Optional[str] = None
    use_system_credentials: bool = False
    category_id_filter: List[str] = Field(default_factory=list)
    personal_access_token: Optional[str] = None
    bearer_token_command: Optional[str] = None
    tf_command: str = "tf"
    tf_timeout: Optional[float] = None

    @field_validator("category_id_filter", mode="before")
    @classmethod
    def _parse_category_id_filter(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("category_id_filter must not be None")
        if isinstance(value, str):
            return [part.strip() for part in value.split("/") if part.strip()]
        return value

    @field_validator("category_id_filter")
    @classmethod
    def _check_category_depth(cls, value: List[str]) -> List[str]:
        if len(value) > 2:
            raise ValueError(
                f"category_id_filter has {len(value)} entries; expected at most Collection and Project"
            )
        return value

    @classmethod
    def from_parameters(cls, params: Dict[str, Any]) -> "TfsConnectionConfig":
        """Build a config from the raw TFS parameter mapping of the environment manager"""
        known = {key: value for key, value in params.items() if key in cls.model_fields}
        # Unset optional values fall back to the field defaults
        known = {key: value for key, value in known.items() if value is not None}
        return cls(**known)

    @property
    def collection_name(self) -> str:
        return self.category_id_filter[0] if self.category_id_filter else ""

    @property
    def project_name(self) -> Optional[str]:
        """Project to filter on, only when a non-empty second filter entry is set"""
        if len(self.category_id_filter) == 2 and self.category_id_filter[1]:
            return self.category_id_filter[1]
        return None

    @property
    def qualified_username(self) -> Optional[str]:
        if not self.username:
            return self.username
        if self.domain:
            return f"{self.domain}\\{self.username}"
        return self.username


class DefaultStatusNames:
    ACTIVE = "Active"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class TfsIssue(Issue):
    """A TFS work item projected into the host's issue shape"""

    @classmethod
    def from_work_item(
        cls, work_item: Any, custom_release_number_field_name: Optional[str] = None
    ) -> "TfsIssue":
        fields = work_item.fields or {}
        return cls(
            issue_id=str(work_item.id),
            issue_status=fields.get("System.State") or "",
            issue_title=fields.get("System.Title") or "",
            issue_description=fields.get("System.Description") or "",
            release_number=cls.get_release_number(fields, custom_release_number_field_name),
        )

    @staticmethod
    def get_release_number(
        fields: Dict[str, Any], custom_release_number_field_name: Optional[str] = None
    ) -> str:
        if custom_release_number_field_name:
            value = fields.get(custom_release_number_field_name)
            return "" if value is None else str(value).strip()

        iteration_path = fields.get("System.IterationPath") or ""
        return iteration_path[iteration_path.rfind("\\") + 1:]


class TfsCategory:
    """Builders for the Collection -> Project category tree"""

    TYPE_NAMES = ["Collection", "Project"]

    @staticmethod
    def create_collection(collection: Any, projects: List[Category]) -> Category:
        return Category(
            category_id=collection.name,
            category_name=collection.name,
            sub_categories=projects,
        )

    @staticmethod
    def create_project(project: Any) -> Category:
        return Category(category_id=project.name, category_name=project.name)
