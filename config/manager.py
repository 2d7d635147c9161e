from pathlib import Path
from typing import Dict, Any, Optional, List, Callable
from config.types import RepositoryInfo
import logging
import os


class EnvironmentManager:
    """
    Environment manager holding the persisted key/value settings that the
    host hands to its providers.
    """

    _instance = None

    # Default settings with their types
    DEFAULT_SETTINGS = {
        "git_root": (None, str),
    }

    # Default TFS provider settings with their types
    DEFAULT_TFS_SETTINGS = {
        "base_url": (None, str),
        "custom_release_number_field_name": (None, str),
        "username": (None, str),
        "password": (None, str),
        "domain": (None, str),
        "use_system_credentials": (False, bool),
        "category_id_filter": ("", str),
        "personal_access_token": (None, str),
        "bearer_token_command": (None, str),
        "tf_command": ("tf", str),
        "tf_timeout": (None, float),
    }

    # Each setting can be set via its uppercase env var
    ENV_MAPPING = {setting.upper(): setting for setting in DEFAULT_SETTINGS.keys()}

    TFS_PREFIX = "TFS_"

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize environment with default values"""
        self.repository_info = RepositoryInfo()
        self.env_variables: Dict[str, str] = {}
        self._providers: List[Callable[[], Dict[str, Any]]] = []
        self.tfs_parameters: Dict[str, Any] = {}
        self.settings: Dict[str, Any] = {}
        self.logger = logging.getLogger(__name__)

        for key, (default_value, _) in self.DEFAULT_SETTINGS.items():
            self.settings[key] = default_value

        self._load_from_env_file()
        self._sync_settings_to_repo()

    def _sync_settings_to_repo(self):
        """Sync settings to repository info object"""
        if git_root := self.settings.get("git_root"):
            self.repository_info.git_root = git_root

    def _get_git_root(self) -> Optional[Path]:
        """Try to determine the git root directory

        Returns:
            Path to the git root directory or None if not found
        """
        dir_to_check = Path.cwd()
        for _ in range(10):  # Limit the search depth
            git_dir = dir_to_check / ".git"
            if git_dir.exists() and git_dir.is_dir():
                return dir_to_check

            parent_dir = dir_to_check.parent
            if parent_dir == dir_to_check:
                break
            dir_to_check = parent_dir

        return None

    def _convert_value(self, value: Any, target_type: type) -> Any:
        """Convert string value to target type"""
        if not isinstance(value, str):
            return value
        if target_type == bool:
            return value.strip().lower() in ("true", "1", "yes", "on")
        if target_type in (int, float) and not value.strip():
            return None
        return target_type(value)

    def _apply_variable(self, key: str, value: str):
        """Route a single KEY=value pair into settings or TFS parameters"""
        self.env_variables[key] = value

        if key in self.ENV_MAPPING:
            setting_name = self.ENV_MAPPING[key]
            _, target_type = self.DEFAULT_SETTINGS[setting_name]
            self.settings[setting_name] = self._convert_value(value, target_type)
        elif key.startswith(self.TFS_PREFIX):
            param_name = key[len(self.TFS_PREFIX):].lower()
            self.tfs_parameters[param_name] = value

    def _load_from_env_file(self):
        """Find and load variables from a .env file"""
        env_file_paths = []

        if self.repository_info.git_root:
            env_file_paths.append(Path(self.repository_info.git_root) / ".env")

        env_file_paths.append(Path.cwd() / ".env")

        try:
            env_file_paths.append(Path.home() / ".env")
        except (RuntimeError, OSError):
            pass

        if not self.repository_info.git_root:
            git_root = self._get_git_root()
            if git_root:
                env_file_paths.append(git_root / ".env")

        for env_path in env_file_paths:
            if env_path.exists() and env_path.is_file():
                self.logger.debug(f"Loading environment from: {env_path}")
                self._parse_env_file(env_path)
                return

        self.logger.debug(
            "No .env file found, tried: "
            + ", ".join(str(env_path) for env_path in env_file_paths)
        )

    def _parse_env_file(self, env_file_path: Path):
        """Parse a .env file and load variables into environment"""
        try:
            with open(env_file_path, "r") as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, value = line.split("=", 1)
                        key = key.strip()
                        value = value.strip()

                        # Remove quotes if present
                        if (value.startswith('"') and value.endswith('"')) or (
                            value.startswith("'") and value.endswith("'")
                        ):
                            value = value[1:-1]

                        self._apply_variable(key, value)

            self._sync_settings_to_repo()

        except OSError as e:
            self.logger.warning(f"Error parsing .env file {env_file_path}: {e}")

    def register_provider(self, provider: Callable[[], Dict[str, Any]]):
        """Register a provider function that returns additional environment data"""
        self._providers.append(provider)
        return self

    def load(self):
        """Load all environment information"""
        self._load_from_env_file()

        for key, value in os.environ.items():
            self._apply_variable(key, value)

        self._sync_settings_to_repo()

        # Provider TFS parameters win over files and the process environment
        for provider in self._providers:
            try:
                additional_data = provider()

                if tfs_params := additional_data.get("tfs_parameters", {}):
                    for key, value in tfs_params.items():
                        self.tfs_parameters[key] = value

            except Exception as e:
                self.logger.warning(f"Error from environment provider: {e}")

        return self

    def get_setting(self, name: str, default: Any = None) -> Any:
        """Get a setting value by name"""
        return self.settings.get(name, default)

    def get_git_root(self) -> Optional[str]:
        """Get git root directory"""
        return self.get_setting("git_root")

    def get_tfs_parameters(self) -> Dict[str, Any]:
        """Get TFS provider parameters with defaults applied and values typed"""
        result = {}
        for key, (default_value, _) in self.DEFAULT_TFS_SETTINGS.items():
            result[key] = default_value

        for key, value in self.tfs_parameters.items():
            if key in self.DEFAULT_TFS_SETTINGS:
                _, target_type = self.DEFAULT_TFS_SETTINGS[key]
                result[key] = self._convert_value(value, target_type)
            else:
                result[key] = value

        return result

    def get_tfs_parameter(self, name: str, default: Any = None) -> Any:
        """Get a specific TFS provider parameter"""
        params = self.get_tfs_parameters()
        value = params.get(name)
        return default if value is None else value


# Create a global instance
env_manager = EnvironmentManager()
