import importlib
import inspect
import logging
import pkgutil
from typing import Dict, List, Type, Set, Optional

from providers.interfaces import ProviderInterface

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Registry for provider plugins.

    This class handles the registration, discovery, and management of provider
    plugins that implement the ProviderInterface.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(PluginRegistry, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize the plugin registry"""
        self.providers: Dict[str, Type[ProviderInterface]] = {}
        self.instances: Dict[str, ProviderInterface] = {}
        self.discovered_paths: Set[str] = set()
        self.provider_kinds: Dict[str, str] = {}

    def register_provider(
        self, provider_class: Type[ProviderInterface]
    ) -> Optional[Type[ProviderInterface]]:
        """Register a provider class.

        Args:
            provider_class: A class that implements ProviderInterface

        Returns:
            The registered provider class or None if it wasn't registered

        Raises:
            TypeError: If the provided class doesn't implement ProviderInterface
        """
        if not inspect.isclass(provider_class):
            raise TypeError(f"Expected a class, got {type(provider_class)}")

        if not issubclass(provider_class, ProviderInterface):
            raise TypeError(
                f"Class {provider_class.__name__} does not implement ProviderInterface"
            )

        if inspect.isabstract(provider_class):
            logger.debug(
                f"Skipping registration of abstract class {provider_class.__name__}"
            )
            return None

        # Create a temporary instance to get the name
        try:
            temp_instance = provider_class()
            provider_name = temp_instance.name
            provider_kind = temp_instance.kind
        except Exception as e:
            logger.error(f"Error creating instance of {provider_class.__name__}: {e}")
            return None

        logger.info(
            f"Registering provider: {provider_name} ({provider_class.__name__}) [kind: {provider_kind}]"
        )
        self.providers[provider_name] = provider_class
        self.provider_kinds[provider_name] = provider_kind
        return provider_class

    def get_provider_instance(self, provider_name: str) -> Optional[ProviderInterface]:
        """Get or create an instance of a registered provider.

        Args:
            provider_name: Name of the provider to get

        Returns:
            Instance of the provider, or None if not found
        """
        registered_name = self._resolve_name(provider_name)
        if registered_name is None:
            logger.warning(f"Provider '{provider_name}' not found")
            return None

        if registered_name in self.instances:
            logger.debug(f"Found existing provider instance for '{registered_name}'")
            return self.instances[registered_name]

        logger.debug(f"Creating new instance for provider '{registered_name}'")
        try:
            instance = self.providers[registered_name]()
        except Exception as e:
            logger.error(f"Error creating instance of provider {registered_name}: {e}")
            return None

        self.instances[registered_name] = instance
        return instance

    def _resolve_name(self, provider_name: str) -> Optional[str]:
        """Resolve a provider name, falling back to a case-insensitive match"""
        if provider_name in self.providers:
            return provider_name

        for registered_name in self.providers:
            if registered_name.lower() == provider_name.lower():
                return registered_name

        return None

    def get_providers_by_kind(self, kind: str) -> List[Type[ProviderInterface]]:
        """Get all provider classes of a given kind.

        Args:
            kind: "issue_tracking" or "source_control"

        Returns:
            List of provider classes of that kind
        """
        return [
            self.providers[name]
            for name, provider_kind in self.provider_kinds.items()
            if provider_kind == kind
        ]

    def get_all_providers(self) -> List[Type[ProviderInterface]]:
        """Get all registered provider classes"""
        return list(self.providers.values())

    def discover_providers(self, package_name: str = "plugins") -> None:
        """Discover providers by recursively scanning a package.

        Args:
            package_name: Name of the package to scan for providers
        """
        logger.info(f"Discovering providers in package: {package_name}")

        try:
            package = importlib.import_module(package_name)
        except ImportError as e:
            logger.error(f"Error discovering providers in {package_name}: {e}")
            return

        package_path = getattr(package, "__path__", [])

        for _, module_name, is_pkg in pkgutil.walk_packages(package_path):
            full_name = f"{package_name}.{module_name}"

            # Skip if already processed or a test package
            if full_name in self.discovered_paths or module_name == "tests":
                continue

            self.discovered_paths.add(full_name)
            try:
                if is_pkg:
                    self.discover_providers(full_name)
                else:
                    module = importlib.import_module(full_name)
                    self._scan_module_for_providers(module)
            except Exception as e:
                logger.warning(f"Error processing module {full_name}: {e}")

    def _scan_module_for_providers(self, module) -> None:
        """Register every concrete provider class defined in a module.

        Args:
            module: The module to scan
        """
        for name, obj in inspect.getmembers(module, inspect.isclass):
            # Only classes defined in this module (not imported)
            if obj.__module__ != module.__name__:
                continue
            if not issubclass(obj, ProviderInterface) or inspect.isabstract(obj):
                continue
            if obj in self.providers.values():
                continue

            logger.debug(f"Attempting to register provider class {name} from {module.__name__}")
            self.register_provider(obj)

    def clear(self) -> None:
        """Clear all registered providers and instances"""
        self.providers.clear()
        self.instances.clear()
        self.discovered_paths.clear()
        self.provider_kinds.clear()


# Create singleton instance
registry = PluginRegistry()


def register_provider(cls=None):
    """Decorator to register a provider class with the plugin registry.

    Example:
        @register_provider
        class MyProvider(IssueTrackingProviderInterface):
            ...
    """

    def _register(cls):
        registry.register_provider(cls)
        return cls

    if cls is None:
        return _register
    return _register(cls)
