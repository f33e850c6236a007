"""
Per-product configuration store.

Each product keeps a flat string-to-string mapping (its namespaces and any
values templated into its resources). All mappings live in one ConfigMap in
the operator namespace, one data key per product holding a YAML document.
"""

import logging
from collections.abc import Iterator

import yaml

from .constants import CONFIG_KEY_NAMESPACE, CONFIG_KEY_OPERATOR_NAMESPACE
from .errors import ConfigurationError, KubernetesAPIError
from .utils.cluster import ClusterClient

logger = logging.getLogger(__name__)


class ProductConfig:
    """Configuration values for one product. Values are always strings."""

    def __init__(self, product: str, values: dict[str, str] | None = None):
        self.product = product
        self._values = {k: str(v) for k, v in (values or {}).items()}
        self.changed = False

    def get(self, key: str, default: str = "") -> str:
        return self._values.get(key, default)

    def set(self, key: str, value: str) -> None:
        value = str(value)
        if self._values.get(key) != value:
            self._values[key] = value
            self.changed = True

    def set_default(self, key: str, value: str) -> None:
        """Set a value only when the key is missing or empty."""
        if not self._values.get(key):
            self.set(key, value)

    @property
    def namespace(self) -> str:
        return self.get(CONFIG_KEY_NAMESPACE)

    @namespace.setter
    def namespace(self, value: str) -> None:
        self.set(CONFIG_KEY_NAMESPACE, value)

    @property
    def operator_namespace(self) -> str:
        return self.get(CONFIG_KEY_OPERATOR_NAMESPACE)

    @operator_namespace.setter
    def operator_namespace(self, value: str) -> None:
        self.set(CONFIG_KEY_OPERATOR_NAMESPACE, value)

    def to_dict(self) -> dict[str, str]:
        return dict(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"ProductConfig({self.product!r}, {self._values!r})"


class ConfigManager:
    """Reads and writes product configs held in a single ConfigMap."""

    def __init__(self, cluster: ClusterClient, namespace: str, name: str):
        """
        Initialize config manager.

        Args:
            cluster: Cluster client
            namespace: Namespace of the ConfigMap (the operator namespace)
            name: Name of the ConfigMap
        """
        self.cluster = cluster
        self.namespace = namespace
        self.name = name

    async def read_config(self) -> dict[str, ProductConfig]:
        """
        Read the configs of all products.

        A missing ConfigMap reads as an empty store.

        Raises:
            ConfigurationError: If the ConfigMap cannot be read or parsed
        """
        try:
            config_map = await self.cluster.config_maps.get(self.name, self.namespace)
        except KubernetesAPIError as e:
            raise ConfigurationError(
                f"could not read product config {self.namespace}/{self.name}: {e}",
                cause=e,
            ) from e

        if config_map is None:
            logger.debug(f"Config map {self.namespace}/{self.name} not found")
            return {}

        configs = {}
        for product, document in (config_map.get("data") or {}).items():
            try:
                values = yaml.safe_load(document) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"invalid config for product {product}: {e}", cause=e
                ) from e
            if not isinstance(values, dict):
                raise ConfigurationError(
                    f"invalid config for product {product}: expected a mapping"
                )
            configs[product] = ProductConfig(product, values)
        return configs

    async def write_config(self, product_config: ProductConfig) -> None:
        """
        Persist one product's config, leaving other products untouched.

        Raises:
            KubernetesAPIError: If the ConfigMap cannot be read or written
        """
        document = yaml.safe_dump(
            product_config.to_dict(), default_flow_style=False, sort_keys=True
        )
        accessor = self.cluster.config_maps
        config_map = await accessor.get(self.name, self.namespace)

        if config_map is None:
            body = {
                "apiVersion": "v1",
                "kind": "ConfigMap",
                "metadata": {"name": self.name, "namespace": self.namespace},
                "data": {product_config.product: document},
            }
            await accessor.create(body, self.namespace)
        else:
            data = config_map.get("data") or {}
            data[product_config.product] = document
            config_map["data"] = data
            await accessor.replace(self.name, config_map, self.namespace)

        product_config.changed = False
        logger.info(
            f"Wrote config for product {product_config.product}",
            extra={"product": product_config.product},
        )
