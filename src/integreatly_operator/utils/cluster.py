"""
Read and write access to cluster resources, one accessor per resource kind.

Every resource is handled as a plain dict body, the same shape kopf hands to
handlers, regardless of whether the kind is served by the core API or by a
custom resource definition. Handlers depend only on the ``ResourceAccessor``
protocol, so tests can substitute an in-memory cluster.

Reads are side-effect free: ``get`` returns ``None`` for a missing resource
and raises ``KubernetesAPIError`` for any other failure. The Kubernetes client
is synchronous, so every request runs in a worker thread via
``asyncio.to_thread``.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from integreatly_operator.constants import (
    API_GROUP,
    API_VERSION,
    INSTALLATION_KIND,
    INSTALLATION_PLURAL,
)
from integreatly_operator.errors import KubernetesAPIError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceKind:
    """Identifies one API resource kind."""

    kind: str
    plural: str
    group: str = ""
    version: str = "v1"
    namespaced: bool = True

    @property
    def group_resource(self) -> str:
        """Resource name as the API server spells it in error messages."""
        return f"{self.plural}.{self.group}" if self.group else self.plural

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


NAMESPACE = ResourceKind("Namespace", "namespaces", namespaced=False)
SECRET = ResourceKind("Secret", "secrets")
CONFIG_MAP = ResourceKind("ConfigMap", "configmaps")
ROUTE = ResourceKind("Route", "routes", "route.openshift.io")
SUBSCRIPTION = ResourceKind(
    "Subscription", "subscriptions", "operators.coreos.com", "v1alpha1"
)
INSTALL_PLAN = ResourceKind(
    "InstallPlan", "installplans", "operators.coreos.com", "v1alpha1"
)
OPERATOR_GROUP = ResourceKind("OperatorGroup", "operatorgroups", "operators.coreos.com")
APPLICATION_MONITORING = ResourceKind(
    "ApplicationMonitoring",
    "applicationmonitorings",
    "applicationmonitoring.integreatly.org",
    "v1alpha1",
)
KAFKA = ResourceKind("Kafka", "kafkas", "kafka.strimzi.io", "v1beta2")
CHE_CLUSTER = ResourceKind("CheCluster", "checlusters", "org.eclipse.che")
INSTALLATION = ResourceKind(INSTALLATION_KIND, INSTALLATION_PLURAL, API_GROUP, API_VERSION)

# CoreV1Api method suffix per core resource
_CORE_RESOURCES = {
    "namespaces": "namespace",
    "secrets": "secret",
    "configmaps": "config_map",
}


def not_found_message(kind: ResourceKind, name: str) -> str:
    """Render the API server's wording for a missing resource."""
    return f'{kind.group_resource} "{name}" not found'


class ResourceAccessor(Protocol):
    """Capability interface for one resource kind."""

    kind: ResourceKind

    async def get(self, name: str, namespace: str | None = None) -> dict | None: ...

    async def list(
        self, namespace: str | None = None, label_selector: str | None = None
    ) -> list[dict]: ...

    async def create(self, body: dict, namespace: str | None = None) -> dict: ...

    async def replace(
        self, name: str, body: dict, namespace: str | None = None
    ) -> dict: ...


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    This function handles both in-cluster and local development configurations.

    Returns:
        Configured Kubernetes API client
    """
    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


class _ApiAccessor:
    """Shared error translation for accessors backed by the Kubernetes client."""

    def __init__(
        self,
        kind: ResourceKind,
        api_client: client.ApiClient,
        request_timeout: float | None = None,
    ):
        self.kind = kind
        self.api_client = api_client
        self.request_timeout = request_timeout

    def _api_error(
        self, e: ApiException, verb: str, name: str, namespace: str | None
    ) -> KubernetesAPIError:
        location = f"{namespace}/{name}" if namespace else name
        return KubernetesAPIError(
            f"failed to {verb} {self.kind.group_resource} {location}: {e.reason}",
            reason=e.reason,
            status=e.status,
            cause=e,
        )

    def _to_dict(self, obj: Any) -> dict:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    async def get(self, name: str, namespace: str | None = None) -> dict | None:
        try:
            obj = await asyncio.to_thread(self._read, name, namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise self._api_error(e, "get", name, namespace) from e
        return self._to_dict(obj)

    async def list(
        self, namespace: str | None = None, label_selector: str | None = None
    ) -> list[dict]:
        try:
            items = await asyncio.to_thread(self._list, namespace, label_selector)
        except ApiException as e:
            raise self._api_error(e, "list", "", namespace) from e
        return [self._to_dict(item) for item in items]

    async def create(self, body: dict, namespace: str | None = None) -> dict:
        name = body.get("metadata", {}).get("name", "")
        try:
            obj = await asyncio.to_thread(self._create, body, namespace)
        except ApiException as e:
            raise self._api_error(e, "create", name, namespace) from e
        logger.debug(f"Created {self.kind.kind} {name}", extra={"kind": self.kind.kind})
        return self._to_dict(obj)

    async def replace(
        self, name: str, body: dict, namespace: str | None = None
    ) -> dict:
        try:
            obj = await asyncio.to_thread(self._replace, name, body, namespace)
        except ApiException as e:
            raise self._api_error(e, "update", name, namespace) from e
        logger.debug(f"Updated {self.kind.kind} {name}", extra={"kind": self.kind.kind})
        return self._to_dict(obj)

    def _read(self, name, namespace):
        raise NotImplementedError

    def _list(self, namespace, label_selector):
        raise NotImplementedError

    def _create(self, body, namespace):
        raise NotImplementedError

    def _replace(self, name, body, namespace):
        raise NotImplementedError


class CoreResourceAccessor(_ApiAccessor):
    """Accessor for namespaces, secrets and config maps via CoreV1Api."""

    def __init__(
        self,
        kind: ResourceKind,
        api_client: client.ApiClient,
        request_timeout: float | None = None,
        core_api: client.CoreV1Api | None = None,
    ):
        super().__init__(kind, api_client, request_timeout)
        self.core_api = core_api or client.CoreV1Api(api_client)
        self._resource = _CORE_RESOURCES[kind.plural]

    def _method(self, verb: str):
        scope = "namespaced_" if self.kind.namespaced else ""
        return getattr(self.core_api, f"{verb}_{scope}{self._resource}")

    def _scoped(self, namespace: str | None, **kwargs) -> dict:
        if self.kind.namespaced:
            kwargs["namespace"] = namespace
        kwargs["_request_timeout"] = self.request_timeout
        return kwargs

    def _read(self, name, namespace):
        return self._method("read")(**self._scoped(namespace, name=name))

    def _list(self, namespace, label_selector):
        result = self._method("list")(
            **self._scoped(namespace, label_selector=label_selector or "")
        )
        return result.items or []

    def _create(self, body, namespace):
        return self._method("create")(**self._scoped(namespace, body=body))

    def _replace(self, name, body, namespace):
        return self._method("replace")(**self._scoped(namespace, name=name, body=body))


class CustomObjectAccessor(_ApiAccessor):
    """Accessor for custom resources via CustomObjectsApi."""

    def __init__(
        self,
        kind: ResourceKind,
        api_client: client.ApiClient,
        request_timeout: float | None = None,
        custom_api: client.CustomObjectsApi | None = None,
    ):
        super().__init__(kind, api_client, request_timeout)
        self.custom_api = custom_api or client.CustomObjectsApi(api_client)

    def _coordinates(self, namespace: str | None) -> dict:
        coordinates = {
            "group": self.kind.group,
            "version": self.kind.version,
            "plural": self.kind.plural,
            "_request_timeout": self.request_timeout,
        }
        if self.kind.namespaced:
            coordinates["namespace"] = namespace
        return coordinates

    def _read(self, name, namespace):
        if self.kind.namespaced:
            return self.custom_api.get_namespaced_custom_object(
                name=name, **self._coordinates(namespace)
            )
        return self.custom_api.get_cluster_custom_object(
            name=name, **self._coordinates(namespace)
        )

    def _list(self, namespace, label_selector):
        if self.kind.namespaced:
            result = self.custom_api.list_namespaced_custom_object(
                label_selector=label_selector or "", **self._coordinates(namespace)
            )
        else:
            result = self.custom_api.list_cluster_custom_object(
                label_selector=label_selector or "", **self._coordinates(namespace)
            )
        return result.get("items", [])

    def _create(self, body, namespace):
        body = {"apiVersion": self.kind.api_version, "kind": self.kind.kind, **body}
        if self.kind.namespaced:
            return self.custom_api.create_namespaced_custom_object(
                body=body, **self._coordinates(namespace)
            )
        return self.custom_api.create_cluster_custom_object(
            body=body, **self._coordinates(namespace)
        )

    def _replace(self, name, body, namespace):
        if self.kind.namespaced:
            return self.custom_api.replace_namespaced_custom_object(
                name=name, body=body, **self._coordinates(namespace)
            )
        return self.custom_api.replace_cluster_custom_object(
            name=name, body=body, **self._coordinates(namespace)
        )


class ClusterClient:
    """Hands out one accessor per resource kind over a shared API client."""

    def __init__(
        self,
        api_client: client.ApiClient | None = None,
        request_timeout: float | None = None,
    ):
        self._api_client = api_client
        self.request_timeout = request_timeout
        self._accessors: dict[ResourceKind, ResourceAccessor] = {}

    @property
    def api_client(self) -> client.ApiClient:
        """Get or create Kubernetes API client."""
        if self._api_client is None:
            self._api_client = get_kubernetes_client()
        return self._api_client

    def for_kind(self, kind: ResourceKind) -> ResourceAccessor:
        accessor = self._accessors.get(kind)
        if accessor is None:
            if not kind.group and kind.plural in _CORE_RESOURCES:
                accessor = CoreResourceAccessor(
                    kind, self.api_client, self.request_timeout
                )
            else:
                accessor = CustomObjectAccessor(
                    kind, self.api_client, self.request_timeout
                )
            self._accessors[kind] = accessor
        return accessor

    @property
    def namespaces(self) -> ResourceAccessor:
        return self.for_kind(NAMESPACE)

    @property
    def secrets(self) -> ResourceAccessor:
        return self.for_kind(SECRET)

    @property
    def config_maps(self) -> ResourceAccessor:
        return self.for_kind(CONFIG_MAP)

    @property
    def routes(self) -> ResourceAccessor:
        return self.for_kind(ROUTE)


def decode_secret_field(data: dict[str, str], key: str) -> str:
    """
    Decode one base64 value of a secret's ``data`` map as UTF-8 text.

    Returns an empty string for an absent key.

    Raises:
        binascii.Error: If the value is not valid base64
        UnicodeDecodeError: If the value is binary
    """
    value = data.get(key)
    if not value:
        return ""
    return base64.b64decode(value).decode("utf-8")


def decode_secret_data(secret: dict) -> dict[str, str]:
    """Decode every value of the ``data`` map of a secret body."""
    data = secret.get("data") or {}
    return {key: decode_secret_field(data, key) for key in data}


def encode_secret_data(data: dict[str, bytes | str]) -> dict[str, str]:
    """Encode values for the ``data`` map of a secret body."""
    encoded = {}
    for key, value in data.items():
        raw = value if isinstance(value, bytes) else value.encode("utf-8")
        encoded[key] = base64.b64encode(raw).decode("ascii")
    return encoded
