"""Kubernetes client connection management."""

import logging
from typing import Optional

from kubernetes import client, config
from kubernetes.client import ApiClient
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.resource import Resource

from .models import GroupVersionKind

logger = logging.getLogger(__name__)


class ClusterConnection:
    """Represents the connection to the Kubernetes API server."""

    def __init__(
        self,
        kubeconfig_path: Optional[str] = None,
        context: Optional[str] = None,
        master_url: Optional[str] = None,
    ):
        """
        Initialize cluster connection.

        Args:
            kubeconfig_path: Path to a kubeconfig; in-cluster config is used
                when not given
            context: Kubeconfig context to use
            master_url: API server address, overriding the kubeconfig

        Raises:
            ValueError: If the client configuration cannot be loaded
        """
        self.kubeconfig_path = kubeconfig_path
        self.context = context
        self.master_url = master_url
        self._api_client: Optional[ApiClient] = None
        self._dynamic: Optional[DynamicClient] = None

        self._initialize_client()

    def _initialize_client(self):
        """Initialize Kubernetes API client."""
        configuration = client.Configuration()
        try:
            if self.kubeconfig_path:
                config.load_kube_config(
                    config_file=self.kubeconfig_path,
                    context=self.context,
                    client_configuration=configuration,
                )
            else:
                # Running inside the cluster
                config.load_incluster_config(client_configuration=configuration)
        except Exception as e:
            raise ValueError(f"Failed to initialize cluster connection: {e}") from e

        if self.master_url:
            configuration.host = self.master_url

        self._api_client = ApiClient(configuration)
        self._dynamic = DynamicClient(self._api_client)
        logger.info(f"Connected to Kubernetes API at {configuration.host}")

    @property
    def dynamic(self) -> DynamicClient:
        """Get DynamicClient instance."""
        if not self._dynamic:
            raise RuntimeError("Cluster connection not initialized")
        return self._dynamic

    def resource_for(self, gvk: GroupVersionKind) -> Resource:
        """
        Discover the API resource serving a kind.

        Args:
            gvk: Group, version and kind

        Returns:
            Dynamic client Resource

        Raises:
            kubernetes.dynamic.exceptions.ResourceNotFoundError: If the
                server does not serve the kind
        """
        return self.dynamic.resources.get(api_version=gvk.api_version, kind=gvk.kind)

    def close(self):
        """Close the cluster connection."""
        if self._api_client:
            self._api_client.close()
            self._api_client = None
        self._dynamic = None

