"""Access to parent resources and Image cache hints in the API server."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from kubernetes.client.exceptions import ApiException
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .cluster import ClusterConnection
from .labels import LabelSelector
from .models import IMAGE_GVK, GroupVersionKind, Image

logger = logging.getLogger(__name__)

FOREGROUND_DELETE = {
    "apiVersion": "v1",
    "kind": "DeleteOptions",
    "propagationPolicy": "Foreground",
}


def is_transient(exc: BaseException) -> bool:
    """Whether an API error is worth retrying in place."""
    if not isinstance(exc, ApiException):
        return False
    return not exc.status or exc.status == 429 or exc.status >= 500


# Reads are safe to repeat. Creates are not: with generateName a lost
# response followed by a retry would produce a second Image.
read_retry = retry(
    retry=retry_if_exception(is_transient),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class ParentLister(ABC):
    """Reads parent resources of one kind."""

    @abstractmethod
    def get(self, namespace: str, name: str) -> Optional[dict[str, Any]]:
        """
        Get a resource.

        Args:
            namespace: Kubernetes namespace (empty for cluster-scoped kinds)
            name: Resource name

        Returns:
            The stored object, or None if not found
        """


class ImageClient(ABC):
    """Lists, creates and deletes Image resources."""

    @abstractmethod
    def list(self, namespace: str, selector: LabelSelector) -> list[Image]:
        """List the Images in a namespace matching a selector."""

    @abstractmethod
    def create(self, image: Image) -> Image:
        """Create an Image and return the stored result."""

    @abstractmethod
    def delete_collection(self, namespace: str, selector: LabelSelector) -> None:
        """Delete every matching Image with foreground propagation."""


class DynamicParentLister(ParentLister):
    """ParentLister backed by the dynamic client."""

    def __init__(self, cluster: ClusterConnection, gvk: GroupVersionKind):
        """
        Initialize parent lister.

        Args:
            cluster: Cluster connection
            gvk: Kind of parent to read
        """
        self.cluster = cluster
        self.gvk = gvk
        self.resource = cluster.resource_for(gvk)

    @read_retry
    def get(self, namespace: str, name: str) -> Optional[dict[str, Any]]:
        try:
            obj = self.cluster.dynamic.get(
                self.resource, name=name, namespace=namespace or None
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        return obj.to_dict()


class DynamicImageClient(ImageClient):
    """ImageClient backed by the dynamic client."""

    def __init__(self, cluster: ClusterConnection):
        """
        Initialize Image client.

        Args:
            cluster: Cluster connection
        """
        self.cluster = cluster
        self.resource = cluster.resource_for(IMAGE_GVK)

    @read_retry
    def list(self, namespace: str, selector: LabelSelector) -> list[Image]:
        result = self.cluster.dynamic.get(
            self.resource,
            namespace=namespace,
            label_selector=str(selector),
        )
        return [Image.from_object(item) for item in result.to_dict().get("items") or []]

    def create(self, image: Image) -> Image:
        created = self.cluster.dynamic.create(
            self.resource,
            body=image.to_object(),
            namespace=image.metadata.namespace,
        )
        result = Image.from_object(created.to_dict())
        logger.info(
            f"Created Image {result.metadata.namespace}/{result.metadata.name} "
            f"for {image.spec.image}"
        )
        return result

    def delete_collection(self, namespace: str, selector: LabelSelector) -> None:
        self.cluster.dynamic.delete(
            self.resource,
            namespace=namespace,
            label_selector=str(selector),
            body=FOREGROUND_DELETE,
        )
