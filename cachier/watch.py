"""Kubernetes list/watch event source."""

import logging
import threading
import time
from typing import Any, Callable, Optional

from kubernetes import watch as k8s_watch
from kubernetes.client.exceptions import ApiException

from .cluster import ClusterConnection
from .keys import meta_namespace_key
from .models import GroupVersionKind, WatchEvent

logger = logging.getLogger(__name__)

Handler = Callable[[WatchEvent], None]
FilterFunc = Callable[[WatchEvent], bool]

ADDED = "ADDED"
MODIFIED = "MODIFIED"
DELETED = "DELETED"


class ResourceWatcher:
    """
    Watches one kind of resource and fans events out to handlers.

    Lists everything first, then watches from the list's resourceVersion.
    The stream is re-listed when the server reports the version as expired
    (410 Gone) and every resync period, re-emitting each object as MODIFIED
    and emitting DELETED for objects that disappeared in between.
    """

    def __init__(
        self,
        cluster: ClusterConnection,
        gvk: GroupVersionKind,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
        resync_period: float = 36000,
        timeout_seconds: int = 300,
        retry_delay: float = 1.0,
    ):
        """
        Initialize resource watcher.

        Args:
            cluster: Cluster connection
            gvk: Kind of resource to watch
            namespace: Namespace to watch (None for all namespaces)
            label_selector: Label selector string (e.g., "app=cachier")
            resync_period: Seconds between full re-lists
            timeout_seconds: Server-side timeout of each watch request
            retry_delay: Seconds to pause before re-listing after a failure
        """
        self.cluster = cluster
        self.gvk = gvk
        self.namespace = namespace
        self.label_selector = label_selector
        self.resync_period = resync_period
        self.timeout_seconds = timeout_seconds
        self.retry_delay = retry_delay
        self.resource = cluster.resource_for(gvk)
        self._watch = k8s_watch.Watch()
        self._handlers: list[tuple[Optional[FilterFunc], Handler]] = []
        self._known: dict[str, dict[str, Any]] = {}
        self._stopped = threading.Event()
        self._synced = threading.Event()

    def register_handler(self, handler: Handler, filter_func: Optional[FilterFunc] = None) -> None:
        """
        Register a handler for watch events.

        Args:
            handler: Callback that takes a WatchEvent
            filter_func: Only events it returns True for reach the handler
        """
        self._handlers.append((filter_func, handler))

    @property
    def has_synced(self) -> bool:
        """Whether the initial list has been delivered."""
        return self._synced.is_set()

    def wait_for_sync(self, timeout: Optional[float] = None) -> bool:
        """Block until the initial list has been delivered."""
        return self._synced.wait(timeout)

    def _emit_event(self, event_type: str, obj: dict[str, Any]) -> None:
        """
        Emit a watch event to registered handlers.

        Args:
            event_type: ADDED, MODIFIED or DELETED
            obj: The object as a dict
        """
        metadata = obj.get("metadata") or {}
        obj.setdefault("apiVersion", self.gvk.api_version)
        obj.setdefault("kind", self.gvk.kind)
        event = WatchEvent(
            event_type=event_type,
            kind=self.gvk.kind,
            name=metadata.get("name") or "",
            namespace=metadata.get("namespace") or "",
            object=obj,
        )
        for filter_func, handler in self._handlers:
            try:
                if filter_func is not None and not filter_func(event):
                    continue
                handler(event)
            except Exception as e:
                logger.error(f"Error in watch event handler: {e}", exc_info=True)

    def _list(self, resync: bool) -> str:
        """
        List all objects and emit them.

        Returns:
            resourceVersion to start watching from
        """
        result = self.cluster.dynamic.get(
            self.resource,
            namespace=self.namespace,
            label_selector=self.label_selector,
        ).to_dict()

        seen: dict[str, dict[str, Any]] = {}
        for obj in result.get("items") or []:
            key = meta_namespace_key(obj.get("metadata") or {})
            seen[key] = obj
            self._emit_event(MODIFIED if resync or key in self._known else ADDED, obj)

        for key, obj in self._known.items():
            if key not in seen:
                self._emit_event(DELETED, obj)
        self._known = seen

        return (result.get("metadata") or {}).get("resourceVersion") or ""

    def _stream(self, resource_version: str) -> Optional[str]:
        """
        Watch until the request times out.

        Returns:
            The last resourceVersion seen, or None if a re-list is needed
        """
        for event in self.cluster.dynamic.watch(
            self.resource,
            namespace=self.namespace,
            label_selector=self.label_selector,
            resource_version=resource_version,
            timeout=self.timeout_seconds,
            watcher=self._watch,
        ):
            if self._stopped.is_set():
                break
            obj = event["raw_object"]
            if event["type"] == "ERROR":
                if obj.get("code") == 410:
                    logger.warning(f"Watch on {self.gvk} expired, re-listing...")
                    return None
                logger.error(f"Watch on {self.gvk} returned error: {obj}")
                continue

            metadata = obj.get("metadata") or {}
            resource_version = metadata.get("resourceVersion") or resource_version
            key = meta_namespace_key(metadata)
            if event["type"] == DELETED:
                self._known.pop(key, None)
            else:
                self._known[key] = obj
            self._emit_event(event["type"], obj)
        return resource_version

    def run(self) -> None:
        """List and watch until stop() is called. Blocks the calling thread."""
        logger.info(f"Starting watch on {self.gvk} in namespace {self.namespace or '*'}")
        resource_version: Optional[str] = None
        last_list = 0.0
        while not self._stopped.is_set():
            try:
                if resource_version is None or time.monotonic() - last_list >= self.resync_period:
                    resource_version = self._list(resync=last_list > 0)
                    last_list = time.monotonic()
                    self._synced.set()
                resource_version = self._stream(resource_version)
            except ApiException as e:
                if e.status == 410:
                    logger.warning(f"Watch on {self.gvk} expired, re-listing...")
                    resource_version = None
                    continue
                logger.error(f"Error watching {self.gvk}: {e}", exc_info=True)
            except Exception as e:
                # Connection resets surface as urllib3 errors, not ApiException
                logger.error(f"Watch on {self.gvk} failed: {e}", exc_info=True)
            else:
                continue
            if self._stopped.wait(self.retry_delay):
                break
            resource_version = None

    def stop(self) -> None:
        """Stop watching."""
        self._stopped.set()
        self._watch.stop()
