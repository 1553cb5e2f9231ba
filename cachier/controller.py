"""Controller wiring: event routing and the reconcile worker pool."""

import asyncio
import logging
from typing import Any, Callable, Optional, Union

from .cluster import ClusterConnection
from .config import Settings
from .keys import meta_namespace_key
from .models import GroupVersionKind, ObjectMeta, WatchEvent
from .reconciler import Reconciler
from .store import DynamicImageClient, DynamicParentLister
from .watch import ADDED, MODIFIED, ResourceWatcher
from .workqueue import ShutDown, WorkQueue

logger = logging.getLogger(__name__)

CONTROLLER_AGENT_NAME = "cachier-controller"


def _metadata(obj: Union[WatchEvent, dict[str, Any]]) -> ObjectMeta:
    if isinstance(obj, WatchEvent):
        obj = obj.object
    return ObjectMeta.model_validate(obj.get("metadata") or {})


def filter_controlled_by(gvk: GroupVersionKind) -> Callable[[WatchEvent], bool]:
    """
    Build a filter passing objects whose controller is of the given kind.

    Args:
        gvk: Kind of the controlling owner

    Returns:
        Filter function for ResourceWatcher handlers
    """

    def _filter(event: WatchEvent) -> bool:
        owner = _metadata(event).get_controller_of()
        if owner is None:
            return False
        return owner.api_version == gvk.api_version and owner.kind == gvk.kind

    return _filter


class Controller:
    """
    Runs a Reconciler over a de-duplicating work queue.

    At most one reconcile per key is in flight at any time; different keys
    are reconciled concurrently by ``threadiness`` workers, each running the
    blocking reconcile in a thread. Failed keys are requeued with backoff.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        name: str,
        workqueue: Optional[WorkQueue] = None,
    ):
        """
        Initialize controller.

        Args:
            reconciler: Reconciler invoked for each key
            name: Name used in log messages
            workqueue: Work queue (a default one is created if not provided)
        """
        self.reconciler = reconciler
        self.name = name
        self.workqueue = workqueue or WorkQueue()
        self.informer: Optional[ResourceWatcher] = None
        try:
            self._loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    def enqueue_key(self, key: str) -> None:
        """
        Queue a key for reconciliation. Safe to call from any thread.

        Args:
            key: ``namespace/name`` key
        """
        if self._loop is None:
            self.workqueue.add(key)
        else:
            self._loop.call_soon_threadsafe(self.workqueue.add, key)

    def enqueue(self, obj: Union[WatchEvent, dict[str, Any]]) -> None:
        """Queue an object's own key."""
        self.enqueue_key(meta_namespace_key(_metadata(obj)))

    def enqueue_controller_of(self, obj: Union[WatchEvent, dict[str, Any]]) -> None:
        """Queue the key of the object's controlling owner, if it has one."""
        metadata = _metadata(obj)
        owner = metadata.get_controller_of()
        if owner is None:
            return
        self.enqueue_key(
            meta_namespace_key(ObjectMeta(namespace=metadata.namespace, name=owner.name))
        )

    async def run(self, threadiness: int, stop_event: asyncio.Event) -> None:
        """
        Process keys until the stop event is set.

        Args:
            threadiness: Number of concurrent workers
            stop_event: Shutdown signal
        """
        self._loop = asyncio.get_running_loop()
        logger.info(f"Starting {self.name} with {threadiness} workers")
        workers = [asyncio.create_task(self._worker()) for _ in range(threadiness)]
        try:
            await stop_event.wait()
        finally:
            logger.info(f"Shutting down {self.name} workers")
            self.workqueue.shut_down()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(self) -> None:
        while True:
            try:
                key = await self.workqueue.get()
            except ShutDown:
                return
            await self.process_work_item(key)

    async def process_work_item(self, key: str) -> None:
        """
        Reconcile one key taken from the work queue.

        Args:
            key: Key returned by WorkQueue.get
        """
        try:
            await asyncio.to_thread(self.reconciler.reconcile, key)
        except Exception as e:
            logger.error(
                f"Error reconciling {self.name} {key!r} "
                f"(requeue #{self.workqueue.num_requeues(key) + 1}): {e}",
                exc_info=True,
            )
            self.workqueue.add_rate_limited(key)
        else:
            self.workqueue.forget(key)
            logger.debug(f"Reconciled {self.name} {key!r}")
        finally:
            self.workqueue.done(key)


def new_controller(
    cluster: ClusterConnection,
    gvk: GroupVersionKind,
    image_watcher: ResourceWatcher,
    settings: Settings,
) -> Controller:
    """
    Build the controller for one kind of parent resource.

    Args:
        cluster: Cluster connection
        gvk: Kind of parent to reconcile
        image_watcher: Shared watcher over Image resources
        settings: Controller settings

    Returns:
        Controller whose ``informer`` watches the parent kind
    """
    reconciler = Reconciler(
        lister=DynamicParentLister(cluster, gvk),
        images=DynamicImageClient(cluster),
        kind=gvk.kind,
    )
    impl = Controller(
        reconciler,
        name=f"{CONTROLLER_AGENT_NAME}[{gvk}]",
        workqueue=WorkQueue(
            base_delay=settings.requeue_base_delay_seconds,
            max_delay=settings.requeue_max_delay_seconds,
        ),
    )

    logger.info(f"Setting up event handlers for {gvk}")

    # Changes to the parent kind queue the parent itself.
    informer = ResourceWatcher(
        cluster,
        gvk,
        resync_period=settings.resync_period_seconds,
        timeout_seconds=settings.watch_timeout_seconds,
    )
    informer.register_handler(
        impl.enqueue,
        filter_func=lambda event: event.event_type in (ADDED, MODIFIED),
    )
    impl.informer = informer

    # Changes to an Image controlled by this kind queue its owner.
    image_watcher.register_handler(
        impl.enqueue_controller_of,
        filter_func=filter_controlled_by(gvk),
    )

    return impl
