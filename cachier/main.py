"""Cachier controller main application."""

import asyncio
import logging
import signal
import threading
from typing import Optional, Sequence

from cachier import __version__
from cachier.cluster import ClusterConnection
from cachier.config import Settings
from cachier.controller import Controller, new_controller
from cachier.models import IMAGE_GVK
from cachier.watch import ResourceWatcher

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure process-wide logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


class Application:
    """Main application orchestrator."""

    def __init__(self, settings: Settings):
        """
        Initialize application.

        Args:
            settings: Application settings
        """
        self.settings = settings
        self.cluster: Optional[ClusterConnection] = None
        self.image_watcher: Optional[ResourceWatcher] = None
        self.controllers: list[Controller] = []
        self._stop = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    def _start_watcher(self, watcher: ResourceWatcher) -> None:
        # Daemon threads: a blocked watch request must not hold up exit.
        thread = threading.Thread(
            target=watcher.run,
            name=f"watch-{watcher.gvk.kind}",
            daemon=True,
        )
        thread.start()

    async def start(self) -> None:
        """Start the application and run until a shutdown signal."""
        logger.info("Starting cachier controller...")
        logger.info(f"   Version: {__version__}")
        logger.info(f"   Resources: {', '.join(self.settings.resources)}")

        kinds = self.settings.kinds
        if not kinds:
            raise ValueError("No resources configured; set --resources Kind.version.group")

        self.cluster = ClusterConnection(
            kubeconfig_path=self.settings.kubeconfig_path,
            context=self.settings.context,
            master_url=self.settings.master_url,
        )

        self.image_watcher = ResourceWatcher(
            self.cluster,
            IMAGE_GVK,
            resync_period=self.settings.resync_period_seconds,
            timeout_seconds=self.settings.watch_timeout_seconds,
        )
        self.controllers = [
            new_controller(self.cluster, gvk, self.image_watcher, self.settings)
            for gvk in kinds
        ]

        self._start_watcher(self.image_watcher)

        # Wait for the Image cache to sync before starting controllers.
        logger.info("Waiting for informer caches to sync")
        while not await asyncio.to_thread(self.image_watcher.wait_for_sync, 1.0):
            if self._stop.is_set():
                return

        for controller in self.controllers:
            self._tasks.append(
                asyncio.create_task(
                    controller.run(self.settings.threads_per_controller, self._stop)
                )
            )
            self._start_watcher(controller.informer)

        logger.info("Cachier controller started")
        await self._stop.wait()

    async def stop(self) -> None:
        """Stop the application."""
        logger.info("Shutting down cachier controller...")
        self._stop.set()

        if self.image_watcher:
            self.image_watcher.stop()
        for controller in self.controllers:
            if controller.informer:
                controller.informer.stop()

        # Workers finish their in-flight reconcile before returning.
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self.cluster:
            self.cluster.close()

        logger.info("Cachier controller stopped")

    def handle_signal(self, sig: int) -> None:
        """
        Handle shutdown signals.

        Args:
            sig: Signal number
        """
        logger.info(f"Received signal {sig}, initiating shutdown...")
        self._stop.set()


async def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    settings = Settings(_cli_parse_args=list(argv) if argv is not None else True)
    setup_logging(settings.log_level)
    app = Application(settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, app.handle_signal, sig)

    try:
        await app.start()
    finally:
        await app.stop()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
