"""Reconciles the Image cache hints of WithPod resources."""

import logging

from .exceptions import DecodeError, InvalidKeyError
from .keys import split_meta_namespace_key
from .labels import make_generation_label_selector, make_old_generation_label_selector
from .models import WithPod
from .policy import decide
from .resources import make_images
from .store import ImageClient, ParentLister

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Keeps one Image per distinct container image for each parent resource.

    Reconciliation is level-triggered: every call re-reads the parent and its
    Images, so repeated or redundant calls are safe. Errors from the API
    server propagate so the caller can requeue; problems that retrying
    cannot fix (malformed keys, deleted parents, undecodable objects) are
    logged and treated as done.
    """

    def __init__(self, lister: ParentLister, images: ImageClient, kind: str = ""):
        """
        Initialize reconciler.

        Args:
            lister: Reads the parent resources
            images: Manages Image resources
            kind: Parent kind, used in log messages
        """
        self.lister = lister
        self.images = images
        self.kind = kind

    def reconcile(self, key: str) -> None:
        """
        Reconcile the parent resource identified by a work queue key.

        Args:
            key: ``namespace/name`` of the parent

        Raises:
            ApiException: If reading or writing resources fails
        """
        try:
            namespace, name = split_meta_namespace_key(key)
        except InvalidKeyError:
            logger.error(f"invalid resource key: {key}")
            return

        obj = self.lister.get(namespace, name)
        if obj is None:
            logger.info(f"{self.kind} {key!r} in work queue no longer exists")
            return

        try:
            parent = WithPod.from_object(obj)
        except DecodeError as e:
            logger.error(f"Dropping {self.kind} {key!r}: {e}")
            return

        policy = decide(parent)
        if policy.enabled:
            self.reconcile_missing_images(parent)
        else:
            logger.debug(f"Caching disabled for {key} ({policy.value})")
            self.images.delete_collection(
                parent.namespace, make_generation_label_selector(parent)
            )

        # Older generations are collected whichever branch ran above.
        self.images.delete_collection(
            parent.namespace, make_old_generation_label_selector(parent)
        )

    def reconcile_missing_images(self, parent: WithPod) -> None:
        """
        Create the Images the parent's current generation is missing.

        Raises:
            ApiException: If listing Images or any create fails
        """
        try:
            got = self.images.list(
                parent.namespace, make_generation_label_selector(parent)
            )
        except DecodeError as e:
            logger.error(f"Dropping {parent.namespace}/{parent.name}: {e}")
            return

        want = make_images(parent)

        for img in got:
            if img.spec.image in want:
                del want[img.spec.image]
                continue
            logger.warning(
                f"Got unexpected Image {img.metadata.namespace}/{img.metadata.name}: "
                f"{img.spec.image}"
            )

        if not want:
            return

        # Sorted so that creates happen in a reproducible order.
        for image in sorted(want):
            self.images.create(want[image])
