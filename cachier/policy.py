"""Decides whether a WithPod resource should get Image cache hints."""

import logging
from enum import Enum

from .models import WithPod

logger = logging.getLogger(__name__)

ANNOTATION_KEY = "cachier.mattmoor.io/decorate"

_FORCE_ON = frozenset({"true", "on", "enable", "enabled"})
_FORCE_OFF = frozenset({"false", "off", "disable", "disabled"})


class CachePolicy(str, Enum):
    """Which rule decided caching for a resource."""

    FORCED_ON = "forced_on"
    FORCED_OFF = "forced_off"
    OWNED = "owned"
    DEFAULT = "default"

    @property
    def enabled(self) -> bool:
        return self in (CachePolicy.FORCED_ON, CachePolicy.DEFAULT)


def decide(parent: WithPod) -> CachePolicy:
    """
    Evaluate the caching policy for a resource.

    An explicit annotation always wins. Without one, resources with a
    controlling owner are left alone so that e.g. a ReplicaSet is not cached
    when its Deployment already is.
    """
    value = parent.metadata.annotations.get(ANNOTATION_KEY)
    if value is not None:
        token = value.lower()
        if token in _FORCE_ON:
            return CachePolicy.FORCED_ON
        if token in _FORCE_OFF:
            return CachePolicy.FORCED_OFF
        logger.debug(
            f"Ignoring unrecognized {ANNOTATION_KEY}={value!r} on "
            f"{parent.namespace}/{parent.name}"
        )

    if parent.metadata.get_controller_of() is not None:
        return CachePolicy.OWNED

    return CachePolicy.DEFAULT


def should_cache(parent: WithPod) -> bool:
    """Whether the resource should have Image cache hints."""
    return decide(parent).enabled
