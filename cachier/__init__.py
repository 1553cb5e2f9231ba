"""cachier - Image cache hints for resources that embed a pod template."""

from .controller import Controller, filter_controlled_by, new_controller
from .exceptions import CachierError, DecodeError, InvalidKeyError, InvalidKindError
from .keys import meta_namespace_key, split_meta_namespace_key
from .labels import (
    LabelSelector,
    make_generation_label_selector,
    make_generation_labels,
    make_old_generation_label_selector,
)
from .models import (
    IMAGE_GVK,
    Container,
    GroupVersionKind,
    Image,
    ImageSpec,
    ObjectMeta,
    OwnerReference,
    WatchEvent,
    WithPod,
    parse_kind_arg,
)
from .policy import ANNOTATION_KEY, CachePolicy, decide, should_cache
from .reconciler import Reconciler
from .resources import make_images
from .store import ImageClient, ParentLister
from .watch import ResourceWatcher
from .workqueue import WorkQueue

__version__ = "0.1.0"

__all__ = [
    # Reconciliation
    "Reconciler",
    "make_images",
    "should_cache",
    "decide",
    "CachePolicy",
    "ANNOTATION_KEY",
    # Labels
    "LabelSelector",
    "make_generation_labels",
    "make_generation_label_selector",
    "make_old_generation_label_selector",
    # Controller wiring
    "Controller",
    "new_controller",
    "filter_controlled_by",
    "ResourceWatcher",
    "WorkQueue",
    "meta_namespace_key",
    "split_meta_namespace_key",
    # Store
    "ParentLister",
    "ImageClient",
    # Models
    "GroupVersionKind",
    "IMAGE_GVK",
    "parse_kind_arg",
    "ObjectMeta",
    "OwnerReference",
    "Container",
    "WithPod",
    "Image",
    "ImageSpec",
    "WatchEvent",
    # Errors
    "CachierError",
    "DecodeError",
    "InvalidKeyError",
    "InvalidKindError",
]
