"""In-memory stand-in for the API server."""

import copy
from typing import Any, Optional

from cachier.keys import meta_namespace_key
from cachier.labels import LabelSelector
from cachier.models import Image
from cachier.store import ImageClient, ParentLister


class FakeStore(ParentLister, ImageClient):
    """Holds parents and Images in memory and records every call."""

    def __init__(self):
        self.parents: dict[str, dict[str, Any]] = {}
        self.images: dict[str, Image] = {}
        self.calls: list[tuple] = []
        self._errors: dict[str, list[Optional[Exception]]] = {}
        self._counter = 0

    def add_parent(self, obj: dict[str, Any]) -> None:
        self.parents[meta_namespace_key(obj["metadata"])] = copy.deepcopy(obj)

    def add_image(self, image: Image) -> Image:
        self._counter += 1
        stored = image.model_copy(deep=True)
        if not stored.metadata.name:
            stored.metadata.name = f"{stored.metadata.generate_name}{self._counter:05d}"
        stored.metadata.uid = f"uid-{self._counter}"
        self.images[meta_namespace_key(stored.metadata)] = stored
        return stored

    def fail(self, verb: str, *errors: Optional[Exception]) -> None:
        """Queue outcomes for upcoming calls of a verb; None lets a call succeed."""
        self._errors.setdefault(verb, []).extend(errors)

    def _maybe_fail(self, verb: str) -> None:
        pending = self._errors.get(verb)
        if pending:
            error = pending.pop(0)
            if error is not None:
                raise error

    # Helpers annotated with builtins sit above the `list` method that shadows it.
    def created_images(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "create"]

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {key: img.to_object() for key, img in self.images.items()}

    def get(self, namespace: str, name: str) -> Optional[dict[str, Any]]:
        self.calls.append(("get", namespace, name))
        self._maybe_fail("get")
        obj = self.parents.get(f"{namespace}/{name}" if namespace else name)
        return copy.deepcopy(obj)

    def list(self, namespace: str, selector: LabelSelector) -> list[Image]:
        self.calls.append(("list", namespace, str(selector)))
        self._maybe_fail("list")
        return [
            img.model_copy(deep=True)
            for _, img in sorted(self.images.items())
            if img.metadata.namespace == namespace and selector.matches(img.metadata.labels)
        ]

    def create(self, image: Image) -> Image:
        self.calls.append(("create", image.spec.image))
        self._maybe_fail("create")
        return self.add_image(image)

    def delete_collection(self, namespace: str, selector: LabelSelector) -> None:
        self.calls.append(("delete_collection", namespace, str(selector)))
        self._maybe_fail("delete_collection")
        for key, img in list(self.images.items()):
            if img.metadata.namespace == namespace and selector.matches(img.metadata.labels):
                del self.images[key]
