"""Kubernetes resource models for cachier."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    SerializerFunctionWrapHandler,
    ValidationInfo,
    field_validator,
    model_serializer,
)
from pydantic.alias_generators import to_camel

from .exceptions import DecodeError, InvalidKindError

IMAGE_GROUP = "caching.internal.knative.dev"
IMAGE_VERSION = "v1alpha1"
IMAGE_KIND = "Image"


class KubeModel(BaseModel):
    """Base for models that mirror the camelCase Kubernetes wire format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_object(self) -> dict[str, Any]:
        """Render as a Kubernetes API object body."""
        return self.model_dump(by_alias=True, exclude_none=True)


class GroupVersionKind(BaseModel):
    """Identifies a resource kind by group, version and kind."""

    model_config = ConfigDict(frozen=True)

    group: str = ""
    version: str
    kind: str

    @property
    def api_version(self) -> str:
        """Get the apiVersion string (``group/version`` or ``version``)."""
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


IMAGE_GVK = GroupVersionKind(group=IMAGE_GROUP, version=IMAGE_VERSION, kind=IMAGE_KIND)


def parse_kind_arg(value: str) -> GroupVersionKind:
    """
    Parse a ``Kind.version.group`` argument.

    The group may itself contain dots (``Deployment.v1.apps``,
    ``Service.v1alpha1.serving.knative.dev``) and may be empty for the
    core group (``Pod.v1.``).

    Raises:
        InvalidKindError: If the value does not have all three parts
    """
    parts = value.split(".", 2)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        raise InvalidKindError(f"not a valid GroupVersionKind: {value!r}")
    kind, version, group = parts
    return GroupVersionKind(group=group, version=version, kind=kind)


class OwnerReference(KubeModel):
    """Reference from a dependent object to its owner."""

    api_version: str
    kind: str
    name: str
    uid: str
    controller: Optional[bool] = None
    block_owner_deletion: Optional[bool] = None


class ObjectMeta(KubeModel):
    """Subset of Kubernetes object metadata used by the controller."""

    name: Optional[str] = None
    generate_name: Optional[str] = None
    namespace: Optional[str] = None
    uid: Optional[str] = None
    generation: Optional[int] = None
    resource_version: Optional[str] = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    owner_references: list[OwnerReference] = Field(default_factory=list)

    @field_validator("labels", "annotations", "owner_references", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        # The API server renders unset maps and lists as null
        if value is None:
            return [] if info.field_name == "owner_references" else {}
        return value

    @model_serializer(mode="wrap")
    def _drop_empty(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        # Unset maps and lists are omitted from request bodies
        return {k: v for k, v in handler(self).items() if v != {} and v != []}

    def get_controller_of(self) -> Optional[OwnerReference]:
        """Get the owner reference marked as controller, if any."""
        for ref in self.owner_references:
            if ref.controller:
                return ref
        return None


class LocalObjectReference(KubeModel):
    """Reference to an object in the same namespace (e.g. a pull secret)."""

    name: str = ""


class Container(KubeModel):
    """A container in a pod template."""

    name: Optional[str] = None
    image: str = ""


class PodSpec(KubeModel):
    """The parts of a pod spec relevant to image caching."""

    containers: list[Container] = Field(default_factory=list)
    service_account_name: Optional[str] = None
    image_pull_secrets: list[LocalObjectReference] = Field(default_factory=list)

    @field_validator("containers", "image_pull_secrets", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class PodTemplateSpec(KubeModel):
    """A pod template."""

    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: PodSpec = Field(default_factory=PodSpec)


class WithPodSpec(KubeModel):
    """Spec of any resource that embeds a pod template."""

    template: PodTemplateSpec = Field(default_factory=PodTemplateSpec)


class WithPod(KubeModel):
    """
    Any resource with a ``spec.template`` pod template.

    Deployments, ReplicaSets, StatefulSets, DaemonSets, Jobs and many custom
    resources share this shape.
    """

    api_version: str
    kind: str
    metadata: ObjectMeta
    spec: WithPodSpec = Field(default_factory=WithPodSpec)

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> "WithPod":
        """
        Decode a stored object.

        Args:
            obj: Object as returned by the API server

        Returns:
            Decoded WithPod

        Raises:
            DecodeError: If the object does not have the expected shape
        """
        try:
            return cls.model_validate(obj)
        except ValidationError as e:
            raise DecodeError(f"object is not a WithPod: {e}") from e

    @property
    def namespace(self) -> str:
        return self.metadata.namespace or ""

    @property
    def name(self) -> str:
        return self.metadata.name or ""

    @property
    def uid(self) -> str:
        return self.metadata.uid or ""

    @property
    def generation(self) -> int:
        return self.metadata.generation or 0


class ImageSpec(KubeModel):
    """Spec of an Image cache hint."""

    image: str
    service_account_name: Optional[str] = None
    image_pull_secrets: list[LocalObjectReference] = Field(default_factory=list)


class Image(KubeModel):
    """An Image cache hint, owned by a WithPod resource."""

    api_version: str = IMAGE_GVK.api_version
    kind: str = IMAGE_KIND
    metadata: ObjectMeta
    spec: ImageSpec

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> "Image":
        """
        Decode a stored Image.

        Raises:
            DecodeError: If the object does not have the expected shape
        """
        try:
            return cls.model_validate(obj)
        except ValidationError as e:
            raise DecodeError(f"object is not an Image: {e}") from e


class WatchEvent(BaseModel):
    """Kubernetes watch event."""

    event_type: str  # ADDED, MODIFIED, DELETED
    kind: str
    name: str
    namespace: str
    object: dict[str, Any]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
