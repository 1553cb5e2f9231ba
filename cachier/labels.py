"""Generation labels and label selectors for Image resources."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from .models import WithPod

CONTROLLER_LABEL = "controller"
GENERATION_LABEL = "generation"


class Operator(str, Enum):
    """Label selector requirement operators."""

    EQUALS = "="
    NOT_EQUALS = "!="
    EXISTS = "exists"


@dataclass(frozen=True)
class Requirement:
    """A single label selector requirement."""

    key: str
    operator: Operator
    value: str = ""

    def matches(self, labels: Mapping[str, str]) -> bool:
        if self.operator == Operator.EQUALS:
            return labels.get(self.key) == self.value
        if self.operator == Operator.NOT_EQUALS:
            # Kubernetes semantics: a missing label satisfies "!="
            return labels.get(self.key) != self.value
        return self.key in labels

    def __str__(self) -> str:
        if self.operator == Operator.EXISTS:
            return self.key
        return f"{self.key}{self.operator.value}{self.value}"


@dataclass(frozen=True)
class LabelSelector:
    """
    A conjunction of label requirements.

    Renders to the string form accepted by the API server's
    ``labelSelector`` parameter, and can evaluate itself against a label
    map for in-memory stores.
    """

    requirements: tuple[Requirement, ...] = field(default_factory=tuple)

    def matches(self, labels: Mapping[str, str]) -> bool:
        return all(r.matches(labels) for r in self.requirements)

    def __str__(self) -> str:
        return ",".join(str(r) for r in self.requirements)


def make_generation_labels(parent: WithPod) -> dict[str, str]:
    """
    Labels tying an Image to one generation of its parent.

    Args:
        parent: Owning resource

    Returns:
        ``{"controller": <uid>, "generation": <generation>}``
    """
    return {
        CONTROLLER_LABEL: parent.uid,
        GENERATION_LABEL: str(parent.generation),
    }


def make_generation_label_selector(parent: WithPod) -> LabelSelector:
    """Select the Images created for the parent's current generation."""
    return LabelSelector(
        tuple(
            Requirement(key, Operator.EQUALS, value)
            for key, value in make_generation_labels(parent).items()
        )
    )


def make_old_generation_label_selector(parent: WithPod) -> LabelSelector:
    """
    Select the parent's Images from any generation but the current one.

    Generation labels are opaque strings, so this is "not equal" rather
    than "less than".
    """
    return LabelSelector(
        (
            Requirement(CONTROLLER_LABEL, Operator.EQUALS, parent.uid),
            Requirement(GENERATION_LABEL, Operator.EXISTS),
            Requirement(GENERATION_LABEL, Operator.NOT_EQUALS, str(parent.generation)),
        )
    )
