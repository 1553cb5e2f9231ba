"""Builds the Image resources a WithPod resource should have."""

from .labels import make_generation_labels
from .models import Image, ImageSpec, ObjectMeta, OwnerReference, WithPod


def new_controller_ref(parent: WithPod) -> OwnerReference:
    """Owner reference marking the parent as the controller of a dependent."""
    return OwnerReference(
        api_version=parent.api_version,
        kind=parent.kind,
        name=parent.name,
        uid=parent.uid,
        controller=True,
        block_owner_deletion=True,
    )


def make_images(parent: WithPod) -> dict[str, Image]:
    """
    Build the deduplicated set of Image resources for a parent.

    One Image is produced per distinct container image, keyed by the image
    reference. The container index only makes generated names unique.

    Args:
        parent: Resource embedding a pod template

    Returns:
        Mapping of image reference to unsaved Image, in first-seen order
    """
    images: dict[str, Image] = {}
    podspec = parent.spec.template.spec
    for idx, container in enumerate(podspec.containers):
        if container.image in images:
            continue
        images[container.image] = Image(
            metadata=ObjectMeta(
                generate_name=f"{parent.name}-{idx:02d}-",
                namespace=parent.namespace,
                labels=make_generation_labels(parent),
                owner_references=[new_controller_ref(parent)],
            ),
            spec=ImageSpec(
                image=container.image,
                service_account_name=podspec.service_account_name,
                image_pull_secrets=[s.model_copy() for s in podspec.image_pull_secrets],
            ),
        )
    return images
