"""Work queue keys for namespaced resources."""

from typing import Any, Union

from .exceptions import InvalidKeyError
from .models import ObjectMeta


def meta_namespace_key(meta: Union[ObjectMeta, dict[str, Any]]) -> str:
    """
    Build the ``namespace/name`` key for an object's metadata.

    Cluster-scoped objects are keyed by name alone.
    """
    if isinstance(meta, ObjectMeta):
        namespace, name = meta.namespace, meta.name
    else:
        namespace, name = meta.get("namespace"), meta.get("name")
    if namespace:
        return f"{namespace}/{name}"
    return name or ""


def split_meta_namespace_key(key: str) -> tuple[str, str]:
    """
    Split a ``namespace/name`` key into its parts.

    Returns:
        Tuple of (namespace, name); namespace is empty for cluster-scoped keys

    Raises:
        InvalidKeyError: If the key has more than one separator or no name
    """
    parts = key.split("/")
    if len(parts) == 1:
        namespace, name = "", parts[0]
    elif len(parts) == 2:
        namespace, name = parts
    else:
        raise InvalidKeyError(key)
    if not name:
        raise InvalidKeyError(key)
    return namespace, name
