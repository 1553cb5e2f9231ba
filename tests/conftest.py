"""Pytest configuration and fixtures for cachier tests."""

from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
from kubernetes.dynamic import DynamicClient

from tests.library.fake_store import FakeStore


@pytest.fixture
def mock_cluster_connection():
    """Mock cluster connection for testing."""
    mock_conn = MagicMock()
    mock_conn.dynamic = MagicMock(spec=DynamicClient)
    mock_conn.resource_for.return_value = MagicMock(name="resource")
    return mock_conn


@pytest.fixture
def store():
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def make_parent():
    """Factory for WithPod-shaped objects as the API server returns them."""

    def _make(
        name: str = "foo",
        namespace: str = "bar",
        uid: str = "deadbeef",
        generation: int = 37837,
        images: tuple[str, ...] = ("busybox", "hello-world", "busybox"),
        annotations: Optional[dict[str, str]] = None,
        owner: Optional[dict[str, Any]] = None,
        service_account_name: Optional[str] = "builder",
        pull_secrets: tuple[str, ...] = ("regcred",),
        kind: str = "Deployment",
        api_version: str = "apps/v1",
    ) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "name": name,
            "namespace": namespace,
            "uid": uid,
            "generation": generation,
            "resourceVersion": "1234",
        }
        if annotations is not None:
            metadata["annotations"] = annotations
        if owner is not None:
            metadata["ownerReferences"] = [owner]
        return {
            "apiVersion": api_version,
            "kind": kind,
            "metadata": metadata,
            "spec": {
                "replicas": 1,
                "template": {
                    "metadata": {"labels": {"app": name}},
                    "spec": {
                        "containers": [
                            {"name": f"c{i}", "image": image} for i, image in enumerate(images)
                        ],
                        "serviceAccountName": service_account_name,
                        "imagePullSecrets": [{"name": s} for s in pull_secrets],
                    },
                },
            },
        }

    return _make


@pytest.fixture
def deployment_owner():
    """Controlling owner reference of a ReplicaSet."""
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "name": "foo",
        "uid": "cafebabe",
        "controller": True,
        "blockOwnerDeletion": True,
    }
