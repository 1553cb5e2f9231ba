"""Tests for work queue keys."""

import pytest

from cachier import InvalidKeyError, meta_namespace_key, split_meta_namespace_key
from cachier.models import ObjectMeta


class TestKeys:
    """Test cases for key helpers."""

    def test_meta_namespace_key(self):
        assert meta_namespace_key({"namespace": "bar", "name": "foo"}) == "bar/foo"
        assert meta_namespace_key(ObjectMeta(namespace="bar", name="foo")) == "bar/foo"

    def test_cluster_scoped(self):
        assert meta_namespace_key({"name": "foo"}) == "foo"

    @pytest.mark.parametrize(
        "key,expected",
        [("bar/foo", ("bar", "foo")), ("foo", ("", "foo"))],
    )
    def test_split(self, key, expected):
        assert split_meta_namespace_key(key) == expected

    @pytest.mark.parametrize("key", ["a/b/c", "bar/", "", "/"])
    def test_split_invalid(self, key):
        with pytest.raises(InvalidKeyError):
            split_meta_namespace_key(key)
