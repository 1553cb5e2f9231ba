"""Tests for the caching policy."""

import pytest

from cachier import ANNOTATION_KEY, CachePolicy, WithPod, decide, should_cache


class TestShouldCache:
    """Test cases for should_cache."""

    def test_default_is_on(self, make_parent):
        parent = WithPod.from_object(make_parent())

        assert decide(parent) == CachePolicy.DEFAULT
        assert should_cache(parent) is True

    def test_controlled_resources_are_skipped(self, make_parent, deployment_owner):
        parent = WithPod.from_object(make_parent(kind="ReplicaSet", owner=deployment_owner))

        assert decide(parent) == CachePolicy.OWNED
        assert should_cache(parent) is False

    def test_non_controller_owner_is_ignored(self, make_parent, deployment_owner):
        owner = dict(deployment_owner, controller=False)
        parent = WithPod.from_object(make_parent(owner=owner))

        assert should_cache(parent) is True

    @pytest.mark.parametrize("value", ["true", "on", "enable", "enabled", "TRUE", "Enabled"])
    def test_forced_on_overrides_owner(self, make_parent, deployment_owner, value):
        parent = WithPod.from_object(
            make_parent(annotations={ANNOTATION_KEY: value}, owner=deployment_owner)
        )

        assert decide(parent) == CachePolicy.FORCED_ON
        assert should_cache(parent) is True

    @pytest.mark.parametrize("value", ["false", "off", "disable", "disabled", "OFF", "Disabled"])
    def test_forced_off(self, make_parent, value):
        parent = WithPod.from_object(make_parent(annotations={ANNOTATION_KEY: value}))

        assert decide(parent) == CachePolicy.FORCED_OFF
        assert should_cache(parent) is False

    @pytest.mark.parametrize("value", ["", "yes", "maybe"])
    def test_unrecognized_falls_back(self, make_parent, deployment_owner, value):
        unowned = WithPod.from_object(make_parent(annotations={ANNOTATION_KEY: value}))
        owned = WithPod.from_object(
            make_parent(annotations={ANNOTATION_KEY: value}, owner=deployment_owner)
        )

        assert should_cache(unowned) is True
        assert should_cache(owned) is False

    def test_other_annotations_ignored(self, make_parent):
        parent = WithPod.from_object(make_parent(annotations={"example.com/decorate": "false"}))
        assert should_cache(parent) is True
