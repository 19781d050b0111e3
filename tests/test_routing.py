"""
Unit Tests for the routing resolver
"""

import pytest

from alert_router.config import RouterConfig
from alert_router.errors import ParameterLookupError, RoutingKeyLookupError
from alert_router.routing import (
    get_owner,
    get_service_name,
    normalize_service_name,
    resolve_channel,
    resolve_paging_key,
    resolve_routing,
)

from conftest import FakeParameters

TAGS_NO_OWNER_OR_OVERRIDE = {"service": "test-service"}
TAGS_WITHOUT_OVERRIDE = {"owner": "plateng", "service": "test-service"}
TAGS_WITH_OVERRIDE = {
    "owner": "plateng",
    "service": "test-service",
    "alerts:slack_channel": "custom-channel",
}


class TestResolveChannel:
    """Test suite for resolve_channel()"""

    def test_owner_channel(self, config):
        assert resolve_channel(TAGS_WITHOUT_OVERRIDE, config) == "plateng-alarms"

    def test_owner_is_lowercased(self, config):
        assert resolve_channel({"owner": "Foo"}, config) == "foo-alarms"

    def test_override_wins_over_owner(self, config):
        assert resolve_channel(TAGS_WITH_OVERRIDE, config) == "custom-channel"

    def test_override_used_verbatim(self, config):
        assert resolve_channel({"alerts:slack_channel": "Mixed-Case"}, config) == "Mixed-Case"

    def test_default_channel_without_owner(self, config):
        assert resolve_channel(TAGS_NO_OWNER_OR_OVERRIDE, config) == "default-alarms"

    def test_empty_tags(self, config):
        assert resolve_channel({}, config) == "default-alarms"

    def test_empty_override_and_owner_fall_back(self, config):
        tags = {"alerts:slack_channel": "", "owner": ""}
        assert resolve_channel(tags, config) == "default-alarms"

    def test_custom_owner_tag_key(self):
        config = RouterConfig(default_slack_channel="default-alarms", owner_tag_key="team")
        assert resolve_channel({"team": "Data", "owner": "ignored"}, config) == "data-alarms"


class TestTagLookups:
    """get_owner / get_service_name"""

    def test_lookups(self, config):
        assert get_owner(TAGS_WITHOUT_OVERRIDE, config) == "plateng"
        assert get_service_name(TAGS_WITHOUT_OVERRIDE, config) == "test-service"

    def test_absent_tags_are_empty(self, config):
        assert get_owner({}, config) == ""
        assert get_service_name({}, config) == ""

    def test_custom_service_tag_key(self):
        config = RouterConfig(service_name_tag_key="app")
        assert get_service_name({"app": "billing", "service": "other"}, config) == "billing"


class TestResolvePagingKey:
    """Test suite for resolve_paging_key()"""

    def test_empty_service_uses_default_without_lookup(self, config):
        parameters = FakeParameters()
        assert resolve_paging_key("", config, parameters) == "default-routing-key"
        assert parameters.calls == []

    def test_service_key_found(self, config, parameters):
        assert resolve_paging_key("test-service", config, parameters) == "pagerduty-key-1"
        assert parameters.calls == ["/service/cw_alert_router/pagerduty/routing_keys/test_service"]

    def test_service_name_is_normalized(self, config, parameters):
        assert resolve_paging_key("Test-Service", config, parameters) == "pagerduty-key-1"

    def test_not_found_uses_default(self, config):
        assert resolve_paging_key("test-service", config, FakeParameters()) == "default-routing-key"

    def test_empty_value_uses_default(self, config):
        parameters = FakeParameters({"/service/cw_alert_router/pagerduty/routing_keys/test_service": ""})
        assert resolve_paging_key("test-service", config, parameters) == "default-routing-key"

    def test_other_errors_are_fatal(self, config):
        parameters = FakeParameters(error=ParameterLookupError("throttled", code="ThrottlingException"))
        with pytest.raises(RoutingKeyLookupError) as exc_info:
            resolve_paging_key("test-service", config, parameters)
        assert exc_info.value.code == "ThrottlingException"

    def test_normalize(self):
        assert normalize_service_name("My-Cool-Service") == "my_cool_service"


class TestResolveRouting:
    """Test suite for resolve_routing()"""

    def test_full_decision(self, config, parameters):
        decision = resolve_routing({"owner": "test", "service": "test-service"}, config, parameters)
        assert decision.channel == "test-alarms"
        assert decision.routing_key == "pagerduty-key-1"
        assert decision.service_name == "test-service"
        assert decision.owner == "test"

    def test_missing_routing_key_is_fatal(self, parameters):
        config = RouterConfig(default_slack_channel="default-alarms", default_routing_key="")
        with pytest.raises(RoutingKeyLookupError):
            resolve_routing({"owner": "test"}, config, parameters)
