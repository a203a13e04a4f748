"""
Unit tests for the `/metrics` authorization gate and access filters.
"""

import pytest

from service_metrics.app.auth.filters import AccessFilter
from service_metrics.app.auth.gate import AccessDenied, AuthorizationGate, MetricsFeatureDisabled

REQUIRED_SUFFIX = "The API key for the `/metrics` route must allow access to all indexes."


class TestAccessFilter:
    """Test cases for AccessFilter."""

    def test_wildcard_covers_all_indexes(self):
        access_filter = AccessFilter.all_indexes()
        assert access_filter.all_indexes_authorized() is True
        assert access_filter.is_index_authorized("anything") is True

    def test_default_filter_covers_all_indexes(self):
        assert AccessFilter().all_indexes_authorized() is True

    def test_exact_index_pattern(self):
        access_filter = AccessFilter.for_indexes(["products"])
        assert access_filter.all_indexes_authorized() is False
        assert access_filter.is_index_authorized("products") is True
        assert access_filter.is_index_authorized("products_v2") is False

    def test_prefix_pattern(self):
        access_filter = AccessFilter.for_indexes(["products_*"])
        assert access_filter.all_indexes_authorized() is False
        assert access_filter.is_index_authorized("products_fr") is True
        assert access_filter.is_index_authorized("movies") is False

    def test_empty_filter_authorizes_nothing(self):
        access_filter = AccessFilter.for_indexes([])
        assert access_filter.all_indexes_authorized() is False
        assert access_filter.is_index_authorized("products") is False


class TestAuthorizationGate:
    """Test cases for AuthorizationGate."""

    def test_check_passes_for_all_indexes(self):
        gate = AuthorizationGate(metrics_enabled=True)
        assert gate.check(AccessFilter.all_indexes()) is None

    @pytest.mark.parametrize("patterns", [["products"], ["products_*"], [], ["movies", "products"]])
    def test_check_denies_partial_scope(self, patterns):
        gate = AuthorizationGate(metrics_enabled=True)
        with pytest.raises(AccessDenied) as exc_info:
            gate.check(AccessFilter.for_indexes(patterns))

        error = exc_info.value
        assert error.message.endswith(REQUIRED_SUFFIX)
        assert error.code == "INVALID_API_KEY"
        assert error.status_code == 403
        assert "scoped to all indexes" in error.details["reason"]

    def test_access_denied_message_is_fixed(self):
        assert AccessDenied().message == (
            "The provided API key is invalid. " + REQUIRED_SUFFIX
        )

    def test_check_feature_disabled(self):
        gate = AuthorizationGate(metrics_enabled=False)
        with pytest.raises(MetricsFeatureDisabled) as exc_info:
            gate.check_feature()

        error = exc_info.value
        assert error.code == "FEATURE_NOT_ENABLED"
        assert error.details["feature"] == "metrics"
        assert "`metrics` experimental feature" in error.message

    def test_check_feature_enabled(self):
        assert AuthorizationGate(metrics_enabled=True).check_feature() is None

    def test_gate_has_no_side_effects_on_filter(self):
        gate = AuthorizationGate(metrics_enabled=True)
        access_filter = AccessFilter.for_indexes(["products"])
        with pytest.raises(AccessDenied):
            gate.check(access_filter)
        assert access_filter.index_patterns == frozenset({"products"})
