"""
Authorization gate for the `/metrics` route.
"""

from typing import Any, Dict, Optional

from shared.errors import FeatureDisabled, InvalidApiKey

from .filters import AccessFilter

METRICS_FEATURE = "metrics"


class MetricsFeatureDisabled(FeatureDisabled):
    """The `metrics` experimental feature is off."""

    def __init__(self):
        super().__init__(
            METRICS_FEATURE,
            "Getting metrics requires enabling the `metrics` experimental feature."
        )


class AccessDenied(InvalidApiKey):
    """The API key is valid but scoped to a subset of the indexes."""

    guidance = "The API key for the `/metrics` route must allow access to all indexes."
    explanation = "the credential used must be scoped to all indexes to read operational metrics"

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("reason", self.explanation)
        super().__init__(f"{self.base_message} {self.guidance}", details)


class AuthorizationGate:
    """Guards the scrape endpoint.

    The feature check must run before any credential is looked at so a
    disabled deployment does not confirm that the route exists.
    """

    def __init__(self, metrics_enabled: bool):
        self.metrics_enabled = metrics_enabled

    def check_feature(self) -> None:
        if not self.metrics_enabled:
            raise MetricsFeatureDisabled()

    def check(self, access_filter: AccessFilter) -> None:
        if not access_filter.all_indexes_authorized():
            raise AccessDenied()
