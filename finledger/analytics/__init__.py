"""Analytics tracking package."""

from finledger.analytics.tracker import ANALYTICS_COLLECTION, AnalyticsTracker

__all__ = ["ANALYTICS_COLLECTION", "AnalyticsTracker"]
