"""
Rate Limiting / Throttling for the newsroom API.

Usage in settings:
    REST_FRAMEWORK = {
        'DEFAULT_THROTTLE_RATES': {
            'workflow': '120/minute',   # Transitions, task completion, publish
            'metrics': '30/minute',     # Pipeline metrics scans
        }
    }
"""

from rest_framework.throttling import UserRateThrottle


class WorkflowActionThrottle(UserRateThrottle):
    """
    Throttle for workflow mutations.

    Applies to transition, complete, reassign, publish and translation
    actions. Default: 120 requests/minute
    """
    scope = 'workflow'

    def get_rate(self):
        """Get rate from settings or use default."""
        return self.THROTTLE_RATES.get(self.scope, '120/minute')


class MetricsThrottle(UserRateThrottle):
    """
    Throttle for editorial metrics endpoints, which scan the pipeline.

    Default: 30 requests/minute
    """
    scope = 'metrics'

    def get_rate(self):
        """Get rate from settings or use default."""
        return self.THROTTLE_RATES.get(self.scope, '30/minute')
