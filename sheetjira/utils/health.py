"""Health check utilities for monitoring application status."""

from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from sheetjira import __version__
from sheetjira.errors import AuthFailed, NotConfigured
from sheetjira.integrations.jira_client import JiraClient
from sheetjira.utils.logger import get_logger

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class HealthChecker:
    """Health checker for the Jira connection."""

    def __init__(self):
        self.last_checks = {}
        self.check_interval = timedelta(minutes=5)

    async def check_jira_api(self, client: JiraClient) -> Dict[str, Any]:
        """Check Jira connectivity and credentials."""
        started = _now()
        try:
            user = await client.test_auth()
        except NotConfigured as e:
            result = {"status": "not_configured", "error": str(e)}
        except AuthFailed as e:
            status = "authentication_required" if e.status_code in (401, 403) else "unhealthy"
            result = {"status": status, "error": str(e)}
        else:
            result = {
                "status": "healthy",
                "response_time_ms": (_now() - started).total_seconds() * 1000,
                "user": user.display_name
            }

        if result["status"] != "healthy":
            logger.warning(f"Jira health check: {result['status']}")

        self.last_checks["jira"] = {"result": result, "timestamp": started}
        return result

    def get_cached_health(self, check_type: str = "jira") -> Optional[Dict[str, Any]]:
        """Get cached health check result if recent enough."""
        cached = self.last_checks.get(check_type)
        if cached:
            age = _now() - cached["timestamp"]
            if age < self.check_interval:
                return cached["result"]
        return None

    def clear(self) -> None:
        self.last_checks.clear()

    async def basic_health_check(self) -> Dict[str, Any]:
        """Basic health check for application readiness."""
        return {
            "status": "healthy",
            "timestamp": _now().isoformat(),
            "version": __version__
        }


# Global health checker instance
health_checker = HealthChecker()
