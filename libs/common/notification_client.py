"""
Notification client for in-app volunteer notifications.

Notifications are delivered by the Communications Service. Delivery is
fire-and-forget from the caller's point of view: every failure is logged
and reported as ``False``, never raised, so a notification problem can never
undo a committed workflow transition.

Usage:
    from libs.common.notification_client import get_notification_client

    notifier = get_notification_client()
    await notifier.notify(
        recipient_id="auth-123",
        type="application_approved",
        title="You're confirmed!",
        message="Your application for Greeter Team was approved.",
        action_url="/volunteer/my-registrations",
    )
"""

from typing import Any, Optional

import httpx

from libs.common.config import get_settings
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


class NotificationClient:
    """
    HTTP client for the Communications Service notification endpoint.

    Authenticates with a short-lived service-role JWT, the same way every
    internal call in this backend does.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.base_url = (base_url or settings.COMMUNICATIONS_SERVICE_URL).rstrip("/")
        self.timeout = timeout or settings.NOTIFICATION_TIMEOUT_SECONDS

    def _get_headers(self) -> dict[str, str]:
        from libs.auth.dependencies import _service_role_jwt

        headers = {"Authorization": f"Bearer {_service_role_jwt('notification_client')}"}
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id
        return headers

    async def notify(
        self,
        recipient_id: str,
        type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Send one notification.

        Returns:
            True if the Communications Service accepted it, False otherwise
        """
        payload: dict[str, Any] = {
            "recipient_id": recipient_id,
            "type": type,
            "title": title,
            "message": message,
        }
        if action_url:
            payload["action_url"] = action_url
        if metadata:
            payload["metadata"] = metadata

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/internal/notifications",
                    json=payload,
                    headers=self._get_headers(),
                )
            if response.is_success:
                return True
            logger.error(
                "Notification API returned %s for %s: %s",
                response.status_code,
                type,
                response.text,
            )
            return False
        except httpx.RequestError as e:
            logger.error("Failed to reach Communications Service for %s: %s", type, e)
            return False
        except Exception:
            logger.exception("Unexpected error sending %s notification", type)
            return False


# Singleton instance for convenience
_notification_client: Optional[NotificationClient] = None


def get_notification_client() -> NotificationClient:
    """Get or create the singleton NotificationClient instance."""
    global _notification_client
    if _notification_client is None:
        _notification_client = NotificationClient()
    return _notification_client
