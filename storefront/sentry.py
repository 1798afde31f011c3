"""
Sentry initialization for centralized error tracking.
Observes reality, never controls logic.
"""
import logging
from typing import Dict, Any, Optional

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from storefront.config import config
from storefront.logger import logger


def initialize_sentry():
    """Initialize Sentry SDK if DSN is configured."""
    if not config.has_sentry:
        logger.info("Sentry not configured, skipping initialization")
        return
    
    try:
        sentry_sdk.init(
            dsn=config.SENTRY_DSN,
            environment=config.ENVIRONMENT,
            integrations=[
                AsyncioIntegration(),
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)
            ],
            traces_sample_rate=0.1,
            send_default_pii=False,
            before_send=_enrich_sentry_event
        )
        
        logger.info("Sentry initialized for error tracking")
        
    except Exception as e:
        logger.error(f"Failed to initialize Sentry: {e}")


def _enrich_sentry_event(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """Tag events with the system name and group API errors by status."""
    event.setdefault("tags", {})
    event["tags"]["system"] = "storefront"
    event["tags"]["environment"] = config.ENVIRONMENT
    
    if hint and "exc_info" in hint:
        exc = hint["exc_info"][1]
        status = getattr(exc, "status", None)
        if status is not None:
            event["tags"]["api_status"] = str(status)
            event["fingerprint"] = ["{{ default }}", type(exc).__name__, str(status)]
    
    return event


def capture_sync_failure(user_id: Optional[str], item_count: int, error: str):
    """Record a cart sync that fell back to the local mirror."""
    if not config.has_sentry:
        return
    
    with sentry_sdk.push_scope() as scope:
        scope.set_tag("operation", "cart_sync")
        scope.set_extra("user_id", user_id)
        scope.set_extra("item_count", item_count)
        scope.set_extra("error", error)
        scope.set_level("warning")
        
        sentry_sdk.capture_message(
            f"Cart sync failed for user {user_id}",
            "warning"
        )
