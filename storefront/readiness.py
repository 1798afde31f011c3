"""
Startup readiness and health checks.
Application starts without the upstream API, recovers after.
"""
import asyncio
from typing import Dict, Any, Optional

from storefront.logger import logger
from storefront.services.api_service import ApiService
from storefront.storage.kv_store import KeyValueStore


class ReadinessManager:
    """
    Tracks which collaborators are reachable.
    Startup succeeds even when the API is down.
    """
    
    def __init__(self):
        self.is_ready = False
        self.services: Dict[str, bool] = {
            "config": True,  # Config is read at import
            "storage": False,
            "api": False
        }
        self.startup_time: Optional[float] = None
    
    async def check_services(self, api: ApiService, storage: KeyValueStore):
        """Probe dependencies; failures are recorded, not raised."""
        self.services["storage"] = storage.is_available
        self.services["api"] = await api.health_check()
        
        if not self.is_ready:
            self.is_ready = True
            self.startup_time = asyncio.get_event_loop().time()
        
        logger.info(f"Service status: {self.services}")
    
    def get_status(self) -> Dict[str, Any]:
        return {
            "ready": self.is_ready,
            "services": self.services,
            "uptime": asyncio.get_event_loop().time() - self.startup_time if self.startup_time else 0
        }
    
    def is_service_available(self, service_name: str) -> bool:
        return self.services.get(service_name, False)


# Global readiness manager
readiness_manager = ReadinessManager()
