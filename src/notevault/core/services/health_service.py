"""Health service implementation."""

import asyncio
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ... import __version__
from ...config import get_settings
from ..redis_client import RedisClient
from ..schemas.common import HealthCheckResponse
from .interfaces import IHealthService


class HealthService(IHealthService):
    """Health check service implementation."""

    def __init__(self, session: AsyncSession, redis_client: Optional[RedisClient] = None):
        self.session = session
        self.settings = get_settings()
        self.redis_client = redis_client

    async def get_health_status(self) -> HealthCheckResponse:
        """Get app health status."""
        db_health = await self.check_database_health()
        checks = {"database": db_health}

        # Redis only matters when it carries change events
        if self.settings.notifications_backend == "redis":
            checks["redis"] = await self.check_redis_health()

        overall_status = "healthy"
        if not all(check["connected"] for check in checks.values()):
            overall_status = "unhealthy"

        return HealthCheckResponse(status=overall_status, version=__version__, checks=checks)

    async def check_database_health(self) -> Dict[str, Any]:
        """Check DB connection."""
        try:
            start_time = asyncio.get_running_loop().time()
            result = await self.session.execute(text("SELECT 1"))
            result.scalar()
            response_time = (asyncio.get_running_loop().time() - start_time) * 1000

            return {
                "connected": True,
                "status": "healthy",
                "response_time_ms": round(response_time, 2),
            }
        except Exception as e:
            return {
                "connected": False,
                "status": "unhealthy",
                "error": str(e),
                "response_time_ms": 0.0,
            }

    async def check_redis_health(self) -> Dict[str, Any]:
        """Check Redis connection."""
        client = self.redis_client or RedisClient()
        owns_client = self.redis_client is None
        try:
            start_time = asyncio.get_running_loop().time()
            if owns_client:
                await client.connect()
            connected = await client.ping()
            response_time = (asyncio.get_running_loop().time() - start_time) * 1000

            return {
                "connected": connected,
                "status": "healthy" if connected else "unhealthy",
                "response_time_ms": round(response_time, 2),
            }
        except Exception as e:
            return {
                "connected": False,
                "status": "unhealthy",
                "error": str(e),
                "response_time_ms": None,
            }
        finally:
            if owns_client:
                await client.disconnect()
