import asyncio
import logging
from app.config import settings
from app.modules.visitors.registry import VisitorRegistry

logger = logging.getLogger(__name__)


async def visitor_sweep_loop(registry: VisitorRegistry):
    """Background task that periodically releases idle visitor contexts"""
    while True:
        try:
            registry.sweep_idle(settings.visitor_idle_ttl)
        except Exception as e:
            logger.error(f"Error in visitor sweep loop: {str(e)}")

        await asyncio.sleep(settings.visitor_sweep_interval)
