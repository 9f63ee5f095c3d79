"""
System API Router - Status and configuration
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_codec_engine
from api.exceptions import safe_endpoint
from core.engine import CodecEngine

logger = logging.getLogger(__name__)

router = APIRouter()

# Track start time
START_TIME = time.time()


@router.get("/status")
@safe_endpoint
async def get_status(engine: CodecEngine = Depends(get_codec_engine)) -> dict:
    """Get service status"""
    return {
        "status": "healthy",
        "uptime": time.time() - START_TIME,
        "engine": {"cache_enabled": engine.cache_enabled},
    }


@router.post("/debug/{enable}")
@safe_endpoint
async def set_debug_mode(enable: bool) -> dict:
    """Enable or disable debug logging"""
    log_level = logging.DEBUG if enable else logging.INFO
    logging.getLogger().setLevel(log_level)

    logger.info(f"Debug mode {'enabled' if enable else 'disabled'}")

    return {"enabled": enable, "log_level": logging.getLevelName(log_level)}


@router.get("/config")
@safe_endpoint
async def get_config(request: Request) -> dict:
    """Get current configuration"""
    return request.app.state.config


@router.get("/health")
async def health_check() -> dict:
    """Simple health check"""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}
