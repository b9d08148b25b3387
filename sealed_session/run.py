#!/usr/bin/env python3
"""Run the sealed-session demo service"""
import uvicorn

from sealed_session.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "sealed_session.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
