#!/usr/bin/env python3
"""
cubicagent - HTTP agent launcher
Serves the dispatcher endpoint with uvicorn
"""
import logging
import sys

import uvicorn

from cubicagent.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    logger.info("Starting cubicagent...")
    logger.info(f"Python {sys.version}, encoding={sys.getdefaultencoding()}")
    logger.info(f"Agent endpoint: http://{settings.agent_host}:{settings.agent_port}{settings.dispatch_endpoint}")
    logger.info(f"Cubicler: {settings.cubicler_url}")
    uvicorn.run(
        "cubicagent.main:app",
        host=settings.agent_host,
        port=settings.agent_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
