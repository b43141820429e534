"""HTTP binding — health check and the dispatcher endpoint."""
import logging
from typing import Optional

from fastapi import FastAPI, Request

from .config import Settings, settings
from .cubicler import CubiclerClient
from .protocol import AgentResponse
from .service import AgentService, build_service, load_memory

logger = logging.getLogger(__name__)


def create_app(cfg: Optional[Settings] = None, service: Optional[AgentService] = None) -> FastAPI:
    cfg = cfg or settings
    app = FastAPI(title="cubicagent")
    app.state.service = service or build_service(cfg, memory=load_memory(cfg))
    app.state.external = CubiclerClient.from_settings(cfg)

    @app.on_event("startup")
    async def startup():
        await app.state.service.start()
        logger.info(f"Dispatch endpoint ready at {cfg.dispatch_endpoint}")

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.post(cfg.dispatch_endpoint)
    async def dispatch(request: Request):
        service = request.app.state.service
        try:
            payload = await request.json()
            if not isinstance(payload, dict):
                return AgentResponse(content="Error: Request body must be a JSON object", usedToken=0).model_dump()
            response = await service.dispatch(payload, request.app.state.external)
        except Exception as e:
            logger.error(f"Dispatch failed: {e}", exc_info=True)
            response = AgentResponse(content=f"Error: {e}", usedToken=0)
        return response.model_dump()

    return app


app = create_app()
