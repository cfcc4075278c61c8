""" Endpoint HTTP con /metrics (Prometheus) y /health. """
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

logger = logging.getLogger(__name__)

StatusFunc = Callable[[], Dict[str, Any]]


def create_app(registry: CollectorRegistry, status: Optional[StatusFunc] = None) -> FastAPI:
    app = FastAPI(title="qingping-mqtt")

    @app.get("/metrics")
    def metrics():
        """Prometheus metrics endpoint"""
        return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    def health():
        body: Dict[str, Any] = {"status": "ok"}
        if status is not None:
            body.update(status())
        return body

    return app


class HTTPServerThread(threading.Thread):
    """
    Hilo que sirve la app con uvicorn. `stop` pide la salida y espera al hilo.
    """

    def __init__(self, app: FastAPI, host: str = "0.0.0.0", port: int = 8080) -> None:
        super().__init__(daemon=True, name="http-server")
        self.host = host
        self.port = port
        config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
        self.server = uvicorn.Server(config)

    def run(self) -> None:
        logger.info("servidor http en %s:%d", self.host, self.port)
        self.server.run()

    def stop(self, timeout: float = 3.0) -> None:
        self.server.should_exit = True
        if self.is_alive():
            self.join(timeout=timeout)
        logger.info("servidor http detenido")
