""" Módulo para ejecutar el servicio. """
import logging
import signal
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

from prometheus_client import CollectorRegistry

from qingping_mqtt.configuration.config_loader import Configuration, load_config
from qingping_mqtt.configuration.logging_loader import configure_logging
from qingping_mqtt.health.http_server import HTTPServerThread, create_app
from qingping_mqtt.liveness.liveness_thread import LivenessThread
from qingping_mqtt.metrics.sink import PrometheusSink
from qingping_mqtt.mqtt.ack import AckSender
from qingping_mqtt.mqtt.transport import MQTTTransport
from qingping_mqtt.router import MessageRouter

logger = logging.getLogger(__name__)


@dataclass
class Service:
    """ Componentes del servicio ya cableados entre sí. """
    config: Configuration
    registry: CollectorRegistry
    sink: PrometheusSink
    liveness: LivenessThread
    transport: MQTTTransport
    router: MessageRouter
    http: Optional[HTTPServerThread] = None

    def status(self) -> dict:
        return {
            "mqtt_connected": self.transport.connected,
            "devices": self.liveness.device_count(),
        }

    def start(self) -> None:
        self.liveness.start()
        logger.info("barrido de dispositivos arrancado")
        if self.http is not None:
            self.http.start()
        self.transport.start()

    def stop(self) -> None:
        handle_exit_signal(self)


def split_addr(addr: str, default_port: int) -> Tuple[str, int]:
    """'host:port' -> (host, port). Sin puerto usa default_port."""
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, default_port
    return host or "0.0.0.0", int(port)


def apply_overrides(
    cfg: Configuration,
    http_addr: Optional[str] = None,
    mqtt_host: Optional[str] = None,
    mqtt_port: Optional[int] = None,
) -> Configuration:
    if http_addr:
        cfg.http.host, cfg.http.port = split_addr(http_addr, cfg.http.port)
    if mqtt_host:
        cfg.mqtt.host = mqtt_host
    if mqtt_port:
        cfg.mqtt.port = mqtt_port
    return cfg


def initialize_service(cfg: Configuration, registry: Optional[CollectorRegistry] = None) -> Service:
    """Crea y conecta sink, liveness, transporte, router y servidor http."""
    registry = registry if registry is not None else CollectorRegistry()
    sink = PrometheusSink(registry, cfg.metrics)
    liveness = LivenessThread(sink, cfg.liveness)

    transport = MQTTTransport(cfg.mqtt)
    ack_sender = AckSender(transport.publish, sink)
    router = MessageRouter(sink, liveness, ack_sender)
    transport.handler = router.handle

    service = Service(
        config=cfg,
        registry=registry,
        sink=sink,
        liveness=liveness,
        transport=transport,
        router=router,
    )
    app = create_app(registry, service.status)
    service.http = HTTPServerThread(app, cfg.http.host, cfg.http.port)
    return service


def handle_exit_signal(service: Service) -> None:
    """Detiene transporte, barrido y servidor http de forma ordenada."""
    try:
        service.transport.stop()
    except (OSError, RuntimeError) as e:
        logger.warning("error al detener el cliente mqtt: %s", e)

    if service.liveness.is_alive():
        service.liveness.stop()
        service.liveness.join(timeout=2.0)
        logger.info("hilo de barrido detenido")

    if service.http is not None and service.http.is_alive():
        service.http.stop()


def run(
    config_path: Optional[str] = None,
    debug: bool = False,
    http_addr: Optional[str] = None,
    mqtt_host: Optional[str] = None,
    mqtt_port: Optional[int] = None,
) -> None:
    """Función principal que arranca el servicio."""
    cfg = apply_overrides(load_config(config_path), http_addr, mqtt_host, mqtt_port)
    configure_logging(logging.DEBUG if debug else cfg.log_level)
    logger.info("configuración cargada")

    service = initialize_service(cfg)
    stop_event = threading.Event()

    def _on_signal(signum, frame):
        logger.warning("señal %s recibida, cerrando...", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    logger.info(
        "arrancando: http=%s:%d mqtt=%s:%d",
        cfg.http.host,
        cfg.http.port,
        cfg.mqtt.host,
        cfg.mqtt.port,
    )
    service.start()
    stop_event.wait()
    service.stop()
    logger.info("shutdown")
