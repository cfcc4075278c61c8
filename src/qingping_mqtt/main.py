""" main CLI commands and entry point. """

from __future__ import annotations
from typing import Optional

import typer
from qingping_mqtt.commands.pub import execute_publish_test
from qingping_mqtt.commands.run import run
from qingping_mqtt.configuration.logging_loader import configure_logging

app = typer.Typer(help="Qingping air monitor MQTT -> Prometheus exporter")
configure_logging()


@app.command("run")
def cmd_run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Fichero YAML de configuración"),
    debug: bool = typer.Option(False, "--debug", help="Activa los logs de depuración"),
    http_addr: Optional[str] = typer.Option(None, "--http-addr", help="host:port del servidor HTTP"),
    mqtt_host: Optional[str] = typer.Option(None, "--mqtt-host", help="Host del broker MQTT"),
    mqtt_port: Optional[int] = typer.Option(None, "--mqtt-port", help="Puerto del broker MQTT"),
):
    """Arranca el servicio (MQTT -> métricas Prometheus + acks)."""
    run(config, debug=debug, http_addr=http_addr, mqtt_host=mqtt_host, mqtt_port=mqtt_port)


@app.command("pub")
def cmd_pub(
    topic: str,
    payload: str,
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Fichero YAML de configuración"),
):
    """
    Publica un mensaje crudo en el broker.
    Ej: qingping-mqtt pub qingping/AABBCC/up '{"type":"13","wifi_mac":"AABBCC"}'
    """
    if not execute_publish_test(topic, payload, config):
        raise typer.Exit(code=1)


def main():
    """ Entrypoint principal. """
    app()


if __name__ == "__main__":
    main()
