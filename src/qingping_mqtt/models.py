""" Modelos del protocolo MQTT de los monitores Qingping. """
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from qingping_mqtt.errors import ParseError

# Tipos de mensaje conocidos
REAL_TIME_DATA_TYPE = "12"
HEARTBEAT_TYPE = "13"
HISTORY_DATA_TYPE = "17"
ACK_TYPE = "18"

ALLOWED_MESSAGE_TYPES = (REAL_TIME_DATA_TYPE, HEARTBEAT_TYPE, HISTORY_DATA_TYPE)

# Canales de sensor en el orden en que se exportan
CHANNELS = (
    "temperature",
    "humidity",
    "co2",
    "pm1",
    "pm25",
    "pm10",
    "tvoc",
    "radon",
    "battery",
)


class ChannelValue(BaseModel):
    """ Valor envuelto; el resto de campos del dispositivo se ignoran. """
    model_config = ConfigDict(extra="ignore")

    value: float = 0.0

    @field_validator("value", mode="before")
    @classmethod
    def null_is_zero(cls, v: Any) -> Any:
        return 0.0 if v is None else v


class SensorReading(BaseModel):
    """ Una muestra de sensorData (mensajes tipo 12 y 17). """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    sample_time: ChannelValue = Field(default_factory=ChannelValue, alias="timestamp")
    temperature: ChannelValue = Field(default_factory=ChannelValue)
    humidity: ChannelValue = Field(default_factory=ChannelValue)
    co2: ChannelValue = Field(default_factory=ChannelValue)
    pm1: ChannelValue = Field(default_factory=ChannelValue)
    pm25: ChannelValue = Field(default_factory=ChannelValue)
    pm10: ChannelValue = Field(default_factory=ChannelValue)
    tvoc: ChannelValue = Field(default_factory=ChannelValue)
    radon: ChannelValue = Field(default_factory=ChannelValue)
    battery: ChannelValue = Field(default_factory=ChannelValue)

    @field_validator("*", mode="before")
    @classmethod
    def null_channel(cls, v: Any) -> Any:
        return {} if v is None else v

    def channel_values(self) -> Dict[str, float]:
        return {name: getattr(self, name).value for name in CHANNELS}


class Envelope(BaseModel):
    """
    Sobre de un mensaje publicado por el dispositivo.
    La MAC llega en `mac` para los datos y en `wifi_mac` para los heartbeats.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int = 0
    type: str = ""
    need_ack: int = 0
    mac: str = ""
    wifi_mac: str = ""
    timestamp: int = 0
    sensor_data: List[SensorReading] = Field(default_factory=list, alias="sensorData")

    @field_validator("mac", "wifi_mac", "type", mode="before")
    @classmethod
    def null_str(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("id", "need_ack", "timestamp", mode="before")
    @classmethod
    def null_int(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("sensor_data", mode="before")
    @classmethod
    def null_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def device_id(self) -> str:
        return self.wifi_mac or self.mac

    @property
    def recognized(self) -> bool:
        return self.type in ALLOWED_MESSAGE_TYPES

    @property
    def wants_ack(self) -> bool:
        return self.need_ack == 1


class AckMessage(BaseModel):
    """ Respuesta tipo 18 publicada en el topic /down. """
    type: str = ACK_TYPE
    ack_id: int
    code: int = 0
    timestamp: int
    desc: Optional[str] = None

    def to_payload(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode("utf-8")


def parse_envelope(topic: str, payload: bytes) -> Envelope:
    """Decodifica el cuerpo JSON; lanza ParseError si no es un sobre válido."""
    try:
        return Envelope.model_validate_json(payload)
    except ValidationError as e:
        raise ParseError(topic, "mensaje malformado", e) from e


def latest_reading(readings: List[SensorReading]) -> SensorReading:
    """
    Devuelve la muestra con mayor timestamp. En caso de empate gana la primera
    en orden de llegada. Sin muestras devuelve una lectura a cero.
    """
    if not readings:
        return SensorReading()
    return max(readings, key=lambda r: r.sample_time.value)
