""" Excepciones del servicio. """
from __future__ import annotations

from typing import Optional


class QingpingError(Exception):
    """ Base de todos los errores del servicio. """


class ConfigurationError(QingpingError):
    """ Valor de configuración inválido. """


class TopicError(QingpingError):
    """ Error asociado a un topic MQTT concreto. """

    def __init__(self, topic: str, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{message} (topic={topic})")
        self.topic = topic
        self.cause = cause


class ParseError(TopicError):
    """ El cuerpo del mensaje no es un sobre válido. """


class AckEncodeError(TopicError):
    """ No se pudo serializar el ack. """


class AckPublishError(TopicError):
    """ El transporte rechazó la publicación del ack. """


class PublishError(TopicError):
    """ El cliente MQTT no aceptó el mensaje en su cola de salida. """
