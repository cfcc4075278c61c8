""" Python logging configuration with colored output. """

import logging
from typing import Union

from colorama import init as colorama_init, Fore, Style # type: ignore

class ColorFormatter(logging.Formatter):
    """ Class to specify colors in log output based on severity level. """
    LEVEL_COLORS = {
        logging.DEBUG: Fore.BLUE,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.MAGENTA,
    }
    FORMAT = "[%(levelname)s] %(asctime)s - %(name)s - %(message)s"

    def __init__(self) -> None:
        super().__init__(self.FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        orig_levelname = record.levelname
        record.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname


def resolve_level(level: Union[int, str]) -> int:
    """Acepta 'DEBUG', 'info', 10... y devuelve el nivel numérico."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Configura el root logger con un único StreamHandler y nuestro formatter."""
    colorama_init(autoreset=False)
    lvl = resolve_level(level)
    root = logging.getLogger()
    root.setLevel(lvl)

    handler = next((h for h in root.handlers if isinstance(h, logging.StreamHandler)), None)
    if handler is None:
        handler = logging.StreamHandler()
        handler.setFormatter(ColorFormatter())
        root.addHandler(handler)
    handler.setLevel(lvl)

    logging.getLogger("paho").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
