# pyright: reportUnusedImport=false
# flake8: noqa

# default logger initialized from here
from .logging import LoggerBase
from .logging import ConsoleLogger
from .logging import LoglistLogger
from .logging import get_logger

logger: LoggerBase = ConsoleLogger("lmagent")
