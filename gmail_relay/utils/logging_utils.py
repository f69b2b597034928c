import copy
import logging
import sys
from pathlib import Path

from gmail_relay.utils.colors import Colors
from gmail_relay.utils.structured_logging import JSONFormatter


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ColoredFormatter(logging.Formatter):
    """
    Console formatter that colors level names and highlights the
    poll cycle banner, idle waits and successful relays.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GREY,
        logging.INFO: Colors.BLUE,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED
    }

    def format(self, record):
        # Copy so the file handler never sees ANSI codes
        record = copy.copy(record)

        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        record.levelname = f"{color}{record.levelname}{Colors.RESET}"

        if isinstance(record.msg, str):
            if "Poll Cycle" in record.msg:
                record.msg = f"{Colors.MAGENTA}{Colors.BOLD}{record.msg}{Colors.RESET}"
            elif record.msg.startswith("Next poll in"):
                record.msg = f"{Colors.GREY}{record.msg}{Colors.RESET}"
            elif "relayed successfully" in record.msg:
                record.msg = f"{Colors.GREEN}{record.msg}{Colors.RESET}"

        return super().format(record)


def resolve_level(level_name: str):
    """Map a level name to its numeric value; None when the name is unknown"""
    return logging._nameToLevel.get(str(level_name).upper())


def setup_logging(system_config) -> None:
    """
    Configure the root logger from SystemConfig.

    Text mode logs colored lines to stdout (when it is a terminal) and plain
    lines to the log file; json mode uses JSONFormatter for both.
    """
    level = resolve_level(system_config.log_level)

    handlers = [logging.StreamHandler(sys.stdout)]
    if system_config.log_file:
        log_path = Path(system_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        if system_config.log_format == "json":
            handler.setFormatter(JSONFormatter())
        elif isinstance(handler, logging.FileHandler) or not Colors.enabled():
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
        else:
            handler.setFormatter(ColoredFormatter(LOG_FORMAT))

    logging.basicConfig(level=level or logging.INFO, handlers=handlers, force=True)

    # googleapiclient logs every discovery cache miss at WARNING
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)

    if level is None:
        logging.getLogger("GmailRelay").warning(
            "Invalid log level '%s'; defaulting to INFO", system_config.log_level
        )
