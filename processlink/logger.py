import logging
import re

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from processlink.utils.request_id import get_request_id

custom_theme = Theme(
    {
        "info": "dim cyan",
        "warning": "magenta",
        "error": "bold red",
        "node": "bold blue",
        "redirect": "bold yellow",
    }
)

console = Console(theme=custom_theme)


class CompactFilter(logging.Filter):
    """Shortens UUIDs, prefixes the request id and masks bearer tokens."""

    UUID_PATTERN = re.compile(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.I
    )
    BEARER_PATTERN = re.compile(r"(Bearer\s+)[^\s'\",}]+", re.I)

    def filter(self, record):
        if not isinstance(record.msg, str):
            return True

        msg = record.getMessage() if record.args else record.msg

        request_id = get_request_id()
        if request_id:
            msg = f"[{request_id[:8]}] {msg}"

        def shorten_uuid(match):
            return f"{match.group(0)[:4]}.."

        msg = self.BEARER_PATTERN.sub(r"\1***", msg)
        msg = self.UUID_PATTERN.sub(shorten_uuid, msg)

        record.msg = msg
        record.args = ()
        return True


def setup_global_logger(log_level: str = "INFO"):
    """
    Configures the package logger using Rich for readable output.
    """
    logger = logging.getLogger("processlink")

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        rich_handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            markup=False,
            show_path=False,
            show_time=True,
            omit_repeated_times=True,
            keywords=["redirect", "locations", "node", "DEBUG", "INFO", "WARNING", "ERROR"],
        )
        rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        rich_handler.addFilter(CompactFilter())
        logger.addHandler(rich_handler)

    return logger


logger = logging.getLogger("processlink")
