# billing/logging_config.py
import logging

from rich.logging import RichHandler


def configure_logging(level: str = "INFO", force: bool = False) -> None:
    """Route the root logger through rich. Pass force=True to reconfigure."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=force,
    )
