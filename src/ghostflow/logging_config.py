import logging

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s - %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Single stream handler on the root logger; safe to call more than once."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
