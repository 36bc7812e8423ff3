import logging

from learnquest.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install one stream handler on the package logger.

    Safe to call more than once; later calls only adjust the level.
    """
    logger = logging.getLogger("learnquest")
    logger.setLevel(level or settings.log_level)

    if not any(getattr(h, "_learnquest", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._learnquest = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
