import logging

from jornada.core.config import settings

_logging_configured = False


def setup_logging(level: str | None = None) -> None:
    """Konfiguriert den Root-Logger genau einmal (LOG_LEVEL aus den Settings)."""
    global _logging_configured
    if _logging_configured:
        return

    level_name = (level or settings.LOG_LEVEL).upper()
    logger = logging.getLogger()
    if not logger.handlers:
        logger.setLevel(getattr(logging, level_name, logging.INFO))

        console = logging.StreamHandler()
        console.setFormatter(
            logging.Formatter("%(asctime)s %(name)-24s %(levelname)-8s %(message)s")
        )
        logger.addHandler(console)

    _logging_configured = True
