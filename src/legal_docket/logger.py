import logging

from legal_docket.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Configure root logging once for the API process."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(settings.LOG_LEVEL.upper())
        return
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)
