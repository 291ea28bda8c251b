import logging
import sys

from projectgen.core.config import settings


class ContextFormatter(logging.Formatter):
    """Custom formatter that handles optional project_id and stage fields."""
    def format(self, record):
        if not hasattr(record, 'project_id'):
            record.project_id = '-'
        if not hasattr(record, 'stage'):
            record.stage = '-'
        return super().format(record)


def configure_logging() -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(
        "%(asctime)s %(levelname)s %(name)s [project_id=%(project_id)s stage=%(stage)s] - %(message)s"
    ))
    logging.basicConfig(
        level=settings.log_level.upper(),
        handlers=[handler],
    )
