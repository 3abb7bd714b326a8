import logging
from datetime import datetime, timezone
from typing import Optional

from pythonjsonlogger import jsonlogger

from .config import Settings, settings as default_settings


class ServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping every record with service metadata."""

    def __init__(self, *args, service: str = "", environment: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service
        self.environment = environment

    def add_fields(self, log_record, record, message_dict):
        super(ServiceJsonFormatter, self).add_fields(log_record, record, message_dict)
        log_record['service'] = self.service
        log_record['environment'] = self.environment
        log_record['timestamp'] = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')


def setup_logging(config: Optional[Settings] = None) -> None:
    """Configure structured logging for the application."""
    config = config or default_settings
    log_level = getattr(logging, config.log_level.upper())

    handler = logging.StreamHandler()
    handler.setFormatter(ServiceJsonFormatter(
        '%(levelname)s %(name)s %(message)s',
        service=config.service_name,
        environment=config.environment
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicates
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)

    root_logger.addHandler(handler)

    # Set specific logger levels
    logging.getLogger('google').setLevel(logging.WARNING)
    logging.getLogger('grpc').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
