"""
Structured logging setup for the TranslateMD proxy
"""

import logging
import structlog
from datetime import datetime
from translatemd.config import settings, Environment


def setup_logging():
    """Configures structured logging"""

    timestamper = structlog.processors.TimeStamper(fmt="ISO")

    processors = [
        structlog.processors.add_log_level,
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.environment == Environment.DEVELOPMENT:
        processors.extend([
            structlog.dev.ConsoleRenderer(colors=True)
        ])
    else:
        processors.extend([
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer()
        ])

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None):
    """Returns a configured logger"""
    return structlog.get_logger(name or __name__)


class AuditLogger:
    """Logger for audit events. Never receives transcript text or secrets."""

    def __init__(self):
        self.logger = get_logger("audit")

    def log_api_request(
        self,
        request_id: str,
        endpoint: str,
        method: str,
        user_agent: str = None,
        ip_address: str = None,
        **kwargs
    ):
        self.logger.info(
            "api_request",
            request_id=request_id,
            endpoint=endpoint,
            method=method,
            user_agent=user_agent,
            ip_address=ip_address,
            timestamp=datetime.utcnow().isoformat(),
            **kwargs
        )

    def log_audio_processing(
        self,
        request_id: str,
        audio_size_bytes: int,
        language: str,
        model_used: str,
        processing_time_ms: int,
        **kwargs
    ):
        self.logger.info(
            "audio_processing",
            request_id=request_id,
            audio_size_bytes=audio_size_bytes,
            language=language,
            model_used=model_used,
            processing_time_ms=processing_time_ms,
            timestamp=datetime.utcnow().isoformat(),
            **kwargs
        )

    def log_external_api_call(
        self,
        request_id: str,
        service: str,
        endpoint: str,
        response_status: int,
        response_time_ms: int,
        **kwargs
    ):
        """Logs calls to the upstream API"""
        self.logger.info(
            "external_api_call",
            request_id=request_id,
            service=service,
            endpoint=endpoint,
            response_status=response_status,
            response_time_ms=response_time_ms,
            timestamp=datetime.utcnow().isoformat(),
            **kwargs
        )

    def log_error(
        self,
        request_id: str,
        error_type: str,
        error_message: str,
        stack_trace: str = None,
        **kwargs
    ):
        self.logger.error(
            "error_event",
            request_id=request_id,
            error_type=error_type,
            error_message=error_message,
            stack_trace=stack_trace,
            timestamp=datetime.utcnow().isoformat(),
            **kwargs
        )


# Global audit logger instance
audit_logger = AuditLogger()
