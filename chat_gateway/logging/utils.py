"""Audit logging for provider health transitions."""

from .config import get_logger


def create_audit_logger(name: str) -> 'AuditLogger':
    """Create an audit logger under ``chat_gateway.audit``."""
    return AuditLogger(name)


class AuditLogger:
    """Logger for events operators alert on, such as a provider going down."""

    def __init__(self, name: str):
        self.logger = get_logger(f"audit.{name}")

    def log_system_event(
        self,
        event: str,
        component: str,
        severity: str = "info",
        **extra
    ):
        """Log a system event with its component and severity."""
        audit_data = {
            "audit_type": "system_event",
            "event": event,
            "component": component,
            "severity": severity,
            **extra
        }

        log_method = getattr(self.logger, severity.lower(), self.logger.info)
        log_method(f"System event: {event}", extra=audit_data)
