"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for sqltestutil.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.CONTAINER_STARTED, ...})
    """

    # Image events
    IMAGE_PULL_STARTED = "image_pull_started"
    IMAGE_PULLED = "image_pulled"

    # Container events
    CONTAINER_CREATED = "container_created"
    CONTAINER_STARTED = "container_started"
    CONTAINER_HEALTHY = "container_healthy"
    CONTAINER_READY = "container_ready"
    CONTAINER_STOPPED = "container_stopped"
    CONTAINER_REMOVED = "container_removed"

    # Readiness events
    PORT_DISCOVERED = "port_discovered"
    READINESS_FAILED = "readiness_failed"

    # Cleanup events
    CLEANUP_STARTED = "cleanup_started"
    CLEANUP_COMPLETED = "cleanup_completed"
    CLEANUP_FAILED = "cleanup_failed"
