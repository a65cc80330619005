"""
Services module initialization
"""

from rentmatch.services.notification_service import WorkflowEventPublisher

# Global service instances
_event_publisher: WorkflowEventPublisher | None = None

def get_event_publisher() -> WorkflowEventPublisher:
    """Get the global workflow event publisher (singleton)"""
    global _event_publisher
    if _event_publisher is None:
        _event_publisher = WorkflowEventPublisher()
    return _event_publisher

def set_event_publisher(publisher: WorkflowEventPublisher) -> None:
    """Set the global workflow event publisher"""
    global _event_publisher
    _event_publisher = publisher
