"""
Utility functions
"""
from helpdesk.utils.logger import setup_logger, get_logger
from helpdesk.utils.errors import (
    HelpdeskError,
    NotFoundError,
    InvalidArgumentError,
    InvalidTransitionError,
    PersistenceError,
)
from helpdesk.utils.validators import (
    validate_ticket_number,
    sanitize_input,
)

__all__ = [
    "setup_logger",
    "get_logger",
    "HelpdeskError",
    "NotFoundError",
    "InvalidArgumentError",
    "InvalidTransitionError",
    "PersistenceError",
    "validate_ticket_number",
    "sanitize_input",
]
