"""
Input validation utilities
"""
import re

TICKET_NUMBER_PATTERN = re.compile(r"^\d{8}\d{4,}$")


def validate_ticket_number(ticket_number: str) -> bool:
    """
    Validate ticket number format

    Args:
        ticket_number: Ticket number to validate (YYYYMMDD + 4-digit sequence)

    Returns:
        True if valid format
    """
    return TICKET_NUMBER_PATTERN.match(ticket_number) is not None


def sanitize_input(text: str, max_length: int = 10000) -> str:
    """
    Sanitize user input

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    # Remove null bytes
    text = text.replace('\x00', '')

    # Truncate to max length
    if len(text) > max_length:
        text = text[:max_length]

    return text.strip()
