"""
Pytest configuration and fixtures
"""
import pytest
from typing import Dict, Any


@pytest.fixture
def sample_ticket_payload() -> Dict[str, Any]:
    """Sample ticket row as stored by the data store"""
    return {
        "id": 12,
        "ticket_number": "202503140003",
        "customer_id": 1,
        "title": "Cannot login",
        "description": "Password reset email never arrives",
        "priority": 3,
        "status": "in_progress",
        "assigned_agent_id": 10,
        "assignment_method": "category_match",
        "business_impact_data": '{"blocking_level": 3, "impact_scope": 2, '
                                '"urgent_deadline": null, "additional_context": null}',
        "created_at": "2025-03-14T09:00:00",
        "updated_at": "2025-03-14T09:05:00+00:00",
    }


@pytest.fixture
def sample_business_impact() -> Dict[str, Any]:
    return {
        "blocking_level": 4,
        "impact_scope": 3,
        "urgent_deadline": "2025-03-14T12:00:00Z",
        "additional_context": "Month-end close",
    }
