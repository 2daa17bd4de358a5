"""
Pytest configuration for the Path2Prevention test suite.

Configures:
- the import path, so tests import modules the way the app does
  (``from services.programs.filters import ...``)
- shared program rows used across the service tests
"""
import os
import sys

import pytest

# Add the application directory to the Python path for imports
BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(BACKEND_DIR, "path2prevention"))


@pytest.fixture
def program_rows():
    """Relational program rows as returned by the program store."""
    return [
        {
            "id": 10,
            "organization_name": "Peachtree Lifestyle Program",
            "description": "Year-long diabetes prevention program with a coach",
            "city": "Atlanta",
            "state": "GA",
            "zip_code": "30309",
            "delivery_mode": "in-person",
            "cost": 100,
            "duration_weeks": 52,
            "enrollment_status": "open",
        },
        {
            "id": 11,
            "organization_name": "Coastal Online Coaching",
            "description": "Live video sessions in the evening",
            "city": "Savannah",
            "state": "GA",
            "zip_code": "31401",
            "delivery_mode": "virtual-live",
            "cost": 429.5,
            "duration_weeks": 16,
            "enrollment_status": "closed",
        },
    ]
