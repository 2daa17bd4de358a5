"""Static programs served when the relational store is unreachable."""

FALLBACK_PROGRAMS = [
    {
        "id": 1,
        "organization_name": "Atlanta Diabetes Prevention Center",
        "city": "Atlanta",
        "state": "GA",
        "zip_code": "30309",
        "address_line1": "123 Peachtree St",
        "delivery_mode": "in-person",
        "latitude": 33.7490,
        "longitude": -84.3880,
    },
    {
        "id": 2,
        "organization_name": "Virtual Health Solutions",
        "city": "Remote",
        "state": "GA",
        "zip_code": "00000",
        "address_line1": "Online Platform",
        "delivery_mode": "virtual-live",
        "latitude": None,
        "longitude": None,
    },
    {
        "id": 3,
        "organization_name": "Community Wellness Network",
        "city": "Savannah",
        "state": "GA",
        "zip_code": "31401",
        "address_line1": "456 River St",
        "delivery_mode": "hybrid",
        "latitude": 32.0809,
        "longitude": -81.0912,
    },
    {
        "id": 4,
        "organization_name": "Flexible Learning Health",
        "city": "Remote",
        "state": "FL",
        "zip_code": "00000",
        "address_line1": "Self-Paced Online",
        "delivery_mode": "virtual-self-paced",
        "latitude": None,
        "longitude": None,
    },
]


def fallback_programs() -> list[dict]:
    """Return copies of the fallback programs ordered by organization name."""
    return sorted(
        (dict(program) for program in FALLBACK_PROGRAMS),
        key=lambda program: program["organization_name"],
    )
