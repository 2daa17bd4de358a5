"""Sample lifestyle change programs used to seed a fresh database."""

from core.logging import logger
from services.programs.program_store import ProgramStore

SAMPLE_PROGRAMS = [
    {
        "organization": "Atlanta Diabetes Prevention Center",
        "location": {"city": "Atlanta", "state": "GA", "zip": "30309", "address": "123 Peachtree St"},
        "details": {"mode": "in-person", "language": "English", "cost": 75.00, "weeks": 16, "capacity": 20},
        "mdpp_supplier": True,
    },
    {
        "organization": "Virtual Health Solutions",
        "location": {"city": "Remote", "state": "GA", "zip": "00000", "address": "Online Platform"},
        "details": {"mode": "virtual-live", "language": "English", "cost": 0.00, "weeks": 12, "capacity": 25},
        "mdpp_supplier": False,
    },
    {
        "organization": "Community Wellness Network",
        "location": {"city": "Savannah", "state": "GA", "zip": "31401", "address": "456 River St"},
        "details": {"mode": "hybrid", "language": "Spanish", "cost": 25.00, "weeks": 16, "capacity": 15},
        "mdpp_supplier": True,
    },
    {
        "organization": "Northside Medical Center",
        "location": {"city": "Roswell", "state": "GA", "zip": "30075", "address": "789 Medical Plaza"},
        "details": {"mode": "in-person", "language": "English", "cost": 100.00, "weeks": 20, "capacity": 12},
        "mdpp_supplier": False,
    },
    {
        "organization": "Flexible Learning Health",
        "location": {"city": "Remote", "state": "FL", "zip": "00000", "address": "Self-Paced Online"},
        "details": {"mode": "virtual-self-paced", "language": "English", "cost": 49.99, "weeks": 24, "capacity": 30},
        "mdpp_supplier": False,
    },
    {
        "organization": "LCI Health Community Centers",
        "description": (
            "LCI Health offers comprehensive diabetes prevention programs with "
            "personalized coaching and support groups in a community-centered environment."
        ),
        "location": {
            "city": "Atlanta", "state": "GA", "zip": "30310", "address": "456 Community Way",
            "latitude": 33.7515, "longitude": -84.3960,
        },
        "details": {
            "mode": "in-person", "language": "English", "cost": 75.00, "weeks": 16,
            "capacity": 20, "schedule": "Tuesdays 6:00 PM - 7:30 PM",
        },
        "contact": {"phone": "(555) 234-5678", "email": "programs@lcihealth.org"},
        "mdpp_supplier": True,
    },
    {
        "organization": "Riverside Medical Center",
        "description": (
            "Evidence-based diabetes prevention program with virtual and in-person "
            "options, including nutrition counseling and fitness support."
        ),
        "location": {
            "city": "Decatur", "state": "GA", "zip": "30030", "address": "789 Wellness Blvd",
            "latitude": 33.7748, "longitude": -84.2963,
        },
        "details": {
            "mode": "hybrid", "language": "English", "cost": 60.00, "weeks": 12,
            "capacity": 15, "schedule": "Saturdays 10:00 AM - 11:30 AM",
        },
        "contact": {"phone": "(555) 345-6789", "email": "wellness@riverside.org"},
        "mdpp_supplier": True,
    },
    {
        "organization": "Georgia Virtual Wellness",
        "description": (
            "Fully virtual diabetes prevention program accessible from anywhere in "
            "Georgia. Features live coaching sessions and mobile app support."
        ),
        "website": "https://gavirtual.org",
        "location": {"city": "Statewide", "state": "GA", "zip": "30000", "address": "Online/Virtual"},
        "details": {
            "mode": "virtual-live", "language": "English", "cost": 45.00, "weeks": 16,
            "capacity": 25, "schedule": "Wednesdays 7:00 PM - 8:00 PM",
        },
        "contact": {"phone": "(555) 456-7890", "email": "support@gavirtual.org"},
        "mdpp_supplier": True,
    },
]


def build_program_rows(sample: dict) -> tuple[dict, dict, dict]:
    """Expand a compact sample entry into program, location and details rows."""
    organization = sample["organization"]
    contact = sample.get("contact", {})
    slug = "".join(organization.lower().split())
    program = {
        "organization_name": organization,
        "cdc_recognition_status": "CDC-Recognized",
        "mdpp_supplier": sample.get("mdpp_supplier", False),
        "contact_phone": contact.get("phone", "(555) 123-4567"),
        "contact_email": contact.get("email", f"contact@{slug}.org"),
        "website_url": sample.get("website"),
        "description": sample.get(
            "description",
            f"Comprehensive diabetes prevention program offered by {organization}",
        ),
    }
    loc = sample["location"]
    location = {
        "address_line1": loc["address"],
        "city": loc["city"],
        "state": loc["state"],
        "zip_code": loc["zip"],
        "latitude": loc.get("latitude"),
        "longitude": loc.get("longitude"),
    }
    det = sample["details"]
    details = {
        "delivery_mode": det["mode"],
        "language": det["language"],
        "duration_weeks": det["weeks"],
        "cost": det["cost"],
        "max_participants": det["capacity"],
        "class_schedule": det.get("schedule"),
        "enrollment_status": "open",
    }
    return program, location, details


async def populate_sample_data(store: ProgramStore | None = None) -> list[int]:
    """Insert every sample program and return the new program ids.

    Raises:
        ProgramStoreError: If any insert fails; earlier inserts are kept.
    """
    store = store or ProgramStore()
    logger.info("Populating {} sample programs", len(SAMPLE_PROGRAMS))
    program_ids = []
    for sample in SAMPLE_PROGRAMS:
        program, location, details = build_program_rows(sample)
        program_ids.append(await store.create_program(program, location, details))
    logger.info("Sample data populated, ids={}", program_ids)
    return program_ids
