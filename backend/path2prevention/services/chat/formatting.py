"""Plain-text renderings of programs for chat replies.

Bold text is marked with `**` and rendered by the chat widget.
"""

from typing import List

ENROLLMENT_ICONS = {"open": "✅", "closed": "❌"}


def _amount(value) -> str:
    return f"{float(value):g}"


def program_summary(index: int, program: dict, show_format: bool = False) -> str:
    """A numbered, few-line summary of `program` for a result list."""
    lines = [
        f"{index}. **{program.get('organization_name')}**",
        f"📍 {program.get('city')}, {program.get('state')}",
    ]
    if show_format and program.get("delivery_mode"):
        lines.append(f"🏥 Format: {program['delivery_mode']}")
    if program.get("cost"):
        lines.append(f"💰 Cost: ${_amount(program['cost'])}")
    if program.get("duration_weeks"):
        lines.append(f"📅 Duration: {program['duration_weeks']} weeks")
    if show_format and program.get("similarity"):
        lines.append(f"🎯 Match score: {round(float(program['similarity']) * 100)}%")
    return "\n".join(lines) + "\n"


def program_list(programs: List[dict], show_format: bool = False) -> str:
    return "\n".join(
        program_summary(index, program, show_format)
        for index, program in enumerate(programs, start=1)
    )


def program_details(program: dict) -> str:
    """All user-facing details of one program."""
    info = f"{program.get('organization_name')}\n\n"
    if program.get("description"):
        info += f"{program['description']}\n\n"

    info += (
        f"📍 Location: {program.get('city')}, {program.get('state')} "
        f"{program.get('zip_code')}\n"
    )
    if program.get("delivery_mode"):
        info += f"🏥 Delivery: {program['delivery_mode']}\n"
    if program.get("cost"):
        info += f"💰 Cost: ${_amount(program['cost'])}\n"
    if program.get("duration_weeks"):
        info += f"📅 Duration: {program['duration_weeks']} weeks\n"
    if program.get("class_schedule"):
        info += f"🕐 Schedule: {program['class_schedule']}\n"
    if program.get("enrollment_status"):
        icon = ENROLLMENT_ICONS.get(program["enrollment_status"], "⏳")
        info += f"{icon} Status: {program['enrollment_status']}\n"
    if program.get("contact_phone"):
        info += f"📞 Phone: {program['contact_phone']}\n"
    if program.get("contact_email"):
        info += f"📧 Email: {program['contact_email']}\n"
    return info
