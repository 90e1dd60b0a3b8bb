"""
Tool implementations.

Tools are function-like operations that are called explicitly by the host.
Each handler is a pure function of its validated arguments.
"""

import logging

from mcp_template.registry import TOOL, OperationRegistry
from mcp_template.schema import Param

logger = logging.getLogger(__name__)


def format_number(value) -> str:
    """Render a number the way a JSON client expects: ``5`` not ``5.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ============================================================================
# ADD NUMBERS
# ============================================================================

ADD_NUMBERS_SCHEMA = {
    "a": Param("number", "First number to add"),
    "b": Param("number", "Second number to add"),
}


def add_numbers(a, b) -> str:
    """Add two numbers together."""
    total = a + b
    return f"The sum of {format_number(a)} and {format_number(b)} is {format_number(total)}"


# ============================================================================
# MEETING AGENDA (dynamic prompting through a tool)
# ============================================================================

MEETING_AGENDA_SCHEMA = {
    "meetingTitle": Param("string", "Title or purpose of the meeting"),
    "participants": Param("string", "Who will attend the meeting (roles or names)"),
    "duration": Param(
        "string", "Expected duration of the meeting (e.g., '30 minutes', '1 hour')"
    ),
}

MEETING_AGENDA_TEMPLATE = """Create a structured agenda for a "{meeting_title}" meeting with {participants} that will last {duration}.

The agenda should include:
1. Meeting Objective (1-2 sentences)
2. Discussion Topics (prioritized list with time allocations)
3. Required Preparation for Participants
4. Expected Outcomes/Deliverables
5. Next Steps and Action Items Template

Format the agenda to be clear, concise, and actionable. Ensure the timing works within the {duration} constraint."""


def meeting_agenda_generator(meetingTitle: str, participants: str, duration: str) -> str:
    logger.info(f"[Tool] Generating meeting agenda for: {meetingTitle}")
    return MEETING_AGENDA_TEMPLATE.format(
        meeting_title=meetingTitle,
        participants=participants,
        duration=duration,
    )


def register_tools(registry: OperationRegistry) -> None:
    registry.register(
        "add-numbers",
        "For any addition operation to add two numbers together",
        ADD_NUMBERS_SCHEMA,
        add_numbers,
        kind=TOOL,
    )
    # The description tells the host to collect all three values first
    registry.register(
        "meeting-agenda-generator",
        "Creates a prompt for generating a structured meeting agenda. User must provide "
        "meetingTitle, participants, and duration. If any are missing, ask the user to provide them.",
        MEETING_AGENDA_SCHEMA,
        meeting_agenda_generator,
        kind=TOOL,
    )
