"""Prompt builders for the Gemini calls.

Constructs the system instruction for event extraction (which embeds the
current instant so relative expressions resolve against real time), the
user prompt wrapping the transcript, and the audio transcription prompt.
"""

from __future__ import annotations

TRANSCRIPTION_PROMPT = (
    "Transcribe the speech in this audio recording verbatim. "
    "Return only the transcribed text, without commentary or timestamps."
)


def build_system_prompt(current_datetime: str) -> str:
    """Build the system instruction for the extraction call.

    Args:
        current_datetime: ISO 8601 string representing "now", used by the
            LLM to resolve relative time references such as "tomorrow".

    Returns:
        The complete system instruction.
    """
    return f"""\
You are a calendar event parser. Extract the details of a single event from
the user's text and return JSON.

The current date and time is: {current_datetime}

## Guidelines

1. Handle relative dates ("tomorrow", "next week", "on Friday") using the
   current date and time above.
2. Default the duration to 30 minutes if it is not specified.
3. Extract the location if one is mentioned.
4. Create a clear, concise title.
5. Include all other relevant details in the description.
6. Use the 24-hour clock for times.
7. Give times as the speaker's local wall-clock time; do not convert
   between time zones.

## Output Format

Return a JSON object with the following fields:

- "title": brief, clear event title
- "description": detailed description including all relevant information
- "start": [year, month, day, hour, minute]
- "end": [year, month, day, hour, minute]
- "location": location if specified, otherwise null

Months are numbered 1-12. All five components are integers.
"""


def build_user_prompt(text: str) -> str:
    """Build the user prompt containing the text to analyse.

    Args:
        text: The transcript or typed description of the event.

    Returns:
        The user prompt string wrapping *text*.
    """
    return f"Create a calendar event from the following text:\n\n{text}"
