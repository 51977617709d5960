"""Gemini LLM client for event extraction and audio transcription.

Wraps the Google ``google-genai`` SDK to turn free-form text into a single
:class:`~voice_cal.models.event.EventDetails`, and to transcribe recorded
audio.  Handles prompt construction, the bounded API call, response parsing,
duration defaulting and the "tomorrow" date repair.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import ValidationError as PydanticValidationError

from voice_cal.exceptions import ExtractionFailed, ValidationError
from voice_cal.models.event import DEFAULT_DURATION, EventDetails, LLMEventSchema, to_parts
from voice_cal.prompts import TRANSCRIPTION_PROMPT, build_system_prompt, build_user_prompt

logger = logging.getLogger(__name__)

_TOMORROW_MARKER = "tomorrow"


class GeminiClient:
    """Client for extracting calendar events via Google Gemini.

    Args:
        api_key: Google Gemini API key.
        model: Model identifier to use for generation.  Defaults to
            ``"gemini-2.0-flash"``.
        timeout: Upper bound for a single API call, in seconds.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout: float = 30.0,
    ) -> None:
        self._client = genai.Client(
            api_key=api_key,
            http_options=genai_types.HttpOptions(timeout=int(timeout * 1000)),
        )
        self._model = model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract_event_details(
        self,
        text: str,
        current_datetime: datetime | None = None,
    ) -> EventDetails:
        """Extract one calendar event from free-form text.

        The current instant is embedded in the system prompt so relative
        expressions resolve against real time.  The call is made once;
        failures are not retried.

        Args:
            text: The transcript or typed description.
            current_datetime: The instant to treat as "now".  Defaults to
                ``datetime.now()``.

        Returns:
            The parsed event, with a 30-minute default duration applied and
            the "tomorrow" date repair (see :func:`repair_tomorrow`).

        Raises:
            ValidationError: If *text* is empty or whitespace-only.
            ExtractionFailed: If the API call fails or times out, or the
                response cannot be parsed into an event.
        """
        if not text or not text.strip():
            raise ValidationError("Nothing to extract: the text is empty")

        now = current_datetime or datetime.now()
        system_prompt = build_system_prompt(current_datetime=now.isoformat())
        user_prompt = build_user_prompt(text)

        logger.debug("System prompt sent to Gemini:\n%s", system_prompt)
        logger.debug("User prompt sent to Gemini:\n%s", user_prompt)

        config = genai_types.GenerateContentConfig(
            system_instruction=system_prompt,
            response_mime_type="application/json",
            response_schema=LLMEventSchema,
        )

        raw_text = self._call_api(user_prompt, config)
        logger.debug("Raw LLM response:\n%s", raw_text)

        details = self._parse_response(raw_text)
        details = repair_tomorrow(details, text, now)
        details = apply_default_duration(details)

        logger.info(
            "Extracted event: '%s' | %s -> %s | location=%s",
            details.title,
            details.start_datetime.isoformat(),
            details.end_datetime.isoformat(),
            details.location,
        )
        return details

    def transcribe_audio(self, audio: bytes, mime_type: str = "audio/wav") -> str:
        """Transcribe recorded speech.

        Args:
            audio: Raw audio bytes.
            mime_type: MIME type of *audio* (e.g. ``"audio/webm"``).

        Returns:
            The transcribed text, stripped.

        Raises:
            ValidationError: If *audio* is empty.
            ExtractionFailed: If the API call fails or returns no text.
        """
        if not audio:
            raise ValidationError("No audio provided")

        logger.info("Transcribing %d byte(s) of %s audio", len(audio), mime_type)
        contents = [
            genai_types.Part.from_bytes(data=audio, mime_type=mime_type),
            TRANSCRIPTION_PROMPT,
        ]
        text = self._call_api(contents, None).strip()
        if not text:
            raise ExtractionFailed("Transcription returned no text")

        logger.info("Transcription complete: %d character(s)", len(text))
        return text

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _call_api(
        self,
        contents: str | list,
        config: genai_types.GenerateContentConfig | None,
    ) -> str:
        """Call the Gemini API and return the raw response text.

        Raises:
            ExtractionFailed: On API-level failures, transport errors and
                timeouts.
        """
        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as exc:
            logger.error("Gemini API error: %s", exc)
            raise ExtractionFailed(f"Gemini API call failed: {exc}") from exc
        except (httpx.HTTPError, OSError) as exc:
            logger.error("Gemini request failed: %s", exc)
            raise ExtractionFailed(f"Gemini request failed: {exc}") from exc

        return response.text or ""

    @staticmethod
    def _parse_response(raw_text: str) -> EventDetails:
        """Parse raw JSON text into :class:`EventDetails`.

        A missing ``end`` is filled with ``start`` here and widened later
        by :func:`apply_default_duration`.

        Raises:
            ExtractionFailed: If the JSON is invalid or does not describe
                a well-formed event.
        """
        if not raw_text or not raw_text.strip():
            raise ExtractionFailed("Empty response from LLM", raw_response=raw_text or "")

        try:
            data = json.loads(raw_text)
        except json.JSONDecodeError as exc:
            raise ExtractionFailed(f"Invalid JSON: {exc}", raw_response=raw_text) from exc

        try:
            parsed = LLMEventSchema.model_validate(data)
            return EventDetails(
                title=parsed.title,
                description=parsed.description,
                start=parsed.start,
                end=parsed.end if parsed.end else parsed.start,
                location=parsed.location,
            )
        except PydanticValidationError as exc:
            logger.error("LLM response failed validation: %s", exc)
            raise ExtractionFailed(
                f"Schema validation failed: {exc}", raw_response=raw_text
            ) from exc


def repair_tomorrow(details: EventDetails, text: str, now: datetime) -> EventDetails:
    """Force the date of *details* to tomorrow when *text* says "tomorrow".

    Only year, month and day of ``start`` and ``end`` are overwritten;
    hour and minute are kept as returned.  This is a narrow repair for one
    marker; other relative expressions ("next week", "in 3 days") are left
    to the model.

    Args:
        details: The event as returned by the model.
        text: The source text the event was extracted from.
        now: The instant the extraction treated as "now".

    Returns:
        The repaired event, or *details* unchanged.
    """
    if _TOMORROW_MARKER not in text.lower():
        return details

    tomorrow = (now + timedelta(days=1)).date()
    date_parts = (tomorrow.year, tomorrow.month, tomorrow.day)
    repaired = details.with_changes(
        start=date_parts + details.start[3:],
        end=date_parts + details.end[3:],
    )
    if repaired != details:
        logger.info("Adjusted event date to tomorrow (%s)", tomorrow.isoformat())
    return repaired


def apply_default_duration(details: EventDetails) -> EventDetails:
    """Give *details* a 30-minute duration when ``end`` is not after ``start``."""
    if details.end_datetime > details.start_datetime:
        return details
    return details.with_changes(end=to_parts(details.start_datetime + DEFAULT_DURATION))
