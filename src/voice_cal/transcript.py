"""Transcript reconciliation for incremental speech recognition.

Each function takes the prior :class:`~voice_cal.models.transcript.TranscriptState`
and returns a new one; nothing here touches a recognition source.  The
:class:`~voice_cal.speech.SpeechRecorder` feeds source callbacks through
these transitions one at a time.

Rules:

- Final segments are appended, space-joined, to the committed text.
- The most recent interim segment of a batch replaces the previous
  batch's interim text; interim text never accumulates across batches.
- Stopping folds interim text into the committed text.
- Starting a session clears both buffers.
"""

from __future__ import annotations

from dataclasses import replace

from voice_cal.models.transcript import RecognitionEvent, TranscriptState


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def start_session(state: TranscriptState) -> TranscriptState:
    """Begin a new recording session with empty buffers."""
    return TranscriptState(
        final="",
        interim="",
        recording=True,
        session_id=state.session_id + 1,
    )


def apply_event(state: TranscriptState, event: RecognitionEvent) -> TranscriptState:
    """Merge one recognition batch into *state*.

    Only results from ``event.result_index`` onwards are considered; the
    earlier ones were merged by previous callbacks.

    Args:
        state: Transcript state before the batch.
        event: The batch delivered by the recognition source.

    Returns:
        The new state.  ``interim`` is the last interim segment of the
        batch, or ``""`` when the batch carried none.
    """
    final = state.final
    interim = ""

    for result in event.results[event.result_index:]:
        text = result.transcript.strip()
        if result.is_final:
            final = _join(final, text)
        else:
            interim = text

    return replace(state, final=final, interim=interim)


def stop_session(state: TranscriptState) -> TranscriptState:
    """End the session, folding interim text into the committed text.

    Idempotent: stopping an already-stopped session returns an equal state.
    """
    return replace(
        state,
        final=_join(state.final, state.interim),
        interim="",
        recording=False,
    )


def handle_end(state: TranscriptState) -> tuple[TranscriptState, bool]:
    """React to the recognition source ending on its own.

    Returns:
        ``(state, restart)``.  *restart* mirrors ``state.recording``: the
        user's intent decides, so an end that races an explicit stop never
        restarts the source.
    """
    return state, state.recording


def reset_transcript(state: TranscriptState) -> TranscriptState:
    """Clear the transcript without changing the recording flag."""
    return replace(state, final="", interim="", session_id=state.session_id + 1)


def edit_transcript(state: TranscriptState, text: str) -> TranscriptState:
    """Replace the transcript with user-edited *text*."""
    return replace(state, final=text.strip(), interim="", session_id=state.session_id + 1)
