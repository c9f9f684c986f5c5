"""
Client-side translation confidence heuristic

Informational only and unrelated to the transcription confidence computed
by the proxy. Length-ratio and echo checks, nothing more.
"""

MIN_LENGTH_RATIO = 0.5
MAX_LENGTH_RATIO = 2.0
LENGTH_RATIO_PENALTY = 0.3
ECHO_PENALTY = 0.2
ECHO_MARKER = "translation"


def estimate_translation_confidence(original_text: str, translated_text: str) -> float:
    """
    Starts at 1.0, loses 0.3 when the translated/original length ratio falls
    outside [0.5, 2.0] and another 0.2 when both texts mention "translation"
    (the upstream likely echoed the prompt).
    """
    length_ratio = len(translated_text) / max(len(original_text), 1)

    confidence = 1.0
    if length_ratio < MIN_LENGTH_RATIO or length_ratio > MAX_LENGTH_RATIO:
        confidence -= LENGTH_RATIO_PENALTY

    if ECHO_MARKER in translated_text.lower() and ECHO_MARKER in original_text.lower():
        confidence -= ECHO_PENALTY

    return max(0.0, min(1.0, confidence))
