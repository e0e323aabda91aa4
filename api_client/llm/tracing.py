from typing import Any, Dict

# Longer completions are cut in debug traces.
MAX_TRACE_CHARS = 2000


def build_trace_entry(
    model_name: str,
    prompt_id: str,
    raw_response: str,
    source_count: int = 0,
) -> Dict[str, Any]:
    """One advisory round trip, as logged at DEBUG level by the gateway."""
    truncated = len(raw_response) > MAX_TRACE_CHARS
    return {
        "model_name": model_name,
        "prompt_id": prompt_id,
        "raw_response": raw_response[:MAX_TRACE_CHARS],
        "truncated": truncated,
        "source_count": source_count,
    }
