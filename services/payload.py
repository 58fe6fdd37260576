import logging

from core.contract import MARKER_END, MARKER_START
from core.errors import MarkerNotFound

log = logging.getLogger(__name__)


def extract_payload(output: str) -> str:
    """Return the text between the first start marker and the end marker after it."""
    start_index = output.find(MARKER_START)
    if start_index == -1:
        log.error(f"Start marker missing from script output: {output!r}")
        raise MarkerNotFound(output)

    payload_start = start_index + len(MARKER_START)
    end_index = output.find(MARKER_END, payload_start)
    if end_index == -1:
        log.error(f"End marker missing from script output: {output!r}")
        raise MarkerNotFound(output)

    payload = output[payload_start:end_index].strip()
    if not payload:
        log.error("Markers found but the payload between them is empty")
        raise MarkerNotFound(output)

    return payload
