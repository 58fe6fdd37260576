import logging
import re

log = logging.getLogger(__name__)

FENCE = "```"
LANGUAGE_NAMES = {"python", "python3", "py"}

# a line made of the fence and at most a language tag
_FENCE_LINE = re.compile(r"^```[ \t]*(?:[A-Za-z][\w+.-]*)?[ \t]*$")
# the fence glued to code on the same line, e.g. ```python import math
_INLINE_FENCE = re.compile(r"^```(?:python3?|py)?[ \t]*")


def _strip_once(code: str) -> str:
    code = code.strip()
    if not code:
        return code

    lines = code.split("\n")
    first = lines[0].strip()
    if _FENCE_LINE.match(first):
        lines = lines[1:]
    elif first.lower() in LANGUAGE_NAMES:
        log.warning(f"Generated code started with a bare '{first}' line; removing it.")
        lines = lines[1:]
    elif first.startswith(FENCE):
        lines[0] = _INLINE_FENCE.sub("", first)

    if lines:
        last = lines[-1].rstrip()
        if last.endswith(FENCE):
            lines[-1] = last[: -len(FENCE)]

    return "\n".join(lines).strip()


def sanitize_code(raw_text: str) -> str:
    """Remove markdown fences and stray language headers from generated code.

    Stripping repeats until nothing changes, so the result of one call is
    always a fixed point of the next.
    """
    code = raw_text
    while True:
        cleaned = _strip_once(code)
        if cleaned == code:
            return cleaned
        code = cleaned
