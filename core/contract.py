"""String conventions shared by the prompt, the generated scripts and the extractor.

The generation model is told to print the rendered figure between the two
markers and to start its reply with the refusal prefix when a problem cannot
be drawn. Everything that writes or recognizes these strings imports them
from here.
"""

MARKER_START = "MATPLOTLIB_BASE64_START:"
MARKER_END = ":MATPLOTLIB_BASE64_END"

REFUSAL_PREFIX = "ERROR:CANNOT_VISUALIZE:"

NO_TEXT_FOUND = "No text found in image."
