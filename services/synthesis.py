import logging
from string import Template

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from core.config import Settings
from core.contract import MARKER_END, MARKER_START, REFUSAL_PREFIX
from core.errors import (
    ConfigMissing,
    ContentBlocked,
    EmptyGeneration,
    ModelRefused,
    UpstreamCallFailed,
)
from services.sanitizer import sanitize_code

log = logging.getLogger(__name__)

# finish reasons that mean the candidate was withheld rather than empty
BLOCKING_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "IMAGE_SAFETY"}

PROMPT_TEMPLATE = Template(
    """
You are an expert Python programmer specializing in mathematical visualizations.
Your task is to take a math problem description and generate Python code to visualize it.

The visualization should be clear, mathematically accurate, and aesthetically pleasing.

Key requirements for the visualization:
- When relevant to the problem, include text annotations directly on the image. These annotations should display:
    - Lengths of given sides (e.g., '3cm', 'x units').
    - Given areas (e.g., 'Area = 35 cm²').
    - Measures of angles (e.g., '30°', 'θ').
    - Coordinates of important points only if they are part of the problem.
- Use Matplotlib's `plt.text()` or an Axes object's `ax.text()` / `ax.annotate()` methods for these text annotations.
- Ensure all annotations are legible, clearly positioned (e.g., near the feature they describe but not overlapping other important elements or each other), with minimal text and appropriately sized for clarity.
- The numerical values, variables, and units in these annotations must precisely match the problem statement.
- Represent geometric figures accurately according to the problem's specifications (e.g., right angles should appear as 90 degrees, relative lengths should be visually proportional if specific values are given, etc.).

Use the Matplotlib library for plotting both analytic geometry problems (lines, functions, points on a coordinate plane) and general geometric shapes (triangles, circles, polygons, angles).
Ensure all geometric constructions and renderings are done directly with Matplotlib.

Output ONLY the Python code required to generate the visualization. Do not include any explanatory text, markdown formatting, or anything other than the Python code itself.

Important: The Matplotlib plot should be converted to a base64 encoded string directly in the Python code and printed to standard output.
Specifically, after creating the plot with plt.figure() (or plt.subplots()), use the following snippet to get the base64 string:

import io
import base64

pic_iobytes = io.BytesIO()
plt.savefig(pic_iobytes, format='png')
pic_iobytes.seek(0)
pic_hash = base64.b64encode(pic_iobytes.read())
print(f"${marker_start}{pic_hash.decode('utf-8')}${marker_end}")
plt.close()

Ensure no other print statements are present in the Python code output, only the base64 string in the format specified above.
Do not save to a file like 'visualization.png'.

If the problem cannot be visualized, reply with a single line that starts with ${refusal_prefix} followed by a short reason, and nothing else.

Here is the math problem:
--- START PROBLEM ---
${problem_text}
--- END PROBLEM ---

Python code (printing base64 string of the plot):
"""
)


def build_prompt(problem_text: str) -> str:
    return PROMPT_TEMPLATE.substitute(
        problem_text=problem_text.strip(),
        marker_start=MARKER_START,
        marker_end=MARKER_END,
        refusal_prefix=REFUSAL_PREFIX,
    )


def find_refusal(generated_text: str) -> str | None:
    """Return the refusal line if the model declined the problem, else None.

    Only the first non-blank line of the fence-stripped reply counts, so a
    script that merely mentions the prefix further down is not a refusal.
    """
    for line in sanitize_code(generated_text).splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith(REFUSAL_PREFIX):
            return line
        return None
    return None


def _enum_name(value) -> str:
    return str(getattr(value, "value", value))


def _block_reason(response) -> str | None:
    feedback = getattr(response, "prompt_feedback", None)
    reason = getattr(feedback, "block_reason", None)
    if reason:
        return _enum_name(reason)

    candidates = getattr(response, "candidates", None) or []
    if candidates:
        finish_reason = getattr(candidates[0], "finish_reason", None)
        if finish_reason and _enum_name(finish_reason) in BLOCKING_FINISH_REASONS:
            return _enum_name(finish_reason)
    return None


_genai_client: genai.Client | None = None
_genai_api_key: str | None = None


def get_genai_client(api_key: str) -> genai.Client:
    """Return the process-wide Gemini client, creating it on first use."""
    global _genai_client, _genai_api_key

    if _genai_client is None or _genai_api_key != api_key:
        _genai_client = genai.Client(api_key=api_key)
        _genai_api_key = api_key
        log.info("Gemini client initialized")

    return _genai_client


async def close_genai_client() -> None:
    global _genai_client, _genai_api_key
    if _genai_client:
        await _genai_client.aio.aclose()
        _genai_client.close()
        _genai_client = None
        _genai_api_key = None


class CodeSynthesizer:
    """Turns a problem statement into a plotting script using Gemini."""

    def __init__(self, settings: Settings, client: genai.Client | None = None):
        self.settings = settings
        self._client = client

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.settings.GEMINI_API_KEY:
                log.error("GEMINI_API_KEY not set in environment variables")
                raise ConfigMissing(
                    "AI service configuration error - API key not found",
                    details="Please set the GEMINI_API_KEY environment variable",
                )
            self._client = get_genai_client(self.settings.GEMINI_API_KEY)
        return self._client

    def _generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.settings.GENERATION_TEMPERATURE,
            top_k=self.settings.GENERATION_TOP_K,
            top_p=self.settings.GENERATION_TOP_P,
            max_output_tokens=self.settings.GENERATION_MAX_OUTPUT_TOKENS,
        )

    async def generate(self, problem_text: str) -> str:
        client = self._get_client()
        prompt = build_prompt(problem_text)

        log.info(f"Sending request to {self.settings.GEMINI_MODEL}")
        try:
            response = await client.aio.models.generate_content(
                model=self.settings.GEMINI_MODEL,
                contents=prompt,
                config=self._generation_config(),
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            log.error(f"Gemini API Error: {e}")
            raise UpstreamCallFailed("Error calling Gemini API", details=str(e)) from e

        if response is None:
            raise EmptyGeneration("AI model returned an empty response")

        block_reason = _block_reason(response)
        if block_reason:
            log.error(f"Content blocked: {block_reason}")
            raise ContentBlocked(f"Content blocked: {block_reason}", details=block_reason)

        generated = getattr(response, "text", None)
        if not generated or not generated.strip():
            log.error("Empty response text from Gemini")
            raise EmptyGeneration("Empty response from AI")

        refusal = find_refusal(generated)
        if refusal is not None:
            log.info(f"AI cannot visualize this problem: {refusal}")
            raise ModelRefused("Problem cannot be visualized by AI", details=refusal)

        return generated
