import pytest

from services.sanitizer import sanitize_code

CLEAN = "import matplotlib.pyplot as plt\nplt.plot([0, 1], [0, 1])"


@pytest.mark.parametrize(
    "raw",
    [
        CLEAN,
        f"```python\n{CLEAN}\n```",
        f"```\n{CLEAN}\n```",
        f"```py\n{CLEAN}\n```\n",
        f"python\n{CLEAN}",
        f"  \n```python\n{CLEAN}\n```  \n\n",
        f"```python\n```python\n{CLEAN}\n```\n```",
        f"```python\npython\n{CLEAN}\n```",
        f"```python {CLEAN}```",
        f"```python\r\n{CLEAN}\r\n```",
    ],
)
def test_sanitize_strips_fences_and_language_headers(raw):
    assert sanitize_code(raw).replace("\r", "") == CLEAN


def test_sanitize_keeps_inner_code_intact():
    code = "x = 1\n\n# comment\nprint(x)"
    assert sanitize_code(f"```python\n{code}\n```") == code


def test_sanitize_only_a_fence_yields_empty():
    assert sanitize_code("```python\n```") == ""
    assert sanitize_code("```") == ""
    assert sanitize_code("   ") == ""


@pytest.mark.parametrize(
    "raw",
    [
        "",
        CLEAN,
        f"```python\n{CLEAN}\n```",
        f"```python\n```python\n{CLEAN}\n```\n```",
        "python\npython\nprint(1)",
        "```\n```\n```",
        "print('```')",
        "```python\nprint('a')\n``` trailing words",
    ],
)
def test_sanitize_is_idempotent(raw):
    once = sanitize_code(raw)
    assert sanitize_code(once) == once
