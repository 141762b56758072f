"""
Second-chance repair for almost-JSON returned by Gemini.

Gemini sometimes wraps its JSON in a markdown code block or puts literal
newlines inside long string values (explanations especially). This is not a
JSON parser: it only strips the fence and escapes raw control characters
inside what looks like a string literal.
"""

FENCE = "```"
JSON_FENCE = "```json"

_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json / ``` opener and one trailing ``` marker."""
    cleaned = text.strip()
    if cleaned.startswith(JSON_FENCE):
        cleaned = cleaned[len(JSON_FENCE):]
    elif cleaned.startswith(FENCE):
        cleaned = cleaned[len(FENCE):]
    if cleaned.endswith(FENCE):
        cleaned = cleaned[:-len(FENCE)]
    return cleaned.strip()


def sanitize_json_response(text: str) -> str:
    """
    Return a best-effort corrected version of ``text``.

    A double quote toggles the "inside a string" state unless the character
    right before it is a backslash. That means a string ending in an escaped
    backslash (``"C:\\\\"``) confuses the scanner; callers rely on this
    behaviour staying as it is.
    """
    cleaned = strip_code_fence(text)

    result = []
    in_string = False
    for i, char in enumerate(cleaned):
        if char == '"' and (i == 0 or cleaned[i - 1] != "\\"):
            in_string = not in_string
            result.append(char)
        elif in_string:
            result.append(_ESCAPES.get(char, char))
        else:
            result.append(char)

    return "".join(result)
