"""
Text clean-up and JSON repair functions used to parse the output of a
language model.

Models asked to respond in JSON often wrap the JSON in a markdown code
block, precede it with a reasoning section, or produce JSON that is
almost valid: raw newlines inside strings, trailing commas, or missing
closing braces when the output is truncated. The functions of this
module remove the wrapping and repair these defects. Each repair is a
no-op on text that does not have the defect it targets, so that
applying a repair twice gives the same result as applying it once.

Example:
    ```python
    text = '```json\\n{"final_answer": "done",}\\n```'
    value = parse_partial_json(extract_from_codeblock(text))
    # value == {'final_answer': 'done'}
    ```
"""

import json
import re
from collections.abc import Sequence
from typing import Any

THINK_END_TAG = "</think>"

_CODEBLOCK_START = re.compile(r"^\s*```[\w+-]*")
_CODEBLOCK_END = re.compile(r"```\s*\Z")
_ESCAPE = re.compile(r"\\(.)", re.DOTALL)
_ESCAPES = {'n': "\n", 't': "\t", 'r': "\r"}


def remove_thought(text: str) -> str:
    """Discard the reasoning section of the text, if any, by keeping
    only the content after the last closing think tag."""
    if THINK_END_TAG in text:
        return text.split(THINK_END_TAG)[-1].strip()
    return text


def extract_from_codeblock(text: str) -> str:
    """Remove a markdown code fence opening the text (with its
    optional language tag) and a fence closing it. The result is
    stripped of surrounding whitespace."""
    start_match = _CODEBLOCK_START.match(text)
    start = start_match.end() if start_match else 0
    end_match = _CODEBLOCK_END.search(text, start)
    end = end_match.start() if end_match else len(text)
    return text[start:end].strip()


def extract_from_tag(text: str, tag: str) -> str:
    """Return the content of the first <tag>...</tag> element of the
    text. An element missing its closing or its opening tag is also
    accepted. If there is no tag, the stripped text is returned."""
    tag = re.escape(tag)
    patterns = [
        rf"<{tag}>\s*(.*?)\s*</{tag}>",
        rf"<{tag}>\s*(.*?)\s*\Z",
        rf"\A\s*(.*?)\s*</{tag}>",
    ]
    for pattern in patterns:
        match = re.search(pattern, text, re.DOTALL)
        if match:
            return match.group(1).strip()
    return text.strip()


def fix_text(text: str) -> str:
    """Replace the escape sequences of a captured JSON string. The
    sequences \\n, \\t, \\r become the control characters; any other
    escaped character is kept without the backslash."""
    return _ESCAPE.sub(
        lambda m: _ESCAPES.get(m.group(1), m.group(1)), text
    )


def remove_multiline(text: str) -> str:
    """Escape the raw newlines found inside string literals."""
    cleaned: list[str] = []
    inside_string = False
    escaped = False

    for c in text:
        if c == '"' and not escaped:
            inside_string = not inside_string
            cleaned.append(c)
        elif c == '\\' and inside_string:
            escaped = not escaped
            cleaned.append(c)
        elif c == '\n' and inside_string:
            escaped = False
            cleaned.append("\\n")
        else:
            escaped = False
            cleaned.append(c)

    return "".join(cleaned)


def _next_significant(text: str, pos: int) -> str | None:
    # skips whitespace and repeated commas
    for c in text[pos:]:
        if not c.isspace() and c != ',':
            return c
    return None


def remove_trailing_commas(text: str) -> str:
    """Remove the commas that directly precede a closing brace or
    bracket (also when repeated). Commas inside string literals are
    not touched."""
    cleaned: list[str] = []
    inside_string = False
    escaped = False

    for i, c in enumerate(text):
        if c == '"' and not escaped:
            inside_string = not inside_string
            cleaned.append(c)
        elif c == '\\' and inside_string:
            escaped = not escaped
            cleaned.append(c)
        elif c == ',' and not inside_string:
            if _next_significant(text, i + 1) not in ('}', ']'):
                cleaned.append(c)
        else:
            escaped = False
            cleaned.append(c)

    return "".join(cleaned)


def balance_parenthesis(text: str) -> str:
    """Close the braces and brackets left open at the end of the text,
    in the reverse order of their opening. A string literal left open
    is closed first, and a dangling comma is dropped before the
    closers are appended.

    If a closing brace or bracket does not match the last open one,
    or has no open counterpart, the text is returned unmodified.
    """
    stack: list[str] = []
    inside_string = False
    escaped = False

    for c in text:
        if c == '"' and not escaped:
            inside_string = not inside_string
        elif c == '{' and not inside_string:
            stack.append('}')
        elif c == '[' and not inside_string:
            stack.append(']')
        elif c in '}]' and not inside_string:
            if not stack or stack.pop() != c:
                return text
        elif c == '\\' and inside_string:
            escaped = not escaped
        else:
            escaped = False

    if not stack and not inside_string:
        return text

    balanced = text
    if inside_string:
        balanced += '\\"' if escaped else '"'
    else:
        balanced = balanced.rstrip()
        while balanced.endswith(','):
            balanced = balanced[:-1].rstrip()
    return balanced + "".join(reversed(stack))


def repair_json(text: str) -> str:
    """Apply all repairs to the text: escape the newlines in strings,
    remove trailing commas, and balance braces and brackets."""
    return balance_parenthesis(
        remove_trailing_commas(remove_multiline(text))
    )


def parse_partial_json(text: str, strict: bool = False) -> Any:
    """Parse the text as JSON, repairing it if needed.

    The exact text is tried first. If that fails and strict is False,
    the repairs are applied one after the other, each on the output of
    the previous one, and a parse is attempted after each.

    Raises:
        json.JSONDecodeError: if no version of the text is valid JSON
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        if strict:
            raise

    multiline_removed = remove_multiline(text)
    try:
        return json.loads(multiline_removed)
    except json.JSONDecodeError:
        pass

    comma_cleaned = remove_trailing_commas(multiline_removed)
    try:
        return json.loads(comma_cleaned)
    except json.JSONDecodeError:
        pass

    return json.loads(balance_parenthesis(comma_cleaned))


def flatten_final_answer(value: Any) -> str:
    """Unwrap a final answer nested under further 'final_answer' keys
    and return it as a string. Values that are not strings are
    rendered as indented JSON."""
    while isinstance(value, dict) and 'final_answer' in value:
        value = value['final_answer']  # type: ignore
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False)


def has_event_keys(
    value: Any, key_sets: Sequence[Sequence[str]]
) -> bool:
    """True if value is an object containing all the keys of at least
    one of the key sets."""
    if not isinstance(value, dict):
        return False
    return any(all(k in value for k in keys) for keys in key_sets)


def mentions_event_keys(
    text: str, key_sets: Sequence[Sequence[str]]
) -> bool:
    """True if the text contains all the keys of at least one of the
    key sets as substrings. Used when the text could not be parsed."""
    return any(all(k in text for k in keys) for keys in key_sets)
