"""
Prompt construction and response parsing for AI field extraction.
"""

import re
import json
import logging
from typing import List, Dict, Any, Sequence

from extraction.exceptions import AIResponseFormatError
from extraction.models import LogicalLine


logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r'```(?:json)?', re.IGNORECASE)

PROMPT_TEMPLATE = """You extract structured data from delivery documents.

Extract the following fields, processing EACH LINE SEPARATELY:
{field_list}

RULES:
1. Every line below is one independent record. Analyse each line on its own.
2. Never combine a value from one line with a record from another line.
3. A quantity belongs to the article on the SAME line; it is the number followed by a unit such as UND.
4. The digits of an order code (e.g. CPOV-000009911) are never a quantity.
5. If a field is not clearly present on a line, omit it for that line. Do not guess.
6. Copy values exactly as they appear in the text.

DOCUMENT LINES:
{numbered_lines}

Respond ONLY with a JSON object in exactly this format, with no other text:
{{"fields": [{{"name": "<field name>", "value": "<value>", "line": <line number>}}]}}
"""


def render_lines(lines: Sequence[LogicalLine], max_length: int) -> str:
    """
    Render lines as "Line N: text", cut at a line boundary to max_length chars.
    """
    rendered = []
    total = 0
    for line in lines:
        entry = f"Line {line.index}: {line.text}"
        if total + len(entry) > max_length:
            logger.warning(f"Document truncated to {max_length} characters "
                           f"({len(rendered)} of {len(lines)} lines sent)")
            break
        rendered.append(entry)
        total += len(entry) + 1
    return '\n'.join(rendered)


def build_extraction_prompt(lines: Sequence[LogicalLine], requested_fields: Sequence[str],
                            max_length: int) -> str:
    """
    Build the line-numbered extraction prompt.

    Args:
        lines: Relevant logical lines, keeping their original numbering
        requested_fields: Labels to extract
        max_length: Maximum characters of document text to include

    Returns:
        Prompt text
    """
    field_list = '\n'.join(f"- {name}" for name in requested_fields)
    return PROMPT_TEMPLATE.format(
        field_list=field_list,
        numbered_lines=render_lines(lines, max_length),
    )


def parse_extraction_response(response_text: str) -> List[Dict[str, Any]]:
    """
    Parse an AI response into raw field dictionaries.

    Markdown code fences are stripped and the JSON object between the first
    "{" and the last "}" is decoded. Both {"fields": [{name, value, line}]}
    and the legacy {"campos": [{nombre, valor, linea}]} shapes are accepted.

    Returns:
        List of {"name", "value", "line"} dictionaries

    Raises:
        AIResponseFormatError: If no JSON object or no field list is found
    """
    if not response_text or not response_text.strip():
        raise AIResponseFormatError("AI response is empty")

    cleaned = CODE_FENCE_PATTERN.sub('', response_text).strip()
    start = cleaned.find('{')
    end = cleaned.rfind('}')
    if start == -1 or end <= start:
        raise AIResponseFormatError("No JSON object in AI response", response_text)

    try:
        payload = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise AIResponseFormatError(f"Invalid JSON in AI response: {e}", response_text) from e

    if not isinstance(payload, dict):
        raise AIResponseFormatError("AI response is not a JSON object", response_text)

    if isinstance(payload.get('fields'), list):
        entries = payload['fields']
        keys = ('name', 'value', 'line')
    elif isinstance(payload.get('campos'), list):
        entries = payload['campos']
        keys = ('nombre', 'valor', 'linea')
    else:
        raise AIResponseFormatError("AI response has no 'fields' array", response_text)

    name_key, value_key, line_key = keys
    parsed = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.debug(f"Skipping non-object entry in AI response: {entry!r}")
            continue
        parsed.append({
            'name': entry.get(name_key),
            'value': entry.get(value_key),
            'line': entry.get(line_key),
        })
    return parsed
