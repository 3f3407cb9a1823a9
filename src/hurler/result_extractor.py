from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from hurler.runner import RunResult

RESPONSE_BODY_MARKER = "* Response body:"
TIMINGS_PREFIX = "* Timings:"

_ACTUAL_PATTERN = re.compile(r"actual:\s+(.+)")
_EXPECTED_PATTERN = re.compile(r"expected:\s+(.+)")


@dataclass
class AssertResult:
    line: int
    success: bool
    message: str | None = None
    label: str = ""
    actual: str | None = None
    expected: str | None = None


@dataclass
class CaptureResult:
    name: str
    value: Any


@dataclass
class ResponseView:
    status: int = 0
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: str = ""
    captures: list[CaptureResult] = field(default_factory=list)
    asserts: list[AssertResult] = field(default_factory=list)

    @property
    def executed(self) -> bool:
        return self.status > 0


def extract_body_from_verbose(stderr: str) -> str:
    """Pull the response body dump out of ``--very-verbose`` output.

    Each call prints its own block; the last one belongs to the final hop.
    """
    blocks: list[list[str]] = []
    current: list[str] | None = None
    for raw_line in stderr.split("\n"):
        line = raw_line.rstrip("\r")
        if current is None:
            if line.rstrip() == RESPONSE_BODY_MARKER:
                current = []
            continue
        if line == "*" or line.startswith(TIMINGS_PREFIX):
            blocks.append(current)
            current = None
            continue
        current.append(line[2:] if line.startswith("* ") else line)
    if current is not None:
        blocks.append(current)
    if not blocks:
        return ""
    return "\n".join(blocks[-1])


def get_failure_detail(message: str | None) -> tuple[str, str] | None:
    if not message:
        return None
    actual_match = _ACTUAL_PATTERN.search(message)
    expected_match = _EXPECTED_PATTERN.search(message)
    if actual_match and expected_match:
        return actual_match.group(1).strip(), expected_match.group(1).strip()
    return None


def trace_entries(json_trace: Any) -> list[dict]:
    if isinstance(json_trace, dict):
        entries = json_trace.get("entries")
    else:
        entries = json_trace
    if not isinstance(entries, list):
        return []
    return [entry for entry in entries if isinstance(entry, dict)]


def _source_line(source_lines: list[str], line: int) -> str:
    if 1 <= line <= len(source_lines):
        return source_lines[line - 1].strip()
    return ""


def _build_assert(raw: dict, source_lines: list[str]) -> AssertResult:
    try:
        line = int(raw.get("line") or 0)
    except (TypeError, ValueError):
        line = 0
    message = raw.get("message")
    if message is not None:
        message = str(message)
    result = AssertResult(
        line=line,
        success=raw.get("success") is True,
        message=message,
        label=_source_line(source_lines, line) or f"Line {line}",
    )
    detail = get_failure_detail(message)
    if detail is not None:
        result.actual, result.expected = detail
    return result


def _parse_headers(raw_headers: Any) -> list[tuple[str, str]]:
    headers: list[tuple[str, str]] = []
    if not isinstance(raw_headers, list):
        return headers
    for item in raw_headers:
        if isinstance(item, dict):
            headers.append((str(item.get("name", "")), str(item.get("value", ""))))
    return headers


def extract_response_info(result: RunResult, source_text: str) -> ResponseView:
    view = ResponseView(body=extract_body_from_verbose(result.stderr or ""))
    entries = trace_entries(result.json_trace)
    if not entries:
        if not view.body:
            view.body = result.stderr or ""
        return view

    last_entry = entries[-1]
    calls = last_entry.get("calls") or []
    last_call = calls[-1] if isinstance(calls, list) and calls else {}
    response = last_call.get("response") if isinstance(last_call, dict) else None
    if isinstance(response, dict):
        try:
            view.status = int(response.get("status") or 0)
        except (TypeError, ValueError):
            view.status = 0
        view.headers = _parse_headers(response.get("headers"))

    for capture in last_entry.get("captures") or []:
        if isinstance(capture, dict):
            view.captures.append(CaptureResult(str(capture.get("name", "")), capture.get("value")))

    source_lines = source_text.split("\n")
    for raw in last_entry.get("asserts") or []:
        if not isinstance(raw, dict):
            continue
        assert_result = _build_assert(raw, source_lines)
        if _source_line(source_lines, assert_result.line).startswith("HTTP"):
            continue
        view.asserts.append(assert_result)
    return view


def format_body(body: str) -> str:
    if not body.strip():
        return body
    try:
        parsed = json.loads(body)
    except ValueError:
        return body
    return json.dumps(parsed, indent=2, ensure_ascii=False)
