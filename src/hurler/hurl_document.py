from __future__ import annotations

from dataclasses import dataclass, field

CAPTURES_MARKER = "[Captures]"
ASSERTS_MARKER = "[Asserts]"
DEFAULT_METHOD = "GET"


@dataclass
class Header:
    key: str
    value: str


@dataclass
class RequestDocument:
    """Editable view of a single Hurl request entry.

    The text on disk stays the source of truth: a document is parsed from the
    buffer, mutated by the visual editor and serialized straight back.
    """

    method: str = DEFAULT_METHOD
    url: str = ""
    headers: list[Header] = field(default_factory=list)
    body: str = ""
    response_status: str = ""
    captures: list[str] = field(default_factory=list)
    asserts: list[str] = field(default_factory=list)

    @property
    def has_response_section(self) -> bool:
        return bool(self.response_status or self.captures or self.asserts)


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if len(lines) > 1 and text.endswith("\n"):
        lines.pop()
    return lines


def _is_header_line(trimmed: str) -> bool:
    if not trimmed or trimmed.startswith("HTTP"):
        return False
    if trimmed.startswith("{") or trimmed.startswith("["):
        return False
    return ":" in trimmed


def parse_hurl(text: str) -> RequestDocument:
    document = RequestDocument()
    lines = _split_lines(text)

    first_line = lines[0].strip()
    if first_line:
        method, _, url = first_line.partition(" ")
        document.method = method.upper()
        document.url = url.strip()

    index = 1
    while index < len(lines):
        trimmed = lines[index].strip()
        if trimmed == "":
            index += 1
            break
        if not _is_header_line(trimmed):
            break
        key, _, value = trimmed.partition(":")
        document.headers.append(Header(key.strip(), value.strip()))
        index += 1

    body_lines: list[str] = []
    while index < len(lines):
        if lines[index].strip().startswith("HTTP"):
            break
        body_lines.append(lines[index])
        index += 1
    while body_lines and body_lines[-1].strip() == "":
        body_lines.pop()
    document.body = "\n".join(body_lines)

    if index < len(lines) and lines[index].strip().startswith("HTTP"):
        parts = lines[index].split()
        if len(parts) >= 2:
            document.response_status = parts[1]
        index += 1

    section: list[str] | None = None
    while index < len(lines):
        line = lines[index]
        trimmed = line.strip()
        if trimmed == CAPTURES_MARKER:
            section = document.captures
        elif trimmed == ASSERTS_MARKER:
            section = document.asserts
        elif section is not None:
            section.append(line)
        index += 1

    return document


def serialize_hurl(document: RequestDocument) -> str:
    lines = [f"{document.method} {document.url}"]

    for header in document.headers:
        lines.append(f"{header.key}: {header.value}")

    if document.body.strip():
        body_lines = document.body.split("\n")
        while body_lines[-1].strip() == "":
            body_lines.pop()
        lines.append("")
        lines.extend(body_lines)

    if document.has_response_section:
        lines.append("")
        lines.append(f"HTTP {document.response_status or '*'}")
        if document.captures:
            lines.append(CAPTURES_MARKER)
            lines.extend(document.captures)
        if document.asserts:
            lines.append(ASSERTS_MARKER)
            lines.extend(document.asserts)

    lines.append("")
    return "\n".join(lines)


def find_orphan_lines(text: str) -> list[tuple[int, str]]:
    """Return ``(line_number, line)`` pairs that ``parse_hurl`` drops.

    These are non-blank lines after the ``HTTP`` response line and before any
    ``[Captures]``/``[Asserts]`` marker, for instance implicit header asserts.
    Line numbers are 1-indexed.
    """
    lines = _split_lines(text)
    orphans: list[tuple[int, str]] = []
    seen_response_line = False
    in_section = False
    for number, line in enumerate(lines, start=1):
        trimmed = line.strip()
        if number == 1:
            continue
        if not seen_response_line:
            seen_response_line = trimmed.startswith("HTTP")
            continue
        if trimmed in (CAPTURES_MARKER, ASSERTS_MARKER):
            in_section = True
            continue
        if not in_section and trimmed:
            orphans.append((number, line))
    return orphans


def request_method(text: str) -> str | None:
    first_line = _split_lines(text)[0].strip()
    if not first_line:
        return None
    return first_line.partition(" ")[0].upper()
