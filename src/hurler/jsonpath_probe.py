from __future__ import annotations

import json
import re
from typing import Any

from jsonpath_ng import parse

_JSONPATH_ASSERT = re.compile(r'^\s*jsonpath\s+"((?:[^"\\]|\\.)*)"')


def jsonpath_query(assert_line: str) -> str | None:
    match = _JSONPATH_ASSERT.match(assert_line)
    if match is None:
        return None
    return match.group(1).replace('\\"', '"')


def probe_jsonpath(body: str, query: str) -> list[Any]:
    try:
        json_data = json.loads(body)
        return [match.value for match in parse(query).find(json_data)]
    except Exception:
        return []
