from __future__ import annotations

from hurler.result_extractor import AssertResult


def build_summary(asserts: list[AssertResult]) -> dict:
    total = len(asserts)
    passed = sum(1 for item in asserts if item.success)
    failed = total - passed
    return {
        "total": total,
        "pass": passed,
        "fail": failed,
    }
