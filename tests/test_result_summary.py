from hurler.result_extractor import AssertResult
from hurler.result_summary import build_summary


def test_build_summary():
    asserts = [
        AssertResult(line=3, success=True),
        AssertResult(line=4, success=False),
        AssertResult(line=5, success=True),
    ]
    summary = build_summary(asserts)
    assert summary == {"total": 3, "pass": 2, "fail": 1}
