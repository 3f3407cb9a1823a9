from hurler.jsonpath_probe import jsonpath_query, probe_jsonpath


def test_jsonpath_query():
    assert jsonpath_query('jsonpath "$.data.id" == 1') == "$.data.id"
    assert jsonpath_query('jsonpath "$[\\"a b\\"]" exists') == '$["a b"]'
    assert jsonpath_query("status == 200") is None


def test_probe_jsonpath_values():
    body = '{"data": {"id": 1, "tags": ["a", "b"]}}'
    assert probe_jsonpath(body, "$.data.id") == [1]
    assert probe_jsonpath(body, "$.data.tags[*]") == ["a", "b"]


def test_probe_jsonpath_missing_or_invalid():
    assert probe_jsonpath('{"data": {}}', "$.data.missing") == []
    assert probe_jsonpath("<html></html>", "$.data") == []
    assert probe_jsonpath("{}", "$[") == []
