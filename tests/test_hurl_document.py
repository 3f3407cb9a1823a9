from hurler.hurl_document import (
    Header,
    RequestDocument,
    find_orphan_lines,
    parse_hurl,
    request_method,
    serialize_hurl,
)

CREATE_USER = (
    "POST https://api.example.com/users\n"
    "Content-Type: application/json\n"
    "\n"
    '{"name": "a"}\n'
    "\n"
    "HTTP 201\n"
    "[Asserts]\n"
    'jsonpath "$.id" exists\n'
)


def test_parse_create_user_request():
    document = parse_hurl(CREATE_USER)
    assert document.method == "POST"
    assert document.url == "https://api.example.com/users"
    assert document.headers == [Header("Content-Type", "application/json")]
    assert document.body == '{"name": "a"}'
    assert document.response_status == "201"
    assert document.captures == []
    assert document.asserts == ['jsonpath "$.id" exists']


def test_serialize_reproduces_source_text():
    assert serialize_hurl(parse_hurl(CREATE_USER)) == CREATE_USER
    assert serialize_hurl(parse_hurl(CREATE_USER.rstrip("\n"))) == CREATE_USER


def test_json_body_is_not_a_header():
    document = parse_hurl('GET /x\nAuthorization: Bearer abc\n\n{"a": 1}\n\nHTTP 200')
    assert document.headers == [Header("Authorization", "Bearer abc")]
    assert document.body == '{"a": 1}'
    assert document.response_status == "200"


def test_brace_line_right_after_request_line_starts_body():
    document = parse_hurl('POST /x\n{"a": 1}\nHTTP 200')
    assert document.headers == []
    assert document.body == '{"a": 1}'


def test_header_like_line_inside_body_stays_body():
    document = parse_hurl("POST /x\nX-A: 1\n\nkey: value\nother: thing\n")
    assert document.headers == [Header("X-A", "1")]
    assert document.body == "key: value\nother: thing"


def test_request_line_defaults():
    assert parse_hurl("") == RequestDocument()
    document = parse_hurl("delete")
    assert document.method == "DELETE"
    assert document.url == ""
    assert parse_hurl("get   https://x.test/a  ").url == "https://x.test/a"


def test_header_value_split_on_first_colon():
    document = parse_hurl("GET /x\nReferer: https://example.com:8080/a\n")
    assert document.headers == [Header("Referer", "https://example.com:8080/a")]


def test_body_trailing_blank_lines_are_stripped():
    document = parse_hurl("POST /x\n\nline one\n\nline two\n\n\n")
    assert document.body == "line one\n\nline two"


def test_captures_and_asserts_sections():
    text = (
        "GET /x\n"
        "\n"
        "HTTP 200\n"
        "[Captures]\n"
        'id: jsonpath "$.id"\n'
        "\n"
        "[Asserts]\n"
        'jsonpath "$.id" exists\n'
        "status == 200\n"
    )
    document = parse_hurl(text)
    assert document.response_status == "200"
    assert document.captures == ['id: jsonpath "$.id"', ""]
    assert document.asserts == ['jsonpath "$.id" exists', "status == 200"]
    assert serialize_hurl(document) == text


def test_orphan_lines_are_discarded():
    text = "GET /x\nHTTP 200\nContent-Type: application/json\n[Asserts]\nstatus == 200\n"
    document = parse_hurl(text)
    assert document.asserts == ["status == 200"]
    assert find_orphan_lines(text) == [(3, "Content-Type: application/json")]


def test_no_orphans_without_response_line():
    assert find_orphan_lines("GET /x\nAccept: */*\n") == []


def test_missing_http_line_leaves_status_empty():
    document = parse_hurl("GET /x\nAccept: */*\n")
    assert document.response_status == ""
    assert document.headers == [Header("Accept", "*/*")]
    assert serialize_hurl(document) == "GET /x\nAccept: */*\n"


def test_serialize_uses_wildcard_status_and_section_order():
    document = RequestDocument(method="GET", url="/x")
    document.asserts.append("status == 200")
    document.captures.append('token: header "X-Token"')
    assert serialize_hurl(document) == (
        "GET /x\n"
        "\n"
        "HTTP *\n"
        "[Captures]\n"
        'token: header "X-Token"\n'
        "[Asserts]\n"
        "status == 200\n"
    )


def test_serialize_keeps_blank_rows():
    document = RequestDocument(
        method="GET",
        url="/x",
        headers=[Header("Accept", "*/*"), Header("", "")],
        response_status="200",
        asserts=["status == 200", ""],
    )
    reparsed = parse_hurl(serialize_hurl(document))
    assert reparsed == document


def test_whitespace_only_body_is_omitted():
    document = RequestDocument(method="GET", url="/x", body="  \n ")
    assert serialize_hurl(document) == "GET /x\n"


def test_round_trip_is_idempotent():
    samples = [
        CREATE_USER,
        "GET https://x.test\n",
        "put /a\nX-A: 1\nX-B:2\n\n<xml/>\n\n\nHTTP 204\n",
        "GET /x\n\n\nfirst\n  indented\nHTTP *\n[Asserts]\n\nheader \"A\" == \"b\"\n\n",
        "GET /x\n{\n  \"a\": [1, 2]\n}\nHTTP 200\nstray line\n[Captures]\nx: body\n",
    ]
    for text in samples:
        document = parse_hurl(text)
        serialized = serialize_hurl(document)
        assert parse_hurl(serialized) == document
        assert serialize_hurl(parse_hurl(serialized)) == serialized


def test_request_method():
    assert request_method(CREATE_USER) == "POST"
    assert request_method("\nGET /x") is None


def test_trailing_blank_body_lines_are_not_written():
    document = RequestDocument(method="POST", url="/x", body='{"a": 1}\n  \n', response_status="200")
    serialized = serialize_hurl(document)
    assert serialized == 'POST /x\n\n{"a": 1}\n\nHTTP 200\n'
    assert serialize_hurl(parse_hurl(serialized)) == serialized
