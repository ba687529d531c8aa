import pytest

from safe_route.core.options import BodyParserOptions
from safe_route.exceptions import BodyParsingError
from safe_route.parsing.body import (
    BODY_REQUIRED_MESSAGE,
    INVALID_JSON_MESSAGE,
    UNSUPPORTED_CONTENT_TYPE_MESSAGE,
    decode_body,
    resolve_empty_body,
)
from tests.helpers import (
    form_request,
    json_request,
    make_request,
    multipart_request,
)

pytestmark = [pytest.mark.unit, pytest.mark.asyncio]


async def decode(request, **options):
    return await decode_body(
        request, has_schema=True, options=BodyParserOptions(**options)
    )


async def test_body_is_not_read_without_a_schema():
    reads = 0

    async def receive():
        nonlocal reads
        reads += 1
        return {"type": "http.request", "body": b"{}", "more_body": False}

    request = make_request("POST", headers={"content-type": "application/json"})
    request._receive = receive

    assert await decode_body(request, has_schema=False, options=BodyParserOptions()) == {}
    assert reads == 0


async def test_json_body_is_parsed():
    assert await decode(json_request({"field": 123, "tags": ["a"]})) == {
        "field": 123,
        "tags": ["a"],
    }


async def test_json_content_type_match_is_case_insensitive_and_ignores_charset():
    request = make_request(
        "POST",
        headers={"content-type": "Application/JSON; charset=utf-8"},
        body=b'{"a": 1}',
    )
    assert await decode(request) == {"a": 1}


async def test_invalid_json_raises_body_parsing_error():
    with pytest.raises(BodyParsingError) as ei:
        await decode(json_request(raw=b"{not json"))
    assert str(ei.value) == INVALID_JSON_MESSAGE


@pytest.mark.parametrize("raw", [b"{\"x\": NaN}", b"Infinity", b"[1, -Infinity]"])
async def test_non_standard_json_constants_are_rejected(raw):
    with pytest.raises(BodyParsingError) as ei:
        await decode(json_request(raw=raw))
    assert str(ei.value) == INVALID_JSON_MESSAGE


async def test_empty_json_body_defaults_to_empty_mapping():
    assert await decode(json_request(raw=b"")) == {}


async def test_empty_json_body_uses_configured_empty_value_including_none():
    assert await decode(json_request(raw=b""), empty_value=None) is None
    assert await decode(json_request(raw=b""), empty_value=[]) == []


async def test_empty_json_body_is_rejected_when_not_allowed():
    with pytest.raises(BodyParsingError) as ei:
        await decode(json_request(raw=b""), allow_empty_body=False)
    assert str(ei.value) == BODY_REQUIRED_MESSAGE


async def test_multipart_fields_are_decoded():
    request = multipart_request([("field", "form-field-value")])
    assert await decode(request) == {"field": "form-field-value"}


async def test_urlencoded_fields_are_coerced_and_grouped():
    request = form_request([("age", "30"), ("tag", "a"), ("tag", "b"), ("ok", "true")])
    assert await decode(request, coerce="primitive") == {
        "age": 30,
        "tag": ["a", "b"],
        "ok": True,
    }


async def test_form_array_strategy_applies_to_body():
    request = form_request([("tag", "a")])
    assert await decode(request, array_strategy="always") == {"tag": ["a"]}

    request = form_request([("tag", "a"), ("tag", "b")])
    assert await decode(
        request, array_strategy="never", single_value_strategy="first"
    ) == {"tag": "a"}


async def test_empty_form_applies_empty_body_policy():
    assert await decode(form_request([])) == {}
    with pytest.raises(BodyParsingError) as ei:
        await decode(form_request([]), allow_empty_body=False)
    assert str(ei.value) == BODY_REQUIRED_MESSAGE


async def test_unsupported_content_type_is_rejected_in_strict_mode():
    request = make_request("POST", headers={"content-type": "text/plain"}, body=b"hi")
    with pytest.raises(BodyParsingError) as ei:
        await decode(request)
    assert str(ei.value) == UNSUPPORTED_CONTENT_TYPE_MESSAGE


async def test_missing_content_type_is_rejected_in_strict_mode():
    with pytest.raises(BodyParsingError):
        await decode(make_request("POST", body=b"{}"))


async def test_non_strict_json_first_parses_json_then_falls_back_to_text():
    request = make_request("POST", headers={"content-type": "text/plain"}, body=b'{"a": 1}')
    assert await decode(request, strict_content_type=False) == {"a": 1}

    request = make_request("POST", headers={"content-type": "text/plain"}, body=b"hello")
    assert await decode(request, strict_content_type=False) == "hello"


async def test_non_strict_json_first_treats_non_standard_constants_as_text():
    request = make_request("POST", headers={"content-type": "text/plain"}, body=b"Infinity")
    assert await decode(request, strict_content_type=False) == "Infinity"

    request = make_request("POST", headers={"content-type": "text/plain"}, body=b"NaN")
    assert await decode(request, strict_content_type=False, coerce="primitive") == "NaN"


async def test_non_strict_text_strategy_returns_coerced_text():
    request = make_request("POST", headers={"content-type": "text/plain"}, body=b"42")
    assert (
        await decode(
            request,
            strict_content_type=False,
            fallback_strategy="text",
            coerce="primitive",
        )
        == 42
    )

    request = make_request("POST", headers={"content-type": "text/plain"}, body=b"[1]")
    assert await decode(request, strict_content_type=False, fallback_strategy="text") == "[1]"


async def test_non_strict_empty_body_applies_policy():
    request = make_request("POST", headers={"content-type": "text/plain"})
    assert await decode(request, strict_content_type=False, empty_value="none") == "none"


async def test_resolve_empty_body_distinguishes_unset_from_none():
    assert resolve_empty_body(BodyParserOptions()) == {}
    assert resolve_empty_body(BodyParserOptions(empty_value=None)) is None
