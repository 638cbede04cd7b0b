import pytest
import requests

from newsreel import feeds
from newsreel.feeds import (
    FetchError,
    JsonProxyStrategy,
    XmlProxyStrategy,
    fetch_source,
)


def _install_get(monkeypatch, responses):
    """Route requests.get by proxy endpoint; values are responses or exceptions."""
    calls = []

    def fake_get(url, timeout=None, headers=None):
        calls.append(url)
        for prefix, outcome in responses.items():
            if url.startswith(prefix):
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise AssertionError(f"Unexpected request to {url}")

    monkeypatch.setattr(feeds.requests, "get", fake_get)
    return calls


JSON_PREFIX = JsonProxyStrategy.endpoint
XML_PREFIX = XmlProxyStrategy.endpoint


def test_build_url_encodes_feed_url():
    url = JsonProxyStrategy().build_url("https://example.com/feed?a=1&b=2")

    assert url == (
        "https://api.rss2json.com/v1/api.json?rss_url="
        "https%3A%2F%2Fexample.com%2Ffeed%3Fa%3D1%26b%3D2"
    )
    assert XmlProxyStrategy().build_url("https://example.com/rss").startswith(
        "https://api.allorigins.win/raw?url=https%3A%2F%2F"
    )


def test_json_proxy_success_skips_xml_proxy(monkeypatch, source, fake_response):
    envelope = {
        "status": "ok",
        "items": [
            {"title": "One", "guid": "1", "pubDate": "2025-06-10 08:00:00"},
            {"title": "Two", "guid": "2"},
        ],
    }
    calls = _install_get(
        monkeypatch,
        {
            JSON_PREFIX: fake_response(json_data=envelope),
            XML_PREFIX: AssertionError("XML proxy must not be used"),
        },
    )

    items = fetch_source(source)

    assert [item.id for item in items] == ["example-1", "example-2"]
    assert len(calls) == 1


def test_json_proxy_empty_envelope_is_trusted(monkeypatch, source, fake_response):
    calls = _install_get(
        monkeypatch,
        {JSON_PREFIX: fake_response(json_data={"status": "ok", "items": []})},
    )

    assert fetch_source(source) == []
    assert len(calls) == 1


@pytest.mark.parametrize(
    "json_outcome",
    [
        pytest.param("http-error", id="bad-status"),
        pytest.param("envelope-error", id="non-ok-envelope"),
        pytest.param("network-error", id="network-error"),
        pytest.param("invalid-json", id="invalid-json"),
    ],
)
def test_falls_back_to_xml_proxy(
    monkeypatch, source, fake_response, rss_document, json_outcome
):
    json_responses = {
        "http-error": fake_response(status_code=500),
        "envelope-error": fake_response(
            json_data={"status": "error", "message": "Rate limited"}
        ),
        "network-error": requests.ConnectionError("connection refused"),
        "invalid-json": fake_response(content=b"<html>oops</html>"),
    }
    calls = _install_get(
        monkeypatch,
        {
            JSON_PREFIX: json_responses[json_outcome],
            XML_PREFIX: fake_response(content=rss_document.encode("utf-8")),
        },
    )

    items = fetch_source(source)

    assert [item.title for item in items] == ["First story", "Second story"]
    assert [url.startswith(JSON_PREFIX) for url in calls] == [True, False]


def test_both_proxies_failing_raises_last_error(monkeypatch, source, fake_response):
    _install_get(
        monkeypatch,
        {
            JSON_PREFIX: fake_response(
                json_data={"status": "error", "message": "Rate limited"}
            ),
            XML_PREFIX: fake_response(status_code=404),
        },
    )

    with pytest.raises(FetchError) as excinfo:
        fetch_source(source)

    assert str(excinfo.value) == "Failed to load Example News (HTTP 404)"


def test_empty_xml_document_is_a_failure(monkeypatch, source, fake_response):
    _install_get(
        monkeypatch,
        {
            JSON_PREFIX: fake_response(status_code=503),
            XML_PREFIX: fake_response(content=b"<rss><channel/></rss>"),
        },
    )

    with pytest.raises(FetchError) as excinfo:
        fetch_source(source)

    assert str(excinfo.value) == "Empty response from Example News"


def test_malformed_xml_is_a_failure(monkeypatch, source, fake_response):
    _install_get(
        monkeypatch,
        {
            JSON_PREFIX: requests.Timeout("timed out"),
            XML_PREFIX: fake_response(content=b"<rss><item></rss>"),
        },
    )

    with pytest.raises(FetchError) as excinfo:
        fetch_source(source)

    assert str(excinfo.value).startswith("Could not parse feed Example News")


def test_envelope_error_without_message_uses_default(
    monkeypatch, source, fake_response
):
    _install_get(
        monkeypatch, {JSON_PREFIX: fake_response(json_data={"status": "error"})}
    )

    with pytest.raises(FetchError) as excinfo:
        fetch_source(source, strategies=[JsonProxyStrategy()])

    assert str(excinfo.value) == "Failed to load Example News"


def test_no_strategies_reports_unreachable(source):
    with pytest.raises(FetchError) as excinfo:
        fetch_source(source, strategies=[])

    assert str(excinfo.value) == "Source Example News is unreachable"


def test_failures_are_logged(monkeypatch, source, fake_response, caplog):
    caplog.set_level("WARNING")
    _install_get(
        monkeypatch,
        {
            JSON_PREFIX: fake_response(status_code=500),
            XML_PREFIX: fake_response(status_code=500),
        },
    )

    with pytest.raises(FetchError):
        fetch_source(source)

    assert "Proxy rss2json failed for source 'Example News'" in caplog.text
    assert "Proxy AllOrigins failed for source 'Example News'" in caplog.text


def test_timeout_is_passed_to_requests(monkeypatch, source, fake_response):
    seen = {}

    def fake_get(url, timeout=None, headers=None):
        seen["timeout"] = timeout
        seen["headers"] = headers
        return fake_response(json_data={"items": [{"title": "x"}]})

    monkeypatch.setattr(feeds.requests, "get", fake_get)

    fetch_source(source, timeout=3.5)

    assert seen["timeout"] == 3.5
    assert seen["headers"]["User-Agent"] == feeds.USER_AGENT
