import httpx
import pytest

from notebook_studio.services.errors import FetchError
from notebook_studio.services.scraper import ScraperService


PARAGRAPH = (
    "The Treaty of Westphalia, signed in 1648, ended the Thirty Years' War and laid the "
    "foundations of the modern system of sovereign states in Europe."
)

ARTICLE_HTML = f"""<!DOCTYPE html>
<html>
<head><title>Westphalia</title><script>var tracking = "secret-tracker";</script></head>
<body>
  <nav>Main navigation Home About</nav>
  <article>
    <h1>Peace of Westphalia</h1>
    <p>{PARAGRAPH}</p>
    <p>{PARAGRAPH}</p>
  </article>
  <footer>Copyright notice</footer>
</body>
</html>"""


def make_scraper(settings, handler) -> ScraperService:
    client = httpx.Client(transport=httpx.MockTransport(handler), follow_redirects=True)
    return ScraperService(settings, http_client=client)


def respond(status_code=200, content=b"", content_type=None):
    headers = {"content-type": content_type} if content_type else {}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=content, headers=headers)

    return handler


def test_html_page_is_converted(settings):
    scraper = make_scraper(settings, respond(content=ARTICLE_HTML.encode(), content_type="text/html; charset=utf-8"))

    text = scraper.fetch_content("https://example.com/westphalia")

    assert "Treaty of Westphalia" in text
    assert "secret-tracker" not in text


def test_plain_text_is_returned_as_is(settings):
    scraper = make_scraper(settings, respond(content=b"  Line one\nLine two  \n", content_type="text/plain"))
    assert scraper.fetch_content("https://example.com/notes.txt") == "Line one\nLine two"


def test_html_without_content_type_is_sniffed(settings):
    scraper = make_scraper(settings, respond(content=ARTICLE_HTML.encode()))
    assert "Treaty of Westphalia" in scraper.fetch_content("https://example.com/page")


def test_request_sends_browser_headers(settings):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="hello", headers={"content-type": "text/plain"})

    make_scraper(settings, handler).fetch_content("https://example.com/")

    assert len(seen) == 1
    assert seen[0].headers["user-agent"] in ScraperService.USER_AGENTS


@pytest.mark.parametrize(
    "status_code,reason",
    [(403, "blocked"), (429, "blocked"), (404, "status"), (500, "status")],
)
def test_http_errors(settings, status_code, reason):
    scraper = make_scraper(settings, respond(status_code=status_code, content=b"nope", content_type="text/plain"))

    with pytest.raises(FetchError) as excinfo:
        scraper.fetch_content("https://example.com/")

    assert excinfo.value.reason == reason
    assert excinfo.value.url == "https://example.com/"


def test_network_error(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as excinfo:
        make_scraper(settings, handler).fetch_content("https://unreachable.test/")
    assert excinfo.value.reason == "network"


@pytest.mark.parametrize("url", ["", "example.com", "ftp://example.com/file", "https://"])
def test_invalid_url(settings, url):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(FetchError) as excinfo:
        make_scraper(settings, handler).fetch_content(url)
    assert excinfo.value.reason == "invalid_url"


def test_binary_content_is_unsupported(settings):
    scraper = make_scraper(settings, respond(content=b"\x00\x01\x02binary", content_type="application/octet-stream"))

    with pytest.raises(FetchError) as excinfo:
        scraper.fetch_content("https://example.com/blob")
    assert excinfo.value.reason == "unsupported"


def test_broken_pdf_is_unsupported(settings):
    scraper = make_scraper(settings, respond(content=b"%PDF-1.4 truncated", content_type="application/pdf"))

    with pytest.raises(FetchError) as excinfo:
        scraper.fetch_content("https://example.com/paper.pdf")
    assert excinfo.value.reason == "unsupported"


def test_empty_body(settings):
    scraper = make_scraper(settings, respond(content=b"   \n\n  ", content_type="text/plain"))

    with pytest.raises(FetchError) as excinfo:
        scraper.fetch_content("https://example.com/empty")
    assert excinfo.value.reason == "empty"


def test_long_content_is_truncated(settings):
    settings.scraper_max_chars = 50
    scraper = make_scraper(settings, respond(content=b"x" * 500, content_type="text/plain"))

    assert scraper.fetch_content("https://example.com/long") == "x" * 50


def test_clean_markdown(settings):
    scraper = make_scraper(settings, respond())
    raw = "[Skip to content](#main)\nTitle  \n\n\n\n\nBody\t\n"
    assert scraper._clean_markdown(raw) == "Title\n\nBody"
