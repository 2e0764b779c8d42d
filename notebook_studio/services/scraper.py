"""
URL ingestion service
Fetches a page or document and extracts its readable text as Markdown
"""
import io
import random
import re
from typing import Optional
from urllib.parse import urlparse
import httpx
import pdfplumber
import trafilatura
from bs4 import BeautifulSoup
from loguru import logger
from markdownify import markdownify as md
from playwright.sync_api import sync_playwright, Error as PlaywrightError
from playwright_stealth import Stealth

from notebook_studio.config import Settings, get_settings
from notebook_studio.services.errors import FetchError


# Below this many characters an HTML extraction is considered a failure
MIN_CONTENT_LENGTH = 100

BLOCKED_STATUS_CODES = (401, 403, 407, 429, 451)


class ScraperService:
    """Fetches a URL once and extracts text from HTML, PDF or plain text responses"""

    # Mainstream browser user agents
    USER_AGENTS = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    ]

    NOISE_TAGS = [
        'script', 'style', 'svg', 'nav', 'footer', 'header', 'aside', 'form',
        'button', 'noscript', 'iframe', 'embed', 'object', 'canvas',
    ]

    NOISE_ROLES = ['navigation', 'banner', 'contentinfo', 'complementary']

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize scraper service

        Args:
            settings: Application settings (if None, will load from environment)
            http_client: Preconfigured httpx client (tests inject a mock transport)
        """
        self.settings = settings or get_settings()
        self.timeout = self.settings.scraper_timeout
        self.use_browser = self.settings.scraper_use_browser
        self.max_chars = self.settings.scraper_max_chars
        self.http_client = http_client or httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
        )

    def fetch_content(self, url: str) -> str:
        """
        Fetch a URL and return its extracted text

        A single attempt is made; retrying is left to the user.

        Args:
            url: URL to fetch

        Returns:
            Markdown or plain text content

        Raises:
            FetchError: On invalid URL, network failure, blocked or non-2xx
                response, unsupported content type or empty result
        """
        self._validate_url(url)
        logger.info(f"Fetching content from: {url}")

        try:
            response = self.http_client.get(url, headers=self._build_headers())
        except httpx.HTTPError as e:
            logger.warning(f"Network error fetching {url}: {e}")
            raise FetchError(
                f"Could not fetch content from the URL due to a network issue: {e}",
                reason="network",
                url=url,
            )

        if response.status_code in BLOCKED_STATUS_CODES:
            raise FetchError(
                f"The site refused the request (HTTP {response.status_code}); the content may be blocked.",
                reason="blocked",
                url=url,
            )
        if not response.is_success:
            raise FetchError(
                f"Failed to fetch the URL, server responded with HTTP {response.status_code}.",
                reason="status",
                url=url,
            )

        content_type = response.headers.get('content-type', '').lower()
        logger.debug(f"Content-Type: {content_type or 'not specified'}, {len(response.content)} bytes")

        if 'application/pdf' in content_type:
            text = self._extract_pdf(response.content, url)
        elif 'text/html' in content_type or 'application/xhtml' in content_type:
            text = self._extract_html(response.text, url)
        elif content_type.startswith('text/'):
            text = response.text
        else:
            text = self._extract_unknown(response, content_type, url)

        text = self._clean_markdown(text or '')
        if not text:
            raise FetchError(
                f"Unsupported or empty content from URL. Content-Type: {content_type or 'Not specified'}",
                reason="empty",
                url=url,
            )

        if len(text) > self.max_chars:
            logger.warning(f"Content too long ({len(text)} chars), truncating to {self.max_chars}")
            text = text[:self.max_chars]

        logger.info(f"Successfully extracted content, length: {len(text)} characters")
        return text

    def _validate_url(self, url: str) -> None:
        parsed = urlparse(url or '')
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise FetchError(f"Invalid URL: {url!r}", reason="invalid_url", url=url or '')

    def _build_headers(self) -> dict:
        return {
            "User-Agent": random.choice(self.USER_AGENTS),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,application/pdf,text/plain;q=0.8,*/*;q=0.5",
            "Accept-Language": "en-US,en;q=0.9",
        }

    def _extract_unknown(self, response: httpx.Response, content_type: str, url: str) -> str:
        """Sniff a response with a missing or unusual content type"""
        if response.content[:5] == b'%PDF-':
            return self._extract_pdf(response.content, url)

        try:
            body = response.content.decode(response.encoding or 'utf-8')
        except (UnicodeDecodeError, LookupError):
            raise FetchError(
                f"Unsupported content type: {content_type or 'Not specified'}",
                reason="unsupported",
                url=url,
            )

        head = body.lstrip().lower()
        if head.startswith('<!doctype html') or head.startswith('<html'):
            return self._extract_html(body, url)
        if '\x00' in body:
            raise FetchError(
                f"Unsupported content type: {content_type or 'Not specified'}",
                reason="unsupported",
                url=url,
            )
        return body

    def _extract_pdf(self, data: bytes, url: str) -> str:
        """
        Extract text from a PDF document page by page

        Args:
            data: Raw PDF bytes
            url: Source URL (for error reporting)

        Returns:
            Text of all pages separated by blank lines
        """
        try:
            pages = []
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for page in pdf.pages:
                    pages.append(page.extract_text() or '')
            logger.info(f"Extracted text from {len(pages)} PDF pages")
            return "\n\n".join(pages).strip()
        except Exception as e:
            logger.warning(f"PDF extraction failed for {url}: {e}")
            raise FetchError(f"Failed to read the PDF document: {e}", reason="unsupported", url=url) from e

    def _extract_html(self, html: str, url: str) -> str:
        """
        Extract the main content of an HTML page with fallbacks

        Priority:
        1. Trafilatura main-content extraction
        2. Noise-stripped body converted with markdownify
        3. Headless browser rendering (for script-built pages), if enabled
        """
        markdown = self._extract_with_trafilatura(html, url)
        if markdown and len(markdown) >= MIN_CONTENT_LENGTH:
            return markdown

        markdown = self._convert_body(html)
        if markdown and len(markdown) >= MIN_CONTENT_LENGTH:
            logger.info("Using body fallback conversion")
            return markdown

        if self.use_browser:
            rendered = self._render_with_playwright(url)
            if rendered:
                return self._extract_with_trafilatura(rendered, url) or self._convert_body(rendered)

        return markdown

    def _extract_with_trafilatura(self, html: str, url: str) -> Optional[str]:
        try:
            markdown = trafilatura.extract(html, output_format='markdown', url=url)
            if markdown:
                logger.info(f"Trafilatura extraction successful, length: {len(markdown)} characters")
            return markdown
        except Exception as e:
            logger.warning(f"Trafilatura extraction failed: {e}")
            return None

    def _preprocess_html(self, html: str) -> str:
        """
        Remove navigation, scripts and other non-content elements

        Args:
            html: Raw HTML string

        Returns:
            Cleaned HTML string
        """
        soup = BeautifulSoup(html, 'lxml')
        for tag in self.NOISE_TAGS:
            for element in soup.find_all(tag):
                element.decompose()
        for role in self.NOISE_ROLES:
            for element in soup.select(f'[role="{role}"]'):
                element.decompose()
        body = soup.body or soup
        return str(body)

    def _convert_body(self, html: str) -> str:
        cleaned_html = self._preprocess_html(html)
        return md(cleaned_html, heading_style="ATX", bullets="-").strip()

    def _render_with_playwright(self, url: str) -> Optional[str]:
        """
        Render a page in headless Chromium and return its HTML

        Returns:
            Rendered HTML, or None if the browser could not load the page
        """
        logger.info(f"Static extraction too short, rendering {url} with headless browser")
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(
                    headless=True,
                    args=['--disable-blink-features=AutomationControlled', '--disable-dev-shm-usage'],
                )
                try:
                    context = browser.new_context(
                        user_agent=random.choice(self.USER_AGENTS),
                        viewport={"width": 1920, "height": 1080},
                    )
                    try:
                        Stealth().apply_stealth_sync(context)
                    except Exception as e:
                        logger.warning(f"Failed to apply stealth plugin: {e}")

                    page = context.new_page()
                    page.goto(url, wait_until="networkidle", timeout=self.timeout * 1000)
                    return page.content()
                finally:
                    browser.close()
        except PlaywrightError as e:
            logger.warning(f"Browser rendering failed for {url}: {e}")
            return None

    def _clean_markdown(self, content: str) -> str:
        """
        Clean and normalize extracted text

        Args:
            content: Raw markdown content

        Returns:
            Cleaned markdown content
        """
        content = re.sub(r'\[Skip to content\]\([^)]*\)|\[Skip to content\]', '', content, flags=re.IGNORECASE)
        content = re.sub(r'\[Skip to navigation\]\([^)]*\)|\[Skip to navigation\]', '', content, flags=re.IGNORECASE)
        content = re.sub(r'[ \t]+\n', '\n', content)
        content = re.sub(r'\n{3,}', '\n\n', content)
        return content.strip()

    def close(self) -> None:
        self.http_client.close()
