# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
"""
Readable-Text Extractor

HTML -> Page(title, normalized text). Main-content detection (boilerplate
removal) is done by trafilatura; lxml provides the DOM for the document
title and for the plain-text path used when readability is turned off or
finds no article body.
"""

from __future__ import annotations

import logging

import lxml.etree
import lxml.html
import trafilatura

from webrag_core.errors import ExtractionFailure
from webrag_core.schema import Page
from webrag_core.utils.text_processing import normalize_whitespace

logger = logging.getLogger(__name__)

MIN_TEXT_CHARS = 200

_NON_CONTENT_XPATH = "//script|//style|//noscript|//template"


def _parse_dom(url: str, html: str) -> lxml.html.HtmlElement:
    try:
        try:
            return lxml.html.document_fromstring(html)
        except ValueError:
            # lxml refuses str input that carries an XML encoding declaration.
            return lxml.html.document_fromstring(html.encode("utf-8", errors="replace"))
    except (lxml.etree.ParserError, lxml.etree.XMLSyntaxError, ValueError) as e:
        raise ExtractionFailure(url, f"unparsable HTML ({e})") from e


def _document_title(doc: lxml.html.HtmlElement) -> str:
    return normalize_whitespace(doc.findtext(".//title") or "")


def _dom_text(doc: lxml.html.HtmlElement) -> str:
    for el in doc.xpath(_NON_CONTENT_XPATH):
        el.drop_tree()
    body = doc.find("body")
    return normalize_whitespace((body if body is not None else doc).text_content())


def _readability_text(url: str, html: str) -> tuple[str, str]:
    """Return (title, text) from trafilatura; empty strings when nothing is found."""
    try:
        text = trafilatura.extract(
            html,
            url=url,
            include_comments=False,
            include_images=False,
            include_links=False,
            include_tables=True,
        )
    except Exception as e:
        logger.warning("[Extract] Trafilatura extraction failed for %s: %s", url, e)
        return "", ""

    title = ""
    if text:
        try:
            meta = trafilatura.extract_metadata(html, default_url=url)
        except Exception as e:
            logger.debug("[Extract] Metadata extraction failed for %s: %s", url, e)
            meta = None
        title = normalize_whitespace(getattr(meta, "title", None) or "")
    return title, normalize_whitespace(text or "")


def extract_readable(
    url: str,
    html: str,
    *,
    use_readability: bool = True,
    min_text_chars: int = MIN_TEXT_CHARS,
) -> Page | None:
    """
    Extract the readable body of an HTML page.

    Returns None when the text is shorter than `min_text_chars`.

    Raises:
        ExtractionFailure: the document cannot be parsed at all.
    """
    if not html or not html.strip():
        return None

    doc = _parse_dom(url, html)
    dom_title = _document_title(doc)

    title, text = ("", "")
    if use_readability:
        title, text = _readability_text(url, html)
    if not text:
        text = _dom_text(doc)

    if len(text) < min_text_chars:
        logger.debug("[Extract] Too short (%d chars): %s", len(text), url)
        return None

    return Page(url=url, title=title or dom_title or url, text=text)
