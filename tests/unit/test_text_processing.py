# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors

import pytest

from webrag_core.utils.text_processing import normalize_search_query, normalize_whitespace, truncate_text


@pytest.mark.unit
class TestTextProcessing:

    def test_normalize_whitespace(self):
        assert normalize_whitespace("  a\n\n b\t c  ") == "a b c"
        assert normalize_whitespace(None) == ""

    def test_normalize_search_query_strips_quotes_and_ellipsis(self):
        assert normalize_search_query('  “What is new in Python…”  ') == "What is new in Python"

    def test_normalize_search_query_caps_length(self):
        assert len(normalize_search_query("word " * 200)) <= 256

    @pytest.mark.parametrize(
        "text,max_chars,expected",
        [
            ("short", 10, "short"),
            ("exactly ten", 11, "exactly ten"),
            ("hello world again", 8, "hello w…"),
            ("hello world again", 7, "hello…"),
            ("anything", 0, ""),
        ],
    )
    def test_truncate_text(self, text, max_chars, expected):
        assert truncate_text(text, max_chars) == expected
