"""
Unit tests for core/books/renderer.py: block classification, HTML and PDF output.

WeasyPrint itself is replaced by a stub writer; these tests cover what we feed it.
"""
import re
from pathlib import Path
from unittest.mock import patch

import pytest

from core.books.exceptions import RenderFailureError
from core.books.renderer import (
    StoryPdfRenderer,
    classify_blocks,
    is_rtl,
    language_code,
)

STORY = """A Special Gift for Mia

From: Dad

━━━━━━━━━━━━━━━━━━━━

## **Chapter 1: The Rocket**

Mia had always wanted to see the stars up close.
Tonight she would finally get her chance.

"Are you ready?" asked Dad.

The Countdown Begins!

Ten, nine, eight...

Chapter 2: Moon Dust

The moon was quiet and silver. Mia smiled."""


def fake_pdf_writer(html, output_path):
    Path(output_path).write_bytes(b"%PDF-1.7 fake")


@pytest.fixture
def renderer(tmp_path):
    r = StoryPdfRenderer(tmp_path / "pdfs")
    r.ensure_output_dir()
    return r


class TestClassifyBlocks:

    def test_kinds_in_order(self):
        kinds = [b.kind for b in classify_blocks(STORY)]
        assert kinds == [
            "paragraph",   # A Special Gift for Mia
            "paragraph",   # From: Dad
            "divider",
            "chapter",
            "paragraph",
            "paragraph",
            "title",       # The Countdown Begins!
            "paragraph",
            "chapter",
            "paragraph",
        ]

    def test_markdown_decoration_stripped_from_chapter(self):
        chapters = [b.text for b in classify_blocks(STORY) if b.kind == "chapter"]
        assert chapters == ["Chapter 1: The Rocket", "Chapter 2: Moon Dust"]

    def test_inner_newlines_joined(self):
        blocks = classify_blocks(STORY)
        first_para = next(b for b in blocks if b.text.startswith("Mia had"))
        assert first_para.text == (
            "Mia had always wanted to see the stars up close. "
            "Tonight she would finally get her chance."
        )

    def test_lead_paragraph_at_start_and_after_headings(self):
        blocks = classify_blocks(STORY)
        leads = [b.text for b in blocks if b.lead]
        assert leads == [
            "A Special Gift for Mia",
            "Mia had always wanted to see the stars up close. Tonight she would finally get her chance.",
            "Ten, nine, eight...",
            "The moon was quiet and silver. Mia smiled.",
        ]

    @pytest.mark.parametrize("heading", [
        "Chapter 3: Home", "CHAPTER 3", "Bölüm 2: Yıldızlar", "Kapitel 1",
        "Chapitre 4 - La Lune", "Capítulo 2", "Capitolo 5", "Глава 1", "الفصل 1",
    ])
    def test_multilingual_chapters(self, heading):
        assert classify_blocks(heading)[0].kind == "chapter"

    def test_heading_followed_by_text_in_same_block(self):
        blocks = classify_blocks("Chapter 1: Start\nIt was a bright morning. The garden was awake.")
        assert [b.kind for b in blocks] == ["chapter", "paragraph"]
        assert blocks[1].lead is True

    def test_long_sentence_is_paragraph(self):
        sentence = "The " + "very " * 30 + "long day ended."
        assert classify_blocks(sentence)[0].kind == "paragraph"

    def test_lowercase_sentence_is_paragraph(self):
        assert classify_blocks("and then it rained.")[0].kind == "paragraph"

    def test_empty_content(self):
        assert classify_blocks("   \n\n  ") == []

    @pytest.mark.parametrize("stray", ["#", "##", "*", "**"])
    def test_stray_markdown_block_skipped(self, stray):
        blocks = classify_blocks(f"Chapter 1: Go\n\nMia ran to the hill. The wind was warm.\n\n{stray}\n\nShe laughed all the way home. Dad laughed too.")
        assert [b.kind for b in blocks] == ["chapter", "paragraph", "paragraph"]

    def test_hash_rule_is_divider(self):
        assert classify_blocks("###")[0].kind == "divider"

    def test_story_without_headings_gets_lead(self):
        blocks = classify_blocks("Mia woke up early. The sun was bright.\n\nShe ran outside to play. Dad followed.")
        assert [b.lead for b in blocks] == [True, False]


class TestDirection:

    @pytest.mark.parametrize("language", ["Arabic", "arabic", "HEBREW", "Persian", "Farsi", "Urdu", "ar", "he-IL"])
    def test_rtl_languages(self, language):
        assert is_rtl(language) is True

    @pytest.mark.parametrize("language", ["English", "French", "", None])
    def test_ltr_languages(self, language):
        assert is_rtl(language) is False

    def test_language_codes(self):
        assert language_code("Arabic") == "ar"
        assert language_code("German") == "de"
        assert language_code("pt-BR") == "pt"
        assert language_code("Klingon") == "en"
        assert language_code(None) == "en"


class TestBuildHtml:

    def test_arabic_is_rtl(self, renderer):
        html = renderer.build_html("مرحبا", "Layla", "Arabic")
        assert 'dir="rtl"' in html
        assert 'lang="ar"' in html
        assert "text-align: right" in html

    @pytest.mark.parametrize("language", ["English", None])
    def test_default_is_ltr(self, renderer, language):
        html = renderer.build_html("Hello there friend", "Mia", language)
        assert 'dir="ltr"' in html
        assert "text-align: left" in html

    def test_page_setup_and_typography(self, renderer):
        html = renderer.build_html(STORY, "Mia", "English")
        assert "size: A5" in html
        assert "margin: 2cm 2.5cm" in html
        assert "text-indent: 1.5em" in html
        assert "orphans: 3" in html
        assert "widows: 3" in html
        assert "::first-letter" in html

    def test_structure(self, renderer):
        html = renderer.build_html(STORY, "Mia", "English")
        assert '<h1 class="chapter">Chapter 1: The Rocket</h1>' in html
        assert '<h2 class="title">The Countdown Begins!</h2>' in html
        assert '<hr class="divider">' in html
        assert len(re.findall(r'<p class="lead">', html)) == 4

    def test_markup_is_escaped(self, renderer):
        html = renderer.build_html('<script>alert("x")</script> & friends', "<b>Mia</b>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "&amp; friends" in html
        assert "<b>Mia</b>" not in html


class TestRender:

    def test_writes_named_pdf(self, renderer):
        with patch.object(StoryPdfRenderer, "_html_to_pdf", side_effect=fake_pdf_writer):
            path = renderer.render(STORY, 7, "Mia", "English")

        assert path.parent == renderer.output_dir
        assert re.fullmatch(r"book_7_\d{13}\.pdf", path.name)
        assert path.read_bytes().startswith(b"%PDF")

    def test_stray_markdown_does_not_fail_render(self, renderer):
        with patch.object(StoryPdfRenderer, "_html_to_pdf", side_effect=fake_pdf_writer):
            path = renderer.render(STORY + "\n\n**\n\nMore words here. The end.", 1, "Mia")
        assert path.is_file()

    def test_conversion_error_wrapped(self, renderer):
        with patch.object(StoryPdfRenderer, "_html_to_pdf", side_effect=OSError("no fonts")):
            with pytest.raises(RenderFailureError, match="no fonts"):
                renderer.render(STORY, 7, "Mia")

    def test_empty_output_is_failure(self, renderer):
        def write_nothing(html, output_path):
            Path(output_path).write_bytes(b"")

        with patch.object(StoryPdfRenderer, "_html_to_pdf", side_effect=write_nothing):
            with pytest.raises(RenderFailureError, match="missing or empty"):
                renderer.render(STORY, 8, "Mia")

    def test_missing_output_is_failure(self, renderer):
        with patch.object(StoryPdfRenderer, "_html_to_pdf", return_value=None):
            with pytest.raises(RenderFailureError):
                renderer.render(STORY, 9, "Mia")

    def test_ensure_output_dir_idempotent(self, tmp_path):
        r = StoryPdfRenderer(tmp_path / "a" / "b")
        r.ensure_output_dir()
        r.ensure_output_dir()
        assert (tmp_path / "a" / "b").is_dir()
