# core/books/renderer.py

"""
Story PDF Renderer - Jinja2 + WeasyPrint Pipeline

Pipeline: plain story text -> classified blocks -> HTML (Jinja2) -> PDF (WeasyPrint)
"""

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader

from .exceptions import RenderFailureError

logger = logging.getLogger(__name__)

# "Chapter 3", "Bölüm 3", "Глава 3", "章 3", ...
CHAPTER_PATTERN = re.compile(
    r"^(Chapter|Bölüm|Kapitel|Chapitre|Capítulo|Capitolo|Глава|章|الفصل|פרק)\s+\d+.*",
    re.IGNORECASE,
)
TITLE_PATTERN = re.compile(r"^[^.!?]*[.!?]$")
DIVIDER_PATTERN = re.compile(r"^[━─\-_=*~•·#\s]{3,}$")
DECORATION_PATTERN = re.compile(r"^[#*\s]+|[*\s]+$")

TITLE_MAX_LENGTH = 100

RTL_LANGUAGES = {
    "arabic", "hebrew", "persian", "farsi", "urdu",
    "ar", "he", "fa", "ur",
}

LANGUAGE_CODES = {
    "english": "en",
    "spanish": "es",
    "french": "fr",
    "german": "de",
    "italian": "it",
    "portuguese": "pt",
    "russian": "ru",
    "turkish": "tr",
    "chinese": "zh",
    "japanese": "ja",
    "korean": "ko",
    "arabic": "ar",
    "hebrew": "he",
    "persian": "fa",
    "farsi": "fa",
    "urdu": "ur",
    "vietnamese": "vi",
}


@dataclass
class Block:
    kind: str            # chapter | title | divider | paragraph
    text: str = ""
    lead: bool = False   # first paragraph of the story or after a heading (drop cap)


def _normalize_language(language: Optional[str]) -> str:
    if not language:
        return ""
    return re.split(r"[-_]", language.strip().lower())[0]


def is_rtl(language: Optional[str]) -> bool:
    """Right-to-left script for the given language name or ISO code."""
    return _normalize_language(language) in RTL_LANGUAGES


def language_code(language: Optional[str]) -> str:
    """ISO 639-1 code for the html lang attribute, 'en' when unknown."""
    normalized = _normalize_language(language)
    if normalized in LANGUAGE_CODES:
        return LANGUAGE_CODES[normalized]
    if len(normalized) == 2 and normalized.isalpha():
        return normalized
    return "en"


def _strip_decoration(line: str) -> str:
    return DECORATION_PATTERN.sub("", line)


def _is_title(text: str) -> bool:
    return (
        bool(text)
        and len(text) < TITLE_MAX_LENGTH
        and text[0].isupper()
        and TITLE_PATTERN.match(text) is not None
    )


def classify_blocks(content: str) -> List[Block]:
    """Split story text on blank lines and classify each block."""
    blocks: List[Block] = []
    lead_next = True

    for raw in re.split(r"\n\s*\n", content.strip()):
        lines = [line.strip() for line in raw.splitlines() if line.strip()]
        if not lines:
            continue

        first = _strip_decoration(lines[0])
        if CHAPTER_PATTERN.match(first):
            blocks.append(Block(kind="chapter", text=first))
            lead_next = True
            lines = lines[1:]
            if not lines:
                continue

        text = " ".join(lines)
        if DIVIDER_PATTERN.match(text):
            blocks.append(Block(kind="divider"))
            continue

        stripped = _strip_decoration(text)
        if not stripped:
            # stray markdown such as a lone "#" or "**"
            continue

        if len(lines) == 1 and _is_title(stripped):
            blocks.append(Block(kind="title", text=stripped))
            lead_next = True
            continue

        blocks.append(Block(kind="paragraph", text=text, lead=lead_next))
        lead_next = False

    return blocks


class StoryPdfRenderer:
    """
    Renders a finished story into an A5 PDF.

    Usage:
        renderer = StoryPdfRenderer(Path("generated-pdfs"))
        renderer.ensure_output_dir()
        path = renderer.render(content, book_id=7, book_name="Mia", language="English")
    """

    TEMPLATE_NAME = "book.html"

    def __init__(self, output_dir: Path, templates_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir)
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=True,
        )

    def ensure_output_dir(self) -> Path:
        """Create the output directory. Idempotent across concurrent startups."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def build_html(self, content: str, book_name: str, language: Optional[str] = None) -> str:
        """Full HTML document for a story (also used for previews)."""
        rtl = is_rtl(language)
        template = self.jinja_env.get_template(self.TEMPLATE_NAME)
        return template.render(
            title=f"A Special Gift for {book_name}",
            lang=language_code(language),
            direction="rtl" if rtl else "ltr",
            align="right" if rtl else "left",
            blocks=classify_blocks(content),
        )

    def output_path_for(self, book_id: int) -> Path:
        return self.output_dir / f"book_{book_id}_{int(time.time() * 1000)}.pdf"

    def render(
        self,
        content: str,
        book_id: int,
        book_name: str,
        language: Optional[str] = None,
    ) -> Path:
        """
        Render story text to a PDF file.

        Returns:
            Path to the written, non-empty PDF

        Raises:
            RenderFailureError: on any conversion or write problem
        """
        output_path = self.output_path_for(book_id)
        logger.info(f"Rendering PDF for book {book_id} -> {output_path.name}")

        try:
            html = self.build_html(content, book_name, language)
            self._html_to_pdf(html, output_path)
        except Exception as e:
            raise RenderFailureError(book_id, f"PDF conversion failed: {e}") from e

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise RenderFailureError(book_id, f"PDF missing or empty: {output_path}")

        logger.info(f"PDF generated: {output_path} ({output_path.stat().st_size} bytes)")
        return output_path

    def _html_to_pdf(self, html: str, output_path: Path):
        """Convert HTML to PDF using WeasyPrint."""
        try:
            from weasyprint import HTML
        except ImportError:
            raise RuntimeError("WeasyPrint not found. Please install: pip install weasyprint")

        HTML(string=html, base_url=str(self.templates_dir) + "/").write_pdf(str(output_path))
