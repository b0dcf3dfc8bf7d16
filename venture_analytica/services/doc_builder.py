"""Render memo Markdown into downloadable Markdown, DOCX and PDF files."""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple
from xml.sax.saxutils import escape

from docx import Document
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer


MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MEDIA_TYPE = "application/pdf"

_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_BULLET = re.compile(r"^\s*[-*]\s+(.*)$")


@dataclass(frozen=True)
class ExportedFile:
    path: Path
    filename: str
    media_type: str


def memo_filename(company_name: str, extension: str) -> str:
    safe = re.sub(r"[\\/]+", "-", company_name.strip()) or "Company"
    name = re.sub(r"\s+", "_", safe)
    return f"{name}_Investment_Memo.{extension}"


def iter_blocks(markdown: str) -> Iterator[Tuple[str, int, str]]:
    """Yield ``(kind, level, text)`` for each non-empty Markdown line.

    ``kind`` is ``heading``, ``bullet`` or ``paragraph``; inline emphasis is dropped.
    """

    for raw in markdown.splitlines():
        line = raw.rstrip()
        if not line.strip() or line.strip() == "---":
            continue
        heading = _HEADING.match(line)
        if heading:
            yield "heading", len(heading.group(1)), _plain(heading.group(2))
            continue
        bullet = _BULLET.match(line)
        if bullet:
            yield "bullet", 0, _plain(bullet.group(1))
            continue
        yield "paragraph", 0, _plain(line.strip())


def _plain(text: str) -> str:
    return text.replace("**", "").replace("__", "").strip()


class DocxBuilder:
    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = base_dir or Path(".exports")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _target(self, report_id: str, filename: str) -> Path:
        folder = self.base_dir / report_id
        folder.mkdir(parents=True, exist_ok=True)
        return folder / filename

    def build_markdown(self, report_id: str, company_name: str, markdown: str) -> ExportedFile:
        filename = memo_filename(company_name, "md")
        path = self._target(report_id, filename)
        path.write_text(markdown, encoding="utf-8")
        return ExportedFile(path=path, filename=filename, media_type=MARKDOWN_MEDIA_TYPE)

    def build_docx(self, report_id: str, company_name: str, markdown: str) -> ExportedFile:
        document = Document()
        document.add_heading(f"Investment Memo - {company_name}", level=0)

        for kind, level, text in iter_blocks(markdown):
            if kind == "heading":
                document.add_heading(text, level=min(level, 4))
            elif kind == "bullet":
                document.add_paragraph(text, style="List Bullet")
            else:
                document.add_paragraph(text)

        filename = memo_filename(company_name, "docx")
        path = self._target(report_id, filename)
        document.save(str(path))
        return ExportedFile(path=path, filename=filename, media_type=DOCX_MEDIA_TYPE)

    def build_pdf(self, report_id: str, company_name: str, markdown: str) -> ExportedFile:
        styles = getSampleStyleSheet()
        heading_styles = {1: styles["Heading1"], 2: styles["Heading2"], 3: styles["Heading3"]}
        story = [Paragraph(escape(f"Investment Memo - {company_name}"), styles["Title"]), Spacer(1, 12)]

        for kind, level, text in iter_blocks(markdown):
            if kind == "heading":
                story.append(Paragraph(escape(text), heading_styles.get(level, styles["Heading4"])))
            elif kind == "bullet":
                story.append(Paragraph(escape(text), styles["BodyText"], bulletText="•"))
            else:
                story.append(Paragraph(escape(text), styles["BodyText"]))
            story.append(Spacer(1, 4))

        filename = memo_filename(company_name, "pdf")
        path = self._target(report_id, filename)
        SimpleDocTemplate(str(path), pagesize=letter, title=f"{company_name} Investment Memo").build(story)
        return ExportedFile(path=path, filename=filename, media_type=PDF_MEDIA_TYPE)
