"""Build a slide deck from memo Markdown, with AI-structured charts where possible."""
from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pptx import Presentation
from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE, XL_LEGEND_POSITION
from pptx.enum.text import PP_ALIGN
from pptx.util import Inches, Pt
from pydantic import BaseModel, Field

from venture_analytica.services.doc_builder import ExportedFile
from venture_analytica.services.genai_client import CollaboratorError, GenerativeClient


logger = logging.getLogger(__name__)

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
FOOTER_TEXT = "VentureAnalytica AI | Confidential"

BACKGROUND = RGBColor(0x02, 0x06, 0x17)
TITLE_COLOR = RGBColor(0xFF, 0xFF, 0xFF)
BODY_COLOR = RGBColor(0xD0, 0xD0, 0xD0)
MUTED_COLOR = RGBColor(0x88, 0x88, 0x88)
SUBTITLE_COLOR = RGBColor(0xA0, 0xA0, 0xA0)


class ChartKind(str, Enum):
    BAR = "bar"
    PIE = "pie"


class ChartPoint(BaseModel):
    name: str
    value: float


class SlideChart(BaseModel):
    type: ChartKind
    title: str
    data: List[ChartPoint] = Field(default_factory=list)


class SlideSpec(BaseModel):
    title: str
    content: List[str] = Field(default_factory=list)
    chart: Optional[SlideChart] = None


class DeckSpec(BaseModel):
    slides: List[SlideSpec]


def deck_filename(company_name: str) -> str:
    safe = re.sub(r"[\\/]+", "-", company_name.strip()) or "Company"
    return f"{safe}-Investment-Memo.pptx"


def fallback_slides(markdown: str) -> List[SlideSpec]:
    """One slide per ``## `` section, used when the AI structuring call fails."""

    slides: List[SlideSpec] = []
    for chunk in re.split(r"\n(?=## )", markdown):
        lines = [line for line in chunk.split("\n")]
        title = lines.pop(0).lstrip("#").strip() if lines else ""
        bullets = [re.sub(r"^\s*[-*]\s*", "", line).strip() for line in lines]
        slides.append(SlideSpec(title=title or "Content", content=[b for b in bullets if b]))
    return slides


class PptxBuilder:
    def __init__(self, client: GenerativeClient, base_dir: Path | None = None) -> None:
        self.client = client
        self.base_dir = base_dir or Path(".exports")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def structure(self, markdown: str, company_name: str) -> List[SlideSpec]:
        prompt = f"""Analyze the following investment memo for "{company_name}". Structure this content into a professional presentation and identify key data points that can be visualized as charts.

Memo Content:
---
{markdown}
---

Instructions:
1. Break down the memo into logical slides based on the "##" headers. Each header should be a slide title.
2. For each slide, summarize the content into concise bullet points.
3. Where you find quantifiable data (financials, market size projections, TAM/SAM/SOM breakdowns, competitive market share), create a 'chart' object.
4. Use 'bar' charts for comparisons and 'pie' charts for compositions.
5. The 'value' of every chart data point must be a number.
6. Return the entire presentation structure in the specified JSON format."""
        try:
            deck = self.client.generate_json(prompt, DeckSpec)
        except CollaboratorError:
            logger.warning("AI slide structuring failed, falling back to text-only deck")
            return fallback_slides(markdown)
        if not deck.slides:
            return fallback_slides(markdown)
        return deck.slides

    def build(self, report_id: str, company_name: str, markdown: str) -> ExportedFile:
        presentation = Presentation()
        presentation.slide_width = Inches(10)
        presentation.slide_height = Inches(5.625)

        self._title_slide(presentation, company_name)
        for outline in self.structure(markdown, company_name):
            slide = self._content_slide(presentation, outline.title)
            if outline.content:
                self._add_text(
                    slide, "\n".join(f"• {line}" for line in outline.content),
                    top=1.2, height=4.0, size=14, color=BODY_COLOR,
                )
            if outline.chart and outline.chart.data:
                self._chart_slide(presentation, outline.chart)

        filename = deck_filename(company_name)
        folder = self.base_dir / report_id
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / filename
        presentation.save(str(path))
        return ExportedFile(path=path, filename=filename, media_type=PPTX_MEDIA_TYPE)

    def _blank(self, presentation):
        slide = presentation.slides.add_slide(presentation.slide_layouts[6])
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = BACKGROUND
        return slide

    def _title_slide(self, presentation, company_name: str) -> None:
        slide = self._blank(presentation)
        self._add_text(slide, company_name, top=2.0, height=0.8, size=40, bold=True, align=PP_ALIGN.CENTER)
        self._add_text(
            slide, "Investment Memo Analysis", top=2.8, height=0.6, size=20,
            color=SUBTITLE_COLOR, align=PP_ALIGN.CENTER,
        )

    def _content_slide(self, presentation, title: str):
        slide = self._blank(presentation)
        self._add_text(slide, title, top=0.5, height=0.6, size=24, bold=True)
        self._add_text(
            slide, FOOTER_TEXT, top=5.2, height=0.3, size=10, color=MUTED_COLOR, align=PP_ALIGN.CENTER
        )
        return slide

    def _chart_slide(self, presentation, chart: SlideChart) -> None:
        slide = self._content_slide(presentation, chart.title)
        chart_data = CategoryChartData()
        chart_data.categories = [point.name for point in chart.data]
        chart_data.add_series(chart.title, [point.value for point in chart.data])

        chart_type = XL_CHART_TYPE.PIE if chart.type == ChartKind.PIE else XL_CHART_TYPE.BAR_CLUSTERED
        frame = slide.shapes.add_chart(
            chart_type, Inches(1), Inches(1.2), Inches(8), Inches(4), chart_data
        )
        rendered = frame.chart
        rendered.plots[0].has_data_labels = True
        if chart.type == ChartKind.PIE:
            rendered.has_legend = True
            rendered.legend.position = XL_LEGEND_POSITION.RIGHT
            rendered.legend.include_in_layout = False

    def _add_text(
        self,
        slide,
        text: str,
        *,
        top: float,
        height: float,
        size: int,
        bold: bool = False,
        color: RGBColor = TITLE_COLOR,
        align=None,
    ) -> None:
        box = slide.shapes.add_textbox(Inches(0.5), Inches(top), Inches(9), Inches(height))
        frame = box.text_frame
        frame.word_wrap = True
        for index, line in enumerate(text.split("\n")):
            paragraph = frame.paragraphs[0] if index == 0 else frame.add_paragraph()
            if align is not None:
                paragraph.alignment = align
            run = paragraph.add_run()
            run.text = line
            run.font.size = Pt(size)
            run.font.bold = bold
            run.font.color.rgb = color
