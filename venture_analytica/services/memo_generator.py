"""Prompt construction and memo drafting against the generative service."""
from __future__ import annotations

from datetime import datetime
from typing import List, Tuple

from venture_analytica.models.report_models import DataSource, MemoPreferences, Report
from venture_analytica.services.genai_client import GenerativeClient


NO_SOURCES_PLACEHOLDER = (
    "// No sources selected to generate the memo. Please go back and select sources."
)
NO_INVESTMENT_MEMO_PLACEHOLDER = (
    "// The investment memo has not been generated yet. Generate it before curating."
)

AUDIENCE_GUIDANCE = {
    "Internal": "Keep technical details and candid assessments for the investment team.",
    "LP": "Be more formal and high-level, suitable for limited partners.",
    "External": "Be professional but accessible to readers outside the firm.",
}


class MemoGenerator:
    """Build deterministic prompts from a report and submit them to Gemini.

    Prompt text depends only on the report: the same sources and preferences
    always produce the same prompt.
    """

    def __init__(self, client: GenerativeClient) -> None:
        self.client = client

    def build_investment_prompt(self, report: Report, sources: List[DataSource]) -> str:
        preferences = report.investment_memo.preferences
        sources_context = "".join(
            f"Source: {source.filename or source.type.value}\nSummary: {source.summary}\n\n"
            for source in sources
        )
        enabled_sections = "\n".join(
            f"- {section.name} (Importance: {section.weight}/25)"
            for section in preferences.enabled_sections
        )
        lines = [
            "You are an AI investment analyst for a venture capital firm. "
            "Your task is to draft a comprehensive investment memo.",
            "",
            f"Company: {report.company_name}",
            f"Description: {report.description or 'Not provided'}",
            "",
            "Use the following summarized data sources to inform your analysis:",
            "--- DATA SOURCES ---",
            sources_context.rstrip("\n"),
            "--- END DATA SOURCES ---",
            "",
            f"The memo should have a {preferences.tone.value} tone and its length should be "
            f"{preferences.length.value}.",
            "",
            "Generate the memo covering the following sections, with the indicated importance. "
            "Omit any sections that are not relevant or for which you have insufficient data.",
            "--- SECTIONS & WEIGHTS ---",
            enabled_sections,
            "--- END SECTIONS ---",
        ]
        lines.extend(self._custom_instructions(preferences))
        lines.extend(["", "Format the output in Markdown. Start with a main heading for the company name."])
        return "\n".join(lines)

    def build_curated_prompt(self, report: Report, memo_content: str) -> str:
        preferences = report.curated_memo.preferences
        audience = preferences.audience.value
        lines = [
            "You are an AI assistant for a venture capital firm. Your task is to refine an "
            "existing investment memo based on specific preferences.",
            "",
            f"Company: {report.company_name}",
            "",
            "Original Memo Content:",
            "---",
            memo_content,
            "---",
            "",
            "Refinement Instructions:",
            f"- Target Audience: {audience}. {AUDIENCE_GUIDANCE[audience]}",
            f"- Tone: {preferences.tone.value}. Length: {preferences.length.value}.",
            f"- Desired Format: {preferences.format.value}. Ensure the output is clean Markdown.",
            "- Review the entire memo for clarity, conciseness, and impact.",
            "- Do not introduce new facts, but rephrase and restructure the existing content "
            "to better suit the target audience.",
        ]
        lines.extend(self._custom_instructions(preferences))
        lines.extend(["", "Return only the refined Markdown content."])
        return "\n".join(lines)

    def generate(self, prompt: str) -> Tuple[str, datetime]:
        result = self.client.generate_text(prompt)
        return result.text, datetime.utcnow()

    def _custom_instructions(self, preferences: MemoPreferences) -> List[str]:
        instructions = preferences.custom_instructions.strip()
        if not instructions:
            return []
        return ["", "Additional instructions from the analyst:", instructions]
