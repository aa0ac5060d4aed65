"""Prompt template library for generation stages.

Responsibilities:
- Centralize prompt construction for structure, insight, script, metadata,
  and thumbnail requests.
- Hold the fixed narration frame lines the script stage must honor.
"""

from __future__ import annotations

SCRIPT_OPENING_LINE = (
    "Welcome Back to Edu Star Youtube channel and If you are first time to our channel "
    "Dont forgot to subscribe to our chanel done misss updates and lets start todays "
    "video...now today we are talking about..."
)
SCRIPT_CLOSING_LINE = (
    "Thank You, Dont forget to subscribe to edu star youtube channel see you in the "
    "next video thank you for watching"
)

FULL_DOCUMENT_OPTION_TITLE = "Full Document Masterclass"

FULL_DOCUMENT_ANGLES = (
    '- Angle 1: "The Complete Masterclass" (Covering all modules)\n'
    '- Angle 2: "Key Concepts & Critical Definitions"\n'
    '- Angle 3: "Exam Focus & Final Conclusions"'
)
MODULE_ANGLES = (
    "- Angle 1: Focus on the Main Heading/Core Concept of this Module.\n"
    '- Angle 2: Focus on a specific "Trick", "Technique" or "Process" in this module.\n'
    "- Angle 3: Practical application/Case Study mentioned."
)


class PromptLibrary:
    """Build prompt strings for supported generation stages."""

    def structure_prompt(self) -> str:
        """Return the prompt asking for modules/topics with the full-document option first."""

        return (
            "Analyze this document structure.\n"
            'Look specifically for "Modules", "Chapters", "Units" or distinct "Topic Headings".\n\n'
            "TASK:\n"
            "1. Identify the top 3-4 distinct Modules/Topics found in the text.\n"
            f'2. ALWAYS include "{FULL_DOCUMENT_OPTION_TITLE}" as the FIRST option.\n\n'
            "Return JSON:\n"
            "{\n"
            '  "options": [\n'
            f'    {{ "title": "{FULL_DOCUMENT_OPTION_TITLE}", '
            '"description": "Comprehensive analysis of all modules/topics." },\n'
            '    { "title": "[Module X: Name]", "description": "Focus on [Topic details]" }\n'
            "  ]\n"
            "}"
        )

    def insight_prompt(self, scope_title: str, scope_description: str, full_document: bool) -> str:
        """Return the scoped analysis prompt with the branch-specific angle themes."""

        angle_block = FULL_DOCUMENT_ANGLES if full_document else MODULE_ANGLES
        return (
            "You are a Strict Academic Researcher and PhD Professor.\n\n"
            "TASK: Analyze the provided Document Content.\n"
            f'SCOPE: "{scope_title}" - {scope_description}\n\n'
            "CRITICAL INSTRUCTIONS:\n"
            "1. REAL CONTENT ONLY: Do not hallucinate. Use specific details from the file.\n"
            "2. If SCOPE is specific (e.g., Module 5), focus ONLY on that module's content "
            "found in the document.\n\n"
            "OUTPUT:\n"
            'Generate a JSON object with a "summary" and exactly 3 "angles".\n\n'
            f"{angle_block}\n\n"
            "Return JSON:\n"
            "{\n"
            '  "summary": "Detailed, factual summary...",\n'
            '  "angles": [\n'
            '    {"title": "Angle 1 Title", "description": "Description..."},\n'
            '    {"title": "Angle 2 Title", "description": "Description..."},\n'
            '    {"title": "Angle 3 Title", "description": "Description..."}\n'
            "  ]\n"
            "}"
        )

    def script_prompt(
        self, angle_title: str, summary: str, minutes: int, target_words: int
    ) -> str:
        """Return the narration prompt with the mandatory opening and closing lines."""

        return (
            f'Write a YouTube educational script for: "{angle_title}".\n\n'
            "SOURCE MATERIAL:\n"
            f"{summary}\n\n"
            f"TARGET DURATION: {minutes} Minutes (Approx {target_words} words).\n\n"
            "MANDATORY STRUCTURE (Strictly follow this):\n"
            f'1. START EXACTLY WITH: "{SCRIPT_OPENING_LINE}"\n'
            "2. BODY: Explain the content like a PhD Professor.\n"
            "   - Be detailed and cover the timeline required.\n"
            "   - Use specific facts, definitions, and logic from the source.\n"
            "   - NO FLUFF.\n"
            f'3. END EXACTLY WITH: "{SCRIPT_CLOSING_LINE}"\n\n'
            "Format: Just the spoken text."
        )

    def metadata_prompt(self, script_preview: str) -> str:
        """Return the SEO metadata prompt for a script preview."""

        return (
            "Based on this script, generate:\n"
            "1. A High-Ranking SEO YouTube Title (Clickbait but factual).\n"
            "2. A Compelling Description (First 2 lines hook).\n"
            "3. STRICTLY PROVIDE 50+ VIRAL HASHTAGS (Comma separated).\n\n"
            'Return JSON: { "title": "", "description": "", "hashtags": "" }\n\n'
            f"Script Preview: {script_preview}..."
        )

    def thumbnail_prompt(self, title: str, visual_description: str) -> str:
        """Return the thumbnail prompt with the fixed style and aspect-ratio directive."""

        return (
            f'High quality YouTube thumbnail for: "{title}".\n'
            "Style: Professional, academic, dramatic lighting.\n"
            f"Visuals: {visual_description}.\n"
            'Text overlay: "EDUSTAR".\n'
            "Photorealistic, 16:9 aspect ratio."
        )
