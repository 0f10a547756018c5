"""Shared prompt building functions for provider agents."""

from typing import Optional


DEFAULT_SYSTEM_PROMPT = """You are an academic assistant for a UCL MPA (ESG) student.

Analyze questions from an academic policy perspective, focusing on:
- Environmental, Social, and Governance (ESG) frameworks
- Public policy analysis
- Institutional perspectives
- Evidence-based recommendations

Use the provided notes context to ground your answers. Maintain an academic tone while being helpful and clear."""


NO_NOTES_PLACEHOLDER = "[No notes available]"

DEMO_MODE_MARKER = "(Demo Mode)"


def resolve_system_prompt(custom_prompt: Optional[str]) -> str:
    """Custom prompt wins over the default when it has any text."""
    if custom_prompt and custom_prompt.strip():
        return custom_prompt
    return DEFAULT_SYSTEM_PROMPT


def build_user_prompt(question: str, context: str) -> str:
    """
    Build the user turn with the question and the notes context.

    Args:
        question: The user's question
        context: Output of collect_file_context(), possibly empty

    Returns:
        Prompt text with both parts under clear labels
    """
    return f"User question:\n{question}\n\nNotes context:\n{context or NO_NOTES_PLACEHOLDER}"


def build_demo_response(context: str) -> str:
    """Canned answer used when no provider credential is configured."""
    notes_state = "content detected ✓" if context else "no notes available"

    return f"""**Academic Analysis {DEMO_MODE_MARKER}**

Based on your notes ({notes_state}), here's an academic perspective:

**Policy Context**
From a UCL MPA (ESG) standpoint, the question intersects with environmental governance, social equity, and institutional frameworks.

**Key Considerations**
- Multi-stakeholder governance
- Evidence-based policy design
- Distributional impacts
- Institutional capacity

**Recommendations**
1. Conduct stakeholder analysis
2. Review comparative policy cases
3. Assess implementation feasibility
4. Consider justice dimensions

---
*Demo Mode Active. Configure AI API keys in Settings to unlock full analysis.*
"""
