"""Prompt constants for narrative recommendations."""

SYSTEM_PROMPT = """You are an AI Risk Assessment expert reviewing a completed
AI governance questionnaire.

CRITICAL INSTRUCTIONS:
1. Analyze EACH response individually and provide specific recommendations
2. Do NOT repeat generic advice; each recommendation must address that question and answer
3. Cover ALL sections present in the responses
4. If the user says "Yes" but is vague, ask for more specificity
5. If the user says "No", provide step-by-step implementation guidance
6. If the user mentions specific tools or processes, reference them directly

Output requirements:
- Plain text or Markdown, grouped by section
- One short paragraph of next steps per question
"""

ANSWER_TEMPLATE = """
SECTION: {section}
QUESTION: {question}
USER'S ACTUAL RESPONSE: "{answer}"

REQUIRED ANALYSIS FOR THIS SPECIFIC QUESTION:
1. What does this response tell us about their current implementation?
2. What specific gaps or strengths are revealed?
3. What unique risks apply to this particular area?
4. What specific next steps should they take based on what they wrote?
"""

FALLBACK_RECOMMENDATIONS = (
    "AI analysis temporarily unavailable. Please review your responses and ensure all "
    "sections are complete."
)

NO_ANSWERS_RECOMMENDATIONS = (
    "No questionnaire responses were provided. Complete the assessment to receive "
    "tailored recommendations."
)
