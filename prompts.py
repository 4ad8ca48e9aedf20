CONTEXT_PROMPT_TEMPLATE = """Read and analyze the content at the following URL and produce a concise, information-dense summary of it.

Capture:
- key concepts and definitions
- concrete data points (numbers, dates, names)
- relationships between the ideas presented

Avoid fluff and keep it factual. Do not add knowledge that is not on the page. Include section headers if helpful.

URL: {url}
"""

QUIZ_PROMPT_TEMPLATE = """You are an expert quiz creator. Use ONLY the context summary below to create an educational multiple-choice quiz.

CRITICAL RULES:
1. Do NOT invent facts that are not present in the context summary
2. Generate EXACTLY {question_amount} questions - no more, no fewer
3. Each question must have EXACTLY 4 options, all of them plausible
4. correctAnswer is the 0-based index (0-3) of the single correct option
5. Each explanation must reference the specific part of the context summary that supports the answer
6. Cover different aspects of the content (main ideas, details, analysis, application)

TASKS:
1. **title**: A short title summarizing the topic of the content
2. **category**: A coarse subject label (e.g. "Science", "History", "Technology")
3. **questions**: The {question_amount} questions described above

CONTEXT SUMMARY:
\"\"\"
{context_summary}
\"\"\"

Return ONLY JSON that strictly complies with the provided schema. No markdown, no text outside the JSON.
"""


def build_context_prompt(url: str) -> str:
    return CONTEXT_PROMPT_TEMPLATE.format(url=url)


def build_quiz_prompt(context_summary: str, question_amount: int) -> str:
    """Quiz synthesis works from the summary alone; the raw URL is never passed."""
    return QUIZ_PROMPT_TEMPLATE.format(
        context_summary=context_summary.strip(),
        question_amount=question_amount,
    )
