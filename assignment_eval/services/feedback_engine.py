"""
Feedback Engine Client
Talks to the Hugging Face Inference API to produce grammar, clarity,
structure and content feedback for a piece of student writing.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import requests

from assignment_eval.core.config import settings
from assignment_eval.core.errors import EngineFailure

logger = logging.getLogger(__name__)

NO_ANALYSIS_TEXT = "Unable to generate analysis at this time."

GRAMMAR_FALLBACK = (
    "Grammar analysis: The text appears to be generally well-written. "
    "Consider reviewing for minor punctuation and sentence structure improvements."
)
CLARITY_FALLBACK = (
    "Clarity analysis: The text demonstrates reasonable clarity. Consider varying "
    "sentence length and using more specific vocabulary to enhance readability."
)
STRUCTURE_FALLBACK = (
    "Structure analysis: The text shows a logical progression of ideas. Consider adding "
    "clearer transitions between sections and ensuring each paragraph focuses on a "
    "single main point."
)
CONTENT_FALLBACK = (
    "Content analysis: The text presents relevant information and demonstrates "
    "understanding of the topic. Consider adding more supporting evidence and deeper "
    "analysis to strengthen your arguments."
)

OVERALL_FALLBACK = (
    "This submission shows effort and understanding. Continue to develop your writing "
    "skills by focusing on clarity and supporting your arguments with evidence."
)
OVERALL_FALLBACK_SUGGESTIONS = [
    "Review grammar and punctuation carefully",
    "Add more specific examples and evidence",
    "Improve transitions between ideas",
    "Consider your audience when choosing vocabulary",
]
DEFAULT_SUGGESTIONS = [
    "Review your work for grammar and spelling errors",
    "Consider adding more specific examples to support your points",
    "Ensure smooth transitions between paragraphs",
]
DEFAULT_OVERALL = "Good effort overall. Continue to refine your writing skills."

MAX_SUGGESTIONS = 5
MAX_SCORE = 100

_NUMBERED_LINE = re.compile(r"^\d+[.)]\s")
_NUMBER_PREFIX = re.compile(r"^\d+[.)]\s*")


@dataclass
class EvaluationResult:
    grammar_feedback: str
    clarity_feedback: str
    structure_feedback: str
    content_feedback: str
    overall_feedback: str
    suggestions: List[str] = field(default_factory=list)
    total_score: float = 0
    max_possible_score: float = MAX_SCORE
    percentage_score: float = 0


def call_inference_api(
    model: str,
    inputs: str,
    parameters: Dict[str, Any] | None = None,
) -> List[Dict[str, Any]]:
    """
    POST a prompt to one hosted model.

    Raises:
        EngineFailure: missing API key, transport error or non-2xx response
    """
    if not settings.HF_API_KEY:
        raise EngineFailure("HF_API_KEY is not configured")

    payload = {
        "inputs": inputs,
        "parameters": {
            "max_new_tokens": settings.HF_MAX_NEW_TOKENS,
            "temperature": settings.HF_TEMPERATURE,
            "return_full_text": False,
            **(parameters or {}),
        },
    }
    try:
        response = requests.post(
            f"{settings.HF_API_URL}/{model}",
            headers={"Authorization": f"Bearer {settings.HF_API_KEY}"},
            json=payload,
            timeout=settings.HF_REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise EngineFailure(f"Hugging Face API request failed: {e}") from e

    if not response.ok:
        logger.error(f"HF API error {response.status_code}: {response.text[:500]}")
        raise EngineFailure(f"Hugging Face API error: {response.status_code}")

    return response.json()


def _generated_text(result: Any) -> str | None:
    if isinstance(result, list) and result and isinstance(result[0], dict):
        text = result[0].get("generated_text")
        if text:
            return text.strip()
    return None


def generate_text(prompt: str) -> str:
    """Primary instruction model first, then the smaller fallback model."""
    text = _generated_text(
        call_inference_api(settings.HF_PRIMARY_MODEL, prompt, {"max_new_tokens": 800})
    )
    if text:
        return text

    text = _generated_text(
        call_inference_api(settings.HF_FALLBACK_MODEL, prompt, {"max_new_tokens": 500})
    )
    if text:
        return text

    return NO_ANALYSIS_TEXT


def _clip(text: str) -> str:
    return text[: settings.AI_MAX_INPUT_CHARS]


def _analyze(category: str, prompt: str, fallback: str) -> str:
    try:
        return generate_text(prompt)
    except Exception as e:
        logger.error(f"{category} analysis error: {e}")
        return fallback


def analyze_grammar(text: str) -> str:
    prompt = (
        "<s>[INST] You are an expert writing tutor. Analyze the following text for grammar, "
        "spelling, and punctuation errors. Provide specific feedback on any issues found and "
        "suggestions for improvement. Be concise but helpful.\n\n"
        f'Text to analyze:\n"{_clip(text)}"\n\n'
        "Provide your grammar analysis: [/INST]"
    )
    return _analyze("Grammar", prompt, GRAMMAR_FALLBACK)


def analyze_clarity(text: str) -> str:
    prompt = (
        "<s>[INST] You are an expert writing tutor. Analyze the following text for clarity and "
        "readability. Consider sentence structure, word choice, and how easy it is to "
        "understand. Provide specific feedback.\n\n"
        f'Text to analyze:\n"{_clip(text)}"\n\n'
        "Provide your clarity analysis: [/INST]"
    )
    return _analyze("Clarity", prompt, CLARITY_FALLBACK)


def analyze_structure(text: str) -> str:
    prompt = (
        "<s>[INST] You are an expert writing tutor. Analyze the following text for structure "
        "and organization. Consider the logical flow of ideas, paragraph organization, and "
        "overall coherence. Provide specific feedback.\n\n"
        f'Text to analyze:\n"{_clip(text)}"\n\n'
        "Provide your structure analysis: [/INST]"
    )
    return _analyze("Structure", prompt, STRUCTURE_FALLBACK)


def analyze_content(text: str, rubric_context: str | None = None) -> str:
    rubric_info = f"\nEvaluation criteria: {rubric_context}" if rubric_context else ""
    prompt = (
        "<s>[INST] You are an expert academic evaluator. Analyze the following text for "
        "content quality, depth of analysis, and strength of arguments. Consider the "
        f"relevance and accuracy of information presented.{rubric_info}\n\n"
        f'Text to analyze:\n"{_clip(text)}"\n\n'
        "Provide your content analysis: [/INST]"
    )
    return _analyze("Content", prompt, CONTENT_FALLBACK)


def parse_suggestions(response: str) -> List[str]:
    """Pick numbered lines ("1. ..." / "2) ...") out of a model response."""
    suggestions = []
    for line in response.split("\n"):
        trimmed = line.strip()
        if _NUMBERED_LINE.match(trimmed):
            suggestions.append(_NUMBER_PREFIX.sub("", trimmed))
    return suggestions


def generate_overall_feedback(
    grammar_feedback: str,
    clarity_feedback: str,
    structure_feedback: str,
    content_feedback: str,
) -> Tuple[str, List[str]]:
    prompt = (
        "<s>[INST] You are an expert writing tutor. Based on the following analysis of a "
        "student's work, provide a brief overall summary and 3-5 specific actionable "
        "suggestions for improvement.\n\n"
        f"Grammar feedback: {grammar_feedback[:300]}\n"
        f"Clarity feedback: {clarity_feedback[:300]}\n"
        f"Structure feedback: {structure_feedback[:300]}\n"
        f"Content feedback: {content_feedback[:300]}\n\n"
        "Provide:\n"
        "1. A brief overall assessment (2-3 sentences)\n"
        "2. A numbered list of 3-5 specific suggestions for improvement [/INST]"
    )
    try:
        response = generate_text(prompt)
    except Exception as e:
        logger.error(f"Overall feedback error: {e}")
        return OVERALL_FALLBACK, list(OVERALL_FALLBACK_SUGGESTIONS)

    suggestions = parse_suggestions(response) or list(DEFAULT_SUGGESTIONS)
    overall = response.split("\n")[0] or DEFAULT_OVERALL
    return overall, suggestions[:MAX_SUGGESTIONS]


def calculate_score(text: str) -> Tuple[int, int]:
    """
    Deterministic length/structure heuristic, independent of the model output.

    base 70
    +3 / +3 / +4   more than 100 / 250 / 500 words
    +5 / +5        at least 3 / 5 paragraphs (blank-line separated)
    +5             average sentence length strictly between 10 and 25 words
    capped at 100
    """
    max_score = MAX_SCORE
    score = 70

    word_count = len(re.split(r"\s+", text))
    if word_count > 100:
        score += 3
    if word_count > 250:
        score += 3
    if word_count > 500:
        score += 4

    paragraphs = [p for p in re.split(r"\n\n+", text) if p.strip()]
    if len(paragraphs) >= 3:
        score += 5
    if len(paragraphs) >= 5:
        score += 5

    sentences = [s for s in re.split(r"[.!?]+", text) if s.strip()]
    avg_sentence_length = word_count / max(len(sentences), 1)
    if 10 < avg_sentence_length < 25:
        score += 5

    return min(score, max_score), max_score


def evaluate_submission(content: str, rubric_context: str | None = None) -> EvaluationResult:
    """
    Run the four category analyses concurrently, then the overall summary,
    then the heuristic score.
    """
    logger.info("Starting AI evaluation...")

    with ThreadPoolExecutor(max_workers=4) as executor:
        grammar = executor.submit(analyze_grammar, content)
        clarity = executor.submit(analyze_clarity, content)
        structure = executor.submit(analyze_structure, content)
        content_analysis = executor.submit(analyze_content, content, rubric_context)

        grammar_feedback = grammar.result()
        clarity_feedback = clarity.result()
        structure_feedback = structure.result()
        content_feedback = content_analysis.result()

    overall, suggestions = generate_overall_feedback(
        grammar_feedback, clarity_feedback, structure_feedback, content_feedback
    )
    score, max_score = calculate_score(content)

    logger.info("AI evaluation complete")

    return EvaluationResult(
        grammar_feedback=grammar_feedback,
        clarity_feedback=clarity_feedback,
        structure_feedback=structure_feedback,
        content_feedback=content_feedback,
        overall_feedback=overall,
        suggestions=suggestions,
        total_score=score,
        max_possible_score=max_score,
        percentage_score=(score / max_score) * 100,
    )
