# src/providers/prompts.py — v1
"""Task prompts for LLM-backed providers and parsing of their answers.

Request parameters per task:
  - summarize: ``max_length`` (words, default 300), ``format``
    ("paragraph" | "bullet")
  - translate: ``target_language`` (required), ``source_language``
    (default "auto")
  - rewrite: ``difficulty`` (1-10, required)
  - analyze-vocabulary: ``words`` (optional list; when absent the model
    picks the learning-relevant words of the content)
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from lingocore.core.errors import InvalidRequest, ProviderInvalidResponse
from lingocore.core.models import (
    ProcessingRequest,
    ProviderOutput,
    TaskKind,
    VocabularyEntry,
)

_LANG_RE = re.compile(r"^[a-z]{2}$")
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

SYSTEM_PROMPT = (
    "You are a language-learning assistant. Follow the output format exactly "
    "and never add explanations."
)


@dataclass(frozen=True)
class Prompt:
    """A fully built prompt plus generation settings."""

    system: str
    user: str
    max_tokens: int
    temperature: float
    json_mode: bool = False


def validate_request(request: ProcessingRequest) -> None:
    """Reject requests whose parameters no provider could satisfy.

    Raises:
        InvalidRequest: On empty content or bad task parameters.
    """
    if not request.content.strip():
        raise InvalidRequest("content must not be empty")

    params = request.parameters
    if request.task_kind is TaskKind.TRANSLATE:
        if not str(params.get("target_language", "")).strip():
            raise InvalidRequest("translate requires 'target_language'")
    elif request.task_kind is TaskKind.REWRITE:
        difficulty = params.get("difficulty")
        if not isinstance(difficulty, int) or isinstance(difficulty, bool) \
                or not 1 <= difficulty <= 10:
            raise InvalidRequest("rewrite requires integer 'difficulty' between 1 and 10")
    elif request.task_kind is TaskKind.SUMMARIZE:
        fmt = params.get("format") or "paragraph"
        if fmt not in ("paragraph", "bullet"):
            raise InvalidRequest("summarize 'format' must be 'paragraph' or 'bullet'")
    elif request.task_kind is TaskKind.ANALYZE_VOCABULARY:
        words = params.get("words")
        if words is not None and not isinstance(words, (list, tuple)):
            raise InvalidRequest("analyze-vocabulary 'words' must be a list")


def difficulty_description(difficulty: int) -> str:
    """CEFR band for a 1-10 difficulty level."""
    if difficulty <= 2:
        return "beginner (A1)"
    if difficulty <= 4:
        return "elementary (A2)"
    if difficulty <= 6:
        return "intermediate (B1-B2)"
    if difficulty <= 8:
        return "advanced (C1)"
    return "proficient (C2)"


def build_prompt(request: ProcessingRequest) -> Prompt:
    """Build the prompt for ``request``."""
    text = request.content
    params = request.parameters
    kind = request.task_kind

    if kind is TaskKind.DETECT_LANGUAGE:
        return Prompt(
            system=SYSTEM_PROMPT,
            user=(
                "Detect the language of the following text and return ONLY the "
                'ISO 639-1 language code (e.g., "en", "es", "fr", "de", "ja", "zh").'
                f"\n\nText: {text[:500]}"
            ),
            max_tokens=10,
            temperature=0.1,
        )

    if kind is TaskKind.SUMMARIZE:
        max_length = int(params.get("max_length") or 300)
        style = "Use bullet points." if params.get("format") == "bullet" \
            else "Use paragraph format."
        return Prompt(
            system=SYSTEM_PROMPT,
            user=(
                f"Summarize the following text in approximately {max_length} words. "
                f"{style}\n\nRemove any advertisements, navigation elements, or "
                "irrelevant content. Focus only on the main article content."
                f"\n\nText:\n{text}"
            ),
            max_tokens=int(max_length * 1.5) + 16,
            temperature=0.3,
        )

    if kind is TaskKind.TRANSLATE:
        source = params.get("source_language") or "auto"
        source_part = "" if source == "auto" else f" from {source}"
        return Prompt(
            system=SYSTEM_PROMPT,
            user=(
                f"Translate the following text{source_part} to "
                f"{params['target_language']}. Provide ONLY the translation, "
                f"no explanations.\n\nText: {text}"
            ),
            max_tokens=max(64, len(text) * 2),
            temperature=0.3,
        )

    if kind is TaskKind.REWRITE:
        difficulty = int(params["difficulty"])
        return Prompt(
            system=SYSTEM_PROMPT,
            user=(
                "Rewrite the following text to match a "
                f"{difficulty_description(difficulty)} language proficiency level "
                f"(difficulty {difficulty}/10).\n\nGuidelines:\n"
                "- Maintain all factual information and meaning\n"
                "- Adjust vocabulary complexity appropriately\n"
                "- Keep the same structure and length\n"
                "- Do not add or remove information\n\n"
                f"Text:\n{text}"
            ),
            max_tokens=max(64, int(len(text) * 1.5)),
            temperature=0.5,
        )

    if kind is TaskKind.ANALYZE_VOCABULARY:
        words = params.get("words")
        target = (
            f"Words: {', '.join(words)}" if words
            else "Pick the words a language learner is least likely to know."
        )
        return Prompt(
            system=SYSTEM_PROMPT,
            user=(
                "Analyze the vocabulary of the given context. For each word return "
                "an object with: word, definition (short, in plain language), "
                "difficulty (1-10), isProperNoun, isTechnicalTerm, and "
                "exampleSentences (1-3 sentences using the word in other contexts). "
                'Answer with a JSON object of the form {"entries": [...]}.'
                f"\n\nContext: {text}\n\n{target}"
            ),
            max_tokens=2000,
            temperature=0.7,
            json_mode=True,
        )

    raise InvalidRequest(f"Unknown task kind: {kind!r}")


def parse_output(task_kind: TaskKind, raw: str) -> ProviderOutput:
    """Validate a raw model answer and wrap it in a ProviderOutput.

    Raises:
        ProviderInvalidResponse: If the answer does not fit the task.
    """
    answer = (raw or "").strip()
    if not answer:
        raise ProviderInvalidResponse("Empty response")

    if task_kind is TaskKind.DETECT_LANGUAGE:
        return ProviderOutput(task_kind=task_kind, language=parse_language_code(answer))

    if task_kind is TaskKind.ANALYZE_VOCABULARY:
        return ProviderOutput(task_kind=task_kind, vocabulary=parse_vocabulary(answer))

    return ProviderOutput(task_kind=task_kind, text=answer)


def parse_language_code(answer: str) -> str:
    code = answer.strip().strip("\"'`.").lower()
    if not _LANG_RE.match(code):
        raise ProviderInvalidResponse(f"Invalid language code returned: {answer[:20]!r}")
    return code


def parse_vocabulary(answer: str) -> list[VocabularyEntry]:
    """Parse a vocabulary JSON answer, dropping proper nouns."""
    try:
        data: Any = json.loads(_FENCE_RE.sub("", answer.strip()))
    except json.JSONDecodeError as e:
        raise ProviderInvalidResponse(f"Vocabulary answer is not JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("entries", data.get("words"))
    if not isinstance(data, list):
        raise ProviderInvalidResponse("Vocabulary answer is not a list of entries")

    entries: list[VocabularyEntry] = []
    for item in data:
        if not isinstance(item, dict):
            raise ProviderInvalidResponse("Vocabulary entry is not an object")
        if item.get("isProperNoun") or item.get("is_proper_noun"):
            continue
        try:
            entries.append(
                VocabularyEntry(
                    word=item["word"],
                    definition=item.get("definition", ""),
                    example_sentences=item.get(
                        "exampleSentences", item.get("example_sentences", [])
                    ),
                    difficulty=item.get("difficulty"),
                    is_technical_term=bool(
                        item.get("isTechnicalTerm", item.get("is_technical_term", False))
                    ),
                )
            )
        except (KeyError, ValidationError) as e:
            raise ProviderInvalidResponse(f"Malformed vocabulary entry: {e}") from e
    return entries
