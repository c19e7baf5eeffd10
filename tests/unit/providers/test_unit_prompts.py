# tests/unit/providers/test_unit_prompts.py — v1
"""Tests for providers/prompts.py — request validation, prompts, answer parsing."""

from __future__ import annotations

import json

import pytest

from lingocore.core.errors import InvalidRequest, ProviderInvalidResponse
from lingocore.core.models import ProcessingRequest, TaskKind
from lingocore.providers.prompts import (
    build_prompt,
    difficulty_description,
    parse_language_code,
    parse_output,
    parse_vocabulary,
    validate_request,
)


def _req(kind: TaskKind, content: str = "Some text.", **params) -> ProcessingRequest:
    return ProcessingRequest(task_kind=kind, content=content, parameters=params)


class TestValidateRequest:
    def test_empty_content(self):
        with pytest.raises(InvalidRequest):
            validate_request(_req(TaskKind.SUMMARIZE, content="   "))

    def test_translate_requires_target(self):
        with pytest.raises(InvalidRequest, match="target_language"):
            validate_request(_req(TaskKind.TRANSLATE))
        validate_request(_req(TaskKind.TRANSLATE, target_language="fr"))

    @pytest.mark.parametrize("difficulty", [None, 0, 11, "5", True, 2.5])
    def test_rewrite_rejects_bad_difficulty(self, difficulty):
        with pytest.raises(InvalidRequest):
            validate_request(_req(TaskKind.REWRITE, difficulty=difficulty))

    @pytest.mark.parametrize("difficulty", [1, 5, 10])
    def test_rewrite_accepts_range(self, difficulty):
        validate_request(_req(TaskKind.REWRITE, difficulty=difficulty))

    def test_summarize_format(self):
        validate_request(_req(TaskKind.SUMMARIZE))
        validate_request(_req(TaskKind.SUMMARIZE, format="bullet"))
        with pytest.raises(InvalidRequest):
            validate_request(_req(TaskKind.SUMMARIZE, format="haiku"))

    def test_vocabulary_words_must_be_list(self):
        validate_request(_req(TaskKind.ANALYZE_VOCABULARY, words=["a", "b"]))
        validate_request(_req(TaskKind.ANALYZE_VOCABULARY))
        with pytest.raises(InvalidRequest):
            validate_request(_req(TaskKind.ANALYZE_VOCABULARY, words="a,b"))


class TestDifficultyDescription:
    @pytest.mark.parametrize("level,band", [
        (1, "A1"), (2, "A1"), (3, "A2"), (5, "B1-B2"), (7, "C1"), (10, "C2"),
    ])
    def test_bands(self, level, band):
        assert band in difficulty_description(level)


class TestBuildPrompt:
    def test_detect_truncates_content(self):
        prompt = build_prompt(_req(TaskKind.DETECT_LANGUAGE, content="q" * 2000))
        assert prompt.user.count("q") == 500
        assert prompt.max_tokens == 10

    def test_summarize_defaults(self):
        prompt = build_prompt(_req(TaskKind.SUMMARIZE))
        assert "approximately 300 words" in prompt.user
        assert "paragraph format" in prompt.user

    def test_summarize_bullets(self):
        prompt = build_prompt(_req(TaskKind.SUMMARIZE, max_length=50, format="bullet"))
        assert "approximately 50 words" in prompt.user
        assert "bullet points" in prompt.user

    def test_translate_auto_source(self):
        prompt = build_prompt(_req(TaskKind.TRANSLATE, target_language="es", source_language=None))
        assert "to es" in prompt.user
        assert "None" not in prompt.user
        assert " from " not in prompt.user.split("Text:")[0]

    def test_translate_explicit_source(self):
        prompt = build_prompt(_req(TaskKind.TRANSLATE, target_language="es", source_language="en"))
        assert "from en to es" in prompt.user

    def test_rewrite_mentions_level(self):
        prompt = build_prompt(_req(TaskKind.REWRITE, difficulty=3))
        assert "elementary (A2)" in prompt.user
        assert "3/10" in prompt.user

    def test_vocabulary_is_json_mode(self):
        prompt = build_prompt(_req(TaskKind.ANALYZE_VOCABULARY, words=["ephemeral"]))
        assert prompt.json_mode is True
        assert "Words: ephemeral" in prompt.user


class TestParseOutput:
    def test_empty_answer(self):
        with pytest.raises(ProviderInvalidResponse):
            parse_output(TaskKind.SUMMARIZE, "  ")

    def test_text_tasks(self):
        out = parse_output(TaskKind.TRANSLATE, " Bonjour le monde \n")
        assert out.text == "Bonjour le monde"

    def test_language(self):
        assert parse_output(TaskKind.DETECT_LANGUAGE, '"FR".').language == "fr"


class TestParseLanguageCode:
    @pytest.mark.parametrize("answer", ["english", "e", "en-US", "12"])
    def test_rejects(self, answer):
        with pytest.raises(ProviderInvalidResponse):
            parse_language_code(answer)

    def test_accepts(self):
        assert parse_language_code(" de ") == "de"


class TestParseVocabulary:
    def test_entries_object_with_camel_case(self):
        answer = json.dumps({"entries": [
            {"word": "ephemeral", "definition": "short-lived", "difficulty": 7,
             "isTechnicalTerm": False, "exampleSentences": ["Fame is ephemeral."]},
            {"word": "Paris", "isProperNoun": True},
        ]})
        entries = parse_vocabulary(answer)
        assert [e.word for e in entries] == ["ephemeral"]
        assert entries[0].example_sentences == ["Fame is ephemeral."]
        assert entries[0].difficulty == 7

    def test_bare_list_in_code_fence(self):
        answer = '```json\n[{"word": "kernel", "is_technical_term": true}]\n```'
        entries = parse_vocabulary(answer)
        assert entries[0].is_technical_term is True

    def test_not_json(self):
        with pytest.raises(ProviderInvalidResponse):
            parse_vocabulary("here are your words: ...")

    def test_not_a_list(self):
        with pytest.raises(ProviderInvalidResponse):
            parse_vocabulary('{"result": "none"}')

    def test_missing_word(self):
        with pytest.raises(ProviderInvalidResponse):
            parse_vocabulary('[{"definition": "orphan"}]')
