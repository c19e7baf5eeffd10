# src/store/exporter.py — v1
"""Learning data export to JSON and Markdown, and JSON import.

Imports go through the same migration chain as the store itself, so a
legacy export can be imported into a current store.
"""

from __future__ import annotations

import json
import logging

from lingocore.core.errors import StoreMigrationFailed
from lingocore.store.base_result_store import BaseResultStore
from lingocore.store.migrations import migrate_data
from lingocore.store.models import (
    CURRENT_SCHEMA_VERSION,
    ArticleRecord,
    SchemaEnvelope,
    SentenceCardRecord,
    StoreRecord,
    VocabularyCardRecord,
)

logger = logging.getLogger(__name__)


def export_json(records: list[StoreRecord]) -> str:
    """Serialize records as a current-schema envelope."""
    return SchemaEnvelope(schema_version=CURRENT_SCHEMA_VERSION, records=records).to_json()


def export_markdown(records: list[StoreRecord]) -> str:
    """Render vocabulary and sentence cards (and article titles) as Markdown.

    Args:
        records: Records to render, in the order they should appear.

    Returns:
        Markdown document.
    """
    articles = [r for r in records if isinstance(r, ArticleRecord)]
    vocabulary = [r for r in records if isinstance(r, VocabularyCardRecord)]
    sentences = [r for r in records if isinstance(r, SentenceCardRecord)]

    lines: list[str] = ["# Language Learning Export", ""]

    if articles:
        lines += ["## Articles", ""]
        for article in articles:
            title = article.title or article.url or article.id
            lang = f" ({article.original_language})" if article.original_language else ""
            lines.append(f"- {title}{lang}")
        lines.append("")

    if vocabulary:
        lines += ["## Vocabulary", ""]
        for card in vocabulary:
            lines.append(f"### {card.word}")
            lines.append("")
            if card.definition:
                lines.append(f"**Definition:** {card.definition}")
            if card.translation and card.translation != card.definition:
                lines.append(f"**Translation:** {card.translation}")
            if card.context:
                lines.append(f"**Context:** {card.context}")
            if card.example_sentences:
                lines.append("**Examples:**")
                lines += [f"- {sentence}" for sentence in card.example_sentences]
            lines.append("")

    if sentences:
        lines += ["## Sentences", ""]
        for card in sentences:
            lines.append(f"> {card.content}")
            lines.append("")
            if card.translation:
                lines.append(f"{card.translation}")
                lines.append("")

    return "\n".join(lines).rstrip() + "\n"


async def import_json(store: BaseResultStore, text: str) -> int:
    """Import an exported (possibly legacy) JSON document into ``store``.

    Returns:
        Number of records saved.

    Raises:
        StoreMigrationFailed: If the document cannot be migrated.
        StoreConflict: If an imported id belongs to a record of another kind.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StoreMigrationFailed(f"Import is not valid JSON: {e}") from e

    envelope, report = migrate_data(data)
    for record in envelope.records:
        await store.save(record)
    logger.info(
        "Imported %d records (schema %d → %d)",
        len(envelope.records), report.from_version, report.to_version,
    )
    return len(envelope.records)
