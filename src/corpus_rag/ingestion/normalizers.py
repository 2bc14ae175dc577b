"""Source-specific normalizers.

Each corpus type has exactly one :class:`Normalizer` variant that turns a
:class:`~corpus_rag.ingestion.models.RawFile` into one or more
:class:`~corpus_rag.ingestion.models.NormalizedDocument` objects.  The
ingestion entry point picks the variant from an explicit
:class:`~corpus_rag.ingestion.models.CorpusType` via :func:`get_normalizer`.

Variants
--------
- :class:`ProseNormalizer` — Markdown / MDX with optional YAML front-matter.
- :class:`ChatNormalizer` — chat channel exports (JSON), grouped per day.
- :class:`CodeNormalizer` — source files with structural metadata.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import date, datetime
from typing import Any, ClassVar

import frontmatter
import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from corpus_rag.errors import NormalizationError
from corpus_rag.ingestion.metadata import extract_imports, extract_structure
from corpus_rag.ingestion.models import CorpusType, NormalizedDocument, RawFile

logger = logging.getLogger(__name__)


class Normalizer(ABC):
    """Turn a raw corpus file into canonical ``(text, metadata)`` documents."""

    corpus_type: ClassVar[CorpusType]
    file_patterns: ClassVar[tuple[str, ...]]

    @abstractmethod
    def normalize(self, raw_file: RawFile) -> list[NormalizedDocument]:
        """Return the documents contained in *raw_file*.

        Raises
        ------
        NormalizationError
            When the file is malformed beyond recovery.
        """
        ...

    def chunk_metadata(self, raw_file: RawFile, chunk_text: str) -> dict[str, Any]:
        """Extra metadata derived from a single chunk.  Nothing by default."""
        return {}


# ---------------------------------------------------------------------------
# Prose
# ---------------------------------------------------------------------------


def parse_front_matter(content: str, source: str = "<string>") -> tuple[dict[str, Any], str]:
    """Split a leading ``---`` fenced YAML front-matter block off *content*.

    Returns ``(metadata, body)``.  Without a front-matter block the
    metadata is empty and the body is the full content; a malformed block
    (unparseable or not a mapping) is treated the same way.
    """
    try:
        metadata, body = frontmatter.parse(content)
    except (yaml.YAMLError, ValueError) as exc:
        logger.warning("Ignoring malformed front-matter in %s: %s", source, exc)
        return {}, content
    return {str(k): v for k, v in metadata.items()}, body


class ProseNormalizer(Normalizer):
    corpus_type = CorpusType.PROSE
    file_patterns = ("**/*.md", "**/*.mdx")

    def normalize(self, raw_file: RawFile) -> list[NormalizedDocument]:
        metadata, body = parse_front_matter(raw_file.content, raw_file.source)
        return [NormalizedDocument(text=body, metadata=metadata)]


# ---------------------------------------------------------------------------
# Chat transcripts
# ---------------------------------------------------------------------------


class ChatEmoji(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    code: str | None = None


class ChatReaction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    emoji: ChatEmoji = Field(default_factory=ChatEmoji)
    count: int = 0

    def label(self) -> str:
        return f"{self.emoji.name or self.emoji.code or '?'}({self.count})"


class ChatAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    name: str = "unknown"


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    timestamp: str | None = None
    content: str | None = ""
    author: ChatAuthor = Field(default_factory=ChatAuthor)
    reactions: list[ChatReaction] = Field(default_factory=list)


class ChatGuild(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str = ""


class ChatChannel(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str = ""
    category: str | None = None


class ChatExport(BaseModel):
    """A single-channel chat export (guild, channel, ordered messages)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    guild: ChatGuild
    channel: ChatChannel
    messages: list[ChatMessage]
    exported_at: str | None = Field(default=None, alias="exportedAt")


class ConversationDayGroup(BaseModel):
    """Messages of one calendar day, in original order."""

    day: str
    messages: list[ChatMessage] = Field(default_factory=list)


def _parse_timestamp(raw: str | None) -> datetime:
    if not raw:
        raise ValueError("empty timestamp")
    return datetime.fromisoformat(raw.strip())


def message_day(message: ChatMessage, today: date | None = None) -> str:
    """Calendar day (``YYYY-MM-DD``) of *message*, as written in its timestamp.

    An unparseable timestamp falls back to *today* (the processing date).
    """
    try:
        return _parse_timestamp(message.timestamp).date().isoformat()
    except (TypeError, ValueError):
        fallback = (today or date.today()).isoformat()
        logger.warning(
            "Failed to parse timestamp %r for message %s, using %s",
            message.timestamp,
            message.id,
            fallback,
        )
        return fallback


def format_timestamp(raw: str | None) -> str:
    """Human-readable timestamp; unparseable input is returned as-is."""
    try:
        return _parse_timestamp(raw).strftime("%Y-%m-%d %H:%M:%S")
    except (TypeError, ValueError):
        return raw or "Unknown time"


def group_messages_by_day(messages: list[ChatMessage], today: date | None = None) -> list[ConversationDayGroup]:
    """Drop empty messages and group the rest by calendar day (first-seen order)."""
    groups: OrderedDict[str, ConversationDayGroup] = OrderedDict()
    for message in messages:
        if not message.content or not message.content.strip():
            continue
        day = message_day(message, today)
        groups.setdefault(day, ConversationDayGroup(day=day)).messages.append(message)
    return list(groups.values())


def format_message(message: ChatMessage) -> str:
    content = message.content or ""
    if message.reactions:
        content += "\n[Reactions: " + ", ".join(r.label() for r in message.reactions) + "]"
    return f"[{format_timestamp(message.timestamp)}] {message.author.name}: {content}"


def format_conversation(group: ConversationDayGroup, channel_name: str) -> str:
    """Render a day group as one conversational text block."""
    lines = [format_message(m) for m in group.messages]
    return f"Channel: {channel_name}\n\n" + "\n\n".join(lines)


class ChatNormalizer(Normalizer):
    corpus_type = CorpusType.CHAT
    file_patterns = ("**/*.json",)

    def __init__(self, today: date | None = None) -> None:
        self._today = today

    def parse_export(self, raw_file: RawFile) -> ChatExport:
        try:
            data = json.loads(raw_file.content)
        except json.JSONDecodeError as exc:
            raise NormalizationError(f"invalid JSON: {exc}", raw_file.source) from exc
        if not isinstance(data, dict):
            raise NormalizationError("expected a JSON object", raw_file.source)
        try:
            return ChatExport.model_validate(data)
        except PydanticValidationError as exc:
            raise NormalizationError(
                f"not a chat export (guild/channel/messages): {exc.error_count()} validation errors",
                raw_file.source,
            ) from exc

    def normalize(self, raw_file: RawFile) -> list[NormalizedDocument]:
        export = self.parse_export(raw_file)
        if not export.messages:
            logger.info("No messages found in %s", raw_file.source)
            return []

        documents: list[NormalizedDocument] = []
        for group in group_messages_by_day(export.messages, self._today):
            documents.append(
                NormalizedDocument(
                    text=format_conversation(group, export.channel.name),
                    metadata={
                        "guildId": export.guild.id,
                        "guildName": export.guild.name,
                        "channelId": export.channel.id,
                        "channelName": export.channel.name,
                        "channelCategory": export.channel.category,
                        "day": group.day,
                        "messageCount": len(group.messages),
                        "exportDate": export.exported_at,
                    },
                )
            )
        return documents


# ---------------------------------------------------------------------------
# Source code
# ---------------------------------------------------------------------------


class CodeNormalizer(Normalizer):
    corpus_type = CorpusType.CODE
    file_patterns = ("**/*.ts", "**/*.tsx", "**/*.py")

    def normalize(self, raw_file: RawFile) -> list[NormalizedDocument]:
        structure = extract_structure(raw_file.path, raw_file.content)
        metadata = {
            **structure.as_dict(),
            "fileExtension": raw_file.path.suffix,
            "directoryPath": str(raw_file.path.parent),
        }
        return [NormalizedDocument(text=raw_file.content, metadata=metadata)]

    def chunk_metadata(self, raw_file: RawFile, chunk_text: str) -> dict[str, Any]:
        return {"importStatements": extract_imports(chunk_text, raw_file.path)}


_NORMALIZERS: dict[CorpusType, type[Normalizer]] = {
    CorpusType.PROSE: ProseNormalizer,
    CorpusType.CHAT: ChatNormalizer,
    CorpusType.CODE: CodeNormalizer,
}


def get_normalizer(corpus_type: CorpusType | str) -> Normalizer:
    """Return the normalizer variant for *corpus_type*."""
    return _NORMALIZERS[CorpusType(corpus_type)]()
