"""
Knowledge Models — typed view over the merged knowledge document

The merged document is schema-less JSON. These dataclasses give each
section a typed shape where every field is optional, so the matcher
rules read declared fields instead of probing nested dicts.

Sections:
- club         → ClubFacts (identity, join, contact, board, projects)
- leo_general  → ProgramFacts (generic program definition and facts)

Each section is parsed on its own; a malformed section becomes empty
without disturbing the others.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

logger = logging.getLogger("clubsite.knowledge")


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) if isinstance(data, Mapping) else None
    return value if isinstance(value, Mapping) else {}


class AnswerOrigin(str, Enum):
    LOCAL = "local"
    GENERATED = "generated"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Question:
    text: str
    context_files: tuple[str, ...] = ()


@dataclass(frozen=True)
class AnswerResult:
    text: str
    origin: AnswerOrigin


@dataclass(frozen=True)
class LocalAnswer:
    """Matcher output: the composed text and the rule that produced it."""
    text: str
    rule: str


@dataclass
class JoinInfo:
    how: str | None = None
    form_url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> JoinInfo:
        return cls(how=_text(data.get("how")), form_url=_text(data.get("formUrl")))


@dataclass
class ContactInfo:
    email: str | None = None
    social: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContactInfo:
        social = data.get("social")
        handles: dict[str, str] = {}
        if isinstance(social, Mapping):
            for network, handle in social.items():
                value = _text(handle)
                if value:
                    handles[str(network)] = value
        return cls(email=_text(data.get("email")), social=handles)


@dataclass
class BoardInfo:
    year: str | None = None
    note: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BoardInfo:
        return cls(year=_text(data.get("year")), note=_text(data.get("note")))


@dataclass
class ProjectFact:
    title: str
    description: str | None = None


@dataclass
class ClubFacts:
    name: str | None = None
    aliases: list[str] = field(default_factory=list)
    description: str | None = None
    motto: str | None = None
    join: JoinInfo = field(default_factory=JoinInfo)
    contact: ContactInfo = field(default_factory=ContactInfo)
    board: BoardInfo = field(default_factory=BoardInfo)
    projects: list[ProjectFact] = field(default_factory=list)
    mobile_app: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClubFacts:
        projects = []
        raw_projects = data.get("projects")
        if isinstance(raw_projects, list):
            for p in raw_projects:
                if isinstance(p, Mapping) and _text(p.get("title")):
                    projects.append(ProjectFact(
                        title=_text(p.get("title")),
                        description=_text(p.get("description")),
                    ))

        raw_aliases = data.get("aliases")
        aliases = [a for a in map(_text, raw_aliases) if a] if isinstance(raw_aliases, list) else []

        mobile = data.get("mobile_app")
        mobile_note = _text(mobile.get("note")) if isinstance(mobile, Mapping) else _text(mobile)

        return cls(
            name=_text(data.get("name")),
            aliases=aliases,
            description=_text(data.get("description")),
            motto=_text(data.get("motto")),
            join=JoinInfo.from_dict(_section(data, "join")),
            contact=ContactInfo.from_dict(_section(data, "contact")),
            board=BoardInfo.from_dict(_section(data, "board")),
            projects=projects,
            mobile_app=mobile_note,
        )


@dataclass
class ProgramFacts:
    what_is_leo: str | None = None
    age_range: str | None = None
    benefits: str | None = None
    activities: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProgramFacts:
        return cls(
            what_is_leo=_text(data.get("what_is_leo")),
            age_range=_text(data.get("age_range")),
            benefits=_text(data.get("benefits")),
            activities=_text(data.get("activities")),
        )


@dataclass
class KnowledgeView:
    club: ClubFacts = field(default_factory=ClubFacts)
    program: ProgramFacts = field(default_factory=ProgramFacts)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> KnowledgeView:
        view = cls()
        try:
            view.club = ClubFacts.from_dict(_section(doc, "club"))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed 'club' knowledge section: {e}")
        try:
            view.program = ProgramFacts.from_dict(_section(doc, "leo_general"))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed 'leo_general' knowledge section: {e}")
        return view

    @property
    def org_phrases(self) -> list[str]:
        """Lower-cased identifying phrases for the organization."""
        phrases = [self.club.name, *self.club.aliases]
        return [p.lower() for p in phrases if p]
