"""
Intent Matcher — rule-table question answering over local knowledge

The question is normalized (lower-case, non [a-z0-9 ] characters become
spaces, whitespace collapsed) and run through an ordered table of
(name, predicate, handler) rules. The first predicate that holds wins;
there is no scoring and no backtracking.

Table order:
  1. direct_entity   the question names the club, or asks about "this club"
  2. definition      "what is leo" style questions without the club's name
  3. attribute rules age, benefits, activities, join, contact, board,
                     projects, motto, mobile_app
  4. fallback        definition + hint, or not-found + hint

Handlers never fail: when the knowledge lacks a field they answer with a
fixed generic sentence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from .models import KnowledgeView, LocalAnswer, Question

HINT = 'Try asking: "How to join?", "Recent projects?", "Board for this year?", "Contact?"'
NOT_FOUND_PREFIX = "I don't have that answer yet for"
GENERIC_MARKERS = ("Try asking:", NOT_FOUND_PREFIX)

DEFAULT_DEFINITION = (
    "LEO stands for Leadership, Experience, Opportunity: youth service clubs "
    "under Lions Clubs International."
)
DEFAULT_ORG_SUMMARY = (
    "We are a Leo club focused on community service, leadership, and fellowship."
)

SELF_REFERENCE = re.compile(r"\b(this|your|our) club\b")
ABOUT_CUE = re.compile(r"\b(about|tell me|who are|describe)\b")
PROGRAM_WORD = re.compile(r"\bleos?\b")


def normalize(text: str) -> str:
    text = (text or "").lower()
    text = re.sub(r"[^a-z0-9\s]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def is_generic(answer: str) -> bool:
    """True when an answer is a hint/not-found reply rather than a fact."""
    return any(marker in answer for marker in GENERIC_MARKERS)


def _pattern(*terms: str) -> re.Pattern:
    return re.compile("|".join(terms))


# ── Topic keyword sets ──────────────────────────────────────────

AGE = _pattern(r"\bages?\b", r"\bhow old\b")
BENEFITS = _pattern(r"\bbenefit", r"\bwhy join\b")
ACTIVITIES = _pattern(r"\bactivit", r"\bevents?\b")
JOIN = _pattern(r"\bjoin", r"\bapply\b", r"\bapplication", r"\bmembership", r"\bbecome (a )?member", r"\bsign up\b")
CONTACT = _pattern(r"\bcontact", r"\bemail", r"\breach (you|us|out)\b")
BOARD = _pattern(r"\bboard\b", r"\bcommittee", r"\bexco\b", r"\boffice", r"\bpresident")
PROJECTS = _pattern(r"\bprojects?\b", r"\brecent\b", r"\binitiatives?\b")
MOTTO = _pattern(r"\bmotto\b")
MOBILE_APP = _pattern(r"\bapps?\b", r"\bmobile\b")

ATTRIBUTE_TOPICS = (AGE, BENEFITS, ACTIVITIES, JOIN, CONTACT, BOARD, PROJECTS, MOTTO, MOBILE_APP)


# ── Match context ───────────────────────────────────────────────

@dataclass(frozen=True)
class MatchContext:
    q: str
    residual: str  # q with the club's identifying phrases removed
    knowledge: KnowledgeView
    names_org: bool
    self_ref: bool
    about: bool
    mentions_program: bool

    @property
    def has_topic(self) -> bool:
        return any(t.search(self.residual) for t in ATTRIBUTE_TOPICS)


def org_patterns(knowledge: KnowledgeView, extra_phrases: Sequence[str] = ()) -> list[re.Pattern]:
    """Word-bounded patterns for the club's name and aliases, in normalized form."""
    phrases = {normalize(p) for p in [*knowledge.org_phrases, *extra_phrases]}
    return [re.compile(rf"\b{re.escape(p)}\b") for p in phrases if p]


def build_context(text: str, knowledge: KnowledgeView, extra_phrases: Sequence[str] = ()) -> MatchContext:
    q = normalize(text)
    residual = q
    names_org = False
    for pattern in org_patterns(knowledge, extra_phrases):
        if pattern.search(q):
            names_org = True
            residual = pattern.sub(" ", residual)
    residual = re.sub(r"\s+", " ", residual).strip()

    return MatchContext(
        q=q,
        residual=residual,
        knowledge=knowledge,
        names_org=names_org,
        self_ref=bool(SELF_REFERENCE.search(q)),
        about=bool(ABOUT_CUE.search(q)),
        mentions_program=bool(PROGRAM_WORD.search(residual)),
    )


# ── Handlers ────────────────────────────────────────────────────

def _definition(ctx: MatchContext) -> str:
    return ctx.knowledge.program.what_is_leo or DEFAULT_DEFINITION


def _org_summary(ctx: MatchContext) -> str:
    club = ctx.knowledge.club
    if not (club.name or club.description or club.motto):
        return DEFAULT_ORG_SUMMARY
    intro = club.name or "Our club"
    parts = [f"{intro}: {club.description}" if club.description else f"{intro}."]
    if club.motto:
        parts.append(f"Motto: {club.motto}.")
    return " ".join(parts)


def _definition_answer(ctx: MatchContext) -> str:
    # Club facts lead when the question points at "this/your/our club".
    if ctx.self_ref:
        return f"{_org_summary(ctx)} {_definition(ctx)}"
    return _definition(ctx)


def _age(ctx: MatchContext) -> str:
    return ctx.knowledge.program.age_range or (
        "Leo Clubs typically serve youth and young adults; "
        "the exact range varies by club and district."
    )


def _benefits(ctx: MatchContext) -> str:
    return ctx.knowledge.program.benefits or (
        "Benefits include leadership development, teamwork, networking, and community impact."
    )


def _activities(ctx: MatchContext) -> str:
    return ctx.knowledge.program.activities or (
        "Typical activities include community service, leadership training, and fundraising projects."
    )


def _join(ctx: MatchContext) -> str:
    join = ctx.knowledge.club.join
    how = join.how or "Complete the application and attend an orientation (if applicable)."
    return f"{how} {join.form_url}" if join.form_url else how


def _contact(ctx: MatchContext) -> str:
    contact = ctx.knowledge.club.contact
    parts = []
    if contact.email:
        parts.append(f"Email: {contact.email}")
    for network, handle in contact.social.items():
        parts.append(f"{network[:1].upper()}{network[1:]}: {handle}")
    return " · ".join(parts) if parts else "Please reach out via our social channels."


def _board(ctx: MatchContext) -> str:
    board = ctx.knowledge.club.board
    year = f" ({board.year})" if board.year else ""
    note = board.note or "Board details will be published on the Board page once finalized."
    return f"Board{year}: {note}"


def _projects(ctx: MatchContext) -> str:
    projects = ctx.knowledge.club.projects[:3]
    if not projects:
        return "We regularly run service and leadership projects; check the Projects page for updates."
    lines = [
        f"• {p.title} - {p.description}" if p.description else f"• {p.title}"
        for p in projects
    ]
    return "Recent projects:\n" + "\n".join(lines)


def _motto(ctx: MatchContext) -> str:
    return ctx.knowledge.club.motto or "Born to Serve"


def _mobile_app(ctx: MatchContext) -> str:
    return ctx.knowledge.club.mobile_app or "Our mobile app is coming soon. Watch the Mobile App page for updates."


def _fallback(ctx: MatchContext) -> str:
    if ctx.mentions_program:
        return f"{_definition(ctx)}\n{HINT}"
    name = ctx.knowledge.club.name or "our club"
    return f"{NOT_FOUND_PREFIX} {name}. {HINT}"


# ── Predicates ──────────────────────────────────────────────────

def _names_entity(ctx: MatchContext) -> bool:
    # A named club plus an attribute topic (and no about cue) is routed to
    # that attribute's rule instead of the club summary.
    if ctx.names_org and (ctx.about or not ctx.has_topic):
        return True
    return ctx.self_ref and ctx.about


def _asks_definition(ctx: MatchContext) -> bool:
    if ctx.names_org:
        return False
    words = ctx.q.split()
    return ("what" in words and ctx.mentions_program) or "leo club" in ctx.residual


def _topic(pattern: re.Pattern) -> Callable[[MatchContext], bool]:
    return lambda ctx: bool(pattern.search(ctx.residual))


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[MatchContext], bool]
    handler: Callable[[MatchContext], str]


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule("direct_entity", _names_entity, _org_summary),
    Rule("definition", _asks_definition, _definition_answer),
    Rule("age", _topic(AGE), _age),
    Rule("benefits", _topic(BENEFITS), _benefits),
    Rule("activities", _topic(ACTIVITIES), _activities),
    Rule("join", _topic(JOIN), _join),
    Rule("contact", _topic(CONTACT), _contact),
    Rule("board", _topic(BOARD), _board),
    Rule("projects", _topic(PROJECTS), _projects),
    Rule("motto", _topic(MOTTO), _motto),
    Rule("mobile_app", _topic(MOBILE_APP), _mobile_app),
    Rule("fallback", lambda ctx: True, _fallback),
)


class IntentMatcher:
    """Evaluates the rule table, first match wins."""

    def __init__(self, rules: Sequence[Rule] = DEFAULT_RULES, org_aliases: Sequence[str] = ()):
        self.rules = tuple(rules)
        self.org_aliases = tuple(org_aliases)

    def classify(self, question: Question | str, knowledge: Mapping[str, Any] | KnowledgeView) -> LocalAnswer | None:
        text = question.text if isinstance(question, Question) else question
        view = knowledge if isinstance(knowledge, KnowledgeView) else KnowledgeView.from_document(knowledge)
        ctx = build_context(text, view, self.org_aliases)

        for rule in self.rules:
            if rule.predicate(ctx):
                return LocalAnswer(text=rule.handler(ctx), rule=rule.name)
        return None
