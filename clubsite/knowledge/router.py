"""
Knowledge Router — local answer or generative backend, per question

The pipeline for one question:
  1. Load:     merge the requested (or default) knowledge documents
  2. Match:    run the IntentMatcher for a candidate local answer
  3. Decide:   is the local answer authoritative for this question?
  4. Delegate: otherwise ask the generative backend with the full
               knowledge embedded as context
  5. Degrade:  on backend failure fall back to the local answer or an
               apology

Authority test:
  high priority   club name, alias, or "this/your/our club", matched on
                  the normalized question as whole words
                  → local answer always wins
  medium priority join, board, contact, motto, application, projects,
                  members, activities, and not a generic "what is leo"
                  question → local wins if it is a real fact and longer
                  than min_local_answer_chars
  anything else   → delegate

answer() never raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Sequence

from .backend import GenerativeBackend
from .matcher import HINT, SELF_REFERENCE, IntentMatcher, is_generic, normalize, org_patterns
from .models import AnswerOrigin, AnswerResult, KnowledgeView, LocalAnswer, Question
from .store import KnowledgeStore

log = logging.getLogger("clubsite.router")

APOLOGY = f"Sorry, I had a problem reaching the assistant. {HINT}"
NO_LOCAL_ANSWER = f"I could not find an answer yet. {HINT}"

MEDIUM_PRIORITY = re.compile(
    r"\b(join|board|contact|motto|appl(y|ication)|projects?|members?|membership|activit(y|ies))\b"
)
GENERIC_PROGRAM = re.compile(
    r"\b(what\s+is|what\s+are|what's|whats|tell\s+me\s+about|explain|define)\b.*\bleos?\b"
)

SYSTEM_PROMPT = """\
You are the assistant on a Leo Club's website. Leo Clubs are youth service
clubs sponsored by Lions Clubs International. Answer in at most five short
sentences, in plain text, no markdown headings. Use the CLUB KNOWLEDGE JSON
supplied with each question as your primary source. Never invent names,
dates, emails, or links that are not in the knowledge.
"""

ORG_INSTRUCTIONS = (
    "The question is about this specific club. Answer from the club section "
    "of the knowledge first and only add general Leo information if it helps."
)
GENERIC_INSTRUCTIONS = (
    "The question is about Leo Clubs in general. Answer generically; mention "
    "this club only if the question clearly relates to it."
)


class KnowledgeRouter:
    def __init__(
        self,
        store: KnowledgeStore,
        matcher: IntentMatcher,
        backend: GenerativeBackend | None = None,
        default_context: Sequence[str] = ("data/club-knowledge.json",),
        min_local_answer_chars: int = 50,
    ):
        self.store = store
        self.matcher = matcher
        self.backend = backend
        self.default_context = tuple(default_context)
        self.min_local_answer_chars = min_local_answer_chars

    # ── Public API ──────────────────────────────────────────────

    def answer(self, question: Question) -> AnswerResult:
        try:
            knowledge = self.store.load(question.context_files or self.default_context)
        except Exception as e:
            log.error(f"Knowledge load failed: {e}")
            knowledge = {}

        view = KnowledgeView.from_document(knowledge)

        try:
            local = self.matcher.classify(question, view)
        except Exception as e:
            log.error(f"Intent matching failed: {e}")
            local = None

        if self.backend is None or self.is_authoritative(question.text, view, local):
            rule = local.rule if local else "none"
            log.info(f"Answered locally (rule={rule})")
            return AnswerResult(text=local.text if local else NO_LOCAL_ANSWER, origin=AnswerOrigin.LOCAL)

        org_specific = self.has_org_cue(question.text, view)
        try:
            text = self.backend.complete(SYSTEM_PROMPT, self.compose_prompt(question.text, knowledge, org_specific))
        except Exception as e:
            log.warning(f"Generative backend failed, degrading to local answer: {e}")
            if local is not None and local.rule != "fallback":
                return AnswerResult(text=local.text, origin=AnswerOrigin.LOCAL)
            return AnswerResult(text=APOLOGY, origin=AnswerOrigin.FALLBACK)

        return AnswerResult(text=text, origin=AnswerOrigin.GENERATED)

    def is_authoritative(self, text: str, view: KnowledgeView, local: LocalAnswer | None) -> bool:
        """Decide from the raw question whether the local answer stands."""
        if local is None:
            return False
        if self.has_org_cue(text, view):
            return True

        raw = (text or "").lower()
        if MEDIUM_PRIORITY.search(raw) and not GENERIC_PROGRAM.search(raw):
            return not is_generic(local.text) and len(local.text) > self.min_local_answer_chars
        return False

    def has_org_cue(self, text: str, view: KnowledgeView) -> bool:
        q = normalize(text)
        if SELF_REFERENCE.search(q):
            return True
        return any(p.search(q) for p in org_patterns(view, self.matcher.org_aliases))

    @staticmethod
    def compose_prompt(text: str, knowledge: dict, org_specific: bool) -> str:
        instructions = ORG_INSTRUCTIONS if org_specific else GENERIC_INSTRUCTIONS
        return (
            f"{instructions}\n\n"
            f"--- BEGIN CLUB KNOWLEDGE ---\n"
            f"{json.dumps(knowledge, indent=2, ensure_ascii=False)}\n"
            f"--- END CLUB KNOWLEDGE ---\n\n"
            f"Question: {text.strip()}"
        )
