"""Knowledge Router — rule-based club Q&A with generative fallback."""
from .backend import AnthropicBackend, GenerativeBackend
from .matcher import IntentMatcher, Rule, normalize
from .models import AnswerOrigin, AnswerResult, KnowledgeView, LocalAnswer, Question
from .router import KnowledgeRouter
from .store import KnowledgeStore, deep_merge

__all__ = [
    "AnthropicBackend",
    "GenerativeBackend",
    "IntentMatcher",
    "Rule",
    "normalize",
    "AnswerOrigin",
    "AnswerResult",
    "KnowledgeView",
    "LocalAnswer",
    "Question",
    "KnowledgeRouter",
    "KnowledgeStore",
    "deep_merge",
]
