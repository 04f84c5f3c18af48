"""
Offline heuristics

Deterministic keyword/rule-based analyzers used whenever the language model
is unconfigured, unavailable or returns something unusable. All matching is
case-insensitive substring matching over the ticket title and description.
"""
from typing import List, Sequence, Tuple

from helpdesk.models.schemas import Priority, RosterEntry, TicketCategory


# Checked in order; first group with a hit wins
CATEGORY_KEYWORDS: Tuple[Tuple[TicketCategory, Tuple[str, ...]], ...] = (
    (TicketCategory.ACCOUNT_PROBLEM, ("login", "password", "access", "account")),
    (TicketCategory.BILLING_QUESTION, ("bill", "payment", "invoice", "charge")),
    (TicketCategory.BUG_REPORT, ("crash", "error", "bug", "broken")),
    (TicketCategory.FEATURE_REQUEST, ("feature", "enhancement", "request", "improve")),
    (TicketCategory.TECHNICAL_ISSUE, ("technical", "system", "server", "database")),
)

PRIORITY_KEYWORDS: Tuple[Tuple[Priority, Tuple[str, ...]], ...] = (
    (Priority.CRITICAL, ("down", "critical", "system failure", "can't work", "production", "all users")),
    (Priority.HIGH, ("urgent", "asap", "blocking", "frustrated", "angry", "!!!")),
    (Priority.LOW, ("when possible", "nice to have", "suggestion", "minor")),
)

# Every matching group applies
SENTIMENT_WEIGHTS: Tuple[Tuple[Tuple[str, ...], float], ...] = (
    (("angry", "furious"), -0.3),
    (("frustrated", "annoyed"), -0.2),
    (("disappointed", "upset"), -0.15),
    (("terrible", "awful"), -0.2),
    (("unacceptable", "ridiculous"), -0.25),
    (("thank", "appreciate"), 0.2),
    (("great", "excellent"), 0.2),
    (("pleased", "satisfied"), 0.15),
    (("happy", "glad"), 0.1),
    # Urgency reads as negative
    (("urgent", "asap", "!!!"), -0.1),
    (("immediately", "critical"), -0.15),
)

TRACKED_KEYWORDS: Tuple[str, ...] = (
    "login", "password", "account", "access", "billing", "payment", "invoice",
    "refund", "error", "crash", "bug", "timeout", "slow", "server", "database",
    "api", "email", "integration", "feature", "security",
)

URGENCY_INDICATORS: Tuple[str, ...] = (
    "urgent", "asap", "immediately", "critical", "down", "blocking",
    "production", "all users", "deadline", "can't work", "!!!",
)


def _content(*parts: str) -> str:
    return " ".join(part or "" for part in parts).lower()


def _contains_any(content: str, keywords: Sequence[str]) -> bool:
    return any(keyword in content for keyword in keywords)


def categorize_offline(title: str, description: str) -> TicketCategory:
    """Pick a category from the first keyword group found in the text"""
    content = _content(title, description)
    for category, keywords in CATEGORY_KEYWORDS:
        if _contains_any(content, keywords):
            return category
    return TicketCategory.GENERAL_INQUIRY


def priority_offline(title: str, description: str) -> Priority:
    """Critical, then High, then Low keyword groups; Medium otherwise"""
    content = _content(title, description)
    for priority, keywords in PRIORITY_KEYWORDS:
        if _contains_any(content, keywords):
            return priority
    return Priority.MEDIUM


def sentiment_offline(text: str) -> float:
    """
    Score sentiment in [0.0, 1.0], starting from a neutral 0.5.

    Each weight group contributes once when any of its words appear.
    """
    content = _content(text)
    score = 0.5
    for keywords, weight in SENTIMENT_WEIGHTS:
        if _contains_any(content, keywords):
            score += weight
    return round(max(0.0, min(1.0, score)), 4)


def sentiment_label(score: float) -> str:
    if score < 0.3:
        return "Negative"
    if score < 0.7:
        return "Neutral"
    return "Positive"


def suggest_agent_offline(roster: Sequence[RosterEntry]) -> RosterEntry:
    """
    Return the agent with the lowest in-progress workload.

    Ties go to the earliest entry in the roster.

    Raises:
        ValueError: If the roster is empty
    """
    if not roster:
        raise ValueError("Cannot suggest an agent from an empty roster")
    return min(roster, key=lambda entry: entry.workload)


def extract_keywords(title: str, description: str) -> List[str]:
    content = _content(title, description)
    return [keyword for keyword in TRACKED_KEYWORDS if keyword in content]


def extract_urgency_indicators(title: str, description: str) -> List[str]:
    content = _content(title, description)
    return [indicator for indicator in URGENCY_INDICATORS if indicator in content]


def draft_response_offline(is_internal: bool = False) -> str:
    """Fixed reply template used when no model draft is available"""
    if is_internal:
        return (
            "Internal note: This ticket requires further investigation. Check system logs "
            "and user account status. Consider escalating if the issue persists after basic "
            "troubleshooting."
        )
    return (
        "Thank you for contacting us. I understand your concern and I'm here to help resolve "
        "this issue for you. Let me look into this right away and get back to you with a "
        "solution. I'll update you within the next hour on our progress."
    )
