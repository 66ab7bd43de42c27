"""Tag classification into priority, type and free-form labels"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional


class TagRole(Enum):
    PRIORITY = "priority"
    TYPE = "type"
    LABEL = "label"


PRIORITY_RE = re.compile(r'^@p([0-3])$', re.IGNORECASE)

PRIORITY_ALIASES = {
    '@critical': 'P0',
    '@blocker': 'P0',
    '@high': 'P1',
    '@medium': 'P2',
    '@low': 'P3',
}

TYPE_TAGS = {
    '@positive': 'Positive',
    '@negative': 'Negative',
}


@dataclass
class TagSummary:
    priority: str = ""
    type: str = ""
    labels: List[str] = field(default_factory=list)


def _priority_of(tag: str) -> Optional[str]:
    match = PRIORITY_RE.match(tag)
    if match:
        return f"P{match.group(1)}"
    return PRIORITY_ALIASES.get(tag.lower())


def classify_tag(tag: str) -> TagRole:
    """First match wins: priority, then type, then label"""
    if _priority_of(tag):
        return TagRole.PRIORITY
    if tag.lower() in TYPE_TAGS:
        return TagRole.TYPE
    return TagRole.LABEL


def unique_tags(tags: Iterable[str]) -> List[str]:
    """Drop repeated tags, keeping first occurrence order"""
    seen = set()
    result = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def resolve_priority(tags: Iterable[str]) -> str:
    """First priority-like tag in scan order, as P0..P3"""
    for tag in unique_tags(tags):
        priority = _priority_of(tag)
        if priority:
            return priority
    return ""


def resolve_type(tags: Iterable[str]) -> str:
    """First @positive/@negative tag in scan order"""
    for tag in unique_tags(tags):
        label = TYPE_TAGS.get(tag.lower())
        if label:
            return label
    return ""


def free_labels(tags: Iterable[str]) -> List[str]:
    """Label tags without their '@', casing kept, repeats dropped"""
    return [tag[1:] for tag in unique_tags(tags) if classify_tag(tag) is TagRole.LABEL]


def summarize_tags(tags: Iterable[str]) -> TagSummary:
    tags = list(tags)
    return TagSummary(
        priority=resolve_priority(tags),
        type=resolve_type(tags),
        labels=free_labels(tags),
    )
