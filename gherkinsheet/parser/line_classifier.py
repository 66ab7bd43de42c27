"""
Line classifier for Gherkin text
Classifies a single raw line into a LineKind; shared by the parser and the expander
"""

import re
from enum import Enum
from typing import List, Optional, Tuple


class LineKind(Enum):
    TAG = "tag"
    FEATURE = "feature"
    RULE = "rule"
    BACKGROUND = "background"
    SCENARIO = "scenario"
    SCENARIO_OUTLINE = "scenario_outline"
    EXAMPLES = "examples"
    COMMENT = "comment"
    BLANK = "blank"
    TABLE_ROW = "table_row"
    DOC_STRING = "doc_string"
    STEP = "step"
    OTHER = "other"


HEADER_KINDS = frozenset({
    LineKind.FEATURE,
    LineKind.RULE,
    LineKind.BACKGROUND,
    LineKind.SCENARIO,
    LineKind.SCENARIO_OUTLINE,
    LineKind.EXAMPLES,
})

STEP_KEYWORDS = ('Given', 'When', 'Then', 'And', 'But')
DOC_STRING_FENCES = ('"""', "'''")

TAG_RE = re.compile(r'^\s*@\S')
FEATURE_RE = re.compile(r'^\s*Feature:', re.IGNORECASE)
RULE_RE = re.compile(r'^\s*Rule:', re.IGNORECASE)
BACKGROUND_RE = re.compile(r'^\s*Background:', re.IGNORECASE)
SCENARIO_RE = re.compile(r'^\s*(?:Scenario|Example):', re.IGNORECASE)
SCENARIO_OUTLINE_RE = re.compile(r'^\s*Scenario (?:Outline|Template):', re.IGNORECASE)
EXAMPLES_RE = re.compile(r"^\s*Examples:", re.IGNORECASE)
COMMENT_RE = re.compile(r'^\s*#')
TABLE_ROW_RE = re.compile(r'^\s*\|.*\|\s*$')
STEP_RE = re.compile(r'^\s*(Given|When|Then|And|But)\b\s*(.*)$')
HEADER_TITLE_RE = re.compile(
    r'^\s*(?:Feature|Rule|Background|Scenario (?:Outline|Template)|Scenario|Example|Examples):\s*',
    re.IGNORECASE,
)
PLACEHOLDER_RE = re.compile(r'<([^<>]+)>')
CELL_SEPARATOR_RE = re.compile(r'(?<!\\)\|')


def strip_comment(line: str) -> str:
    """Drop a trailing same-line comment (everything from the first ' #')"""
    idx = line.find(' #')
    return line[:idx] if idx >= 0 else line


def doc_string_fence(line: str) -> Optional[str]:
    """Return the fence that opens or closes a doc-string on this line, if any"""
    stripped = line.strip()
    for fence in DOC_STRING_FENCES:
        if stripped.startswith(fence):
            return fence
    return None


def classify(line: str) -> LineKind:
    """Classify one raw line. Not applicable to lines inside a doc-string."""
    if not line.strip():
        return LineKind.BLANK
    if COMMENT_RE.match(line):
        return LineKind.COMMENT
    if doc_string_fence(line):
        return LineKind.DOC_STRING
    if TABLE_ROW_RE.match(line):
        return LineKind.TABLE_ROW

    text = strip_comment(line)
    if not text.strip():
        return LineKind.BLANK
    if TAG_RE.match(text):
        return LineKind.TAG
    if FEATURE_RE.match(text):
        return LineKind.FEATURE
    if RULE_RE.match(text):
        return LineKind.RULE
    if BACKGROUND_RE.match(text):
        return LineKind.BACKGROUND
    if SCENARIO_OUTLINE_RE.match(text):
        return LineKind.SCENARIO_OUTLINE
    if SCENARIO_RE.match(text):
        return LineKind.SCENARIO
    if EXAMPLES_RE.match(text):
        return LineKind.EXAMPLES
    if TABLE_ROW_RE.match(text):
        return LineKind.TABLE_ROW
    if STEP_RE.match(text):
        return LineKind.STEP
    return LineKind.OTHER


def is_tag_line(line: str) -> bool:
    return classify(line) is LineKind.TAG


def is_feature_line(line: str) -> bool:
    return classify(line) is LineKind.FEATURE


def is_rule_line(line: str) -> bool:
    return classify(line) is LineKind.RULE


def is_background_line(line: str) -> bool:
    return classify(line) is LineKind.BACKGROUND


def is_scenario_line(line: str) -> bool:
    return classify(line) is LineKind.SCENARIO


def is_scenario_outline_line(line: str) -> bool:
    return classify(line) is LineKind.SCENARIO_OUTLINE


def is_examples_line(line: str) -> bool:
    return classify(line) is LineKind.EXAMPLES


def is_comment_line(line: str) -> bool:
    return classify(line) is LineKind.COMMENT


def is_blank(line: str) -> bool:
    return not line.strip()


def is_table_row(line: str) -> bool:
    return classify(line) is LineKind.TABLE_ROW


def is_step_line(line: str) -> bool:
    return classify(line) is LineKind.STEP


def is_header_line(line: str) -> bool:
    """Feature, Rule, Background, Scenario, Scenario Outline or Examples header"""
    return classify(line) in HEADER_KINDS


def header_title(line: str) -> str:
    """Text following the header keyword and its colon"""
    return HEADER_TITLE_RE.sub('', strip_comment(line), count=1).strip()


def split_tags(line: str) -> List[str]:
    """Tag tokens on a tag line, in order"""
    return [token for token in strip_comment(line).split() if token.startswith('@')]


def table_row_text(line: str) -> str:
    """The pipe-delimited part of a table row line, trailing comment removed"""
    text = line if TABLE_ROW_RE.match(line) else strip_comment(line)
    return text.strip()


def split_table_row(line: str) -> List[str]:
    """Trimmed cells of a pipe-delimited row; '\\|' is a literal pipe inside a cell"""
    text = table_row_text(line)
    if text.startswith('|'):
        text = text[1:]
    if text.endswith('|') and not text.endswith('\\|'):
        text = text[:-1]
    return [cell.strip().replace('\\|', '|') for cell in CELL_SEPARATOR_RE.split(text)]


def parse_step_line(line: str, last_base: Optional[str] = None) -> Tuple[str, str, str]:
    """Split a step line into (keyword, base keyword, text).

    And/But take the base keyword of the previous step, or Given when they
    open a block.
    """
    text = strip_comment(line)
    match = STEP_RE.match(text)
    if not match:
        return '', last_base or 'Given', text.strip()

    keyword = match.group(1).capitalize()
    if keyword in ('And', 'But'):
        base = last_base or 'Given'
    else:
        base = keyword
    return keyword, base, match.group(2).strip()


def leading_indent(line: str) -> str:
    return line[:len(line) - len(line.lstrip())]
