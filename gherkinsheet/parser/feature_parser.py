"""
Feature parser with scope tracking
Parses Gherkin feature files into Scenario records carrying their effective
(Feature + Rule + own) tags and background steps
"""

from pathlib import Path
from typing import List, Dict, Optional
from dataclasses import dataclass, field
from enum import Enum

from gherkinsheet.parser.line_classifier import (
    HEADER_KINDS,
    LineKind,
    classify,
    doc_string_fence,
    header_title,
    leading_indent,
    parse_step_line,
    split_table_row,
    split_tags,
    table_row_text,
)
from gherkinsheet.utils.logger import setup_logger

logger = setup_logger(__name__)

# Headers that end a Background or Scenario body; Examples is handled inside the body
BLOCK_END_KINDS = HEADER_KINDS - {LineKind.EXAMPLES}


class ScenarioType(Enum):
    SCENARIO = "Scenario"
    OUTLINE = "Scenario Outline"


class ScopeState(Enum):
    TOP = "top"
    IN_FEATURE = "in_feature"
    IN_RULE = "in_rule"


@dataclass
class Step:
    keyword: str
    keyword_base: str
    text: str
    line_number: int = 0
    data_table: Optional[List[List[str]]] = None
    doc_string: Optional[str] = None


@dataclass
class ExamplesBlock:
    headers: List[str]
    rows: List[Dict[str, str]]
    tags: List[str] = field(default_factory=list)
    line_number: int = 0


@dataclass
class Scenario:
    name: str
    type: ScenarioType
    file: str = ""
    feature: str = ""
    feature_tags: List[str] = field(default_factory=list)
    rule_name: str = ""
    rule_tags: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    background: List[Step] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)
    examples: List[ExamplesBlock] = field(default_factory=list)
    line_number: int = 0
    # set on concrete scenarios generated from an outline
    example_row: Optional[Dict[str, str]] = None

    @property
    def is_outline(self) -> bool:
        return self.type is ScenarioType.OUTLINE

    @property
    def effective_tags(self) -> List[str]:
        """Feature tags, then Rule tags, then own tags (duplicates kept)"""
        return self.feature_tags + self.rule_tags + self.tags

    @property
    def example_rows(self) -> List[Dict[str, str]]:
        """Data rows of every Examples block, in source order"""
        return [row for block in self.examples for row in block.rows]


@dataclass
class Feature:
    name: str
    scenarios: List[Scenario]
    tags: List[str]
    background: List[Step] = field(default_factory=list)
    file_path: str = ""


class DocumentParser:
    """Single forward pass over one document.

    Owns the line cursor and the scope fields (feature and rule tags and
    backgrounds, pending tags). Never raises on content: anything it does not
    recognise is skipped.
    """

    def __init__(self, text: str, filename: str = ""):
        self.lines = text.lstrip('\ufeff').replace('\r\n', '\n').replace('\r', '\n').split('\n')
        self.filename = filename
        self.index = 0
        self.state = ScopeState.TOP

        self.feature_name = ""
        self.feature_tags: List[str] = []
        self.feature_background: List[Step] = []
        self.rule_name = ""
        self.rule_tags: List[str] = []
        self.rule_background: List[Step] = []
        self.pending_tags: List[str] = []

        self.scenarios: List[Scenario] = []

    # ------------------------------------------------------------------
    #  top level
    # ------------------------------------------------------------------
    def parse(self) -> Feature:
        while self.index < len(self.lines):
            line = self.lines[self.index]
            kind = classify(line)

            if kind is LineKind.TAG:
                self.pending_tags.extend(split_tags(line))
                self.index += 1
            elif kind is LineKind.FEATURE:
                self._enter_feature(line)
            elif kind is LineKind.RULE:
                self._enter_rule(line)
            elif kind is LineKind.BACKGROUND:
                self._parse_background()
            elif kind in (LineKind.SCENARIO, LineKind.SCENARIO_OUTLINE):
                self._parse_scenario(kind)
            elif kind is LineKind.DOC_STRING:
                # stray doc-string outside any step: skip it whole
                self._read_doc_string()
            else:
                self.index += 1

        logger.debug(f"Parsed {len(self.scenarios)} scenarios from {self.filename or '<text>'}")
        return Feature(
            name=self.feature_name,
            scenarios=self.scenarios,
            tags=list(self.feature_tags),
            background=list(self.feature_background),
            file_path=self.filename,
        )

    def _take_pending_tags(self) -> List[str]:
        tags = self.pending_tags
        self.pending_tags = []
        return tags

    def _enter_feature(self, line: str) -> None:
        self.state = ScopeState.IN_FEATURE
        self.feature_name = header_title(line)
        self.feature_tags = self._take_pending_tags()
        self.feature_background = []
        self.rule_name = ""
        self.rule_tags = []
        self.rule_background = []
        self.index += 1

    def _enter_rule(self, line: str) -> None:
        self.state = ScopeState.IN_RULE
        self.rule_name = header_title(line)
        self.rule_tags = self._take_pending_tags()
        self.rule_background = []
        self.index += 1

    # ------------------------------------------------------------------
    #  Background
    # ------------------------------------------------------------------
    def _parse_background(self) -> None:
        dropped = self._take_pending_tags()
        if dropped:
            logger.debug(f"Tags {dropped} before Background at line {self.index + 1} ignored")

        self.index += 1
        steps: List[Step] = []
        last_base = None

        while self.index < len(self.lines):
            line = self.lines[self.index]
            kind = classify(line)

            if kind in HEADER_KINDS:
                break
            if kind is LineKind.TAG:
                # tags belong to the next declarative entity, never to the background
                self._check_dangling_tags()
                break

            if kind is LineKind.STEP:
                last_base = self._add_step(steps, line, last_base)
            elif kind is LineKind.TABLE_ROW:
                self._attach_table_row(steps, line)
            elif kind is LineKind.DOC_STRING:
                self._attach_doc_string(steps)
                continue
            self.index += 1

        if self.state is ScopeState.IN_RULE:
            self.rule_background = steps
        else:
            self.feature_background = steps

    def _check_dangling_tags(self) -> None:
        """Warn when tags closing a Background are not followed by a header"""
        position = self.index
        while position < len(self.lines) and classify(self.lines[position]) in (
                LineKind.TAG, LineKind.BLANK, LineKind.COMMENT):
            position += 1

        if position < len(self.lines) and classify(self.lines[position]) in HEADER_KINDS:
            logger.debug(f"Background scan stopped at tag line {self.index + 1}")
        else:
            logger.warning(
                f"{self.filename or '<text>'}:{self.index + 1}: tag line after Background steps "
                f"is not followed by a header; the tags carry over to the next header"
            )

    # ------------------------------------------------------------------
    #  Scenario / Scenario Outline
    # ------------------------------------------------------------------
    def _parse_scenario(self, kind: LineKind) -> None:
        header_line = self.index + 1
        scenario = Scenario(
            name=header_title(self.lines[self.index]),
            type=ScenarioType.OUTLINE if kind is LineKind.SCENARIO_OUTLINE else ScenarioType.SCENARIO,
            file=self.filename,
            feature=self.feature_name,
            feature_tags=list(self.feature_tags),
            rule_name=self.rule_name,
            rule_tags=list(self.rule_tags),
            tags=self._take_pending_tags(),
            background=self.feature_background + self.rule_background,
            line_number=header_line,
        )
        self.index += 1

        last_base = None
        example_tags: List[str] = []

        while self.index < len(self.lines):
            line = self.lines[self.index]
            kind = classify(line)

            if kind in BLOCK_END_KINDS:
                break
            if kind is LineKind.TAG:
                if not self._tags_lead_to_examples():
                    break
                example_tags.extend(split_tags(line))
            elif kind is LineKind.EXAMPLES:
                block = self._parse_examples(example_tags)
                example_tags = []
                if block and scenario.is_outline:
                    scenario.examples.append(block)
                elif block:
                    logger.debug(f"Examples under plain Scenario at line {header_line} ignored")
                continue
            elif kind is LineKind.STEP:
                last_base = self._add_step(scenario.steps, line, last_base)
            elif kind is LineKind.TABLE_ROW:
                self._attach_table_row(scenario.steps, line)
            elif kind is LineKind.DOC_STRING:
                self._attach_doc_string(scenario.steps)
                continue
            self.index += 1

        self.scenarios.append(scenario)

    def _tags_lead_to_examples(self) -> bool:
        """True when the tag run at the cursor is followed by an Examples header"""
        position = self.index
        while position < len(self.lines):
            kind = classify(self.lines[position])
            if kind not in (LineKind.TAG, LineKind.BLANK, LineKind.COMMENT):
                return kind is LineKind.EXAMPLES
            position += 1
        return False

    def _parse_examples(self, tags: List[str]) -> Optional[ExamplesBlock]:
        header_line = self.index + 1
        self.index += 1
        rows: List[List[str]] = []

        while self.index < len(self.lines):
            kind = classify(self.lines[self.index])
            if kind in (LineKind.BLANK, LineKind.COMMENT):
                self.index += 1
                continue
            if kind is not LineKind.TABLE_ROW:
                break
            rows.append(split_table_row(self.lines[self.index]))
            self.index += 1

        if len(rows) < 2:
            logger.debug(f"Examples at line {header_line} has no data rows; discarded")
            return None

        headers = rows[0]
        data = []
        for cells in rows[1:]:
            data.append({name: cells[i] if i < len(cells) else "" for i, name in enumerate(headers)})
        return ExamplesBlock(headers=headers, rows=data, tags=list(tags), line_number=header_line)

    # ------------------------------------------------------------------
    #  steps and their continuations
    # ------------------------------------------------------------------
    def _add_step(self, steps: List[Step], line: str, last_base: Optional[str]) -> str:
        keyword, base, text = parse_step_line(line, last_base)
        steps.append(Step(keyword=keyword, keyword_base=base, text=text, line_number=self.index + 1))
        return base

    def _attach_table_row(self, steps: List[Step], line: str) -> None:
        if not steps:
            return
        step = steps[-1]
        if step.data_table is None:
            step.data_table = []
        step.data_table.append(split_table_row(line))
        step.text += '\n' + table_row_text(line)

    def _read_doc_string(self) -> List[str]:
        """Consume a doc-string block at the cursor and return its raw lines, fences included"""
        opening = self.lines[self.index]
        fence = doc_string_fence(opening)
        block = [opening]
        self.index += 1

        while self.index < len(self.lines):
            line = self.lines[self.index]
            block.append(line)
            self.index += 1
            if line.strip().startswith(fence):
                break
        return block

    def _attach_doc_string(self, steps: List[Step]) -> None:
        block = self._read_doc_string()
        if not steps:
            return

        indent = len(leading_indent(block[0]))
        content = [_dedent(line, indent) for line in block[1:]]
        closed = len(block) > 1 and block[-1].strip().startswith(doc_string_fence(block[0]))
        if closed:
            content = content[:-1]

        step = steps[-1]
        step.doc_string = '\n'.join(content)
        fence = block[0].strip()
        closing = doc_string_fence(block[0]) if closed else ''
        step.text += '\n' + '\n'.join([fence] + content + ([closing] if closing else []))


def _dedent(line: str, width: int) -> str:
    """Remove up to width leading spaces from a doc-string content line"""
    prefix = leading_indent(line)
    return line[min(len(prefix), width):]


class FeatureParser:
    """Parse Gherkin feature files into scope-resolved scenarios"""

    def __init__(self, features_dir: str = "features"):
        self.features_dir = Path(features_dir)

    def parse_text(self, text: str, filename: str = "") -> Feature:
        """Parse one feature document held in memory"""
        return DocumentParser(text, filename).parse()

    def parse_file(self, file_path: Path) -> Feature:
        """Parse a single feature file (read fully as UTF-8, BOM tolerated)"""
        file_path = Path(file_path)
        text = file_path.read_text(encoding='utf-8-sig')
        return self.parse_text(text, str(file_path))

    def parse_features(self, tags: List[str] = None) -> List[Feature]:
        """Parse all feature files in directory"""
        features = []

        feature_files = sorted(self.features_dir.glob("**/*.feature"))
        for feature_file in feature_files:
            feature = self.parse_file(feature_file)

            # Filter by tags if provided
            if tags:
                wanted = {tag.lower() for tag in tags}
                feature.scenarios = [
                    scenario for scenario in feature.scenarios
                    if any(tag.lower() in wanted for tag in scenario.effective_tags)
                ]
                if not feature.scenarios:
                    continue
            features.append(feature)

        logger.info(f"Parsed {len(features)} feature files from {self.features_dir}")
        return features
