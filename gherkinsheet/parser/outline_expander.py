"""
Scenario Outline expander
Expands Scenario Outline + Examples into concrete Scenarios, either as text
(indentation and tag lines preserved) or as parsed Scenario records
"""

import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from gherkinsheet.parser.feature_parser import Scenario, ScenarioType, Step
from gherkinsheet.parser.line_classifier import (
    PLACEHOLDER_RE,
    LineKind,
    classify,
    doc_string_fence,
    is_blank,
    leading_indent,
    split_table_row,
)
from gherkinsheet.utils.logger import setup_logger

logger = setup_logger(__name__)

OUTLINE_PREFIX_RE = re.compile(r'^\s*Scenario (?:Outline|Template):\s*', re.IGNORECASE)

# Lines that end a scenario block in the raw text
BLOCK_BOUNDARY_KINDS = frozenset({
    LineKind.FEATURE,
    LineKind.RULE,
    LineKind.BACKGROUND,
    LineKind.SCENARIO,
    LineKind.SCENARIO_OUTLINE,
})


@dataclass
class RawExamples:
    """One Examples block as it appears under an outline"""
    tag_lines: List[str] = field(default_factory=list)
    table_lines: List[str] = field(default_factory=list)

    def data_rows(self) -> List[Dict[str, str]]:
        rows = [split_table_row(line) for line in self.table_lines if classify(line) is LineKind.TABLE_ROW]
        if len(rows) < 2:
            return []
        headers = rows[0]
        return [
            {name: cells[i] if i < len(cells) else "" for i, name in enumerate(headers)}
            for cells in rows[1:]
        ]


def substitute_placeholders(text: str, row: Optional[Dict[str, str]]) -> str:
    """Replace <name> with the row value; unknown names stay as written"""
    if not row:
        return text

    def _replace(match):
        name = match.group(1).strip()
        return row[name] if name in row else match.group(0)

    return PLACEHOLDER_RE.sub(_replace, text)


def trim_blank_edges(lines: List[str]) -> List[str]:
    """Drop leading and trailing blank lines, keep interior ones"""
    start, end = 0, len(lines)
    while start < end and is_blank(lines[start]):
        start += 1
    while end > start and is_blank(lines[end - 1]):
        end -= 1
    return lines[start:end]


def ensure_single_trailing_blank(lines: List[str]) -> None:
    """Collapse trailing blank lines of lines to exactly one"""
    while lines and is_blank(lines[-1]):
        lines.pop()
    lines.append("")


class _DocStringTracker:
    """Tracks whether a raw line sits inside a doc-string"""

    def __init__(self):
        self.fence = None

    def feed(self, line: str) -> bool:
        """Feed the next line; True when it is a fence or doc-string content"""
        fence = doc_string_fence(line)
        if self.fence:
            if fence == self.fence:
                self.fence = None
            return True
        if fence:
            self.fence = fence
            return True
        return False


class OutlineExpander:
    """Expand Scenario Outlines and optionally inject Background steps"""

    def __init__(self, inject_background: bool = True):
        self.inject_background = inject_background

    # ------------------------------------------------------------------
    #  text mode: one outline block
    # ------------------------------------------------------------------
    def split_outline(self, block_lines: List[str]) -> Tuple[int, List[str], List[RawExamples]]:
        """Split an outline block into (title index, step lines, examples blocks)"""
        title_idx = next(
            (i for i, line in enumerate(block_lines) if classify(line) is LineKind.SCENARIO_OUTLINE), 0)
        after = block_lines[title_idx + 1:]

        step_lines = []
        tracker = _DocStringTracker()
        i = 0
        while i < len(after):
            line = after[i]
            if not tracker.feed(line) and classify(line) in (LineKind.EXAMPLES, LineKind.TAG):
                break
            step_lines.append(line)
            i += 1

        blocks = []
        while i < len(after):
            tag_lines = []
            # blank and comment lines may sit between an Examples block's tags and its header
            while i < len(after):
                kind = classify(after[i])
                if kind is LineKind.TAG:
                    tag_lines.append(after[i])
                elif kind not in (LineKind.BLANK, LineKind.COMMENT):
                    break
                i += 1
            if i >= len(after):
                break
            if classify(after[i]) is not LineKind.EXAMPLES:
                i += 1
                continue

            i += 1
            table_lines = []
            while i < len(after):
                kind = classify(after[i])
                if kind not in (LineKind.TABLE_ROW, LineKind.COMMENT, LineKind.BLANK):
                    break
                table_lines.append(after[i])
                i += 1
            blocks.append(RawExamples(tag_lines=tag_lines, table_lines=table_lines))

        return title_idx, step_lines, blocks

    def expand_outline(self, block_lines: List[str], outline_tag_lines: List[str] = None,
                       feature_background: List[str] = None,
                       rule_background: List[str] = None) -> List[str]:
        """Expand one outline block into Scenario blocks, one per Examples row.

        Tag lines are re-emitted verbatim before every generated scenario: the
        outline's own first, then those of the Examples block. The title keeps
        its indentation and becomes ``Scenario:``. Background lines (Feature
        then Rule) are injected after the title when injection is enabled.
        Each generated scenario ends with exactly one blank line.

        Without any usable Examples row the block is returned unmodified.
        """
        outline_tag_lines = outline_tag_lines or []
        title_idx, step_lines, blocks = self.split_outline(block_lines)

        expansions = [(block, block.data_rows()) for block in blocks]
        if not any(rows for _, rows in expansions):
            logger.debug("Scenario Outline without usable Examples rows left as is")
            return list(block_lines)

        title_line = block_lines[title_idx]
        indent = leading_indent(title_line)
        title_text = OUTLINE_PREFIX_RE.sub('', title_line, count=1)

        background = []
        if self.inject_background:
            background = list(feature_background or []) + list(rule_background or [])

        out = []
        for block, rows in expansions:
            for row in rows:
                out.extend(outline_tag_lines)
                out.extend(block.tag_lines)
                out.append(f"{indent}Scenario: {substitute_placeholders(title_text, row)}")
                out.extend(substitute_placeholders(line, row) for line in background)
                out.extend(substitute_placeholders(line, row) for line in step_lines)
                ensure_single_trailing_blank(out)
        return out

    # ------------------------------------------------------------------
    #  text mode: whole document
    # ------------------------------------------------------------------
    def _collect_block(self, lines: List[str], start: int) -> int:
        """End index (exclusive) of the scenario block whose header is at start"""
        end = start + 1
        tracker = _DocStringTracker()
        while end < len(lines):
            line = lines[end]
            if tracker.feed(line):
                end += 1
                continue
            kind = classify(line)
            if kind in BLOCK_BOUNDARY_KINDS:
                break
            if kind is LineKind.TAG and not self._tags_lead_to_examples(lines, end):
                break
            end += 1
        return end

    @staticmethod
    def _tags_lead_to_examples(lines: List[str], position: int) -> bool:
        while position < len(lines):
            kind = classify(lines[position])
            if kind not in (LineKind.TAG, LineKind.BLANK, LineKind.COMMENT):
                return kind is LineKind.EXAMPLES
            position += 1
        return False

    def _collect_background(self, lines: List[str], start: int) -> int:
        """End index (exclusive) of the Background block whose header is at start"""
        end = start + 1
        tracker = _DocStringTracker()
        while end < len(lines):
            line = lines[end]
            if tracker.feed(line):
                end += 1
                continue
            kind = classify(line)
            # a tag line closes the background: it belongs to the next header
            if kind in BLOCK_BOUNDARY_KINDS or kind in (LineKind.TAG, LineKind.EXAMPLES):
                break
            end += 1
        return end

    def transform(self, source: str) -> str:
        """Rewrite a document with every Scenario Outline expanded in place"""
        lines = source.lstrip('\ufeff').replace('\r\n', '\n').replace('\r', '\n').split('\n')
        output: List[str] = []
        pending_tags: List[str] = []
        in_rule = False
        feature_background: List[str] = []
        rule_background: List[str] = []

        def flush_tags():
            output.extend(pending_tags)
            pending_tags.clear()

        idx = 0
        while idx < len(lines):
            line = lines[idx]
            kind = classify(line)

            if kind is LineKind.TAG:
                pending_tags.append(line)
                idx += 1

            elif kind is LineKind.FEATURE:
                flush_tags()
                output.append(line)
                in_rule = False
                feature_background = []
                rule_background = []
                idx += 1

            elif kind is LineKind.RULE:
                flush_tags()
                output.append(line)
                in_rule = True
                rule_background = []
                idx += 1

            elif kind is LineKind.BACKGROUND:
                flush_tags()
                end = self._collect_background(lines, idx)
                if self.inject_background:
                    body = trim_blank_edges(lines[idx + 1:end])
                    if in_rule:
                        rule_background = body
                    else:
                        feature_background = body
                else:
                    output.extend(lines[idx:end])
                idx = end

            elif kind is LineKind.SCENARIO:
                flush_tags()
                end = self._collect_block(lines, idx)
                output.append(line)
                if self.inject_background:
                    output.extend(feature_background + rule_background)
                output.extend(lines[idx + 1:end])
                ensure_single_trailing_blank(output)
                idx = end

            elif kind is LineKind.SCENARIO_OUTLINE:
                outline_tags = list(pending_tags)
                pending_tags.clear()
                end = self._collect_block(lines, idx)
                block = lines[idx:end]
                expanded = self.expand_outline(block, outline_tags, feature_background, rule_background)
                if expanded == block:
                    output.extend(outline_tags)
                output.extend(expanded)
                idx = end

            else:
                flush_tags()
                output.append(line)
                idx += 1

        flush_tags()
        return '\n'.join(output).rstrip('\n') + '\n'

    # ------------------------------------------------------------------
    #  structured mode
    # ------------------------------------------------------------------
    def expand_scenario(self, scenario: Scenario) -> List[Scenario]:
        """Concrete scenarios for one parsed record.

        A plain Scenario is returned as is. An Outline yields one Scenario per
        Examples data row, in source order, and none when it has no rows.
        Examples-block tags are added to the outline's own tags.
        """
        if not scenario.is_outline:
            return [scenario]

        expanded = []
        for block in scenario.examples:
            for row in block.rows:
                expanded.append(replace(
                    scenario,
                    name=substitute_placeholders(scenario.name, row),
                    type=ScenarioType.SCENARIO,
                    tags=scenario.tags + block.tags,
                    background=[_substitute_step(step, row) for step in scenario.background],
                    steps=[_substitute_step(step, row) for step in scenario.steps],
                    examples=[],
                    example_row=dict(row),
                ))
        if not expanded:
            logger.debug(f"Scenario Outline '{scenario.name}' has no Examples rows")
        return expanded


def _substitute_step(step: Step, row: Dict[str, str]) -> Step:
    table = None
    if step.data_table is not None:
        table = [[substitute_placeholders(cell, row) for cell in cells] for cells in step.data_table]
    doc_string = substitute_placeholders(step.doc_string, row) if step.doc_string is not None else None
    return replace(
        step,
        text=substitute_placeholders(step.text, row),
        data_table=table,
        doc_string=doc_string,
    )
