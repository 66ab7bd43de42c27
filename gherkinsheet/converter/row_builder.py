"""
Row builder
Maps parsed scenarios to spreadsheet test-case rows
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from gherkinsheet.core.tag_resolver import summarize_tags
from gherkinsheet.parser.feature_parser import Scenario
from gherkinsheet.parser.outline_expander import OutlineExpander
from gherkinsheet.utils.helpers import numbered

BASE_HEADERS = [
    'TC_ID',
    'Feature',
    'Type',
    'Priority',
    'Rule',
    'Title',
    'Precondition (Given)',
    'Test Steps (When/And)',
    'Test Data',
    'Expected Result (Then/And)',
    'Tags',
]


@dataclass
class TestCaseRow:
    """One spreadsheet row"""
    feature: str
    rule: str
    type: str
    priority: str
    title: str
    given: List[str] = field(default_factory=list)
    when: List[str] = field(default_factory=list)
    then: List[str] = field(default_factory=list)
    test_data: str = ""
    tags: str = ""
    labels: List[str] = field(default_factory=list)
    tc_id: str = ""

    __test__ = False  # keep pytest from collecting this class

    def to_cells(self, label_columns: int) -> List[str]:
        labels = self.labels + [''] * (label_columns - len(self.labels))
        return [
            self.tc_id,
            self.feature,
            self.type,
            self.priority,
            self.rule,
            self.title,
            numbered(self.given),
            numbered(self.when),
            self.test_data,
            numbered(self.then),
            self.tags,
        ] + labels[:label_columns]


def format_test_data(row: Optional[Dict[str, str]]) -> str:
    """'1. column = value' per Examples cell; empty cells shown as (empty)"""
    if not row:
        return ""
    return '\n'.join(
        f"{i}. {name} = {value or '(empty)'}" for i, (name, value) in enumerate(row.items(), 1)
    )


def group_steps(scenario: Scenario) -> Dict[str, List[str]]:
    """Group background then scenario steps by base keyword"""
    groups = {'Given': [], 'When': [], 'Then': []}
    for step in scenario.background + scenario.steps:
        groups.get(step.keyword_base, groups['When']).append(step.text)
    return groups


def build_row(scenario: Scenario) -> TestCaseRow:
    """Row for one concrete (non-outline) scenario"""
    summary = summarize_tags(scenario.effective_tags)
    groups = group_steps(scenario)
    return TestCaseRow(
        feature=scenario.feature,
        rule=scenario.rule_name,
        type=summary.type,
        priority=summary.priority,
        title=scenario.name,
        given=groups['Given'],
        when=groups['When'],
        then=groups['Then'],
        test_data=format_test_data(scenario.example_row),
        tags=' '.join(scenario.effective_tags),
        labels=summary.labels,
    )


def scenario_to_rows(scenario: Scenario, expander: OutlineExpander = None) -> List[TestCaseRow]:
    """One row per scenario, or one per Examples row for an outline"""
    expander = expander or OutlineExpander()
    return [build_row(concrete) for concrete in expander.expand_scenario(scenario)]


def sheet_prefix(sheet_name: str) -> str:
    return re.sub(r'\s+', '_', sheet_name.strip()).upper()


def build_sheet_rows(scenarios: List[Scenario], sheet_name: str,
                     expander: OutlineExpander = None) -> List[TestCaseRow]:
    """Rows for one sheet, numbered <PREFIX>-001, <PREFIX>-002, ..."""
    expander = expander or OutlineExpander()
    rows = []
    for scenario in scenarios:
        rows.extend(scenario_to_rows(scenario, expander))

    prefix = sheet_prefix(sheet_name)
    for counter, row in enumerate(rows, 1):
        row.tc_id = f"{prefix}-{counter:03d}"
    return rows


def label_column_count(rows: List[TestCaseRow]) -> int:
    return max((len(row.labels) for row in rows), default=0)


def sheet_headers(rows: List[TestCaseRow]) -> List[str]:
    """Base headers plus one 'Tag N' column per free-form label"""
    return BASE_HEADERS + [f"Tag {i}" for i in range(1, label_column_count(rows) + 1)]
