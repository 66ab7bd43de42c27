"""
API row builder
Maps parsed API scenarios to request-oriented spreadsheet rows: method and
endpoint, header and body summaries, expected status and response assertions
"""

import json
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from gherkinsheet.converter.row_builder import group_steps, sheet_prefix
from gherkinsheet.core.tag_resolver import summarize_tags
from gherkinsheet.parser.feature_parser import Scenario
from gherkinsheet.parser.line_classifier import doc_string_fence
from gherkinsheet.parser.outline_expander import OutlineExpander

API_HEADERS = [
    'TC_ID',
    'Priority',
    'Type',
    'Rule',
    'Title',
    'Method',
    'Endpoint',
    'Preconditions',
    'Headers',
    'Body Params',
    'Steps',
    'Expected Status',
    'Assertions',
    'Test Data',
]

# Well-known request headers and their short labels
HEADER_LABELS = [
    ('content-type', 'Content-Type'),
    ('accept', 'Accept'),
    ('x-tenant', 'Tenant'),
    ('x-idempotency-key', 'Idempotency'),
    ('x-signature', 'Signature'),
    ('x-timestamp', 'Timestamp'),
    ('x-request-trace', 'Trace'),
]

PRECONDITION_HINTS = [
    (re.compile(r'default currency', re.IGNORECASE), 'default currency set'),
    (re.compile(r'idempotency', re.IGNORECASE), 'idempotency key set'),
    (re.compile(r'base URL', re.IGNORECASE), 'base URL'),
]

METHOD_RE = re.compile(r'\b(GET|POST|PUT|PATCH|DELETE)\b\s+"([^"]+)"', re.IGNORECASE)
HEADERS_WORD_RE = re.compile(r'headers?', re.IGNORECASE)
BODY_STEP_RE = re.compile(r'with (?:JSON )?body', re.IGNORECASE)
KEY_VALUE_ROW_RE = re.compile(r'^\s*\|\s*([^|]+?)\s*\|\s*([^|]*?)\s*\|\s*$')
DOC_STRING_RE = re.compile(r'("""|\'\'\')(.*?)\1', re.DOTALL)
LABELLED_VALUE_RE = re.compile(r'([A-Za-z0-9_\-\s]+?)\s*"[^"]*"')
STATUS_RE = re.compile(r'I get status\s+"?(\d{3})"?', re.IGNORECASE)
ERROR_RE = re.compile(r'error JSON contains code\s+"([^"]+)"\s+and message\s+"([^"]+)"', re.IGNORECASE)

MAX_HEADER_KEYS = 4
MAX_BODY_LABELS = 8
MAX_BODY_KEYS = 10
MAX_PATH_ASSERTIONS = 5


@dataclass
class ApiTestCaseRow:
    """One API spreadsheet row"""
    priority: str
    type: str
    rule: str
    title: str
    method: str = ""
    endpoint: str = ""
    preconditions: str = ""
    headers: str = ""
    body_params: str = ""
    steps: str = ""
    expected_status: str = ""
    assertions: str = ""
    test_data: str = ""
    tc_id: str = ""

    __test__ = False  # keep pytest from collecting this class

    def to_cells(self) -> List[str]:
        return [
            self.tc_id,
            self.priority,
            self.type,
            self.rule,
            self.title,
            self.method,
            self.endpoint,
            self.preconditions,
            self.headers,
            self.body_params,
            self.steps,
            self.expected_status,
            self.assertions,
            self.test_data,
        ]


def _key_value_rows(text: str) -> List[Tuple[str, str]]:
    rows = []
    for line in text.split('\n'):
        match = KEY_VALUE_ROW_RE.match(line)
        if match:
            rows.append((match.group(1), match.group(2)))
    return rows


def summarize_headers(text: str) -> str:
    """Short labels for the header names of a two-column key/value table"""
    keys = [key for key, _ in _key_value_rows(text)]
    if not keys:
        return ""

    lowered = [key.lower() for key in keys]
    labels = []
    if any('authorization' in key for key in lowered):
        labels.append('Auth')
    labels.extend(label for name, label in HEADER_LABELS if name in lowered)
    return ', '.join(labels) if labels else ', '.join(keys[:MAX_HEADER_KEYS])


def extract_method_endpoint(text: str) -> Tuple[str, str]:
    """('POST', '/users') from a step such as 'I send POST "/users"'"""
    match = METHOD_RE.search(text)
    if not match:
        return "", ""
    return match.group(1).upper(), match.group(2)


def summarize_body_params(text: str) -> str:
    """Top-level keys of a JSON doc-string body, else the labels of 'label "value"' pairs"""
    match = DOC_STRING_RE.search(text)
    if not match:
        labels = [re.sub(r'\s+', ' ', m.group(1).strip()) for m in LABELLED_VALUE_RE.finditer(text)]
        return ', '.join([label for label in labels if label][:MAX_BODY_LABELS])

    try:
        payload = json.loads(match.group(2))
    except ValueError:
        return "payload sample"
    if not isinstance(payload, dict):
        return "payload sample"
    return ', '.join(list(payload)[:MAX_BODY_KEYS])


def summarize_assertions(then_text: str) -> str:
    """Error code/message checks, sample responses and up to five 'path=expected' table rows"""
    items = []
    path_checks = []
    in_doc_string = False

    for line in then_text.split('\n'):
        if doc_string_fence(line):
            in_doc_string = not in_doc_string
            if not in_doc_string:
                items.append('sample provided')
            continue
        if in_doc_string:
            continue

        row = KEY_VALUE_ROW_RE.match(line)
        if row and row.group(2):
            path_checks.append(f"{row.group(1)}={row.group(2)}")
            continue

        error = ERROR_RE.search(line)
        if error:
            items.append(f"code={error.group(1)}, message={error.group(2)}")

    return '; '.join(items + path_checks[:MAX_PATH_ASSERTIONS])


def find_expected_status(then_text: str) -> str:
    match = STATUS_RE.search(then_text)
    return match.group(1) if match else ""


def summarize_preconditions(given: List[str]) -> str:
    highlights = []
    for text in given:
        for pattern, label in PRECONDITION_HINTS:
            if pattern.search(text):
                highlights.append(label)
        if HEADERS_WORD_RE.search(text) and '|' in text:
            summary = summarize_headers(text)
            if summary:
                highlights.append(f"headers: {summary}")

    if highlights:
        return '; '.join(dict.fromkeys(highlights))
    return f"{len(given)} item(s)" if given else ""


def format_api_test_data(row: Optional[Dict[str, str]]) -> str:
    """'column=value' pairs of an Examples row, first column left out"""
    if not row or len(row) <= 1:
        return ""
    return '; '.join(f"{name}={value or 'empty'}" for name, value in list(row.items())[1:])


def build_api_row(scenario: Scenario) -> ApiTestCaseRow:
    """Row for one concrete scenario"""
    summary = summarize_tags(scenario.effective_tags)
    groups = group_steps(scenario)
    given, when, then = groups['Given'], groups['When'], groups['Then']

    method, endpoint = next(
        ((m, e) for m, e in map(extract_method_endpoint, when) if m and e), ("", ""))

    headers = ""
    for text in given + when:
        if HEADERS_WORD_RE.search(text) and '|' in text:
            headers = summarize_headers(text)
            if headers:
                break

    body_params = ""
    for text in when:
        if BODY_STEP_RE.search(text):
            body_params = summarize_body_params(text)
            if body_params:
                break

    if method:
        steps = f"1) {method} {endpoint}"
    elif when:
        first_line = when[0].partition('\n')[0]
        steps = f"1) {first_line}"
    else:
        steps = ""

    then_text = '\n'.join(then)
    return ApiTestCaseRow(
        priority=summary.priority,
        type=summary.type,
        rule=scenario.rule_name,
        title=scenario.name,
        method=method,
        endpoint=endpoint,
        preconditions=summarize_preconditions(given),
        headers=headers,
        body_params=body_params,
        steps=steps,
        expected_status=find_expected_status(then_text),
        assertions=summarize_assertions(then_text),
        test_data=format_api_test_data(scenario.example_row),
    )


def scenario_to_api_rows(scenario: Scenario, expander: OutlineExpander = None) -> List[ApiTestCaseRow]:
    """One row per scenario or Examples row; an outline without rows still gets one row"""
    expander = expander or OutlineExpander()
    if scenario.is_outline and not scenario.example_rows:
        return [build_api_row(scenario)]
    return [build_api_row(concrete) for concrete in expander.expand_scenario(scenario)]


def build_api_sheet_rows(scenarios: List[Scenario], sheet_name: str,
                         expander: OutlineExpander = None) -> List[ApiTestCaseRow]:
    """Rows for one API sheet, numbered <PREFIX>-001, <PREFIX>-002, ..."""
    expander = expander or OutlineExpander()
    rows = []
    for scenario in scenarios:
        rows.extend(scenario_to_api_rows(scenario, expander))

    prefix = sheet_prefix(sheet_name)
    for counter, row in enumerate(rows, 1):
        row.tc_id = f"{prefix}-{counter:03d}"
    return rows
