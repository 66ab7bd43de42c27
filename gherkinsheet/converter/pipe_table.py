"""
Pipe-table generator
Turns spreadsheet / CSV tables into Gherkin ``Examples:`` blocks
"""

import csv
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from openpyxl import load_workbook

from gherkinsheet.utils.logger import setup_logger

logger = setup_logger(__name__)

TICKET_RE = re.compile(r'^[A-Z][A-Z0-9]+-\d+$', re.IGNORECASE)
BOOLEAN_RE = re.compile(r'^(true|false)$', re.IGNORECASE)
COLUMN_INDEX_RE = re.compile(r'^#\d+$')
MASK = '****'


@dataclass
class PipeTableOptions:
    indent: int = 4
    table_gap: int = 1
    columns: List[str] = field(default_factory=list)
    mask: List[str] = field(default_factory=list)
    no_header: bool = False


def is_empty(value: Any) -> bool:
    return value is None or str(value).strip() == '' or str(value).strip().lower() == 'nan'


def cell_text(value: Any) -> str:
    """Cell value as text: integral floats lose their '.0', pipes are escaped"""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).replace('|', '\\|').strip()
    if BOOLEAN_RE.match(text):
        return text.upper()
    return text


def split_by_blank_rows(rows: Sequence[Sequence[Any]], gap: int = 1) -> List[List[List[Any]]]:
    """Split rows into blocks separated by at least gap blank rows"""
    blocks = []
    current = []
    blanks = 0
    for row in rows:
        if not row or all(is_empty(v) for v in row):
            blanks += 1
            if blanks >= gap and current:
                blocks.append(current)
                current = []
        else:
            blanks = 0
            current.append(list(row))
    if current:
        blocks.append(current)
    return blocks


def take_leading_comments(block: List[List[Any]]) -> List[str]:
    """Pop single-cell '#...' or ticket-id rows from the top of block as comment lines"""
    comments = []
    while block:
        values = [str(v).strip() for v in block[0] if not is_empty(v)]
        if len(values) != 1:
            break
        value = values[0]
        if value.startswith('#'):
            comments.append(value)
        elif TICKET_RE.match(value):
            comments.append(f"# {value}")
        else:
            break
        block.pop(0)
    return comments


def _select_columns(header: List[str], count: int, columns: List[str]) -> List[int]:
    if not columns:
        return list(range(count))

    lowered = [cell_text(h).lower() for h in header[:count]]
    selected = []
    for column in columns:
        if COLUMN_INDEX_RE.match(column):
            index = int(column[1:])
        elif column.lower() in lowered:
            index = lowered.index(column.lower())
        else:
            continue
        if 0 <= index < count:
            selected.append(index)
    return selected


def to_examples(block: List[List[Any]], options: PipeTableOptions = None) -> Optional[str]:
    """Render one table block as an aligned Examples table, or None when it has no data"""
    options = options or PipeTableOptions()
    if not block or len(block) < 2:
        return None

    if options.no_header:
        width = max(len(row) for row in block)
        header = [f"c{i}" for i in range(width)]
        data = block
    else:
        header, data = block[0], block[1:]

    filled = [i for i, h in enumerate(header) if not is_empty(h)]
    count = filled[-1] + 1 if filled else len(header)

    indexes = _select_columns(header, count, options.columns)
    if not indexes:
        return None

    headers = [cell_text(header[i]) for i in indexes]
    masked = {name.lower() for name in options.mask}
    rows = []
    for raw in data:
        row = []
        for position, i in enumerate(indexes):
            value = cell_text(raw[i]) if i < len(raw) else ''
            if value and headers[position].lower() in masked:
                value = MASK
            row.append(value)
        if not all(is_empty(v) for v in row):
            rows.append(row)
    if not rows:
        return None

    widths = [max(len(headers[i]), *(len(r[i]) for r in rows)) for i in range(len(headers))]
    pad = ' ' * options.indent

    def render(cells):
        return pad + '| ' + ' | '.join(c.ljust(widths[i]) for i, c in enumerate(cells)) + ' |'

    return '\n'.join(['Examples:', render(headers)] + [render(r) for r in rows])


def read_tables(path: Path) -> List[Tuple[str, List[List[Any]]]]:
    """(sheet name, rows) for every sheet of an .xlsx, or the single table of a .csv"""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.csv':
        with open(path, 'r', encoding='utf-8-sig', newline='') as f:
            return [(path.stem, [row for row in csv.reader(f)])]
    if suffix in ('.xlsx', '.xlsm'):
        wb = load_workbook(path, read_only=True, data_only=True)
        try:
            return [(ws.title, [list(row) for row in ws.iter_rows(values_only=True)]) for ws in wb.worksheets]
        finally:
            wb.close()
    raise ValueError(f"Unsupported table file: {path.name} (expected .csv or .xlsx)")


def tables_to_feature(tables: List[Tuple[str, List[List[Any]]]], options: PipeTableOptions = None) -> str:
    """Render every sheet's tables as '# Sheet: <name>' followed by Examples blocks"""
    options = options or PipeTableOptions()
    gap = max(1, options.table_gap)
    out = []

    for sheet_name, rows in tables:
        if not rows:
            continue

        section = []
        for block in split_by_blank_rows(rows, gap):
            comments = take_leading_comments(block)
            examples = to_examples(block, options)
            if examples:
                section.extend(comments)
                section.append(examples)
                section.append('')

        if section:
            out.append(f"# Sheet: {sheet_name}")
            out.extend(section)
        else:
            logger.debug(f"Sheet '{sheet_name}' has no table with data rows")
        out.append('')

    return '\n'.join(out).rstrip() + '\n'


def convert_file(path: Path, options: PipeTableOptions = None) -> str:
    tables = read_tables(path)
    logger.info(f"Read {len(tables)} sheet(s) from {path}")
    return tables_to_feature(tables, options)
