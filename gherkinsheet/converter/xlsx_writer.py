"""
Excel writer for test-case rows
One worksheet per feature file, with wrapped cells and fitted column widths
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from gherkinsheet.converter.api_row_builder import API_HEADERS, build_api_sheet_rows
from gherkinsheet.converter.row_builder import (
    build_sheet_rows,
    label_column_count,
    sheet_headers,
)
from gherkinsheet.parser.feature_parser import Feature, Scenario
from gherkinsheet.parser.outline_expander import OutlineExpander
from gherkinsheet.utils.helpers import sanitize_sheet_name, unique_sheet_name
from gherkinsheet.utils.logger import setup_logger

logger = setup_logger(__name__)

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 80
LINE_HEIGHT = 15
MAX_ROW_HEIGHT = 220

# 'ui': steps and tag columns, 'api': request and response summaries
LAYOUTS = ('ui', 'api')


@dataclass
class SheetData:
    name: str
    headers: List[str]
    rows: List[List[str]]


def _cell_text(value) -> str:
    return "" if value is None else str(value)


def _fit_sheet(ws, headers: List[str]) -> None:
    """Wrap every cell, size columns to their longest line and rows to their wrapped height"""
    for row in ws.iter_rows():
        for cell in row:
            cell.alignment = Alignment(wrap_text=True, vertical='top')

    widths = {}
    for column in ws.columns:
        index = column[0].column
        longest = len(headers[index - 1]) if index <= len(headers) else MIN_COLUMN_WIDTH
        for cell in column:
            text = _cell_text(cell.value)
            if text:
                longest = max(longest, max(len(line) for line in text.split('\n')))
        width = min(max(longest + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)
        widths[index] = width
        ws.column_dimensions[get_column_letter(index)].width = width

    for row in ws.iter_rows():
        lines = 1
        for cell in row:
            text = _cell_text(cell.value)
            if not text:
                continue
            per_line = max(int(widths.get(cell.column, MIN_COLUMN_WIDTH)), 1)
            wrapped = sum(max(1, -(-len(line) // per_line)) for line in text.split('\n'))
            lines = max(lines, wrapped)
        ws.row_dimensions[row[0].row].height = min(LINE_HEIGHT * lines, MAX_ROW_HEIGHT)


def add_sheet(wb: Workbook, sheet: SheetData) -> None:
    ws = wb.create_sheet(title=sheet.name)
    ws.append(sheet.headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for cells in sheet.rows:
        ws.append(cells)

    _fit_sheet(ws, sheet.headers)
    logger.debug(f"Sheet '{sheet.name}': {len(sheet.rows)} rows, {len(sheet.headers)} columns")


def write_workbook(sheets: List[SheetData], outfile: Path) -> Path:
    """Write all sheets into one .xlsx file"""
    wb = Workbook()
    wb.remove(wb.active)

    for sheet in sheets:
        add_sheet(wb, sheet)
    if not sheets:
        wb.create_sheet(title='Sheet')

    outfile = Path(outfile)
    outfile.parent.mkdir(parents=True, exist_ok=True)
    wb.save(outfile)
    logger.info(f"Wrote Excel ({len(sheets)} sheet): {outfile}")
    return outfile


def build_sheet(scenarios: List[Scenario], name: str, expander: OutlineExpander = None,
                layout: str = 'ui') -> SheetData:
    """Header row and cells of one sheet in the 'ui' or 'api' column layout"""
    if layout == 'api':
        api_rows = build_api_sheet_rows(scenarios, name, expander)
        return SheetData(name=name, headers=list(API_HEADERS), rows=[row.to_cells() for row in api_rows])
    if layout != 'ui':
        raise ValueError(f"Unknown sheet layout: {layout} (expected one of {', '.join(LAYOUTS)})")

    rows = build_sheet_rows(scenarios, name, expander)
    label_columns = label_column_count(rows)
    return SheetData(name=name, headers=sheet_headers(rows), rows=[row.to_cells(label_columns) for row in rows])


def sheets_from_features(features: List[Feature], expander: OutlineExpander = None,
                         layout: str = 'ui') -> List[SheetData]:
    """One sheet per parsed feature file, named after the file, in the given order"""
    used = set()
    sheets = []
    for feature in features:
        stem = Path(feature.file_path).stem if feature.file_path else feature.name
        name = unique_sheet_name(sanitize_sheet_name(stem), used)
        sheets.append(build_sheet(feature.scenarios, name, expander, layout))
    return sheets
