"""Helper utilities"""
import re
from datetime import datetime
from pathlib import Path
from typing import List, Iterable

MAX_SHEET_NAME = 31


def sanitize_sheet_name(name: str) -> str:
    """Make a file stem safe for use as an Excel sheet name"""
    base = re.sub(r'[^A-Za-z0-9_\-]+', '_', name or '')
    if not base:
        base = 'Sheet'
    return base[:MAX_SHEET_NAME]


def unique_sheet_name(base: str, used: set) -> str:
    """Return base, or base_2, base_3... so that it is not in used"""
    name = base
    counter = 2
    while name in used:
        name = f"{base[:28]}_{counter}"[:MAX_SHEET_NAME]
        counter += 1
    used.add(name)
    return name


def timestamp(now: datetime = None) -> str:
    """Timestamp used in generated file names (YYYYMMDD_HHMMSS)"""
    return (now or datetime.now()).strftime('%Y%m%d_%H%M%S')


def ensure_suffix(path: Path, suffix: str) -> Path:
    """Append suffix unless the path already has it"""
    path = Path(path)
    if path.suffix.lower() == suffix.lower():
        return path
    return path.with_name(path.name + suffix)


def collect_feature_files(input_path: Path) -> List[Path]:
    """List .feature files under a directory (recursive, sorted) or the file itself"""
    input_path = Path(input_path)
    if not input_path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")

    if input_path.is_dir():
        return sorted(p for p in input_path.rglob('*') if p.is_file() and p.suffix.lower() == '.feature')
    return [input_path]


def collect_table_files(directory: Path, extensions: Iterable[str], recursive: bool = False) -> List[Path]:
    """Table files in a folder with one of the given extensions; Excel '~$' lock files skipped"""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Folder not found: {directory}")

    wanted = {ext.strip().lower().lstrip('.') for ext in extensions if ext.strip()}
    candidates = directory.rglob('*') if recursive else directory.iterdir()
    return sorted(
        p for p in candidates
        if p.is_file() and not p.name.startswith('~$') and p.suffix.lower().lstrip('.') in wanted
    )


def split_values(values: Iterable[str]) -> List[str]:
    """Flatten repeated and comma-separated option values"""
    return [item.strip() for value in values or [] for item in value.split(',') if item.strip()]


def resolve_output_path(directory: Path, stem: str, suffix: str,
                        requested: str = None, use_timestamp: bool = True,
                        overwrite: bool = False) -> Path:
    """Work out where a generated file goes.

    A requested path is used as-is (suffix enforced). Otherwise the file is
    ``<directory>/<stem>-<timestamp><suffix>``, or ``<stem><suffix>`` when
    timestamps are disabled. An existing target is never replaced unless
    ``overwrite`` is set; a timestamp is appended instead.
    """
    if requested:
        target = ensure_suffix(Path(requested), suffix)
    else:
        name = f"{stem}-{timestamp()}{suffix}" if use_timestamp else f"{stem}{suffix}"
        target = Path(directory) / name

    if target.exists() and not overwrite:
        target = target.with_name(f"{target.stem}-{timestamp()}{suffix}")

    target.parent.mkdir(parents=True, exist_ok=True)
    return target


def numbered(items: Iterable[str]) -> str:
    """Render items as a '1. item' list joined with newlines"""
    return '\n'.join(f"{i}. {text}" for i, text in enumerate(items, 1))
