#!/usr/bin/env python3
"""
gherkinsheet - Gherkin feature files to spreadsheet test cases and back
Main entry point for expanding outlines, exporting test cases and building pipe tables
"""

import sys
from pathlib import Path

import click

from gherkinsheet import __version__
from gherkinsheet.converter.pipe_table import PipeTableOptions, convert_file
from gherkinsheet.converter.xlsx_writer import sheets_from_features, write_workbook
from gherkinsheet.core.config_manager import ConfigManager
from gherkinsheet.parser.feature_parser import FeatureParser
from gherkinsheet.parser.outline_expander import OutlineExpander
from gherkinsheet.utils.helpers import (
    collect_feature_files,
    collect_table_files,
    resolve_output_path,
    split_values,
)
from gherkinsheet.utils.logger import setup_logger, set_global_level

# Initialize logger
logger = setup_logger(__name__)

EXPAND_SUFFIX = '-expand'


@click.group()
@click.version_option(__version__, prog_name='gherkinsheet')
@click.option('--config', '-c', default='config/config.yaml', help='Path to config file')
@click.option('--env', '-e', default=None, help='Environment overlay (config/environments/<env>.yaml)')
@click.pass_context
def main(ctx, config, env):
    """
    gherkinsheet - convert Gherkin feature files

    Examples:
        # Expand Scenario Outlines in place (Background steps injected)
        gherkinsheet expand -i features/login.feature
        cat login.feature | gherkinsheet expand -o out.feature

        # One workbook, one sheet per .feature file
        gherkinsheet to-xlsx -i features/ -o testcases.xlsx
        gherkinsheet to-api-xlsx -i features/api/

        # Spreadsheet tables back to Examples blocks
        gherkinsheet to-table data/users.xlsx --mask password
        gherkinsheet to-table --dir data --recursive --ext xlsx
    """
    config_manager = ConfigManager(config, env)
    config_manager.load_config()
    set_global_level(config_manager.get('logging.level', 'INFO'))
    ctx.obj = config_manager


def _is_directory_target(output: str) -> bool:
    """An existing folder, or a path that does not name a .feature file"""
    path = Path(output)
    if path.exists():
        return path.is_dir()
    return path.suffix.lower() != '.feature'


@main.command()
@click.option('--input', '-i', 'inputs', multiple=True,
              help='.feature file or folder; repeat or comma-separate. Reads stdin when omitted')
@click.option('--output', '-o', default=None, help='Output .feature file (single input) or output folder')
@click.option('--outdir', default=None, help='Output folder')
@click.option('--no-background', is_flag=True, help='Keep Background blocks instead of injecting their steps')
@click.option('--overwrite', is_flag=True, help='Replace an existing output file')
@click.option('--no-timestamp', is_flag=True, help='Do not add a timestamp to generated file names')
@click.pass_obj
def expand(config, inputs, output, outdir, no_background, overwrite, no_timestamp):
    """Expand Scenario Outlines into concrete Scenarios"""
    inject = config.get('expander.inject_background', True) and not no_background
    expander = OutlineExpander(inject_background=inject)
    use_timestamp = config.get('output.timestamp', True) and not no_timestamp
    overwrite = config.get('output.overwrite', False) or overwrite

    directory = Path(outdir or config.get('output.expand_dir'))
    requested = None
    if output and _is_directory_target(output):
        directory = Path(output)
    elif output:
        requested = output

    try:
        sources = []
        for item in split_values(inputs):
            sources.extend(collect_feature_files(Path(item)))
        if inputs and not sources:
            logger.error(f"No .feature files found in {', '.join(inputs)}")
            sys.exit(1)
        if requested and len(sources) > 1:
            logger.error("--output names a file but there is more than one input; pass a folder instead")
            sys.exit(1)

        if not sources:
            text = click.get_text_stream('stdin').read()
            target = resolve_output_path(directory, f"stdin{EXPAND_SUFFIX}", '.feature', requested=requested,
                                         use_timestamp=use_timestamp, overwrite=overwrite)
            target.write_text(expander.transform(text), encoding='utf-8')
            logger.info(f"stdin -> {target}")
            return

        for feature_file in sources:
            text = feature_file.read_text(encoding='utf-8-sig')
            target = resolve_output_path(
                directory, f"{feature_file.stem}{EXPAND_SUFFIX}", '.feature', requested=requested,
                use_timestamp=use_timestamp, overwrite=overwrite,
            )
            target.write_text(expander.transform(text), encoding='utf-8')
            logger.info(f"{feature_file.name} -> {target}")

    except (OSError, ValueError) as e:
        logger.error(f"Expansion failed: {str(e)}")
        sys.exit(1)


def _export_workbooks(config, input_path, output, outdir, mode, overwrite, no_timestamp, layout, default_dir):
    """Parse the features under input_path and write them as one or many workbooks"""
    try:
        input_path = Path(input_path)
        files = collect_feature_files(input_path)
        if not files:
            logger.error(f"No .feature files found in {input_path}")
            sys.exit(1)

        parser = FeatureParser(str(input_path))
        features = [parser.parse_file(feature_file) for feature_file in files]
        directory = Path(outdir or default_dir)
        use_timestamp = config.get('output.timestamp', True) and not no_timestamp
        overwrite = config.get('output.overwrite', False) or overwrite

        if mode == 'files' and input_path.is_dir():
            if output:
                logger.warning("--output ignored in files mode; using --outdir")
            for feature in features:
                target = resolve_output_path(directory, Path(feature.file_path).stem, '.xlsx',
                                             use_timestamp=use_timestamp, overwrite=overwrite)
                write_workbook(sheets_from_features([feature], layout=layout), target)
        else:
            stem = input_path.stem if input_path.is_file() else input_path.resolve().name
            target = resolve_output_path(directory, stem, '.xlsx', requested=output,
                                         use_timestamp=use_timestamp, overwrite=overwrite)
            write_workbook(sheets_from_features(features, layout=layout), target)

    except (OSError, ValueError) as e:
        logger.error(f"Export failed: {str(e)}")
        sys.exit(1)


@main.command('to-xlsx')
@click.option('--input', '-i', 'input_path', required=True, help='.feature file or folder of .feature files')
@click.option('--output', '-o', default=None, help='Output .xlsx path (sheet mode)')
@click.option('--outdir', default=None, help='Output folder')
@click.option('--mode', type=click.Choice(['sheet', 'files']), default='sheet',
              help='Folder input: one workbook (sheet) or one workbook per feature (files)')
@click.option('--overwrite', is_flag=True, help='Replace an existing output file')
@click.option('--no-timestamp', is_flag=True, help='Do not add a timestamp to generated file names')
@click.pass_obj
def to_xlsx(config, input_path, output, outdir, mode, overwrite, no_timestamp):
    """Export scenarios as spreadsheet test cases"""
    _export_workbooks(config, input_path, output, outdir, mode, overwrite, no_timestamp,
                      layout='ui', default_dir=config.get('output.xlsx_dir'))


@main.command('to-api-xlsx')
@click.option('--input', '-i', 'input_path', required=True, help='.feature file or folder of .feature files')
@click.option('--output', '-o', default=None, help='Output .xlsx path (sheet mode)')
@click.option('--outdir', default=None, help='Output folder')
@click.option('--mode', type=click.Choice(['sheet', 'files']), default='sheet',
              help='Folder input: one workbook (sheet) or one workbook per feature (files)')
@click.option('--overwrite', is_flag=True, help='Replace an existing output file')
@click.option('--no-timestamp', is_flag=True, help='Do not add a timestamp to generated file names')
@click.pass_obj
def to_api_xlsx(config, input_path, output, outdir, mode, overwrite, no_timestamp):
    """Export API scenarios with method, endpoint, headers, body and assertion columns"""
    _export_workbooks(config, input_path, output, outdir, mode, overwrite, no_timestamp,
                      layout='api', default_dir=config.get('output.api_xlsx_dir'))


@main.command('to-table')
@click.argument('files', nargs=-1, type=click.Path())
@click.option('--dir', '-d', 'folder', default=None, help='Convert every table file in this folder')
@click.option('--recursive', '-r', is_flag=True, help='With --dir, scan sub-folders too')
@click.option('--ext', default='xlsx,csv', help='Extensions picked up by --dir, comma separated')
@click.option('--outdir', '--out-dir', 'outdir', default=None, help='Output folder')
@click.option('--indent', default=None, type=int, help="Spaces before '|'")
@click.option('--columns', default='', help='Column whitelist (names or #index), comma separated')
@click.option('--mask', default='', help='Columns whose values are masked, comma separated')
@click.option('--no-header', is_flag=True, help='First row of each table is data, not a header')
@click.option('--table-gap', default=None, type=int, help='Blank rows that separate two tables')
@click.option('--overwrite', is_flag=True, help='Replace an existing output file')
@click.option('--no-timestamp', is_flag=True, help='Do not add a timestamp to generated file names')
@click.pass_obj
def to_table(config, files, folder, recursive, ext, outdir, indent, columns, mask, no_header, table_gap,
             overwrite, no_timestamp):
    """Convert .xlsx/.csv tables into Examples pipe tables"""
    options = PipeTableOptions(
        indent=indent if indent is not None else config.get('pipe_table.indent', 4),
        table_gap=table_gap if table_gap is not None else config.get('pipe_table.table_gap', 1),
        columns=split_values([columns]),
        mask=split_values([mask]),
        no_header=no_header,
    )
    directory = Path(outdir or config.get('output.table_dir'))
    use_timestamp = config.get('output.timestamp', True) and not no_timestamp
    overwrite = config.get('output.overwrite', False) or overwrite

    sources = [Path(file_name) for file_name in files]
    if folder:
        try:
            sources.extend(collect_table_files(Path(folder), split_values([ext]), recursive))
        except OSError as e:
            logger.error(str(e))
            sys.exit(1)
    if not sources:
        logger.error("No .xlsx/.csv files to convert; pass FILES or --dir")
        sys.exit(1)

    failed = 0
    for source in sources:
        try:
            text = convert_file(source, options)
            target = resolve_output_path(directory, source.stem, '.feature',
                                         use_timestamp=use_timestamp, overwrite=overwrite)
            target.write_text(text, encoding='utf-8')
            logger.info(f"{source.name} -> {target}")
        except (OSError, ValueError) as e:
            logger.error(f"Skipping {source}: {str(e)}")
            failed += 1

    logger.info(f"Converted {len(sources) - failed} file(s), {failed} failed")
    if failed:
        sys.exit(1)


if __name__ == '__main__':
    main()
