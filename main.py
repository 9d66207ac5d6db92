"""
CLI for twbgraph using Click
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime

import click
from tqdm import tqdm

from twbgraph.core.models import TwbGraphError, DependencyMode
from twbgraph.extraction.assembler import extract_workbook
from twbgraph.graph.lineage_graph import FieldLineageGraph
from twbgraph.io.workbook_loader import WorkbookLoader
from twbgraph.io.json_exporter import export_result_json
from twbgraph.config import get_config

MODE_CHOICES = [mode.value for mode in DependencyMode]


class TeeFileHandler(logging.Handler):
    """Handler writing to a file and to stdout at the same time"""

    def __init__(self, file_path: Path):
        super().__init__()
        self.file_path = file_path
        self.stdout = sys.stdout
        self.file = open(self.file_path, 'a', encoding='utf-8')

    def close(self):
        """Close the file when the handler is closed"""
        if self.file:
            self.file.close()
            self.file = None
        super().close()

    def emit(self, record):
        """Write record to file and stdout"""
        try:
            msg = self.format(record) + '\n'
            if self.file:
                self.file.write(msg)
                self.file.flush()
            self.stdout.write(msg)
            self.stdout.flush()
        except Exception:
            self.handleError(record)


def generate_log_filename(command_name: str, log_dir: Path) -> Path:
    """
    Build a log file name from the command and a timestamp

    Args:
        command_name: Name of the executed command
        log_dir: Directory for the log

    Returns:
        Full path of the log file
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_command = command_name.replace('-', '_')
    return log_dir / f"{safe_command}_{timestamp}.log"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    auto_log: bool = False,
    command_name: Optional[str] = None,
    log_dir: Optional[str] = None
) -> Optional[Path]:
    """
    Configure logging, optionally to an automatic log file

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Explicit log file (overrides auto-logging)
        auto_log: Create a timestamped log file automatically
        command_name: Command name (for auto-logging)
        log_dir: Log directory (for auto-logging)

    Returns:
        Path of the log file, if any
    """
    log_file_path = None

    if log_file:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
    elif auto_log and command_name and log_dir:
        log_dir_path = Path(log_dir)
        log_dir_path.mkdir(parents=True, exist_ok=True)
        log_file_path = generate_log_filename(command_name, log_dir_path)

    if log_file_path:
        handlers = [TeeFileHandler(log_file_path)]
    else:
        handlers = [logging.StreamHandler(sys.stdout)]

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    return log_file_path


def _load_result(workbook: str, mode: str):
    """Parse one workbook and run the extraction"""
    tree = WorkbookLoader.load_tree(Path(workbook))
    return extract_workbook(tree, DependencyMode.from_string(mode))


@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', is_flag=True, help='Verbose mode (DEBUG)')
@click.option('--log-file', type=click.Path(), help='Log file (overrides auto-logging)')
@click.option('--no-auto-log', is_flag=True, default=False, help='Disable automatic log files')
@click.pass_context
def cli(ctx, verbose, log_file, no_auto_log):
    """twbgraph - fields and calculation dependencies of Tableau workbooks"""
    ctx.ensure_object(dict)
    config = get_config()
    ctx.obj['config'] = config

    command_name = ctx.invoked_subcommand or 'cli'
    use_auto_log = not log_file and not no_auto_log and config.auto_log_enabled

    log_level = "DEBUG" if verbose else config.log_level
    log_file_path = setup_logging(
        log_level=log_level,
        log_file=log_file or config.log_file,
        auto_log=use_auto_log,
        command_name=command_name,
        log_dir=config.log_dir
    )
    ctx.obj['log_file_path'] = log_file_path

    if log_file_path:
        logging.getLogger(__name__).info(f"Execution log saved to: {log_file_path}")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--mode', type=click.Choice(MODE_CHOICES), default=None,
              help='Dependency extraction mode (default: from config, token-scan)')
@click.option('--extension', '-e', default=None, help='Workbook extension (default: twb)')
@click.option('--output-dir', '-o', type=click.Path(), help='Output directory (default: ./output)')
@click.option('--export-json/--no-export-json', default=True, help='Export JSON (default: True)')
@click.pass_context
def extract(ctx, path, mode, extension, output_dir, export_json):
    """Extract fields and dependencies from one workbook or a directory"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        mode = DependencyMode.from_string(mode) if mode else config.dependency_mode
        loader = WorkbookLoader(path, extension or config.workbook_extension)
        workbooks = loader.find_workbooks()
        output_path = Path(output_dir) if output_dir else Path(config.output_dir)

        for workbook in tqdm(workbooks, desc="Extracting workbooks", disable=len(workbooks) < 2):
            result = extract_workbook(loader.load_tree(workbook), mode)
            summary = result.summary()

            click.echo("\n" + "=" * 60)
            click.echo(workbook.name)
            click.echo("=" * 60)
            click.echo(f"Datasources: {', '.join(result.datasources) or '-'}")
            click.echo(f"Fields: {summary['fields']}")
            for category in ('Parameter', 'CalculatedField', 'DefaultField'):
                click.echo(f"  {category}: {summary[category]}")
            click.echo(f"Relationships: {summary['relationships']} ({mode.value})")

            if export_json:
                json_file = export_result_json(result, output_path / f"{workbook.stem}_fields.json")
                click.echo(f"✓ JSON exported: {json_file}")

        click.echo("\n✅ Extraction complete!")

    except TwbGraphError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        click.echo(f"❌ Unexpected error: {e}", err=True)
        sys.exit(1)


def _echo_tree(node, indent: int = 0):
    """Print a lineage tree"""
    marker = ""
    if node.get("truncated"):
        marker = " ..."
    elif node.get("cycle"):
        marker = " (cycle)"
    click.echo(f"{'  ' * indent}- {node['name']}{marker}")
    for child in node["children"]:
        _echo_tree(child, indent + 1)


@cli.command()
@click.argument('workbook', type=click.Path(exists=True, dir_okay=False))
@click.argument('field_caption')
@click.option('--direction', type=click.Choice(['upstream', 'downstream', 'both']), default='both',
              help='Lineage direction (default: both)')
@click.option('--max-depth', type=int, default=None, help='Maximum depth (default: 10)')
@click.option('--mode', type=click.Choice(MODE_CHOICES), default=None, help='Dependency extraction mode')
@click.pass_context
def lineage(ctx, workbook, field_caption, direction, max_depth, mode):
    """Show the lineage of a field"""
    config = ctx.obj['config']

    try:
        result = _load_result(workbook, mode or config.dependency_mode.value)
        graph = FieldLineageGraph.from_result(result)

        if graph.get_field_info(field_caption) is None:
            click.echo(f"❌ Field not found: {field_caption}", err=True)
            sys.exit(1)

        depth = max_depth or config.lineage_max_depth
        directions = ['upstream', 'downstream'] if direction == 'both' else [direction]
        for current in directions:
            click.echo(f"\n{current.capitalize()} of {field_caption}:")
            tree = graph.trace_lineage(field_caption, current, depth)
            if not tree["children"]:
                click.echo("  (none)")
            for child in tree["children"]:
                _echo_tree(child, 1)

    except TwbGraphError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('workbook', type=click.Path(exists=True, dir_okay=False))
@click.argument('term')
@click.pass_context
def search(ctx, workbook, term):
    """Search fields by caption, name, id or formula"""
    config = ctx.obj['config']

    try:
        result = _load_result(workbook, config.dependency_mode.value)
        matches = result.search(term)
        if not matches:
            click.echo(f"No field matches '{term}'")
            return

        for record in matches:
            click.echo(f"[{record.category.value}] {record.caption} ({record.datasource_caption})")
            if record.calculation_formula:
                click.echo(f"    = {record.calculation_formula}")

    except TwbGraphError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()
