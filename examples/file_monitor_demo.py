#!/usr/bin/env python3
"""
Demonstration script for the file monitor.

This script caches the result of a small "build" (counting lines of the
matched source files) and only reruns it when a watched file changed or the
configuration key differs from the one the cached result was built for.

Usage:
    python examples/file_monitor_demo.py [--root PATH] [--pattern GLOB] [--key TEXT]
"""

import logging
import logging.config
from pathlib import Path

import click
from file_monitor import (
    ExactFileHashed,
    ExpectedAbsent,
    FileMonitor,
    GlobPattern,
    MonitorConfig,
)
from file_monitor.models import BaseError
from rich.console import Console
from rich.panel import Panel
from rich.progress import track
from rich.table import Table

logger = logging.getLogger(__name__)

# Initialize rich console
console = Console()


def count_lines(root: Path, patterns: list[GlobPattern]) -> dict[str, int]:
    """The cached action: count lines of every file the patterns match."""
    counts = {}
    for spec in patterns:
        base = root / spec.base_dir
        for path in sorted(base.glob(spec.pattern)):
            if path.is_file():
                counts[path.relative_to(root).as_posix()] = len(path.read_text(errors="replace").splitlines())
    return counts


def create_monitor_stats_table(stats: dict) -> Table:
    """Create a rich table for monitor statistics."""
    table = Table(title="📊 Monitor Statistics", show_header=True)
    table.add_column("Metric", style="cyan", width=22)
    table.add_column("Value", style="white", width=12)
    table.add_column("Details", style="dim", width=34)

    outcomes = stats["outcomes"]
    probe_stats = stats["probe_stats"]

    table.add_row("🔍 Checks", str(stats["checks"]), "Calls to check()")
    table.add_row("💾 Updates", str(stats["updates"]), "Snapshots written")
    table.add_row("✅ Unchanged", str(outcomes["unchanged"]), "Cached result reused")
    table.add_row("✏️  File changed", str(outcomes["file_changed"]), "Watched file or glob match differs")
    table.add_row("🔑 Value changed", str(outcomes["value_changed"]), "Configuration key differs")
    table.add_row("🆕 First run", str(outcomes["first_run"]), "No cache file yet")
    table.add_row("⚠️  Corrupt cache", str(outcomes["corrupt_cache"]), "Cache file could not be decoded")
    table.add_row("📁 Files statted", str(probe_stats["files_statted"]), "stat() calls while probing")
    table.add_row("#️⃣  Files hashed", str(probe_stats["files_hashed"]), "Content digests computed")
    table.add_row("♻️  Digests reused", str(probe_stats["digests_reused"]), "Skipped rehash, mtime unchanged")

    return table


def create_sample_files(root: Path):
    """Create a small source tree to monitor."""
    sample_files = {
        "project.cfg": "name = demo\nversion = 1.0\n",
        "src/main.txt": "entry point\ncalls util\n",
        "src/util.txt": "helpers\n",
        "src/notes.md": "not matched by the default pattern\n",
    }

    console.print("📝 [bold blue]Creating Sample Files[/bold blue]")
    for file_path, content in track(sample_files.items(), description="Creating files..."):
        full_path = root / file_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content, encoding="utf-8")

    console.print(f"✅ [bold green]Created {len(sample_files)} sample files in {root}[/bold green]")


def run_demo(root: Path, cache_file: Path, patterns: list[str], key: str, only_value: bool, rebuild: bool):
    config = MonitorConfig()
    monitor = FileMonitor(cache_file, config=config, check_if_only_value_changed=only_value)

    globs = [GlobPattern.parse(pattern) for pattern in patterns]
    specs = [ExactFileHashed(path="project.cfg"), ExpectedAbsent(path="project.local.cfg"), *globs]

    if rebuild:
        monitor.invalidate()

    result = monitor.check(root, specs, key)
    if result.changed:
        console.print(
            Panel.fit(
                f"🔄 [bold yellow]Rebuilding[/bold yellow]: {result.reason}",
                title="Check Result",
                border_style="yellow",
            )
        )
        timestamp = monitor.begin_snapshot()
        counts = count_lines(root, globs)
        monitor.update(root, specs, key=key, value=counts, timestamp=timestamp)
    else:
        console.print(
            Panel.fit(
                "✅ [bold green]Up to date[/bold green]: reusing the cached result",
                title="Check Result",
                border_style="green",
            )
        )
        counts = result.value

    results_table = Table(title="📄 Line Counts", show_header=True)
    results_table.add_column("File", style="cyan")
    results_table.add_column("Lines", style="white", justify="right")
    for path, lines in counts.items():
        results_table.add_row(path, str(lines))
    console.print(results_table)

    console.print(create_monitor_stats_table(monitor.get_monitoring_stats()))


@click.command()
@click.option(
    '--root',
    '-r',
    type=click.Path(path_type=Path),
    default=Path('./demo_project'),
    help='Project root to monitor',
)
@click.option(
    '--cache-file',
    '-c',
    type=click.Path(path_type=Path),
    default=Path('./.demo_cache/line_counts.monitor'),
    help='Cache file holding the snapshot (keep it outside the root)',
)
@click.option('--pattern', '-p', multiple=True, default=['src/*.txt'], help='Glob of source files (repeatable)')
@click.option('--key', '-k', default='default', help='Configuration key the result is built for')
@click.option('--only-value', is_flag=True, help='Probe files before reporting a key change')
@click.option('--rebuild', is_flag=True, help='Invalidate the cache before checking')
@click.option('--create-samples', '-s', is_flag=True, help='Create a sample project first')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def main(
    root: Path,
    cache_file: Path,
    pattern: tuple[str, ...],
    key: str,
    only_value: bool,
    rebuild: bool,
    create_samples: bool,
    verbose: bool,
):
    """
    Run the file monitor demonstration.

    Run it twice: the first run builds and records a snapshot, the second
    reuses the cached result. Edit, add or remove a matched file, or pass
    a different --key, and run it again to see the change reported.

    Example usage:

        # Create a sample project and build it
        python examples/file_monitor_demo.py -s

        # Same build under another configuration key
        python examples/file_monitor_demo.py -k release
    """
    log_config = MonitorConfig(debug_mode=verbose).get_log_config()
    logging.config.dictConfig(log_config)

    try:
        if create_samples:
            create_sample_files(root)
        run_demo(root, cache_file, list(pattern), key, only_value, rebuild)
    except BaseError as e:
        console.print(f"❌ [red]Monitor error:[/red] {e}")
        logger.error("Demo failed: %r", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
