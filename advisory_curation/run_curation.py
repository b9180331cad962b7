#!/usr/bin/env python3
"""
Command line entry point for advisory curation.

Subcommands:
- export:  Index advisory repositories and export them as CSV or YAML
- import:  Merge an exported YAML bundle into an advisory repository
- summary: Print package/advisory counts and the latest-status distribution
- curate:  Filter a scanner JSON report, dropping likely false positives

Usage:
    python run_curation.py export -a ../advisories -f yaml -o advisories.yaml
    python run_curation.py import advisories.yaml -a ../advisories
    python run_curation.py curate scan.json -o curated.json
"""
import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from advisories import (
    AdvisoryIndex,
    MergeStrategy,
    export_selection,
    merge,
    parse_bundle,
    validate_format,
    write_index,
)
from advisories.exporter import EXPORT_FORMATS
from matching import Match
from observability import CurationMetrics, CurationReporter
from settings import build_validator, load_config
from storage import Database, DatabaseStorage, DirectoryStorage, StorageAdapter

logger = logging.getLogger(__name__)


class CurationApp:
    """
    Wires configuration, storage, the advisory index and the match
    validator together for the command line.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.reporter = CurationReporter()
        self._databases: List[Database] = []

    def close(self):
        for db in self._databases:
            db.close()
        self._databases = []

    def load_index(self, repo_dirs: Sequence[str], database: Optional[str] = None) -> AdvisoryIndex:
        """
        Build one index over every configured source.

        Raises:
            ValueError: If no source is given and none is configured
        """
        database = database or self._configured_database()
        repo_dirs = list(repo_dirs) or list(self.config["advisories"]["repo_dirs"])
        if not repo_dirs and not database:
            raise ValueError("no advisories repo dir specified")

        storages: List[StorageAdapter] = [DirectoryStorage(d) for d in repo_dirs]
        if database:
            storages.append(self._database_storage(database))

        indices = []
        for storage in storages:
            try:
                indices.append(AdvisoryIndex.build(
                    storage, max_workers=self.config["index"]["max_workers"]
                ))
            except Exception as e:
                logger.error(f"Unable to index advisory configs in {storage!r}: {e}")
                raise

        index = indices[0] if len(indices) == 1 else AdvisoryIndex.combine(indices)
        logger.info(f"Indexed {len(index)} packages from {len(storages)} source(s)")
        return index

    def export(
        self,
        repo_dirs: Sequence[str],
        fmt: Optional[str] = None,
        output: Optional[str] = None,
        database: Optional[str] = None,
    ) -> int:
        """Export every indexed document; returns the number of packages."""
        fmt = validate_format(fmt or self.config["export"]["default_format"])

        index = self.load_index(repo_dirs, database)
        selection = index.select()
        write_output(export_selection(selection, fmt), output)
        logger.info(f"Exported {len(selection)} packages as {fmt}")
        return len(selection)

    def import_bundle(
        self,
        bundle_path: str,
        repo_dir: Optional[str] = None,
        database: Optional[str] = None,
        strategy: MergeStrategy = MergeStrategy.STRICT,
    ) -> int:
        """
        Merge a YAML bundle into one repository and write changed documents.

        Returns:
            Number of documents written back
        """
        database = database or self._configured_database()
        if repo_dir:
            storage: StorageAdapter = DirectoryStorage(repo_dir)
        elif database:
            storage = self._database_storage(database)
        else:
            raise ValueError("no advisories repo dir specified")

        incoming = parse_bundle(Path(bundle_path).read_bytes())
        existing = AdvisoryIndex.build(storage, max_workers=self.config["index"]["max_workers"])
        merged = merge(existing, incoming, strategy)

        changed = [
            name for name in merged.packages
            if merged.get(name) != existing.get(name)
        ]
        return write_index(merged, storage, changed)

    def summary(self, repo_dirs: Sequence[str], database: Optional[str] = None) -> str:
        index = self.load_index(repo_dirs, database)
        return self.reporter.selection_summary(index.select())

    def curate(self, report_path: str, output: Optional[str] = None) -> CurationMetrics:
        """
        Drop likely false-positive matches from a scanner JSON report.

        The report is re-emitted with only the kept matches; all other
        top-level keys are preserved.
        """
        with open(report_path) as f:
            report = json.load(f)

        raw_matches = report.get("matches") or []
        matches = [Match.from_dict(m) for m in raw_matches]

        metrics = CurationMetrics(
            run_id=f"curate_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}",
            started_at=datetime.utcnow(),
        )
        validator = build_validator(self.config)
        kept, rejected = validator.filter_matches(matches, metrics)
        metrics.completed_at = datetime.utcnow()

        for match, reason in rejected:
            logger.info(f"  Dropped {match.vulnerability.id} for {match.package.name}: {reason}")

        curated = dict(report, matches=[m.raw for m in kept])
        write_output((json.dumps(curated, indent=2) + "\n").encode("utf-8"), output)
        logger.info("\n" + self.reporter.curation_report(metrics))
        return metrics

    def _configured_database(self) -> Optional[str]:
        """database.path from config, when that file exists."""
        path = self.config["database"].get("path")
        if path and Path(path).is_file():
            logger.debug(f"Using configured database {path}")
            return path
        return None

    def _database_storage(self, path: str) -> DatabaseStorage:
        db = Database(path)
        db.initialize_schema()
        self._databases.append(db)
        return DatabaseStorage(db)


def write_output(data: bytes, location: Optional[str] = None):
    """
    Write bytes to a file, or to stdout when no location is given.

    Raises:
        OSError: If the output file cannot be created, with the cause chained
    """
    if not location:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return

    try:
        f = open(location, "wb")
    except OSError as e:
        raise OSError(f"unable to create output file {location!r}: {e}") from e

    with f:
        f.write(data)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Advisory index and match curation tools")
    parser.add_argument("--config", default=None, help="Path to configuration file (default: config.yaml if present)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_sources(p: argparse.ArgumentParser, multiple: bool = True):
        p.add_argument(
            "-a", "--advisories-repo-dir",
            dest="repo_dirs",
            action="append" if multiple else "store",
            default=[] if multiple else None,
            help="directory containing an advisories repository",
        )
        p.add_argument("--database", default=None, help="DuckDB file holding advisory documents")

    export = sub.add_parser("export", help="Export advisory data")
    add_sources(export)
    export.add_argument(
        "-f", "--format",
        default=None,
        help=f"Output format. One of: [{', '.join(EXPORT_FORMATS)}] (default: csv)",
    )
    export.add_argument("-o", "--output", default=None, help="output location (default: stdout)")

    imp = sub.add_parser("import", help="Merge an exported YAML bundle into a repository")
    imp.add_argument("bundle", help="YAML bundle produced by export -f yaml")
    add_sources(imp, multiple=False)
    imp.add_argument(
        "--strategy",
        choices=[s.value for s in MergeStrategy],
        default=MergeStrategy.STRICT.value,
        help="how to treat events already in the recorded history (default: strict)",
    )

    summary = sub.add_parser("summary", help="Summarize indexed advisories")
    add_sources(summary)

    curate = sub.add_parser("curate", help="Filter a scanner JSON report")
    curate.add_argument("report", help="scanner JSON report with a top-level 'matches' list")
    curate.add_argument("-o", "--output", default=None, help="output location (default: stdout)")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    app = None
    try:
        if args.command == "export" and args.format is not None:
            validate_format(args.format)

        app = CurationApp(load_config(args.config))

        if args.command == "export":
            app.export(args.repo_dirs, args.format, args.output, args.database)
        elif args.command == "import":
            app.import_bundle(args.bundle, args.repo_dirs, args.database, MergeStrategy(args.strategy))
        elif args.command == "summary":
            print(app.summary(args.repo_dirs, args.database))
        elif args.command == "curate":
            app.curate(args.report, args.output)

        return 0

    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1

    finally:
        if app is not None:
            app.close()


if __name__ == "__main__":
    sys.exit(main())
