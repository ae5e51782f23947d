import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict

from .core.ast_parser import should_skip_directory
from .core.constants import ASSET_EXTENSIONS
from .core.conversion import ConversionState, convert_project
from .schemas import ConversionOptions
from .setting import get_settings


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Reduce per-file noise unless debugging
    if log_level.upper() != "DEBUG":
        logging.getLogger("routeweave.core.rewrite").setLevel(logging.WARNING)
        logging.getLogger("routeweave.core.conversion.relocation").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def _is_binary(path: str) -> bool:
    return path.lower().endswith(ASSET_EXTENSIONS)


def read_project(root: Path) -> Dict[str, str]:
    """Read a project directory into ``path -> text``.

    Assets are read as latin-1 so their bytes survive the round trip.
    """
    files: Dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if not should_skip_directory(d)]
        for fname in filenames:
            full_path = Path(dirpath) / fname
            rel_path = full_path.relative_to(root).as_posix()
            try:
                if _is_binary(fname):
                    files[rel_path] = full_path.read_bytes().decode("latin-1")
                else:
                    files[rel_path] = full_path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning(f"Skipping unreadable file {rel_path}: {e}")
    return files


def write_project(files: Dict[str, str], root: Path) -> None:
    for rel_path, text in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if _is_binary(rel_path):
            target.write_bytes(text.encode("latin-1"))
        else:
            target.write_text(text, encoding="utf-8")


def main() -> int:
    """Main entry point for Routeweave."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Routeweave - React Router to Next.js converter")
    parser.add_argument("source", type=Path, help="React project directory")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Directory for the converted project")
    parser.add_argument(
        "--app-dir",
        action="store_true",
        help="Emit the app/ directory convention instead of pages/"
    )
    parser.add_argument(
        "--typescript",
        action="store_true",
        help="Emit typed output (forced on when the source is typed)"
    )
    parser.add_argument(
        "--include-examples",
        action="store_true",
        help="Add example pages and API routes"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Write the conversion result (logs, stats, file tree) as JSON"
    )
    args = parser.parse_args()

    setup_logging(args.log_level)

    if not args.source.is_dir():
        logger.error(f"Source directory not found: {args.source}")
        return 2

    logger.info(f"Converting {args.source} -> {args.output}")
    files = read_project(args.source)
    options = ConversionOptions(
        app_dir=args.app_dir,
        typescript=args.typescript,
        include_examples=args.include_examples,
    )
    result = convert_project(files, options, settings=settings)

    write_project(result.output.disk_files(), args.output)

    if args.report:
        report = result.to_dict()
        for category in ("pages", "components", "api", "styles", "config", "public"):
            report[category] = sorted(report[category])
        args.report.parent.mkdir(parents=True, exist_ok=True)
        args.report.write_text(json.dumps(report, indent=2), encoding="utf-8")
        logger.info(f"Report written to {args.report}")

    logs = result.logs
    print(f"\n  Routeweave finished: {result.state.value}")
    print(f"  {result.stats.total_files} input file(s), {result.stats.converted_files} converted")
    print(f"  {len(logs.errors)} error(s), {len(logs.warnings)} warning(s)")
    print(f"  Output written to: {args.output}\n")

    return 1 if result.state == ConversionState.FAILED else 0


if __name__ == "__main__":
    sys.exit(main())
