"""Conversion orchestrator.

Drives one run through its states:

    IDLE -> INGESTING -> ANALYZING -> TRANSFORMING -> ROUTE_PLACEMENT
         -> VALIDATING -> COMPLETED | COMPLETED_WITH_WARNINGS | FAILED

Analysis and skeleton synthesis finish before any file is rewritten, and
every per-file future resolves before placement starts. Failures are
turned into run-log entries at the stage that caught them; ``convert``
always returns a ConversionResult carrying a usable project.

Usage:
    result = convert_project({"src/App.js": "..."}, {"appDir": False})
    result.pages["index.js"]
"""

import logging
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from ...schemas import ConversionOptions, ConversionSettings
from ...setting import RouteweaveSettings, get_settings
from ..analyzer import ProjectAnalysis, analyze
from ..ast_parser import ParseFailure, parse_source, should_skip_directory
from ..classifier import classify
from ..errors import EmptyInputError, RewriteError, ValidationFailure
from ..rewrite import Convention, run_passes
from .file_tree import build_file_tree
from .logs import ConversionLog
from .models import (
    ConversionResult,
    ConversionState,
    ConversionStats,
    FileOutcome,
    OutputTree,
    ValidationResult,
)
from .placement import place_files, plan_placement
from .skeleton import DEFAULT_GLOBAL_STYLES, add_examples, build_default_project, build_skeleton, synthesize_missing
from .validator import validate

logger = logging.getLogger(__name__)

OptionsInput = Union[ConversionOptions, Mapping[str, Any], None]

_SEPARATORS = re.compile(r"/+")


class ConversionAborted(Exception):
    """Raised internally when the cancel event is set; never escapes ``convert``."""


def normalize_path(path: str) -> str:
    """``.\\src//App.js`` -> ``src/App.js``."""
    path = _SEPARATORS.sub("/", path.replace("\\", "/"))
    while path.startswith("./"):
        path = path[2:]
    return path.strip("/")


def ingest(
    files: Mapping[str, str],
    skip_directories: Iterable[str] = (),
    log: Optional[ConversionLog] = None,
) -> Dict[str, str]:
    """Normalize paths and drop files under skipped directories."""
    extra = set(skip_directories)
    normalized: Dict[str, str] = {}
    for raw_path, text in files.items():
        path = normalize_path(raw_path)
        if not path:
            continue
        directories = path.split("/")[:-1]
        if any(should_skip_directory(d) or d in extra for d in directories):
            continue
        if path in normalized and log is not None:
            log.warning(f"Duplicate path after normalization ({raw_path}); last one kept", file=path, source=logger)
        normalized[path] = text
    return normalized


class ConversionOrchestrator:
    """Runs conversions. One instance may serve many sequential runs."""

    def __init__(self, settings: Optional[RouteweaveSettings] = None):
        self._settings = settings or get_settings()
        self._state = ConversionState.IDLE

    @property
    def state(self) -> ConversionState:
        return self._state

    # ── Public entry point ───────────────────────────────────────────────

    def convert(
        self,
        files: Mapping[str, str],
        options: OptionsInput = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ConversionResult:
        """Convert a project given as ``path -> text``.

        Args:
            files: Project files, paths relative to the project root
            options: ConversionOptions or a ``{appDir, typescript, includeExamples}`` mapping
            cancel_event: Set to abort between per-file units

        Returns:
            ConversionResult in a terminal state. Never raises.
        """
        started = time.perf_counter()
        self._state = ConversionState.IDLE
        log = ConversionLog()
        stats = ConversionStats()
        request = _coerce_options(options)
        settings = ConversionSettings(
            app_dir=request.app_dir,
            typescript=request.typescript,
            include_examples=request.include_examples,
        )
        output = OutputTree(Convention.from_app_dir(settings.app_dir))

        try:
            return self._run(files, settings, output, log, stats, cancel_event, started)
        except ConversionAborted:
            log.warning("Conversion aborted; returning the partial project", source=logger)
            return self._finish(
                ConversionState.COMPLETED_WITH_WARNINGS, output, log, stats, started, aborted=True,
            )
        except Exception as e:
            logger.exception("Conversion pipeline crashed")
            log.error(f"Conversion failed: {e}", source=logger)
            fallback = OutputTree(output.convention)
            build_skeleton(fallback, None, settings.typescript)
            build_default_project(fallback, settings.typescript, settings.include_examples)
            return self._finish(ConversionState.FAILED, fallback, log, stats, started, error=str(e))

    # ── Stages ───────────────────────────────────────────────────────────

    def _run(
        self,
        files: Mapping[str, str],
        settings: ConversionSettings,
        output: OutputTree,
        log: ConversionLog,
        stats: ConversionStats,
        cancel_event: Optional[threading.Event],
        started: float,
    ) -> ConversionResult:
        with self._stage(ConversionState.INGESTING, stats):
            project = ingest(files, self._settings.skip_directories, log)
            stats.total_files = len(project)

        if not project:
            return self._convert_empty(settings, output, log, stats, started)

        with self._stage(ConversionState.ANALYZING, stats):
            analysis = analyze(project, self._settings, log)
            settings = self._resolve_settings(settings, analysis, log)
            self._report_analysis(analysis, log)
            build_skeleton(output, analysis, settings.typescript, _merge_styles(analysis, project))

        with self._stage(ConversionState.TRANSFORMING, stats):
            outcomes, aborted = self._transform(project, analysis, output.convention, log, cancel_event)
            stats.converted_files = sum(1 for o in outcomes.values() if o.ok and not o.passthrough)
            stats.failed_files = sum(1 for o in outcomes.values() if not o.ok)

        if aborted or (cancel_event is not None and cancel_event.is_set()):
            # Keep the files rewritten so far in the partial project
            with self._stage(ConversionState.ROUTE_PLACEMENT, stats):
                plan = plan_placement(project, analysis, output.convention, settings.typescript)
                place_files(plan, project, outcomes, output, analysis, settings.typescript, log, partial=True)
            raise ConversionAborted()

        with self._stage(ConversionState.ROUTE_PLACEMENT, stats):
            plan = plan_placement(project, analysis, output.convention, settings.typescript)
            place_files(plan, project, outcomes, output, analysis, settings.typescript, log)
            if settings.include_examples:
                add_examples(output, settings.typescript, pages=False)
            opaque = {
                output.full_path(*plan.targets[path])
                for path, outcome in outcomes.items()
                if outcome.passthrough and path in plan.targets
            }

        with self._stage(ConversionState.VALIDATING, stats):
            validation = self._validate(output, analysis, settings, opaque, log)

        warned = bool(log.errors) or not validation.valid
        state = ConversionState.COMPLETED_WITH_WARNINGS if warned else ConversionState.COMPLETED
        return self._finish(state, output, log, stats, started, validation=validation, routes=analysis.routes)

    def _convert_empty(
        self,
        settings: ConversionSettings,
        output: OutputTree,
        log: ConversionLog,
        stats: ConversionStats,
        started: float,
    ) -> ConversionResult:
        log.warning(f"{EmptyInputError().message}; default project generated", source=logger)
        with self._stage(ConversionState.ANALYZING, stats):
            build_skeleton(output, None, settings.typescript)
            build_default_project(output, settings.typescript, settings.include_examples)
        with self._stage(ConversionState.VALIDATING, stats):
            validation = self._validate(output, ProjectAnalysis(), settings, set(), log)
        return self._finish(
            ConversionState.COMPLETED_WITH_WARNINGS, output, log, stats, started, validation=validation,
        )

    def _resolve_settings(
        self,
        settings: ConversionSettings,
        analysis: ProjectAnalysis,
        log: ConversionLog,
    ) -> ConversionSettings:
        if analysis.uses_typed_dialect and not settings.typescript:
            log.info("Typed sources detected; generating typed output", source=logger)
            return settings.model_copy(update={"typescript": True})
        return settings

    def _report_analysis(self, analysis: ProjectAnalysis, log: ConversionLog) -> None:
        for name, reason in analysis.dependencies.incompatible:
            log.warning(f"Dependency {name} dropped: {reason}", file="package.json", source=logger)
        if analysis.route_error:
            log.error(
                f"Route extraction failed, placing the project without routes: {analysis.route_error}",
                file=analysis.router_config_path,
                source=logger,
            )

    def _transform(
        self,
        files: Mapping[str, str],
        analysis: ProjectAnalysis,
        convention: Convention,
        log: ConversionLog,
        cancel_event: Optional[threading.Event],
    ) -> Tuple[Dict[str, FileOutcome], bool]:
        """Run the rewrite passes over every script file on the worker pool.

        Returns the outcomes and whether the run was cancelled. A cancelled
        run still returns every file whose rewrite finished before the pool
        drained.
        """
        scripts = [p for p in sorted(files) if analysis.languages[p].is_script]
        max_bytes = self._settings.max_file_size_kb * 1024
        outcomes: Dict[str, FileOutcome] = {}
        aborted = False

        with ThreadPoolExecutor(max_workers=self._settings.max_workers) as executor:
            futures = {}
            try:
                for path in scripts:
                    _check_cancel(cancel_event)
                    future = executor.submit(self._transform_file, path, files[path], convention, max_bytes, log)
                    futures[future] = path

                for future in as_completed(futures):
                    _check_cancel(cancel_event)
                    outcomes[futures[future]] = future.result()
            except ConversionAborted:
                aborted = True
                for future in futures:
                    future.cancel()

        if aborted:
            # Futures already running when the event was seen have finished now
            for future, path in futures.items():
                if path not in outcomes and future.done() and not future.cancelled():
                    outcomes[path] = future.result()
            logger.info(f"Transform cancelled after {len(outcomes)} of {len(scripts)} script file(s)")
        else:
            logger.info(f"Transformed {len(outcomes)} script file(s) with {self._settings.max_workers} worker(s)")
        return outcomes, aborted

    def _transform_file(
        self,
        path: str,
        text: str,
        convention: Convention,
        max_bytes: int,
        log: ConversionLog,
    ) -> FileOutcome:
        """Parse, classify and rewrite one file. Never raises."""
        if len(text.encode("utf-8")) > max_bytes:
            log.warning(
                f"Larger than {self._settings.max_file_size_kb} KB; passed through unchanged",
                file=path,
                source=logger,
            )
            return FileOutcome.success(path, text, passthrough=True)

        tree = parse_source(text, path)
        if isinstance(tree, ParseFailure):
            log.error(f"Could not parse, file kept unchanged: {tree.describe()}", file=path, source=logger)
            return FileOutcome.failure(path, text, tree.describe())

        try:
            signals = classify(tree)
            result = run_passes(tree, signals, convention)
        except RewriteError as e:
            log.error(f"Rewrite failed, file kept unchanged: {e.message}", file=path, source=logger)
            return FileOutcome.failure(path, text, e.message)
        except Exception as e:
            logger.exception(f"Unexpected error rewriting {path}")
            log.error(f"Rewrite failed, file kept unchanged: {e}", file=path, source=logger)
            return FileOutcome.failure(path, text, str(e))

        for note in result.notes:
            log.warning(note, file=path, source=logger)
        if result.changed:
            log.success(f"Converted ({len(result.actions)} rewrite(s))", file=path, source=logger)

        return FileOutcome.success(
            path,
            result.tree.render(),
            actions=list(result.actions),
            notes=list(result.notes),
            backend_calls=list(signals.backend_calls),
        )

    def _validate(
        self,
        output: OutputTree,
        analysis: ProjectAnalysis,
        settings: ConversionSettings,
        opaque: Iterable[str],
        log: ConversionLog,
    ) -> ValidationResult:
        opaque = set(opaque)
        validation = validate(output, analysis.routes, output.convention, settings.typescript, opaque)
        if validation.missing:
            for path in synthesize_missing(output, validation.missing, settings.typescript):
                log.warning("Mandatory file was missing and has been generated", file=path, source=logger)
            validation = validate(output, analysis.routes, output.convention, settings.typescript, opaque)

        for message in validation.warnings:
            log.warning(message, source=logger)
        if not validation.valid:
            failure = ValidationFailure(validation.errors)
            log.warning(f"Output validation: {failure.message}", source=logger)
            for message in failure.errors:
                log.warning(message, source=logger)
        return validation

    # ── Helpers ──────────────────────────────────────────────────────────

    @contextmanager
    def _stage(self, state: ConversionState, stats: ConversionStats):
        self._state = state
        began = time.perf_counter()
        logger.debug(f"Entering {state.value}")
        try:
            yield
        finally:
            stats.stage_times[state.value] = (time.perf_counter() - began) * 1000

    def _finish(
        self,
        state: ConversionState,
        output: OutputTree,
        log: ConversionLog,
        stats: ConversionStats,
        started: float,
        **kwargs,
    ) -> ConversionResult:
        self._state = state
        stats.conversion_time = (time.perf_counter() - started) * 1000
        logger.info(
            f"Conversion {state.value}: {stats.total_files} input file(s), "
            f"{stats.converted_files} converted, {len(output)} output file(s) "
            f"in {stats.conversion_time:.0f} ms"
        )
        return ConversionResult(
            state=state,
            output=output,
            logs=log,
            stats=stats,
            file_structure=build_file_tree(output),
            **kwargs,
        )


def convert_project(
    files: Mapping[str, str],
    options: OptionsInput = None,
    cancel_event: Optional[threading.Event] = None,
    settings: Optional[RouteweaveSettings] = None,
) -> ConversionResult:
    """Convert a project with a fresh orchestrator."""
    return ConversionOrchestrator(settings).convert(files, options, cancel_event)


def _coerce_options(options: OptionsInput) -> ConversionOptions:
    if options is None:
        return ConversionOptions()
    if isinstance(options, ConversionOptions):
        return options
    return ConversionOptions.model_validate(dict(options))


def _check_cancel(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ConversionAborted()


def _merge_styles(analysis: ProjectAnalysis, files: Mapping[str, str]) -> str:
    """Global stylesheets imported by entry points, folded into one file."""
    if not analysis.global_styles:
        return DEFAULT_GLOBAL_STYLES
    parts = [f"/* {path} */\n{files[path].rstrip()}\n" for path in analysis.global_styles]
    return "\n".join(parts)
