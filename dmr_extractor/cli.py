"""
Command-line interface for the DMR vehicle designation extractor.

QUICK START:
    dmr-extractor --parser string --infile ESStatistikListeModtag.zip --outfile out.csv

USAGE MODES:
    Defaults:   parser=string, workers=cpu count - 1, log-level=INFO
    Strict xml: --parser xml (a malformed record aborts the run, no output written)
    Lenient:    --parser xml --lenient (malformed records are skipped and counted)
    Debugging:  --sequential (single-threaded, same results)

EXIT CODES:
    0 success, 1 aborted (parse failure, worker crash, unreadable input, bad
    configuration), 2 input file missing, 3 output file could not be written
"""

import argparse
import logging
import sys

from pathlib import Path
from typing import List, Optional

from .config.config_manager import ConfigManager, ProcessingParameters
from .config.processing_defaults import ProcessingDefaults
from .exceptions import (ConfigurationError, InputFileNotFoundError, InputStreamError,
                         OutputWriteError, PipelineAbortedError, WorkerCrashedError)
from .input_source import check_input_file, open_input
from .monitoring.performance_monitor import PerformanceMonitor
from .output.key_writer import KeyWriter
from .parsing import PARSERS, create_parser
from .processing.parallel_coordinator import ParallelCoordinator
from .processing.sequential_processor import SequentialProcessor

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_INPUT_MISSING = 2
EXIT_OUTPUT_FAILED = 3

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_level: str, log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up console (and optional file) logging for the dmr_extractor package.

    The root logger stays at WARNING so third-party modules stay quiet.
    """
    level = getattr(logging, log_level.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    package_logger = logging.getLogger('dmr_extractor')
    package_logger.setLevel(level)
    package_logger.propagate = False
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    logging.getLogger('lxml').setLevel(logging.WARNING)
    return logging.getLogger(__name__)


def build_arg_parser(env_params: ProcessingParameters) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dmr-extractor",
        description="Extract unique vehicle brand;model designations from a DMR statistics export",
    )
    parser.add_argument("--parser", choices=PARSERS, default=env_params.parser,
                        help=f"Parser to use: 'string' or 'xml' (default: {env_params.parser})")
    parser.add_argument("--infile", default=ProcessingDefaults.INFILE,
                        help=f"DMR XML file in UTF-8 format, or a ZIP archive holding it "
                             f"(default: {ProcessingDefaults.INFILE})")
    parser.add_argument("--outfile", default=ProcessingDefaults.OUTFILE,
                        help=f"Name of file to write brand;model lines to (default: {ProcessingDefaults.OUTFILE})")
    parser.add_argument("--workers", type=int, default=env_params.workers,
                        help="Number of parallel workers (default: cpu count - 1)")
    parser.add_argument("--lenient", action="store_true", default=not env_params.strict,
                        help="With --parser xml: skip malformed records instead of aborting the run")
    parser.add_argument("--sequential", action="store_true",
                        help="Parse in a single thread (debugging)")
    parser.add_argument("--profile", default=env_params.profile_path,
                        help="Marker profile file (.json, .yaml) overriding record and field markers")
    parser.add_argument("--encoding", default=env_params.encoding,
                        help=f"Input encoding (default: {env_params.encoding})")
    parser.add_argument("--log-level", default=ProcessingDefaults.LOG_LEVEL,
                        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
                        help=f"Logging level (default: {ProcessingDefaults.LOG_LEVEL})")
    parser.add_argument("--log-file", help="Also write the log to this file")
    return parser


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Args:
        args: Optional command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    if args is None:
        args = sys.argv[1:]

    try:
        env_params = ProcessingParameters.from_environment()
    except ConfigurationError as e:
        print(f"abort: {e}", file=sys.stderr)
        return EXIT_ABORTED

    options = build_arg_parser(env_params).parse_args(args)
    logger = setup_logging(options.log_level, options.log_file)

    try:
        config_manager = ConfigManager(ProcessingParameters(
            parser=options.parser,
            workers=options.workers,
            strict=not options.lenient,
            queue_depth_factor=env_params.queue_depth_factor,
            encoding=options.encoding,
            profile_path=options.profile,
        ))
        markers = config_manager.get_marker_config()
        parser = create_parser(options.parser, markers, strict=not options.lenient)
    except ConfigurationError as e:
        logger.error(f"abort: invalid configuration: {e}")
        return EXIT_ABORTED

    if options.log_level == "DEBUG":
        ProcessingDefaults.log_summary(logger)
    logger.info(f"Configuration: {config_manager.get_configuration_summary()}")

    try:
        check_input_file(options.infile)
    except InputFileNotFoundError as e:
        logger.error(f"abort: {e}")
        return EXIT_INPUT_MISSING

    params = config_manager.processing_params
    monitor = PerformanceMonitor()
    if options.sequential:
        processor = SequentialProcessor(parser, markers, monitor=monitor)
    else:
        processor = ParallelCoordinator(parser, markers, num_workers=params.worker_count,
                                        queue_depth_factor=params.queue_depth_factor, monitor=monitor)

    try:
        with open_input(options.infile, encoding=params.encoding) as stream:
            result = processor.run(stream)
    except PipelineAbortedError as e:
        logger.error(f"abort: parse failure, no output written: {e}")
        if e.excerpt_text:
            logger.debug(f"Failing excerpt:\n{e.excerpt_text}")
        return EXIT_ABORTED
    except WorkerCrashedError as e:
        logger.error(f"abort: {e}")
        return EXIT_ABORTED
    except InputStreamError as e:
        logger.error(f"abort: unable to read input: {e}")
        return EXIT_ABORTED
    except KeyboardInterrupt:
        logger.error("Processing interrupted by user")
        return EXIT_ABORTED

    if result.records_failed:
        logger.warning(f"{result.records_failed} malformed records were skipped")

    try:
        KeyWriter(encoding='utf-8').write(result.keys, Path(options.outfile))
    except OutputWriteError as e:
        logger.error(f"Extraction completed with {result.unique_keys} keys, but writing failed: {e}")
        return EXIT_OUTPUT_FAILED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
