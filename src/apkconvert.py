"""apkconvert - APKBUILD to melange config converter

    Returns:
        int: Exit code
"""
import logging
import os
import sys

from args import parse_args
from cli_config import apply_cli_overrides, apply_config, load_config
from common.errors import FetchError, ParseError, ResolutionError, ValidationError, WriteError
from common.http_client import HttpClient, RateLimiter
from common.logging_utils import configure_logging
from constants import Constants, ExitCodes
from converter import Converter

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    """Configure logging based on CLI arguments."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.LOG_LEVEL_ENV] = str(args.LOG_LEVEL).upper()
    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def apkbuild_location(package: str) -> str:
    """Return the APKBUILD location for a package name or pass through a URI/path."""
    if "/" in package or os.sep in package:
        return package
    return Constants.BASE_URI_FORMAT % package


def run(args) -> int:
    """Run a conversion for parsed ``args`` and return an exit code."""
    client = HttpClient(limiter=RateLimiter(Constants.RATE_LIMIT_PER_SEC, Constants.RATE_LIMIT_BURST))
    options = {
        "out_dir": Constants.DEFAULT_OUT_DIR,
        "additional_repositories": Constants.ADDITIONAL_REPOSITORIES,
        "additional_keyrings": Constants.ADDITIONAL_KEYRINGS,
    }

    location = apkbuild_location(args.package)
    name = None if location == args.package else args.package
    logger.info("generating melange config files for APKBUILD %s", location)

    try:
        if args.NO_INDEX:
            converter = Converter(client, **options)
        else:
            converter = Converter.new(client, Constants.WOLFI_INDEX_URL, **options)
        written = converter.generate(location, name)
    except ParseError as exc:
        logger.error("Parse error: %s", exc)
        return ExitCodes.PARSE_ERROR.value
    except FetchError as exc:
        logger.error("Fetch error: %s", exc)
        return ExitCodes.CONNECTION_ERROR.value
    except (ResolutionError, ValidationError, WriteError) as exc:
        logger.error("%s", exc)
        return ExitCodes.FILE_ERROR.value

    logger.info("wrote %d melange config(s) to %s", len(written), Constants.DEFAULT_OUT_DIR)
    if converter.warnings and getattr(args, "ERROR_ON_WARNINGS", False):
        logger.warning("%d package(s) need manual follow-up", converter.warnings)
        return ExitCodes.EXIT_WARNINGS.value
    return ExitCodes.SUCCESS.value


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    try:
        apply_config(load_config(getattr(args, "CONFIG", None)))
    except ValueError as exc:
        logger.error("%s", exc)
        return ExitCodes.FILE_ERROR.value
    apply_cli_overrides(args)

    return run(args)


if __name__ == "__main__":
    sys.exit(main())
