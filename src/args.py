"""Argument parsing functionality for apkconvert."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="apkconvert",
        description="Converts an APKBUILD package into melange.yaml configs",
        epilog="example: apkconvert libx11",
        add_help=True,
    )

    parser.add_argument("package",
                        help="Package name (formatted into --base-uri-format) or APKBUILD URI/path",
                        type=str)
    parser.add_argument("-o", "--out-dir",
                        dest="OUT_DIR",
                        help="Directory where melange configs will be written (default: ./generated)",
                        action="store",
                        type=str)
    parser.add_argument("--base-uri-format",
                        dest="BASE_URI_FORMAT",
                        help="URI used to look up the APKBUILD for a package name, with %%s for the name",
                        action="store",
                        type=str)
    parser.add_argument("--additional-repositories",
                        dest="ADDITIONAL_REPOSITORIES",
                        help="Additional repository added to the melange environment (repeatable)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--additional-keyrings",
                        dest="ADDITIONAL_KEYRINGS",
                        help="Additional keyring added to the melange environment (repeatable)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--wolfi-index-url",
                        dest="WOLFI_INDEX_URL",
                        help="Bucket listing of already published Wolfi packages",
                        action="store",
                        type=str)
    parser.add_argument("--no-index",
                        dest="NO_INDEX",
                        help="Do not consult the Wolfi index; convert every reachable dependency",
                        action="store_true")

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to YAML configuration file",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if any package needed manual follow-up.",
                        action="store_true")

    return parser.parse_args(argv)
