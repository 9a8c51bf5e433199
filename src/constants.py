"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    PARSE_ERROR = 3
    EXIT_WARNINGS = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    BASE_URI_FORMAT = "https://git.alpinelinux.org/aports/plain/main/%s/APKBUILD"
    WOLFI_INDEX_URL = "https://packages.wolfi.dev"
    DEFAULT_OUT_DIR = "generated"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "APKCONVERT_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    USER_AGENT = "apkconvert/0.1"

    # One request every second to avoid hammering the origin server
    RATE_LIMIT_PER_SEC = 1.0
    RATE_LIMIT_BURST = 1

    # melange environment defaults
    ENV_REPOSITORIES = [
        "https://packages.wolfi.dev/bootstrap/stage3",
        "https://packages.wolfi.dev/os",
    ]
    ENV_KEYRING = [
        "https://packages.wolfi.dev/bootstrap/stage3/wolfi-signing.rsa.pub",
        "https://packages.wolfi.dev/os/wolfi-signing.rsa.pub",
    ]
    ENV_PACKAGES = [
        "busybox",
        "ca-certificates-bundle",
        "build-base",
        "automake",
        "autoconf",
    ]
    ADDITIONAL_REPOSITORIES: list = []
    ADDITIONAL_KEYRINGS: list = []
