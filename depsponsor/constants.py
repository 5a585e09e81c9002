from enum import IntEnum


class ExitCodes(IntEnum):
    """Exit codes for the program."""

    SUCCESS = 0
    FILE_ERROR = 1  # manifest or configuration unusable
    AUTH_ERROR = 2  # every lookup rejected for lack of a valid credential
    INTERRUPTED = 130


MISSING_TOKEN_NOTE = (
    "Note: Set the GITHUB_TOKEN env var or install/auth the GitHub CLI "
    "for sponsor counts and more reliable funding data."
)
