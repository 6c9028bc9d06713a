"""treewalk: iterative depth-first directory walker with a typed event stream."""

__version__ = "0.1.0"


class TreewalkError(Exception):
    """User-facing CLI error.

    Raised for invalid arguments, missing directories, and walks aborted by
    the access policy. The message is printed to stderr and the process
    exits with code 1.
    """
