"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~httpunwrap.exceptions.UnwrapError` subclass.
Shell wrappers can inspect the exit code to tell a transport failure from
a payload that could not be decoded without parsing stderr.

Example::

    $ httpunwrap decode broken.json
    $ echo $?
    7   # EXIT_MALFORMED_PAYLOAD -- the body was detected but did not parse
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or unencodable input."""

EXIT_CLIENT_ERROR = 4
"""The remote endpoint answered with an HTTP 4xx status."""

EXIT_SERVER_ERROR = 5
"""The remote endpoint answered with an HTTP 5xx status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_MALFORMED_PAYLOAD = 7
"""A payload was detected as JSON or XML but its parser rejected it."""
