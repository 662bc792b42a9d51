"""
Error state and error mapping for directory operations.

Every operation on a :py:class:`~ldapdirectory.session.DirectorySession`
leaves an :py:class:`ErrorState` behind on the session.  Operations decorated
with :py:func:`maps_errors` turn a non-zero error state into a
:py:class:`DirectoryError`; operations decorated with :py:func:`reports_errors`
only record it and return ``False``.
"""

import logging
from collections import namedtuple
from collections.abc import Callable
from functools import wraps
from typing import Any

from ldapdirectory import ldap

logger = logging.getLogger("django-ldapdirectory")


class ErrorState(namedtuple("ErrorState", ["code", "message"])):
    """
    The ``(code, message)`` pair left behind by the last operation on a session.

    ``code`` is the numeric LDAP result code (``0`` means success, negative
    values are client-side errors from libldap) and ``message`` is its
    human readable description.
    """

    __slots__ = ()

    #: The error state after a successful operation.
    SUCCESS: "ErrorState"

    @classmethod
    def from_exception(cls, exc: ldap.LDAPError) -> "ErrorState":  # type: ignore[name-defined]
        """
        Build an :py:class:`ErrorState` from a python-ldap exception.

        Args:
            exc: the exception raised by python-ldap

        Returns:
            The error state described by ``exc``.

        """
        info = details(exc)
        return cls(int(info.get("result", -1)), info.get("desc") or str(exc))


ErrorState.SUCCESS = ErrorState(0, "Success")


def details(exc: ldap.LDAPError) -> dict[str, Any]:  # type: ignore[name-defined]
    """
    Return the info dictionary python-ldap attaches to its exceptions.

    Args:
        exc: the exception raised by python-ldap

    Returns:
        The info dictionary, or an empty one if ``exc`` doesn't carry one.

    """
    if exc.args and isinstance(exc.args[0], dict):
        return exc.args[0]
    return {}


class DirectoryError(Exception):
    """
    A directory operation failed.

    Args:
        code: the LDAP result code reported by python-ldap
        message: the description of ``code``

    Keyword Args:
        info: the diagnostic message from the server, if any

    """

    def __init__(self, code: int, message: str, info: str | None = None) -> None:
        super().__init__(code, message)
        #: The LDAP result code.
        self.code: int = code
        #: The description of :py:attr:`code`.
        self.message: str = message
        #: The diagnostic message from the server, if it sent one.
        self.info: str | None = info

    def __str__(self) -> str:
        if self.info:
            return f"{self.message} ({self.code}): {self.info}"
        return f"{self.message} ({self.code})"


class AuthenticationError(DirectoryError):
    """
    A bind was rejected.
    """


class NotConnected(Exception):  # noqa: N818
    """
    The session has no connection: it was never connected or has been closed.
    """


def _record(session: Any, exc: ldap.LDAPError, operation: str, args: tuple) -> ErrorState:  # type: ignore[name-defined]
    state = ErrorState.from_exception(exc)
    session._error = state
    target = args[0] if args else ""
    logger.warning(
        "ldapdirectory.session.%s.failed target=%s code=%d message=%s",
        operation,
        target,
        state.code,
        state.message,
    )
    return state


def maps_errors(
    exception_class: type[DirectoryError] = DirectoryError,
) -> Callable:
    """
    Decorator for session methods whose failures must raise.

    The wrapped method calls a python-ldap primitive.  If that raises
    :py:exc:`ldap.LDAPError`, the error state is recorded on the session and
    ``exception_class`` is raised in its place.  Otherwise the session's error
    state is reset to :py:attr:`ErrorState.SUCCESS` and the method's return
    value is passed through unchanged.

    Args:
        exception_class: the :py:class:`DirectoryError` subclass to raise

    Returns:
        A decorator.

    """

    def real_decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, *args, **kwargs) -> Any:
            # The wrapped method may itself leave a non-fatal error state
            # behind (see DirectorySession._search), so reset it first.
            self._error = ErrorState.SUCCESS
            try:
                return func(self, *args, **kwargs)
            except ldap.LDAPError as e:  # type: ignore[attr-defined]
                state = _record(self, e, func.__name__, args)
                raise exception_class(
                    state.code, state.message, info=details(e).get("info")
                ) from e

        return wrapper

    return real_decorator


def reports_errors(func: Callable) -> Callable:
    """
    Decorator for session methods that report failure by returning ``False``.

    A :py:exc:`ldap.LDAPError` from the wrapped method is recorded on the
    session and logged; the caller has to check the return value (or
    :py:attr:`~ldapdirectory.session.DirectorySession.last_error`).

    Args:
        func: the method to wrap

    Returns:
        The wrapped method.

    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> bool:
        self._error = ErrorState.SUCCESS
        try:
            func(self, *args, **kwargs)
        except ldap.LDAPError as e:  # type: ignore[attr-defined]
            _record(self, e, func.__name__, args)
            return False
        return True

    return wrapper
