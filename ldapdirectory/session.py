"""
Directory sessions.

A :py:class:`DirectorySession` owns one python-ldap connection and runs the
directory operations (add, modify, delete, rename and the three kinds of
search) against it.  Searches come back as
:py:class:`~ldapdirectory.results.SearchResult` objects instead of raw python-ldap
records.

Not every operation reports failure the same way:

* :py:meth:`DirectorySession.connect`, :py:meth:`DirectorySession.rename` and
  the searches raise :py:class:`~ldapdirectory.errors.DirectoryError`.
* :py:meth:`DirectorySession.bind` raises
  :py:class:`~ldapdirectory.errors.AuthenticationError`.
* :py:meth:`DirectorySession.add`, :py:meth:`DirectorySession.delete`,
  :py:meth:`DirectorySession.modify`, :py:meth:`DirectorySession.close` and the
  attribute level methods on :py:class:`~ldapdirectory.entries.Entry` return
  ``False``; check :py:attr:`DirectorySession.last_error` for the reason.

A session is not thread-safe.  Use one session per thread.
"""

import logging
from collections.abc import Iterable
from contextlib import suppress
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from ldap.ldapobject import LDAPObject

from ldapdirectory import ldap

from .errors import (
    AuthenticationError,
    DirectoryError,
    ErrorState,
    NotConnected,
    maps_errors,
    reports_errors,
)
from .results import SearchResult
from .typing import AttributeInput, LDAPData, ModifyModList
from .utils import add_modlist, modify_modlist

logger = logging.getLogger("django-ldapdirectory")

#: Result codes for a search the server cut short.  The entries received so
#: far are kept and the search result is marked as partial.
PARTIAL_RESULT_ERRORS = (
    ldap.SIZELIMIT_EXCEEDED,  # type: ignore[attr-defined]
    ldap.TIMELIMIT_EXCEEDED,  # type: ignore[attr-defined]
    ldap.ADMINLIMIT_EXCEEDED,  # type: ignore[attr-defined]
)


class DirectorySession:
    """
    One connection to a directory server.

    Example:
        .. code-block:: python

            with DirectorySession() as session:
                session.connect("ldap.example.com")
                session.bind("cn=admin,dc=example,dc=com", "secret")
                for entry in session.search("ou=people,dc=example,dc=com", "(uid=*)"):
                    print(entry.dn, entry.get("mail"))

    """

    def __init__(self) -> None:
        self.logger = logger
        #: The LDAP URI we last connected to.
        self.uri: str | None = None
        self._connection: LDAPObject | None = None
        self._error: ErrorState = ErrorState.SUCCESS

    def __repr__(self) -> str:
        state = "connected" if self.has_connection() else "closed"
        return f"<DirectorySession: {self.uri or '-'} {state}>"

    def __enter__(self) -> "DirectorySession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self.has_connection():
            self.close()

    @classmethod
    def from_settings(
        cls, server: str = "default", key: str = "read", bind: bool = True
    ) -> "DirectorySession":
        """
        Build a connected (and by default bound) session from
        ``settings.LDAP_SERVERS``.

        ``settings.LDAP_SERVERS[server][key]`` must be a dict with a ``url``
        key, and may have ``user``, ``password`` and ``timeout`` keys.  A
        ``user`` of ``None`` does an anonymous bind.

        Keyword Args:
            server: the name of the server in ``settings.LDAP_SERVERS``
            key: which connection of that server to use, e.g. ``read`` or ``write``
            bind: if ``False``, connect but don't bind

        Raises:
            ImproperlyConfigured: the settings for ``server`` and ``key`` are
                missing or have no ``url``
            AuthenticationError: the bind was rejected

        Returns:
            A new session.

        """
        try:
            config = settings.LDAP_SERVERS[server][key]
        except AttributeError as e:
            msg = "settings.LDAP_SERVERS does not exist!"
            raise ImproperlyConfigured(msg) from e
        except KeyError as e:
            msg = f"settings.LDAP_SERVERS has no key '{server}' with a '{key}' section"
            raise ImproperlyConfigured(msg) from e
        try:
            url = config["url"]
        except KeyError as e:
            msg = f"settings.LDAP_SERVERS['{server}']['{key}'] has no 'url' key"
            raise ImproperlyConfigured(msg) from e
        session = cls()
        session.connect(url, timeout=config.get("timeout", None))
        if bind:
            try:
                session.bind(config.get("user", None), config.get("password", None))
            except DirectoryError:
                session.close()
                raise
        return session

    # Connection lifecycle

    def has_connection(self) -> bool:
        """
        Return ``True`` if this session currently holds a connection.
        """
        return self._connection is not None

    @property
    def connection(self) -> LDAPObject:
        """
        The python-ldap connection object owned by this session.

        Raises:
            NotConnected: :py:meth:`connect` has not been called, or the session
                has been closed

        """
        if self._connection is None:
            msg = "This session is not connected; call connect() first"
            raise NotConnected(msg)
        return self._connection

    @property
    def last_error(self) -> ErrorState:
        """
        The error state left behind by the last operation.
        """
        return self._error

    @maps_errors()
    def connect(
        self, server: str, port: int = 389, timeout: float | None = None
    ) -> None:
        """
        Create the connection to ``server``.

        The connection always uses LDAP protocol version 3 and never follows
        referrals.  No network traffic happens here; an unreachable server is
        reported by the first operation that needs it.

        Connecting a session that is already connected replaces its connection.

        Args:
            server: a host name, an IP address, or a full LDAP URI such as
                ``ldaps://host:636``

        Keyword Args:
            port: the port to use with a host name or address; ignored when
                ``server`` is a URI, which carries its own port
            timeout: network timeout in seconds

        Raises:
            DirectoryError: python-ldap rejected the URI

        """
        if "://" in server:
            uri = server
        else:
            if ":" in server and not server.startswith("["):
                # IPv6 literal
                server = f"[{server}]"
            uri = f"ldap://{server}:{port}"
        connection = ldap.initialize(uri)  # type: ignore[attr-defined]
        connection.set_option(ldap.OPT_PROTOCOL_VERSION, ldap.VERSION3)  # type: ignore[attr-defined]
        connection.set_option(ldap.OPT_REFERRALS, 0)  # type: ignore[attr-defined]
        if timeout is not None:
            connection.set_option(ldap.OPT_NETWORK_TIMEOUT, float(timeout))  # type: ignore[attr-defined]
        if self._connection is not None:
            with suppress(ldap.LDAPError):  # type: ignore[attr-defined]
                self._connection.unbind_s()
        self._connection = connection
        self.uri = uri
        self.logger.debug("ldapdirectory.session.connect uri=%s", uri)

    @maps_errors(AuthenticationError)
    def bind(self, dn: str | None = None, password: str | None = None) -> bool:
        """
        Authenticate as ``dn``.  With no arguments, bind anonymously.

        Keyword Args:
            dn: the DN to bind as
            password: the password for ``dn``

        Raises:
            AuthenticationError: the server rejected the bind

        Returns:
            ``True``.

        """
        self.connection.simple_bind_s(dn, password)
        self.logger.debug("ldapdirectory.session.bind.success dn=%s", dn or "anonymous")
        return True

    @reports_errors
    def close(self) -> None:
        """
        Unbind and release the connection.

        The connection is released even if the unbind fails.  Closing a closed
        session raises :py:class:`~ldapdirectory.errors.NotConnected`.

        Returns:
            ``True`` on success, ``False`` if the unbind failed.

        """
        connection = self.connection
        self._connection = None
        connection.unbind_s()
        self.logger.debug("ldapdirectory.session.close uri=%s", self.uri)

    # Entry level operations

    @reports_errors
    def add(self, dn: str, attributes: AttributeInput) -> None:
        """
        Add a new entry.

        Args:
            dn: the DN of the new entry
            attributes: attribute names mapped to their values, including
                ``objectClass``

        Returns:
            ``True`` on success, ``False`` on failure.

        """
        self.connection.add_s(dn, add_modlist(attributes))
        self.logger.debug("ldapdirectory.session.add.success dn=%s", dn)

    @reports_errors
    def delete(self, dn: str) -> None:
        """
        Delete the entry ``dn``.

        Returns:
            ``True`` on success, ``False`` on failure.

        """
        self.connection.delete_s(dn)
        self.logger.debug("ldapdirectory.session.delete.success dn=%s", dn)

    @reports_errors
    def modify(self, dn: str, attributes: AttributeInput) -> None:
        """
        Replace attribute values on the entry ``dn``.

        Attributes not named in ``attributes`` are left alone.  An attribute
        given ``None`` or an empty list is removed.

        Args:
            dn: the DN of the entry to modify
            attributes: attribute names mapped to their new values

        Returns:
            ``True`` on success, ``False`` on failure.

        """
        self.connection.modify_s(dn, modify_modlist(attributes))
        self.logger.debug("ldapdirectory.session.modify.success dn=%s", dn)

    @reports_errors
    def apply_modlist(self, dn: str, modlist: ModifyModList) -> None:
        """
        Run ``modify_s`` with a ready made modlist.  Used by
        :py:class:`~ldapdirectory.entries.Entry` for its attribute level
        operations.

        Returns:
            ``True`` on success, ``False`` on failure.

        """
        self.connection.modify_s(dn, modlist)
        self.logger.debug(
            "ldapdirectory.session.apply_modlist.success dn=%s attributes=%s",
            dn,
            ",".join(mod[1] for mod in modlist),
        )

    @maps_errors()
    def rename(
        self,
        dn: str,
        new_rdn: str,
        new_parent: str | None = None,
        delete_old_rdn: bool = True,
    ) -> bool:
        """
        Rename the entry ``dn``, optionally moving it under a new parent.

        Args:
            dn: the current DN of the entry
            new_rdn: the new RDN, e.g. ``uid=newname``

        Keyword Args:
            new_parent: the DN of the new parent entry; ``None`` keeps the
                entry where it is
            delete_old_rdn: if ``False``, the old RDN values are kept as
                ordinary attribute values

        Raises:
            DirectoryError: the rename failed

        Returns:
            ``True``.

        """
        self.connection.rename_s(dn, new_rdn, new_parent, int(delete_old_rdn))
        self.logger.debug(
            "ldapdirectory.session.rename.success dn=%s new_rdn=%s new_parent=%s",
            dn,
            new_rdn,
            new_parent,
        )
        return True

    # Searches

    def _search(  # noqa: PLR0913
        self,
        scope: int,
        base_dn: str,
        filterstr: str,
        attributes: Iterable[str] | None,
        attrs_only: bool,
        sizelimit: int,
        timelimit: int,
        deref: int,
    ) -> SearchResult:
        """
        Run a search and collect every message of its response.

        A size, time or administrative limit ending the search early is not
        an error here: the entries received so far are returned in a partial
        :py:class:`~ldapdirectory.results.SearchResult`, and the limit is left
        in :py:attr:`last_error`.
        """
        connection = self.connection
        if isinstance(attributes, str):
            attributes = [attributes]
        attrlist = list(attributes) if attributes else None
        connection.set_option(ldap.OPT_DEREF, deref)  # type: ignore[attr-defined]
        msgid = connection.search_ext(
            base_dn,
            scope,
            filterstr,
            attrlist=attrlist,
            attrsonly=int(attrs_only),
            timeout=timelimit if timelimit > 0 else -1,
            sizelimit=sizelimit,
        )
        records: list[LDAPData] = []
        references: list[str] = []
        partial = False
        try:
            while True:
                rtype, rdata, _, _ = connection.result3(msgid, all=0)
                # Each "rdata" item is (dn, attrs) for an entry, or
                # (None, [urls]) for a search reference
                for dn, attrs in rdata:
                    if isinstance(attrs, dict):
                        records.append((dn, attrs))
                    else:
                        references.extend(attrs)
                if rtype == ldap.RES_SEARCH_RESULT:  # type: ignore[attr-defined]
                    break
        except PARTIAL_RESULT_ERRORS as e:
            partial = True
            self._error = ErrorState.from_exception(e)
            self.logger.warning(
                "ldapdirectory.session.search.partial base=%s filter=%s entries=%d code=%d message=%s",
                base_dn,
                filterstr,
                len(records),
                self._error.code,
                self._error.message,
            )
        self.logger.debug(
            "ldapdirectory.session.search base=%s scope=%d filter=%s entries=%d",
            base_dn,
            scope,
            filterstr,
            len(records),
        )
        return SearchResult(
            self,
            records,
            base_dn=base_dn,
            scope=scope,
            filterstr=filterstr,
            partial=partial,
            references=references,
        )

    @maps_errors()
    def search(  # noqa: PLR0913
        self,
        base_dn: str,
        filterstr: str = "(objectClass=*)",
        attributes: Iterable[str] | None = None,
        attrs_only: bool = False,
        sizelimit: int = 0,
        timelimit: int = 0,
        deref: int = ldap.DEREF_NEVER,  # type: ignore[attr-defined]
    ) -> SearchResult:
        """
        Search ``base_dn`` and everything below it.

        Args:
            base_dn: the DN to start the search at
            filterstr: the search filter.  Use
                :py:func:`~ldapdirectory.utils.escape` on any user supplied
                values you put in it.

        Keyword Args:
            attributes: the attributes to return for each entry, or a single
                attribute name; ``None`` or empty returns all user attributes
            attrs_only: if ``True``, return attribute names without values
            sizelimit: the most entries to return; ``0`` for no client side
                limit.  Server side limits still apply.
            timelimit: the most seconds to spend on the search; ``0`` for no
                client side limit
            deref: how to dereference aliases, one of the ``ldap.DEREF_*``
                constants

        Raises:
            DirectoryError: the search failed

        Returns:
            The matching entries.

        """
        return self._search(
            ldap.SCOPE_SUBTREE,  # type: ignore[attr-defined]
            base_dn,
            filterstr,
            attributes,
            attrs_only,
            sizelimit,
            timelimit,
            deref,
        )

    @maps_errors()
    def search_base(  # noqa: PLR0913
        self,
        base_dn: str,
        filterstr: str = "(objectClass=*)",
        attributes: Iterable[str] | None = None,
        attrs_only: bool = False,
        sizelimit: int = 0,
        timelimit: int = 0,
        deref: int = ldap.DEREF_NEVER,  # type: ignore[attr-defined]
    ) -> SearchResult:
        """
        Read the entry ``base_dn`` itself, if it matches ``filterstr``.

        Takes the same arguments as :py:meth:`search`.

        Raises:
            DirectoryError: the search failed, e.g. ``base_dn`` does not exist

        Returns:
            A result with at most one entry.

        """
        return self._search(
            ldap.SCOPE_BASE,  # type: ignore[attr-defined]
            base_dn,
            filterstr,
            attributes,
            attrs_only,
            sizelimit,
            timelimit,
            deref,
        )

    @maps_errors()
    def search_one(  # noqa: PLR0913
        self,
        base_dn: str,
        filterstr: str = "(objectClass=*)",
        attributes: Iterable[str] | None = None,
        attrs_only: bool = False,
        sizelimit: int = 0,
        timelimit: int = 0,
        deref: int = ldap.DEREF_NEVER,  # type: ignore[attr-defined]
    ) -> SearchResult:
        """
        Search the immediate children of ``base_dn``.

        Takes the same arguments as :py:meth:`search`.

        Raises:
            DirectoryError: the search failed

        Returns:
            The matching entries.

        """
        return self._search(
            ldap.SCOPE_ONELEVEL,  # type: ignore[attr-defined]
            base_dn,
            filterstr,
            attributes,
            attrs_only,
            sizelimit,
            timelimit,
            deref,
        )
