"""
A single directory entry returned by a search.
"""

import weakref
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ldapdirectory import ldap

from .errors import NotConnected
from .typing import AttributeInput, LDAPData
from .utils import modify_modlist
from .values import ValueList

if TYPE_CHECKING:
    from .session import DirectorySession


class Entry:
    """
    One entry from a :py:class:`~ldapdirectory.results.SearchResult`.

    The entry's DN and attribute values are taken from the search record when
    the entry is built and never change afterwards; the attribute level
    mutation methods write to the directory but do not refresh them.

    An entry only borrows its session: it keeps a weak reference to it, and
    must not be used after the session is closed.

    Args:
        session: the session that ran the search
        record: the ``(dn, attributes)`` record from python-ldap

    """

    def __init__(self, session: "DirectorySession", record: LDAPData) -> None:
        self._session = weakref.ref(session)
        dn, attrs = record
        self._dn: str = dn
        self._attributes: dict[str, ValueList] = {
            name: ValueList(values) for name, values in attrs.items()
        }

    def __repr__(self) -> str:
        return f"<Entry: {self._dn}>"

    def __contains__(self, name: str) -> bool:
        return self.get_all(name) is not None

    def __getitem__(self, name: str) -> ValueList:
        values = self.get_all(name)
        if values is None:
            raise KeyError(name)
        return values

    @property
    def dn(self) -> str:
        """
        The distinguished name of this entry.
        """
        return self._dn

    @property
    def session(self) -> "DirectorySession":
        """
        The session this entry came from.

        Raises:
            NotConnected: the session no longer exists

        """
        session = self._session()
        if session is None:
            msg = f"The session for {self._dn} no longer exists"
            raise NotConnected(msg)
        return session

    def get_dn(self) -> str:
        """
        Return the distinguished name of this entry.
        """
        return self._dn

    def attribute_names(self) -> list[str]:
        """
        Return the names of the attributes on this entry, in server order.
        """
        return list(self._attributes)

    def get_all(self, name: str) -> ValueList | None:
        """
        Return all values of the attribute ``name``.

        Attribute names are matched exactly.  An attribute that is absent and
        an attribute that is present with no values (as in an ``attrs_only``
        search) both give ``None``.

        Args:
            name: the attribute name

        Returns:
            The values in server order, or ``None``.

        """
        values = self._attributes.get(name)
        if not values:
            return None
        return values

    def get_first(self, name: str) -> Any:
        """
        Return the first value of the attribute ``name``, or ``None``.
        """
        values = self.get_all(name)
        if values is None:
            return None
        return values.first()

    def get(self, name: str) -> Any:
        """
        Alias for :py:meth:`get_first`.
        """
        return self.get_first(name)

    def add(self, attributes: AttributeInput) -> bool:
        """
        Add values to attributes of this entry.

        Args:
            attributes: attribute names mapped to the values to add

        Returns:
            ``True`` on success, ``False`` on failure.

        """
        return self.session.apply_modlist(
            self._dn, modify_modlist(attributes, ldap.MOD_ADD)  # type: ignore[attr-defined]
        )

    def delete(self, attributes: AttributeInput | Iterable[str]) -> bool:
        """
        Delete values or whole attributes from this entry.

        Args:
            attributes: attribute names mapped to the values to remove, where
                ``None`` or no values removes the whole attribute; or just an
                iterable of attribute names, or a single name, to remove

        Returns:
            ``True`` on success, ``False`` on failure.

        """
        return self.session.apply_modlist(
            self._dn, modify_modlist(attributes, ldap.MOD_DELETE)  # type: ignore[attr-defined]
        )

    def modify(self, attributes: AttributeInput) -> bool:
        """
        Replace the values of attributes of this entry.

        Args:
            attributes: attribute names mapped to their new values

        Returns:
            ``True`` on success, ``False`` on failure.

        """
        return self.session.apply_modlist(
            self._dn, modify_modlist(attributes, ldap.MOD_REPLACE)  # type: ignore[attr-defined]
        )
