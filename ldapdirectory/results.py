"""
The result of one search.
"""

from collections.abc import Iterator
from typing import TYPE_CHECKING

from .entries import Entry
from .typing import LDAPData

if TYPE_CHECKING:
    from .session import DirectorySession


class SearchResult:
    """
    The entries returned by one search, in the order the server sent them.

    Entries are built lazily as :py:meth:`entries` is iterated.  Iteration can
    be restarted any number of times; each pass starts from the first entry.

    Args:
        session: the session that ran the search
        records: the ``(dn, attributes)`` records from python-ldap

    Keyword Args:
        base_dn: the base DN of the search
        scope: the python-ldap scope of the search
        filterstr: the filter of the search
        partial: ``True`` if the server stopped early because of a size,
            time or administrative limit
        references: the URLs of any search references the server returned

    """

    def __init__(
        self,
        session: "DirectorySession",
        records: list[LDAPData],
        base_dn: str = "",
        scope: int | None = None,
        filterstr: str = "(objectClass=*)",
        partial: bool = False,
        references: list[str] | None = None,
    ) -> None:
        self.session = session
        self._records: list[LDAPData] = records
        #: The base DN of the search.
        self.base_dn: str = base_dn
        #: The python-ldap scope of the search.
        self.scope: int | None = scope
        #: The filter of the search.
        self.filterstr: str = filterstr
        #: ``True`` if this holds only part of the matching entries.
        self.partial: bool = partial
        #: Referral URLs from search references; they are never followed.
        self.references: list[str] = references if references is not None else []

    def __repr__(self) -> str:
        return (
            f"<SearchResult: base_dn={self.base_dn!r} filter={self.filterstr!r} "
            f"count={self.entry_count()}{' partial' if self.partial else ''}>"
        )

    def __len__(self) -> int:
        return self.entry_count()

    def __iter__(self) -> Iterator[Entry]:
        return self.entries()

    def __bool__(self) -> bool:
        return bool(self._records)

    def entry_count(self) -> int:
        """
        Return the number of entries in the result.
        """
        return len(self._records)

    def entries(self) -> Iterator[Entry]:
        """
        Iterate over the entries in the result.

        Yields:
            An :py:class:`~ldapdirectory.entries.Entry` for each record.

        """
        for record in self._records:
            yield Entry(self.session, record)

    def first(self) -> Entry | None:
        """
        Return the first entry, or ``None`` if the result is empty.
        """
        return next(self.entries(), None)
