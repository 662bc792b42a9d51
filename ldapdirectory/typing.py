"""
Type aliases for the python-ldap data structures we consume and produce.

Raw records are what :py:meth:`ldap.ldapobject.LDAPObject.result3` hands back;
attribute input is what callers pass to the add and modify operations before
we turn it into a modlist.
"""

from collections.abc import Iterable, Mapping

#: The attribute dictionary of one raw search record.
RawAttributes = dict[str, list[bytes]]
#: One raw search record: ``(dn, attributes)``.
LDAPData = tuple[str, RawAttributes]

DeleteModListEntry = tuple[int, str, None]
ModifyModListEntry = tuple[int, str, list[bytes]]
ModifyModList = list[DeleteModListEntry | ModifyModListEntry]
AddModlist = list[tuple[str, list[bytes]]]

#: A single attribute value as accepted from callers.
AttributeValue = str | bytes | int | float
#: Attribute input: each name maps to one value, a list of values, or ``None``.
AttributeInput = Mapping[str, AttributeValue | Iterable[AttributeValue] | None]
