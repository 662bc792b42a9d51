"""
Filter escaping, password hashing and modlist construction.
"""

import hashlib
import os
from base64 import b64encode as encode
from collections.abc import Iterable

from ldapdirectory import ldap

from .typing import AddModlist, AttributeInput, AttributeValue, ModifyModList

#: Characters that have to be escaped inside a filter value.
FILTER_ESCAPES = str.maketrans(
    {
        "*": "\\*",
        "\\": "\\\\",
        "(": "\\(",
        ")": "\\)",
    }
)


def escape(value: str) -> str:
    """
    Escape ``value`` for use inside an LDAP search filter.

    ``*``, ``\\``, ``(`` and ``)`` are each prefixed with a backslash in a
    single pass, so a backslash we insert is never escaped again.  This is not
    idempotent: escaping an already escaped string escapes it a second time.

    Example:
        >>> escape("a*b")
        'a\\\\*b'

    Args:
        value: the unescaped string

    Returns:
        The escaped string.

    """
    return value.translate(FILTER_ESCAPES)


def generate_password(password: str) -> str:
    """
    Hash ``password`` for storing in a ``userPassword`` attribute.

    The result is ``{SHA}`` followed by the base64 encoded SHA-1 digest.  There
    is no salt, so equal passwords always produce equal hashes.

    Args:
        password: the plain text password

    Returns:
        The hashed password.

    """
    digest = hashlib.sha1(password.encode("utf-8")).digest()  # noqa: S324
    return "{SHA}" + encode(digest).decode("ascii")


def generate_salted_password(password: str, salt: bytes | None = None) -> str:
    """
    Hash ``password`` as a salted SHA-1 (``{SSHA}``) ``userPassword`` value.

    Args:
        password: the plain text password

    Keyword Args:
        salt: the salt to use; 8 random bytes if not given

    Returns:
        The hashed password.

    """
    if salt is None:
        salt = os.urandom(8)
    h = hashlib.sha1(password.encode("utf-8"))  # noqa: S324
    h.update(salt)
    return "{SSHA}" + encode(h.digest() + salt).decode("ascii")


def to_bytes(value: AttributeValue) -> bytes:
    """
    Convert a single attribute value to the ``bytes`` python-ldap wants.
    """
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


def to_values(value: AttributeValue | Iterable[AttributeValue] | None) -> list[bytes]:
    """
    Normalize attribute input to a list of ``bytes``.

    ``None`` becomes an empty list; a bare ``str``, ``bytes`` or number becomes
    a one element list.

    Args:
        value: the caller supplied value or values

    Returns:
        The values as a list of ``bytes``.

    """
    if value is None:
        return []
    if isinstance(value, (str, bytes, int, float)):
        return [to_bytes(value)]
    return [to_bytes(v) for v in value]


def add_modlist(attributes: AttributeInput) -> AddModlist:
    """
    Build the modlist for ``add_s`` from an attribute mapping.

    Attributes with no values are left out, since LDAP has no way to add an
    attribute without a value.

    Args:
        attributes: attribute names mapped to their values

    Returns:
        A modlist suitable for :py:meth:`ldap.ldapobject.LDAPObject.add_s`.

    """
    _modlist: AddModlist = []
    for key, value in attributes.items():
        values = to_values(value)
        if values:
            _modlist.append((key, values))
    return _modlist


def modify_modlist(
    attributes: AttributeInput | Iterable[str],
    modtype: int = ldap.MOD_REPLACE,  # type: ignore[attr-defined]
) -> ModifyModList:
    """
    Build the modlist for ``modify_s`` from an attribute mapping.

    * ``MOD_REPLACE``: the values replace whatever the attribute held.  No
      values deletes the attribute.
    * ``MOD_ADD``: the values are added to the attribute.
    * ``MOD_DELETE``: the values are removed from the attribute; no values
      removes the attribute entirely.  ``attributes`` may also be a plain
      iterable of attribute names here, or a single name as a ``str``.

    Args:
        attributes: attribute names mapped to their values

    Keyword Args:
        modtype: one of ``ldap.MOD_REPLACE``, ``ldap.MOD_ADD``, ``ldap.MOD_DELETE``

    Returns:
        A modlist suitable for :py:meth:`ldap.ldapobject.LDAPObject.modify_s`.

    """
    if isinstance(attributes, str):
        attributes = {attributes: None}
    elif not hasattr(attributes, "items"):
        attributes = dict.fromkeys(attributes)
    _modlist: ModifyModList = []
    for key, value in attributes.items():  # type: ignore[union-attr]
        values = to_values(value)
        if not values and modtype != ldap.MOD_ADD:  # type: ignore[attr-defined]
            _modlist.append((ldap.MOD_DELETE, key, None))  # type: ignore[attr-defined]
        else:
            _modlist.append((modtype, key, values))
    return _modlist
