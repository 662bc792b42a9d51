# The session module talks to python-ldap only through this module, so that
# tests can point ``ldap_faker.unittest.LDAPFakerMixin`` at ``ldapdirectory``
# and have ``initialize`` replaced by the fake directory server.
import ldap
from ldap import *  # noqa: F403

__version__ = ldap.__version__
