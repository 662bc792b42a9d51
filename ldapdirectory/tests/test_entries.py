# type: ignore
import gc
import unittest

import ldap

from ldapdirectory import DirectorySession, Entry, NotConnected
from ldapdirectory.tests.base import ALICE_DN, USERS_DN, DirectoryTestCase

RECORD = (
    ALICE_DN,
    {
        "uid": [b"alice"],
        "mail": [b"a@x.com", b"b@x.com"],
        "fax": [],
        "jpegPhoto": [b"\xff\xd8\xff\xe0"],
    },
)


class TestEntryReads(unittest.TestCase):
    def setUp(self):
        self.session = DirectorySession()
        self.entry = Entry(self.session, RECORD)

    def test_dn(self):
        self.assertEqual(self.entry.get_dn(), ALICE_DN)
        self.assertEqual(self.entry.dn, ALICE_DN)

    def test_get_all(self):
        self.assertEqual(self.entry.get_all("mail"), ["a@x.com", "b@x.com"])
        self.assertEqual(self.entry.get_all("uid"), ["alice"])

    def test_get_first_and_get(self):
        self.assertEqual(self.entry.get_first("mail"), "a@x.com")
        self.assertEqual(self.entry.get("mail"), "a@x.com")
        self.assertEqual(self.entry.get("uid"), "alice")

    def test_absent_attribute_is_None(self):
        self.assertIsNone(self.entry.get_all("telephoneNumber"))
        self.assertIsNone(self.entry.get_first("telephoneNumber"))
        self.assertIsNone(self.entry.get("telephoneNumber"))

    def test_empty_attribute_is_None(self):
        self.assertIsNone(self.entry.get_all("fax"))
        self.assertIsNone(self.entry.get("fax"))

    def test_attribute_names_match_exactly(self):
        self.assertIsNone(self.entry.get_all("MAIL"))

    def test_binary_value(self):
        self.assertEqual(self.entry.get("jpegPhoto"), b"\xff\xd8\xff\xe0")

    def test_contains_and_getitem(self):
        self.assertIn("mail", self.entry)
        self.assertNotIn("fax", self.entry)
        self.assertEqual(self.entry["uid"], ["alice"])
        with self.assertRaises(KeyError):
            self.entry["fax"]  # noqa: B018

    def test_attribute_names(self):
        self.assertEqual(
            self.entry.attribute_names(), ["uid", "mail", "fax", "jpegPhoto"]
        )

    def test_repr(self):
        self.assertEqual(repr(self.entry), f"<Entry: {ALICE_DN}>")

    def test_session(self):
        self.assertIs(self.entry.session, self.session)

    def test_session_gone_raises_NotConnected(self):
        entry = Entry(DirectorySession(), RECORD)
        gc.collect()
        with self.assertRaises(NotConnected):
            entry.session  # noqa: B018
        self.assertEqual(entry.get("uid"), "alice")


class TestEntryWrites(DirectoryTestCase):
    def setUp(self):
        super().setUp()
        self.session = self.connected_session()
        self.entry = self.session.search_base(ALICE_DN).first()

    def reread(self):
        return self.session.search_base(ALICE_DN).first()

    def test_add_values(self):
        self.assertTrue(self.entry.add({"mail": "c@x.com", "telephoneNumber": "555-1234"}))
        entry = self.reread()
        self.assertEqual(entry.get_all("mail"), ["a@x.com", "b@x.com", "c@x.com"])
        self.assertEqual(entry.get("telephoneNumber"), "555-1234")

    def test_entry_is_a_snapshot(self):
        self.entry.add({"mail": "c@x.com"})
        self.assertEqual(self.entry.get_all("mail"), ["a@x.com", "b@x.com"])

    def test_add_existing_value_returns_False(self):
        self.assertFalse(self.entry.add({"mail": "a@x.com"}))
        self.assertEqual(self.session.last_error.code, 20)
        self.assertEqual(self.reread().get_all("mail"), ["a@x.com", "b@x.com"])

    def test_delete_values(self):
        self.assertTrue(self.entry.delete({"mail": "a@x.com"}))
        self.assertEqual(self.reread().get_all("mail"), ["b@x.com"])

    def test_delete_whole_attribute(self):
        self.assertTrue(self.entry.delete(["mail"]))
        self.assertIsNone(self.reread().get_all("mail"))

    def test_delete_attribute_by_single_name(self):
        self.assertTrue(self.entry.delete("mail"))
        entry = self.reread()
        self.assertIsNone(entry.get_all("mail"))
        self.assertEqual(entry.get("cn"), "Alice Johnson")
        modlist = self.session.connection.calls.filter_calls("modify_s")[-1].args["modlist"]
        self.assertEqual(modlist, [(ldap.MOD_DELETE, "mail", None)])

    def test_delete_whole_attribute_with_None(self):
        self.assertTrue(self.entry.delete({"mail": None}))
        self.assertIsNone(self.reread().get_all("mail"))

    def test_modify_replaces(self):
        self.assertTrue(self.entry.modify({"mail": ["new@x.com"], "cn": "Alice Jones"}))
        entry = self.reread()
        self.assertEqual(entry.get_all("mail"), ["new@x.com"])
        self.assertEqual(entry.get("cn"), "Alice Jones")

    def test_write_after_entry_deleted_returns_False(self):
        self.assertTrue(self.session.delete(ALICE_DN))
        self.assertFalse(self.entry.modify({"cn": "Ghost"}))
        self.assertEqual(self.session.last_error.code, 32)

    def test_write_without_bind_returns_False(self):
        session = self.connected_session(bind=False)
        entry = session.search_one(USERS_DN, "(uid=alice)").first()
        self.assertFalse(entry.modify({"cn": "Nope"}))
        self.assertEqual(session.last_error.code, 50)

    def test_write_after_close_raises_NotConnected(self):
        self.session.close()
        with self.assertRaises(NotConnected):
            self.entry.modify({"cn": "Closed"})


if __name__ == "__main__":
    unittest.main()
