"""
Tests for the two-stage reputation matcher.
"""

import unittest
from unittest.mock import MagicMock

from url_intel.errors import LookupFailed, StoreUnavailable
from url_intel.matcher import lookup_collection, match_collection
from url_intel.normalize import normalize_url
from url_intel.store import MemoryRecordStore


def _store(*records):
    return MemoryRecordStore({"phishtank": list(records)})


class TestMatchCollection(unittest.TestCase):
    def test_no_record_returns_none(self):
        store = _store({"hostname": "other.com", "includesPath": False})
        self.assertIsNone(match_collection(store, "phishtank", normalize_url("http://example.com/")))

    def test_unknown_collection_returns_none(self):
        self.assertIsNone(match_collection(_store(), "missing", normalize_url("example.com")))

    def test_hostname_match_without_path_flag(self):
        record = {"hostname": "example.com", "includesPath": False, "target": "Bank"}
        store = _store(record)
        for path in ["/", "/login", "/any/thing"]:
            with self.subTest(path=path):
                url = normalize_url("http://example.com" + path)
                self.assertEqual(match_collection(store, "phishtank", url), record)

    def test_missing_path_flag_treated_as_false(self):
        record = {"hostname": "example.com"}
        self.assertEqual(
            match_collection(_store(record), "phishtank", normalize_url("example.com/x")), record
        )

    def test_path_flag_with_matching_path(self):
        record = {"hostname": "example.com", "includesPath": True, "pathname": "/login"}
        url = normalize_url("http://example.com/login")
        self.assertEqual(match_collection(_store(record), "phishtank", url), record)

    def test_path_flag_with_other_path_returns_none(self):
        record = {"hostname": "example.com", "includesPath": True, "pathname": "/other"}
        url = normalize_url("http://example.com/login")
        self.assertIsNone(match_collection(_store(record), "phishtank", url))

    def test_path_flag_matches_encoded_record_path(self):
        record = {"hostname": "example.com", "includesPath": True, "pathname": "/%C3%BC"}
        for raw in ["http://example.com/ü", "example.com/%C3%BC", "http://example.com/x/../ü"]:
            with self.subTest(raw=raw):
                url = normalize_url(raw)
                self.assertEqual(match_collection(_store(record), "phishtank", url), record)

    def test_path_flag_finds_second_record_for_same_host(self):
        first = {"hostname": "example.com", "includesPath": True, "pathname": "/a"}
        second = {"hostname": "example.com", "includesPath": True, "pathname": "/b"}
        url = normalize_url("example.com/b")
        self.assertEqual(match_collection(_store(first, second), "phishtank", url), second)

    def test_requery_is_issued_for_path_records(self):
        store = MagicMock()
        store.find_one.side_effect = [
            {"hostname": "example.com", "includesPath": True, "pathname": "/x"},
            None,
        ]
        url = normalize_url("http://example.com/login")

        self.assertIsNone(match_collection(store, "urlhaus", url))
        self.assertEqual(store.find_one.call_count, 2)
        store.find_one.assert_called_with(
            "urlhaus", {"hostname": "example.com", "pathname": "/login"}
        )

    def test_no_requery_for_host_records(self):
        store = MagicMock()
        store.find_one.return_value = {"hostname": "example.com", "includesPath": False}
        match_collection(store, "urlhaus", normalize_url("example.com/login"))
        store.find_one.assert_called_once_with("urlhaus", {"hostname": "example.com"})

    def test_store_error_raises_lookup_failed(self):
        store = MagicMock()
        store.find_one.side_effect = RuntimeError("boom")
        with self.assertRaises(LookupFailed) as cm:
            match_collection(store, "openphish", normalize_url("example.com"))
        self.assertEqual(cm.exception.source, "openphish")
        self.assertIsInstance(cm.exception.cause, RuntimeError)

    def test_store_unavailable_propagates(self):
        store = MagicMock()
        store.find_one.side_effect = StoreUnavailable("down")
        with self.assertRaises(StoreUnavailable):
            match_collection(store, "openphish", normalize_url("example.com"))


class TestLookupCollection(unittest.TestCase):
    """The three outcomes stay distinct."""

    def test_match(self):
        record = {"hostname": "example.com", "includesPath": False}
        out = lookup_collection(_store(record), "phishtank", normalize_url("example.com"))
        self.assertEqual(out.status, "match")
        self.assertTrue(out.matched)
        self.assertEqual(out.record, record)

    def test_no_record(self):
        out = lookup_collection(_store(), "phishtank", normalize_url("example.com"))
        self.assertEqual(out.status, "no_record")
        self.assertFalse(out.matched)
        self.assertIsNone(out.record)
        self.assertIsNone(out.error)

    def test_lookup_failed(self):
        store = MagicMock()
        store.find_one.side_effect = RuntimeError("cursor killed")
        out = lookup_collection(store, "phishtank", normalize_url("example.com"))
        self.assertEqual(out.status, "lookup_failed")
        self.assertIsNone(out.record)
        self.assertIn("cursor killed", out.error)


if __name__ == "__main__":
    unittest.main()
