import unittest
from unittest.mock import MagicMock

from bson import ObjectId
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from url_intel.errors import StoreUnavailable
from url_intel.store import MemoryRecordStore, MongoRecordStore


def _mongo_store():
    client = MagicMock()
    collection = client.__getitem__.return_value.__getitem__.return_value
    store = MongoRecordStore("mongodb://db:27017", "intel", client=client)
    return store, client, collection


class TestMongoRecordStore(unittest.TestCase):
    def test_selects_database(self):
        store, client, _ = _mongo_store()
        client.__getitem__.assert_called_with("intel")

    def test_find_one_stringifies_object_id(self):
        store, _, collection = _mongo_store()
        oid = ObjectId()
        collection.find_one.return_value = {"_id": oid, "hostname": "example.com"}

        out = store.find_one("phishtank", {"hostname": "example.com"})

        self.assertEqual(out, {"_id": str(oid), "hostname": "example.com"})
        collection.find_one.assert_called_once_with({"hostname": "example.com"})

    def test_find_one_none(self):
        store, _, collection = _mongo_store()
        collection.find_one.return_value = None
        self.assertIsNone(store.find_one("phishtank", {"hostname": "x"}))

    def test_connection_failure_becomes_store_unavailable(self):
        store, _, collection = _mongo_store()
        collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        with self.assertRaises(StoreUnavailable):
            store.find_one("phishtank", {"hostname": "x"})

    def test_other_errors_propagate(self):
        store, _, collection = _mongo_store()
        collection.find_one.side_effect = OperationFailure("bad query")
        with self.assertRaises(OperationFailure):
            store.find_one("phishtank", {"hostname": "x"})

    def test_find_many_applies_limit(self):
        store, _, collection = _mongo_store()
        cursor = collection.find.return_value
        cursor.limit.return_value = iter([{"_id": 1, "hostname": "a"}, {"_id": 2, "hostname": "b"}])

        out = store.find_many("phishtank", {"$text": {"$search": "qub"}}, limit=5)

        cursor.limit.assert_called_once_with(5)
        self.assertEqual([r["_id"] for r in out], ["1", "2"])

    def test_ping(self):
        store, client, _ = _mongo_store()
        self.assertTrue(store.ping())
        client.admin.command.side_effect = ServerSelectionTimeoutError("down")
        self.assertFalse(store.ping())

    def test_close(self):
        store, client, _ = _mongo_store()
        store.close()
        client.close.assert_called_once()


class TestMemoryRecordStore(unittest.TestCase):
    def setUp(self):
        self.store = MemoryRecordStore(
            {
                "phishtank": [
                    {"hostname": "a.com", "target": "Queens University Belfast"},
                    {"hostname": "b.com", "includesPath": True, "pathname": "/x"},
                ]
            }
        )

    def test_equality_query(self):
        self.assertEqual(self.store.find_one("phishtank", {"hostname": "b.com", "pathname": "/x"})["hostname"], "b.com")
        self.assertIsNone(self.store.find_one("phishtank", {"hostname": "b.com", "pathname": "/y"}))

    def test_returns_copies(self):
        out = self.store.find_one("phishtank", {"hostname": "a.com"})
        out["hostname"] = "changed"
        self.assertIsNotNone(self.store.find_one("phishtank", {"hostname": "a.com"}))

    def test_text_search(self):
        out = self.store.find_many("phishtank", {"$text": {"$search": "queens"}})
        self.assertEqual([r["hostname"] for r in out], ["a.com"])

    def test_add_and_limit(self):
        for i in range(5):
            self.store.add("urlhaus", {"hostname": "c.com", "n": i})
        self.assertEqual(len(self.store.find_many("urlhaus", {"hostname": "c.com"}, limit=3)), 3)


if __name__ == "__main__":
    unittest.main()
