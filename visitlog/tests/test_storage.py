import unittest
from urllib.parse import parse_qs, urlparse

from botocore.stub import Stubber

from visitlog.storage import InMemoryStorageClient, S3StorageClient


class InMemoryStorageClientTests(unittest.TestCase):
    def test_presign_put_embeds_path_and_expiry(self):
        storage = InMemoryStorageClient(base_url="https://example.test/storage")
        url = storage.presign_put("photos/u/r/original/1.jpg", expires_in=60)
        self.assertEqual(
            url, "https://example.test/storage/photos/u/r/original/1.jpg?op=put&expires=60"
        )

    def test_delete_objects_ignores_missing(self):
        storage = InMemoryStorageClient()
        storage.put_bytes("a", b"1")
        storage.delete_objects(["a", "missing"])
        self.assertEqual(storage.stored_objects, {})


class S3StorageClientTests(unittest.TestCase):
    def setUp(self):
        self.storage = S3StorageClient(
            bucket="visitlog-photos",
            region="ap-northeast-1",
            access_key_id="AKIDEXAMPLE",
            secret_access_key="secret",
        )

    def test_presign_put_is_signed_for_the_key(self):
        url = self.storage.presign_put("photos/u/r/original/1.jpg", expires_in=3600)
        parsed = urlparse(url)
        self.assertTrue(parsed.netloc.startswith("visitlog-photos.s3"))
        self.assertEqual(parsed.path, "/photos/u/r/original/1.jpg")
        query = parse_qs(parsed.query)
        self.assertEqual(query["X-Amz-Expires"], ["3600"])
        self.assertIn("X-Amz-Signature", query)

    def test_delete_objects_batches_keys(self):
        keys = [f"photos/u/r/original/{i}.jpg" for i in range(1, 1003)]
        with Stubber(self.storage._client) as stubber:
            stubber.add_response(
                "delete_objects",
                {"Deleted": []},
                {
                    "Bucket": "visitlog-photos",
                    "Delete": {"Objects": [{"Key": k} for k in keys[:1000]], "Quiet": True},
                },
            )
            stubber.add_response(
                "delete_objects",
                {"Errors": [{"Key": keys[-1], "Code": "AccessDenied", "Message": "no"}]},
                {
                    "Bucket": "visitlog-photos",
                    "Delete": {"Objects": [{"Key": k} for k in keys[1000:]], "Quiet": True},
                },
            )
            with self.assertLogs("visitlog.storage", level="WARNING"):
                self.storage.delete_objects(keys)
            stubber.assert_no_pending_responses()


if __name__ == "__main__":
    unittest.main()
