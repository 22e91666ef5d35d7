import unittest

from visitlog.db import RecordItem
from visitlog.projection import thumbnail_key, to_detail, to_list_item

BASE_URL = "https://bucket.s3.amazonaws.com"


def _item(**overrides):
    fields = dict(
        user_id="u",
        record_id="r",
        store_name="Ramen Jiro",
        latitude=35.0,
        longitude=139.0,
        visit_date="2026-01-01",
        rating=4.0,
        created_at="2026-10-01T00:00:00.000000Z",
        updated_at="2026-10-02T00:00:00.000000Z",
    )
    fields.update(overrides)
    return RecordItem(**fields)


class ProjectionTests(unittest.TestCase):
    def test_thumbnail_key_replaces_first_segment_only(self):
        self.assertEqual(
            thumbnail_key("photos/u/r/original/1.jpg"), "photos/u/r/thumbnail/1.jpg"
        )
        self.assertEqual(
            thumbnail_key("photos/u/r/original/original/1.jpg"),
            "photos/u/r/thumbnail/original/1.jpg",
        )
        self.assertEqual(thumbnail_key("photos/u/r/1.jpg"), "photos/u/r/1.jpg")
        # Text replacement needs the surrounding slashes.
        self.assertEqual(thumbnail_key("original/1.jpg"), "original/1.jpg")

    def test_list_item_uses_first_photo_unmodified(self):
        item = _item(photo_keys=["photos/u/r/original/2.jpg", "photos/u/r/original/1.jpg"])
        projected = to_list_item(item, BASE_URL)
        self.assertEqual(projected.thumbnail_url, f"{BASE_URL}/photos/u/r/original/2.jpg")
        self.assertEqual(projected.created_at, "2026-10-01T00:00:00.000000Z")

    def test_list_item_without_photos(self):
        self.assertIsNone(to_list_item(_item(), BASE_URL).thumbnail_url)

    def test_detail_maps_every_photo(self):
        item = _item(
            photo_keys=["photos/u/r/original/1.jpg", "photos/u/r/2.jpg"],
            place_id="ChIJ123",
            address="Mita",
        )
        detail = to_detail(item, BASE_URL + "/")
        self.assertEqual(detail.place_id, "ChIJ123")
        self.assertEqual(detail.address, "Mita")
        self.assertEqual(detail.updated_at, "2026-10-02T00:00:00.000000Z")
        self.assertEqual(
            [(p.original_url, p.thumbnail_url) for p in detail.photos],
            [
                (
                    f"{BASE_URL}/photos/u/r/original/1.jpg",
                    f"{BASE_URL}/photos/u/r/thumbnail/1.jpg",
                ),
                (f"{BASE_URL}/photos/u/r/2.jpg", f"{BASE_URL}/photos/u/r/2.jpg"),
            ],
        )

    def test_detail_serializes_camel_case(self):
        payload = to_detail(_item(), BASE_URL).model_dump(by_alias=True)
        self.assertEqual(
            set(payload),
            {
                "recordId",
                "storeName",
                "placeId",
                "latitude",
                "longitude",
                "address",
                "visitDate",
                "rating",
                "note",
                "companions",
                "photos",
                "createdAt",
                "updatedAt",
            },
        )


if __name__ == "__main__":
    unittest.main()
