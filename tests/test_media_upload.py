"""Multipart media upload to S3 and object cleanup on delete."""

import re
import unittest
from dataclasses import replace
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from designfolio.core.rate_limit import RATE_LIMITS
from designfolio.main import app
from designfolio.models import Media
from designfolio.services.storage import (
    IMAGE_UPLOADS,
    VIDEO_UPLOADS,
    S3Storage,
    _s3_client,
    build_object_key,
    find_upload_rule,
    get_storage,
)

from helpers import ApiTestCase, add_content, add_user, make_settings

BUCKET = "designfolio-test"
BASE_URL = f"https://{BUCKET}.s3.eu-west-1.amazonaws.com"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, operation)


class TestUploadRules(unittest.TestCase):
    def test_type_and_extension_must_both_match(self) -> None:
        self.assertIs(find_upload_rule("image/png", "logo.PNG"), IMAGE_UPLOADS)
        self.assertIs(find_upload_rule("video/quicktime", "reel.mov"), VIDEO_UPLOADS)
        self.assertIsNone(find_upload_rule("image/png", "logo.exe"))
        self.assertIsNone(find_upload_rule("application/pdf", "brief.pdf"))
        self.assertIsNone(find_upload_rule("video/mp4", "clip.png"))

    def test_object_key_layout(self) -> None:
        key = build_object_key(IMAGE_UPLOADS, "Final Poster.JPG")
        self.assertRegex(key, r"^media/images/img_\d{13}_[0-9a-f]{32}\.jpg$")
        key = build_object_key(VIDEO_UPLOADS, "reel.webm")
        self.assertRegex(key, r"^media/videos/vid_\d{13}_[0-9a-f]{32}\.webm$")

    def test_limits(self) -> None:
        self.assertEqual(IMAGE_UPLOADS.max_bytes, 10 * 1024 * 1024)
        self.assertEqual(VIDEO_UPLOADS.max_bytes, 100 * 1024 * 1024)


class TestS3Storage(unittest.TestCase):
    def setUp(self) -> None:
        _s3_client.cache_clear()
        self.addCleanup(_s3_client.cache_clear)

    def test_no_bucket_means_no_storage(self) -> None:
        self.assertIsNone(get_storage(make_settings()))

    def test_built_from_settings(self) -> None:
        settings = make_settings(
            AWS_S3_BUCKET=BUCKET,
            AWS_REGION="eu-west-1",
            AWS_ACCESS_KEY_ID="AKIATEST",
            AWS_SECRET_ACCESS_KEY="shh",
        )
        with patch("designfolio.services.storage.boto3") as boto3:
            storage = get_storage(settings)
        boto3.client.assert_called_once_with(
            "s3",
            aws_access_key_id="AKIATEST",
            aws_secret_access_key="shh",
            region_name="eu-west-1",
            endpoint_url=None,
        )
        self.assertEqual(storage.bucket, BUCKET)
        self.assertEqual(storage.public_url("media/images/a.png"), f"{BASE_URL}/media/images/a.png")

    def test_custom_endpoint_url(self) -> None:
        settings = make_settings(AWS_S3_BUCKET=BUCKET, AWS_S3_ENDPOINT_URL="http://localhost:9000/")
        with patch("designfolio.services.storage.boto3"):
            storage = get_storage(settings)
        self.assertEqual(storage.public_url("k.png"), f"http://localhost:9000/{BUCKET}/k.png")

    def test_key_from_url_only_for_this_bucket(self) -> None:
        storage = S3Storage(MagicMock(), BUCKET, BASE_URL + "/")
        self.assertEqual(storage.key_from_url(f"{BASE_URL}/media/images/a.png"), "media/images/a.png")
        self.assertIsNone(storage.key_from_url("https://cdn.example.com/media/images/a.png"))
        self.assertIsNone(storage.key_from_url(f"{BASE_URL}/"))

    def test_put_and_delete(self) -> None:
        client = MagicMock()
        storage = S3Storage(client, BUCKET, BASE_URL)
        fileobj = MagicMock()
        url = storage.put(fileobj, "media/images/a.png", "image/png")
        self.assertEqual(url, f"{BASE_URL}/media/images/a.png")
        client.upload_fileobj.assert_called_once_with(
            fileobj, BUCKET, "media/images/a.png", ExtraArgs={"ContentType": "image/png"}
        )
        storage.delete("media/images/a.png")
        client.delete_object.assert_called_once_with(Bucket=BUCKET, Key="media/images/a.png")


class TestUploadEndpoint(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = add_user(self.db, "alice", "alice@x.com", role="designer")
        self.s3 = MagicMock()
        self.storage = S3Storage(self.s3, BUCKET, BASE_URL)
        app.dependency_overrides[get_storage] = lambda: self.storage

    def _upload(self, filename="logo.png", content=PNG, content_type="image/png", user=None, **form):
        return self.client.post(
            "/api/media/upload",
            files={"file": (filename, content, content_type)},
            data=form,
            headers=self.auth_header(user or self.alice),
        )

    def _media_count(self) -> int:
        with self.Session() as db:
            return db.query(Media).count()

    def test_image_upload_creates_row(self) -> None:
        r = self._upload(title="Logo", class_year="2024", longitude="13.4", latitude="52.5")
        self.assertEqual(r.status_code, 201, r.text)
        media = r.json()["media"]
        self.assertEqual(r.json()["message"], "Media uploaded successfully!")
        self.assertEqual(media["media_type"], "design_image")
        self.assertEqual(media["title"], "Logo")
        self.assertEqual(media["class_year"], 2024)
        self.assertEqual(media["location"], {"type": "Point", "coordinates": [13.4, 52.5]})
        self.assertTrue(re.match(rf"^{re.escape(BASE_URL)}/media/images/img_\d+_[0-9a-f]{{32}}\.png$", media["url"]))

        self.s3.upload_fileobj.assert_called_once()
        args, kwargs = self.s3.upload_fileobj.call_args
        self.assertEqual(args[1], BUCKET)
        self.assertEqual(f"{BASE_URL}/{args[2]}", media["url"])
        self.assertEqual(kwargs["ExtraArgs"], {"ContentType": "image/png"})

    def test_video_defaults_to_video_type(self) -> None:
        r = self._upload("reel.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")
        self.assertEqual(r.status_code, 201, r.text)
        self.assertEqual(r.json()["media"]["media_type"], "video")
        self.assertIn("/media/videos/vid_", r.json()["media"]["url"])

    def test_explicit_media_type(self) -> None:
        r = self._upload(media_type="icon")
        self.assertEqual(r.json()["media"]["media_type"], "icon")
        r = self._upload(media_type="video")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["details"][0]["field"], "media_type")

    def test_disallowed_files(self) -> None:
        cases = [
            ("notes.txt", "text/plain"),
            ("logo.exe", "image/png"),
            ("logo.png", "application/octet-stream"),
        ]
        for filename, content_type in cases:
            with self.subTest(filename=filename, content_type=content_type):
                r = self._upload(filename, b"data", content_type)
                self.assertEqual(r.status_code, 400)
                self.assertEqual(r.json()["error"], "Invalid file type!")
        self.s3.upload_fileobj.assert_not_called()
        self.assertEqual(self._media_count(), 0)

    def test_file_too_large(self) -> None:
        tiny = replace(IMAGE_UPLOADS, max_bytes=8)
        with patch("designfolio.api.v1.media.find_upload_rule", return_value=tiny):
            r = self._upload(content=b"x" * 9)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(
            r.json(),
            {"error": "File too large!", "details": ["File size exceeds the maximum allowed limit!"]},
        )
        self.s3.upload_fileobj.assert_not_called()

    def test_empty_file(self) -> None:
        r = self._upload(content=b"")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"error": "Empty file!"})

    def test_location_needs_both_coordinates_in_range(self) -> None:
        r = self._upload(longitude="13.4")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["details"][0]["field"], "location")
        r = self._upload(longitude="200", latitude="52.5")
        self.assertEqual(r.status_code, 400)
        self.assertIn("valid longitude", r.json()["details"][0]["message"])

    def test_viewer_cannot_upload(self) -> None:
        viewer = add_user(self.db, "vera", "vera@x.com", role="viewer")
        r = self._upload(user=viewer)
        self.assertEqual(r.status_code, 403)
        self.s3.upload_fileobj.assert_not_called()

    def test_anonymous_cannot_upload(self) -> None:
        r = self.client.post("/api/media/upload", files={"file": ("logo.png", PNG, "image/png")})
        self.assertEqual(r.status_code, 401)

    def test_storage_not_configured(self) -> None:
        app.dependency_overrides[get_storage] = lambda: None
        r = self._upload()
        self.assertEqual(r.status_code, 503)
        self.assertEqual(
            r.json(),
            {"error": "Media storage is not configured!", "code": "STORAGE_NOT_CONFIGURED"},
        )

    def test_storage_failure_is_500_and_saves_nothing(self) -> None:
        self.s3.upload_fileobj.side_effect = _client_error("PutObject")
        with self.assertLogs("designfolio.api.v1.media", level="ERROR"):
            r = self._upload()
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "Failed to upload media!"})
        self.assertEqual(self._media_count(), 0)

    def test_object_removed_when_row_cannot_be_saved(self) -> None:
        client = TestClient(app, raise_server_exceptions=False)
        failure = OperationalError("INSERT", {}, Exception("disk full"))
        with patch("sqlalchemy.orm.Session.commit", side_effect=failure):
            r = client.post(
                "/api/media/upload",
                files={"file": ("logo.png", PNG, "image/png")},
                headers=self.auth_header(self.alice),
            )
        self.assertEqual(r.status_code, 500)
        key = self.s3.upload_fileobj.call_args.args[2]
        self.s3.delete_object.assert_called_once_with(Bucket=BUCKET, Key=key)

    def test_upload_limit(self) -> None:
        for _ in range(RATE_LIMITS["upload"].requests):
            self.limiter.hit("upload:testclient", RATE_LIMITS["upload"])
        r = self._upload()
        self.assertEqual(r.status_code, 429)
        self.assertEqual(r.json(), {"error": "Upload attempts limit exceeded! Please try again in an hour!"})
        self.s3.upload_fileobj.assert_not_called()


class TestMediaDeleteRemovesObject(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = add_user(self.db, "alice", "alice@x.com", role="designer")
        self.s3 = MagicMock()
        self.storage = S3Storage(self.s3, BUCKET, BASE_URL)
        app.dependency_overrides[get_storage] = lambda: self.storage
        self.media = Media(
            user_id=self.alice.id,
            media_type="design_image",
            url=f"{BASE_URL}/media/images/img_1_abc.png",
        )
        self.db.add(self.media)
        self.db.commit()

    def _delete(self, media_id: int):
        return self.client.delete(f"/api/media/{media_id}", headers=self.auth_header(self.alice))

    def test_object_deleted_with_row(self) -> None:
        r = self._delete(self.media.id)
        self.assertEqual(r.status_code, 200)
        self.s3.delete_object.assert_called_once_with(Bucket=BUCKET, Key="media/images/img_1_abc.png")
        self.assertEqual(self.client.get(f"/api/media/{self.media.id}").status_code, 404)

    def test_external_url_leaves_storage_alone(self) -> None:
        external = add_content(self.db, self.alice)["media"]
        r = self._delete(external.id)
        self.assertEqual(r.status_code, 200)
        self.s3.delete_object.assert_not_called()

    def test_object_delete_failure_keeps_row(self) -> None:
        self.s3.delete_object.side_effect = _client_error("DeleteObject")
        with self.assertLogs("designfolio.api.v1.media", level="ERROR"):
            r = self._delete(self.media.id)
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "Failed to delete media!"})
        self.assertEqual(self.client.get(f"/api/media/{self.media.id}").status_code, 200)

    def test_without_storage_only_the_row_goes(self) -> None:
        app.dependency_overrides[get_storage] = lambda: None
        r = self._delete(self.media.id)
        self.assertEqual(r.status_code, 200)
        self.s3.delete_object.assert_not_called()
