from unittest import mock

import requests
from botocore.exceptions import ClientError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import OperationalError
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

import catalog.auth as auth
import catalog.service as service
import catalog.store as store
import catalog.vimeo as vimeo
from catalog.errors import (
    AuthError,
    BlobStoreError,
    ConfigurationError,
    NotFound,
    ProviderError,
    SchemaError,
    ValidationError,
)
from catalog.models import Video

ADMIN_PASSWORD = "circus"

BLOB_ENV = {
    "BLOB_READ_WRITE_TOKEN": "blob-secret",
    "R2_ACCESS_KEY_ID": "access-key",
    "S3_CLIENT_ACCOUNT_ENDPOINT": "https://account.r2.cloudflarestorage.com",
    "R2_BUCKET": "studio-media",
    "PUBLIC_URL": "https://media.example.com",
}


def make_config(**values):
    def fake_config(key, default=None, cast=None):
        return values.get(key, default)
    return fake_config


class FakeS3Client:
    def __init__(self, fail_delete=False):
        self.fail_delete = fail_delete
        self.uploads = []
        self.deletes = []

    def upload_fileobj(self, Fileobj, Bucket, Key, ExtraArgs=None):
        self.uploads.append({
            "bucket": Bucket,
            "key": Key,
            "size": len(Fileobj.read()),
            "content_type": (ExtraArgs or {}).get("ContentType"),
        })

    def delete_object(self, Bucket, Key):
        if self.fail_delete:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "Not found"}}, "DeleteObject")
        self.deletes.append(Key)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("Invalid JSON")
        return self._payload


def vimeo_video(video_id, sizes=None):
    return {
        "uri": f"/videos/{video_id}",
        "name": f"Video {video_id}",
        "pictures": {"sizes": sizes or []},
    }


def listing(videos, has_next, total=None):
    return {
        "total": total if total is not None else len(videos),
        "data": videos,
        "paging": {"next": "/me/videos?page=next" if has_next else None},
    }


def make_video(**fields):
    fields.setdefault("title", "Showreel")
    fields.setdefault("blob_url", "https://media.example.com/videos/showreel-abc.mp4")
    return store.create_video(**fields)


class VideoStoreTests(TestCase):

    def test_create_then_get_returns_same_title_and_blob(self):
        """A created record can be read back by id"""
        video = store.create_video(title="Circus promo", blob_url="https://media.example.com/videos/promo.mp4")

        fetched = store.get_video(video.id)

        self.assertEqual(fetched.title, "Circus promo")
        self.assertEqual(fetched.blob_url, "https://media.example.com/videos/promo.mp4")
        self.assertEqual(fetched.video_url, fetched.blob_url)
        self.assertEqual(fetched.file_name, "uploaded-video")
        self.assertIsNotNone(fetched.created_at)

    def test_create_without_title_fails(self):
        with self.assertRaises(ValidationError):
            store.create_video(blob_url="https://media.example.com/videos/promo.mp4")

    def test_create_with_blank_title_fails(self):
        with self.assertRaises(ValidationError):
            store.create_video(title="   ", blob_url="https://media.example.com/videos/promo.mp4")

    def test_create_without_blob_or_vimeo_fails(self):
        with self.assertRaises(ValidationError):
            store.create_video(title="Nothing to play")
        self.assertEqual(Video.objects.count(), 0)

    def test_create_vimeo_only_record(self):
        video = store.create_video(title="Hosted", vimeo_id="123456789", vimeo_hash="abc123")

        self.assertIsNone(video.blob_url)
        self.assertEqual(video.file_name, "vimeo-123456789")

    def test_create_rejects_unknown_fields(self):
        with self.assertRaises(ValidationError):
            store.create_video(title="x", blob_url="https://media.example.com/a.mp4", views=3)

    def test_get_missing_video_raises_not_found(self):
        with self.assertRaises(NotFound):
            store.get_video(999)

    def test_delete_existing_then_get_reports_not_found(self):
        video = make_video()

        self.assertTrue(store.delete_video(video.id))
        with self.assertRaises(NotFound):
            store.get_video(video.id)

    def test_delete_missing_returns_false(self):
        self.assertFalse(store.delete_video(424242))

    def test_list_filters_by_exact_category_and_hides_intro(self):
        music = make_video(title="Band clip", category="music-video")
        make_video(title="Upper case", category="Music-Video")
        make_video(title="Commercial", category="commercial")
        make_video(title="Intro", category="music-video", file_name="smaller intro video.mp4")

        videos = store.list_videos(category="music-video")

        self.assertEqual([video.id for video in videos], [music.id])

    def test_list_includes_intro_on_request(self):
        make_video(title="Work")
        intro = make_video(title="Intro", file_name="smaller intro video.mp4")

        default_ids = [video.id for video in store.list_videos()]
        all_ids = [video.id for video in store.list_videos(exclude_intro=False)]

        self.assertNotIn(intro.id, default_ids)
        self.assertIn(intro.id, all_ids)

    @override_settings(INTRO_VIDEO_URL="https://media.example.com/intro.mp4")
    def test_list_hides_intro_matched_by_url(self):
        intro = make_video(title="Intro", blob_url="https://media.example.com/intro.mp4", file_name="logo.mp4")

        self.assertNotIn(intro.id, [video.id for video in store.list_videos()])

    def test_list_is_newest_first_without_sort_order(self):
        first = make_video(title="First")
        second = make_video(title="Second")

        self.assertEqual([video.id for video in store.list_videos()], [second.id, first.id])

    def test_get_intro_video(self):
        self.assertIsNone(store.get_intro_video())
        intro = make_video(title="Intro", file_name="smaller intro video.mp4")

        self.assertEqual(store.get_intro_video().id, intro.id)

    def test_update_merges_fields(self):
        video = make_video(description="Old")

        updated = store.update_video(video.id, thumbnail_url="https://media.example.com/thumbs/a.png")

        self.assertEqual(updated.thumbnail_url, "https://media.example.com/thumbs/a.png")
        self.assertEqual(updated.description, "Old")
        self.assertEqual(updated.title, "Showreel")

    def test_update_missing_video_raises_not_found(self):
        with self.assertRaises(NotFound):
            store.update_video(999, title="Nope")

    def test_update_rejects_blank_title(self):
        video = make_video()
        with self.assertRaises(ValidationError):
            store.update_video(video.id, title="")

    def test_update_cannot_remove_last_play_source(self):
        video = store.create_video(title="Hosted", vimeo_id="42")

        with self.assertRaises(ValidationError):
            store.update_video(video.id, vimeo_id="")

        self.assertEqual(Video.objects.get(pk=video.id).vimeo_id, "42")

    def test_update_can_drop_vimeo_when_blob_remains(self):
        video = make_video(vimeo_id="42")

        updated = store.update_video(video.id, vimeo_id=None, vimeo_hash=None)

        self.assertIsNone(updated.vimeo_id)
        self.assertIsNotNone(updated.blob_url)

    def test_hidden_videos_leave_the_default_listing(self):
        shown = make_video(title="Shown")
        legacy = make_video(title="Legacy", is_visible=None)
        hidden = make_video(title="Hidden", is_visible=False)

        default_ids = [video.id for video in store.list_videos()]
        all_ids = [video.id for video in store.list_videos(include_hidden=True)]

        self.assertIn(shown.id, default_ids)
        self.assertIn(legacy.id, default_ids)
        self.assertNotIn(hidden.id, default_ids)
        self.assertIn(hidden.id, all_ids)

    def test_reorder_puts_first_id_first(self):
        one = make_video(title="One")
        two = make_video(title="Two")
        three = make_video(title="Three")

        updated = store.reorder_videos([three.id, one.id, two.id])

        self.assertEqual(updated, 3)
        self.assertEqual([video.id for video in store.list_videos()], [three.id, one.id, two.id])
        self.assertEqual(Video.objects.get(pk=three.id).sort_order, 0)

    def test_reorder_skips_missing_ids(self):
        one = make_video()

        self.assertEqual(store.reorder_videos([999, one.id]), 1)
        self.assertEqual(Video.objects.get(pk=one.id).sort_order, 1)

    def test_reorder_rejects_non_sequences(self):
        for bad in ("1,2,3", None, 7, [1, "2"], [True, False]):
            with self.assertRaises(ValidationError):
                store.reorder_videos(bad)

    def test_reorder_reports_missing_sort_order_column(self):
        video = make_video()
        with mock.patch.object(Video.objects, "filter",
                               side_effect=OperationalError("no such column: sort_order")):
            with self.assertRaises(SchemaError) as ctx:
                store.reorder_videos([video.id])

        self.assertIn("migrate", ctx.exception.extra["suggestion"])
        self.assertEqual(ctx.exception.extra["errorCode"], "COLUMN_MISSING")


class BlobGatewayTests(TestCase):

    def setUp(self):
        self.original_config = service.config
        self.original_client = service.boto3.client
        self.s3 = FakeS3Client()
        self.client_kwargs = []

        def fake_client(*args, **kwargs):
            self.client_kwargs.append(kwargs)
            return self.s3

        service.boto3.client = fake_client

    def tearDown(self):
        service.config = self.original_config
        service.boto3.client = self.original_client

    def test_upload_without_token_fails_before_touching_store(self):
        env = dict(BLOB_ENV)
        env.pop("BLOB_READ_WRITE_TOKEN")
        service.config = make_config(**env)

        with self.assertRaises(ConfigurationError) as ctx:
            service.upload(b"data", "clip.mp4", "video/mp4")

        self.assertIn("BLOB_READ_WRITE_TOKEN", str(ctx.exception.detail))
        self.assertEqual(self.client_kwargs, [])
        self.assertEqual(self.s3.uploads, [])

    def test_first_configured_token_wins(self):
        service.config = make_config(CIRCUS_READ_WRITE_TOKEN="circus-secret", **BLOB_ENV)

        service.upload(b"data", "clip.mp4", "video/mp4")

        self.assertEqual(self.client_kwargs[0]["aws_secret_access_key"], "circus-secret")

    def test_empty_first_token_falls_back_to_second(self):
        service.config = make_config(CIRCUS_READ_WRITE_TOKEN="", **BLOB_ENV)

        service.upload(b"data", "clip.mp4", "video/mp4")

        self.assertEqual(self.client_kwargs[0]["aws_secret_access_key"], "blob-secret")

    def test_upload_returns_public_url_with_suffixed_key(self):
        service.config = make_config(**BLOB_ENV)

        url = service.upload(b"12345", "My Show Reel.MP4", "video/mp4", folder="videos")

        key = self.s3.uploads[0]["key"]
        self.assertRegex(key, r"^videos/my-show-reel-[0-9a-f]{12}\.mp4$")
        self.assertEqual(url, f"https://media.example.com/{key}")
        self.assertEqual(self.s3.uploads[0]["bucket"], "studio-media")
        self.assertEqual(self.s3.uploads[0]["size"], 5)
        self.assertEqual(self.s3.uploads[0]["content_type"], "video/mp4")

    def test_same_name_gets_distinct_keys(self):
        service.config = make_config(**BLOB_ENV)

        first = service.upload(b"a", "clip.mp4", "video/mp4")
        second = service.upload(b"b", "clip.mp4", "video/mp4")

        self.assertNotEqual(first, second)

    def test_delete_uses_key_from_public_url(self):
        service.config = make_config(**BLOB_ENV)

        service.delete("https://media.example.com/videos/clip%20one-abc.mp4")

        self.assertEqual(self.s3.deletes, ["videos/clip one-abc.mp4"])

    def test_delete_failure_raises_blob_store_error(self):
        service.config = make_config(**BLOB_ENV)
        self.s3.fail_delete = True

        with self.assertRaises(BlobStoreError):
            service.delete("https://media.example.com/videos/gone.mp4")

    def test_malformed_endpoint_is_a_configuration_error(self):
        service.boto3.client = self.original_client
        service.config = make_config(**dict(BLOB_ENV, S3_CLIENT_ACCOUNT_ENDPOINT="not a url"))

        with self.assertRaises(ConfigurationError) as ctx:
            service.delete("https://media.example.com/videos/gone.mp4")

        self.assertIn("S3_CLIENT_ACCOUNT_ENDPOINT", str(ctx.exception.detail))

    def test_key_from_foreign_url_uses_path(self):
        service.config = make_config(**BLOB_ENV)

        self.assertEqual(service.key_from_url("https://other.example.net/a/b.mp4"), "a/b.mp4")

    def test_validate_thumbnail(self):
        service.validate_thumbnail("image/png", service.THUMBNAIL_MAX_BYTES)
        with self.assertRaises(ValidationError):
            service.validate_thumbnail("image/svg+xml", 10)
        with self.assertRaises(ValidationError):
            service.validate_thumbnail("image/jpeg", service.THUMBNAIL_MAX_BYTES + 1)


class VimeoResolveIdTests(TestCase):

    def test_unlisted_watch_url(self):
        self.assertEqual(vimeo.resolve_id("https://vimeo.com/123456789/abc123"), ("123456789", "abc123"))

    def test_bare_id(self):
        self.assertEqual(vimeo.resolve_id("123456789"), ("123456789", None))

    def test_unrecognized_input_passes_through(self):
        self.assertEqual(vimeo.resolve_id("not a url"), ("not a url", None))

    def test_manage_urls(self):
        self.assertEqual(
            vimeo.resolve_id("https://vimeo.com/manage/videos/123456789/ab8ee4cce4"),
            ("123456789", "ab8ee4cce4"),
        )
        self.assertEqual(vimeo.resolve_id("https://vimeo.com/manage/videos/123456789"), ("123456789", None))

    def test_public_and_embed_urls(self):
        self.assertEqual(vimeo.resolve_id("https://vimeo.com/123456789"), ("123456789", None))
        self.assertEqual(vimeo.resolve_id("https://player.vimeo.com/video/123456789"), ("123456789", None))

    def test_api_uri(self):
        self.assertEqual(vimeo.resolve_id("/videos/555"), ("555", None))

    def test_surrounding_whitespace_is_ignored(self):
        self.assertEqual(vimeo.resolve_id("  987654  "), ("987654", None))


class VimeoClientTests(TestCase):

    def setUp(self):
        self.original_config = vimeo.config
        self.original_get = vimeo.requests.get
        vimeo.config = make_config(VIMEO_TOKEN="vimeo-token")
        self.calls = []
        self.responses = []

        def fake_get(url, headers=None, params=None, timeout=None):
            self.calls.append({"url": url, "headers": headers, "params": params})
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

        vimeo.requests.get = fake_get

    def tearDown(self):
        vimeo.config = self.original_config
        vimeo.requests.get = self.original_get

    def test_fetch_by_id_sends_bearer_token(self):
        self.responses = [FakeResponse(200, vimeo_video("42"))]

        video = vimeo.fetch_by_id("https://vimeo.com/42")

        self.assertEqual(video["uri"], "/videos/42")
        self.assertEqual(self.calls[0]["url"], "https://api.vimeo.com/videos/42")
        self.assertEqual(self.calls[0]["headers"]["Authorization"], "Bearer vimeo-token")

    def test_fetch_by_id_not_found_returns_none(self):
        self.responses = [FakeResponse(404, {}, "not found")]

        self.assertIsNone(vimeo.fetch_by_id("42"))

    def test_fetch_by_id_unauthorized_raises_auth_error(self):
        self.responses = [FakeResponse(401, {}, "bad token")]

        with self.assertRaises(AuthError):
            vimeo.fetch_by_id("42")

    def test_fetch_by_id_server_error_includes_status(self):
        self.responses = [FakeResponse(503, {}, "unavailable")]

        with self.assertRaises(ProviderError) as ctx:
            vimeo.fetch_by_id("42")

        self.assertEqual(ctx.exception.upstream_status, 503)
        self.assertIn("503", str(ctx.exception.detail))

    def test_missing_token_fails_at_call_time(self):
        vimeo.config = make_config()

        with self.assertRaises(ConfigurationError):
            vimeo.fetch_by_id("42")
        self.assertEqual(self.calls, [])

    def test_transport_error_becomes_provider_error(self):
        self.responses = [requests.ConnectionError("connection refused")]

        with self.assertRaises(ProviderError):
            vimeo.fetch_page()

    def test_fetch_all_stops_on_short_page(self):
        self.responses = [
            FakeResponse(200, listing([vimeo_video(1), vimeo_video(2)], has_next=True)),
            FakeResponse(200, listing([vimeo_video(3)], has_next=False)),
        ]

        result = vimeo.fetch_all(per_page=2, max_pages=5)

        self.assertTrue(result.complete)
        self.assertEqual(len(result.videos), 3)
        self.assertEqual(self.calls[1]["params"], {"page": 2, "per_page": 2})

    def test_fetch_all_returns_partial_results_after_later_failure(self):
        self.responses = [
            FakeResponse(200, listing([vimeo_video(1), vimeo_video(2)], has_next=True)),
            FakeResponse(500, {}, "boom"),
        ]

        result = vimeo.fetch_all(per_page=2, max_pages=5)

        self.assertFalse(result.complete)
        self.assertEqual([video["uri"] for video in result.videos], ["/videos/1", "/videos/2"])

    def test_fetch_all_first_page_failure_propagates(self):
        self.responses = [FakeResponse(500, {}, "boom")]

        with self.assertRaises(ProviderError):
            vimeo.fetch_all(per_page=2)

    def test_fetch_all_hitting_max_pages_is_incomplete(self):
        self.responses = [FakeResponse(200, listing([vimeo_video(1)], has_next=True))]

        result = vimeo.fetch_all(per_page=1, max_pages=1)

        self.assertFalse(result.complete)
        self.assertEqual(len(result.videos), 1)

    def test_extract_thumbnail_picks_largest_area(self):
        video = vimeo_video("1", sizes=[
            {"width": 640, "height": 360, "link": "https://i.vimeocdn.com/640.jpg"},
            {"width": 1920, "height": 1080, "link": "https://i.vimeocdn.com/1920.jpg"},
            {"width": 1280, "height": 720, "link": "https://i.vimeocdn.com/1280.jpg"},
        ])

        self.assertEqual(vimeo.extract_thumbnail(video), "https://i.vimeocdn.com/1920.jpg")
        self.assertIsNone(vimeo.extract_thumbnail(vimeo_video("2")))

    def test_verify_connection_success(self):
        self.responses = [FakeResponse(200, listing([vimeo_video(1)], has_next=True, total=37))]

        result = vimeo.verify_connection()

        self.assertTrue(result["success"])
        self.assertEqual(result["videoCount"], 37)
        self.assertEqual(self.calls[0]["params"], {"page": 1, "per_page": 1})

    def test_verify_connection_never_raises(self):
        self.responses = [FakeResponse(401, {}, "bad token")]
        self.assertFalse(vimeo.verify_connection()["success"])

        vimeo.config = make_config()
        result = vimeo.verify_connection()
        self.assertFalse(result["success"])
        self.assertIn("VIMEO_TOKEN", result["message"])


class CatalogAPITestCase(TestCase):
    """Shared fixtures: fake blob store, fake Vimeo, known admin password."""

    def setUp(self):
        self.client = APIClient()

        self.original_auth_config = auth.config
        self.original_service_config = service.config
        self.original_boto3_client = service.boto3.client
        self.original_vimeo_config = vimeo.config
        self.original_requests_get = vimeo.requests.get

        auth.config = make_config(ADMIN_PASSWORD=ADMIN_PASSWORD)
        service.config = make_config(**BLOB_ENV)
        vimeo.config = make_config(VIMEO_TOKEN="vimeo-token")

        self.s3 = FakeS3Client()
        service.boto3.client = lambda *args, **kwargs: self.s3

        self.vimeo_responses = []

        def fake_get(url, headers=None, params=None, timeout=None):
            return self.vimeo_responses.pop(0)

        vimeo.requests.get = fake_get

    def tearDown(self):
        auth.config = self.original_auth_config
        service.config = self.original_service_config
        service.boto3.client = self.original_boto3_client
        vimeo.config = self.original_vimeo_config
        vimeo.requests.get = self.original_requests_get

    def login(self):
        response = self.client.post(reverse("admin_login"), {"password": ADMIN_PASSWORD}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class AdminGateTests(CatalogAPITestCase):

    def test_me_is_false_without_cookie(self):
        response = self.client.get(reverse("admin_me"))

        self.assertEqual(response.json(), {"admin": False})

    def test_login_sets_cookie(self):
        self.login()

        self.assertIn("admin", self.client.cookies)
        self.assertTrue(self.client.cookies["admin"]["httponly"])
        self.assertEqual(self.client.get(reverse("admin_me")).json(), {"admin": True})

    def test_wrong_password_is_rejected(self):
        response = self.client.post(reverse("admin_login"), {"password": "nope"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.json()["error"], "Invalid password")
        self.assertNotIn("admin", self.client.cookies)

    def test_missing_password_field_is_a_validation_error(self):
        response = self.client.post(reverse("admin_login"), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_without_configured_password_fails_loudly(self):
        auth.config = make_config()

        response = self.client.post(reverse("admin_login"), {"password": "anything"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn("ADMIN_PASSWORD", response.json()["error"])

    def test_unsigned_cookie_is_not_admin(self):
        self.client.cookies["admin"] = "1"

        self.assertEqual(self.client.get(reverse("admin_me")).json(), {"admin": False})

    def test_logout_clears_admin_flag(self):
        self.login()

        self.client.post(reverse("admin_logout"))

        self.assertEqual(self.client.get(reverse("admin_me")).json(), {"admin": False})


class MutatingEndpointsRequireAdminTests(CatalogAPITestCase):
    """Without the admin cookie: 401 and nothing changes"""

    def setUp(self):
        super().setUp()
        self.video = make_video(title="Keep me")

    def assertUnauthorized(self, response):
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.json()["error"], "Unauthorized")

    def test_upload(self):
        response = self.client.post(
            reverse("video_list"),
            {"video": SimpleUploadedFile("clip.mp4", b"data", content_type="video/mp4"), "title": "New"},
            format="multipart",
        )

        self.assertUnauthorized(response)
        self.assertEqual(Video.objects.count(), 1)
        self.assertEqual(self.s3.uploads, [])

    def test_create_from_blob(self):
        response = self.client.post(
            reverse("video_create_from_blob"),
            {"title": "New", "blobUrl": "https://media.example.com/videos/new.mp4"},
            format="json",
        )

        self.assertUnauthorized(response)
        self.assertEqual(Video.objects.count(), 1)

    def test_update(self):
        response = self.client.patch(
            reverse("video_detail", args=[self.video.id]), {"title": "Changed"}, format="json"
        )

        self.assertUnauthorized(response)
        self.assertEqual(Video.objects.get(pk=self.video.id).title, "Keep me")

    def test_delete(self):
        response = self.client.delete(reverse("video_detail", args=[self.video.id]))

        self.assertUnauthorized(response)
        self.assertTrue(Video.objects.filter(pk=self.video.id).exists())
        self.assertEqual(self.s3.deletes, [])

    def test_reorder(self):
        response = self.client.post(reverse("video_reorder"), {"videoIds": [self.video.id]}, format="json")

        self.assertUnauthorized(response)
        self.assertIsNone(Video.objects.get(pk=self.video.id).sort_order)

    def test_thumbnail(self):
        response = self.client.post(
            reverse("video_thumbnail", args=[self.video.id]),
            {"file": SimpleUploadedFile("thumb.png", b"png", content_type="image/png")},
            format="multipart",
        )

        self.assertUnauthorized(response)
        self.assertIsNone(Video.objects.get(pk=self.video.id).thumbnail_url)
        self.assertEqual(self.s3.uploads, [])

    def test_blob_upload(self):
        response = self.client.post(
            reverse("blob_upload"),
            {"file": SimpleUploadedFile("clip.mp4", b"data", content_type="video/mp4")},
            format="multipart",
        )

        self.assertUnauthorized(response)
        self.assertEqual(self.s3.uploads, [])


class VideoReadEndpointTests(CatalogAPITestCase):

    def test_list_excludes_intro_by_default(self):
        work = make_video(title="Work", category="music-video")
        intro = make_video(title="Intro", file_name="smaller intro video.mp4")

        response = self.client.get(reverse("video_list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([video["id"] for video in response.json()["videos"]], [work.id])

        response = self.client.get(reverse("video_list"), {"includeIntro": "true"})
        self.assertIn(intro.id, [video["id"] for video in response.json()["videos"]])

    def test_list_filters_by_category(self):
        music = make_video(title="Band", category="music-video")
        make_video(title="Ad", category="commercial")

        response = self.client.get(reverse("video_list"), {"category": "music-video"})

        self.assertEqual([video["id"] for video in response.json()["videos"]], [music.id])

    def test_get_video(self):
        video = make_video(title="Promo", vimeo_id="42")

        response = self.client.get(reverse("video_detail", args=[video.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["video"]["title"], "Promo")
        self.assertEqual(response.json()["video"]["vimeo_id"], "42")

    def test_get_missing_video_is_404(self):
        response = self.client.get(reverse("video_detail", args=[999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()["error"], "Video not found")

    def test_malformed_id_is_400(self):
        response = self.client.get(reverse("video_detail", args=["abc"]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"], "Invalid video ID")

    def test_intro_video_endpoint(self):
        self.assertIsNone(self.client.get(reverse("intro_video")).json()["video"])

        intro = make_video(title="Intro", file_name="smaller intro video.mp4")

        self.assertEqual(self.client.get(reverse("intro_video")).json()["video"]["id"], intro.id)

    def test_unexpected_error_is_reported_as_json(self):
        with mock.patch("catalog.store.list_videos", side_effect=RuntimeError("database exploded")):
            response = self.client.get(reverse("video_list"))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        body = response.json()
        self.assertEqual(body["error"], "database exploded")
        self.assertEqual(body["errorType"], "RuntimeError")
        self.assertIn("Traceback", body["details"])


class VideoWriteEndpointTests(CatalogAPITestCase):

    def setUp(self):
        super().setUp()
        self.login()

    def test_upload_stores_blob_and_creates_record(self):
        response = self.client.post(
            reverse("video_list"),
            {
                "video": SimpleUploadedFile("Band Clip.mp4", b"x" * 2048, content_type="video/mp4"),
                "title": "Band clip",
                "category": "music-video",
            },
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        video = response.json()["video"]
        self.assertEqual(video["title"], "Band clip")
        self.assertEqual(video["category"], "music-video")
        self.assertEqual(video["file_size"], 2048)
        self.assertEqual(video["file_name"], "Band Clip.mp4")
        self.assertTrue(video["blob_url"].startswith("https://media.example.com/videos/band-clip-"))
        self.assertEqual(len(self.s3.uploads), 1)

    def test_upload_rejects_non_video_file(self):
        response = self.client.post(
            reverse("video_list"),
            {"video": SimpleUploadedFile("notes.txt", b"hi", content_type="text/plain"), "title": "Notes"},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("video", response.json()["details"])
        self.assertEqual(self.s3.uploads, [])

    def test_upload_without_blob_token_explains_fix(self):
        env = dict(BLOB_ENV)
        env.pop("BLOB_READ_WRITE_TOKEN")
        service.config = make_config(**env)

        response = self.client.post(
            reverse("video_list"),
            {"video": SimpleUploadedFile("clip.mp4", b"data", content_type="video/mp4"), "title": "Clip"},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn("BLOB_READ_WRITE_TOKEN", response.json()["error"])
        self.assertIn("suggestion", response.json())
        self.assertEqual(Video.objects.count(), 0)

    def test_create_from_blob(self):
        response = self.client.post(
            reverse("video_create_from_blob"),
            {
                "title": "Promo",
                "blobUrl": "https://media.example.com/videos/promo.mp4",
                "file_name": "promo.mp4",
                "file_size": 1234,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        video = Video.objects.get(pk=response.json()["video"]["id"])
        self.assertEqual(video.blob_url, "https://media.example.com/videos/promo.mp4")
        self.assertEqual(video.video_url, video.blob_url)
        self.assertEqual(video.file_size, 1234)

    def test_create_from_vimeo_url_normalizes_id_and_hash(self):
        response = self.client.post(
            reverse("video_create_from_blob"),
            {"title": "Hosted", "vimeo_id": "https://vimeo.com/123456789/abc123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        video = response.json()["video"]
        self.assertEqual(video["vimeo_id"], "123456789")
        self.assertEqual(video["vimeo_hash"], "abc123")
        self.assertEqual(video["file_name"], "vimeo-123456789")

    def test_create_from_blob_requires_title(self):
        response = self.client.post(
            reverse("video_create_from_blob"),
            {"blobUrl": "https://media.example.com/videos/promo.mp4"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("title", response.json()["details"])

    def test_create_from_blob_requires_blob_or_vimeo(self):
        response = self.client.post(reverse("video_create_from_blob"), {"title": "Empty"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Vimeo ID is required", response.json()["error"])
        self.assertEqual(Video.objects.count(), 0)

    def test_update_video(self):
        video = make_video()

        response = self.client.patch(
            reverse("video_detail", args=[video.id]),
            {"title": "Renamed", "vimeo_id": "https://player.vimeo.com/video/77"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["video"]["title"], "Renamed")
        self.assertEqual(response.json()["video"]["vimeo_id"], "77")

    def test_update_missing_video_is_404(self):
        response = self.client.patch(reverse("video_detail", args=[999]), {"title": "Renamed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_cannot_clear_vimeo_on_vimeo_only_record(self):
        video = store.create_video(title="Hosted", vimeo_id="42")

        response = self.client.patch(reverse("video_detail", args=[video.id]), {"vimeo_id": ""}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Vimeo ID is required", response.json()["error"])
        self.assertEqual(Video.objects.get(pk=video.id).vimeo_id, "42")

    def test_update_keeps_hash_from_unlisted_link(self):
        video = make_video()

        response = self.client.patch(
            reverse("video_detail", args=[video.id]),
            {"vimeo_id": "https://vimeo.com/123456789/abc123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["video"]["vimeo_id"], "123456789")
        self.assertEqual(response.json()["video"]["vimeo_hash"], "abc123")

    def test_hide_and_show_video(self):
        video = make_video()
        url = reverse("video_detail", args=[video.id])

        response = self.client.patch(url, {"is_visible": False, "display_date": "2024-05-01"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.json()["video"]["is_visible"])
        self.assertEqual(response.json()["video"]["display_date"], "2024-05-01")
        self.assertEqual(self.client.get(reverse("video_list")).json()["videos"], [])
        listed = self.client.get(reverse("video_list"), {"includeHidden": "true"}).json()["videos"]
        self.assertEqual([item["id"] for item in listed], [video.id])

        self.client.patch(url, {"is_visible": True}, format="json")
        self.assertEqual(len(self.client.get(reverse("video_list")).json()["videos"]), 1)

    def test_delete_removes_row_and_blob(self):
        video = make_video(blob_url="https://media.example.com/videos/showreel-abc.mp4")

        response = self.client.delete(reverse("video_detail", args=[video.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"success": True, "blobDeleted": True})
        self.assertFalse(Video.objects.filter(pk=video.id).exists())
        self.assertEqual(self.s3.deletes, ["videos/showreel-abc.mp4"])

    def test_delete_survives_blob_failure(self):
        video = make_video()
        self.s3.fail_delete = True

        response = self.client.delete(reverse("video_detail", args=[video.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"success": True, "blobDeleted": False})
        self.assertFalse(Video.objects.filter(pk=video.id).exists())

    def test_delete_survives_missing_blob_configuration(self):
        video = make_video()
        service.config = make_config()

        response = self.client.delete(reverse("video_detail", args=[video.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Video.objects.filter(pk=video.id).exists())

    def test_delete_survives_malformed_blob_endpoint(self):
        video = make_video()
        service.boto3.client = self.original_boto3_client
        service.config = make_config(**dict(BLOB_ENV, S3_CLIENT_ACCOUNT_ENDPOINT="not a url"))

        response = self.client.delete(reverse("video_detail", args=[video.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"success": True, "blobDeleted": False})
        self.assertFalse(Video.objects.filter(pk=video.id).exists())

    def test_delete_vimeo_only_record_skips_blob(self):
        video = store.create_video(title="Hosted", vimeo_id="42")

        response = self.client.delete(reverse("video_detail", args=[video.id]))

        self.assertEqual(response.json(), {"success": True, "blobDeleted": False})
        self.assertEqual(self.s3.deletes, [])

    def test_delete_missing_video_is_404(self):
        response = self.client.delete(reverse("video_detail", args=[999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_reorder(self):
        one = make_video(title="One")
        two = make_video(title="Two")
        three = make_video(title="Three")

        response = self.client.post(
            reverse("video_reorder"), {"videoIds": [three.id, one.id, two.id]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {"success": True, "updated": 3})
        listed = self.client.get(reverse("video_list")).json()["videos"]
        self.assertEqual([video["id"] for video in listed], [three.id, one.id, two.id])

    def test_reorder_requires_array(self):
        response = self.client.post(reverse("video_reorder"), {"videoIds": "1,2"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reorder_reports_schema_problem(self):
        video = make_video()
        with mock.patch.object(Video.objects, "filter",
                               side_effect=OperationalError("no such column: sort_order")):
            response = self.client.post(reverse("video_reorder"), {"videoIds": [video.id]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json()["errorCode"], "COLUMN_MISSING")
        self.assertIn("migrate", response.json()["suggestion"])

    def test_blob_upload_returns_url_and_pathname(self):
        response = self.client.post(
            reverse("blob_upload"),
            {"file": SimpleUploadedFile("raw.mov", b"data", content_type="video/quicktime"), "filename": "Final Cut.mov"},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body["pathname"].startswith("videos/final-cut-"))
        self.assertEqual(body["blobUrl"], f"https://media.example.com/{body['pathname']}")


class ThumbnailUploadTests(CatalogAPITestCase):

    def setUp(self):
        super().setUp()
        self.login()
        self.video = make_video()
        self.url = reverse("video_thumbnail", args=[self.video.id])

    def test_thumbnail_over_size_limit_is_rejected_before_upload(self):
        oversized = SimpleUploadedFile("big.png", b"\0" * int(10.1 * 1024 * 1024), content_type="image/png")

        response = self.client.post(self.url, {"file": oversized}, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Maximum size is 10MB", response.json()["error"])
        self.assertEqual(self.s3.uploads, [])
        self.assertIsNone(Video.objects.get(pk=self.video.id).thumbnail_url)

    def test_non_image_thumbnail_is_rejected(self):
        response = self.client.post(
            self.url,
            {"file": SimpleUploadedFile("clip.mp4", b"data", content_type="video/mp4")},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Invalid file type", response.json()["error"])
        self.assertEqual(self.s3.uploads, [])

    def test_thumbnail_upload_updates_record(self):
        response = self.client.post(
            self.url,
            {"file": SimpleUploadedFile("cover.png", b"png-bytes", content_type="image/png")},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body["thumbnailUrl"].startswith(f"https://media.example.com/thumbnails/{self.video.id}-cover-"))
        self.assertEqual(body["video"]["thumbnail_url"], body["thumbnailUrl"])
        self.assertEqual(self.s3.uploads[0]["content_type"], "image/png")

    def test_thumbnail_for_missing_video_is_404(self):
        response = self.client.post(
            reverse("video_thumbnail", args=[999]),
            {"file": SimpleUploadedFile("cover.png", b"png-bytes", content_type="image/png")},
            format="multipart",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.s3.uploads, [])


class VimeoEndpointTests(CatalogAPITestCase):

    def test_vimeo_thumbnail_requires_id(self):
        response = self.client.get(reverse("vimeo_thumbnail"))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_vimeo_thumbnail(self):
        self.vimeo_responses = [FakeResponse(200, vimeo_video("42", sizes=[
            {"width": 100, "height": 75, "link": "https://i.vimeocdn.com/small.jpg"},
            {"width": 1280, "height": 720, "link": "https://i.vimeocdn.com/large.jpg"},
        ]))]

        response = self.client.get(reverse("vimeo_thumbnail"), {"vimeoId": "https://vimeo.com/42"})

        self.assertEqual(response.json(), {"thumbnail_url": "https://i.vimeocdn.com/large.jpg"})

    def test_vimeo_thumbnail_not_found(self):
        self.vimeo_responses = [FakeResponse(404, {}, "missing")]

        response = self.client.get(reverse("vimeo_thumbnail"), {"vimeoId": "42"})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIsNone(response.json()["thumbnail_url"])

    def test_vimeo_single_video(self):
        self.vimeo_responses = [FakeResponse(200, vimeo_video("42"))]

        response = self.client.get(reverse("vimeo"), {"id": "42"})

        self.assertEqual(response.json()["video"]["uri"], "/videos/42")

    def test_vimeo_single_video_missing_is_404(self):
        self.vimeo_responses = [FakeResponse(404, {}, "missing")]

        response = self.client.get(reverse("vimeo"), {"id": "42"})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_vimeo_listing_page(self):
        self.vimeo_responses = [FakeResponse(200, listing([vimeo_video(1), vimeo_video(2)], has_next=True, total=9))]

        response = self.client.get(reverse("vimeo"), {"page": 2, "per_page": 500})

        body = response.json()
        self.assertEqual(body["total"], 9)
        self.assertEqual(body["page"], 2)
        self.assertEqual(body["per_page"], 100)
        self.assertTrue(body["has_next"])
        self.assertEqual(len(body["videos"]), 2)

    def test_vimeo_upstream_error_includes_status(self):
        self.vimeo_responses = [FakeResponse(502, {}, "bad gateway")]

        response = self.client.get(reverse("vimeo"))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json()["upstreamStatus"], 502)

    def test_vimeo_without_token(self):
        vimeo.config = make_config()

        response = self.client.get(reverse("vimeo"))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn("VIMEO_TOKEN", response.json()["error"])

    def test_verify_success(self):
        self.vimeo_responses = [FakeResponse(200, listing([vimeo_video(1)], has_next=False))]

        response = self.client.get(reverse("vimeo_verify"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.json()["success"])

    def test_verify_failure(self):
        vimeo.config = make_config()

        response = self.client.get(reverse("vimeo_verify"))

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(response.json()["success"])
