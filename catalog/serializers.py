from rest_framework import serializers

from . import service
from .errors import ValidationError as CatalogValidationError
from .models import Video
from .vimeo import MAX_PER_PAGE, resolve_id


class VideoSerializer(serializers.ModelSerializer):
    class Meta:
        model = Video
        fields = [
            "id",
            "title",
            "description",
            "category",
            "video_url",
            "blob_url",
            "thumbnail_url",
            "file_name",
            "file_size",
            "duration",
            "sort_order",
            "is_visible",
            "display_date",
            "vimeo_id",
            "vimeo_hash",
            "created_at",
            "updated_at",
        ]


class VideoListQuerySerializer(serializers.Serializer):
    category = serializers.CharField(required=False, allow_blank=True)
    includeIntro = serializers.BooleanField(required=False, default=False)
    includeHidden = serializers.BooleanField(required=False, default=False)


class VideoUploadSerializer(serializers.Serializer):
    video = serializers.FileField(required=True)
    title = serializers.CharField(required=True, allow_blank=False, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(required=False, allow_blank=True, max_length=100)
    duration = serializers.FloatField(required=False, min_value=0)
    display_date = serializers.DateField(required=False, allow_null=True)

    def validate_video(self, file):
        content_type = getattr(file, "content_type", "") or ""
        if not content_type.startswith("video/"):
            raise serializers.ValidationError("The uploaded file does not look like a video.")
        return file


def _resolve_vimeo_link(attrs):
    # Editors paste whatever Vimeo link they have at hand; an unlisted link
    # carries the hash too
    if attrs.get("vimeo_id"):
        ref = resolve_id(attrs["vimeo_id"])
        attrs["vimeo_id"] = ref.id
        if ref.hash and not attrs.get("vimeo_hash"):
            attrs["vimeo_hash"] = ref.hash
    elif "vimeo_id" in attrs:
        attrs["vimeo_id"] = None
    return attrs


class CreateFromBlobSerializer(serializers.Serializer):
    blobUrl = serializers.URLField(required=False, allow_blank=True, max_length=1000)
    blobPath = serializers.CharField(required=False, allow_blank=True)
    title = serializers.CharField(required=True, allow_blank=False, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    category = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    thumbnail_url = serializers.URLField(required=False, allow_blank=True, allow_null=True, max_length=1000)
    file_name = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    file_size = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    duration = serializers.FloatField(required=False, allow_null=True, min_value=0)
    display_date = serializers.DateField(required=False, allow_null=True)
    is_visible = serializers.BooleanField(required=False, allow_null=True)
    vimeo_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    vimeo_hash = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)

    def validate(self, attrs):
        if not attrs.get("blobUrl") and not attrs.get("vimeo_id"):
            raise serializers.ValidationError("Either a video file (blob URL) or Vimeo ID is required")
        return _resolve_vimeo_link(attrs)

    def to_store_fields(self):
        data = dict(self.validated_data)
        data.pop("blobPath", None)
        blob_url = data.pop("blobUrl", None) or None
        data["blob_url"] = blob_url
        data["video_url"] = blob_url
        return {key: value for key, value in data.items() if value not in (None, "")}


class VideoUpdateSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=False, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    category = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    thumbnail_url = serializers.URLField(required=False, allow_blank=True, allow_null=True, max_length=1000)
    vimeo_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    vimeo_hash = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    duration = serializers.FloatField(required=False, allow_null=True, min_value=0)
    display_date = serializers.DateField(required=False, allow_null=True)
    is_visible = serializers.BooleanField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No updatable fields provided")
        return _resolve_vimeo_link(attrs)


class ThumbnailUploadSerializer(serializers.Serializer):
    file = serializers.FileField(required=True)

    def validate_file(self, file):
        try:
            service.validate_thumbnail(getattr(file, "content_type", None), file.size)
        except CatalogValidationError as exc:
            raise serializers.ValidationError(str(exc.detail)) from exc
        return file


class BlobUploadSerializer(serializers.Serializer):
    file = serializers.FileField(required=True)
    filename = serializers.CharField(required=False, allow_blank=True, max_length=255)


class ReorderSerializer(serializers.Serializer):
    videoIds = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=True)


class AdminLoginSerializer(serializers.Serializer):
    password = serializers.CharField(required=True, allow_blank=False, trim_whitespace=False)


class VimeoQuerySerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_blank=True)
    page = serializers.IntegerField(required=False, default=1, min_value=1)
    per_page = serializers.IntegerField(required=False, default=25, min_value=1)

    def validate_per_page(self, value):
        return min(value, MAX_PER_PAGE)


class VimeoThumbnailQuerySerializer(serializers.Serializer):
    vimeoId = serializers.CharField(required=True, allow_blank=False)
