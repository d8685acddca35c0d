import logging

from django.conf import settings
from django.db import DatabaseError
from django.db.models import F, Q

from .errors import NotFound, SchemaError, ValidationError
from .models import Video

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "description",
    "category",
    "video_url",
    "blob_url",
    "thumbnail_url",
    "file_name",
    "file_size",
    "duration",
    "is_visible",
    "display_date",
    "vimeo_id",
    "vimeo_hash",
)


def _intro_filter() -> Q | None:
    """Build the condition that matches the designated intro record."""
    filename = getattr(settings, "INTRO_VIDEO_FILENAME", "")
    url = getattr(settings, "INTRO_VIDEO_URL", "")

    condition = None
    if filename:
        condition = Q(file_name__contains=filename)
    if url:
        by_url = Q(blob_url__contains=url) | Q(video_url__contains=url)
        condition = by_url if condition is None else condition | by_url
    return condition


def _ordered(queryset):
    # Manually ordered records first, the rest newest first
    return queryset.order_by(F("sort_order").asc(nulls_last=True), "-created_at", "-id")


def list_videos(category: str | None = None, exclude_intro: bool = True,
                include_hidden: bool = False) -> list[Video]:
    queryset = Video.objects.all()

    if not include_hidden:
        # NULL counts as visible
        queryset = queryset.exclude(is_visible=False)

    if category:
        queryset = queryset.filter(category=category)

    if exclude_intro:
        intro = _intro_filter()
        if intro is not None:
            queryset = queryset.exclude(intro)

    videos = list(_ordered(queryset))
    logger.debug("list_videos category=%s exclude_intro=%s include_hidden=%s -> %s video(s)",
                 category, exclude_intro, include_hidden, len(videos))
    return videos


def get_video(video_id: int) -> Video:
    video = Video.objects.filter(pk=video_id).first()
    if video is None:
        raise NotFound()
    return video


def get_intro_video() -> Video | None:
    intro = _intro_filter()
    if intro is None:
        return None
    return Video.objects.filter(intro).order_by("-created_at").first()


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def create_video(**fields) -> Video:
    """Persist a new video record.

    A record needs a title and something to play: a blob in the object store
    (``blob_url``) or a Vimeo reference (``vimeo_id``).
    """
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")

    if _is_blank(fields.get("title")):
        raise ValidationError("Title is required")

    blob_url = fields.get("blob_url") or None
    vimeo_id = fields.get("vimeo_id") or None
    if not blob_url and not vimeo_id:
        raise ValidationError("Either a video file (blob URL) or Vimeo ID is required")

    data = {key: (None if value == "" else value) for key, value in fields.items()}
    data["title"] = str(fields["title"]).strip()
    if not data.get("video_url"):
        data["video_url"] = blob_url
    if not data.get("file_name"):
        data["file_name"] = f"vimeo-{vimeo_id}" if vimeo_id else "uploaded-video"

    video = Video.objects.create(**data)
    logger.info("Video created: id=%s title=%r vimeo_id=%s", video.id, video.title, video.vimeo_id)
    return video


def update_video(video_id: int, **fields) -> Video:
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    if "title" in fields and _is_blank(fields["title"]):
        raise ValidationError("Title cannot be empty")

    video = get_video(video_id)
    for key, value in fields.items():
        setattr(video, key, None if value == "" else value)
    if not video.blob_url and not video.vimeo_id:
        raise ValidationError("Either a video file (blob URL) or Vimeo ID is required")
    if "title" in fields:
        video.title = str(video.title).strip()
    video.save()

    logger.info("Video updated: id=%s fields=%s", video.id, sorted(fields))
    return video


def delete_video(video_id: int) -> bool:
    deleted, _ = Video.objects.filter(pk=video_id).delete()
    if deleted:
        logger.info("Video %s deleted from database", video_id)
    else:
        logger.info("Video %s not found in database (may have been already deleted)", video_id)
    return bool(deleted)


def reorder_videos(video_ids) -> int:
    """Write ``sort_order`` for each id to its position in ``video_ids``.

    Rows are updated one at a time with no surrounding transaction, so a
    failure midway leaves the earlier rows updated. Ids with no row are
    skipped. Returns the number of rows updated.
    """
    if not isinstance(video_ids, (list, tuple)):
        raise ValidationError("videoIds must be an array")
    if any(isinstance(item, bool) or not isinstance(item, int) for item in video_ids):
        raise ValidationError("videoIds must contain only integer video IDs")

    updated = 0
    try:
        for index, video_id in enumerate(video_ids):
            updated += Video.objects.filter(pk=video_id).update(sort_order=index)
    except DatabaseError as exc:
        if "sort_order" in str(exc).lower():
            logger.error("sort_order column issue: %s", exc)
            raise SchemaError("sort_order") from exc
        raise

    logger.info("Successfully updated sort_order for %s of %s video(s)", updated, len(video_ids))
    return updated
