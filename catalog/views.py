import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import service, store, vimeo
from .auth import IsStudioAdmin, check_password, clear_admin_cookie, set_admin_cookie
from .errors import CatalogError, NotFound, ValidationError
from .serializers import (
    AdminLoginSerializer,
    BlobUploadSerializer,
    CreateFromBlobSerializer,
    ReorderSerializer,
    ThumbnailUploadSerializer,
    VideoListQuerySerializer,
    VideoSerializer,
    VideoUpdateSerializer,
    VideoUploadSerializer,
    VimeoQuerySerializer,
    VimeoThumbnailQuerySerializer,
)
from .utils.responses import error_response

logger = logging.getLogger(__name__)


def _parse_video_id(raw) -> int:
    try:
        video_id = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid video ID")
    if video_id < 1:
        raise ValidationError("Invalid video ID")
    return video_id


class AdminWriteMixin:
    """Reads are public; any other method needs the admin cookie."""

    def get_permissions(self):
        if self.request.method in ("GET", "HEAD", "OPTIONS"):
            return []
        return [IsStudioAdmin()]


class VideoListView(AdminWriteMixin, APIView):
    """
    GET lists the gallery; POST uploads a video file to the blob store and
    records it in one step.
    """

    def get(self, request):
        query = VideoListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        videos = store.list_videos(
            category=query.validated_data.get("category") or None,
            exclude_intro=not query.validated_data["includeIntro"],
            include_hidden=query.validated_data["includeHidden"],
        )
        response = Response({"videos": VideoSerializer(videos, many=True).data})
        response["Cache-Control"] = "no-store, no-cache, must-revalidate"
        return response

    def post(self, request):
        serializer = VideoUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        video_file = data["video"]
        logger.info("Uploading video %r (%s bytes)", video_file.name, video_file.size)
        blob_url = service.upload(
            video_file.read(),
            video_file.name,
            video_file.content_type,
            folder="videos",
        )

        video = store.create_video(
            title=data["title"],
            description=data.get("description") or None,
            category=data.get("category") or None,
            blob_url=blob_url,
            video_url=blob_url,
            file_name=video_file.name,
            file_size=video_file.size,
            duration=data.get("duration"),
            display_date=data.get("display_date"),
        )
        return Response({"video": VideoSerializer(video).data}, status=status.HTTP_201_CREATED)


class VideoDetailView(AdminWriteMixin, APIView):

    def get(self, request, video_id):
        video = store.get_video(_parse_video_id(video_id))
        return Response({"video": VideoSerializer(video).data})

    def patch(self, request, video_id):
        video_id = _parse_video_id(video_id)
        serializer = VideoUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        video = store.update_video(video_id, **serializer.validated_data)
        return Response({"video": VideoSerializer(video).data})

    def delete(self, request, video_id):
        """
        Delete the row, cleaning up its blob first on a best-effort basis.

        The row is the record of truth: a blob that cannot be removed (missing
        configuration, already gone, store error) is logged and the row is
        deleted anyway.
        """
        video = store.get_video(_parse_video_id(video_id))
        logger.info("Deleting video ID %s: %s (blob: %s)", video.id, video.title, video.blob_url)

        blob_deleted = False
        if video.blob_url:
            try:
                service.delete(video.blob_url)
                blob_deleted = True
            except CatalogError as exc:
                logger.warning("Could not delete blob for video %s, continuing with database deletion: %s",
                               video.id, exc)

        if not store.delete_video(video.id):
            raise NotFound()

        logger.info("Video %s deleted successfully (blob: %s)", video.id, "yes" if blob_deleted else "skipped")
        return Response({"success": True, "blobDeleted": blob_deleted})


class VideoThumbnailView(APIView):
    permission_classes = [IsStudioAdmin]

    def post(self, request, video_id):
        video_id = _parse_video_id(video_id)
        serializer = ThumbnailUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        store.get_video(video_id)

        image = serializer.validated_data["file"]
        logger.info("Uploading thumbnail for video ID %s: %s (%s bytes)", video_id, image.name, image.size)
        thumbnail_url = service.upload(
            image.read(),
            f"{video_id}-{image.name}",
            image.content_type,
            folder="thumbnails",
        )

        video = store.update_video(video_id, thumbnail_url=thumbnail_url)
        return Response({"thumbnailUrl": thumbnail_url, "video": VideoSerializer(video).data})


class CreateFromBlobView(APIView):
    """Record a video already uploaded to the blob store, or hosted on Vimeo."""
    permission_classes = [IsStudioAdmin]

    def post(self, request):
        serializer = CreateFromBlobSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        video = store.create_video(**serializer.to_store_fields())
        return Response({"video": VideoSerializer(video).data}, status=status.HTTP_201_CREATED)


class BlobUploadView(APIView):
    """Server-side upload of a file to the blob store, without recording it."""
    permission_classes = [IsStudioAdmin]

    def post(self, request):
        serializer = BlobUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        upload = serializer.validated_data["file"]
        filename = serializer.validated_data.get("filename") or upload.name
        blob_url = service.upload(upload.read(), filename, upload.content_type or "video/mp4", folder="videos")
        return Response({"blobUrl": blob_url, "pathname": service.key_from_url(blob_url)})


class ReorderView(APIView):
    permission_classes = [IsStudioAdmin]

    def post(self, request):
        serializer = ReorderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = store.reorder_videos(serializer.validated_data["videoIds"])
        return Response({"success": True, "updated": updated})


class IntroVideoView(APIView):

    def get(self, request):
        video = store.get_intro_video()
        return Response({"video": VideoSerializer(video).data if video else None})


class VimeoThumbnailView(APIView):

    def get(self, request):
        query = VimeoThumbnailQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        video = vimeo.fetch_by_id(query.validated_data["vimeoId"])
        if video is None:
            return Response({"thumbnail_url": None, "error": "Video not found"},
                            status=status.HTTP_404_NOT_FOUND)

        thumbnail_url = vimeo.extract_thumbnail(video)
        if not thumbnail_url:
            return Response({"thumbnail_url": None, "error": "No thumbnail available"},
                            status=status.HTTP_404_NOT_FOUND)
        return Response({"thumbnail_url": thumbnail_url})


class VimeoView(APIView):
    """
    Passthrough to the studio's Vimeo account.

    ``?id=`` returns a single video, otherwise one page of the listing.
    """

    def get(self, request):
        query = VimeoQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        if params.get("id"):
            video = vimeo.fetch_by_id(params["id"])
            if video is None:
                raise NotFound("Video not found")
            return Response({"video": video})

        listing = vimeo.fetch_page(per_page=params["per_page"], page=params["page"])
        videos = listing.get("data") or []
        return Response({
            "videos": videos,
            "total": listing.get("total", len(videos)),
            "page": params["page"],
            "per_page": params["per_page"],
            "has_next": bool((listing.get("paging") or {}).get("next")),
        })


class VimeoVerifyView(APIView):

    def get(self, request):
        result = vimeo.verify_connection()
        return Response(
            result,
            status=status.HTTP_200_OK if result["success"] else status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class AdminMeView(APIView):

    def get(self, request):
        return Response({"admin": request.user.is_admin})


class AdminLoginView(APIView):

    def post(self, request):
        serializer = AdminLoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if not check_password(serializer.validated_data["password"]):
            logger.warning("Admin login failed")
            return error_response("Invalid password", status.HTTP_401_UNAUTHORIZED)

        logger.info("Admin login succeeded")
        return set_admin_cookie(Response({"admin": True}))


class AdminLogoutView(APIView):

    def post(self, request):
        return clear_admin_cookie(Response({"admin": False}))
