from django.urls import path

from .views import (
    AdminLoginView,
    AdminLogoutView,
    AdminMeView,
    BlobUploadView,
    CreateFromBlobView,
    IntroVideoView,
    ReorderView,
    VideoDetailView,
    VideoListView,
    VideoThumbnailView,
    VimeoThumbnailView,
    VimeoVerifyView,
    VimeoView,
)

urlpatterns = [
    path("videos", VideoListView.as_view(), name="video_list"),
    path("videos/create-from-blob", CreateFromBlobView.as_view(), name="video_create_from_blob"),
    path("videos/reorder", ReorderView.as_view(), name="video_reorder"),
    path("videos/upload", BlobUploadView.as_view(), name="blob_upload"),
    path("videos/vimeo-thumbnail", VimeoThumbnailView.as_view(), name="vimeo_thumbnail"),
    path("videos/<str:video_id>", VideoDetailView.as_view(), name="video_detail"),
    path("videos/<str:video_id>/thumbnail", VideoThumbnailView.as_view(), name="video_thumbnail"),
    path("intro-video", IntroVideoView.as_view(), name="intro_video"),
    path("vimeo", VimeoView.as_view(), name="vimeo"),
    path("vimeo/verify", VimeoVerifyView.as_view(), name="vimeo_verify"),
    path("admin/me", AdminMeView.as_view(), name="admin_me"),
    path("admin/login", AdminLoginView.as_view(), name="admin_login"),
    path("admin/logout", AdminLogoutView.as_view(), name="admin_logout"),
]
