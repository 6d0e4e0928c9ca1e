"""
Social App URL Configuration
"""
from django.urls import path
from .views import (
    PostListView,
    PostDetailView,
    PostLikeView,
    PostRepostView,
    PostCommentsView,
    PostBookmarkView,
    BookmarkListView,
    OwnPostsView,
    MessageListView,
    ConversationView,
    DraftView,
    MemberListView,
    RegisterView,
    VerifyView,
    DeleteAccountView,
    ProfileView,
    ProviderLookupView,
    ProfileUpdateView,
    FollowView,
    CheckFollowView,
    WhoAmIView,
)

urlpatterns = [
    # Posts
    path('posts/', PostListView.as_view(), name='post-list'),
    path('posts/bookmarks/', BookmarkListView.as_view(), name='bookmark-list'),
    path('posts/mine/', OwnPostsView.as_view(), name='own-posts'),
    path('posts/<int:post_id>/', PostDetailView.as_view(), name='post-detail'),
    path('posts/<int:post_id>/like/', PostLikeView.as_view(), name='post-like'),
    path('posts/<int:post_id>/repost/', PostRepostView.as_view(), name='post-repost'),
    path('posts/<int:post_id>/comments/', PostCommentsView.as_view(), name='post-comments'),
    path('posts/<int:post_id>/bookmark/', PostBookmarkView.as_view(), name='post-bookmark'),

    # Messages
    path('messages/', MessageListView.as_view(), name='message-list'),
    path('messages/<str:app_user_id>/', ConversationView.as_view(), name='conversation'),

    # Drafts
    path('drafts/', DraftView.as_view(), name='drafts'),

    # Users (fixed paths before <app_user_id>)
    path('users/', MemberListView.as_view(), name='user-list'),
    path('users/register/', RegisterView.as_view(), name='user-register'),
    path('users/verify/', VerifyView.as_view(), name='user-verify'),
    path('users/delete-account/', DeleteAccountView.as_view(), name='user-delete-account'),
    path('users/<str:app_user_id>/', ProfileView.as_view(), name='user-profile'),
    path('users/<str:app_user_id>/provider/', ProviderLookupView.as_view(), name='user-provider'),
    path('users/<str:app_user_id>/update/', ProfileUpdateView.as_view(), name='user-update'),
    path('users/<str:app_user_id>/follow/', FollowView.as_view(), name='user-follow'),
    path('users/<str:app_user_id>/check-follow/', CheckFollowView.as_view(), name='user-check-follow'),

    # Auth
    path('auth/whoami/', WhoAmIView.as_view(), name='whoami'),
]
