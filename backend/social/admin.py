"""
Django Admin Configuration for Social Models
"""
from django.contrib import admin
from .models import Member, Follow, Post, Like, Bookmark, Comment, Message, Draft


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ['app_user_id', 'display_name', 'provider', 'oauth_completed', 'created_at']
    list_filter = ['provider', 'oauth_completed', 'created_at']
    search_fields = ['app_user_id', 'display_name', 'email']
    readonly_fields = ['provider_account_id', 'created_at', 'updated_at']


@admin.register(Follow)
class FollowAdmin(admin.ModelAdmin):
    list_display = ['follower', 'followee', 'created_at']
    search_fields = ['follower__app_user_id', 'followee__app_user_id']


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ['id', 'author', 'content', 'repost_of', 'repost_count', 'created_at']
    list_filter = ['created_at']
    search_fields = ['content', 'author__app_user_id']
    readonly_fields = ['repost_count', 'created_at', 'updated_at']


@admin.register(Like)
class LikeAdmin(admin.ModelAdmin):
    list_display = ['member', 'post', 'created_at']
    search_fields = ['member__app_user_id']


@admin.register(Bookmark)
class BookmarkAdmin(admin.ModelAdmin):
    list_display = ['member', 'post', 'created_at']
    search_fields = ['member__app_user_id']


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['id', 'post', 'author', 'created_at']
    list_filter = ['created_at']
    search_fields = ['content', 'author__app_user_id']
    readonly_fields = ['created_at']

    def has_change_permission(self, request, obj=None):
        # Comments are append-only
        return False


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['sender', 'receiver', 'read', 'created_at']
    list_filter = ['read', 'created_at']
    search_fields = ['sender__app_user_id', 'receiver__app_user_id']


@admin.register(Draft)
class DraftAdmin(admin.ModelAdmin):
    list_display = ['id', 'owner', 'created_at']
    search_fields = ['owner__app_user_id']
