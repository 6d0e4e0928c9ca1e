"""
Chirpline URL Configuration
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def api_root(request):
    """Root endpoint with API information."""
    return JsonResponse({
        'message': 'Chirpline API Server',
        'version': '1.0',
        'endpoints': {
            'posts': '/api/posts/',
            'post': '/api/posts/<id>/',
            'bookmarks': '/api/posts/bookmarks/',
            'messages': '/api/messages/',
            'drafts': '/api/drafts/',
            'users': '/api/users/',
            'whoami': '/api/auth/whoami/',
        },
        'admin': '/admin/',
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin/', admin.site.urls),
    path('api/', include('social.urls')),
]
