"""
URL configuration for the SS Uniforms project.

The JSON API lives under /api/v1/; the privileged account functions under
/functions/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "SS Uniforms Admin Panel"
admin.site.site_title = "SS Uniforms Admin Portal"
admin.site.index_title = "Welcome to SS Uniforms Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('ssuniforms.core.urls')),
    path('api/v1/', include('ssuniforms.catalog.urls')),
    path('api/v1/', include('ssuniforms.pos.urls')),
    path('api/v1/', include('ssuniforms.reports.urls')),
    path('api/v1/', include('ssuniforms.shop.urls')),
    path('functions/v1/', include('ssuniforms.core.function_urls')),
]
