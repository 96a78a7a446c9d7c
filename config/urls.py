from django.contrib import admin
from django.urls import include, path

admin.site.site_header = "Back office financiero"
admin.site.site_title = "Back office"

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", include("apps.health.urls")),
    path("api/v1/", include("apps.api_urls")),
]
