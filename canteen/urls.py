"""URL routing for the canteen service.


The /api/ namespace exposes the JSON surface consumed by the frontend
(auth, menu, orders, wallet). /admin/ is Django's admin for back-office edits.
"""

from django.contrib import admin
from django.urls import path, include


urlpatterns = [
	path("admin/", admin.site.urls),
	path("api/", include("api.urls")),
]
