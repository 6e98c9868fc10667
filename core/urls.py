from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Oilseed Value Chain Platform"
admin.site.site_title = "Oilseed Platform Admin"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('traceability/', include('traceability.urls')),
    path('', include('dashboard.urls')),
]
