"""
URL configuration for the ubuntium project.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('commons.urls')),
]
