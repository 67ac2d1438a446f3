from django.urls import path

from .views import DocumentDownloadView

urlpatterns = [
    path("download/", DocumentDownloadView.as_view(), name="document-download"),
]
