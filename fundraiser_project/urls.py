# fundraiser_project/urls.py
from django.urls import path, include

urlpatterns = [
    path('campaigns/', include('campaigns.urls')),
]
