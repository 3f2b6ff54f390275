from django.urls import path
from . import views

urlpatterns = [
    path('create/', views.campaign_wizard, name='campaign_wizard'),
    path('draft/', views.campaign_draft_status, name='campaign_draft_status'),
    path('draft/clear/', views.clear_campaign_draft, name='clear_campaign_draft'),
]
