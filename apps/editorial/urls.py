"""
Editorial dashboard URLs.
"""

from django.urls import path

from .views import (
    PipelineMetricsView,
    QueueDetailsView,
    ReviewerWorkloadView,
    TimeSensitiveStoriesView,
    WorkflowHealthView,
)

app_name = 'editorial'

urlpatterns = [
    path('pipeline/', PipelineMetricsView.as_view(), name='pipeline'),
    path('workload/', ReviewerWorkloadView.as_view(), name='workload'),
    path('health/', WorkflowHealthView.as_view(), name='health'),
    path('queue/<str:stage>/', QueueDetailsView.as_view(), name='queue'),
    path('time-sensitive/', TimeSensitiveStoriesView.as_view(), name='time-sensitive'),
]
