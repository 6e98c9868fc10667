from django.urls import path
from . import views

urlpatterns = [
    path('lookup/', views.lookup_view, name='traceability_lookup'),
    path('lookup/current/', views.lookup_current_view, name='traceability_lookup_current'),
    path('records/', views.record_stage_view, name='traceability_record'),
    path('batches/', views.my_batches_view, name='traceability_batches'),
]
