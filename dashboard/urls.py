from django.urls import path
from . import views
from . import api_views

urlpatterns = [
    # 1. Dashboard (content depends on the caller's role)
    path('', views.DashboardView.as_view(), name='dashboard'),

    # 2. Farmer
    path('crops/', views.CropsView.as_view(), name='crops'),
    path('credit/', views.CreditView.as_view(), name='credit'),

    # 3. Common
    path('advisories/', views.advisories_view, name='advisories'),
    path('inventory/', views.inventory_view, name='inventory'),
    path('warehouses/', views.warehouses_view, name='warehouses'),
    path('logistics/', views.logistics_view, name='logistics'),

    # 4. Policymaker / Admin
    path('analytics/', views.analytics_view, name='analytics'),
    path('stakeholders/', views.stakeholders_view, name='stakeholders'),

    # 5. APIs and authentication
    path('api/choices/', api_views.get_choices, name='api_choices'),
    path('accounts/register/', views.RegisterView.as_view(), name='register'),
    path('accounts/login/', views.login_view, name='login'),
    path('accounts/logout/', views.logout_view, name='logout'),
    path('accounts/me/', views.me_view, name='me'),
]
