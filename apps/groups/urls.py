from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'groups'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.GroupViewSet, basename='group')

urlpatterns = [
    # Group ViewSet routes
    # GET    /api/groups/              - List user's groups
    # POST   /api/groups/              - Create group (optional initial members)
    # GET    /api/groups/{id}/         - Get group details
    # PATCH  /api/groups/{id}/         - Partial update (admin)

    # Custom group actions
    # GET    /api/groups/{id}/members/              - List members
    # POST   /api/groups/{id}/members/              - Add members (admin)
    # DELETE /api/groups/{id}/members/              - Remove member (admin)
    # GET    /api/groups/{id}/balances/             - Member balances
    # POST   /api/groups/{id}/update_member_role/   - Grant/revoke admin (admin)

    # Include router URLs
    path('', include(router.urls)),
]
