from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'expenses'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.ExpenseViewSet, basename='expense')

urlpatterns = [
    # Expense ViewSet routes
    # GET    /api/expenses/?group=<id>  - List expenses (newest first)
    # POST   /api/expenses/             - Create expense (with splits)
    # GET    /api/expenses/{id}/        - Get expense details
    # DELETE /api/expenses/{id}/        - Delete expense (payer or group admin)

    # Custom expense actions
    # GET    /api/expenses/summary/     - Current user's paid/owed summary
    # PATCH  /api/expenses/settle/      - Settle a participant's split
    # GET    /api/expenses/my_pending/  - Current user's pending splits

    # Include router URLs
    path('', include(router.urls)),
]
