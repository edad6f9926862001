from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'chores'

router = DefaultRouter()
router.register(r'', views.ChoreViewSet, basename='chore')

urlpatterns = [
    # GET    /api/chores/?room_id=&status=        - Chores in user's rooms
    # POST   /api/chores/                         - Create chore (trust-gated)
    # GET    /api/chores/{id}/                    - Chore details
    # POST   /api/chores/{id}/complete/           - Assignee completes
    # POST   /api/chores/{id}/confirm/            - Roommate confirms
    # POST   /api/chores/{id}/dispute/            - Roommate disputes (trust-gated)
    # POST   /api/chores/{id}/resolve_dispute/    - Admin settles a dispute
    path('', include(router.urls)),
]
