from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'rooms'

router = DefaultRouter()
router.register(r'', views.RoomViewSet, basename='room')

urlpatterns = [
    # GET    /api/rooms/                         - List user's rooms
    # POST   /api/rooms/                         - Create room
    # GET    /api/rooms/{id}/                    - Room details (members)
    # GET    /api/rooms/{id}/members/            - List members with trust scores
    # POST   /api/rooms/{id}/join/               - Join with invite code
    # POST   /api/rooms/{id}/leave/              - Leave room
    # GET    /api/rooms/{id}/invite/             - Show invite code (trust-gated)
    # POST   /api/rooms/{id}/regenerate_invite/  - Rotate invite code (trust-gated)
    path('', include(router.urls)),
]
