from django.urls import path
from . import views

app_name = 'trust'

urlpatterns = [
    # GET  /api/trust/me/                          - Own score, tier, restrictions
    path('me/', views.my_trust, name='my-trust'),
    # GET  /api/trust/restrictions/?score=          - What a score allows
    path('restrictions/', views.trust_restrictions, name='restrictions'),
    # GET  /api/trust/users/{id}/                   - Roommate's score
    path('users/<uuid:user_id>/', views.user_trust, name='user-trust'),
    # GET  /api/trust/users/{id}/history/?limit=    - Audit trail
    path('users/<uuid:user_id>/history/', views.trust_history, name='history'),
    # POST /api/trust/rooms/{id}/reset/             - Admin score reset
    path('rooms/<uuid:room_id>/reset/', views.reset_score, name='reset'),
    # POST /api/trust/rooms/{id}/sweep/             - Weekly consistency bonus
    path('rooms/<uuid:room_id>/sweep/', views.weekly_sweep, name='sweep'),
]
