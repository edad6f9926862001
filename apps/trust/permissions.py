"""
Trust-aware permission classes.

    HasTrustCapability   - user's score must unlock the view action's capability
    IsRoomAdminForTrust  - owner/admin of the room in the URL
    CanViewTrustHistory  - self, staff, or a roommate of the user in the URL
"""

from rest_framework.permissions import BasePermission

from apps.rooms.models import RoomMembership, RoomRole
from apps.rooms.services import shares_room
from apps.trust.services import get_trust_restrictions


class HasTrustCapability(BasePermission):
    """
    Gate view actions on trust capabilities.

    The view declares ``required_capabilities``, a mapping of action name
    to Capability. Actions not in the mapping are not gated.
    """

    message = 'Your trust score is too low for this action.'

    def has_permission(self, request, view):
        capabilities = getattr(view, 'required_capabilities', {})
        capability = capabilities.get(getattr(view, 'action', None))
        if capability is None:
            return True

        user = request.user
        if not (user and user.is_authenticated):
            return False
        return get_trust_restrictions(user.current_trust_score).allows(capability)


class IsRoomAdminForTrust(BasePermission):
    message = 'Only room admins can manage trust scores.'

    def has_permission(self, request, view):
        room_id = view.kwargs.get('room_id')
        if not room_id or not request.user.is_authenticated:
            return False
        return RoomMembership.objects.filter(
            room_id=room_id,
            user=request.user,
            role__in=[RoomRole.OWNER, RoomRole.ADMIN],
        ).exists()


class CanViewTrustHistory(BasePermission):
    message = 'You can only view trust history of your roommates.'

    def has_permission(self, request, view):
        user = request.user
        if not user.is_authenticated:
            return False

        target_id = view.kwargs.get('user_id')
        if str(user.id) == str(target_id) or user.is_staff:
            return True
        return shares_room(user, target_id)
