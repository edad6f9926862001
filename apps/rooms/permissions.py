from rest_framework import permissions


class IsRoomMember(permissions.BasePermission):
    """
    Permission: User must be a member of the room.
    """

    def has_object_permission(self, request, view, obj):
        # obj is a Room instance
        return obj.has_member(request.user)


class IsRoomAdmin(permissions.BasePermission):
    """
    Permission: User must be room admin or owner.
    """

    def has_object_permission(self, request, view, obj):
        return obj.is_admin(request.user)
