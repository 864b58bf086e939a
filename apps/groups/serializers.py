from rest_framework import serializers
from .models import Group, GroupMembership
from apps.accounts.serializers import UserMinimalSerializer


class GroupSerializer(serializers.ModelSerializer):
    """Main serializer for groups."""

    owner = UserMinimalSerializer(read_only=True)
    members = serializers.SerializerMethodField()
    member_count = serializers.SerializerMethodField()
    user_role = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'owner',
            'members',
            'member_count',
            'user_role',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'owner', 'created_at', 'updated_at']

    def get_members(self, obj):
        """Members in join order."""
        memberships = sorted(
            obj.memberships.all(),
            key=lambda m: (m.joined_at, str(m.id))
        )
        return GroupMemberSerializer(memberships, many=True).data

    def get_member_count(self, obj):
        """Get number of members in the group."""
        return len(obj.memberships.all())

    def get_user_role(self, obj):
        """Get current user's role in the group."""
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return obj.get_user_role(request.user)
        return None


class GroupCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating groups."""

    members = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        help_text="Initial member user IDs. The creator is always added as owner."
    )

    class Meta:
        model = Group
        fields = ['name', 'description', 'members']


class GroupUpdateSerializer(serializers.Serializer):
    """Serializer for updating group details."""

    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True)


class GroupListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    owner = UserMinimalSerializer(read_only=True)
    member_count = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            'id',
            'name',
            'description',
            'owner',
            'member_count',
            'created_at',
        ]
        read_only_fields = fields

    def get_member_count(self, obj):
        return len(obj.memberships.all())


class GroupMemberSerializer(serializers.ModelSerializer):
    """Detailed member information."""

    user = UserMinimalSerializer(read_only=True)
    is_admin = serializers.BooleanField(read_only=True)

    class Meta:
        model = GroupMembership
        fields = ['id', 'user', 'role', 'is_admin', 'joined_at']
        read_only_fields = fields


class AddMembersSerializer(serializers.Serializer):
    """Serializer for adding members to a group."""

    user_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False
    )


class RemoveMemberSerializer(serializers.Serializer):
    """Serializer for removing a member from a group."""

    user_id = serializers.UUIDField()


class UpdateMemberRoleSerializer(serializers.Serializer):
    """Serializer for granting or revoking a member's admin flag."""

    user_id = serializers.UUIDField()
    is_admin = serializers.BooleanField()
