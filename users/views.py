from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .models import User
from .serializers import ProfileSerializer


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def profile(request):
    """
    Current user's profile.

    PATCH accepts full_name and phone_number; email and role are managed by
    the residence syndic.
    """
    user = User.objects.select_related('residence').prefetch_related('memberships__residence').get(pk=request.user.pk)
    if request.method == 'PATCH':
        serializer = ProfileSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)
    return Response(ProfileSerializer(user).data)
