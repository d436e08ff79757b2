from rest_framework.views import APIView
from rest_framework.response import Response

from .permissions import IsAuthenticatedUser
from .serializers import UserMeSerializer


class UserMeView(APIView):
    permission_classes = [IsAuthenticatedUser]

    def get(self, request):
        return Response(UserMeSerializer(request.user).data)
