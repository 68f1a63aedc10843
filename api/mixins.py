"""
ViewSet helpers shared by the residence API.
"""
from functools import cached_property

from rest_framework.response import Response

from core.context import AuthContext


class AuthContextMixin:
    """Builds the AuthContext of the current request once"""

    @cached_property
    def ctx(self) -> AuthContext:
        return AuthContext.from_request(self.request)

    def paginated(self, queryset, serializer_class=None, **serializer_kwargs):
        """Paginate a queryset when pagination is configured, like ListModelMixin.list"""
        serializer_class = serializer_class or self.get_serializer_class()
        context = self.get_serializer_context()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = serializer_class(page, many=True, context=context, **serializer_kwargs)
            return self.get_paginated_response(serializer.data)
        serializer = serializer_class(queryset, many=True, context=context, **serializer_kwargs)
        return Response(serializer.data)
