from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from api.mixins import AuthContextMixin
from api.permissions import IsSyndic
from .serializers import (
    ExpenseSerializer,
    ExpenseWriteSerializer,
    ExpensePaySerializer,
    ExpenseCancelSerializer,
)
from .services import ExpenseService


class ExpenseViewSet(AuthContextMixin, viewsets.ModelViewSet):
    """
    Expenses of the syndic's residence.

    Filters: ?status=, ?category=, ?from=YYYY-MM-DD, ?to=YYYY-MM-DD
    """
    permission_classes = [IsSyndic]
    lookup_value_regex = r'\d+'
    serializer_class = ExpenseSerializer
    service = ExpenseService()

    def get_queryset(self):
        params = self.request.query_params
        return self.service.list_expenses(
            self.ctx,
            status=params.get('status'),
            category=params.get('category'),
            date_from=params.get('from'),
            date_to=params.get('to'),
        )

    def get_object(self):
        return self.service.get_expense(self.ctx, self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = ExpenseWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        expense = self.service.create_expense(self.ctx, serializer.to_dto())
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        kwargs.pop('partial', None)
        serializer = ExpenseWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        expense = self.service.update_expense(self.ctx, kwargs['pk'], serializer.to_dto())
        return Response(ExpenseSerializer(expense).data)

    def destroy(self, request, *args, **kwargs):
        self.service.delete_expense(self.ctx, kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        return Response(ExpenseSerializer(self.service.approve(self.ctx, pk)).data)

    @action(detail=True, methods=['post'])
    def pay(self, request, pk=None):
        serializer = ExpensePaySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        expense = self.service.pay(self.ctx, pk, data['method'], data['reference'], data.get('paid_at'))
        return Response(ExpenseSerializer(expense).data)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        serializer = ExpenseCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        expense = self.service.cancel(self.ctx, pk, serializer.validated_data['reason'])
        return Response(ExpenseSerializer(expense).data)

    @action(detail=False, methods=['get'])
    def summary(self, request):
        return Response(self.service.summary(self.ctx))
