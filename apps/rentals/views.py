"""API views for rentals and customers."""

from __future__ import annotations

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.availability.container import get_container
from shared.domain.exceptions import NotFoundError

from .application.command_handlers import (
    CancelRentalCommand,
    CancelRentalHandler,
    CreateRentalHandler,
    ModifyRentalHandler,
    RegisterCustomerHandler,
)
from .application.queries import customer_detail, get_customer, get_rental_history, rental_to_dict
from .models import Rental
from .serializers import CreateRentalSerializer, ModifyRentalSerializer, RegisterCustomerSerializer


class RentalCreateView(APIView):
    """Reserve a vehicle. Overlaps and maintenance windows answer 409."""

    def post(self, request, format=None):  # type: ignore
        serializer = CreateRentalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rental = CreateRentalHandler(get_container().service).handle(serializer.to_command())
        return Response(rental_to_dict(rental), status=status.HTTP_201_CREATED)


class RentalDetailView(APIView):

    def get(self, request, pk: int, format=None):  # type: ignore
        try:
            rental = Rental.objects.select_related("vehicle").get(pk=pk)
        except Rental.DoesNotExist:
            raise NotFoundError(f"Rental {pk} not found.")
        return Response(rental_to_dict(rental))

    def put(self, request, pk: int, format=None):  # type: ignore
        serializer = ModifyRentalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rental = ModifyRentalHandler(get_container().service).handle(serializer.to_command(pk))
        return Response(rental_to_dict(rental))

    def delete(self, request, pk: int, format=None):  # type: ignore
        rental = CancelRentalHandler(get_container().service).handle(CancelRentalCommand(rental_id=pk))
        return Response(rental_to_dict(rental))


class CustomerRentalHistoryView(APIView):

    def get(self, request, customer_id: str, format=None):  # type: ignore
        history = get_rental_history(customer_id, get_container().service)
        return Response({"customer_id": customer_id, "rentals": history, "total_count": len(history)})


class CustomerRegisterView(APIView):

    def post(self, request, format=None):  # type: ignore
        serializer = RegisterCustomerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer = RegisterCustomerHandler(get_container().service).handle(serializer.to_command())
        return Response(customer_detail(customer), status=status.HTTP_201_CREATED)


class CustomerDetailView(APIView):

    def get(self, request, customer_id: str, format=None):  # type: ignore
        return Response(get_customer(customer_id, get_container().service))
