"""API views for fleet reference data and statistics."""

from __future__ import annotations

from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.availability.container import get_container

from .queries import get_vehicle, list_locations
from .serializers import VehicleStatisticsQuerySerializer
from .statistics import get_vehicle_statistics


class LocationListView(APIView):

    def get(self, request, format=None):  # type: ignore
        return Response(list_locations(get_container().service))


class VehicleDetailView(APIView):

    def get(self, request, vehicle_id: int, format=None):  # type: ignore
        return Response(get_vehicle(vehicle_id, get_container().service))


class VehicleStatisticsView(APIView):
    """Rental activity for ``start_date``..``end_date``, optionally per location."""

    def get(self, request, format=None):  # type: ignore
        serializer = VehicleStatisticsQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        stats = get_vehicle_statistics(
            data["start_date"],
            data["end_date"],
            get_container().service,
            location_id=data.get("location_id"),
        )
        return Response(stats)
