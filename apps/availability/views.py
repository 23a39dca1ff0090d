"""API views for availability checks and cache administration."""

from __future__ import annotations

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .container import get_container
from .serializers import CacheClearSerializer, CheckAvailabilitySerializer


class CheckAvailabilityView(APIView):
    """Vehicles free at a location for a half-open date range (cached)."""

    def post(self, request, format=None):  # type: ignore
        serializer = CheckAvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = get_container().service.check_availability(serializer.to_query())
        return Response(result.to_dict(), status=status.HTTP_200_OK)


class CacheStatsView(APIView):
    """Hit/miss counters, size and eviction totals of the in-process cache."""

    def get(self, request, format=None):  # type: ignore
        return Response(get_container().store.stats().to_dict())


class CacheClearView(APIView):
    """Evict a whole cache domain (``all``, ``vehicles``, ``customers``, ``statistics``)."""

    def post(self, request, format=None):  # type: ignore
        serializer = CacheClearSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report = get_container().router.clear_domain(serializer.validated_data["domain"])
        return Response(report.to_dict(), status=status.HTTP_200_OK)
