"""Health check endpoints for Kubernetes probes."""

import logging

import pika
from django.db import connection
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from registration.rabbitmq.publisher import connection_parameters

logger = logging.getLogger(__name__)


def check_rabbitmq() -> str:
    """Open and close a broker connection, bounded by RABBITMQ_SOCKET_TIMEOUT."""
    try:
        broker = pika.BlockingConnection(connection_parameters())
        broker.close()
        return "ok"
    except Exception as e:
        logger.error(f"RabbitMQ health check failed: {str(e)}")
        return "error"


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    Health check endpoint for Kubernetes liveness and readiness probes.

    The broker is only checked with ?deep=1; notifications are an outbox, so
    an unreachable broker does not make the service unhealthy by itself.

    Returns:
        200 OK: Service is healthy
        503 Service Unavailable: Service has issues
    """
    health_status = {"status": "healthy", "checks": {}}

    try:
        connection.ensure_connection()
        health_status["checks"]["database"] = "ok"
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        health_status["checks"]["database"] = "error"
        health_status["status"] = "unhealthy"

    if request.query_params.get("deep") in ("1", "true"):
        health_status["checks"]["rabbitmq"] = check_rabbitmq()
        if health_status["checks"]["rabbitmq"] != "ok":
            health_status["status"] = "unhealthy"

    if health_status["status"] == "healthy":
        return Response(health_status, status=status.HTTP_200_OK)
    else:
        return Response(health_status, status=status.HTTP_503_SERVICE_UNAVAILABLE)


@api_view(["GET"])
@permission_classes([AllowAny])
def readiness_check(request):
    """
    Readiness check - simple check for Kubernetes readiness probe.
    Just verifies the application is running.
    """
    return Response({"status": "ready"}, status=status.HTTP_200_OK)
