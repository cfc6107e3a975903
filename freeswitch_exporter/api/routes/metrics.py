"""Prometheus scrape endpoint.

Gateway status is fetched from the switch on every scrape; nothing is
polled in the background.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST

from freeswitch_exporter.api.dependencies import get_exporter_metrics, get_gateway_status_service
from freeswitch_exporter.core.metrics import ExporterMetrics
from freeswitch_exporter.services.gateway_status_service import GatewayStatusService

router = APIRouter()


@router.get(
    "/metrics",
    summary="Poll gateway status and return the metrics snapshot",
    response_class=Response,
    responses={503: {"description": "Switch unreachable or reply undecodable"}},
)
async def read_metrics(
    status_service: GatewayStatusService = Depends(get_gateway_status_service),
    metrics: ExporterMetrics = Depends(get_exporter_metrics),
) -> Response:
    await status_service.collect()
    return Response(content=metrics.render(), media_type=CONTENT_TYPE_LATEST)
