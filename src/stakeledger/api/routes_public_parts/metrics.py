from __future__ import annotations

from fastapi import APIRouter, Request, Response

from stakeledger.runtime.metrics import format_prometheus, metrics_enabled, observe_ledger

router = APIRouter()

PROMETHEUS_TEXT = "text/plain; version=0.0.4"


@router.get("/metrics")
def metrics(request: Request) -> Response:
    """Ledger metrics in Prometheus text format.

    Off unless STAKELEDGER_METRICS_ENABLED is set. Pool gauges are refreshed
    from the persisted ledger on each scrape.
    """
    if not metrics_enabled():
        return Response(status_code=404, content="not_found\n", media_type="text/plain")

    eng = getattr(request.app.state, "engine", None)
    if eng is not None:
        observe_ledger(eng.read_state())
    return Response(content=format_prometheus(), media_type=PROMETHEUS_TEXT)
