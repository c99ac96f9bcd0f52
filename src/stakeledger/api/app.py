from __future__ import annotations

from fastapi import FastAPI

from stakeledger.api.config import api_config_from_ledger, load_api_config
from stakeledger.api.errors import install_error_handlers
from stakeledger.api.routes_public import public_router
from stakeledger.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from stakeledger.runtime.engine_boot import build_engine as _build_engine
from stakeledger.runtime.ledger_config import apply_ledger_config_to_env, load_ledger_config


def build_engine(cfg=None):
    """Build a StakingEngine for API runtime.

    This wrapper exists so tests can monkeypatch `stakeledger.api.app.build_engine`
    without reaching into runtime modules.
    """
    return _build_engine(cfg)


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load ledger config, configure logging, attach the engine
      - False: keep lightweight for unit tests; callers attach app.state.engine
        and app.state.cfg themselves
    """
    if boot_runtime:
        cfg = load_ledger_config()
        apply_ledger_config_to_env(cfg)
        configure_structured_logging(cfg.log_level)
        api_cfg = api_config_from_ledger(cfg)
    else:
        cfg = None
        api_cfg = load_api_config()

    # Disable docs in production.
    if api_cfg.mode == "prod":
        app = FastAPI(title="StakeLedger API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="StakeLedger API")

    app.state.cfg = api_cfg
    app.state.engine = build_engine(cfg) if boot_runtime else None

    app.add_middleware(RequestLogMiddleware)
    install_error_handlers(app)

    app.include_router(public_router)

    return app
