# src/stakeledger/api/__main__.py
from __future__ import annotations

import uvicorn

from stakeledger.env import load_dotenv_if_present
from stakeledger.runtime.single_writer import SingleWriterLock


def main() -> None:
    # Load .env early so STAKELEDGER_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (prevents "config read before env" surprises)
    from stakeledger.api.app import create_app
    from stakeledger.runtime.ledger_config import load_ledger_config

    cfg = load_ledger_config()

    lock = None
    if not cfg.in_memory:
        # One writer process per database file.
        lock = SingleWriterLock(cfg.db_path + ".lock")
        lock.acquire()

    try:
        uvicorn.run(create_app(), host=cfg.api_host, port=cfg.api_port, log_level=cfg.log_level.lower())
    finally:
        if lock is not None:
            lock.release()


if __name__ == "__main__":
    main()
