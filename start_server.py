# start_server.py
# Development server entry point

import logging
import os

import uvicorn

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting Ledger API on http://%s:%d (docs at /docs)", host, port)

    # Factory mode: settings are read and the database is connected at startup,
    # so a missing JWT_SECRET or DATABASE_URL stops the server immediately
    uvicorn.run(
        "ledger.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level="info",
    )
