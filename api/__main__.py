"""Entry point for running the monitor API."""
import os

import uvicorn

if __name__ == "__main__":
    from api.app import app
    uvicorn.run(
        app,
        host=os.environ.get("MONITOR_HOST", "0.0.0.0"),
        port=int(os.environ.get("MONITOR_PORT", "8001")),
    )
