"""Container entrypoint: reads PORT and starts uvicorn."""
import os

port = int(os.environ.get("PORT", 8000))
print(f"Starting carecms preview on port {port}", flush=True)

import uvicorn
uvicorn.run(
    "carecms.web.app:create_app",
    host="0.0.0.0",
    port=port,
    factory=True,
    log_level="info",
)
