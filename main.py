import uvicorn
import time
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.bugs import router as bugs_router
from app.api.debug import router as debug_router
from app.core import config
from app.services.debug_log import NetworkEvent, debug_log
from app.utils.logging_config import setup_logging

# Initialize enhanced logging
setup_logging(level=getattr(logging, config.LOG_LEVEL, logging.INFO), log_dir=config.LOG_DIR)
logger = logging.getLogger("main")

app = FastAPI(title="Bug Tracker API")

# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Incoming: {request.method} {request.url.path} from {client_host}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            debug_log.record(NetworkEvent(
                url=request.url.path, method=request.method, status=0, duration=round(process_time, 2)
            ))
            logger.error(f"Request failed: {request.method} {request.url.path} - Error: {str(e)}")
            raise

        process_time = (time.time() - start_time) * 1000
        debug_log.record(NetworkEvent(
            url=request.url.path,
            method=request.method,
            status=response.status_code,
            duration=round(process_time, 2),
        ))
        logger.info(
            f"Outgoing: {request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.2f}ms"
        )
        return response

app.add_middleware(LoggingMiddleware)

# ---------------------------------------------------------------------------
# CORS: allow the browser front-end to call the API
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health endpoint
@app.get("/health")
async def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

# Register routers
app.include_router(bugs_router)
app.include_router(debug_router)

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
