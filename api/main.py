from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from api.routes.analyze import router as analyze_router
from api.routes.timeline import router as timeline_router
from infrastructure.metrics import get_metrics_response

app = FastAPI(title="Music Map Engine")

# CORS: allow the editor UI (Vite dev server) to call the API
# Browsers treat localhost and 127.0.0.1 as different origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyze_router)
app.include_router(timeline_router)


@app.get("/health")
def health() -> dict[str, str]:
    """Return a simple liveness check."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns metrics in Prometheus text exposition format.
    """
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
