import time

from fastapi import APIRouter, Request

router = APIRouter(tags=["system"])


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/api/dbcheck")
def dbcheck(request: Request):
    start = time.perf_counter()
    request.app.state.database.ping()
    return {"ok": True, "ms": round((time.perf_counter() - start) * 1000)}
