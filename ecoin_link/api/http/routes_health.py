from fastapi import APIRouter
from ecoin_link.core import state

router = APIRouter(prefix="/health", tags=["health"])

@router.get("")
def health():
    return {"ok": True}

@router.get("/status")
def status():
    return {
        "ok": True,
        "link": state.link.status() if state.link else None,
        "detections_total": state.detections.total if state.detections else None,
    }
