from fastapi import APIRouter


def bind(detections):
    router = APIRouter(prefix="/api/detections", tags=["detections"])

    @router.get("")
    async def get_detections():
        return detections.snapshot()

    @router.delete("")
    async def clear_detections():
        detections.clear()
        return {"ok": True, **detections.snapshot()}

    return router
