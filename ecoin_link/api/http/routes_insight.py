from fastapi import APIRouter, HTTPException

from ecoin_link.core.insight.gemini import InsightUnavailable


def bind(detections, insight):
    router = APIRouter(prefix="/api/insight", tags=["insight"])

    @router.post("")
    async def generate_insight():
        """
        Two-sentence summary of the current detection history.
        """
        try:
            text = await insight.generate(detections.history)
        except InsightUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))
        return {"ok": True, "insight": text}

    return router
