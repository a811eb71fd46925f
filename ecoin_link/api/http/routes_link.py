from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional

from ecoin_link.core.link.errors import (
    LinkNotConnected,
    LinkOpenError,
    LinkUnsupported,
    LinkWriteError,
)


class ConnectRequest(BaseModel):
    port: Optional[str] = None


class WifiRequest(BaseModel):
    ssid: str
    passphrase: str


def bind(link):
    router = APIRouter(prefix="/api/link", tags=["link"])

    @router.get("/state")
    async def get_state():
        return link.status()

    @router.get("/ports")
    async def list_ports():
        return {
            "supported": link.host.supported,
            "ports": link.host.list_ports(),
        }

    @router.get("/transcript")
    async def get_transcript():
        entries = [e.to_dict() for e in link.transcript.snapshot()]
        return {"entries": entries, "count": len(entries)}

    @router.post("/connect")
    async def connect(req: Optional[ConnectRequest] = None):
        port = req.port if req else None
        try:
            connected = await link.connect(port)
        except LinkUnsupported as e:
            raise HTTPException(status_code=501, detail=e.message)
        except LinkOpenError as e:
            raise HTTPException(status_code=502, detail=e.message)

        # False = already linked, or no port was picked (not an error)
        return {"ok": connected, **link.status()}

    @router.post("/disconnect")
    async def disconnect():
        await link.disconnect()
        return {"ok": True, **link.status()}

    @router.post("/wifi")
    async def send_wifi(req: WifiRequest):
        try:
            await link.provision(req.ssid, req.passphrase)
        except LinkNotConnected as e:
            raise HTTPException(status_code=409, detail=e.message)
        except LinkWriteError as e:
            raise HTTPException(status_code=502, detail=e.message)

        return {"ok": True, "message": "WiFi credentials sent to ESP32"}

    return router
