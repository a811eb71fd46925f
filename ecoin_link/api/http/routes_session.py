from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ecoin_link.core.store.operator import OperatorAuthError


class LoginRequest(BaseModel):
    username: str
    password: str


def bind(operator, link):
    router = APIRouter(prefix="/api/session", tags=["session"])

    @router.get("")
    async def get_session():
        return {"active": operator.active, "operator": operator.operator}

    @router.post("/login")
    async def login(req: LoginRequest):
        try:
            operator.login(req.username, req.password)
        except OperatorAuthError as e:
            raise HTTPException(status_code=401, detail=str(e))
        return {"ok": True, "active": True, "operator": operator.operator}

    @router.post("/logout")
    async def logout():
        # Logging out also drops the hardware link
        await link.disconnect()
        operator.logout()
        return {"ok": True, "active": False}

    return router
