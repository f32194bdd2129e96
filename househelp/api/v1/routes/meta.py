from fastapi import APIRouter

from househelp import config

router = APIRouter()


@router.get("/meta")
async def meta():
    return {"service": "HouseHelp Gateway", "api": "v1", "status": "ok"}


if not config.is_prod():
    @router.get("/_test/validation")
    async def validation_test(value: int):
        return {"received": value}
