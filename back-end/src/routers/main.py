from fastapi import APIRouter


router = APIRouter()


@router.get("/api/status")
async def api_status():
    return {"status": "UP"}
