from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request) -> dict[str, str]:
    database = request.app.state.database
    return {
        "status": "ok",
        "database": "connected" if database.is_connected else "disconnected",
    }
