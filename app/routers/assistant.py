from fastapi import APIRouter
from app.assistant import assistant
from app.schemas import MessageRequest, SessionResponse
from app.services import assistant_service
from app.session_store import sessions

router = APIRouter(prefix="/api", tags=["assistant"])

@router.get("/session", response_model=SessionResponse)
async def create_session():
    session_id = await assistant_service.start_session(assistant, sessions)
    return {"sessionId": session_id}

@router.post("/message")
async def send_message(data: MessageRequest):
    return await assistant_service.send_message(
        assistant, sessions, data.session_id, data.message
    )
