from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.schemas import LoginRequest, LoginResponse, MessageResponse, UserDetail, UserUpdate
from app.services import user_service
from app.updates import parse_identifier

router = APIRouter(tags=["users"])

@router.get("/user/{user_id}", response_model=UserDetail)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    return await user_service.get_user(db, parse_identifier(user_id, "User id"))

@router.put("/user/{user_id}", response_model=MessageResponse)
async def update_user(user_id: str, data: UserUpdate, db: AsyncSession = Depends(get_db)):
    uid = parse_identifier(user_id, "User id")
    await user_service.update_user(db, uid, data.model_dump(exclude_unset=True))
    return {"message": "User updated successfully"}

@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await user_service.login(db, data.username, data.token)
    return {"message": "Login successful", **user}
