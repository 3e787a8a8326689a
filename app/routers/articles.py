from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.database import get_db
from app.schemas import ArticleCreate, ArticleResponse, MessageResponse
from app.services import article_service
from app.updates import parse_identifier

router = APIRouter(prefix="/article", tags=["articles"])

@router.get("", response_model=list[ArticleResponse])
async def list_articles(db: AsyncSession = Depends(get_db)):
    return await article_service.get_articles(db)

@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: str, db: AsyncSession = Depends(get_db)):
    return await article_service.get_article(db, parse_identifier(article_id, "Article id"))

@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(data: ArticleCreate, db: AsyncSession = Depends(get_db)):
    return await article_service.create_article(db, data)

@router.delete("/{article_id}", response_model=MessageResponse)
async def delete_article(article_id: str, db: AsyncSession = Depends(get_db)):
    await article_service.delete_article(db, parse_identifier(article_id, "Article id"))
    return {"message": "Article deleted successfully"}
