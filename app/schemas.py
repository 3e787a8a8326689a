from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Related ---

class RelatedCreate(BaseModel):
    type: str
    url: str = ""
    content: str = ""


class RelatedResponse(BaseModel):
    type: str
    url: str
    # Echoes the parent article's name; there is no per-item description.
    description: str
    content: str


# --- Article ---

class ArticleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=300)
    user_id: int = Field(alias="userId")
    related: list[RelatedCreate]
    model_config = ConfigDict(populate_by_name=True)


class ArticleResponse(BaseModel):
    id: str
    name: str
    user_id: int = Field(alias="userId")
    related: list[RelatedResponse] = []


# --- User ---

class UserUpdate(BaseModel):
    """
    Sparse user update.  Only keys present in the request body are
    applied (``model_dump(exclude_unset=True)``); an empty string is a
    value, an absent key is not.
    """

    username: str | None = Field(None, max_length=100)
    name: str | None = Field(None, max_length=150)
    token: str | None = Field(None, max_length=255)

    @field_validator("username", "name")
    @classmethod
    def _not_null(cls, value: str | None) -> str:
        # Runs only for explicitly supplied values; null would violate NOT NULL.
        if value is None:
            raise ValueError("must not be null")
        return value


class UserArticleSummary(BaseModel):
    article_id: int = Field(alias="articleId")
    name: str


class UserDetail(BaseModel):
    user_id: int = Field(alias="userId")
    username: str
    username_id: str = Field(alias="usernameId")
    articles: list[UserArticleSummary] = []


# --- Login ---

class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    token: str = Field(min_length=1)


class LoginResponse(BaseModel):
    message: str
    user_id: int = Field(alias="userId")
    username: str


# --- Assistant ---

class SessionResponse(BaseModel):
    session_id: str = Field(alias="sessionId")


class MessageRequest(BaseModel):
    message: str = ""
    session_id: str | None = Field(None, alias="sessionId")
    model_config = ConfigDict(populate_by_name=True)


# --- Generic ---

class MessageResponse(BaseModel):
    message: str
