from pydantic import BaseModel


class ErrorResponse(BaseModel):
    detail: str | list
    code: str | None = None


class MessageResponse(BaseModel):
    message: str
