from pydantic import BaseModel


class BasicResponse(BaseModel):
    message: str


class SuccessResponse(BaseModel):
    success: bool = True
