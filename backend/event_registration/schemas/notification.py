"""
Pydantic schemas for the notification email templates.
"""

from pydantic import BaseModel, EmailStr, Field


class EmailPayload(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    program: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    email: EmailStr

    model_config = {"str_strip_whitespace": True}


class EmailTemplateResponse(BaseModel):
    subject: str
    body: str
