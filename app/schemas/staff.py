from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.domain.enums import StaffRole


class StaffResponse(BaseModel):
    id: int
    name: str
    email: str
    role: StaffRole
    merchant_id: int

    model_config = ConfigDict(from_attributes=True)


class CreateStaffRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: StaffRole
    merchant_id: int


class UpdateStaffRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6, max_length=128)
    role: StaffRole | None = None


class DeleteStaffResponse(BaseModel):
    success: bool = True
