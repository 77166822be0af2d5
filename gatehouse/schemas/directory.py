# gatehouse/schemas/directory.py
from pydantic import BaseModel, EmailStr
from typing import Optional

from gatehouse.services.access_rules import UserRole


class PersonCreate(BaseModel):
    first_name: str
    surname: str
    email_username: Optional[str] = None   # defaults to first.surname
    email_domain: Optional[str] = None     # defaults to the first configured domain


class PersonUpdate(BaseModel):
    first_name: str
    surname: str
    email_username: str
    email_domain: str


class UserCreate(PersonCreate):
    role: UserRole = UserRole.RECEPTION


class UserUpdate(PersonUpdate):
    role: UserRole


class PersonOut(BaseModel):
    id: str
    first_name: Optional[str] = None
    surname: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None


class UserOut(PersonOut):
    role: Optional[str] = None


class CompanyCreate(BaseModel):
    name: str
    contact: Optional[str] = None
    email: Optional[EmailStr] = None


class CompanyOut(BaseModel):
    id: str
    name: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
