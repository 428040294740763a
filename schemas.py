from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime

# Stored records; each lives in a Mongo collection named by class name lowercased

class Admin(BaseModel):
    username: str
    email: EmailStr
    password_hash: str
    image_link: Optional[str] = None
    courses: List[str] = []

class User(BaseModel):
    username: str
    email: EmailStr
    password_hash: str
    image_link: Optional[str] = None
    purchased_courses: List[str] = []
    cart: List[str] = []


class ApiModel(BaseModel):
    """Wire format: camelCase JSON keys, snake_case attributes and storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# Request bodies

class SignupRequest(ApiModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)

class ProfileUpdate(ApiModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=1)
    image_link: Optional[str] = None

class CourseCreate(ApiModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    image_link: Optional[str] = None
    is_published: bool = False

class CourseUpdate(ApiModel):
    model_config = ConfigDict(extra="forbid")

    # Omitted fields are left alone. Only description and image_link may be
    # cleared with an explicit null.
    title: str = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: float = Field(default=None, ge=0)
    image_link: Optional[str] = None
    is_published: bool = None

# Responses

class Message(ApiModel):
    message: str

class TokenResponse(ApiModel):
    message: str
    token: str

class CoursePublic(ApiModel):
    id: str
    title: str
    description: Optional[str] = None
    price: float = 0.0
    image_link: Optional[str] = None
    is_published: bool = False
    creator: str
    students: List[str] = []
    created_at: Optional[datetime] = None

class CourseList(ApiModel):
    courses: List[CoursePublic]

class CourseDetail(ApiModel):
    course: CoursePublic

class AdminPublic(ApiModel):
    id: str
    username: str
    email: str
    image_link: Optional[str] = None
    courses: List[str] = []

class AdminProfile(ApiModel):
    admin: AdminPublic

class UserPublic(ApiModel):
    username: str
    email: str

class UserProfile(ApiModel):
    user: UserPublic

class PurchasedCourses(ApiModel):
    purchased_courses: List[CoursePublic]

class Cart(ApiModel):
    cart: List[CoursePublic]
