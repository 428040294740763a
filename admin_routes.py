from typing import Optional
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Header, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from config import Settings
from database import (
    ADMINS,
    COURSES,
    USERS,
    create_document,
    get_db,
    get_documents,
    parse_object_id,
    to_public,
)
from errors import AlreadyExists, InvalidCredentials, NotFound
from schemas import (
    Admin,
    AdminProfile,
    CourseCreate,
    CourseDetail,
    CourseList,
    CoursePublic,
    CourseUpdate,
    Message,
    ProfileUpdate,
    SignupRequest,
    TokenResponse,
)
from security import (
    LOGIN_ADMIN_ROLE,
    SIGNUP_ADMIN_ROLE,
    Identity,
    create_admin_token,
    get_admin_identity,
    get_password_hash,
    get_settings,
    normalize_email,
    verify_password,
)

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


async def get_current_admin(
    identity: Identity = Depends(get_admin_identity),
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> dict:
    admin = await db[ADMINS].find_one({"email": identity.email})
    if not admin:
        raise NotFound("Admin not found")
    return admin


async def get_course_or_404(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    oid = parse_object_id(course_id)
    course = await db[COURSES].find_one({"_id": oid}) if oid is not None else None
    if not course:
        raise NotFound("Course not found")
    return course


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    existing = await db[ADMINS].find_one({"email": payload.email})
    if existing:
        raise AlreadyExists("Admin already exists")
    admin_doc = Admin(
        username=payload.username,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
    ).model_dump()
    await create_document(db, ADMINS, admin_doc)
    log.info("admin_signup", email=payload.email)
    token = create_admin_token(payload.email, SIGNUP_ADMIN_ROLE, settings)
    return {"message": "Admin created successfully", "token": token}


@router.post("/login", response_model=TokenResponse)
async def login(
    email: Optional[str] = Header(default=None),
    password: Optional[str] = Header(default=None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    email = normalize_email(email)
    if not email or not password:
        raise InvalidCredentials()
    admin = await db[ADMINS].find_one({"email": email})
    if not admin or not verify_password(password, admin.get("password_hash", "")):
        log.info("login_failed", actor="admin", email=email)
        raise InvalidCredentials()
    token = create_admin_token(email, LOGIN_ADMIN_ROLE, settings)
    return {"message": "Logged in successfully", "token": token}


@router.get("/profile", response_model=AdminProfile)
async def get_profile(admin: dict = Depends(get_current_admin)):
    return {"admin": to_public(admin)}


@router.put("/profile", response_model=Message)
async def update_profile(
    payload: ProfileUpdate,
    admin: dict = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    updates = payload.model_dump(exclude_unset=True)
    updates["updated_at"] = datetime.now(timezone.utc)
    await db[ADMINS].update_one({"_id": admin["_id"]}, {"$set": updates})
    return {"message": "Profile updated successfully"}


@router.post("/courses", response_model=CoursePublic, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreate,
    admin: dict = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course_doc = {
        **payload.model_dump(),
        "creator": admin["_id"],
        "students": [],
        "created_at": datetime.now(timezone.utc),
    }
    course = await create_document(db, COURSES, course_doc)
    try:
        await db[ADMINS].update_one({"_id": admin["_id"]}, {"$push": {"courses": course["_id"]}})
    except PyMongoError:
        # Undo the insert so no course is left without its admin link
        await db[COURSES].delete_one({"_id": course["_id"]})
        log.warning("course_link_failed", course_id=str(course["_id"]))
        raise
    log.info("course_created", course_id=str(course["_id"]), creator=str(admin["_id"]))
    return to_public(course)


@router.get("/courses", response_model=CourseList)
async def list_courses(
    admin: dict = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    courses = await get_documents(db, COURSES, {"creator": admin["_id"]})
    return {"courses": [to_public(c) for c in courses]}


@router.get("/courses/{course_id}", response_model=CourseDetail)
async def get_course(
    course_id: str,
    admin: dict = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_course_or_404(db, course_id)
    return {"course": to_public(course)}


@router.put("/courses/{course_id}", response_model=Message)
async def update_course(
    course_id: str,
    payload: CourseUpdate,
    admin: dict = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    # Any admin may edit any course; ownership is not checked here
    course = await get_course_or_404(db, course_id)
    updates = payload.model_dump(exclude_unset=True)
    if updates:
        updates["updated_at"] = datetime.now(timezone.utc)
        await db[COURSES].update_one({"_id": course["_id"]}, {"$set": updates})
    return {"message": "Course updated successfully"}


@router.delete("/courses/{course_id}", response_model=Message)
async def delete_course(
    course_id: str,
    admin: dict = Depends(get_current_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    oid = parse_object_id(course_id)
    course = await db[COURSES].find_one_and_delete({"_id": oid}) if oid is not None else None
    if not course:
        raise NotFound("Course not found")
    await db[ADMINS].update_one({"_id": course["creator"]}, {"$pull": {"courses": oid}})
    await db[USERS].update_many({"cart": oid}, {"$pull": {"cart": oid}})
    log.info("course_deleted", course_id=course_id, deleted_by=str(admin["_id"]))
    return {"message": "Course deleted successfully"}
