from typing import Optional
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Header, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from config import Settings
from database import (
    COURSES,
    USERS,
    create_document,
    get_db,
    get_documents,
    parse_object_id,
    resolve_references,
    to_public,
)
from errors import AlreadyExists, InvalidCredentials, NotFound
from schemas import (
    Cart,
    CourseList,
    Message,
    ProfileUpdate,
    PurchasedCourses,
    SignupRequest,
    TokenResponse,
    User,
    UserProfile,
)
from security import (
    Identity,
    create_user_token,
    get_identity,
    get_password_hash,
    get_settings,
    normalize_email,
    verify_password,
)

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> dict:
    user = await db[USERS].find_one({"email": identity.email})
    if not user:
        raise NotFound("User not found")
    return user


async def get_existing_course(db: AsyncIOMotorDatabase, course_id: str) -> dict:
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
    existing = await db[USERS].find_one({"email": payload.email})
    if existing:
        raise AlreadyExists("User already exists")
    user_doc = User(
        username=payload.username,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
    ).model_dump()
    await create_document(db, USERS, user_doc)
    log.info("user_signup", email=payload.email)
    return {"message": "User created successfully", "token": create_user_token(payload.email, settings)}


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
    user = await db[USERS].find_one({"email": email})
    if not user or not verify_password(password, user.get("password_hash", "")):
        log.info("login_failed", actor="user", email=email)
        raise InvalidCredentials()
    return {"message": "Logged in successfully", "token": create_user_token(email, settings)}


@router.get("/profile", response_model=UserProfile)
async def get_profile(user: dict = Depends(get_current_user)):
    return {"user": {"username": user["username"], "email": user["email"]}}


@router.put("/profile", response_model=Message)
async def update_profile(
    payload: ProfileUpdate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    updates = payload.model_dump(exclude_unset=True)
    updates["updated_at"] = datetime.now(timezone.utc)
    await db[USERS].update_one({"_id": user["_id"]}, {"$set": updates})
    return {"message": "Profile updated successfully"}


@router.get("/courses", response_model=CourseList)
async def list_courses(
    identity: Identity = Depends(get_identity),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    # Unfiltered: unpublished courses are listed too
    courses = await get_documents(db, COURSES)
    return {"courses": [to_public(c) for c in courses]}


@router.post("/courses/{course_id}", response_model=Message)
async def purchase_course(
    course_id: str,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_existing_course(db, course_id)
    # Repeat purchases are recorded again; there is no payment step
    await db[USERS].update_one({"_id": user["_id"]}, {"$push": {"purchased_courses": course["_id"]}})
    await db[COURSES].update_one({"_id": course["_id"]}, {"$addToSet": {"students": user["_id"]}})
    log.info("course_purchased", course_id=course_id, user=user["email"])
    return {"message": "Course purchased successfully"}


@router.get("/purchasedCourses", response_model=PurchasedCourses)
async def list_purchased_courses(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    courses = await resolve_references(db, COURSES, user.get("purchased_courses", []))
    return {"purchased_courses": [to_public(c) for c in courses]}


@router.post("/cart/{course_id}", response_model=Message)
async def add_to_cart(
    course_id: str,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_existing_course(db, course_id)
    result = await db[USERS].update_one(
        {"_id": user["_id"], "cart": {"$ne": course["_id"]}},
        {"$push": {"cart": course["_id"]}},
    )
    if result.matched_count == 0:
        raise AlreadyExists("Course already added to cart")
    return {"message": "Course added to cart successfully"}


@router.delete("/cart/{course_id}", response_model=Message)
async def remove_from_cart(
    course_id: str,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    oid = parse_object_id(course_id)
    if oid is not None:
        await db[USERS].update_one({"_id": user["_id"]}, {"$pull": {"cart": oid}})
    return {"message": "Course removed from cart successfully"}


@router.get("/cart", response_model=Cart)
async def list_cart(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    courses = await resolve_references(db, COURSES, user.get("cart", []))
    return {"cart": [to_public(c) for c in courses]}
