# routers/auth.py

import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from db import get_db
from models.user import User
from schemas.user import (
    RegisterRequest, RegisterResponse,
    LoginRequest,    LoginResponse,
    SessionResponse, UserOut,
)
from utils.email_utils import normalize_email, lookup_email
from utils.password import hash_password, verify_password, password_too_long, MAX_PASSWORD_BYTES
from utils.jwt_utils import (
    create_access_token, get_current_user,
    ACCESS_TOKEN_EXPIRE_MINUTES, SESSION_COOKIE_NAME,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    name = (req.name or "").strip()
    if not name or not req.email or not req.password:
        raise HTTPException(status_code=400, detail="All fields are required")

    if password_too_long(req.password):
        raise HTTPException(
            status_code=400,
            detail={"error": "Password too long", "details": f"Maximum is {MAX_PASSWORD_BYTES} bytes"},
        )

    email = normalize_email(req.email.strip())

    # duplicate check
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        name=name,
        email=email,
        password=hash_password(req.password)
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent registration for the same email
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return RegisterResponse(
        message="User registered successfully",
        user=UserOut.model_validate(user)
    )


@router.post("/auth/login", response_model=LoginResponse)
def login(req: LoginRequest, response: Response, db: Session = Depends(get_db)):
    if not req.email or not req.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    # stored addresses are normalized, so look up the normalized form
    email = lookup_email(req.email)
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=404, detail="Email not found")
    if not verify_password(req.password, user.password):
        logger.info("Failed login for user %s", user.id)
        raise HTTPException(status_code=401, detail="Invalid password")

    # no expires_delta: the ACCESS_TOKEN_EXPIRE_MINUTES setting applies
    access_token = create_access_token(user_id=user.id)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        access_token,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )

    logger.info("User %s logged in", user.id)
    return LoginResponse(
        message="Login successful",
        user=UserOut.model_validate(user),
        access_token=access_token,
        expires_in_minutes=ACCESS_TOKEN_EXPIRE_MINUTES
    )


@router.post("/auth/logout")
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/auth/session", response_model=SessionResponse)
def read_session(user: User = Depends(get_current_user)):
    return SessionResponse(user=UserOut.model_validate(user))
