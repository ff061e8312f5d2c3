# salonbook/routers/users_routes.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session, select

from salonbook.db import get_session
from salonbook.models import User
from salonbook.schemas import UserCreate, UserPublic, UserRole
from salonbook.auth import get_current_user, hash_password

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)

optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
    token: Optional[str] = Depends(optional_oauth2_scheme),
):
    # 1) Anyone may sign up as a customer; staff accounts need an admin
    if user.role != UserRole.customer:
        if token is None:
            raise HTTPException(status_code=403, detail="Only an admin can create staff accounts")
        creator = get_current_user(token=token, session=session)
        if creator["role"] != UserRole.admin.value:
            raise HTTPException(status_code=403, detail="Only an admin can create staff accounts")

    # 2) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 3) Create user in DB
    db_user = User(
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        password_hash=hash_password(user.password),
        role=user.role.value,
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id
    logger.info("Registered %s as %s", db_user.email, db_user.role)

    # 4) Return public user
    return {
        "id": db_user.id,
        "email": db_user.email,
        "full_name": db_user.full_name,
        "role": db_user.role,
    }
