# FILE: backend/vyapar/api/endpoints/auth.py
# LOCALVYAPAR - AUTH
# 1. JSON login and an OAuth2 form login (username = email) issue the same access token.
# 2. Password reset answers identically for known and unknown emails.

from typing import Any
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pymongo.database import Database

from ...core import security
from ...core.db import get_db
from ...services import user_service, email_service
from ...models.token import Token, PasswordResetRequest, PasswordResetConfirm, ChangePasswordSchema
from ...models.user import UserInDB, UserCreate, UserLogin, UserOut
from .dependencies import get_current_user

router = APIRouter()

RESET_ACCEPTED = {"message": "If that email is registered, a reset link is on its way."}

def _issue_token(user: UserInDB) -> Token:
    token = security.create_access_token(data={"id": str(user.id), "role": user.role.value})
    return Token(access_token=token, token_type="bearer")

def _login(db: Database, email: str, password: str) -> Token:
    user = user_service.authenticate(db, email=email, password=password)
    if not user:
        raise HTTPException(status_code=401, detail="Incorrect email or password")
    user_service.update_last_login(db, str(user.id))
    return _issue_token(user)

@router.post("/login", response_model=Token)
def login_access_token(form_data: UserLogin, db: Database = Depends(get_db)) -> Any:
    return _login(db, form_data.email, form_data.password)

@router.post("/token", response_model=Token)
def login_form(form_data: OAuth2PasswordRequestForm = Depends(), db: Database = Depends(get_db)) -> Any:
    return _login(db, form_data.username, form_data.password)

@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserOut, response_model_by_alias=False)
def register_user(user_in: UserCreate, db: Database = Depends(get_db)) -> Any:
    return user_service.create(db, obj_in=user_in)

@router.post("/refresh", response_model=Token)
def refresh_token(current_user: UserInDB = Depends(get_current_user)) -> Any:
    return _issue_token(current_user)

@router.post("/change-password", status_code=status.HTTP_200_OK)
def change_password(
    password_data: ChangePasswordSchema,
    current_user: UserInDB = Depends(get_current_user),
    db: Database = Depends(get_db)
):
    user_service.change_password(db, str(current_user.id), password_data.old_password, password_data.new_password)
    return {"message": "Password updated successfully"}

@router.post("/password-reset/request", status_code=status.HTTP_202_ACCEPTED)
def request_password_reset(
    data: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    db: Database = Depends(get_db)
):
    token = user_service.request_password_reset(db, data.email)
    if token:
        background_tasks.add_task(email_service.send_password_reset_email_sync, data.email, token)
    return RESET_ACCEPTED

@router.post("/password-reset/confirm", status_code=status.HTTP_200_OK)
def confirm_password_reset(data: PasswordResetConfirm, db: Database = Depends(get_db)):
    user_service.confirm_password_reset(db, data.token, data.new_password)
    return {"message": "Password has been reset. You can sign in now."}
