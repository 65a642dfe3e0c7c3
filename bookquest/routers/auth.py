from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, Response, status
from sqlalchemy.orm import Session
from .. import models, schemas
from ..database import get_db
from ..auth import verify_password, get_password_hash, create_access_token, get_current_user_required
from ..config import settings
from ..errors import ConflictError, UnauthorizedError, ValidationError

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(payload: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    data, errors = schemas.validate(schemas.UserCreate, payload)
    if errors:
        raise ValidationError(errors)

    user = db.query(models.User).filter(models.User.email == data.email).first()
    if user:
        raise ConflictError("User already exists.")

    # Accounts always start as plain users; only an admin can promote them
    new_user = models.User(
        email=data.email,
        password_hash=get_password_hash(data.password),
        name=data.name.strip(),
        role=models.ROLE_USER,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return {"user": schemas.UserOut.model_validate(new_user)}

@router.post("/login", response_model=schemas.Token)
async def login(
    response: Response,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    data, errors = schemas.validate(schemas.UserLogin, payload)
    if errors:
        raise ValidationError(errors)

    user = db.query(models.User).filter(models.User.email == data.email).first()
    if not user or not verify_password(data.password, user.password_hash):
        raise UnauthorizedError("Unable to authenticate the user")

    access_token = create_access_token(user)

    # Set Cookie
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax"
    )
    return schemas.Token(auth_token=access_token)

@router.get("/verify", response_model=schemas.UserOut)
async def verify(current_user: models.User = Depends(get_current_user_required)):
    return schemas.UserOut.model_validate(current_user)
