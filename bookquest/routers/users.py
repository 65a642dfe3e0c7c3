from typing import Any, Dict
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
from .. import models, schemas
from ..database import get_db
from ..auth import get_current_user_required, get_password_hash, require_role
from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError

router = APIRouter(prefix="/api/user", tags=["users"])

def get_user_or_404(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundError("No user found with this id")
    return user

@router.get("/{user_id}", response_model=schemas.UserOut)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user_required),
):
    return schemas.UserOut.model_validate(get_user_or_404(db, user_id))

@router.put("/{user_id}", response_model=schemas.UserOut)
async def update_user(
    user_id: int,
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_role(models.ROLE_ADMIN)),
):
    data, errors = schemas.validate(schemas.UserUpdate, payload)
    if errors:
        raise ValidationError(errors)

    user = get_user_or_404(db, user_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes and changes["email"] != user.email:
        taken = db.query(models.User).filter(models.User.email == changes["email"]).first()
        if taken:
            raise ConflictError("User already exists.")
    if "password" in changes:
        user.password_hash = get_password_hash(changes.pop("password"))
    if "name" in changes:
        changes["name"] = changes["name"].strip()
    for field, value in changes.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)
    return schemas.UserOut.model_validate(user)

@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user_required),
):
    if current_user.id != user_id and current_user.role != models.ROLE_ADMIN:
        raise ForbiddenError("You are not authorized to perform this action")

    user = get_user_or_404(db, user_id)
    # Books first: they reference the user's authors and genres
    for book in db.query(models.Book).filter(models.Book.owner_id == user.id).all():
        db.delete(book)
    db.flush()
    db.query(models.Author).filter(models.Author.owner_id == user.id).delete()
    db.query(models.Genre).filter(models.Genre.owner_id == user.id).delete()
    db.delete(user)
    db.commit()
    return {"message": "User deleted successfully"}
