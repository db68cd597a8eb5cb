from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.api.v1.endpoints.auth import require_admin
from app.models.user import User
from app.models.product import Category
from app.schemas.product import CategoryCreate, CategoryUpdate, CategoryResponse

router = APIRouter()


@router.post("/", response_model=CategoryResponse, status_code=201)
async def create_category(
    category: CategoryCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    name = category.name.strip()
    existing = db.query(Category).filter(Category.name == name).first()
    if existing:
        raise HTTPException(status_code=400, detail="Category with this name already exists")

    db_category = Category(name=name, description=category.description)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


@router.get("/", response_model=List[CategoryResponse])
async def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.name).all()


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    update_data = category_update.model_dump(exclude_unset=True)
    if update_data.get("name") is not None:
        name = update_data["name"].strip()
        clash = db.query(Category).filter(Category.name == name, Category.id != category_id).first()
        if clash:
            raise HTTPException(status_code=400, detail="Category with this name already exists")
        category.name = name
    if "description" in update_data:
        category.description = update_data["description"]

    db.commit()
    db.refresh(category)
    return category


@router.delete("/{category_id}", status_code=204)
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    if any(p.is_active for p in category.products):
        raise HTTPException(
            status_code=400,
            detail="Cannot delete category with existing products. Move or delete the products first.",
        )

    # Withdrawn products lose the category reference when it is deleted
    db.delete(category)
    db.commit()
    return None
