"""
Test configuration and fixtures for the storefront API tests.
"""
import os
import tempfile

# Point settings at throwaway locations before the app is imported
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("STOREFRONT_LOG_DIR", os.path.join(tempfile.gettempdir(), "storefront-test-logs"))

from datetime import datetime, timedelta
from typing import Dict, Generator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.security import create_access_token, get_password_hash
from app.main import app
from app.models.discount import Discount, DiscountTypeEnum, TargetTypeEnum
from app.models.product import Category, Product
from app.models.user import RoleEnum, User
from app.services import sale_program_service

# In-memory SQLite shared by every connection of the test engine
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def enable_sqlite_fks(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sql_log() -> Generator[List[str], None, None]:
    """Every SQL statement sent through the test engine while the fixture is active."""
    statements: List[str] = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    yield statements
    event.remove(engine, "before_cursor_execute", record)


def _make_user(db, email: str, role: RoleEnum) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash("secret123"),
        display_name=email.split("@")[0].title(),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session) -> User:
    return _make_user(db_session, "admin@example.com", RoleEnum.ADMIN)


@pytest.fixture
def shopper(db_session) -> User:
    return _make_user(db_session, "shopper@example.com", RoleEnum.USER)


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": user.email, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user) -> Dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def shopper_headers(shopper) -> Dict[str, str]:
    return auth_headers(shopper)


@pytest.fixture
def category(db_session) -> Category:
    category = Category(name="Shoes")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def make_product(db_session, category):
    def _make(name="Runner", price="100.00", stock=None, category_id=None, is_active=True) -> Product:
        product = Product(
            name=name,
            price=price,
            stock=stock,
            category_id=category.id if category_id is None else category_id,
            is_active=is_active,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _make


@pytest.fixture
def make_discount(db_session):
    def _make(
        name="Discount",
        percent=10,
        target_type=TargetTypeEnum.ORDER_TOTAL,
        target_id=None,
        min_quantity=1,
        discount_type=DiscountTypeEnum.SALE,
        is_active=True,
    ) -> Discount:
        now = datetime.utcnow()
        discount = Discount(
            name=name,
            type=discount_type,
            target_type=target_type,
            target_id=target_id,
            discount_percent=percent,
            min_quantity=min_quantity,
            start_sale=now - timedelta(hours=1),
            end_sale=now + timedelta(days=1),
            is_active=is_active,
        )
        db_session.add(discount)
        db_session.commit()
        db_session.refresh(discount)
        return discount
    return _make


@pytest.fixture
def make_program(db_session):
    """Create a program through the service so both sides of the link are written."""
    counter = {"n": 0}

    def _make(discount_ids=(), name=None, is_active=True, start=None, end=None):
        counter["n"] += 1
        now = datetime.utcnow()
        data = {
            "name": name or f"Program {counter['n']}",
            "start_date": start or now - timedelta(days=1),
            "end_date": end or now + timedelta(days=1),
            "is_active": is_active,
        }
        return sale_program_service.create_program(db_session, data, list(discount_ids))
    return _make


@pytest.fixture
def headers_for():
    return auth_headers
