import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from content_engine.database import Base, create_db_engine, get_db
from content_engine.main import app
from content_engine.models.user import User
from content_engine.schemas.collection import CollectionCreate
from content_engine.schemas.content import ContentCreate
from content_engine.services import content_service

TEST_DB_URL = "sqlite:///./test_content_engine.db"

engine = create_db_engine(TEST_DB_URL)
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def session_factory():
    return TestingSession


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    users = {
        "admin": User(emp_id="admin001", name="Admin", role="admin"),
        "editor": User(emp_id="editor001", name="Editor A", role="editor"),
        "editor_b": User(emp_id="editor002", name="Editor B", role="editor"),
        "viewer": User(emp_id="viewer001", name="Viewer", role="viewer"),
    }
    for u in users.values():
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


@pytest.fixture
def seed_collection(db, seed_users):
    return content_service.create_collection(db, CollectionCreate(name="Handbook"), seed_users["editor"])


@pytest.fixture
def seed_content(db, seed_users, seed_collection):
    data = ContentCreate(
        title="Welcome",
        elements=[
            {"id": "intro", "type": "heading", "data": {"text": "Hello"}},
            {
                "id": "body",
                "type": "section",
                "data": {},
                "children": [
                    {"id": "p1", "type": "text", "data": {"text": "first"}},
                    {"id": "p2", "type": "text", "data": {"text": "second"}},
                ],
            },
        ],
    )
    return content_service.create_content(db, seed_collection.collection_id, data, seed_users["editor"])


def get_token(client, emp_id: str) -> str:
    resp = client.post("/api/auth/login", json={"emp_id": emp_id})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


@pytest.fixture
def auth_headers(client):
    def _headers(emp_id: str) -> dict:
        return {"Authorization": f"Bearer {get_token(client, emp_id)}"}
    return _headers
