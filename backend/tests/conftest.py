import os

# 앱 임포트 전에 파일 DB 대신 메모리 DB를 쓰도록 설정
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from eume.database import get_db
from eume.dependencies import get_ai_service
from eume.errors import UpstreamServiceError
from eume.guidance import GuidanceRetriever
from eume.main import app
from eume.models import Base
from eume.orchestrator import SessionOrchestrator
from eume.personalization import PersonalizedQuestionSystem
from eume.report_analysis import CognitiveScoreEstimator


class FakeAIService:
    """프로바이더 없이 고정 응답을 돌려주는 AI 서비스"""

    def __init__(self):
        self.fail = True
        self.reply = "그러셨군요. 더 이야기해 주세요."
        self.image_description = "바닷가에서 가족이 함께 웃고 있는 흑백 사진"
        self.keywords = []
        self.question = {}
        self.summary = "대화에 적극적으로 참여하셨습니다."
        self.system_prompts = []
        self.histories = []

    def _check(self):
        if self.fail:
            raise UpstreamServiceError("llm", "no provider configured")

    async def generate_reply(self, system_prompt, history, user_text):
        self.system_prompts.append(system_prompt)
        self.histories.append(history)
        self._check()
        return self.reply

    async def describe_image(self, image_bytes, media_type):
        self._check()
        return self.image_description

    async def extract_positive_keywords(self, conversation_text):
        self._check()
        return self.keywords

    async def generate_personalized_question(self, prompt):
        self._check()
        return self.question

    async def summarize_assessment(self, transcript, assessment_text):
        self._check()
        return self.summary


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ai():
    return FakeAIService()


@pytest.fixture
def orchestrator(db, ai):
    return SessionOrchestrator(
        db=db,
        ai=ai,
        guidance=GuidanceRetriever(),
        estimator=CognitiveScoreEstimator()
    )


@pytest.fixture
def questions(db, ai):
    return PersonalizedQuestionSystem(db=db, ai=ai)


@pytest.fixture
def client(session_factory, ai):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_service] = lambda: ai
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def signup_and_login(client, username="caregiver1", password="secret123", name="김보호"):
    client.post("/auth/signup", json={"username": username, "password": password, "name": name})
    response = client.post("/auth/login", data={"username": username, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client):
    return signup_and_login(client)
