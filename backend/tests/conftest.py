"""
Pytest 测试配置
提供测试数据库、临时 Content Store、确定性的假 Provider 等测试基础设施
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

# 添加项目根目录到 sys.path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from jobapplier.db.init_db import create_engine_for_url, create_tables, get_session_factory
from jobapplier.models import DOCUMENT_KINDS, Document, MediaKind, Target
from jobapplier.providers.base import (
    ExtractionProvider,
    GenerationProvider,
    GenerationResult,
    OCRProvider,
    StructuringProvider,
    TokenUsage
)
from jobapplier.services.background import AsyncioTaskRunner
from jobapplier.services.generation_service import GenerationService
from jobapplier.services.ingestion_service import IngestionService
from jobapplier.services.target_service import TargetService
from jobapplier.storage.content_store import LocalContentStore, compute_checksum


SAMPLE_CV_TEXT = """Jane Doe
jane@example.com

Experience
Senior Python Developer, Acme Corp, 2019 - Present
Built data pipelines with SQLAlchemy and asyncio.
"""

SAMPLE_PROFILE: Dict[str, Any] = {
    "personal_info": {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "",
        "location": "Berlin",
        "summary": "Backend engineer"
    },
    "experiences": [
        {
            "company": "Acme Corp",
            "position": "Senior Python Developer",
            "start_date": "2019",
            "end_date": "Present",
            "description": "Data pipelines",
            "responsibilities": ["Built data pipelines"]
        }
    ],
    "education": [],
    "skills": [{"category": "Languages", "items": ["Python", "SQL"]}],
    "certifications": [],
    "languages": []
}


def make_words(count: int, word: str = "word") -> str:
    """生成指定词数的文本"""
    return " ".join([word] * count)


# ==================== 假 Provider ====================

class FakeExtractionProvider(ExtractionProvider):
    """CV 抽取：返回固定文本，可注入异常或阻塞"""

    def __init__(self, text: str = SAMPLE_CV_TEXT, error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[tuple] = []
        self.started = asyncio.Event()
        self.block_forever = False

    def supports_kind(self, kind: MediaKind) -> bool:
        return kind in DOCUMENT_KINDS

    async def extract_text(self, location: str, kind: MediaKind) -> str:
        self.calls.append((location, kind))
        self.started.set()
        if self.block_forever:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        return self.text


class FakeOCRProvider(OCRProvider):
    """OCR：可切换是否已配置"""

    def __init__(self, configured: bool = True, text: str = "Python Engineer\r\n\r\n\r\n\r\nBerlin", error: Optional[Exception] = None):
        self.configured = configured
        self.text = text
        self.error = error
        self.calls: List[tuple] = []

    def supports_kind(self, kind: MediaKind) -> bool:
        return kind in (MediaKind.PNG, MediaKind.JPG, MediaKind.JPEG)

    def is_configured(self) -> bool:
        return self.configured

    async def extract_text(self, location: str, kind: MediaKind) -> str:
        self.calls.append((location, kind))
        if self.error is not None:
            raise self.error
        return self.text


class FakeStructuringProvider(StructuringProvider):
    """结构化：返回固定画像，可注入异常 / 延迟 / 未配置"""

    def __init__(
        self,
        configured: bool = True,
        profile: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
        delay: float = 0
    ):
        self.configured = configured
        self.profile = SAMPLE_PROFILE if profile is None else profile
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    def is_configured(self) -> bool:
        return self.configured

    async def structure(self, raw_text: str) -> Dict[str, Any]:
        self.calls.append(raw_text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return dict(self.profile)


class FakeGenerationProvider(GenerationProvider):
    """生成：默认返回 300 词，用量 (500, 250, 750)"""

    def __init__(
        self,
        configured: bool = True,
        text: Optional[str] = None,
        usage: Optional[TokenUsage] = None,
        error: Optional[Exception] = None,
        delay: float = 0
    ):
        self.configured = configured
        self.text = make_words(300) if text is None else text
        self.usage = usage or TokenUsage(input_units=500, output_units=250, total_units=750)
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []
        self._last_usage = TokenUsage()

    def is_configured(self) -> bool:
        return self.configured

    def model_identifier(self) -> str:
        return "fake/cover-letter-1"

    async def generate(self, profile, target_text, hint=None) -> GenerationResult:
        self.calls.append((profile, target_text, hint))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self._last_usage = self.usage
        return GenerationResult(text=self.text, usage=self.usage)

    def last_usage(self) -> TokenUsage:
        return self._last_usage


# ==================== 数据库 Fixtures ====================

@pytest_asyncio.fixture(scope="function")
async def test_db_engine(tmp_path):
    """
    创建测试用的 SQLite 文件数据库引擎
    使用文件而不是内存库：并发测试需要多个连接看到同一个数据库
    """
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_db_engine):
    return get_session_factory(test_db_engine)


@pytest_asyncio.fixture(scope="function")
async def test_db_session(session_factory):
    """
    创建测试用的数据库会话
    """
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
def content_store(tmp_path) -> LocalContentStore:
    return LocalContentStore(tmp_path / "storage")


# ==================== Provider Fixtures ====================

@pytest.fixture(scope="function")
def extraction_provider() -> FakeExtractionProvider:
    return FakeExtractionProvider()


@pytest.fixture(scope="function")
def ocr_provider() -> FakeOCRProvider:
    return FakeOCRProvider()


@pytest.fixture(scope="function")
def structuring_provider() -> FakeStructuringProvider:
    return FakeStructuringProvider()


@pytest.fixture(scope="function")
def generation_provider() -> FakeGenerationProvider:
    return FakeGenerationProvider()


# ==================== Service Fixtures ====================

@pytest_asyncio.fixture(scope="function")
async def task_runner(test_db_engine):
    """
    后台任务执行器
    依赖数据库引擎，保证先等后台任务结束再释放引擎
    """
    runner = AsyncioTaskRunner()
    yield runner
    await runner.drain()


@pytest.fixture(scope="function")
def ingestion_service(session_factory, content_store, extraction_provider, structuring_provider, task_runner):
    return IngestionService(
        session_factory,
        content_store,
        extraction_provider,
        structuring_provider,
        task_runner,
        structuring_timeout=5
    )


@pytest.fixture(scope="function")
def target_service(session_factory, content_store, ocr_provider):
    return TargetService(session_factory, content_store, ocr_provider)


@pytest.fixture(scope="function")
def generation_service(session_factory, generation_provider):
    return GenerationService(session_factory, generation_provider)


# ==================== 测试数据 Fixtures ====================

@pytest_asyncio.fixture(scope="function")
async def structured_document(session_factory) -> Document:
    """
    创建一份已完成结构化的 CV（owner_id=1）
    """
    document = Document(
        owner_id=1,
        file_name="jane_doe.pdf",
        media_kind=MediaKind.PDF,
        storage_location="/tmp/jane_doe.pdf",
        size_bytes=1024,
        checksum=compute_checksum(b"jane doe cv"),
        extracted_text=SAMPLE_CV_TEXT
    )
    document.mark_structured(dict(SAMPLE_PROFILE))
    async with session_factory() as session:
        session.add(document)
        await session.commit()
        await session.refresh(document)
    return document


@pytest_asyncio.fixture(scope="function")
async def pending_document(session_factory) -> Document:
    """
    创建一份尚未结构化的 CV（owner_id=1）
    """
    document = Document(
        owner_id=1,
        file_name="pending.docx",
        media_kind=MediaKind.DOCX,
        storage_location="/tmp/pending.docx",
        size_bytes=2048,
        checksum=compute_checksum(b"pending cv"),
        extracted_text=SAMPLE_CV_TEXT
    )
    async with session_factory() as session:
        session.add(document)
        await session.commit()
        await session.refresh(document)
    return document


@pytest_asyncio.fixture(scope="function")
async def text_target(session_factory) -> Target:
    """
    创建测试 JD（owner_id=1）
    """
    target = Target.from_text(
        owner_id=1,
        content="We are looking for a Senior Python Developer with 5+ years of experience.",
        title="Senior Python Developer",
        company="Tech Corp"
    )
    async with session_factory() as session:
        session.add(target)
        await session.commit()
        await session.refresh(target)
    return target

