from typing import Optional

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from foosbot.config import Config
from foosbot.database.models import Base
from foosbot.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url or Config.DATABASE_URL
        self.engine = None
        self.async_session = None

    @staticmethod
    def to_async_url(database_url: str) -> str:
        """Convert a plain sqlite URL to its aiosqlite form"""
        if database_url.startswith('sqlite:///'):
            return database_url.replace('sqlite:///', 'sqlite+aiosqlite:///', 1)
        return database_url

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        self.engine = create_async_engine(
            self.to_async_url(self.database_url),
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @property
    def session_factory(self):
        """Session factory handed to the service layer"""
        if self.async_session is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.async_session

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")
