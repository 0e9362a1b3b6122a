import logging
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from src.config import Config

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

async_engine = create_async_engine(
    Config.DATABASE_URL,
    echo=Config.DATABASE_ECHO,
    future=True,
    pool_size=Config.DATABASE_POOL_SIZE,
    max_overflow=Config.DATABASE_MAX_OVERFLOW,
    pool_timeout=Config.DATABASE_POOL_TIMEOUT,
    pool_pre_ping=True
)

Session = sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_session() -> AsyncSession: # type: ignore
    async with Session() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Session error: {e}")
            await session.rollback()
            raise
