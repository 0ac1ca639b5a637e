from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from kids_scheduler.config import settings
from kids_scheduler.services.record_store import RecordStore

engine = create_async_engine(settings.database_url, echo=False)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def get_store() -> RecordStore:
    return RecordStore(async_session)
