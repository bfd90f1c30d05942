"""
SQLAlchemy database models and configuration.

Architecture Decision: Why SQLAlchemy?
- Provides ORM for cleaner code and prevents SQL injection
- Supports async operations for non-blocking database access
- The batched exception load is a single joined query, easy to express here
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional
import os

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Integer, Date, DateTime, Boolean, Text, ForeignKey


# Base class for all models
class Base(DeclarativeBase):
    pass


class RecurrenceRuleModel(Base):
    """SQLAlchemy model for RecurrenceRule entity"""
    __tablename__ = "recurrence_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False, default="task")
    item_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    # Plain string so legacy kinds survive a round trip
    recurrence_type: Mapped[str] = mapped_column(String(20), nullable=False)
    interval: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    # JSON-encoded list of weekdays, Sunday=0
    days_of_week: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    start_datetime: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    end_datetime: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class RecurrenceInstanceModel(Base):
    """SQLAlchemy model for RecurrenceInstance entity"""
    __tablename__ = "recurrence_instances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rule_id: Mapped[int] = mapped_column(Integer, ForeignKey("recurrence_rules.id"), nullable=False, index=True)
    item_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    instance_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class RecurrenceExceptionModel(Base):
    """SQLAlchemy model for RecurrenceException entity"""
    __tablename__ = "recurrence_exceptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rule_id: Mapped[int] = mapped_column(Integer, ForeignKey("recurrence_rules.id"), nullable=False, index=True)
    exception_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    replacement_instance_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("recurrence_instances.id"), nullable=True
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)


class DatabaseEngine:
    """
    Manages database connection and session lifecycle.

    Singleton pattern ensures only one engine exists per application.
    """
    _instance: Optional['DatabaseEngine'] = None

    def __init__(self, db_url: str):
        self.engine = create_async_engine(db_url, echo=False)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    @classmethod
    def get_instance(cls, db_url: Optional[str] = None) -> 'DatabaseEngine':
        """Get or create the database engine instance"""
        if cls._instance is None:
            if db_url is None:
                # Default: Store in user's AppData on Windows, ~/.local/share on Linux
                if os.name == 'nt':  # Windows
                    data_dir = Path(os.getenv('APPDATA')) / 'Planner'
                else:  # Linux/Mac
                    data_dir = Path.home() / '.local' / 'share' / 'planner'

                data_dir.mkdir(parents=True, exist_ok=True)
                db_path = data_dir / 'planner.db'
                db_url = f"sqlite+aiosqlite:///{db_path}"

            cls._instance = cls(db_url)
        return cls._instance

    async def create_tables(self):
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def get_session(self) -> AsyncSession:
        """Get a new database session"""
        return self.session_factory()


# Convenience functions
def get_engine(db_url: Optional[str] = None) -> DatabaseEngine:
    """Get the database engine instance"""
    return DatabaseEngine.get_instance(db_url)


async def init_db(db_url: Optional[str] = None):
    """Initialize the database (create tables)"""
    engine = get_engine(db_url)
    await engine.create_tables()
