from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Stream keeps its tables under the site's WordPress prefix
TABLE_PREFIX = "wp_"


class StreamRecord(Base):
    __tablename__ = f"{TABLE_PREFIX}stream"

    ID = Column("ID", Integer, primary_key=True, autoincrement=True)
    site_id = Column(Integer, nullable=False, default=1)
    blog_id = Column(Integer, nullable=False, default=1)
    object_id = Column(Integer, nullable=True)
    user_id = Column(Integer, nullable=False, default=0, index=True)
    user_role = Column(String(20), nullable=False, default="")
    summary = Column(String(255), nullable=False, default="")
    created = Column(DateTime, nullable=False, index=True)  # GMT, naive
    connector = Column(String(100), nullable=False, index=True)
    context = Column(String(100), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)
    ip = Column(String(39), nullable=True, index=True)


class StreamMeta(Base):
    __tablename__ = f"{TABLE_PREFIX}stream_meta"

    meta_id = Column(Integer, primary_key=True, autoincrement=True)
    record_id = Column(Integer, nullable=False, index=True)
    meta_key = Column(String(200), nullable=False)
    meta_value = Column(Text, nullable=False, default="")

    __table_args__ = (Index("ix_stream_meta_record_key", "record_id", "meta_key"),)


def create_all(engine_url: str) -> None:
    engine = create_engine(engine_url)
    Base.metadata.create_all(engine)
