from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    Numeric,
    Text,
    create_engine,
    func,
    text,
)
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# text[] on PostgreSQL, a JSON array everywhere else (SQLite for local runs and tests)
GenreArray = JSON().with_variant(postgresql.ARRAY(Text), "postgresql")

# SQLite only autoincrements an INTEGER PRIMARY KEY
MusicId = BigInteger().with_variant(Integer, "sqlite")


class MusicRow(Base):
    __tablename__ = "musics"

    id = Column(MusicId, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    duration = Column(Integer, nullable=False)  # seconds
    genres = Column(GenreArray, nullable=False)  # may hold null entries; compacted on read
    popularity = Column(Numeric(asdecimal=False), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    version = Column(Integer, nullable=False, server_default=text("1"))

    __table_args__ = (
        CheckConstraint("duration >= 0", name="musics_duration_check"),
        CheckConstraint(
            "array_length(genres, 1) BETWEEN 1 AND 8",
            name="genres_length_check",
        ).ddl_if(dialect="postgresql"),
        CheckConstraint(
            "json_array_length(genres) BETWEEN 1 AND 8",
            name="genres_length_check",
        ).ddl_if(dialect="sqlite"),
    )


def create_all(database_url: str) -> None:
    engine = create_engine(database_url, future=True)
    Base.metadata.create_all(engine)
