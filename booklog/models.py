from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, Enum as SQLEnum, Table, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from booklog.database import Base


class ReadStatus(str, enum.Enum):
    UNREAD = "unread"
    READING = "reading"
    READ = "read"


READ_STATUS_VALUES = [s.value for s in ReadStatus]


book_genres = Table(
    "book_genres",
    Base.metadata,
    Column("book_id", Integer, ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", Integer, ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    nickname = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    book_associations = relationship(
        "UserBookAssociation",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reading_lists = relationship("ReadingList", back_populates="user")


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)

    books = relationship("Book", secondary=book_genres, back_populates="genres")


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False, index=True)
    author = Column(String, nullable=False, index=True)
    year = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    isbn = Column(String, nullable=True)
    page_count = Column(Integer, nullable=True)
    language = Column(String, nullable=True)
    publisher = Column(String, nullable=True)
    cover_image_url = Column(String, nullable=True)
    publication_date = Column(String, nullable=True)  # YYYY-MM-DD
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    genres = relationship(
        "Genre",
        secondary=book_genres,
        back_populates="books",
        order_by="Genre.id",
    )
    user_associations = relationship(
        "UserBookAssociation",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reading_list_entries = relationship(
        "ReadingListBook",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class UserBookAssociation(Base):
    __tablename__ = "user_book_associations"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_user_book"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_rating_range"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    read_status = Column(
        SQLEnum(
            ReadStatus,
            name="readstatus",
            native_enum=False,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=ReadStatus.UNREAD,
    )
    rating = Column(Integer, nullable=True)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="book_associations")
    book = relationship("Book", back_populates="user_associations")


class ReadingList(Base):
    __tablename__ = "reading_lists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="reading_lists")
    entries = relationship(
        "ReadingListBook",
        back_populates="reading_list",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [ReadingListBook.position, ReadingListBook.added_at],
    )


class ReadingListBook(Base):
    __tablename__ = "reading_list_books"
    __table_args__ = (
        UniqueConstraint("reading_list_id", "book_id", name="uq_reading_list_book"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    reading_list_id = Column(Integer, ForeignKey("reading_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    added_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    reading_list = relationship("ReadingList", back_populates="entries")
    book = relationship("Book", back_populates="reading_list_entries")
