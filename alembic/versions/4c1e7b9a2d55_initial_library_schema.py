"""initial library schema

Revision ID: 4c1e7b9a2d55
Revises:
Create Date: 2026-10-19 10:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4c1e7b9a2d55"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

GENDER = sa.Enum("MALE", "FEMALE", name="gender")
PRINCIPAL_ROLE = sa.Enum("READER", "VOLUNTEER", "ADMIN", name="principal_role")
REQUEST_STATUS = sa.Enum("PENDING", "FULFILLED", "CANCELLED", name="request_status")
LENDING_STATUS = sa.Enum("PENDING", "RETURNED", "LOST", name="lending_status")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _named_table(table_name: str, *extra: sa.Column) -> None:
    op.create_table(
        table_name,
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *extra,
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f(f"ix_{table_name}_name"), table_name, ["name"], unique=False)


def _principal_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("contact", sa.String(length=255), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    for table_name in ("authors", "publishers", "categories", "departments"):
        _named_table(table_name)
    _named_table("halls", sa.Column("gender", GENDER, nullable=True))

    op.create_table(
        "readers",
        *_principal_columns(),
        sa.Column("registration_no", sa.String(length=255), nullable=True),
        sa.Column("session", sa.String(length=255), nullable=True),
        sa.Column("hall_id", sa.String(length=36), nullable=True),
        sa.Column("dept_id", sa.String(length=36), nullable=True),
        sa.Column("gender", GENDER, nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.sql.expression.false()),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["hall_id"], ["halls.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["dept_id"], ["departments.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_readers_email"), "readers", ["email"], unique=True)

    op.create_table(
        "volunteers",
        *_principal_columns(),
        sa.Column("registration_no", sa.String(length=255), nullable=True),
        sa.Column("session", sa.String(length=255), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("room_no", sa.Integer(), nullable=True),
        sa.Column("hall_id", sa.String(length=36), nullable=True),
        sa.Column("dept_id", sa.String(length=36), nullable=True),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.sql.expression.true()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.sql.expression.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["hall_id"], ["halls.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["dept_id"], ["departments.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_volunteers_email"), "volunteers", ["email"], unique=True)

    op.create_table(
        "admins",
        *_principal_columns(),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_admins_email"), "admins", ["email"], unique=True)

    op.create_table(
        "access_tokens",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("principal_type", PRINCIPAL_ROLE, nullable=False),
        sa.Column("principal_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.sql.expression.false()),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_access_tokens_principal", "access_tokens", ["principal_type", "principal_id"], unique=False)

    op.create_table(
        "books",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=2048), nullable=True),
        sa.Column("author_id", sa.String(length=36), nullable=True),
        sa.Column("publisher_id", sa.String(length=36), nullable=True),
        sa.Column("category_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["author_id"], ["authors.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["publisher_id"], ["publishers.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_books_title"), "books", ["title"], unique=False)

    op.create_table(
        "book_collections",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=False),
        sa.Column("hall_id", sa.String(length=36), nullable=False),
        sa.Column("available_copies", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_copies", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("available_copies >= 0", name="ck_book_collections_available_non_negative"),
        sa.CheckConstraint("available_copies <= total_copies", name="ck_book_collections_available_le_total"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hall_id"], ["halls.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("book_id", "hall_id", name="uq_book_collections_book_hall"),
    )

    op.create_table(
        "requests",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("reader_id", sa.String(length=36), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=False),
        sa.Column("hall_id", sa.String(length=36), nullable=False),
        sa.Column("request_date", sa.Date(), nullable=False),
        sa.Column("status", REQUEST_STATUS, nullable=False, server_default="PENDING"),
        sa.Column("lending_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["reader_id"], ["readers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["hall_id"], ["halls.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_requests_reader_id"), "requests", ["reader_id"], unique=False)

    op.create_table(
        "lendings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("request_id", sa.String(length=36), nullable=False),
        sa.Column("volunteer_id", sa.String(length=36), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("return_date", sa.Date(), nullable=True),
        sa.Column("status", LENDING_STATUS, nullable=False, server_default="PENDING"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["request_id"], ["requests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["volunteer_id"], ["volunteers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("request_id"),
    )

    op.create_table(
        "point_systems",
        sa.Column("activity_type", sa.String(length=64), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("activity_type"),
    )

    op.create_table(
        "point_histories",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("reader_id", sa.String(length=36), nullable=False),
        sa.Column("activity_type", sa.String(length=64), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("earned_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["reader_id"], ["readers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["activity_type"], ["point_systems.activity_type"]),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_point_histories_reader_id"), "point_histories", ["reader_id"], unique=False)

    op.create_table(
        "reviews",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("reader_id", sa.String(length=36), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("reviewed_on", sa.Date(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
        sa.ForeignKeyConstraint(["reader_id"], ["readers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reader_id", "book_id", name="uq_reviews_reader_book"),
    )
    op.create_index(op.f("ix_reviews_book_id"), "reviews", ["book_id"], unique=False)

    op.create_table(
        "wishlists",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("reader_id", sa.String(length=36), nullable=False),
        sa.Column("book_id", sa.String(length=36), nullable=False),
        sa.Column("added_on", sa.Date(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["reader_id"], ["readers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["book_id"], ["books.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reader_id", "book_id", name="uq_wishlists_reader_book"),
    )
    op.create_index(op.f("ix_wishlists_reader_id"), "wishlists", ["reader_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_wishlists_reader_id"), table_name="wishlists")
    op.drop_table("wishlists")
    op.drop_index(op.f("ix_reviews_book_id"), table_name="reviews")
    op.drop_table("reviews")
    op.drop_index(op.f("ix_point_histories_reader_id"), table_name="point_histories")
    op.drop_table("point_histories")
    op.drop_table("point_systems")
    op.drop_table("lendings")
    op.drop_index(op.f("ix_requests_reader_id"), table_name="requests")
    op.drop_table("requests")
    op.drop_table("book_collections")
    op.drop_index(op.f("ix_books_title"), table_name="books")
    op.drop_table("books")
    op.drop_index("ix_access_tokens_principal", table_name="access_tokens")
    op.drop_table("access_tokens")
    for table_name in ("admins", "volunteers", "readers"):
        op.drop_index(op.f(f"ix_{table_name}_email"), table_name=table_name)
        op.drop_table(table_name)
    for table_name in ("halls", "departments", "categories", "publishers", "authors"):
        op.drop_index(op.f(f"ix_{table_name}_name"), table_name=table_name)
        op.drop_table(table_name)

    bind = op.get_bind()
    for enum_type in (LENDING_STATUS, REQUEST_STATUS, PRINCIPAL_ROLE, GENDER):
        enum_type.drop(bind, checkfirst=True)
