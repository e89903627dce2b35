"""Create organizations, ratings and aggregated ratings

Revision ID: 3c1f0a7e9b21
Revises: 
Create Date: 2026-10-19 10:12:41.204518
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1f0a7e9b21"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ORG_TYPE_ENUM = "organization_type"
CATEGORY_ENUM = "rating_category"


def upgrade() -> None:
    org_type = sa.Enum(
        "admin", "hr", "operations_manager", "manager", "supervisor", "branch", "staff",
        name=ORG_TYPE_ENUM,
    )
    category = sa.Enum(
        "time", "creativity", "shelf_cleanliness", "stock_management",
        "customer_service", "discipline_cases", "personal_grooming",
        name=CATEGORY_ENUM,
    )

    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", org_type, nullable=False),
        sa.Column("parent_id", sa.Integer(), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("branch_name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["parent_id"], ["organizations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(op.f("ix_organizations_parent_id"), "organizations", ["parent_id"], unique=False)
    op.create_index(op.f("ix_organizations_type"), "organizations", ["type"], unique=False)

    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("staff_id", sa.Integer(), nullable=False),
        sa.Column("category", category, nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("percentage", sa.Integer(), nullable=False),
        sa.Column("week", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rating_date", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("staff_id", "category", "week", name="uq_rating_staff_category_week"),
    )
    op.create_index("ix_ratings_staff_timestamp", "ratings", ["staff_id", "timestamp"], unique=False)

    op.create_table(
        "aggregated_ratings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("staff_id", sa.Integer(), nullable=False),
        sa.Column("period", sa.String(length=32), nullable=False),
        sa.Column("weeks", sa.JSON(), nullable=False),
        sa.Column("average_scores", sa.JSON(), nullable=False),
        sa.Column("overall_average", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("staff_id", "period", name="uq_aggregated_staff_period"),
    )
    op.create_index(op.f("ix_aggregated_ratings_staff_id"), "aggregated_ratings", ["staff_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_aggregated_ratings_staff_id"), table_name="aggregated_ratings")
    op.drop_table("aggregated_ratings")
    op.drop_index("ix_ratings_staff_timestamp", table_name="ratings")
    op.drop_table("ratings")
    op.drop_index(op.f("ix_organizations_type"), table_name="organizations")
    op.drop_index(op.f("ix_organizations_parent_id"), table_name="organizations")
    op.drop_table("organizations")
    sa.Enum(name=CATEGORY_ENUM).drop(op.get_bind(), checkfirst=True)
    sa.Enum(name=ORG_TYPE_ENUM).drop(op.get_bind(), checkfirst=True)
