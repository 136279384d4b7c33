"""expenses: initial schema

<описание: expenses + expense_shares, материализованная статистика group_stats /
group_category_stats и outbox событий events>
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20251019_expenses_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CATEGORIES = ("FOOD", "TRANSPORT", "ACCOMMODATION", "ENTERTAINMENT", "OTHER")
SPLIT_TYPES = ("EQUAL", "EXACT", "PERCENTAGE")


def upgrade() -> None:
    bind = op.get_bind()

    # ENUM-типы создаём один раз; в колонках - create_type=False
    category_enum = sa.Enum(*CATEGORIES, name="expense_category")
    split_enum = sa.Enum(*SPLIT_TYPES, name="split_type")
    category_enum.create(bind, checkfirst=True)
    split_enum.create(bind, checkfirst=True)
    category_col = sa.Enum(*CATEGORIES, name="expense_category", create_type=False)
    split_col = sa.Enum(*SPLIT_TYPES, name="split_type", create_type=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("payer_id", sa.String(64), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("category", category_col, nullable=False, server_default=sa.text("'OTHER'")),
        sa.Column("split_type", split_col, nullable=False, server_default=sa.text("'EQUAL'")),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("original_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("exchange_rate", sa.Numeric(18, 6), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("is_settlement", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_expenses_id", "expenses", ["id"])
    op.create_index("ix_expenses_group_date", "expenses", ["group_id", "date"])
    op.create_index("ix_expenses_payer", "expenses", ["payer_id"])

    op.create_table(
        "expense_shares",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("expense_id", sa.Integer(), sa.ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
    )
    op.create_index("ix_expense_shares_id", "expense_shares", ["id"])
    op.create_index("ix_expense_shares_expense", "expense_shares", ["expense_id"])
    op.create_index("ix_expense_shares_user", "expense_shares", ["user_id"])

    op.create_table(
        "group_stats",
        sa.Column("group_id", sa.String(64), primary_key=True),
        sa.Column("total_spent", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("expense_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_updated", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "group_category_stats",
        sa.Column("group_id", sa.String(64), primary_key=True),
        sa.Column("category", category_col, primary_key=True),
        sa.Column("total", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("group_id", sa.String(64), nullable=True),
        sa.Column("envelope", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("idempotency_key", sa.String(64), nullable=True),
        sa.UniqueConstraint("idempotency_key", name="uq_events_idempotency_key"),
    )
    op.create_index("ix_events_id", "events", ["id"])


def downgrade() -> None:
    op.drop_index("ix_events_id", table_name="events")
    op.drop_table("events")
    op.drop_table("group_category_stats")
    op.drop_table("group_stats")
    op.drop_index("ix_expense_shares_user", table_name="expense_shares")
    op.drop_index("ix_expense_shares_expense", table_name="expense_shares")
    op.drop_index("ix_expense_shares_id", table_name="expense_shares")
    op.drop_table("expense_shares")
    op.drop_index("ix_expenses_payer", table_name="expenses")
    op.drop_index("ix_expenses_group_date", table_name="expenses")
    op.drop_index("ix_expenses_id", table_name="expenses")
    op.drop_table("expenses")

    bind = op.get_bind()
    sa.Enum(name="split_type").drop(bind, checkfirst=True)
    sa.Enum(name="expense_category").drop(bind, checkfirst=True)
