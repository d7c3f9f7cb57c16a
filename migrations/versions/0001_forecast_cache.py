"""forecast cache tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00.000000

energy_forecasts, realized_waveforms and forecast_accuracy, one row per
calendar day each. All three are derived caches and may be dropped and
rebuilt from biometric snapshots at any time.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "energy_forecasts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("hourly_values", sa.Text(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("confidence", sa.Float(), nullable=False, server_default="0"),
        sa.Column("missing_metrics", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("source_type", sa.String(32), nullable=False),
        sa.Column("debug_info", sa.Text(), nullable=True),
        _updated_at(),
    )
    op.create_index("ix_energy_forecasts_id", "energy_forecasts", ["id"])
    op.create_index("ix_energy_forecasts_day", "energy_forecasts", ["day"], unique=True)

    op.create_table(
        "realized_waveforms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("hourly_values", sa.Text(), nullable=False),
        _updated_at(),
    )
    op.create_index("ix_realized_waveforms_id", "realized_waveforms", ["id"])
    op.create_index("ix_realized_waveforms_day", "realized_waveforms", ["day"], unique=True)

    op.create_table(
        "forecast_accuracy",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("accuracy", sa.Float(), nullable=False),
        _updated_at(),
    )
    op.create_index("ix_forecast_accuracy_id", "forecast_accuracy", ["id"])
    op.create_index("ix_forecast_accuracy_day", "forecast_accuracy", ["day"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_forecast_accuracy_day", table_name="forecast_accuracy")
    op.drop_index("ix_forecast_accuracy_id", table_name="forecast_accuracy")
    op.drop_table("forecast_accuracy")
    op.drop_index("ix_realized_waveforms_day", table_name="realized_waveforms")
    op.drop_index("ix_realized_waveforms_id", table_name="realized_waveforms")
    op.drop_table("realized_waveforms")
    op.drop_index("ix_energy_forecasts_day", table_name="energy_forecasts")
    op.drop_index("ix_energy_forecasts_id", table_name="energy_forecasts")
    op.drop_table("energy_forecasts")
