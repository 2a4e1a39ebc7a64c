"""create_certification_core

Create the catalog, scoring, certification ledger and quorum request
tables.

Revision ID: a7c1e9d2b4f0
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7c1e9d2b4f0'
down_revision = None
branch_labels = None
depends_on = None


def _quorum_columns() -> list[sa.Column]:
    """Columns shared by both co-signature request tables."""
    return [
        sa.Column('request_id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(36), nullable=False, index=True),
        sa.Column('judge_id', sa.String(36), sa.ForeignKey('judge.judge_id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('category.category_id', ondelete='CASCADE'), nullable=False),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('requested_by', sa.String(36), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('auditor_signature', sa.String(), nullable=True),
        sa.Column('auditor_signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('auditor_signed_by', sa.String(36), nullable=True),
        sa.Column('tally_signature', sa.String(), nullable=True),
        sa.Column('tally_signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tally_signed_by', sa.String(36), nullable=True),
        sa.Column('board_signature', sa.String(), nullable=True),
        sa.Column('board_signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('board_signed_by', sa.String(36), nullable=True),
        sa.Column('rejected_by', sa.String(36), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.String(), nullable=True),
        sa.Column('executed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'affected_count', sa.Integer(), nullable=True,
            comment='Rows deleted or uncertified by the first execution',
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
    ]


def upgrade() -> None:
    # -- 1. Catalog --
    op.create_table(
        'event',
        sa.Column('event_id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(36), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
    )
    op.create_table(
        'contest',
        sa.Column('contest_id', sa.String(36), primary_key=True),
        sa.Column('event_id', sa.String(36), sa.ForeignKey('event.event_id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('tenant_id', sa.String(36), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
    )
    op.create_table(
        'category',
        sa.Column('category_id', sa.String(36), primary_key=True),
        sa.Column('contest_id', sa.String(36), sa.ForeignKey('contest.contest_id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('tenant_id', sa.String(36), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('score_cap', sa.Integer(), nullable=True),
        sa.Column(
            'tally_totals_certified', sa.Boolean(), nullable=False,
            comment='Set by the Tally Master only; not the four-role certification verdict',
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_table(
        'criterion',
        sa.Column('criterion_id', sa.String(36), primary_key=True),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('category.category_id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('max_score', sa.Integer(), nullable=False),
        sa.CheckConstraint('max_score > 0', name='ck_criterion_max_score_positive'),
    )
    op.create_table(
        'contestant',
        sa.Column('contestant_id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(36), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('contestant_number', sa.Integer(), nullable=True),
    )
    op.create_table(
        'judge',
        sa.Column('judge_id', sa.String(36), primary_key=True),
        sa.Column('tenant_id', sa.String(36), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
    )

    # -- 2. Raw judging facts --
    op.create_table(
        'score',
        sa.Column('score_id', sa.String(36), primary_key=True),
        sa.Column('judge_id', sa.String(36), sa.ForeignKey('judge.judge_id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('contestant_id', sa.String(36), sa.ForeignKey('contestant.contestant_id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('category.category_id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('criterion_id', sa.String(36), sa.ForeignKey('criterion.criterion_id', ondelete='CASCADE'), nullable=False),
        sa.Column('value', sa.Float(), nullable=True),
        sa.Column('comment', sa.String(), nullable=True),
        sa.Column('is_certified', sa.Boolean(), nullable=False),
        sa.Column('certified_by', sa.String(36), nullable=True),
        sa.Column('certified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint('judge_id', 'contestant_id', 'criterion_id', name='uq_score_judge_contestant_criterion'),
        sa.CheckConstraint('value IS NULL OR value >= 0', name='ck_score_value_non_negative'),
    )
    op.create_table(
        'overall_deduction',
        sa.Column('deduction_id', sa.String(36), primary_key=True),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('category.category_id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('contestant_id', sa.String(36), sa.ForeignKey('contestant.contestant_id', ondelete='CASCADE'), nullable=False),
        sa.Column('deduction', sa.Float(), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()),
        sa.CheckConstraint('deduction > 0', name='ck_overall_deduction_positive'),
    )

    # -- 3. Certification ledger --
    # Write-once per (category, role) and per (category, judge)
    op.create_table(
        'category_certification',
        sa.Column('certification_id', sa.String(36), primary_key=True),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('category.category_id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('signature_name', sa.String(), nullable=True),
        sa.Column(
            'signature', sa.String(64), nullable=True,
            comment='SHA-256 audit fingerprint, not a cryptographic signature',
        ),
        sa.Column('ip_address', sa.String(), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('comments', sa.String(), nullable=True),
        sa.Column('certified_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('category_id', 'role', name='uq_category_certification_role'),
    )
    op.create_table(
        'judge_certification',
        sa.Column('judge_certification_id', sa.String(36), primary_key=True),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('category.category_id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('judge_id', sa.String(36), sa.ForeignKey('judge.judge_id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('certified_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('category_id', 'judge_id', name='uq_judge_certification_judge'),
    )
    op.create_table(
        'certification_workflow',
        sa.Column('workflow_id', sa.String(36), primary_key=True),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('category.category_id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('current_step', sa.Integer(), nullable=False),
        sa.Column('total_steps', sa.Integer(), nullable=False),
        sa.Column('judge_certified', sa.Boolean(), nullable=False),
        sa.Column('tally_certified', sa.Boolean(), nullable=False),
        sa.Column('auditor_certified', sa.Boolean(), nullable=False),
        sa.Column('board_certified', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    # -- 4. Co-signature quorum requests --
    op.create_table(
        'score_removal_request',
        *_quorum_columns(),
        sa.Column(
            'contestant_id', sa.String(36),
            sa.ForeignKey('contestant.contestant_id', ondelete='CASCADE'), nullable=True,
            comment="Optional narrowing to one contestant; NULL wipes the judge's whole category",
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')", name='ck_score_removal_request_status',
        ),
    )
    op.create_table(
        'judge_uncertification_request',
        *_quorum_columns(),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')", name='ck_judge_uncertification_request_status',
        ),
    )


def downgrade() -> None:
    for table in (
        'judge_uncertification_request',
        'score_removal_request',
        'certification_workflow',
        'judge_certification',
        'category_certification',
        'overall_deduction',
        'score',
        'judge',
        'contestant',
        'criterion',
        'category',
        'contest',
        'event',
    ):
        op.drop_table(table)
