"""Server-side agent rollups: get_agent_summary, get_agent_commission_statement

Both functions mirror the application-level aggregations in
agent_portal.services.summary / agent_portal.services.statement and are
used when USE_DB_ROLLUPS is enabled.

Revision ID: 001_agent_rollups
Revises: None
Create Date: 2026-10-18
"""
from alembic import op

revision = '001_agent_rollups'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute("""
        CREATE OR REPLACE FUNCTION get_agent_summary(p_agent_id varchar)
        RETURNS TABLE (retailer_count bigint, total_commission numeric, paid_commission numeric)
        AS $$
            SELECT
                (SELECT count(*) FROM retailers r WHERE r.agent_profile_id = p_agent_id),
                (SELECT coalesce(sum(s.agent_commission), 0)
                   FROM sales s
                   JOIN terminals t ON s.terminal_id = t.id
                   JOIN retailers r ON t.retailer_id = r.id
                  WHERE r.agent_profile_id = p_agent_id),
                (SELECT coalesce(sum(tx.amount), 0)
                   FROM transactions tx
                  WHERE tx.agent_profile_id = p_agent_id
                    AND tx.type = 'commission_payout');
        $$ LANGUAGE sql STABLE;
    """)

    # Line items use [start, end + 1 day); totals are all-time.
    op.execute("""
        CREATE OR REPLACE FUNCTION get_agent_commission_statement(
            p_agent_id varchar, p_start_date date, p_end_date date
        )
        RETURNS jsonb AS $$
        DECLARE
            v_summary record;
            v_sales jsonb;
            v_payouts jsonb;
        BEGIN
            SELECT total_commission, paid_commission INTO v_summary
              FROM get_agent_summary(p_agent_id);

            SELECT coalesce(jsonb_agg(jsonb_build_object(
                       'date', s.created_at,
                       'retailer_name', r.name,
                       'type', coalesce(vt.name, 'N/A'),
                       'value', s.sale_amount,
                       'commission', s.agent_commission,
                       'status', 'Pending'
                   ) ORDER BY s.created_at DESC), '[]'::jsonb)
              INTO v_sales
              FROM sales s
              JOIN terminals t ON s.terminal_id = t.id
              JOIN retailers r ON t.retailer_id = r.id
              LEFT JOIN voucher_types vt ON s.voucher_type_id = vt.id
             WHERE r.agent_profile_id = p_agent_id
               AND s.created_at >= p_start_date
               AND s.created_at < (p_end_date + interval '1 day');

            SELECT coalesce(jsonb_agg(jsonb_build_object(
                       'date', tx.created_at,
                       'retailer_name', tx.notes,
                       'type', 'Commission Payout',
                       'value', 0,
                       'commission', tx.amount,
                       'status', 'Paid'
                   ) ORDER BY tx.created_at DESC), '[]'::jsonb)
              INTO v_payouts
              FROM transactions tx
             WHERE tx.agent_profile_id = p_agent_id
               AND tx.type = 'commission_payout'
               AND tx.created_at >= p_start_date
               AND tx.created_at < (p_end_date + interval '1 day');

            RETURN jsonb_build_object(
                'stats', jsonb_build_object(
                    'total_commission', v_summary.total_commission,
                    'paid_commission', v_summary.paid_commission,
                    'pending_commission', v_summary.total_commission - v_summary.paid_commission,
                    'transaction_count', jsonb_array_length(v_sales)
                ),
                'pending_transactions', v_sales,
                'paid_transactions', v_payouts
            );
        END;
        $$ LANGUAGE plpgsql STABLE;
    """)


def downgrade():
    op.execute("DROP FUNCTION IF EXISTS get_agent_commission_statement(varchar, date, date)")
    op.execute("DROP FUNCTION IF EXISTS get_agent_summary(varchar)")
