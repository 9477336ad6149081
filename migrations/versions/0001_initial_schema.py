"""Initial CES Agritech schema"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=150)),
        sa.Column('first_name', sa.String(length=80)),
        sa.Column('middle_name', sa.String(length=80)),
        sa.Column('last_name', sa.String(length=80)),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('primary_phone', sa.String(length=32)),
        sa.Column('date_of_birth', sa.Date()),
        sa.Column('gender', sa.String(length=10)),
        sa.Column('preferred_contact_method', sa.String(length=20)),
        sa.Column('residential_address', sa.String(length=255)),
        sa.Column('billing_address', sa.String(length=255)),
        sa.Column('city', sa.String(length=80)),
        sa.Column('region', sa.String(length=80)),
        sa.Column('postal_code', sa.String(length=20)),
        sa.Column('id_type', sa.String(length=40)),
        sa.Column('id_number', sa.String(length=50)),
        sa.Column('id_photo_front_url', sa.String(length=500)),
        sa.Column('id_photo_back_url', sa.String(length=500)),
        sa.Column('selfie_with_id_url', sa.String(length=500)),
        sa.Column('profile_picture_url', sa.String(length=500)),
        sa.Column('verification_status', sa.String(length=20)),
        sa.Column('mobile_money_provider', sa.String(length=40)),
        sa.Column('mobile_money_number', sa.String(length=32)),
        sa.Column('alternate_payout_method', sa.String(length=20)),
        sa.Column('bank_name', sa.String(length=120)),
        sa.Column('bank_account_number', sa.String(length=50)),
        sa.Column('bank_account_name', sa.String(length=150)),
        sa.Column('emergency_contact_name', sa.String(length=150)),
        sa.Column('emergency_contact_phone', sa.String(length=32)),
        sa.Column('marketing_consent', sa.Boolean()),
        sa.Column('onboarding_completed', sa.Boolean()),
        *_timestamps(),
    )
    op.create_index('ix_profiles_id_number', 'profiles', ['id_number'])

    op.create_table(
        'farmers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('business_name', sa.String(length=150)),
        sa.Column('business_registration_number', sa.String(length=80)),
        sa.Column('years_of_experience', sa.Integer()),
        sa.Column('identity_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('farm_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('compliance_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('admin_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verification_status', sa.String(length=30)),
        sa.Column('verification_notes', sa.Text()),
        sa.Column('verified_at', sa.DateTime(timezone=True)),
        sa.Column('verified_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('is_certified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('certification_number', sa.String(length=64)),
        sa.Column('certification_issued_at', sa.DateTime(timezone=True)),
        sa.Column('certification_expires_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_farmers_verification_status', 'farmers', ['verification_status'])
    op.create_index('ix_farmers_certification_number', 'farmers', ['certification_number'])

    op.create_table(
        'farms',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('farmer_id', sa.Integer(), sa.ForeignKey('farmers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('farm_name', sa.String(length=150), nullable=False),
        sa.Column('farm_type', sa.String(length=40), nullable=False),
        sa.Column('farm_size', sa.Numeric(10, 2)),
        sa.Column('farm_size_unit', sa.String(length=20)),
        sa.Column('location_address', sa.String(length=255)),
        sa.Column('location_city', sa.String(length=80)),
        sa.Column('location_region', sa.String(length=80)),
        sa.Column('gps_latitude', sa.Float()),
        sa.Column('gps_longitude', sa.Float()),
        sa.Column('main_crops', sa.JSON()),
        sa.Column('livestock_types', sa.JSON()),
        sa.Column('irrigation_type', sa.String(length=40)),
        sa.Column('soil_type', sa.String(length=40)),
        sa.Column('ownership_document_url', sa.String(length=500)),
        sa.Column('lease_document_url', sa.String(length=500)),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_certified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('certification_number', sa.String(length=64)),
        sa.Column('status', sa.String(length=30)),
        *_timestamps(),
    )
    op.create_index('ix_farms_farmer_id', 'farms', ['farmer_id'])

    op.create_table(
        'farm_media',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('farm_id', sa.Integer(), sa.ForeignKey('farms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('media_type', sa.String(length=20), nullable=False),
        sa.Column('media_url', sa.String(length=500), nullable=False),
        sa.Column('file_name', sa.String(length=255)),
        sa.Column('title', sa.String(length=150)),
        sa.Column('description', sa.Text()),
        sa.Column('is_progress_update', sa.Boolean()),
        sa.Column('release_date', sa.Date()),
        sa.Column('uploaded_by', sa.Integer(), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_farm_media_farm_id', 'farm_media', ['farm_id'])

    op.create_table(
        'investment_packages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('business_type', sa.String(length=60), nullable=False),
        sa.Column('min_investment', sa.Numeric(18, 2), nullable=False),
        sa.Column('expected_roi_min', sa.Numeric(5, 2), nullable=False),
        sa.Column('expected_roi_max', sa.Numeric(5, 2), nullable=False),
        sa.Column('duration_months', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=500)),
        sa.Column('is_active', sa.Boolean()),
        *_timestamps(),
    )

    op.create_table(
        'investments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('investor_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('package_id', sa.Integer(), sa.ForeignKey('investment_packages.id'), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('maturity_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('actual_roi', sa.Numeric(5, 2)),
        *_timestamps(),
    )
    op.create_index('ix_investments_investor_id', 'investments', ['investor_id'])
    op.create_index('idx_investment_investor_status', 'investments', ['investor_id', 'status'])

    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('investor_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('package_id', sa.Integer(), sa.ForeignKey('investment_packages.id'), nullable=False),
        sa.Column('asset_name', sa.String(length=150), nullable=False),
        sa.Column('asset_type', sa.String(length=60), nullable=False),
        sa.Column('unique_tag_id', sa.String(length=32), nullable=False),
        sa.Column('current_phase', sa.String(length=20)),
        sa.Column('status', sa.String(length=20)),
        sa.Column('purchase_amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('purchase_date', sa.Date()),
        sa.Column('start_date', sa.Date()),
        sa.Column('expected_end_date', sa.Date(), nullable=False),
        sa.Column('farm_location', sa.String(length=255)),
        sa.Column('thumbnail_url', sa.String(length=500)),
        *_timestamps(),
    )
    op.create_index('ix_assets_investor_id', 'assets', ['investor_id'])
    op.create_index('ix_assets_unique_tag_id', 'assets', ['unique_tag_id'], unique=True)

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('investor_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL')),
        sa.Column('package_id', sa.Integer(), sa.ForeignKey('investment_packages.id')),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('method', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('momo_provider', sa.String(length=40)),
        sa.Column('momo_number', sa.String(length=32)),
        sa.Column('bank_name', sa.String(length=120)),
        sa.Column('bank_account_number', sa.String(length=50)),
        sa.Column('bank_account_name', sa.String(length=150)),
        sa.Column('transaction_reference', sa.String(length=128)),
        sa.Column('admin_notes', sa.Text()),
        sa.Column('verified_at', sa.DateTime(timezone=True)),
        sa.Column('verified_by', sa.Integer(), sa.ForeignKey('users.id')),
        *_timestamps(),
    )
    op.create_index('ix_payments_investor_id', 'payments', ['investor_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_transaction_reference', 'payments', ['transaction_reference'])

    op.create_table(
        'withdrawal_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('investment_id', sa.Integer(), sa.ForeignKey('investments.id', ondelete='SET NULL')),
        sa.Column('asset_id', sa.Integer(), sa.ForeignKey('assets.id', ondelete='SET NULL')),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('currency', sa.String(length=8)),
        sa.Column('payout_method', sa.String(length=20), nullable=False),
        sa.Column('momo_provider', sa.String(length=40)),
        sa.Column('momo_number', sa.String(length=32)),
        sa.Column('bank_name', sa.String(length=120)),
        sa.Column('bank_account_number', sa.String(length=50)),
        sa.Column('bank_account_name', sa.String(length=150)),
        sa.Column('status', sa.String(length=20)),
        sa.Column('admin_notes', sa.Text()),
        sa.Column('transaction_reference', sa.String(length=128)),
        sa.Column('reviewed_at', sa.DateTime(timezone=True)),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('paid_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_withdrawal_requests_user_id', 'withdrawal_requests', ['user_id'])
    op.create_index('ix_withdrawal_requests_status', 'withdrawal_requests', ['status'])

    op.create_table(
        'farm_visits',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('investor_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('asset_id', sa.Integer(), sa.ForeignKey('assets.id', ondelete='SET NULL')),
        sa.Column('visit_date', sa.Date(), nullable=False),
        sa.Column('visit_time', sa.String(length=5), nullable=False),
        sa.Column('number_of_guests', sa.Integer()),
        sa.Column('special_requests', sa.Text()),
        sa.Column('location', sa.String(length=255)),
        sa.Column('status', sa.String(length=20)),
        sa.Column('confirmation_sent', sa.Boolean()),
        *_timestamps(),
    )
    op.create_index('ix_farm_visits_investor_id', 'farm_visits', ['investor_id'])
    op.create_index('ix_farm_visits_visit_date', 'farm_visits', ['visit_date'])


def downgrade():
    op.drop_table('farm_visits')
    op.drop_table('withdrawal_requests')
    op.drop_table('payments')
    op.drop_table('assets')
    op.drop_table('investments')
    op.drop_table('investment_packages')
    op.drop_table('farm_media')
    op.drop_table('farms')
    op.drop_table('farmers')
    op.drop_table('profiles')
    op.drop_table('user_roles')
    op.drop_table('users')
