# models.py - Flask-SQLAlchemy models for the CES Agritech platform
from datetime import datetime, timezone
from enum import Enum

from flask_login import UserMixin
from sqlalchemy import UniqueConstraint, Index
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db
from utils import isoformat_or_none, to_float

# ===========================================================
# ENUM DEFINITIONS
# ===========================================================

class AppRole(Enum):
    ADMIN = "admin"
    CLIENT = "client"
    FARMER = "farmer"


class VerificationStatus(Enum):
    PENDING = "pending"
    UNVERIFIED = "unverified"
    PARTIALLY_VERIFIED = "partially_verified"
    FULLY_VERIFIED = "fully_verified"
    REJECTED = "rejected"


class KycStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class PaymentMethod(Enum):
    MOMO = "momo"
    BANK = "bank"
    IN_PERSON = "in_person"


class PaymentStatus(Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class WithdrawalStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    PAID = "paid"
    FAILED = "failed"


class PayoutMethod(Enum):
    MOMO = "momo"
    BANK = "bank"


class InvestmentStatus(Enum):
    ACTIVE = "active"
    MATURED = "matured"
    CANCELLED = "cancelled"


class VisitStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class AssetStatus(Enum):
    ACTIVE = "active"
    PENDING = "pending"
    COMPLETED = "completed"


class AssetPhase(Enum):
    INITIAL = "initial"
    PLANTING = "planting"
    GROWING = "growing"
    HARVEST = "harvest"
    COMPLETED = "completed"


def utcnow():
    return datetime.now(timezone.utc)


# ===========================================================
# BASE MIXIN FOR COMMON FIELDS
# ===========================================================

class BaseMixin:
    """Provides created_at and updated_at timestamps to inheriting models."""
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

# ===========================================================
# USERS, ROLES & PROFILES
# ===========================================================

class User(UserMixin, db.Model, BaseMixin):
    """Login identity. Roles and the KYC profile hang off this record."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    active = db.Column(db.Boolean, default=True, nullable=False)

    profile = db.relationship('Profile', uselist=False, back_populates='user', cascade="all,delete-orphan")
    roles = db.relationship('UserRole', back_populates='user', cascade="all,delete-orphan")
    farmer = db.relationship('Farmer', uselist=False, back_populates='user',
                             foreign_keys='Farmer.user_id')

    @property
    def is_active(self):
        return bool(self.active)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def has_role(self, role) -> bool:
        value = role.value if isinstance(role, AppRole) else role
        return any(r.role == value for r in self.roles)

    def grant_role(self, role):
        value = role.value if isinstance(role, AppRole) else role
        if not self.has_role(value):
            self.roles.append(UserRole(role=value))

    @property
    def role_names(self):
        return sorted(r.role for r in self.roles)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "isActive": self.is_active,
            "roles": self.role_names,
            "fullName": self.profile.full_name if self.profile else None,
            "onboardingCompleted": bool(self.profile and self.profile.onboarding_completed),
            "createdAt": isoformat_or_none(self.created_at),
        }


class UserRole(db.Model):
    __tablename__ = 'user_roles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False)

    user = db.relationship('User', back_populates='roles')

    __table_args__ = (
        UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )


class Profile(db.Model, BaseMixin):
    __tablename__ = 'profiles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(150))
    first_name = db.Column(db.String(80))
    middle_name = db.Column(db.String(80))
    last_name = db.Column(db.String(80))
    phone = db.Column(db.String(32))
    primary_phone = db.Column(db.String(32))
    date_of_birth = db.Column(db.Date)
    gender = db.Column(db.String(10))
    preferred_contact_method = db.Column(db.String(20))

    # Address
    residential_address = db.Column(db.String(255))
    billing_address = db.Column(db.String(255))
    city = db.Column(db.String(80))
    region = db.Column(db.String(80))
    postal_code = db.Column(db.String(20))

    # KYC
    id_type = db.Column(db.String(40))
    id_number = db.Column(db.String(50), index=True)
    id_photo_front_url = db.Column(db.String(500))
    id_photo_back_url = db.Column(db.String(500))
    selfie_with_id_url = db.Column(db.String(500))
    profile_picture_url = db.Column(db.String(500))
    verification_status = db.Column(db.String(20), default=KycStatus.PENDING.value)

    # Payout
    mobile_money_provider = db.Column(db.String(40))
    mobile_money_number = db.Column(db.String(32))
    alternate_payout_method = db.Column(db.String(20))
    bank_name = db.Column(db.String(120))
    bank_account_number = db.Column(db.String(50))
    bank_account_name = db.Column(db.String(150))

    emergency_contact_name = db.Column(db.String(150))
    emergency_contact_phone = db.Column(db.String(32))
    marketing_consent = db.Column(db.Boolean, default=False)
    onboarding_completed = db.Column(db.Boolean, default=False)

    user = db.relationship('User', back_populates='profile')

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "email": self.email,
            "fullName": self.full_name,
            "firstName": self.first_name,
            "middleName": self.middle_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "primaryPhone": self.primary_phone,
            "dateOfBirth": isoformat_or_none(self.date_of_birth),
            "gender": self.gender,
            "preferredContactMethod": self.preferred_contact_method,
            "residentialAddress": self.residential_address,
            "city": self.city,
            "region": self.region,
            "postalCode": self.postal_code,
            "idType": self.id_type,
            "idNumber": self.id_number,
            "verificationStatus": self.verification_status,
            "mobileMoneyProvider": self.mobile_money_provider,
            "mobileMoneyNumber": self.mobile_money_number,
            "alternatePayoutMethod": self.alternate_payout_method,
            "bankName": self.bank_name,
            "bankAccountNumber": self.bank_account_number,
            "bankAccountName": self.bank_account_name,
            "emergencyContactName": self.emergency_contact_name,
            "emergencyContactPhone": self.emergency_contact_phone,
            "marketingConsent": bool(self.marketing_consent),
            "onboardingCompleted": bool(self.onboarding_completed),
            "createdAt": isoformat_or_none(self.created_at),
        }

# ===========================================================
# FARMERS & FARMS
# ===========================================================

class Farmer(db.Model, BaseMixin):
    __tablename__ = 'farmers'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    business_name = db.Column(db.String(150))
    business_registration_number = db.Column(db.String(80))
    years_of_experience = db.Column(db.Integer)

    identity_verified = db.Column(db.Boolean, default=False, nullable=False)
    farm_verified = db.Column(db.Boolean, default=False, nullable=False)
    compliance_verified = db.Column(db.Boolean, default=False, nullable=False)
    admin_approved = db.Column(db.Boolean, default=False, nullable=False)
    verification_status = db.Column(db.String(30), default=VerificationStatus.PENDING.value, index=True)
    verification_notes = db.Column(db.Text)
    verified_at = db.Column(db.DateTime(timezone=True))
    verified_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    is_certified = db.Column(db.Boolean, default=False, nullable=False)
    certification_number = db.Column(db.String(64), index=True)
    certification_issued_at = db.Column(db.DateTime(timezone=True))
    certification_expires_at = db.Column(db.DateTime(timezone=True))

    user = db.relationship('User', back_populates='farmer', foreign_keys=[user_id])
    farms = db.relationship('Farm', back_populates='farmer', cascade="all,delete-orphan")

    def to_dict(self, include_farms=False):
        profile = self.user.profile if self.user else None
        result = {
            "id": self.id,
            "userId": self.user_id,
            "businessName": self.business_name,
            "businessRegistrationNumber": self.business_registration_number,
            "yearsOfExperience": self.years_of_experience,
            "identityVerified": self.identity_verified,
            "farmVerified": self.farm_verified,
            "complianceVerified": self.compliance_verified,
            "adminApproved": self.admin_approved,
            "verificationStatus": self.verification_status,
            "verificationNotes": self.verification_notes,
            "verifiedAt": isoformat_or_none(self.verified_at),
            "isCertified": self.is_certified,
            "certificationNumber": self.certification_number,
            "certificationIssuedAt": isoformat_or_none(self.certification_issued_at),
            "certificationExpiresAt": isoformat_or_none(self.certification_expires_at),
            "createdAt": isoformat_or_none(self.created_at),
            "profile": {
                "fullName": profile.full_name,
                "email": profile.email,
                "idType": profile.id_type,
                "idNumber": profile.id_number,
            } if profile else None,
        }
        if include_farms:
            result["farms"] = [farm.to_dict() for farm in self.farms]
        return result


class Farm(db.Model, BaseMixin):
    __tablename__ = 'farms'

    id = db.Column(db.Integer, primary_key=True)
    farmer_id = db.Column(db.Integer, db.ForeignKey('farmers.id', ondelete='CASCADE'), nullable=False, index=True)
    farm_name = db.Column(db.String(150), nullable=False)
    farm_type = db.Column(db.String(40), nullable=False)
    farm_size = db.Column(db.Numeric(10, 2))
    farm_size_unit = db.Column(db.String(20), default="acres")

    location_address = db.Column(db.String(255))
    location_city = db.Column(db.String(80))
    location_region = db.Column(db.String(80))
    gps_latitude = db.Column(db.Float)
    gps_longitude = db.Column(db.Float)

    main_crops = db.Column(db.JSON)
    livestock_types = db.Column(db.JSON)
    irrigation_type = db.Column(db.String(40))
    soil_type = db.Column(db.String(40))
    ownership_document_url = db.Column(db.String(500))
    lease_document_url = db.Column(db.String(500))

    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    is_certified = db.Column(db.Boolean, default=False, nullable=False)
    certification_number = db.Column(db.String(64))
    status = db.Column(db.String(30), default="pending_verification")

    farmer = db.relationship('Farmer', back_populates='farms')
    media = db.relationship('FarmMedia', back_populates='farm', cascade="all,delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "farmerId": self.farmer_id,
            "farmName": self.farm_name,
            "farmType": self.farm_type,
            "farmSize": to_float(self.farm_size, None),
            "farmSizeUnit": self.farm_size_unit,
            "locationAddress": self.location_address,
            "locationCity": self.location_city,
            "locationRegion": self.location_region,
            "gpsLatitude": self.gps_latitude,
            "gpsLongitude": self.gps_longitude,
            "mainCrops": self.main_crops or [],
            "livestockTypes": self.livestock_types or [],
            "irrigationType": self.irrigation_type,
            "soilType": self.soil_type,
            "isVerified": self.is_verified,
            "isCertified": self.is_certified,
            "certificationNumber": self.certification_number,
            "status": self.status,
            "createdAt": isoformat_or_none(self.created_at),
        }


class FarmMedia(db.Model, BaseMixin):
    __tablename__ = 'farm_media'

    id = db.Column(db.Integer, primary_key=True)
    farm_id = db.Column(db.Integer, db.ForeignKey('farms.id', ondelete='CASCADE'), nullable=False, index=True)
    media_type = db.Column(db.String(20), nullable=False)
    media_url = db.Column(db.String(500), nullable=False)
    file_name = db.Column(db.String(255))
    title = db.Column(db.String(150))
    description = db.Column(db.Text)
    is_progress_update = db.Column(db.Boolean, default=False)
    release_date = db.Column(db.Date)
    uploaded_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    farm = db.relationship('Farm', back_populates='media')

    def to_dict(self):
        return {
            "id": self.id,
            "farmId": self.farm_id,
            "farmName": self.farm.farm_name if self.farm else None,
            "mediaType": self.media_type,
            "mediaUrl": self.media_url,
            "title": self.title,
            "description": self.description,
            "isProgressUpdate": bool(self.is_progress_update),
            "releaseDate": isoformat_or_none(self.release_date),
            "createdAt": isoformat_or_none(self.created_at),
        }

# ===========================================================
# PACKAGES, INVESTMENTS & ASSETS
# ===========================================================

class InvestmentPackage(db.Model, BaseMixin):
    __tablename__ = 'investment_packages'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    business_type = db.Column(db.String(60), nullable=False)
    min_investment = db.Column(db.Numeric(18, 2), nullable=False)
    expected_roi_min = db.Column(db.Numeric(5, 2), nullable=False)
    expected_roi_max = db.Column(db.Numeric(5, 2), nullable=False)
    duration_months = db.Column(db.Integer, nullable=False)
    image_url = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "businessType": self.business_type,
            "minInvestment": to_float(self.min_investment),
            "expectedRoiMin": to_float(self.expected_roi_min),
            "expectedRoiMax": to_float(self.expected_roi_max),
            "durationMonths": self.duration_months,
            "imageUrl": self.image_url,
            "isActive": bool(self.is_active),
        }


class Investment(db.Model, BaseMixin):
    __tablename__ = 'investments'

    id = db.Column(db.Integer, primary_key=True)
    investor_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey('investment_packages.id'), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    maturity_date = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=InvestmentStatus.ACTIVE.value)
    actual_roi = db.Column(db.Numeric(5, 2))

    investor = db.relationship('User')
    package = db.relationship('InvestmentPackage')

    __table_args__ = (
        Index('idx_investment_investor_status', 'investor_id', 'status'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "investorId": self.investor_id,
            "investorEmail": self.investor.email if self.investor else None,
            "packageId": self.package_id,
            "package": {
                "name": self.package.name,
                "expectedRoiMin": to_float(self.package.expected_roi_min),
                "expectedRoiMax": to_float(self.package.expected_roi_max),
                "durationMonths": self.package.duration_months,
            } if self.package else None,
            "amount": to_float(self.amount),
            "startDate": isoformat_or_none(self.start_date),
            "maturityDate": isoformat_or_none(self.maturity_date),
            "status": self.status,
            "actualRoi": to_float(self.actual_roi, None),
            "createdAt": isoformat_or_none(self.created_at),
        }


class Asset(db.Model, BaseMixin):
    __tablename__ = 'assets'

    id = db.Column(db.Integer, primary_key=True)
    investor_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey('investment_packages.id'), nullable=False)
    asset_name = db.Column(db.String(150), nullable=False)
    asset_type = db.Column(db.String(60), nullable=False)
    unique_tag_id = db.Column(db.String(32), unique=True, nullable=False, index=True)
    current_phase = db.Column(db.String(20), default=AssetPhase.INITIAL.value)
    status = db.Column(db.String(20), default=AssetStatus.ACTIVE.value)
    purchase_amount = db.Column(db.Numeric(18, 2), nullable=False)
    purchase_date = db.Column(db.Date)
    start_date = db.Column(db.Date)
    expected_end_date = db.Column(db.Date, nullable=False)
    farm_location = db.Column(db.String(255))
    thumbnail_url = db.Column(db.String(500))

    investor = db.relationship('User')
    package = db.relationship('InvestmentPackage')

    def to_dict(self):
        return {
            "id": self.id,
            "investorId": self.investor_id,
            "investorEmail": self.investor.email if self.investor else None,
            "packageId": self.package_id,
            "packageName": self.package.name if self.package else None,
            "assetName": self.asset_name,
            "assetType": self.asset_type,
            "uniqueTagId": self.unique_tag_id,
            "currentPhase": self.current_phase,
            "status": self.status,
            "purchaseAmount": to_float(self.purchase_amount),
            "purchaseDate": isoformat_or_none(self.purchase_date),
            "startDate": isoformat_or_none(self.start_date),
            "expectedEndDate": isoformat_or_none(self.expected_end_date),
            "farmLocation": self.farm_location,
            "thumbnailUrl": self.thumbnail_url,
            "createdAt": isoformat_or_none(self.created_at),
        }

# ===========================================================
# PAYMENTS & WITHDRAWALS
# ===========================================================

class Payment(db.Model, BaseMixin):
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    investor_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey('investment_packages.id'), nullable=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    currency = db.Column(db.String(8), nullable=False, default='GHS')
    method = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)

    momo_provider = db.Column(db.String(40))
    momo_number = db.Column(db.String(32))
    bank_name = db.Column(db.String(120))
    bank_account_number = db.Column(db.String(50))
    bank_account_name = db.Column(db.String(150))
    transaction_reference = db.Column(db.String(128), index=True)
    admin_notes = db.Column(db.Text)

    verified_at = db.Column(db.DateTime(timezone=True))
    verified_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    investor = db.relationship('User', foreign_keys=[investor_id])
    package = db.relationship('InvestmentPackage')

    def to_dict(self):
        profile = self.investor.profile if self.investor else None
        return {
            "id": self.id,
            "investorId": self.investor_id,
            "packageId": self.package_id,
            "packageName": self.package.name if self.package else None,
            "amount": to_float(self.amount),
            "currency": self.currency,
            "method": self.method,
            "status": self.status,
            "momoProvider": self.momo_provider,
            "momoNumber": self.momo_number,
            "bankName": self.bank_name,
            "bankAccountNumber": self.bank_account_number,
            "bankAccountName": self.bank_account_name,
            "transactionReference": self.transaction_reference,
            "adminNotes": self.admin_notes,
            "verifiedAt": isoformat_or_none(self.verified_at),
            "verifiedBy": self.verified_by,
            "createdAt": isoformat_or_none(self.created_at),
            "investor": {
                "fullName": profile.full_name,
                "email": profile.email,
                "phone": profile.phone,
            } if profile else None,
        }


class WithdrawalRequest(db.Model, BaseMixin):
    __tablename__ = 'withdrawal_requests'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    investment_id = db.Column(db.Integer, db.ForeignKey('investments.id', ondelete='SET NULL'), nullable=True)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id', ondelete='SET NULL'), nullable=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    currency = db.Column(db.String(8), default='GHS')
    payout_method = db.Column(db.String(20), nullable=False)
    momo_provider = db.Column(db.String(40))
    momo_number = db.Column(db.String(32))
    bank_name = db.Column(db.String(120))
    bank_account_number = db.Column(db.String(50))
    bank_account_name = db.Column(db.String(150))

    status = db.Column(db.String(20), default=WithdrawalStatus.PENDING.value, index=True)
    admin_notes = db.Column(db.Text)
    transaction_reference = db.Column(db.String(128))
    reviewed_at = db.Column(db.DateTime(timezone=True))
    reviewed_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True))

    user = db.relationship('User', foreign_keys=[user_id])

    def to_dict(self):
        profile = self.user.profile if self.user else None
        return {
            "id": self.id,
            "userId": self.user_id,
            "investmentId": self.investment_id,
            "assetId": self.asset_id,
            "amount": to_float(self.amount),
            "currency": self.currency,
            "payoutMethod": self.payout_method,
            "momoProvider": self.momo_provider,
            "momoNumber": self.momo_number,
            "bankName": self.bank_name,
            "bankAccountNumber": self.bank_account_number,
            "bankAccountName": self.bank_account_name,
            "status": self.status,
            "adminNotes": self.admin_notes,
            "transactionReference": self.transaction_reference,
            "reviewedAt": isoformat_or_none(self.reviewed_at),
            "reviewedBy": self.reviewed_by,
            "paidAt": isoformat_or_none(self.paid_at),
            "createdAt": isoformat_or_none(self.created_at),
            "user": {
                "fullName": profile.full_name,
                "email": profile.email,
            } if profile else None,
        }

# ===========================================================
# FARM VISITS
# ===========================================================

class FarmVisit(db.Model, BaseMixin):
    __tablename__ = 'farm_visits'

    id = db.Column(db.Integer, primary_key=True)
    investor_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id', ondelete='SET NULL'), nullable=True)
    visit_date = db.Column(db.Date, nullable=False, index=True)
    visit_time = db.Column(db.String(5), nullable=False)
    number_of_guests = db.Column(db.Integer, default=1)
    special_requests = db.Column(db.Text)
    location = db.Column(db.String(255))
    status = db.Column(db.String(20), default=VisitStatus.PENDING.value)
    confirmation_sent = db.Column(db.Boolean, default=False)

    investor = db.relationship('User')
    asset = db.relationship('Asset')

    def to_dict(self):
        profile = self.investor.profile if self.investor else None
        return {
            "id": self.id,
            "investorId": self.investor_id,
            "assetId": self.asset_id,
            "assetName": self.asset.asset_name if self.asset else None,
            "visitDate": isoformat_or_none(self.visit_date),
            "visitTime": self.visit_time,
            "numberOfGuests": self.number_of_guests,
            "specialRequests": self.special_requests,
            "location": self.location,
            "status": self.status,
            "confirmationSent": bool(self.confirmation_sent),
            "createdAt": isoformat_or_none(self.created_at),
            "investor": {
                "fullName": profile.full_name,
                "email": profile.email,
            } if profile else None,
        }
