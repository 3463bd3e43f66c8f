"""
DonationRequest Model — Request Ledger
Status: pending | inprogress | done | canceled
"""

import uuid
from datetime import datetime, timezone
from bloodbridge.extensions import db

REQUEST_STATUSES = ("pending", "inprogress", "done", "canceled")


class DonationRequest(db.Model):
    __tablename__ = "donation_requests"

    request_id = db.Column(db.UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    requester_name = db.Column(db.String(255), nullable=False)
    requester_email = db.Column(db.String(255), nullable=False, index=True)
    recipient_name = db.Column(db.String(255), nullable=False)
    recipient_district = db.Column(db.String(120), nullable=False)
    recipient_upazila = db.Column(db.String(120), nullable=False)
    hospital_name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=False)
    blood_group = db.Column(db.String(3), nullable=False)
    donation_date = db.Column(db.String(32), nullable=False)
    donation_time = db.Column(db.String(32), nullable=False)
    message = db.Column(db.Text)
    status = db.Column(
        db.Enum(*REQUEST_STATUSES, name="donation_request_status"),
        nullable=False,
        default="pending",
        index=True
    )
    donor_name = db.Column(db.String(255), nullable=True)
    donor_email = db.Column(db.String(255), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )

    def to_dict(self):
        return {
            "id":                str(self.request_id),
            "requesterName":     self.requester_name,
            "requesterEmail":    self.requester_email,
            "recipientName":     self.recipient_name,
            "recipientDistrict": self.recipient_district,
            "recipientUpazila":  self.recipient_upazila,
            "hospitalName":      self.hospital_name,
            "address":           self.address,
            "bloodGroup":        self.blood_group,
            "donationDate":      self.donation_date,
            "donationTime":      self.donation_time,
            "message":           self.message,
            "status":            self.status,
            "donorName":         self.donor_name,
            "donorEmail":        self.donor_email,
            "createdAt":         self.created_at.isoformat() if self.created_at else None,
        }
