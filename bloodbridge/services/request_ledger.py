"""
Request Ledger — donation requests and their status state machine.

    (create)   -> pending
    pending    -> inprogress        donate: any authenticated caller
    inprogress -> done | canceled   owner update: requester only
    any        -> any status        override: admin / volunteer

Every transition that depends on the current status is written as one
conditional UPDATE, so two callers racing on the same request cannot both
succeed.
"""

from sqlalchemy import func, select, update

from bloodbridge.errors import Forbidden, NotFound, ValidationError
from bloodbridge.models.donation_request import REQUEST_STATUSES, DonationRequest
from bloodbridge.models.user import BLOOD_GROUPS
from bloodbridge.services.common import (
    normalize_email, optional_string, parse_id, pick_fields, require_fields, validate_choice,
)

REQUEST_FIELDS = {
    "recipientName":     "recipient_name",
    "recipientDistrict": "recipient_district",
    "recipientUpazila":  "recipient_upazila",
    "hospitalName":      "hospital_name",
    "address":           "address",
    "bloodGroup":        "blood_group",
    "donationDate":      "donation_date",
    "donationTime":      "donation_time",
}
EDITABLE_FIELDS = dict(REQUEST_FIELDS, message="message")

OWNER_TRANSITIONS = {
    "inprogress": {"done", "canceled"},
}


class RequestLedger:
    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    def create(self, requester, data):
        """Requester fields always come from the caller's stored profile."""
        require_fields(data, REQUEST_FIELDS)
        validate_choice(data["bloodGroup"], BLOOD_GROUPS, "bloodGroup")

        donation_request = DonationRequest(
            requester_name=requester.name,
            requester_email=requester.email,
            message=optional_string(data, "message"),
            status="pending",
            **{column: data[key] for key, column in REQUEST_FIELDS.items()},
        )
        self.session.add(donation_request)
        self.session.commit()
        return donation_request

    def get(self, request_id):
        donation_request = self.session.get(
            DonationRequest, parse_id(request_id, "Donation request not found")
        )
        if not donation_request:
            raise NotFound("Donation request not found")
        return donation_request

    def list_requests(self, status=None, requester_email=None, page=1, limit=10):
        """Newest first; ``total`` on the result counts every match, not just the page."""
        stmt = select(DonationRequest)
        if status:
            validate_choice(status, REQUEST_STATUSES, "status")
            stmt = stmt.filter_by(status=status)
        if requester_email:
            stmt = stmt.filter_by(requester_email=normalize_email(requester_email))
        stmt = stmt.order_by(DonationRequest.created_at.desc())
        return self.db.paginate(stmt, page=page, per_page=limit, error_out=False)

    def edit(self, donation_request, data):
        changes = pick_fields(data, EDITABLE_FIELDS)
        if not changes:
            raise ValidationError(
                f"Provide at least one of: {', '.join(EDITABLE_FIELDS)}"
            )
        if "bloodGroup" in changes:
            validate_choice(changes["bloodGroup"], BLOOD_GROUPS, "bloodGroup")

        for key, value in changes.items():
            setattr(donation_request, EDITABLE_FIELDS[key], value)
        self.session.commit()
        return donation_request

    def delete(self, donation_request):
        self.session.delete(donation_request)
        self.session.commit()

    def claim(self, request_id, donor_name, donor_email):
        """pending -> inprogress, recording the donor. Exactly one claim can win."""
        require_fields({"donorName": donor_name}, ["donorName"])
        rid = parse_id(request_id, "Donation request not found")

        claimed = self._transition(
            rid,
            expected_status="pending",
            values={
                "status": "inprogress",
                "donor_name": donor_name.strip(),
                "donor_email": normalize_email(donor_email),
            },
        )
        if not claimed:
            self.get(rid)
            raise ValidationError("Donation request is not pending")
        return self.get(rid)

    def complete(self, request_id, requester_email, new_status):
        """Owner path: inprogress -> done | canceled, requester only."""
        donation_request = self.get(request_id)
        requester_email = normalize_email(requester_email)
        if donation_request.requester_email != requester_email:
            raise Forbidden("Only the requester can update this request's status")

        allowed = OWNER_TRANSITIONS["inprogress"]
        if new_status not in allowed:
            raise ValidationError(f"status must be one of: {', '.join(sorted(allowed))}")

        updated = self._transition(
            donation_request.request_id,
            expected_status="inprogress",
            values={"status": new_status},
            requester_email=requester_email,
        )
        if not updated:
            raise ValidationError("Donation request is not in progress")
        return self.get(donation_request.request_id)

    def override_status(self, request_id, new_status):
        """Staff path: any of the four statuses, whatever the current one."""
        validate_choice(new_status, REQUEST_STATUSES, "status")
        donation_request = self.get(request_id)
        donation_request.status = new_status
        self.session.commit()
        return donation_request

    def status_counts(self):
        rows = self.session.execute(
            select(DonationRequest.status, func.count()).group_by(DonationRequest.status)
        ).all()
        counts = dict.fromkeys(REQUEST_STATUSES, 0)
        counts.update({status: total for status, total in rows})
        return counts

    def _transition(self, request_id, expected_status, values, **conditions):
        """Conditional update; returns False when no row was in ``expected_status``."""
        stmt = (
            update(DonationRequest)
            .where(DonationRequest.request_id == request_id)
            .where(DonationRequest.status == expected_status)
            .where(*(getattr(DonationRequest, key) == value for key, value in conditions.items()))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount == 1
