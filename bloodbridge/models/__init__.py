from bloodbridge.models.user import User
from bloodbridge.models.donation_request import DonationRequest

__all__ = ['User', 'DonationRequest']
