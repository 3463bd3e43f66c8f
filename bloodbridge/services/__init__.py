"""
Store-backed components, constructed once per application and shared by
the route handlers through ``get_services()``.
"""

from dataclasses import dataclass

from flask import current_app

from bloodbridge.services.access_policy import AccessPolicy
from bloodbridge.services.identity import build_verifier
from bloodbridge.services.request_ledger import RequestLedger
from bloodbridge.services.user_directory import UserDirectory

EXTENSION_KEY = "bloodbridge"


@dataclass
class Services:
    directory: UserDirectory
    ledger: RequestLedger
    policy: AccessPolicy
    verifier: object


def build_services(db, config):
    directory = UserDirectory(db)
    return Services(
        directory=directory,
        ledger=RequestLedger(db),
        policy=AccessPolicy(directory),
        verifier=build_verifier(config),
    )


def get_services():
    return current_app.extensions[EXTENSION_KEY]
