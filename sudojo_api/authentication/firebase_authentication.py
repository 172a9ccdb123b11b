import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth
from starlette.concurrency import run_in_threadpool

from sudojo_api.models.dc_models import FirebaseUserModel


class InvalidTokenError(Exception):
    """The identity provider rejected the bearer credential."""


class IdentityProviderUnavailableError(Exception):
    """The identity provider could not be reached to verify a credential."""


class FirebaseAuthentication:
    """Verify Firebase ID tokens. Constructed once at startup."""

    def __init__(self, project_id: Optional[str] = None, app: Optional[firebase_admin.App] = None):
        if app is None:
            options = {"projectId": project_id} if project_id else None
            try:
                app = firebase_admin.get_app()
            except ValueError:
                app = firebase_admin.initialize_app(options=options)
        self.app = app

    async def verify_token(self, token: str) -> FirebaseUserModel:
        """Verify an ID token with the identity provider

        Args:
            token (str): Raw bearer token

        Raises:
            InvalidTokenError: The token is malformed, expired, revoked or forged
            IdentityProviderUnavailableError: Signing keys could not be fetched

        Returns:
            FirebaseUserModel: uid and email of the caller
        """
        try:
            decoded = await run_in_threadpool(auth.verify_id_token, token, self.app)
        except auth.CertificateFetchError as e:
            logging.error(f"Could not fetch identity provider certificates: {e}")
            raise IdentityProviderUnavailableError(str(e)) from e
        except (auth.InvalidIdTokenError, ValueError) as e:
            raise InvalidTokenError(str(e)) from e
        return FirebaseUserModel(uid=decoded["uid"], email=decoded.get("email"))
