"""
Account registration and sign-in.

Offline mode keeps credentials in memory (PBKDF2 hashes) and issues HS256
tokens through the shared-secret verifier. Production mode delegates to a
Cognito user pool client.
"""

import hashlib
import hmac
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from crud_service.dal import USERS
from crud_service.dal.record_store import BaseRecordStore
from crud_service.handlers.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from crud_service.handlers.utils.observability import count, logger, tracer
from crud_service.models.common import new_id, utc_now_iso
from crud_service.models.input import ConfirmSignupRequest, SigninRequest, SignupRequest
from crud_service.security import CallerIdentity
from crud_service.security.auth import USERNAME_CLAIM, SharedSecretTokenVerifier

PBKDF2_ITERATIONS = 100_000

REJECTED_SIGNIN_CODES = frozenset({'NotAuthorizedException', 'UserNotFoundException', 'UserNotConfirmedException'})
INVALID_INPUT_CODES = frozenset({
    'InvalidPasswordException',
    'InvalidParameterException',
    'CodeMismatchException',
    'ExpiredCodeException',
})


def hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac('sha256', password.encode('utf-8'), salt, PBKDF2_ITERATIONS)


@dataclass
class OfflineCredential:
    user_id: str
    email: str
    name: str
    salt: bytes
    password_hash: bytes

    def matches(self, password: str) -> bool:
        return hmac.compare_digest(self.password_hash, hash_password(password, self.salt))


class AccountService:
    """Business logic service for sign-up, sign-in and profiles."""

    def __init__(
        self,
        store: BaseRecordStore,
        token_issuer: Optional[SharedSecretTokenVerifier] = None,
        cognito_client: Any = None,
        client_id: Optional[str] = None,
    ):
        if token_issuer is None and cognito_client is None:
            raise ConfigurationError("AccountService needs a token issuer or a Cognito client")
        self.store = store
        self.token_issuer = token_issuer
        self.cognito = cognito_client
        self.client_id = client_id
        self._credentials: Dict[str, OfflineCredential] = {}

    @property
    def offline(self) -> bool:
        return self.token_issuer is not None

    def _issue_token(self, credential: OfflineCredential) -> str:
        return self.token_issuer.issue_token({
            'sub': credential.user_id,
            'email': credential.email,
            'name': credential.name,
            USERNAME_CLAIM: credential.email,
        })

    def _cognito_call(self, operation: str, **kwargs) -> Dict[str, Any]:
        try:
            return getattr(self.cognito, operation)(**kwargs)
        except ClientError as e:
            code = e.response['Error']['Code']
            message = e.response['Error'].get('Message', code)
            count("CognitoError")
            logger.warning("Cognito call failed", extra={"operation": operation, "error_code": code})
            if code == 'UsernameExistsException':
                raise ConflictError('User already exists') from e
            if code in INVALID_INPUT_CODES:
                raise ValidationError(message=message) from e
            if code == 'UserNotFoundException':
                raise NotFoundError(message='User not found', resource_type='User') from e
            raise UpstreamError(message=f"Cognito {operation} failed: {code}", service_name="Cognito") from e
        except BotoCoreError as e:
            raise UpstreamError(message=f"Cognito {operation} failed", service_name="Cognito") from e

    @tracer.capture_method
    def signup(self, request: SignupRequest) -> Dict[str, Any]:
        now = utc_now_iso()
        if self.offline:
            if request.email in self._credentials:
                raise ConflictError('User already exists')

            salt = os.urandom(16)
            credential = OfflineCredential(
                user_id=new_id(),
                email=request.email,
                name=request.name,
                salt=salt,
                password_hash=hash_password(request.password, salt),
            )
            self._credentials[request.email] = credential
            self.store.put(USERS, {
                'id': credential.user_id,
                'email': request.email,
                'name': request.name,
                'confirmed': True,
                'createdAt': now,
                'updatedAt': now,
            })
            logger.info("Offline account created", extra={"user_id": credential.user_id})
            return {
                "message": "User created successfully",
                "user": {"id": credential.user_id, "email": request.email, "name": request.name},
                "token": self._issue_token(credential),
                "needsConfirmation": False,
            }

        result = self._cognito_call(
            'sign_up',
            ClientId=self.client_id,
            Username=request.email,
            Password=request.password,
            UserAttributes=[
                {'Name': 'email', 'Value': request.email},
                {'Name': 'name', 'Value': request.name},
            ],
        )
        user_id = result['UserSub']
        self.store.put(USERS, {
            'id': user_id,
            'email': request.email,
            'name': request.name,
            'confirmed': False,
            'createdAt': now,
            'updatedAt': now,
        })
        logger.info("Account registered", extra={"user_id": user_id})
        return {
            "message": "User created successfully. Please check your email for verification.",
            "userId": user_id,
            "needsConfirmation": True,
        }

    @tracer.capture_method
    def signin(self, request: SigninRequest) -> Dict[str, Any]:
        if self.offline:
            credential = self._credentials.get(request.email)
            if credential is None or not credential.matches(request.password):
                count("SigninRejected")
                raise AuthenticationError('Invalid credentials')
            return {
                "message": "Sign in successful",
                "token": self._issue_token(credential),
                "user": {"id": credential.user_id, "email": credential.email, "name": credential.name},
            }

        try:
            result = self.cognito.initiate_auth(
                AuthFlow='USER_PASSWORD_AUTH',
                ClientId=self.client_id,
                AuthParameters={'USERNAME': request.email, 'PASSWORD': request.password},
            )
        except ClientError as e:
            code = e.response['Error']['Code']
            if code in REJECTED_SIGNIN_CODES:
                count("SigninRejected")
                raise AuthenticationError('Invalid credentials') from e
            logger.warning("Cognito sign-in failed", extra={"error_code": code})
            raise UpstreamError(message=f"Cognito initiate_auth failed: {code}", service_name="Cognito") from e
        except BotoCoreError as e:
            raise UpstreamError(message="Cognito initiate_auth failed", service_name="Cognito") from e

        if result.get('ChallengeName'):
            raise ValidationError(message='Authentication challenge required')

        tokens = result['AuthenticationResult']
        return {
            "message": "Sign in successful",
            "accessToken": tokens['AccessToken'],
            "idToken": tokens['IdToken'],
            "refreshToken": tokens.get('RefreshToken'),
        }

    @tracer.capture_method
    def confirm_signup(self, request: ConfirmSignupRequest) -> Dict[str, Any]:
        if self.offline:
            return {"message": "Email confirmation successful (mock)"}

        self._cognito_call(
            'confirm_sign_up',
            ClientId=self.client_id,
            Username=request.email,
            ConfirmationCode=request.confirmationCode,
        )
        return {"message": "Email confirmation successful"}

    @tracer.capture_method
    def get_profile(self, caller: CallerIdentity) -> Dict[str, Any]:
        user = self.store.get(USERS, caller.user_id)
        if user is None:
            raise NotFoundError(message='User not found', resource_type='User', resource_id=caller.user_id)
        return {
            "id": user['id'],
            "email": user.get('email'),
            "name": user.get('name'),
            "createdAt": user.get('createdAt'),
        }
