# entryboard/services/google_auth_service.py

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import jwt
import requests
from firebase_admin import auth as firebase_auth
from google_auth_oauthlib.flow import InstalledAppFlow

from entryboard.core.errors import RemoteReadFailed, RemoteWriteFailed

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class SignInResult:
    """대화형 로그인 결과."""
    account_id: str
    is_new_account: bool
    profile: Dict[str, Any] = field(default_factory=dict) # {'email', 'displayName', 'photoURL'}


class GoogleAuthService:
    """Google OAuth 2.0 로그인과 Firebase Auth 계정 연결을 담당하는 서비스 클래스입니다."""
    _user_info_url = "https://www.googleapis.com/oauth2/v3/userinfo"
    SCOPES = [
        "https://www.googleapis.com/auth/userinfo.profile",
        "https://www.googleapis.com/auth/userinfo.email",
        "openid"
    ]

    def __init__(self, client_secrets_path: Optional[str] = None):
        self.client_secrets_path = client_secrets_path

    @staticmethod
    def get_user_info_from_tokens(access_token: str, id_token: Optional[str]) -> dict:
        """
        Access Token으로 사용자 정보를 가져오고, ID Token의 클레임으로 보완합니다.
        """
        try:
            response = requests.get(
                GoogleAuthService._user_info_url,
                headers={"Authorization": f"Bearer {access_token}"}
            )
            response.raise_for_status()
            user_info = response.json()
        except requests.RequestException as e:
            logger.error(f"Google 사용자 정보 조회 실패: {e}", exc_info=True)
            raise RemoteReadFailed("Google 사용자 정보를 가져오지 못했습니다.") from e

        if id_token:
            try:
                # 서명 검증은 Google 토큰 엔드포인트와 직접 통신한 InstalledAppFlow가 이미 보장합니다.
                claims = jwt.decode(id_token, options={"verify_signature": False})
                user_info.setdefault('email', claims.get('email'))
                user_info.setdefault('email_verified', claims.get('email_verified'))
            except jwt.PyJWTError as e:
                logger.warning(f"ID Token 디코딩 실패 (무시됨): {e}")

        return user_info

    def _get_or_create_account(self, user_info: dict):
        """이메일로 Firebase Auth 계정을 찾고, 없으면 새로 만듭니다."""
        email = user_info.get('email')
        if not email:
            raise ValueError("Google 사용자 정보에 email이 없습니다.")

        try:
            return firebase_auth.get_user_by_email(email), False
        except firebase_auth.UserNotFoundError:
            pass
        except Exception as e:
            logger.error(f"Firebase Auth 계정 조회 실패 (email: {email}): {e}", exc_info=True)
            raise RemoteReadFailed("Firebase Auth 계정을 조회하지 못했습니다.") from e

        try:
            record = firebase_auth.create_user(
                email=email,
                email_verified=bool(user_info.get('email_verified')),
                display_name=user_info.get('name'),
                photo_url=user_info.get('picture'),
            )
            logger.info(f"Firebase Auth 신규 계정 생성 (uid: {record.uid})")
            return record, True
        except Exception as e:
            logger.error(f"Firebase Auth 계정 생성 실패 (email: {email}): {e}", exc_info=True)
            raise RemoteWriteFailed("Firebase Auth 계정을 만들지 못했습니다.") from e

    def sign_in_interactive(self) -> SignInResult:
        """
        브라우저를 열어 Google 로그인을 진행하고 Firebase Auth 계정과 연결합니다.
        """
        if not self.client_secrets_path:
            raise ValueError("GOOGLE_CLIENT_SECRETS_PATH 설정이 .env 또는 설정 파일에 필요합니다.")

        flow = InstalledAppFlow.from_client_secrets_file(self.client_secrets_path, scopes=self.SCOPES)
        credentials = flow.run_local_server(port=0)

        user_info = self.get_user_info_from_tokens(credentials.token, getattr(credentials, 'id_token', None))
        record, is_new = self._get_or_create_account(user_info)

        return SignInResult(
            account_id=record.uid,
            is_new_account=is_new,
            profile={
                'email': record.email,
                'displayName': record.display_name,
                'photoURL': record.photo_url,
            }
        )

    def sign_out(self, account_id: str) -> None:
        """계정의 refresh token을 모두 무효화합니다."""
        try:
            firebase_auth.revoke_refresh_tokens(account_id)
            logger.info(f"로그아웃 처리 완료 (uid: {account_id})")
        except firebase_auth.UserNotFoundError:
            logger.warning(f"Firebase Auth에서 이미 삭제된 사용자입니다 (uid: {account_id}).")
        except Exception as e:
            logger.error(f"로그아웃 처리 실패 (uid: {account_id}): {e}", exc_info=True)
            raise RemoteWriteFailed("로그아웃을 완료하지 못했습니다.") from e
