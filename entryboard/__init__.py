# entryboard/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from typing import Any, Dict, Optional
import firebase_admin
from firebase_admin import credentials

# - 설정
from entryboard.core.config import config_by_name

# - 서비스 모듈
from entryboard.services.storage_service import StorageService
from entryboard.services.firestore_service import FirestoreGateway
from entryboard.services.error_service import ErrorService
from entryboard.services.google_auth_service import GoogleAuthService
from entryboard.services.address_lookup_service import AddressLookupService

# - 스토어
from entryboard.stores.users import IdentityResolver, UserStore
from entryboard.stores.prompts import PromptStore
from entryboard.stores.reactions import LikeStore, ShareStore
from entryboard.stores.saga import OperationLog
from entryboard.stores.comments import CommentStore
from entryboard.stores.entries import EntryStore


class Client:
    """create_client가 반환하는 객체. 설정과 서비스/스토어 인스턴스를 보관합니다."""

    def __init__(self, config, services: Dict[str, Any]):
        self.config = config
        self.services = services

    def __getattr__(self, name: str) -> Any:
        services = self.__dict__.get('services', {})
        if name in services:
            return services[name]
        raise AttributeError(name)


def create_client(config_name: Optional[str] = None) -> Client:
    """
    엔트리보드 클라이언트 팩토리 함수.
    Firebase 초기화 후 서비스와 스토어를 만들어 의존성을 주입합니다.
    """
    # =====================================================================================
    # 3. 설정 선택
    # =====================================================================================
    config_name = config_name or os.getenv('ENTRYBOARD_ENV', 'development')
    config = config_by_name[config_name]

    if not config.DEBUG:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    # =====================================================================================
    # 4. 외부 서비스 초기화
    # =====================================================================================
    if not firebase_admin._apps:
        cred_path = getattr(config, 'FIREBASE_CREDENTIALS_PATH', None)
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        cred = credentials.Certificate(cred_path)
        firebase_admin.initialize_app(cred, {
            'storageBucket': config.FIREBASE_STORAGE_BUCKET
        })

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 (의존성 주입)
    # =====================================================================================
    services: Dict[str, Any] = {}

    # 5-1. 다른 서비스의 기반이 되는 게이트웨이 먼저 생성
    try:
        storage_instance = StorageService()
        storage_instance.init_app(config)
        services['storage'] = storage_instance
        logging.info("Storage service initialized successfully")
    except Exception as e:
        logging.error(f"Failed to initialize storage service: {e}")
        raise

    services['firestore'] = FirestoreGateway()
    services['errors'] = ErrorService()
    services['auth'] = GoogleAuthService(config.GOOGLE_CLIENT_SECRETS_PATH)
    services['address_lookup'] = AddressLookupService(config.ADDRESS_LOOKUP_URL, config.ADDRESS_LOOKUP_TIMEOUT)
    services['operation_log'] = OperationLog(services['firestore'], config.OPERATION_LOG_COLLECTION)

    # 5-2. 다른 서비스를 주입받아야 하는 스토어 생성
    services['users'] = UserStore(services['firestore'], services['auth'], session_path=config.SESSION_PATH)
    services['identity'] = IdentityResolver(
        user_store=services['users'],
        address_lookup=services['address_lookup'],
        fingerprint_key=config.ANON_FINGERPRINT_KEY,
        gateway=services['firestore']
    )
    services['prompts'] = PromptStore(services['firestore'])
    services['likes'] = LikeStore(services['firestore'], services['identity'])
    services['shares'] = ShareStore(services['firestore'], services['identity'])
    services['comments'] = CommentStore(services['firestore'], services['identity'])
    services['entries'] = EntryStore(
        gateway=services['firestore'],
        storage=services['storage'],
        identity=services['identity'],
        prompt_store=services['prompts'],
        like_store=services['likes'],
        share_store=services['shares'],
        error_service=services['errors'],
        operation_log=services['operation_log'],
        image_path=config.ENTRY_IMAGE_PATH
    )

    logging.info(f"Entryboard client created for '{config_name}' environment.")

    return Client(config, services)
